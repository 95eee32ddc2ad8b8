from pydantic import BaseModel
from typing import Optional

# ✅ profile update (PUT /students/{index_number})
class StudentUpdate(BaseModel):
    name: Optional[str] = None
    photo_url: Optional[str] = None
