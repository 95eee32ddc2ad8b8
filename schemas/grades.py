from pydantic import BaseModel, Field
from typing import List

# ✅ input (POST /grades)
class GradeUpsert(BaseModel):
    student_id: int                          # students.id
    module_id: int                           # modules.id
    grade: str = Field(..., min_length=1, max_length=5)   # letter grade (A+, B, W ...)

# ✅ input (POST /grades/bulk)
class GradeBulkUpsert(BaseModel):
    grades: List[GradeUpsert]
