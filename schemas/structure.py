from pydantic import BaseModel, Field
from typing import List, Optional

# ✅ module inside a hierarchical upsert
class ModuleIn(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    credits: float = Field(..., gt=0, allow_inf_nan=False)

# ✅ batch → degree → year → semester (→ modules) in one request
class StructureUpsert(BaseModel):
    batch: str = Field(..., min_length=1)
    degree: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1, description='e.g. "Year 2"')
    semester: str = Field(..., min_length=1, description='e.g. "Semester 1"')
    modules: List[ModuleIn] = []

# ✅ single-level creation (admin structure editor)
class DegreeCreate(BaseModel):
    batch: str = Field(..., min_length=1)
    degree_name: str = Field(..., min_length=1)

class YearCreate(BaseModel):
    batch: str = Field(..., min_length=1)
    degree: str = Field(..., min_length=1)
    year_name: str = Field(..., min_length=1)

class SemesterCreate(BaseModel):
    batch: str = Field(..., min_length=1)
    degree: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1)
    semester_name: str = Field(..., min_length=1)

class ModuleUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    credits: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)

# ✅ one module's result sheet
class ResultRecord(BaseModel):
    index_number: str = Field(..., min_length=1)
    grade: str = Field(..., min_length=1, max_length=5)
    name: Optional[str] = None

class ModuleResultsIngest(StructureUpsert):
    module_code: str = Field(..., min_length=1)
    module_name: str = Field(..., min_length=1)
    credits: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)   # falls back to DEFAULT_MODULE_CREDITS
    records: List[ResultRecord] = []
