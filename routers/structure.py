import logging

from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_admin_token
from models.degrees import Degree as DegreeModel
from models.semesters import Semester as SemesterModel
from models.years import Year as YearModel
from schemas.structure import DegreeCreate, SemesterCreate, StructureUpsert, YearCreate
from services import activity_service, structure_service
from services.structure_service import parse_level_number
from utils.responses import fail, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/structure", tags=["structure"])


# ==========================================================
# [1] Read
# ==========================================================

# ✅ [READ] batch → degrees → years → semesters → modules
@router.get("/")
def read_structure(batch: Optional[str] = None, db: Session = Depends(get_db)):
    if not batch:
        return fail(400, "Batch name is required")

    structure = structure_service.get_batch_structure(db, batch)
    if structure is None:
        return fail(404, "Batch not found")
    return ok(structure)


# ==========================================================
# [2] Hierarchical upsert
# ==========================================================

# ✅ [UPSERT] create whatever is missing along batch/degree/year/semester (+ modules)
@router.post("/", dependencies=[Depends(require_admin_token)])
def upsert_structure(payload: StructureUpsert, db: Session = Depends(get_db)):
    records = structure_service.upsert_structure(
        db, payload.batch, payload.degree, payload.year, payload.semester, payload.modules
    )
    activity_service.log_activity(db, activity_service.STRUCTURE_UPSERTED, {
        "batch": payload.batch,
        "degree": payload.degree,
        "year": payload.year,
        "semester": payload.semester,
        "modules": [m.code for m in payload.modules],
    })
    db.commit()
    return ok({
        "batch_id": records["batch"].id,
        "degree_id": records["degree"].id,
        "year_id": records["year"].id,
        "semester_id": records["semester"].id,
        "module_ids": [m.id for m in records["modules"]],
    }, message="Structure saved")


# ==========================================================
# [3] Single-level creation
# ==========================================================

# ✅ [CREATE] degree under an existing batch
@router.post("/degree", dependencies=[Depends(require_admin_token)])
def create_degree(payload: DegreeCreate, db: Session = Depends(get_db)):
    batch = structure_service.get_batch_by_name(db, payload.batch)
    if batch is None:
        return fail(404, "Batch not found")
    if structure_service.get_degree(db, payload.batch, payload.degree_name) is not None:
        return fail(409, "Degree already exists")

    degree = DegreeModel(name=payload.degree_name, batch_id=batch.id)
    db.add(degree)
    activity_service.log_activity(db, activity_service.DEGREE_CREATED, {"batch": batch.name, "degree": payload.degree_name})
    db.commit()
    db.refresh(degree)
    logger.info("Created degree %s in %s", degree.name, batch.name)
    return ok({"id": degree.id, "name": degree.name, "batch_id": batch.id}, message="Degree created")


# ✅ [CREATE] year under an existing degree
@router.post("/year", dependencies=[Depends(require_admin_token)])
def create_year(payload: YearCreate, db: Session = Depends(get_db)):
    degree = structure_service.get_degree(db, payload.batch, payload.degree)
    if degree is None:
        return fail(404, "Degree not found")

    number = parse_level_number(payload.year_name, "Year")
    if structure_service.get_year(db, degree.id, number) is not None:
        return fail(409, "Year already exists")

    year = YearModel(name=payload.year_name, number=number, degree_id=degree.id)
    db.add(year)
    activity_service.log_activity(db, activity_service.YEAR_CREATED, {
        "batch": payload.batch, "degree": payload.degree, "year": payload.year_name,
    })
    db.commit()
    db.refresh(year)
    return ok({"id": year.id, "name": year.name, "number": year.number, "degree_id": degree.id},
              message="Year created")


# ✅ [CREATE] semester under an existing year
@router.post("/semester", dependencies=[Depends(require_admin_token)])
def create_semester(payload: SemesterCreate, db: Session = Depends(get_db)):
    degree = structure_service.get_degree(db, payload.batch, payload.degree)
    if degree is None:
        return fail(404, "Degree not found")

    year = structure_service.get_year(db, degree.id, parse_level_number(payload.year, "Year"))
    if year is None:
        return fail(404, "Year not found")

    number = parse_level_number(payload.semester_name, "Semester")
    if structure_service.get_semester(db, year.id, number) is not None:
        return fail(409, "Semester already exists")

    semester = SemesterModel(name=payload.semester_name, number=number, year_id=year.id)
    db.add(semester)
    activity_service.log_activity(db, activity_service.SEMESTER_CREATED, {
        "batch": payload.batch, "degree": payload.degree, "year": payload.year, "semester": payload.semester_name,
    })
    db.commit()
    db.refresh(semester)
    return ok({"id": semester.id, "name": semester.name, "number": semester.number, "year_id": year.id},
              message="Semester created")
