from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session, joinedload

from database.db import get_db
from dependencies.security import require_admin_token
from models.batches import Batch as BatchModel
from models.degrees import Degree as DegreeModel
from models.grades import Grade as GradeModel
from models.modules import Module as ModuleModel
from models.semesters import Semester as SemesterModel
from models.years import Year as YearModel
from schemas.structure import ModuleUpdate
from services import activity_service, statistics_service
from services.gpa_calculator import grade_distribution
from utils.responses import fail, ok

router = APIRouter(prefix="/modules", tags=["modules"])


def _module_out(module: ModuleModel) -> dict:
    semester = module.semester
    return {
        "id": module.id,
        "code": module.code,
        "name": module.name,
        "credits": module.credits,
        "semester": semester.name,
        "semester_number": semester.number,
        "year": semester.year.name,
        "year_number": semester.year.number,
        "degree": semester.year.degree.name,
        "batch": semester.year.degree.batch.name,
    }


def _load_module(db: Session, module_id: int) -> Optional[ModuleModel]:
    return (
        db.query(ModuleModel)
        .options(
            joinedload(ModuleModel.semester)
            .joinedload(SemesterModel.year)
            .joinedload(YearModel.degree)
            .joinedload(DegreeModel.batch)
        )
        .filter(ModuleModel.id == module_id)
        .first()
    )


# ==========================================================
# [1] Static routes
# ==========================================================

# ✅ [READ] modules filtered by batch / degree / year number / semester number
@router.get("/")
def read_modules(batch: Optional[str] = None, degree: Optional[str] = None,
                 year: Optional[int] = None, semester: Optional[int] = None,
                 db: Session = Depends(get_db)):
    query = (
        db.query(ModuleModel)
        .join(SemesterModel, SemesterModel.id == ModuleModel.semester_id)
        .join(YearModel, YearModel.id == SemesterModel.year_id)
        .join(DegreeModel, DegreeModel.id == YearModel.degree_id)
        .join(BatchModel, BatchModel.id == DegreeModel.batch_id)
        .options(
            joinedload(ModuleModel.semester)
            .joinedload(SemesterModel.year)
            .joinedload(YearModel.degree)
            .joinedload(DegreeModel.batch)
        )
    )
    if batch:
        query = query.filter(BatchModel.name == batch)
    if degree:
        query = query.filter(DegreeModel.name == degree)
    if year:
        query = query.filter(YearModel.number == year)
    if semester:
        query = query.filter(SemesterModel.number == semester)

    modules = query.order_by(YearModel.number, SemesterModel.number, ModuleModel.code).all()
    return ok([_module_out(m) for m in modules], count=len(modules))


# ✅ [STATS] grade counts per module, grouped batch → degree → year → semester
@router.get("/statistics")
def read_module_statistics(db: Session = Depends(get_db)):
    return ok(statistics_service.module_statistics(db))


# ==========================================================
# [2] Dynamic routes
# ==========================================================

# ✅ [READ] one module with its grades
@router.get("/{module_id}")
def read_module(module_id: int, db: Session = Depends(get_db)):
    module = _load_module(db, module_id)
    if module is None:
        return fail(404, "Module not found")

    grades = sorted(module.grades, key=lambda g: g.student.index_number)
    return ok({
        **_module_out(module),
        "grade_counts": grade_distribution(g.grade for g in grades),
        "grades": [
            {
                "id": g.id,
                "index_number": g.student.index_number,
                "name": g.student.name,
                "grade": g.grade,
                "grade_points": g.grade_points,
            }
            for g in grades
        ],
    })


# ✅ [UPDATE] code / name / credits
@router.put("/{module_id}", dependencies=[Depends(require_admin_token)])
def update_module(module_id: int, updated: ModuleUpdate, db: Session = Depends(get_db)):
    module = _load_module(db, module_id)
    if module is None:
        return fail(404, "Module not found")

    changes = updated.model_dump(exclude_unset=True, exclude_none=True)
    if "code" in changes and changes["code"] != module.code:
        clash = (
            db.query(ModuleModel)
            .filter(ModuleModel.code == changes["code"], ModuleModel.semester_id == module.semester_id)
            .first()
        )
        if clash is not None:
            return fail(409, "Module code already exists in this semester")

    for key, value in changes.items():
        setattr(module, key, value)
    activity_service.log_activity(db, activity_service.MODULE_UPDATED, {"module_id": module_id, **changes})
    db.commit()
    return ok(_module_out(_load_module(db, module_id)), message="Module updated")


# ✅ [DELETE] module and its grades
@router.delete("/{module_id}", dependencies=[Depends(require_admin_token)])
def delete_module(module_id: int, db: Session = Depends(get_db)):
    module = db.get(ModuleModel, module_id)
    if module is None:
        return fail(404, "Module not found")

    removed = db.query(GradeModel).filter(GradeModel.module_id == module_id).count()
    activity_service.log_activity(db, activity_service.MODULE_DELETED, {
        "module_id": module_id, "code": module.code, "grades_removed": removed,
    })
    db.delete(module)
    db.commit()
    return ok({"module_id": module_id, "grades_removed": removed}, message="Module deleted")
