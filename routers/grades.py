from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from database.db import get_db
from dependencies.security import require_admin_token
from models.grades import Grade as GradeModel
from models.modules import Module as ModuleModel
from models.students import Student as StudentModel
from schemas.grades import GradeBulkUpsert, GradeUpsert
from services import activity_service, structure_service, student_service
from services.gpa_calculator import normalize_grade
from utils.responses import fail, ok

router = APIRouter(prefix="/grades", tags=["grades"])


def _grade_out(grade: GradeModel) -> dict:
    return {
        "id": grade.id,
        "student_id": grade.student_id,
        "module_id": grade.module_id,
        "grade": grade.grade,
        "grade_points": grade.grade_points,
    }


def _check_refs(db: Session, item: GradeUpsert):
    if db.get(StudentModel, item.student_id) is None:
        return f"Student {item.student_id} not found"
    if db.get(ModuleModel, item.module_id) is None:
        return f"Module {item.module_id} not found"
    return None


# ==========================================================
# [1] Read
# ==========================================================

# ✅ [READ] one student's grades (index number or id) with the computed summary
@router.get("/student/{index_number}")
def get_student_grades(index_number: str, db: Session = Depends(get_db)):
    student = student_service.find_student(db, index_number)
    if student is None:
        return fail(404, "Student not found")

    grades = sorted(student.grades, key=lambda g: g.module.code)
    summary = student_service.summarize_grades(grades)
    return ok({
        "index_number": student.index_number,
        "name": student.name,
        "grades": [student_service.module_row(g) for g in grades],
        **summary.to_dict(),
    })


# ✅ [READ] one module's grades, ordered by index number
@router.get("/module/{module_id}")
def get_module_grades(module_id: int, db: Session = Depends(get_db)):
    module = db.get(ModuleModel, module_id)
    if module is None:
        return fail(404, "Module not found")

    grades = (
        db.query(GradeModel)
        .join(StudentModel, StudentModel.id == GradeModel.student_id)
        .options(joinedload(GradeModel.student))
        .filter(GradeModel.module_id == module_id)
        .order_by(StudentModel.index_number)
        .all()
    )
    return ok([
        {**_grade_out(g), "index_number": g.student.index_number, "name": g.student.name}
        for g in grades
    ])


# ==========================================================
# [2] Admin writes
# ==========================================================

# ✅ [UPSERT] create or correct one grade
@router.post("/", dependencies=[Depends(require_admin_token)])
def upsert_grade(item: GradeUpsert, db: Session = Depends(get_db)):
    error = _check_refs(db, item)
    if error:
        return fail(404, error)

    grade = structure_service.upsert_grade(db, item.student_id, item.module_id, item.grade)
    activity_service.log_activity(db, activity_service.GRADE_SAVED, {
        "student_id": item.student_id, "module_id": item.module_id, "grade": grade.grade,
    })
    db.commit()
    db.refresh(grade)
    return ok(_grade_out(grade), message="Grade saved")


# ✅ [UPSERT] many grades in one transaction
@router.post("/bulk", dependencies=[Depends(require_admin_token)])
def bulk_upsert_grades(payload: GradeBulkUpsert, db: Session = Depends(get_db)):
    for item in payload.grades:
        error = _check_refs(db, item)
        if error:
            db.rollback()
            return fail(404, error)
        structure_service.upsert_grade(db, item.student_id, item.module_id, item.grade)

    activity_service.log_activity(db, activity_service.GRADES_BULK_SAVED, {"count": len(payload.grades)})
    db.commit()
    return ok({"count": len(payload.grades)}, message="Grades saved")


# ✅ [DELETE] remove a grade
@router.delete("/{grade_id}", dependencies=[Depends(require_admin_token)])
def delete_grade(grade_id: int, db: Session = Depends(get_db)):
    grade = db.get(GradeModel, grade_id)
    if grade is None:
        return fail(404, "Grade not found")

    letter = normalize_grade(grade.grade)
    activity_service.log_activity(db, activity_service.GRADE_DELETED, {
        "grade_id": grade_id, "student_id": grade.student_id, "module_id": grade.module_id, "grade": letter,
    })
    db.delete(grade)
    db.commit()
    return ok({"grade_id": grade_id, "grade": letter}, message="Grade deleted")
