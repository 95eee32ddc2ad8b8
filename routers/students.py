from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_admin_token
from schemas.students import StudentUpdate
from services import activity_service, student_service
from utils.responses import fail, ok

router = APIRouter(prefix="/students", tags=["students"])


# ==========================================================
# [1] Static routes (list / search)
# ==========================================================

# ✅ [READ] students ranked by CGPA, optionally scoped to a batch / degree
@router.get("/")
def read_students(batch: Optional[str] = None, degree: Optional[str] = None,
                  db: Session = Depends(get_db)):
    if degree and not batch:
        return fail(400, "degree filter requires batch")
    students = student_service.get_all_students_with_cgpa(db, batch, degree)
    return ok(students, count=len(students))


# ✅ [SEARCH] by index number or name
@router.get("/search")
def search_students(q: str = "", limit: int = 20, db: Session = Depends(get_db)):
    if len(q.strip()) < 2:
        return fail(400, "Query must be at least 2 characters")
    return ok(student_service.search_students(db, q, limit=min(max(limit, 1), 100)))


# ==========================================================
# [2] Dynamic routes
# ==========================================================

# ✅ [READ] details: semesters with SGPA, CGPA, rank, predicted class
@router.get("/{index_number}")
def read_student(index_number: str, batch: Optional[str] = None, degree: Optional[str] = None,
                 db: Session = Depends(get_db)):
    details = student_service.get_student_details(db, index_number, batch, degree)
    if details is None:
        return fail(404, "Student not found")
    return ok(details)


# ✅ [UPDATE] profile (name / photo)
@router.put("/{index_number}", dependencies=[Depends(require_admin_token)])
def update_student(index_number: str, updated: StudentUpdate, db: Session = Depends(get_db)):
    student = student_service.find_student(db, index_number)
    if student is None:
        return fail(404, "Student not found")

    changes = updated.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(student, key, value)
    activity_service.log_activity(db, activity_service.STUDENT_UPDATED, {"index_number": student.index_number, **changes})
    db.commit()
    return ok({
        "id": student.id,
        "index_number": student.index_number,
        "name": student.name,
        "photo_url": student.photo_url,
    }, message="Student updated")
