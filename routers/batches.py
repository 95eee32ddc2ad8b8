from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_admin_token
from models.batches import Batch as BatchModel
from models.degrees import Degree as DegreeModel
from models.students import Student as StudentModel
from services import activity_service, structure_service
from utils.responses import fail, ok

router = APIRouter(prefix="/batches", tags=["batches"])


# ✅ [READ] all batches with degree / student counts
@router.get("/")
def read_batches(db: Session = Depends(get_db)):
    degree_counts = dict(
        db.query(DegreeModel.batch_id, func.count(DegreeModel.id))
        .group_by(DegreeModel.batch_id)
        .all()
    )
    student_counts = dict(
        db.query(DegreeModel.batch_id, func.count(StudentModel.id))
        .join(StudentModel, StudentModel.degree_id == DegreeModel.id)
        .group_by(DegreeModel.batch_id)
        .all()
    )
    batches = db.query(BatchModel).order_by(BatchModel.name).all()
    return ok([
        {
            "id": b.id,
            "name": b.name,
            "degree_count": degree_counts.get(b.id, 0),
            "student_count": student_counts.get(b.id, 0),
            "created_at": b.created_at.isoformat() if b.created_at else None,
        }
        for b in batches
    ])


# ✅ [READ] degrees of one batch
@router.get("/{batch_name}/degrees")
def read_batch_degrees(batch_name: str, db: Session = Depends(get_db)):
    batch = structure_service.get_batch_by_name(db, batch_name)
    if batch is None:
        return fail(404, "Batch not found")
    return ok([{"id": d.id, "name": d.name} for d in batch.degrees])


# ✅ [DELETE] batch and everything under it
@router.delete("/{batch_id}", dependencies=[Depends(require_admin_token)])
def delete_batch(batch_id: int, db: Session = Depends(get_db)):
    batch = db.get(BatchModel, batch_id)
    if batch is None:
        return fail(404, "Batch not found")

    name = batch.name
    activity_service.log_activity(db, activity_service.BATCH_DELETED, {"batch_id": batch_id, "name": name})
    db.delete(batch)
    db.commit()
    return ok({"batch_id": batch_id, "name": name}, message="Batch deleted")
