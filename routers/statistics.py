from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session

from database.db import get_db
from services import statistics_service, structure_service
from utils.responses import fail, ok

router = APIRouter(prefix="/statistics", tags=["statistics"])


# ✅ [STATS] totals, global top students, per-batch summaries
@router.get("/")
def read_statistics(db: Session = Depends(get_db)):
    return ok(statistics_service.admin_statistics(db))


# ✅ [STATS] one batch: mean CGPA, top-N, grade distribution
@router.get("/batches/{batch_name}")
def read_batch_statistics(batch_name: str, top: Optional[int] = None, db: Session = Depends(get_db)):
    batch = structure_service.get_batch_by_name(db, batch_name)
    if batch is None:
        return fail(404, "Batch not found")
    if top is not None and top < 0:
        return fail(400, "top must be zero or positive")
    return ok(statistics_service.batch_statistics(db, batch, top_n=top))
