from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_admin_token
from services.activity_service import activity_out, get_activity_logs
from utils.responses import ok

router = APIRouter(prefix="/activity", tags=["activity"], dependencies=[Depends(require_admin_token)])


# ✅ [READ] recent admin writes, newest first
@router.get("/")
def read_activity(limit: int = Query(50, ge=1, le=500), action: Optional[str] = None,
                  db: Session = Depends(get_db)):
    logs = get_activity_logs(db, limit=limit, action=action.upper() if action else None)
    return ok([activity_out(entry) for entry in logs], count=len(logs))
