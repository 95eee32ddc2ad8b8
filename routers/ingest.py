from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import require_admin_token
from schemas.structure import ModuleResultsIngest
from services import activity_service, structure_service
from utils.responses import fail, ok

router = APIRouter(prefix="/ingest", tags=["ingest"], dependencies=[Depends(require_admin_token)])


# ✅ [INGEST] one module's result sheet (hierarchy + students + grades)
@router.post("/module-results")
def ingest_module_results(payload: ModuleResultsIngest, db: Session = Depends(get_db)):
    if not payload.records:
        return fail(400, "No result records provided")

    result = structure_service.ingest_module_results(db, payload, settings.DEFAULT_MODULE_CREDITS)
    activity_service.log_activity(db, activity_service.RESULTS_INGESTED, {
        "batch": payload.batch,
        "degree": payload.degree,
        "module_code": result["module_code"],
        "grades_created": result["grades_created"],
        "grades_updated": result["grades_updated"],
    })
    db.commit()
    return ok(result, message="Results ingested")
