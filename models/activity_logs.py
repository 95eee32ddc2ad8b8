from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, func
from database.db import Base

class ActivityLog(Base):
    __tablename__ = "activity_logs"  # audit trail of admin writes

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False, index=True)  # RESULTS_INGESTED, GRADE_DELETED ...
    details = Column(JSON, nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
