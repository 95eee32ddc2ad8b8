from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship
from database.db import Base

class Batch(Base):
    __tablename__ = "batches"  # intake batch (e.g. "Batch 21")

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now())

    # ✅ 1:N degrees, removed together with the batch
    degrees = relationship(
        "Degree",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="Degree.name",
    )
