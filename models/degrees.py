from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Degree(Base):
    __tablename__ = "degrees"
    __table_args__ = (UniqueConstraint("name", "batch_id", name="uq_degree_name_batch"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)              # degree programme name
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False)

    batch = relationship("Batch", back_populates="degrees")
    years = relationship(
        "Year",
        back_populates="degree",
        cascade="all, delete-orphan",
        order_by="Year.number",
    )
    students = relationship("Student", back_populates="degree", cascade="all, delete-orphan")
