from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Year(Base):
    __tablename__ = "years"
    __table_args__ = (UniqueConstraint("number", "degree_id", name="uq_year_number_degree"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)               # e.g. "Year 2"
    number = Column(Integer, nullable=False)                # e.g. 2
    degree_id = Column(Integer, ForeignKey("degrees.id", ondelete="CASCADE"), nullable=False)

    degree = relationship("Degree", back_populates="years")
    semesters = relationship(
        "Semester",
        back_populates="year",
        cascade="all, delete-orphan",
        order_by="Semester.number",
    )
