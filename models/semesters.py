from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Semester(Base):
    __tablename__ = "semesters"
    __table_args__ = (UniqueConstraint("number", "year_id", name="uq_semester_number_year"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)               # e.g. "Semester 1"
    number = Column(Integer, nullable=False)
    year_id = Column(Integer, ForeignKey("years.id", ondelete="CASCADE"), nullable=False)

    year = relationship("Year", back_populates="semesters")
    modules = relationship(
        "Module",
        back_populates="semester",
        cascade="all, delete-orphan",
        order_by="Module.code",
    )
