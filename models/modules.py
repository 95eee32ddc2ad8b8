from sqlalchemy import Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Module(Base):
    __tablename__ = "modules"
    __table_args__ = (UniqueConstraint("code", "semester_id", name="uq_module_code_semester"),)

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False)               # module code (e.g. CS1012)
    name = Column(String(200), nullable=False)
    credits = Column(Float, nullable=False)                 # credit weight
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False)

    semester = relationship("Semester", back_populates="modules")
    grades = relationship("Grade", back_populates="module", cascade="all, delete-orphan")
