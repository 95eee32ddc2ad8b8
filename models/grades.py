from sqlalchemy import Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Grade(Base):
    __tablename__ = "grades"  # one letter grade per (student, module)
    __table_args__ = (UniqueConstraint("student_id", "module_id", name="uq_grade_student_module"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    grade = Column(String(5), nullable=False)               # letter grade (A+, B, I, W ...)
    grade_points = Column(Float, nullable=False, default=0.0)  # informational; CGPA re-derives from `grade`

    student = relationship("Student", back_populates="grades")
    module = relationship("Module", back_populates="grades")
