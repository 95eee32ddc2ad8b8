from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # student identity; CGPA is never stored here
    __table_args__ = (UniqueConstraint("index_number", "degree_id", name="uq_student_index_degree"),)

    id = Column(Integer, primary_key=True, index=True)
    index_number = Column(String(20), nullable=False, index=True)   # university index number
    name = Column(String(100))
    photo_url = Column(String(300))
    degree_id = Column(Integer, ForeignKey("degrees.id", ondelete="CASCADE"), nullable=False)

    degree = relationship("Degree", back_populates="students")
    grades = relationship("Grade", back_populates="student", cascade="all, delete-orphan")
