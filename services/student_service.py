"""
services/student_service.py

Bridges ORM rows and the GPA calculator. Grade rows are converted to
GradeEntry here so the calculator never sees an ORM type. CGPA is recomputed
from the current grade rows on every call.
"""

from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from config.settings import settings
from models.batches import Batch as BatchModel
from models.degrees import Degree as DegreeModel
from models.grades import Grade as GradeModel
from models.modules import Module as ModuleModel
from models.semesters import Semester as SemesterModel
from models.students import Student as StudentModel
from services.gpa_calculator import (
    CGPASummary,
    GradeEntry,
    StudentStanding,
    academic_class,
    calculate_cgpa,
    performance_label,
    ranking_key,
)


def to_grade_entry(grade: GradeModel) -> GradeEntry:
    return GradeEntry(
        credits=grade.module.credits,
        letter_grade=grade.grade,
        module_code=grade.module.code,
        module_id=grade.module_id,
    )


def summarize_grades(grades: List[GradeModel]) -> CGPASummary:
    return calculate_cgpa(
        [to_grade_entry(g) for g in grades],
        count_non_gpa_modules=settings.COUNT_NON_GPA_MODULES,
    )


def photo_path(student: StudentModel) -> Optional[str]:
    # relative photo paths live under /<batch>/<degree>/
    url = student.photo_url
    if url and not url.startswith("http") and student.degree is not None:
        return f"/{quote(student.degree.batch.name)}/{quote(student.degree.name)}/{url}"
    return url


def module_row(grade: GradeModel) -> Dict[str, object]:
    module = grade.module
    return {
        "id": module.id,
        "module_code": module.code,
        "module_name": module.name,
        "grade": grade.grade,
        "credits": module.credits,
        "grade_points": grade.grade_points,
        "year": module.semester.year.name,
        "semester": module.semester.name,
    }


def _students_query(db: Session, batch_name: Optional[str] = None, degree_name: Optional[str] = None):
    query = (
        db.query(StudentModel)
        .join(DegreeModel, DegreeModel.id == StudentModel.degree_id)
        .join(BatchModel, BatchModel.id == DegreeModel.batch_id)
        .options(
            joinedload(StudentModel.degree).joinedload(DegreeModel.batch),
            selectinload(StudentModel.grades)
            .joinedload(GradeModel.module)
            .joinedload(ModuleModel.semester)
            .joinedload(SemesterModel.year),
        )
    )
    if batch_name:
        query = query.filter(BatchModel.name == batch_name)
    if degree_name:
        query = query.filter(DegreeModel.name == degree_name)
    return query


def rank_with_cgpa(db: Session, batch_name: Optional[str] = None,
                   degree_name: Optional[str] = None) -> List[Tuple[StudentModel, StudentStanding]]:
    """(student, standing) pairs in ranking order."""
    pairs = [
        (student, StudentStanding(student.index_number, summarize_grades(student.grades), student.name))
        for student in _students_query(db, batch_name, degree_name).all()
    ]
    return sorted(pairs, key=lambda pair: ranking_key(pair[1]))


def get_all_students_with_cgpa(db: Session, batch_name: Optional[str] = None,
                               degree_name: Optional[str] = None) -> List[Dict[str, object]]:
    return [
        {
            "rank": rank,
            "index_number": standing.index_number,
            "name": student.name,
            "photo_url": photo_path(student),
            "batch": student.degree.batch.name,
            "degree": student.degree.name,
            **standing.summary.to_dict(),
        }
        for rank, (student, standing) in enumerate(rank_with_cgpa(db, batch_name, degree_name), start=1)
    ]


def find_student(db: Session, id_or_index: str, batch_name: Optional[str] = None,
                 degree_name: Optional[str] = None) -> Optional[StudentModel]:
    conditions = [func.lower(StudentModel.index_number) == id_or_index.lower()]
    if id_or_index.isdigit():
        conditions.append(StudentModel.id == int(id_or_index))
    return (
        _students_query(db, batch_name, degree_name)
        .filter(or_(*conditions))
        .order_by(StudentModel.id)
        .first()
    )


def search_students(db: Session, q: str, limit: int = 20) -> List[Dict[str, object]]:
    # % and _ in the query are literal characters
    escaped = q.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    students = (
        _students_query(db)
        .filter(or_(
            StudentModel.index_number.ilike(pattern, escape="\\"),
            StudentModel.name.ilike(pattern, escape="\\"),
        ))
        .order_by(StudentModel.index_number)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": s.id,
            "index_number": s.index_number,
            "name": s.name,
            "batch": s.degree.batch.name,
            "degree": s.degree.name,
        }
        for s in students
    ]


def semester_breakdown(grades: List[GradeModel]) -> List[Dict[str, object]]:
    """SGPA per (year, semester), sorted by year number then semester number."""
    groups: Dict[Tuple[int, int], List[GradeModel]] = {}
    for grade in grades:
        semester = grade.module.semester
        groups.setdefault((semester.year.number, semester.number), []).append(grade)

    rows = []
    for key in sorted(groups):
        bucket = sorted(groups[key], key=lambda g: g.module.code)
        summary = summarize_grades(bucket)
        semester = bucket[0].module.semester
        rows.append({
            "year": semester.year.name,
            "semester": semester.name,
            "sgpa": summary.cgpa,
            "credits": summary.total_credits,
            "modules": [module_row(g) for g in bucket],
        })
    return rows


def get_student_details(db: Session, id_or_index: str, batch_name: Optional[str] = None,
                        degree_name: Optional[str] = None) -> Optional[Dict[str, object]]:
    student = find_student(db, id_or_index, batch_name, degree_name)
    if student is None:
        return None

    summary = summarize_grades(student.grades)

    # rank within the student's own degree cohort
    cohort = rank_with_cgpa(db, student.degree.batch.name, student.degree.name)
    rank = next((pos for pos, (s, _) in enumerate(cohort, start=1) if s.id == student.id), None)

    return {
        "id": student.id,
        "index_number": student.index_number,
        "name": student.name,
        "photo_url": photo_path(student),
        "batch": student.degree.batch.name,
        "degree": student.degree.name,
        "rank": rank,
        "cohort_size": len(cohort),
        **summary.to_dict(),
        "academic_class": academic_class(summary.cgpa),
        "performance": performance_label(summary.cgpa),
        "semesters": semester_breakdown(student.grades),
        "modules": [module_row(g) for g in sorted(student.grades, key=lambda g: g.module.code)],
        "anomalies": [a.to_dict() for a in summary.anomalies],
    }
