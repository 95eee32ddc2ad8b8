"""
services/structure_service.py

- find-or-create helpers for batch → degree → year → semester → module
- student / grade upserts used by ingestion and the admin routes
- functions flush but never commit; the caller (router/script) owns the transaction
"""

import logging
import re
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from models.batches import Batch as BatchModel
from models.degrees import Degree as DegreeModel
from models.years import Year as YearModel
from models.semesters import Semester as SemesterModel
from models.modules import Module as ModuleModel
from models.students import Student as StudentModel
from models.grades import Grade as GradeModel
from services.gpa_calculator import grade_to_points, normalize_grade

logger = logging.getLogger(__name__)


def parse_level_number(label: str, word: str) -> int:
    """Number from labels like "Year 2" or "Semester 1"; unparseable labels give 1."""
    match = re.search(rf"{word}\s+(\d+)", label or "", re.IGNORECASE)
    return int(match.group(1)) if match else 1


# ==========================================================
# [1] Lookups
# ==========================================================

def get_batch_by_name(db: Session, name: str) -> Optional[BatchModel]:
    return db.query(BatchModel).filter(BatchModel.name == name).first()


def get_degree(db: Session, batch_name: str, degree_name: str) -> Optional[DegreeModel]:
    return (
        db.query(DegreeModel)
        .join(BatchModel, BatchModel.id == DegreeModel.batch_id)
        .filter(BatchModel.name == batch_name, DegreeModel.name == degree_name)
        .first()
    )


def get_year(db: Session, degree_id: int, number: int) -> Optional[YearModel]:
    return (
        db.query(YearModel)
        .filter(YearModel.degree_id == degree_id, YearModel.number == number)
        .first()
    )


def get_semester(db: Session, year_id: int, number: int) -> Optional[SemesterModel]:
    return (
        db.query(SemesterModel)
        .filter(SemesterModel.year_id == year_id, SemesterModel.number == number)
        .first()
    )


# ==========================================================
# [2] find-or-create (upsert) per level
# ==========================================================

def find_or_create_batch(db: Session, name: str) -> BatchModel:
    batch = get_batch_by_name(db, name)
    if batch is None:
        batch = BatchModel(name=name)
        db.add(batch)
        db.flush()
        logger.info("Created batch %s", name)
    return batch


def find_or_create_degree(db: Session, name: str, batch_id: int) -> DegreeModel:
    degree = (
        db.query(DegreeModel)
        .filter(DegreeModel.name == name, DegreeModel.batch_id == batch_id)
        .first()
    )
    if degree is None:
        degree = DegreeModel(name=name, batch_id=batch_id)
        db.add(degree)
        db.flush()
        logger.info("Created degree %s (batch_id=%s)", name, batch_id)
    return degree


def find_or_create_year(db: Session, name: str, number: int, degree_id: int) -> YearModel:
    year = get_year(db, degree_id, number)
    if year is None:
        year = YearModel(name=name, number=number, degree_id=degree_id)
        db.add(year)
        db.flush()
    else:
        year.name = name
    return year


def find_or_create_semester(db: Session, name: str, number: int, year_id: int) -> SemesterModel:
    semester = get_semester(db, year_id, number)
    if semester is None:
        semester = SemesterModel(name=name, number=number, year_id=year_id)
        db.add(semester)
        db.flush()
    else:
        semester.name = name
    return semester


def find_or_create_module(db: Session, code: str, name: str, credits: float, semester_id: int) -> ModuleModel:
    module = (
        db.query(ModuleModel)
        .filter(ModuleModel.code == code, ModuleModel.semester_id == semester_id)
        .first()
    )
    if module is None:
        module = ModuleModel(code=code, name=name, credits=credits, semester_id=semester_id)
        db.add(module)
        db.flush()
    else:
        module.name = name
        module.credits = credits
    return module


def upsert_structure(db: Session, batch: str, degree: str, year: str, semester: str,
                     modules: Iterable = ()) -> dict:
    """Walks the hierarchy top-down, creating missing levels; returns the touched records."""
    batch_rec = find_or_create_batch(db, batch)
    degree_rec = find_or_create_degree(db, degree, batch_rec.id)
    year_rec = find_or_create_year(db, year, parse_level_number(year, "Year"), degree_rec.id)
    semester_rec = find_or_create_semester(db, semester, parse_level_number(semester, "Semester"), year_rec.id)

    module_recs = [
        find_or_create_module(db, m.code, m.name, m.credits, semester_rec.id)
        for m in modules
    ]
    return {
        "batch": batch_rec,
        "degree": degree_rec,
        "year": year_rec,
        "semester": semester_rec,
        "modules": module_recs,
    }


# ==========================================================
# [3] Students / grades
# ==========================================================

def find_or_create_student(db: Session, index_number: str, degree_id: int,
                           name: Optional[str] = None) -> StudentModel:
    student = (
        db.query(StudentModel)
        .filter(StudentModel.index_number == index_number, StudentModel.degree_id == degree_id)
        .first()
    )
    if student is None:
        student = StudentModel(index_number=index_number, degree_id=degree_id, name=name)
        db.add(student)
        db.flush()
    elif name:
        student.name = name
    return student


def upsert_grade(db: Session, student_id: int, module_id: int, grade: str) -> GradeModel:
    letter = normalize_grade(grade)
    record = (
        db.query(GradeModel)
        .filter(GradeModel.student_id == student_id, GradeModel.module_id == module_id)
        .first()
    )
    if record is None:
        record = GradeModel(student_id=student_id, module_id=module_id)
        db.add(record)
    record.grade = letter
    record.grade_points = grade_to_points(letter)
    db.flush()
    return record


def ingest_module_results(db: Session, payload, default_credits: float) -> dict:
    """
    One module's result sheet: upsert the hierarchy and the module,
    create missing students, then upsert every grade.
    """
    structure = upsert_structure(db, payload.batch, payload.degree, payload.year, payload.semester)
    degree_rec = structure["degree"]
    credits = payload.credits if payload.credits is not None else default_credits
    module = find_or_create_module(db, payload.module_code, payload.module_name, credits,
                                   structure["semester"].id)

    created, updated = 0, 0
    seen = set()
    for record in payload.records:
        index_number = record.index_number.strip()
        if index_number in seen:
            # duplicate rows on one sheet: last one wins
            logger.warning("Duplicate index %s in results for %s", index_number, payload.module_code)
        seen.add(index_number)

        student = find_or_create_student(db, index_number, degree_rec.id, record.name)
        existed = (
            db.query(GradeModel.id)
            .filter(GradeModel.student_id == student.id, GradeModel.module_id == module.id)
            .first()
            is not None
        )
        upsert_grade(db, student.id, module.id, record.grade)
        if existed:
            updated += 1
        else:
            created += 1

    logger.info("Ingested %d result(s) for %s (%s / %s)",
                len(payload.records), module.code, payload.batch, payload.degree)
    return {
        "module_id": module.id,
        "module_code": module.code,
        "credits": module.credits,
        "students": len(seen),
        "grades_created": created,
        "grades_updated": updated,
    }


# ==========================================================
# [4] Read side
# ==========================================================

def get_batch_structure(db: Session, batch_name: str) -> Optional[dict]:
    batch = (
        db.query(BatchModel)
        .options(
            selectinload(BatchModel.degrees)
            .selectinload(DegreeModel.years)
            .selectinload(YearModel.semesters)
            .selectinload(SemesterModel.modules)
        )
        .filter(BatchModel.name == batch_name)
        .first()
    )
    if batch is None:
        return None

    return {
        "batch": batch.name,
        "batch_id": batch.id,
        "degrees": [
            {
                "id": degree.id,
                "name": degree.name,
                "years": [
                    {
                        "id": year.id,
                        "name": year.name,
                        "number": year.number,
                        "semesters": [
                            {
                                "id": semester.id,
                                "name": semester.name,
                                "number": semester.number,
                                "modules": [
                                    {"id": m.id, "code": m.code, "name": m.name, "credits": m.credits}
                                    for m in semester.modules
                                ],
                            }
                            for semester in year.semesters
                        ],
                    }
                    for year in degree.years
                ],
            }
            for degree in batch.degrees
        ],
    }
