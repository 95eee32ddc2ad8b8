"""
services/statistics_service.py

Read-only dashboards built on the GPA calculator:
- admin statistics: totals, global top-N, per-batch summaries
- module statistics: grade counts per module, grouped by batch/degree/year/semester
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from config.settings import settings
from models.batches import Batch as BatchModel
from models.degrees import Degree as DegreeModel
from models.grades import Grade as GradeModel
from models.modules import Module as ModuleModel
from models.semesters import Semester as SemesterModel
from models.students import Student as StudentModel
from models.years import Year as YearModel
from services.gpa_calculator import grade_distribution, mean_cgpa, summarize_batch
from services.student_service import rank_with_cgpa

logger = logging.getLogger(__name__)


def _batch_grade_letters(db: Session, batch_name: str) -> List[str]:
    rows = (
        db.query(GradeModel.grade)
        .join(StudentModel, StudentModel.id == GradeModel.student_id)
        .join(DegreeModel, DegreeModel.id == StudentModel.degree_id)
        .join(BatchModel, BatchModel.id == DegreeModel.batch_id)
        .filter(BatchModel.name == batch_name)
        .all()
    )
    return [r.grade for r in rows]


def batch_statistics(db: Session, batch: BatchModel, top_n: Optional[int] = None) -> Dict[str, object]:
    top_n = settings.TOP_STUDENTS_PER_BATCH if top_n is None else top_n
    standings = [standing for _, standing in rank_with_cgpa(db, batch.name)]
    stats = summarize_batch(standings, _batch_grade_letters(db, batch.name), top_n=top_n)
    return {
        "name": batch.name,
        "degrees": len(batch.degrees),
        **stats.to_dict(),
    }


def admin_statistics(db: Session) -> Dict[str, object]:
    batches = (
        db.query(BatchModel)
        .options(selectinload(BatchModel.degrees))
        .order_by(BatchModel.name)
        .all()
    )
    ranked = rank_with_cgpa(db)
    standings = [standing for _, standing in ranked]

    top_global = [
        {
            "index_number": standing.index_number,
            "name": standing.name,
            "batch": student.degree.batch.name,
            "degree": student.degree.name,
            **standing.summary.to_dict(),
        }
        for student, standing in ranked[: settings.TOP_STUDENTS_GLOBAL]
    ]

    logger.info("Statistics computed for %d batch(es), %d student(s)", len(batches), len(standings))
    return {
        "overall": {
            "total_batches": len(batches),
            "total_students": len(standings),
            "total_modules": db.query(func.count(ModuleModel.id)).scalar() or 0,
            "total_grades": db.query(func.count(GradeModel.id)).scalar() or 0,
            "average_cgpa": round(mean_cgpa(standings), 2),
        },
        "batches": [batch_statistics(db, batch) for batch in batches],
        "top_students_global": top_global,
    }


def module_statistics(db: Session) -> Dict[str, object]:
    modules = (
        db.query(ModuleModel)
        .join(SemesterModel, SemesterModel.id == ModuleModel.semester_id)
        .join(YearModel, YearModel.id == SemesterModel.year_id)
        .options(
            joinedload(ModuleModel.semester)
            .joinedload(SemesterModel.year)
            .joinedload(YearModel.degree)
            .joinedload(DegreeModel.batch),
            selectinload(ModuleModel.grades),
        )
        .order_by(YearModel.number, SemesterModel.number, ModuleModel.code)
        .all()
    )

    processed = []
    grouped: Dict[str, Dict[str, Dict[str, Dict[str, List[dict]]]]] = {}
    for module in modules:
        semester = module.semester
        year = semester.year
        degree = year.degree
        row = {
            "id": module.id,
            "code": module.code,
            "name": module.name,
            "credits": module.credits,
            "total_students": len(module.grades),
            "grade_counts": grade_distribution(g.grade for g in module.grades),
            "semester": semester.name,
            "semester_number": semester.number,
            "year": year.name,
            "year_number": year.number,
            "degree": degree.name,
            "batch": degree.batch.name,
        }
        processed.append(row)
        (
            grouped.setdefault(row["batch"], {})
            .setdefault(row["degree"], {})
            .setdefault(row["year"], {})
            .setdefault(row["semester"], [])
            .append(row)
        )

    return {"count": len(processed), "modules": processed, "grouped": grouped}
