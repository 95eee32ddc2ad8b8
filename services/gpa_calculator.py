"""
services/gpa_calculator.py

- Credit-weighted GPA aggregation over a student's grade records
- Pure functions only: no DB session, no ORM types, no I/O
- Contents:
  1) Grade point table: GradePointTable, DEFAULT_GRADE_TABLE, grade_to_points()
  2) Per-student aggregation: GradeEntry, CGPASummary, calculate_cgpa()
  3) Batch aggregation: StudentStanding, rank_students(), top_students(),
     mean_cgpa(), grade_distribution(), summarize_batch()
  4) Display helpers: academic_class(), performance_label(), grade_priority()
"""

from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class GradeInputError(TypeError):
    """Raised when the caller passes something that is not a grade collection."""


# =========================================================
# 1) Grade point table
# =========================================================

GRADE_POINTS: Mapping[str, float] = MappingProxyType({
    "A+": 4.0,
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D": 1.0,
    "F": 0.0,
})

# I = incomplete, W = withdrawn, P = pass, N = not graded
NON_GPA_GRADES: FrozenSet[str] = frozenset({"I", "W", "P", "N"})

ORDERED_GRADES: Tuple[str, ...] = (
    "A+", "A", "A-",
    "B+", "B", "B-",
    "C+", "C", "C-",
    "D", "F",
    "I", "W", "P", "N",
)


def normalize_grade(letter: Optional[str]) -> str:
    return (letter or "").strip().upper()


@dataclass(frozen=True)
class GradePointTable:
    points: Mapping[str, float] = field(default_factory=lambda: GRADE_POINTS)
    non_gpa: FrozenSet[str] = NON_GPA_GRADES

    def is_known(self, letter: str) -> bool:
        g = normalize_grade(letter)
        return g in self.points or g in self.non_gpa

    def lookup(self, letter: str) -> Optional[float]:
        """Point value for a GPA-bearing letter, None for markers and unknown letters."""
        return self.points.get(normalize_grade(letter))


DEFAULT_GRADE_TABLE = GradePointTable(GRADE_POINTS, NON_GPA_GRADES)


def grade_to_points(letter: str, table: GradePointTable = DEFAULT_GRADE_TABLE) -> float:
    point = table.lookup(letter)
    return point if point is not None else 0.0


# =========================================================
# 2) Per-student aggregation
# =========================================================

@dataclass(frozen=True)
class GradeEntry:
    """Minimal aggregator input; ORM rows are converted to this at the boundary."""
    credits: float
    letter_grade: str
    module_code: Optional[str] = None
    module_id: Optional[int] = None     # distinguishes one code offered in two semesters


def _json_credits(value: object) -> object:
    # JSON has no inf/nan, Fraction or Decimal
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return str(value)


@dataclass(frozen=True)
class GradeAnomaly:
    reason: str                      # non_positive_credits / invalid_credits / unknown_grade
    letter_grade: str
    credits: object = None
    module_code: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "reason": self.reason,
            "letter_grade": self.letter_grade,
            "credits": _json_credits(self.credits),
            "module_code": self.module_code,
        }


@dataclass(frozen=True)
class CGPASummary:
    weighted_points: float = 0.0
    total_credits: float = 0.0
    module_count: int = 0
    anomalies: Tuple[GradeAnomaly, ...] = ()

    @property
    def cgpa_exact(self) -> float:
        if self.total_credits <= 0:
            return 0.0
        return self.weighted_points / self.total_credits

    @property
    def cgpa(self) -> float:
        return round(self.cgpa_exact, 2)

    def to_dict(self) -> Dict[str, object]:
        return {
            "cgpa": self.cgpa,
            "total_credits": self.total_credits,
            "module_count": self.module_count,
        }


def _valid_credits(value: object) -> Optional[float]:
    # ints, floats, Fraction and Decimal; bool and non-finite values are malformed
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        return None
    if isinstance(value, Decimal) and not value.is_finite():
        return None
    credits = float(value)
    if not math.isfinite(credits):
        return None
    return credits


def _module_key(entry: GradeEntry, position: int):
    if entry.module_id is not None:
        return ("id", entry.module_id)
    if entry.module_code is not None:
        return ("code", entry.module_code)
    return ("#", position)


def calculate_cgpa(
    entries: Iterable[GradeEntry],
    table: GradePointTable = DEFAULT_GRADE_TABLE,
    *,
    count_non_gpa_modules: bool = True,
) -> CGPASummary:
    """
    CGPA = Σ(credits * grade_point) / Σ(credits) over GPA-bearing records.

    Records with I/W/P/N or unknown letters never touch the sums. With
    count_non_gpa_modules=True they still count as attempted modules; with
    False only GPA-bearing modules are counted. Records with bad credits are
    dropped and returned in `anomalies`.
    """
    if entries is None or isinstance(entries, (str, bytes)):
        raise GradeInputError("grade entries must be an iterable of GradeEntry")

    weighted = 0.0
    total_credits = 0.0
    modules = set()
    anomalies: List[GradeAnomaly] = []

    for position, entry in enumerate(entries):
        letter = normalize_grade(entry.letter_grade)
        credits = _valid_credits(entry.credits)

        if credits is None or credits <= 0:
            reason = "invalid_credits" if credits is None else "non_positive_credits"
            anomalies.append(GradeAnomaly(reason, letter, entry.credits, entry.module_code))
            continue

        module_key = _module_key(entry, position)
        point = table.lookup(letter)

        if point is None:
            if not table.is_known(letter):
                anomalies.append(GradeAnomaly("unknown_grade", letter, entry.credits, entry.module_code))
            if count_non_gpa_modules:
                modules.add(module_key)
            continue

        weighted += credits * point
        total_credits += credits
        modules.add(module_key)

    if anomalies:
        logger.warning("Excluded %d grade record(s) from CGPA: %s",
                       len(anomalies), ", ".join(a.reason for a in anomalies))

    return CGPASummary(
        weighted_points=weighted,
        total_credits=total_credits,
        module_count=len(modules),
        anomalies=tuple(anomalies),
    )


# =========================================================
# 3) Batch aggregation
# =========================================================

@dataclass(frozen=True)
class StudentStanding:
    index_number: str
    summary: CGPASummary
    name: Optional[str] = None

    @property
    def cgpa(self) -> float:
        return self.summary.cgpa


def ranking_key(standing: StudentStanding):
    return (-standing.summary.cgpa, standing.index_number)


def rank_students(standings: Iterable[StudentStanding]) -> List[StudentStanding]:
    """CGPA (display value) descending, then index number ascending."""
    return sorted(standings, key=ranking_key)


def top_students(standings: Iterable[StudentStanding], n: int) -> List[StudentStanding]:
    if n <= 0:
        return []
    return rank_students(standings)[:n]


def mean_cgpa(standings: Iterable[StudentStanding]) -> float:
    values = [s.summary.cgpa_exact for s in standings]
    if not values:
        return 0.0
    return sum(values) / len(values)


def grade_distribution(letters: Iterable[str]) -> Dict[str, int]:
    counts = Counter(normalize_grade(letter) for letter in letters)
    ordered = [g for g in ORDERED_GRADES if g in counts]
    ordered += sorted(g for g in counts if g not in ORDERED_GRADES)
    return {g: counts[g] for g in ordered}


@dataclass
class BatchStatistics:
    student_count: int = 0
    mean_cgpa: float = 0.0
    top_cgpa: float = 0.0
    top_students: List[StudentStanding] = field(default_factory=list)
    grade_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "student_count": self.student_count,
            "average_cgpa": round(self.mean_cgpa, 2),
            "top_cgpa": self.top_cgpa,
            "top_students": [
                {"index_number": s.index_number, "name": s.name, "cgpa": s.cgpa}
                for s in self.top_students
            ],
            "grade_distribution": self.grade_distribution,
        }


def summarize_batch(
    standings: Iterable[StudentStanding],
    letters: Iterable[str],
    top_n: int = 3,
) -> BatchStatistics:
    ranked = rank_students(standings)
    return BatchStatistics(
        student_count=len(ranked),
        mean_cgpa=mean_cgpa(ranked),
        top_cgpa=ranked[0].cgpa if ranked else 0.0,
        top_students=ranked[:top_n] if top_n > 0 else [],
        grade_distribution=grade_distribution(letters),
    )


# =========================================================
# 4) Display helpers
# =========================================================

def academic_class(cgpa: float) -> str:
    if cgpa >= 3.7:
        return "First Class"
    if cgpa >= 3.3:
        return "Second Class – Upper Division"
    if cgpa >= 3.0:
        return "Second Class – Lower Division"
    if cgpa >= 2.0:
        return "General"
    return "N/A"


def performance_label(cgpa: float) -> str:
    if cgpa >= 3.7:
        return "Excellent"
    if cgpa >= 3.0:
        return "Good"
    if cgpa >= 2.0:
        return "Satisfactory"
    return "Needs Improvement"


def grade_priority(letter: str) -> int:
    g = normalize_grade(letter)
    if g not in ORDERED_GRADES:
        return -1
    return len(ORDERED_GRADES) - ORDERED_GRADES.index(g)
