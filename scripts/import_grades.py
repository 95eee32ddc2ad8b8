import csv
import sys
from collections import OrderedDict
from sqlalchemy.orm import Session
from config.settings import settings
from database.db import Base, SessionLocal, engine
from schemas.structure import ModuleResultsIngest, ResultRecord
from services.activity_service import RESULTS_INGESTED, log_activity
from services.structure_service import ingest_module_results

CSV_PATH = "data/grades.csv"  # ✅ default file path
# batch,degree,year,semester,module_code,module_name,credits,index_number,grade[,name]

def _group_rows(reader):
    """One ModuleResultsIngest per (batch, degree, year, semester, module_code)."""
    sheets = OrderedDict()
    for row in reader:
        key = (row["batch"], row["degree"], row["year"], row["semester"], row["module_code"])
        if key not in sheets:
            credits = (row.get("credits") or "").strip()
            sheets[key] = ModuleResultsIngest(
                batch=row["batch"].strip(),
                degree=row["degree"].strip(),
                year=row["year"].strip(),
                semester=row["semester"].strip(),
                module_code=row["module_code"].strip(),
                module_name=(row.get("module_name") or row["module_code"]).strip(),
                credits=float(credits) if credits else None,
            )
        sheets[key].records.append(ResultRecord(
            index_number=row["index_number"].strip(),
            grade=row["grade"].strip(),
            name=(row.get("name") or "").strip() or None,
        ))
    return list(sheets.values())

def migrate_grades(csv_path: str = CSV_PATH):
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()

    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            sheets = _group_rows(csv.DictReader(csvfile))

        total = 0
        for sheet in sheets:
            result = ingest_module_results(db, sheet, settings.DEFAULT_MODULE_CREDITS)
            total += result["grades_created"] + result["grades_updated"]
        log_activity(db, RESULTS_INGESTED, {"source": str(csv_path), "modules": len(sheets), "grades": total})
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"✅ grades CSV → DB: {len(sheets)} module(s), {total} grade(s)")

if __name__ == "__main__":
    migrate_grades(sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
