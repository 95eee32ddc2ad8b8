import os

# settings are read at import time: point the app at in-memory SQLite first
os.environ["DB_URL_OVERRIDE"] = "sqlite://"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["AUTO_CREATE_TABLES"] = "0"

import pytest
from fastapi.testclient import TestClient

from database.db import Base, SessionLocal, engine
from schemas.structure import ModuleResultsIngest, ResultRecord
from services.structure_service import ingest_module_results

import main


COHORT = [
    # (year, semester, code, credits, {index: grade})
    ("Year 1", "Semester 1", "CS1010", 3, {"210001A": "A", "210002B": "B+", "210003C": "A"}),
    ("Year 1", "Semester 1", "CS1020", 2, {"210001A": "B", "210002B": "A", "210003C": "B"}),
    ("Year 1", "Semester 2", "CS1030", 4, {"210001A": "W", "210002B": "A-"}),
]


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    return TestClient(main.app)


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer test-admin-token"}


def ingest(db, year, semester, code, credits, grades, batch="Batch 21", degree="Computer Science"):
    payload = ModuleResultsIngest(
        batch=batch,
        degree=degree,
        year=year,
        semester=semester,
        module_code=code,
        module_name=f"Module {code}",
        credits=credits,
        records=[ResultRecord(index_number=i, grade=g) for i, g in grades.items()],
    )
    result = ingest_module_results(db, payload, default_credits=2.5)
    db.commit()
    return result


@pytest.fixture
def cohort(db):
    """Three students in Batch 21 / Computer Science; 210001A and 210003C tie on 3.6."""
    for year, semester, code, credits, grades in COHORT:
        ingest(db, year, semester, code, credits, grades)
    return db
