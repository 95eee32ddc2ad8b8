import pytest

from conftest import ingest


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "X-Latency-Ms" in resp.headers


# ==========================================================
# students
# ==========================================================

def test_students_ranked_with_tie_break(client, cohort):
    resp = client.get("/v1/students/", params={"batch": "Batch 21"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [(s["index_number"], s["cgpa"], s["rank"]) for s in body["data"]] == [
        ("210002B", 3.63, 1),
        ("210001A", 3.6, 2),
        ("210003C", 3.6, 3),
    ]


def test_withdrawn_module_counted_but_not_weighted(client, cohort):
    data = client.get("/v1/students/", params={"batch": "Batch 21"}).json()["data"]
    student = next(s for s in data if s["index_number"] == "210001A")
    assert student["total_credits"] == 5
    assert student["module_count"] == 3


def test_module_count_policy_off(client, cohort, monkeypatch):
    from config.settings import settings

    monkeypatch.setattr(settings, "COUNT_NON_GPA_MODULES", False)
    data = client.get("/v1/students/").json()["data"]
    student = next(s for s in data if s["index_number"] == "210001A")
    assert student["module_count"] == 2


def test_students_degree_filter_needs_batch(client, cohort):
    resp = client.get("/v1/students/", params={"degree": "Computer Science"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_student_details(client, cohort):
    resp = client.get("/v1/students/210002b")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["index_number"] == "210002B"
    assert data["rank"] == 1
    assert data["cohort_size"] == 3
    assert data["cgpa"] == 3.63
    assert data["total_credits"] == 9
    assert data["academic_class"] == "Second Class – Upper Division"
    assert [(s["semester"], s["sgpa"]) for s in data["semesters"]] == [
        ("Semester 1", 3.58),
        ("Semester 2", 3.7),
    ]
    assert [m["module_code"] for m in data["modules"]] == ["CS1010", "CS1020", "CS1030"]
    assert data["anomalies"] == []


def test_student_details_withdrawn_semester_has_zero_sgpa(client, cohort):
    data = client.get("/v1/students/210001A").json()["data"]
    assert data["semesters"][1]["sgpa"] == 0
    assert data["semesters"][1]["credits"] == 0


def test_student_not_found(client, cohort):
    resp = client.get("/v1/students/999999Z")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == 404


def test_student_search(client, cohort):
    data = client.get("/v1/students/search", params={"q": "2100"}).json()["data"]
    assert [s["index_number"] for s in data] == ["210001A", "210002B", "210003C"]
    assert client.get("/v1/students/search", params={"q": "2"}).status_code == 400


def test_student_search_treats_wildcards_literally(client, cohort):
    assert client.get("/v1/students/search", params={"q": "0%"}).json()["data"] == []
    assert client.get("/v1/students/search", params={"q": "1_"}).json()["data"] == []


def test_update_student_profile(client, cohort, admin_headers):
    resp = client.put("/v1/students/210001A", json={"name": "Nimal"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Nimal"
    assert client.get("/v1/students/210001A").json()["data"]["name"] == "Nimal"


# ==========================================================
# auth
# ==========================================================

@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "test-admin-token"},
    {"Authorization": "Basic test-admin-token"},
    {"Authorization": "Bearer wrong"},
])
def test_admin_routes_require_token(client, db, headers):
    resp = client.post("/v1/structure/", headers=headers, json={
        "batch": "Batch 21", "degree": "CS", "year": "Year 1", "semester": "Semester 1",
    })
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


# ==========================================================
# structure
# ==========================================================

def test_structure_requires_batch(client, db):
    assert client.get("/v1/structure/").status_code == 400
    assert client.get("/v1/structure/", params={"batch": "Batch 99"}).status_code == 404


def test_structure_upsert_and_read(client, db, admin_headers):
    payload = {
        "batch": "Batch 22",
        "degree": "Engineering",
        "year": "Year 2",
        "semester": "Semester 1",
        "modules": [{"code": "EN2010", "name": "Circuits", "credits": 3}],
    }
    first = client.post("/v1/structure/", json=payload, headers=admin_headers).json()["data"]
    second = client.post("/v1/structure/", json=payload, headers=admin_headers).json()["data"]
    assert first == second

    structure = client.get("/v1/structure/", params={"batch": "Batch 22"}).json()["data"]
    year = structure["degrees"][0]["years"][0]
    assert year["number"] == 2
    assert year["semesters"][0]["modules"][0]["code"] == "EN2010"


def test_structure_rejects_non_positive_credits(client, db, admin_headers):
    resp = client.post("/v1/structure/", headers=admin_headers, json={
        "batch": "Batch 22", "degree": "Engineering", "year": "Year 1", "semester": "Semester 1",
        "modules": [{"code": "EN1010", "name": "Maths", "credits": 0}],
    })
    assert resp.status_code == 422


def test_structure_rejects_infinite_credits(client, db, admin_headers):
    body = (
        '{"batch": "Batch 22", "degree": "Engineering", "year": "Year 1", "semester": "Semester 1",'
        ' "modules": [{"code": "EN1010", "name": "Maths", "credits": Infinity}]}'
    )
    resp = client.post("/v1/structure/", content=body,
                       headers={**admin_headers, "Content-Type": "application/json"})
    assert resp.status_code == 422


def test_module_update_rejects_infinite_credits(client, cohort, admin_headers):
    module_id = client.get("/v1/modules/").json()["data"][0]["id"]
    resp = client.put(f"/v1/modules/{module_id}", content='{"credits": Infinity}',
                      headers={**admin_headers, "Content-Type": "application/json"})
    assert resp.status_code == 422
    assert client.get("/v1/students/210003C").json()["data"]["cgpa"] == 3.6


def test_create_semester_levels(client, cohort, admin_headers):
    base = {"batch": "Batch 21", "degree": "Computer Science"}

    resp = client.post("/v1/structure/year", json={**base, "year_name": "Year 2"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["number"] == 2

    resp = client.post("/v1/structure/semester",
                       json={**base, "year": "Year 2", "semester_name": "Semester 1"},
                       headers=admin_headers)
    assert resp.status_code == 200

    dup = client.post("/v1/structure/semester",
                      json={**base, "year": "Year 2", "semester_name": "Semester 1"},
                      headers=admin_headers)
    assert dup.status_code == 409

    missing = client.post("/v1/structure/semester",
                          json={**base, "year": "Year 4", "semester_name": "Semester 1"},
                          headers=admin_headers)
    assert missing.status_code == 404


def test_create_degree(client, cohort, admin_headers):
    resp = client.post("/v1/structure/degree", json={"batch": "Batch 21", "degree_name": "Maths"},
                       headers=admin_headers)
    assert resp.status_code == 200
    dup = client.post("/v1/structure/degree", json={"batch": "Batch 21", "degree_name": "Maths"},
                      headers=admin_headers)
    assert dup.status_code == 409
    missing = client.post("/v1/structure/degree", json={"batch": "Batch 30", "degree_name": "Maths"},
                          headers=admin_headers)
    assert missing.status_code == 404


# ==========================================================
# batches / modules
# ==========================================================

def test_batches_list(client, cohort):
    data = client.get("/v1/batches/").json()["data"]
    assert data[0]["name"] == "Batch 21"
    assert data[0]["degree_count"] == 1
    assert data[0]["student_count"] == 3


def test_delete_batch_cascades(client, cohort, admin_headers):
    batch_id = client.get("/v1/batches/").json()["data"][0]["id"]
    assert client.delete(f"/v1/batches/{batch_id}", headers=admin_headers).status_code == 200
    assert client.get("/v1/batches/").json()["data"] == []
    assert client.get("/v1/students/").json()["data"] == []


def test_modules_filter(client, cohort):
    data = client.get("/v1/modules/", params={"batch": "Batch 21", "semester": 2}).json()["data"]
    assert [m["code"] for m in data] == ["CS1030"]


def test_module_detail_orders_grades_by_index(client, cohort):
    module_id = client.get("/v1/modules/").json()["data"][0]["id"]
    data = client.get(f"/v1/modules/{module_id}").json()["data"]
    assert data["code"] == "CS1010"
    assert [g["index_number"] for g in data["grades"]] == ["210001A", "210002B", "210003C"]
    assert data["grade_counts"] == {"A": 2, "B+": 1}


def test_module_credit_change_recomputes_cgpa(client, cohort, admin_headers):
    modules = client.get("/v1/modules/").json()["data"]
    cs1020 = next(m for m in modules if m["code"] == "CS1020")
    resp = client.put(f"/v1/modules/{cs1020['id']}", json={"credits": 3}, headers=admin_headers)
    assert resp.status_code == 200

    # 210003C: (3*4.0 + 3*3.0) / 6 = 3.5
    data = client.get("/v1/students/210003C").json()["data"]
    assert data["cgpa"] == 3.5
    assert data["total_credits"] == 6


def test_module_statistics(client, cohort):
    data = client.get("/v1/modules/statistics").json()["data"]
    assert data["count"] == 3
    grouped = data["grouped"]["Batch 21"]["Computer Science"]["Year 1"]
    assert [m["code"] for m in grouped["Semester 1"]] == ["CS1010", "CS1020"]
    cs1030 = grouped["Semester 2"][0]
    assert cs1030["total_students"] == 2
    assert cs1030["grade_counts"] == {"A-": 1, "W": 1}


# ==========================================================
# grades / ingest
# ==========================================================

def test_grade_upsert_and_delete(client, cohort, admin_headers):
    student = client.get("/v1/students/210003C").json()["data"]
    modules = client.get("/v1/modules/").json()["data"]
    cs1030 = next(m for m in modules if m["code"] == "CS1030")

    resp = client.post("/v1/grades/", headers=admin_headers,
                       json={"student_id": student["id"], "module_id": cs1030["id"], "grade": "c"})
    assert resp.status_code == 200
    grade = resp.json()["data"]
    assert grade["grade"] == "C"
    assert grade["grade_points"] == 2.0

    # (3*4 + 2*3 + 4*2) / 9 = 2.89
    assert client.get("/v1/students/210003C").json()["data"]["cgpa"] == 2.89

    assert client.delete(f"/v1/grades/{grade['id']}", headers=admin_headers).status_code == 200
    assert client.get("/v1/students/210003C").json()["data"]["cgpa"] == 3.6


def test_grade_upsert_unknown_refs(client, cohort, admin_headers):
    resp = client.post("/v1/grades/", headers=admin_headers,
                       json={"student_id": 999, "module_id": 1, "grade": "A"})
    assert resp.status_code == 404


def test_grades_for_student_and_module(client, cohort):
    data = client.get("/v1/grades/student/210001A").json()["data"]
    assert [g["grade"] for g in data["grades"]] == ["A", "B", "W"]
    assert data["cgpa"] == 3.6

    module_id = data["grades"][0]["id"]
    rows = client.get(f"/v1/grades/module/{module_id}").json()["data"]
    assert [r["index_number"] for r in rows] == ["210001A", "210002B", "210003C"]


def test_ingest_module_results(client, db, admin_headers):
    payload = {
        "batch": "Batch 23", "degree": "Physics", "year": "Year 1", "semester": "Semester 1",
        "module_code": "PH1010", "module_name": "Mechanics",
        "records": [
            {"index_number": "230001A", "grade": "A"},
            {"index_number": "230002B", "grade": "I"},
        ],
    }
    resp = client.post("/v1/ingest/module-results", json=payload, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["credits"] == 2.5
    assert data["grades_created"] == 2

    students = client.get("/v1/students/", params={"batch": "Batch 23"}).json()["data"]
    assert [(s["index_number"], s["cgpa"], s["module_count"]) for s in students] == [
        ("230001A", 4.0, 1),
        ("230002B", 0, 1),
    ]


def test_ingest_rejects_overlong_grade(client, db, admin_headers):
    payload = {
        "batch": "Batch 23", "degree": "Physics", "year": "Year 1", "semester": "Semester 1",
        "module_code": "PH1010", "module_name": "Mechanics",
        "records": [{"index_number": "230001A", "grade": "ABSENT"}],
    }
    assert client.post("/v1/ingest/module-results", json=payload, headers=admin_headers).status_code == 422


def test_same_module_code_in_two_semesters_counts_twice(client, db):
    ingest(db, "Year 1", "Semester 1", "CS1010", 3, {"210001A": "A"})
    ingest(db, "Year 1", "Semester 2", "CS1010", 3, {"210001A": "B"})

    student = client.get("/v1/students/", params={"batch": "Batch 21"}).json()["data"][0]
    assert student["module_count"] == 2
    assert student["total_credits"] == 6
    assert student["cgpa"] == 3.5


def test_ingest_requires_records(client, db, admin_headers):
    payload = {
        "batch": "Batch 23", "degree": "Physics", "year": "Year 1", "semester": "Semester 1",
        "module_code": "PH1010", "module_name": "Mechanics", "records": [],
    }
    assert client.post("/v1/ingest/module-results", json=payload, headers=admin_headers).status_code == 400


# ==========================================================
# statistics
# ==========================================================

def test_admin_statistics(client, cohort):
    data = client.get("/v1/statistics/").json()["data"]
    overall = data["overall"]
    assert overall["total_batches"] == 1
    assert overall["total_students"] == 3
    assert overall["total_modules"] == 3
    assert overall["total_grades"] == 8
    assert overall["average_cgpa"] == 3.61

    batch = data["batches"][0]
    assert batch["name"] == "Batch 21"
    assert batch["degrees"] == 1
    assert batch["top_cgpa"] == 3.63
    assert [s["index_number"] for s in batch["top_students"]] == ["210002B", "210001A", "210003C"]
    assert batch["grade_distribution"] == {"A": 3, "A-": 1, "B+": 1, "B": 2, "W": 1}
    assert sum(batch["grade_distribution"].values()) == overall["total_grades"]

    assert [s["index_number"] for s in data["top_students_global"]] == ["210002B", "210001A", "210003C"]


def test_batch_statistics_top(client, cohort):
    data = client.get("/v1/statistics/batches/Batch 21", params={"top": 1}).json()["data"]
    assert [s["index_number"] for s in data["top_students"]] == ["210002B"]
    assert client.get("/v1/statistics/batches/Batch 99").status_code == 404


def test_statistics_empty_database(client, db):
    data = client.get("/v1/statistics/").json()["data"]
    assert data["overall"]["total_students"] == 0
    assert data["overall"]["average_cgpa"] == 0
    assert data["batches"] == []


def test_unhandled_error_returns_json_500(db, monkeypatch):
    from fastapi.testclient import TestClient
    import main
    from services import statistics_service

    def boom(_db):
        raise RuntimeError("database went away")

    monkeypatch.setattr(statistics_service, "admin_statistics", boom)
    resp = TestClient(main.app, raise_server_exceptions=False).get("/v1/statistics/")
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == {"code": "INTERNAL_ERROR", "message": "database went away"}


# ==========================================================
# activity log
# ==========================================================

def test_activity_requires_token(client, db):
    assert client.get("/v1/activity/").status_code == 401


def test_admin_writes_are_logged_newest_first(client, cohort, admin_headers):
    student = client.get("/v1/students/210003C").json()["data"]
    modules = client.get("/v1/modules/").json()["data"]
    cs1030 = next(m for m in modules if m["code"] == "CS1030")

    grade = client.post("/v1/grades/", headers=admin_headers,
                        json={"student_id": student["id"], "module_id": cs1030["id"], "grade": "B"}).json()["data"]
    client.delete(f"/v1/grades/{grade['id']}", headers=admin_headers)

    resp = client.get("/v1/activity/", headers=admin_headers)
    assert resp.status_code == 200
    logs = resp.json()["data"]
    assert [entry["action"] for entry in logs] == ["GRADE_DELETED", "GRADE_SAVED"]
    assert logs[0]["details"]["grade"] == "B"
    assert logs[0]["success"] is True


def test_activity_filter_and_limit(client, db, admin_headers):
    payload = {
        "batch": "Batch 23", "degree": "Physics", "year": "Year 1", "semester": "Semester 1",
        "module_code": "PH1010", "module_name": "Mechanics",
        "records": [{"index_number": "230001A", "grade": "A"}],
    }
    client.post("/v1/ingest/module-results", json=payload, headers=admin_headers)
    client.post("/v1/structure/degree", json={"batch": "Batch 23", "degree_name": "Chemistry"},
                headers=admin_headers)

    ingested = client.get("/v1/activity/", params={"action": "results_ingested"},
                          headers=admin_headers).json()["data"]
    assert len(ingested) == 1
    assert ingested[0]["details"]["module_code"] == "PH1010"
    assert ingested[0]["details"]["grades_created"] == 1

    latest = client.get("/v1/activity/", params={"limit": 1}, headers=admin_headers).json()
    assert latest["count"] == 1
    assert latest["data"][0]["action"] == "DEGREE_CREATED"

    assert client.get("/v1/activity/", params={"limit": 0}, headers=admin_headers).status_code == 422


def test_rejected_write_is_not_logged(client, db, admin_headers):
    client.post("/v1/grades/", headers=admin_headers, json={"student_id": 999, "module_id": 1, "grade": "A"})
    assert client.get("/v1/activity/", headers=admin_headers).json()["data"] == []
