import pytest


@pytest.fixture
def year(client, admin):
    response = client.post(
        "/api/academic-years",
        json={"yearStart": 2025, "yearEnd": 2026, "semester": "First", "isCurrent": True},
        headers=admin[1],
    )
    assert response.status_code == 201
    return response.json()


def _apply(client, headers, year_id, statement="I want to help keep order", **extra):
    body = {"academicYearId": year_id, "statement": statement}
    body.update(extra)
    return client.post("/api/applications", json=body, headers=headers)


# ==================== Academic years ====================

def test_academic_year_label_and_current(client, admin, student, year):
    assert year["label"] == "2025-2026 First"
    assert year["isCurrent"] is True
    assert client.get("/api/academic-years/current", headers=student[1]).json()["id"] == year["id"]

    second = client.post(
        "/api/academic-years",
        json={"yearStart": 2025, "yearEnd": 2026, "semester": "Second"},
        headers=admin[1],
    ).json()
    assert second["isCurrent"] is False

    switched = client.post(f"/api/academic-years/{second['id']}/set-current", headers=admin[1])
    assert switched.json()["isCurrent"] is True
    years = {y["id"]: y["isCurrent"] for y in client.get("/api/academic-years", headers=student[1]).json()}
    assert years == {year["id"]: False, second["id"]: True}


def test_academic_year_validation(client, admin, year):
    backwards = client.post(
        "/api/academic-years", json={"yearStart": 2027, "yearEnd": 2026, "semester": "First"}, headers=admin[1]
    )
    assert backwards.status_code == 400
    assert backwards.json()["detail"] == "Start year must not be after end year"

    duplicate = client.post(
        "/api/academic-years", json={"yearStart": 2025, "yearEnd": 2026, "semester": "First"}, headers=admin[1]
    )
    assert duplicate.json()["detail"] == "This academic year and semester already exists"


def test_no_current_year(client, student):
    response = client.get("/api/academic-years/current", headers=student[1])
    assert response.status_code == 404
    assert response.json()["detail"] == "No current academic year set"


def test_academic_years_written_by_admin_only(client, faculty):
    response = client.post(
        "/api/academic-years", json={"yearStart": 2025, "yearEnd": 2026, "semester": "First"}, headers=faculty[1]
    )
    assert response.status_code == 403


# ==================== Applications ====================

def test_submit_application_validation(client, student, year):
    no_statement = client.post("/api/applications", json={"academicYearId": year["id"]}, headers=student[1])
    assert no_statement.status_code == 400
    assert no_statement.json()["detail"] == "Personal statement is required"

    unknown_year = _apply(client, student[1], "missing-year")
    assert unknown_year.json()["detail"] == "Academic year not found"

    bad_gpa = _apply(client, student[1], year["id"], gpa=5.5)
    assert bad_gpa.json()["detail"] == "GPA must be between 0 and 5"


def test_one_application_per_academic_year(client, student, year):
    first = _apply(client, student[1], year["id"], gpa=3.8)
    assert first.status_code == 201
    assert first.json()["status"] == "pending"
    assert first.json()["gpa"] == 3.8

    second = _apply(client, student[1], year["id"])
    assert second.status_code == 400
    assert second.json()["detail"] == "You have already submitted an application for this academic year"


def test_only_applicant_edits_pending_application(client, admin, student, make_user, year):
    application = _apply(client, student[1], year["id"]).json()
    url = f"/api/applications/{application['id']}"
    other = make_user("student")

    assert client.put(url, json={"statement": "Mine now"}, headers=other[1]).status_code == 404
    assert client.put(url, json={"statement": "Edited"}, headers=admin[1]).status_code == 403
    edited = client.put(url, json={"statement": "Edited"}, headers=student[1])
    assert edited.json()["statement"] == "Edited"

    client.post(f"{url}/review", json={"status": "under_review"}, headers=admin[1])
    locked = client.put(url, json={"statement": "Too late"}, headers=student[1])
    assert locked.status_code == 400
    assert locked.json()["detail"] == "Only pending applications can be edited"


def test_approval_grants_prefect_role(client, admin, student, year):
    user_id, headers = student
    application = _apply(client, headers, year["id"]).json()
    assert client.get("/api/duties", headers=headers).status_code == 403

    reviewed = client.post(
        f"/api/applications/{application['id']}/review",
        json={"status": "approved", "reviewNotes": "Strong record"},
        headers=admin[1],
    )
    assert reviewed.status_code == 200
    body = reviewed.json()
    assert body["status"] == "approved"
    assert body["reviewedBy"] == admin[0]
    assert body["reviewNotes"] == "Strong record"
    assert body["reviewedAt"] is not None

    me = client.get("/api/auth/me", headers=headers).json()
    assert "prefect" in me["roles"]
    assert client.get("/api/duties", headers=headers).status_code == 200


def test_rejection_keeps_roles(client, admin, student, year):
    application = _apply(client, student[1], year["id"]).json()
    client.post(f"/api/applications/{application['id']}/review", json={"status": "rejected"}, headers=admin[1])
    assert client.get("/api/auth/me", headers=student[1]).json()["roles"] == ["student"]


def test_review_cannot_reset_to_pending(client, admin, student, year):
    application = _apply(client, student[1], year["id"]).json()
    response = client.post(
        f"/api/applications/{application['id']}/review", json={"status": "pending"}, headers=admin[1]
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Review status must be under_review, approved or rejected"


def test_application_visibility(client, faculty, make_user, year):
    s1, h1 = make_user("student")
    s2, h2 = make_user("student")
    mine = _apply(client, h1, year["id"]).json()
    _apply(client, h2, year["id"])

    assert [a["id"] for a in client.get("/api/applications", headers=h1).json()] == [mine["id"]]
    assert client.get(f"/api/applications/{mine['id']}", headers=h2).status_code == 404
    assert len(client.get("/api/applications", headers=faculty[1]).json()) == 2
    assert client.get("/api/applications/stats", headers=faculty[1]).json()["pending"] == 2
    assert client.post(
        f"/api/applications/{mine['id']}/review", json={"status": "approved"}, headers=faculty[1]
    ).status_code == 403
