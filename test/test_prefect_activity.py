from datetime import date, timedelta

TODAY = date.today().isoformat()


# ==================== Gate logs ====================

def test_prefect_logs_gate_duty_for_self(client, admin, prefect, make_user):
    other, _ = make_user("prefect")
    response = client.post(
        "/api/gate-logs",
        json={"prefectId": other, "logDate": TODAY, "timeIn": "06:45:00"},
        headers=prefect[1],
    )
    assert response.status_code == 201
    assert response.json()["prefectId"] == prefect[0]
    assert response.json()["timeOut"] is None

    by_admin = client.post(
        "/api/gate-logs",
        json={"prefectId": other, "logDate": TODAY, "timeIn": "07:00:00", "timeOut": "08:00:00"},
        headers=admin[1],
    )
    assert by_admin.json()["prefectId"] == other

    mine = client.get("/api/gate-logs", headers=prefect[1]).json()
    assert [log["prefectId"] for log in mine] == [prefect[0]]
    assert len(client.get("/api/gate-logs", headers=admin[1]).json()) == 2

    stats = client.get("/api/gate-logs/stats", headers=admin[1]).json()
    assert stats == {"total": 2, "today": 2, "open": 1}


def test_gate_log_validation(client, prefect):
    missing = client.post("/api/gate-logs", json={"logDate": TODAY}, headers=prefect[1])
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Time in is required"

    backwards = client.post(
        "/api/gate-logs",
        json={"logDate": TODAY, "timeIn": "09:00:00", "timeOut": "08:00:00"},
        headers=prefect[1],
    )
    assert backwards.json()["detail"] == "Time out cannot be before time in"


def test_gate_log_edit_is_admin_only(client, admin, prefect, student):
    log = client.post(
        "/api/gate-logs", json={"logDate": TODAY, "timeIn": "06:45:00"}, headers=prefect[1]
    ).json()
    assert client.put(f"/api/gate-logs/{log['id']}", json={"notes": "x"}, headers=prefect[1]).status_code == 403
    assert client.get("/api/gate-logs", headers=student[1]).status_code == 403

    updated = client.put(f"/api/gate-logs/{log['id']}", json={"timeOut": "07:15:00"}, headers=admin[1])
    assert updated.json()["timeOut"] == "07:15:00"
    assert client.delete(f"/api/gate-logs/{log['id']}", headers=admin[1]).status_code == 204


# ==================== Events ====================

def test_events_readable_by_everyone_written_by_admin(client, admin, student):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    last_week = (date.today() - timedelta(days=7)).isoformat()
    assert client.post("/api/events", json={"title": "Fair", "eventDate": tomorrow}, headers=student[1]).status_code == 403

    upcoming = client.post("/api/events", json={"title": "Fair", "eventDate": tomorrow}, headers=admin[1]).json()
    client.post("/api/events", json={"title": "Assembly", "eventDate": last_week}, headers=admin[1])

    assert len(client.get("/api/events", headers=student[1]).json()) == 2
    only_upcoming = client.get("/api/events", params={"upcoming": True}, headers=student[1]).json()
    assert [e["id"] for e in only_upcoming] == [upcoming["id"]]
    assert client.get("/api/events/stats", headers=student[1]).json() == {"total": 2, "upcoming": 1, "past": 1}


def test_event_validation(client, admin):
    no_title = client.post("/api/events", json={"eventDate": TODAY}, headers=admin[1])
    assert no_title.json()["detail"] == "Event title is required"
    no_date = client.post("/api/events", json={"title": "Fair"}, headers=admin[1])
    assert no_date.json()["detail"] == "Event date is required"


# ==================== Evaluations ====================

def test_evaluation_rating_bounds(client, faculty, prefect):
    for rating in (0, 6):
        response = client.post(
            "/api/evaluations", json={"prefectId": prefect[0], "rating": rating}, headers=faculty[1]
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Rating must be between 1 and 5"


def test_evaluation_visibility_and_ownership(client, admin, faculty, make_user):
    p1, h1 = make_user("prefect")
    p2, h2 = make_user("prefect")
    other_faculty = make_user("faculty")

    created = client.post(
        "/api/evaluations", json={"prefectId": p1, "rating": 4, "comments": "Punctual"}, headers=faculty[1]
    )
    assert created.status_code == 201
    evaluation = created.json()
    assert evaluation["evaluatorId"] == faculty[0]
    client.post("/api/evaluations", json={"prefectId": p2, "rating": 2}, headers=admin[1])

    assert client.post("/api/evaluations", json={"prefectId": p2, "rating": 3}, headers=h1).status_code == 403

    assert [e["id"] for e in client.get("/api/evaluations", headers=h1).json()] == [evaluation["id"]]
    assert [e["id"] for e in client.get("/api/evaluations", headers=faculty[1]).json()] == [evaluation["id"]]
    assert len(client.get("/api/evaluations", headers=admin[1]).json()) == 2
    assert client.get(f"/api/evaluations/{evaluation['id']}", headers=h2).status_code == 404

    stolen = client.put(f"/api/evaluations/{evaluation['id']}", json={"rating": 1}, headers=other_faculty[1])
    assert stolen.status_code == 404

    by_admin = client.put(f"/api/evaluations/{evaluation['id']}", json={"rating": 5}, headers=admin[1])
    assert by_admin.json()["rating"] == 5

    stats = client.get("/api/evaluations/stats", headers=admin[1]).json()
    assert stats["total"] == 2
    assert stats["averageRating"] == 3.5
    assert stats["excellent"] == 1
    assert stats["poor"] == 1


# ==================== Weekly reports ====================

def test_weekly_report_dates_must_be_ordered(client, prefect):
    start = date.today()
    response = client.post(
        "/api/weekly-reports",
        json={"weekStart": start.isoformat(), "weekEnd": start.isoformat(), "summary": "Quiet week"},
        headers=prefect[1],
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Week start date must be before week end date"

    missing = client.post(
        "/api/weekly-reports", json={"weekStart": start.isoformat(), "summary": "x"}, headers=prefect[1]
    )
    assert missing.json()["detail"] == "Week end date is required"


def test_weekly_reports_are_private_to_their_prefect(client, faculty, make_user):
    p1, h1 = make_user("prefect")
    p2, h2 = make_user("prefect")
    start = date.today() - timedelta(days=6)
    report = client.post(
        "/api/weekly-reports",
        json={"weekStart": start.isoformat(), "weekEnd": TODAY, "summary": "Handled gate", "challenges": " "},
        headers=h1,
    ).json()
    assert report["prefectId"] == p1
    assert report["challenges"] is None

    assert client.get("/api/weekly-reports", headers=h2).json() == []
    assert len(client.get("/api/weekly-reports", headers=faculty[1]).json()) == 1
    assert client.put(f"/api/weekly-reports/{report['id']}", json={"summary": "x"}, headers=h2).status_code == 404

    edited = client.put(f"/api/weekly-reports/{report['id']}", json={"summary": "Handled both gates"}, headers=h1)
    assert edited.json()["summary"] == "Handled both gates"


# ==================== Attendance ====================

def test_clock_in_and_out(client, prefect):
    clocked_in = client.post("/api/attendance/clock-in", headers=prefect[1])
    assert clocked_in.status_code == 201
    record = clocked_in.json()
    assert record["status"] == "present"
    assert record["timeIn"] is not None

    again = client.post("/api/attendance/clock-in", headers=prefect[1])
    assert again.status_code == 400
    assert again.json()["detail"] == "Attendance record already exists for this date"

    out = client.post("/api/attendance/clock-out", headers=prefect[1])
    assert out.status_code == 200
    assert out.json()["timeOut"] is not None

    twice = client.post("/api/attendance/clock-out", headers=prefect[1])
    assert twice.json()["detail"] == "Time out already logged for today"


def test_clock_out_without_record(client, prefect):
    response = client.post("/api/attendance/clock-out", headers=prefect[1])
    assert response.status_code == 400
    assert response.json()["detail"] == "No attendance record for today"


def test_attendance_records_and_stats(client, admin, prefect):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    late = client.post(
        "/api/attendance",
        json={"prefectId": prefect[0], "date": yesterday, "status": "late", "timeIn": "07:40:00"},
        headers=admin[1],
    )
    assert late.status_code == 201
    assert late.json()["prefectId"] == prefect[0]

    bad = client.post("/api/attendance", json={"date": TODAY, "status": "asleep"}, headers=prefect[1])
    assert bad.status_code == 400

    client.post("/api/attendance", json={"date": TODAY}, headers=prefect[1])
    stats = client.get("/api/attendance/stats", headers=prefect[1]).json()
    assert stats == {"total": 2, "present": 1, "absent": 0, "late": 1}

    record_id = late.json()["id"]
    assert client.put(f"/api/attendance/{record_id}", json={"status": "absent"}, headers=prefect[1]).status_code == 403
    fixed = client.put(f"/api/attendance/{record_id}", json={"status": "absent"}, headers=admin[1])
    assert fixed.json()["status"] == "absent"
