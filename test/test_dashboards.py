import csv
import io
from datetime import date


def test_dashboard_follows_primary_role(client, admin, faculty, prefect, student):
    assert client.get("/api/dashboard", headers=admin[1]).json()["role"] == "admin"
    assert client.get("/api/dashboard", headers=faculty[1]).json()["role"] == "faculty"
    assert client.get("/api/dashboard", headers=prefect[1]).json()["role"] == "prefect"
    assert client.get("/api/dashboard", headers=student[1]).json()["role"] == "student"


def test_role_dashboards_are_guarded(client, admin, faculty, prefect, student):
    assert client.get("/api/dashboard/admin", headers=faculty[1]).status_code == 403
    assert client.get("/api/dashboard/faculty", headers=prefect[1]).status_code == 403
    assert client.get("/api/dashboard/faculty", headers=admin[1]).status_code == 200
    assert client.get("/api/dashboard/prefect", headers=student[1]).status_code == 403
    assert client.get("/api/dashboard/student", headers=prefect[1]).status_code == 200


def test_admin_dashboard_counts(client, admin, prefect, student):
    client.post("/api/complaints", json={"subject": "Lights", "description": "Out"}, headers=student[1])
    client.post("/api/incidents", json={"title": "Spill", "description": "Lab"}, headers=prefect[1])
    client.post(
        "/api/duties",
        json={"title": "Gate", "dutyDate": date.today().isoformat(), "prefectIds": [prefect[0]]},
        headers=admin[1],
    )

    dashboard = client.get("/api/dashboard/admin", headers=admin[1]).json()
    stats = dashboard["stats"]
    assert stats["totalUsers"] == 3
    assert stats["activePrefects"] == 1
    assert stats["pendingComplaints"] == 1
    assert stats["openIncidents"] == 1
    assert stats["todayDuties"] == 1
    assert [c["subject"] for c in dashboard["recentComplaints"]] == ["Lights"]


def test_prefect_and_student_dashboards_are_personal(client, admin, prefect, student):
    client.post(
        "/api/duties",
        json={"title": "Gate", "dutyDate": date.today().isoformat(), "prefectIds": [prefect[0]]},
        headers=admin[1],
    )
    client.post("/api/complaints", json={"subject": "Mine", "description": "x"}, headers=student[1])

    prefect_stats = client.get("/api/dashboard/prefect", headers=prefect[1]).json()["stats"]
    assert prefect_stats["myDuties"] == 1
    assert prefect_stats["gateLogs"] == 0

    student_stats = client.get("/api/dashboard/student", headers=student[1]).json()["stats"]
    assert student_stats["myComplaints"] == 1
    assert client.get("/api/dashboard/student", headers=prefect[1]).json()["stats"]["myComplaints"] == 0


# ==================== Analytics ====================

def test_analytics_are_staff_only(client, faculty, prefect):
    assert client.get("/api/analytics/system", headers=prefect[1]).status_code == 403
    system = client.get("/api/analytics/system", headers=faculty[1]).json()
    assert system["users"]["total"] == 2
    assert system["complaints"]["total"] == 0


def test_top_performers_and_activity(client, admin, faculty, make_user):
    p1, _ = make_user("prefect", first_name="Alice")
    p2, _ = make_user("prefect", first_name="Bob")
    for prefect_id, rating in ((p1, 5), (p1, 4), (p2, 3)):
        client.post("/api/evaluations", json={"prefectId": prefect_id, "rating": rating}, headers=faculty[1])

    top = client.get("/api/analytics/top-performers", params={"limit": 1}, headers=admin[1]).json()
    assert len(top) == 1
    assert top[0]["prefectId"] == p1
    assert top[0]["averageRating"] == 4.5
    assert top[0]["evaluations"] == 2

    too_many = client.get("/api/analytics/top-performers", params={"limit": 500}, headers=admin[1])
    assert too_many.status_code == 422

    activity = {row["prefectId"]: row for row in client.get("/api/analytics/prefect-activity", headers=admin[1]).json()}
    assert activity[p2]["averageRating"] == 3.0
    assert activity[p1]["duties"] == 0


def test_critical_issues(client, admin, student):
    client.post("/api/incidents", json={"title": "Fire", "description": "Bin", "severity": "critical"}, headers=student[1])
    client.post("/api/incidents", json={"title": "Scuff", "description": "Wall"}, headers=student[1])

    issues = client.get("/api/analytics/critical-issues", headers=admin[1]).json()
    assert [i["title"] for i in issues["incidents"]] == ["Fire"]
    assert issues["pendingComplaints"] == []


# ==================== Audit log ====================

def test_audit_log_export(client, admin, student):
    client.post("/api/complaints", json={"subject": "Lights", "description": "Out"}, headers=student[1])
    response = client.get("/api/audit-logs/export", headers=admin[1])
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:4] == ["id", "timestamp", "userId", "action"]
    assert "complaint_create" in [row[3] for row in rows[1:]]


def test_audit_log_total_counts_all_matching_rows(client, admin):
    for title in ("Fair", "Assembly", "Sports day"):
        client.post("/api/events", json={"title": title, "eventDate": date.today().isoformat()}, headers=admin[1])

    page = client.get(
        "/api/audit-logs", params={"resourceType": "event", "limit": 1}, headers=admin[1]
    ).json()
    assert len(page["data"]) == 1
    assert page["total"] == 3

    none = client.get("/api/audit-logs", params={"action": "event_delete"}, headers=admin[1]).json()
    assert none == {"data": [], "total": 0}
