def _complaint(client, headers, subject="Broken fountain"):
    return client.post(
        "/api/complaints", json={"subject": subject, "description": "Near the gym"}, headers=headers
    )


def _incident(client, headers, title="Fight at canteen", **extra):
    body = {"title": title, "description": "Two students argued"}
    body.update(extra)
    return client.post("/api/incidents", json=body, headers=headers)


# ==================== Complaints ====================

def test_anyone_files_a_pending_complaint(client, student):
    response = _complaint(client, student[1])
    assert response.status_code == 201
    complaint = response.json()
    assert complaint["status"] == "pending"
    assert complaint["submittedBy"] == student[0]
    assert complaint["resolvedAt"] is None

    missing = client.post("/api/complaints", json={"subject": "x"}, headers=student[1])
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Description is required"


def test_complaints_visible_to_submitter_assignee_and_staff(client, admin, faculty, make_user):
    s1, h1 = make_user("student")
    s2, h2 = make_user("student")
    p1, hp = make_user("prefect")
    mine = _complaint(client, h1, "Leaking roof").json()
    _complaint(client, h2, "Noisy hall")

    assert [c["id"] for c in client.get("/api/complaints", headers=h1).json()] == [mine["id"]]
    assert len(client.get("/api/complaints", headers=faculty[1]).json()) == 2
    assert client.get(f"/api/complaints/{mine['id']}", headers=h2).status_code == 404
    assert client.get(f"/api/complaints/{mine['id']}", headers=hp).status_code == 404

    assigned = client.put(f"/api/complaints/{mine['id']}", json={"assignedTo": p1}, headers=admin[1])
    assert assigned.json()["assignedTo"] == p1
    assert client.get(f"/api/complaints/{mine['id']}", headers=hp).status_code == 200
    assert client.get("/api/complaints/stats", headers=hp).json()["total"] == 1


def test_complaint_status_changes_are_admin_only(client, admin, faculty, student):
    complaint = _complaint(client, student[1]).json()
    url = f"/api/complaints/{complaint['id']}"
    assert client.put(url, json={"status": "resolved"}, headers=faculty[1]).status_code == 403
    assert client.put(url, json={"status": "resolved"}, headers=student[1]).status_code == 403

    resolved = client.put(url, json={"status": "resolved"}, headers=admin[1]).json()
    assert resolved["status"] == "resolved"
    assert resolved["resolvedAt"] is not None

    reopened = client.put(url, json={"status": "in_progress"}, headers=admin[1]).json()
    assert reopened["resolvedAt"] is None

    stats = client.get("/api/complaints/stats", headers=admin[1]).json()
    assert stats == {"total": 1, "pending": 0, "inProgress": 1, "resolved": 0, "dismissed": 0}

    bad = client.put(url, json={"status": "ignored"}, headers=admin[1])
    assert bad.status_code == 400


def test_assigning_unknown_user_fails(client, admin, student):
    complaint = _complaint(client, student[1]).json()
    response = client.put(
        f"/api/complaints/{complaint['id']}", json={"assignedTo": "nobody"}, headers=admin[1]
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Assigned user not found"


def test_filter_complaints_by_status(client, admin, student):
    first = _complaint(client, student[1], "One").json()
    _complaint(client, student[1], "Two")
    client.put(f"/api/complaints/{first['id']}", json={"status": "dismissed"}, headers=admin[1])

    dismissed = client.get("/api/complaints", params={"status": "dismissed"}, headers=admin[1]).json()
    assert [c["subject"] for c in dismissed] == ["One"]
    assert client.delete(f"/api/complaints/{first['id']}", headers=admin[1]).status_code == 204


# ==================== Incidents ====================

def test_report_incident_defaults_to_low(client, student):
    response = _incident(client, student[1], location="  ")
    assert response.status_code == 201
    incident = response.json()
    assert incident["severity"] == "low"
    assert incident["isResolved"] is False
    assert incident["location"] is None
    assert incident["incidentDate"] is not None

    bad = _incident(client, student[1], severity="apocalyptic")
    assert bad.status_code == 400


def test_students_only_see_their_own_incidents(client, faculty, prefect, make_user):
    s1, h1 = make_user("student")
    s2, h2 = make_user("student")
    mine = _incident(client, h1).json()
    _incident(client, h2, title="Graffiti")

    assert [i["id"] for i in client.get("/api/incidents", headers=h1).json()] == [mine["id"]]
    assert client.get(f"/api/incidents/{mine['id']}", headers=h2).status_code == 404
    assert len(client.get("/api/incidents", headers=prefect[1]).json()) == 2
    assert len(client.get("/api/incidents", headers=faculty[1]).json()) == 2


def test_resolve_and_reopen(client, admin, prefect):
    incident = _incident(client, prefect[1], severity="critical").json()
    url = f"/api/incidents/{incident['id']}"
    assert client.post(f"{url}/resolve", headers=prefect[1]).status_code == 403

    stats = client.get("/api/incidents/stats", headers=admin[1]).json()
    assert stats["criticalOpen"] == 1
    assert stats["critical"] == 1

    resolved = client.post(f"{url}/resolve", headers=admin[1]).json()
    assert resolved["isResolved"] is True
    assert resolved["resolvedBy"] == admin[0]
    assert resolved["resolvedAt"] is not None

    stats = client.get("/api/incidents/stats", headers=admin[1]).json()
    assert stats["criticalOpen"] == 0
    assert stats["resolved"] == 1

    open_only = client.get("/api/incidents", params={"resolved": False}, headers=admin[1]).json()
    assert open_only == []

    reopened = client.post(f"{url}/reopen", headers=admin[1]).json()
    assert reopened["isResolved"] is False
    assert reopened["resolvedBy"] is None
    assert reopened["resolvedAt"] is None


def test_incident_filters_and_delete(client, admin, prefect):
    _incident(client, prefect[1], title="Broken window", severity="medium")
    other = _incident(client, prefect[1], title="Lost bag").json()

    medium = client.get("/api/incidents", params={"severity": "medium"}, headers=admin[1]).json()
    assert [i["title"] for i in medium] == ["Broken window"]
    searched = client.get("/api/incidents", params={"search": "bag"}, headers=admin[1]).json()
    assert [i["id"] for i in searched] == [other["id"]]

    assert client.delete(f"/api/incidents/{other['id']}", headers=prefect[1]).status_code == 403
    assert client.delete(f"/api/incidents/{other['id']}", headers=admin[1]).status_code == 204
