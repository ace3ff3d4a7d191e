from datetime import date, timedelta


def _duty(client, headers, prefect_ids, title="Gate A", **extra):
    body = {"title": title, "dutyDate": date.today().isoformat(), "prefectIds": prefect_ids}
    body.update(extra)
    return client.post("/api/duties", json=body, headers=headers)


def test_create_duty_validation(client, admin, prefect):
    missing_title = client.post(
        "/api/duties", json={"dutyDate": date.today().isoformat(), "prefectIds": [prefect[0]]}, headers=admin[1]
    )
    assert missing_title.status_code == 400
    assert missing_title.json()["detail"] == "Duty title is required"

    blank_title = _duty(client, admin[1], [prefect[0]], title="   ")
    assert blank_title.json()["detail"] == "Duty title cannot be empty"

    no_date = client.post("/api/duties", json={"title": "Gate", "prefectIds": [prefect[0]]}, headers=admin[1])
    assert no_date.json()["detail"] == "Duty date is required"

    no_prefects = _duty(client, admin[1], [])
    assert no_prefects.status_code == 400
    assert no_prefects.json()["detail"] == "At least one prefect is required"


def test_only_admin_creates_duties(client, faculty, prefect):
    assert _duty(client, faculty[1], [prefect[0]]).status_code == 403
    assert _duty(client, prefect[1], [prefect[0]]).status_code == 403


def test_created_duty_appears_with_names(client, admin, prefect):
    response = _duty(client, admin[1], [prefect[0]], location="  ", startTime="07:30:00")
    assert response.status_code == 201
    duty = response.json()
    assert duty["status"] == "assigned"
    assert duty["prefectIds"] == [prefect[0]]
    assert duty["prefectNames"][0].startswith("Paula ")
    assert duty["location"] is None
    assert duty["startTime"] == "07:30:00"

    listed = client.get("/api/duties", headers=admin[1]).json()
    assert [d["id"] for d in listed] == [duty["id"]]


def test_shared_duty_visible_to_each_prefect(client, admin, make_user):
    p1, h1 = make_user("prefect", first_name="One")
    p2, h2 = make_user("prefect", first_name="Two")
    p3, h3 = make_user("prefect", first_name="Three")
    shared = _duty(client, admin[1], [p1, p2], title="Assembly").json()
    solo = _duty(client, admin[1], [p3], title="Library").json()
    assert shared["prefectIds"] == [p1, p2]

    assert [d["id"] for d in client.get("/api/duties", headers=h1).json()] == [shared["id"]]
    assert [d["id"] for d in client.get("/api/duties", headers=h2).json()] == [shared["id"]]
    assert [d["id"] for d in client.get("/api/duties", headers=h3).json()] == [solo["id"]]

    assert client.get(f"/api/duties/{shared['id']}", headers=h2).status_code == 200
    assert client.get(f"/api/duties/{shared['id']}", headers=h3).status_code == 404


def test_prefect_cannot_widen_duty_listing(client, admin, make_user):
    p1, h1 = make_user("prefect")
    p2, _ = make_user("prefect")
    _duty(client, admin[1], [p2])
    assert client.get("/api/duties", params={"prefectId": p2}, headers=h1).json() == []


def test_update_status_and_filters(client, admin, prefect):
    duty = _duty(client, admin[1], [prefect[0]]).json()
    _duty(client, admin[1], [prefect[0]], title="Later", dutyDate=(date.today() + timedelta(days=3)).isoformat())

    done = client.patch(f"/api/duties/{duty['id']}/status", json={"status": "completed"}, headers=admin[1])
    assert done.status_code == 200
    assert done.json()["status"] == "completed"

    bad = client.patch(f"/api/duties/{duty['id']}/status", json={"status": "lost"}, headers=admin[1])
    assert bad.status_code == 400
    assert bad.json()["detail"].startswith("Invalid status: lost")

    completed = client.get("/api/duties", params={"status": "completed"}, headers=admin[1]).json()
    assert [d["id"] for d in completed] == [duty["id"]]

    stats = client.get("/api/duties/stats", headers=admin[1]).json()
    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["assigned"] == 1

    searched = client.get("/api/duties", params={"search": "later"}, headers=admin[1]).json()
    assert [d["title"] for d in searched] == ["Later"]


def test_update_reassigns_prefects(client, admin, make_user):
    p1, h1 = make_user("prefect")
    p2, h2 = make_user("prefect")
    duty = _duty(client, admin[1], [p1]).json()

    response = client.put(f"/api/duties/{duty['id']}", json={"prefectIds": [p1, p2]}, headers=admin[1])
    assert response.json()["prefectIds"] == [p1, p2]
    assert len(client.get("/api/duties", headers=h2).json()) == 1

    blank = client.put(f"/api/duties/{duty['id']}", json={"title": " "}, headers=admin[1])
    assert blank.status_code == 400


def test_delete_duty(client, admin, prefect):
    duty = _duty(client, admin[1], [prefect[0]]).json()
    assert client.delete(f"/api/duties/{duty['id']}", headers=admin[1]).status_code == 204
    assert client.get(f"/api/duties/{duty['id']}", headers=admin[1]).status_code == 404
    assert client.delete(f"/api/duties/{duty['id']}", headers=admin[1]).status_code == 404


def test_duty_mutations_are_audited(client, admin, prefect):
    duty = _duty(client, admin[1], [prefect[0]]).json()
    logs = client.get("/api/audit-logs", params={"resourceType": "duty"}, headers=admin[1]).json()
    assert logs["data"][0]["action"] == "duty_create"
    assert logs["data"][0]["resourceId"] == duty["id"]
    assert client.get("/api/audit-logs", headers=prefect[1]).status_code == 403


def test_blank_prefect_id_is_rejected(client, admin, prefect):
    response = _duty(client, admin[1], [prefect[0], " "])
    assert response.status_code == 400
    assert response.json()["detail"] == "Prefect ids cannot be blank"
    assert client.get("/api/duties", headers=admin[1]).json() == []
