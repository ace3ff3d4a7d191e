def test_user_management_is_admin_only(client, faculty, student):
    assert client.get("/api/users", headers=faculty[1]).status_code == 403
    response = client.get("/api/users", headers=student[1])
    assert response.status_code == 403
    assert response.json()["detail"].startswith("Access denied. Required roles:")
    assert client.get("/api/users").status_code == 401


def test_list_users_with_roles_and_filters(client, admin, prefect, student):
    response = client.get("/api/users", headers=admin[1])
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["page"] == 1
    by_id = {u["id"]: u for u in body["data"]}
    assert by_id[prefect[0]]["roles"] == ["prefect", "student"]
    assert by_id[prefect[0]]["primaryRole"] == "prefect"

    only_prefects = client.get("/api/users", params={"role": "prefect"}, headers=admin[1]).json()
    assert [u["id"] for u in only_prefects["data"]] == [prefect[0]]

    by_name = client.get("/api/users", params={"search": "sam"}, headers=admin[1]).json()
    assert [u["id"] for u in by_name["data"]] == [student[0]]

    bad_role = client.get("/api/users", params={"role": "janitor"}, headers=admin[1])
    assert bad_role.status_code == 400


def test_users_pagination(client, admin, make_user):
    for _ in range(3):
        make_user("student")
    page = client.get("/api/users", params={"page": 2, "limit": 3}, headers=admin[1]).json()
    assert page["total"] == 4
    assert page["limit"] == 3
    assert len(page["data"]) == 1

    first = client.get("/api/users", params={"page": 1, "limit": 3}, headers=admin[1]).json()
    assert len(first["data"]) == 3
    seen = {u["id"] for u in first["data"]} | {u["id"] for u in page["data"]}
    assert len(seen) == 4

    students = client.get(
        "/api/users", params={"role": "student", "page": 1, "limit": 2}, headers=admin[1]
    ).json()
    assert students["total"] == 3
    assert len(students["data"]) == 2

    beyond = client.get("/api/users", params={"page": 5, "limit": 3}, headers=admin[1]).json()
    assert beyond["total"] == 4
    assert beyond["data"] == []


def test_assign_role_is_idempotent(client, admin, student):
    user_id = student[0]
    first = client.post(f"/api/users/{user_id}/roles", json={"role": "prefect"}, headers=admin[1])
    assert first.status_code == 200
    assert first.json()["roles"] == ["prefect", "student"]

    again = client.post(f"/api/users/{user_id}/roles", json={"role": "PREFECT"}, headers=admin[1])
    assert again.status_code == 200
    assert again.json()["roles"] == ["prefect", "student"]

    stats = client.get("/api/users/stats", headers=admin[1]).json()
    assert stats["prefect"] == 1
    assert stats["total"] == 2


def test_role_change_applies_to_next_request(client, admin, student):
    user_id, headers = student
    assert client.get("/api/duties", headers=headers).status_code == 403
    client.post(f"/api/users/{user_id}/roles", json={"role": "prefect"}, headers=admin[1])
    assert client.get("/api/duties", headers=headers).status_code == 200


def test_remove_role(client, admin, prefect):
    user_id = prefect[0]
    response = client.delete(f"/api/users/{user_id}/roles/prefect", headers=admin[1])
    assert response.status_code == 200
    assert response.json()["roles"] == ["student"]

    missing = client.delete(f"/api/users/{user_id}/roles/prefect", headers=admin[1])
    assert missing.status_code == 404
    assert missing.json()["detail"] == "User does not have this role"


def test_admin_cannot_drop_own_admin_role(client, admin):
    response = client.delete(f"/api/users/{admin[0]}/roles/admin", headers=admin[1])
    assert response.status_code == 400


def test_deactivated_user_is_rejected(client, admin, student):
    response = client.patch(f"/api/users/{student[0]}/status", json={"isActive": False}, headers=admin[1])
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=student[1]).status_code == 403


def test_admin_creates_user_with_roles(client, admin):
    response = client.post(
        "/api/users",
        json={
            "email": "coach@school.org",
            "password": "Coach#2024",
            "firstName": "Cory",
            "lastName": "Coach",
            "roles": ["faculty"],
        },
        headers=admin[1],
    )
    assert response.status_code == 201
    assert response.json()["primaryRole"] == "faculty"


def test_unknown_user_is_404(client, admin):
    assert client.get("/api/users/does-not-exist", headers=admin[1]).status_code == 404


def test_profile_update_and_prefect_list(client, prefect, student):
    response = client.put(
        "/api/profiles/me",
        json={"phone": "555-0100", "yearLevel": 11, "section": "  "},
        headers=student[1],
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "555-0100"
    assert response.json()["section"] is None

    blank = client.put("/api/profiles/me", json={"firstName": "   "}, headers=student[1])
    assert blank.status_code == 400
    assert blank.json()["detail"] == "First name cannot be empty"

    bad_year = client.put("/api/profiles/me", json={"yearLevel": 13}, headers=student[1])
    assert bad_year.status_code == 400

    prefects = client.get("/api/profiles/prefects", headers=prefect[1]).json()
    assert [p["id"] for p in prefects] == [prefect[0]]
    assert client.get("/api/profiles/prefects", headers=student[1]).status_code == 403
