import pytest


@pytest.fixture
def category(client, admin):
    response = client.post("/api/training/categories", json={"name": "Gate duty"}, headers=admin[1])
    assert response.status_code == 201
    return response.json()


def _material(client, headers, category_id, title="Opening the gate", **extra):
    body = {"title": title, "categoryId": category_id, "content": "Arrive at 6:30"}
    body.update(extra)
    return client.post("/api/training/materials", json=body, headers=headers)


# ==================== Training ====================

def test_category_names_are_unique(client, admin, category):
    duplicate = client.post("/api/training/categories", json={"name": "gate duty"}, headers=admin[1])
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "A category with this name already exists"

    blank = client.post("/api/training/categories", json={"name": "  "}, headers=admin[1])
    assert blank.json()["detail"] == "Category name cannot be empty"


def test_material_validation(client, admin, category):
    no_category = client.post("/api/training/materials", json={"title": "Intro"}, headers=admin[1])
    assert no_category.status_code == 400
    assert no_category.json()["detail"] == "Category is required"

    unknown = _material(client, admin[1], "missing")
    assert unknown.json()["detail"] == "Category not found"


def test_drafts_are_hidden_until_published(client, admin, prefect, category):
    draft = _material(client, admin[1], category["id"]).json()
    assert draft["isPublished"] is False
    assert draft["categoryName"] == "Gate duty"

    assert client.get("/api/training/materials", headers=prefect[1]).json() == []
    assert client.get(f"/api/training/materials/{draft['id']}", headers=prefect[1]).status_code == 404
    drafts = client.get("/api/training/materials", params={"includeDrafts": True}, headers=admin[1]).json()
    assert [m["id"] for m in drafts] == [draft["id"]]

    ignored = client.get("/api/training/materials", params={"includeDrafts": True}, headers=prefect[1]).json()
    assert ignored == []

    published = client.post(f"/api/training/materials/{draft['id']}/publish", headers=admin[1])
    assert published.json()["isPublished"] is True
    assert [m["id"] for m in client.get("/api/training/materials", headers=prefect[1]).json()] == [draft["id"]]

    client.post(f"/api/training/materials/{draft['id']}/unpublish", headers=admin[1])
    assert client.get("/api/training/materials", headers=prefect[1]).json() == []


def test_training_stats_and_permissions(client, admin, faculty, category):
    _material(client, admin[1], category["id"], isPublished=True)
    _material(client, admin[1], category["id"], title="Closing the gate")
    assert _material(client, faculty[1], category["id"]).status_code == 403
    assert client.get("/api/training/stats", headers=faculty[1]).status_code == 403

    stats = client.get("/api/training/stats", headers=admin[1]).json()
    assert stats == {"total": 2, "published": 1, "draft": 1, "categories": 1}


def test_deleting_category_removes_materials(client, admin, category):
    material = _material(client, admin[1], category["id"], isPublished=True).json()
    assert client.delete(f"/api/training/categories/{category['id']}", headers=admin[1]).status_code == 204
    assert client.get(f"/api/training/materials/{material['id']}", headers=admin[1]).status_code == 404


# ==================== Departments ====================

def test_departments(client, admin, student):
    created = client.post(
        "/api/departments", json={"name": "Science", "code": "sci", "description": " "}, headers=admin[1]
    )
    assert created.status_code == 201
    department = created.json()
    assert department["code"] == "SCI"
    assert department["description"] is None

    duplicate = client.post("/api/departments", json={"name": "Physics", "code": "SCI"}, headers=admin[1])
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "A department with this code already exists"

    assert client.post("/api/departments", json={"name": "Arts", "code": "ART"}, headers=student[1]).status_code == 403
    assert [d["name"] for d in client.get("/api/departments", headers=student[1]).json()] == ["Science"]

    renamed = client.put(f"/api/departments/{department['id']}", json={"name": "Sciences"}, headers=admin[1])
    assert renamed.json()["name"] == "Sciences"
    assert client.delete(f"/api/departments/{department['id']}", headers=admin[1]).status_code == 204
