import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000000"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "prefect_management_test.log")
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

import config
from app import app
from database.models import AppRole
from services.auth_service import AuthService

PASSWORD = "Secret#123"


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def clean_db(client):
    config.db.drop_tables()
    config.db.create_tables()
    yield


@pytest.fixture
def make_user(client):
    """Create a user with the given roles directly in the database; returns (user_id, auth headers)."""
    counter = {"n": 0}

    def _make(*roles, email=None, first_name="Test", last_name=None, student_id=None):
        counter["n"] += 1
        role_list = [AppRole(r) for r in roles] or [AppRole.STUDENT]
        email = email or f"{role_list[0].value}{counter['n']}@school.org"
        with config.db.get_session() as db:
            user = AuthService.create_user(
                db,
                email=email,
                password=PASSWORD,
                first_name=first_name,
                last_name=last_name or f"User{counter['n']}",
                student_id=student_id,
                roles=role_list,
            )
            access_token, _ = AuthService.create_tokens(user)
            user_id = user.id
        return user_id, {"Authorization": f"Bearer {access_token}"}

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", first_name="Ada")


@pytest.fixture
def faculty(make_user):
    return make_user("faculty", first_name="Felix")


@pytest.fixture
def prefect(make_user):
    return make_user("prefect", "student", first_name="Paula")


@pytest.fixture
def student(make_user):
    return make_user("student", first_name="Sam")
