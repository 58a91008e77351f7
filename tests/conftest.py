# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from store_ratings_api.app.core.config import Settings
from store_ratings_api.app.core.db import Database
from store_ratings_api.app.main import create_app

from helpers import (
    ADMIN_EMAIL,
    ADMIN_NAME,
    ADMIN_PASSWORD,
    STORE_ADDRESS,
    STORE_NAME,
    bearer,
    login,
    seed_store,
    seed_user,
    signup,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ---------------------------------------------------------------------------
# Service level: a migrated database handle and a few seeded rows
# ---------------------------------------------------------------------------

@pytest.fixture()
def db(tmp_path):
    database = Database(str(tmp_path / "service.db"))
    database.open()
    yield database
    database.close()


@pytest.fixture()
def owner_id(db):
    return seed_user(db, "Oliver Benjamin Storekeeper", "owner@example.com", "OWNER")


@pytest.fixture()
def user_id(db):
    return seed_user(db, "Ursula Normal Rating Customer", "user@example.com", "USER")


@pytest.fixture()
def store_id(db, owner_id):
    return seed_store(db, owner_id)


# ---------------------------------------------------------------------------
# HTTP level: app on a temporary database with a bootstrap administrator
# ---------------------------------------------------------------------------

@pytest.fixture()
def app(tmp_path):
    return create_app(
        Settings(
            database_url=str(tmp_path / "api.db"),
            admin_name=ADMIN_NAME,
            admin_email=ADMIN_EMAIL,
            admin_password=ADMIN_PASSWORD,
            cors_origins="*",
        )
    )


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers(client):
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["token"])


@pytest.fixture()
def accounts(client, admin_headers):
    """An owner, two normal users and their auth headers."""
    owner = signup(client, admin_headers, "Oliver Benjamin Storekeeper", "owner@example.com", "OWNER")
    user = signup(client, admin_headers, "Ursula Normal Rating Customer", "user@example.com", "USER")
    other = signup(client, admin_headers, "Victor Second Rating Customer", "other@example.com", "USER")
    return {
        "owner": owner,
        "user": user,
        "other": other,
        "owner_headers": bearer(login(client, "owner@example.com")["token"]),
        "user_headers": bearer(login(client, "user@example.com")["token"]),
        "other_headers": bearer(login(client, "other@example.com")["token"]),
    }


@pytest.fixture()
def store(client, admin_headers, accounts):
    resp = client.post(
        "/stores",
        json={"name": STORE_NAME, "address": STORE_ADDRESS, "ownerId": accounts["owner"]["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
