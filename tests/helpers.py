"""Shared helpers for the test suite."""

from store_ratings_api.app.core.security import hash_password


ADMIN_NAME = "Platform Administrator Account"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin#Pass1"

DEFAULT_PASSWORD = "Secret#Pass1"

STORE_NAME = "Downtown Fresh Grocery Market"
STORE_ADDRESS = "42 Market Street, Springfield"


def seed_user(db, name, email, role, password=DEFAULT_PASSWORD):
    """Insert a user directly, bypassing the service layer."""
    with db.session() as conn:
        cursor = conn.execute(
            "INSERT INTO users (name, email, password, role) VALUES (?, ?, ?, ?)",
            (name, email, hash_password(password), role),
        )
        return cursor.lastrowid


def seed_store(db, owner_id, name="Corner Street Grocery Shop", address="1 Main Street"):
    with db.session() as conn:
        cursor = conn.execute(
            "INSERT INTO stores (name, address, owner_id) VALUES (?, ?, ?)",
            (name, address, owner_id),
        )
        return cursor.lastrowid


def count_rows(db, sql, params=()):
    with db.session() as conn:
        return conn.execute(sql, params).fetchone()[0]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def login(client, email, password=DEFAULT_PASSWORD):
    resp = client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def signup(client, headers, name, email, role, password=DEFAULT_PASSWORD):
    resp = client.post(
        "/signup",
        json={"name": name, "email": email, "password": password, "role": role},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]
