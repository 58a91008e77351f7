from store_ratings_api.app.core.security import create_access_token

from helpers import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    DEFAULT_PASSWORD,
    STORE_ADDRESS,
    STORE_NAME,
    bearer,
    login,
    signup,
)


NEW_USER = {
    "name": "Natalie Fresh Account Holder",
    "email": "natalie@example.com",
    "password": DEFAULT_PASSWORD,
    "role": "USER",
}


# ---------------------------------------------------------------------------
# Health and error format
# ---------------------------------------------------------------------------

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_unknown_route_uses_error_body(client):
    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert "error" in resp.json()


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_signup_requires_token(client):
    resp = client.post("/signup", json=NEW_USER)
    assert resp.status_code == 401
    assert resp.json() == {"error": "No token provided"}


def test_signup_rejects_invalid_token(client):
    resp = client.post("/signup", json=NEW_USER, headers=bearer("not.a.token"))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Invalid token"}


def test_non_bearer_scheme_is_an_invalid_token(client, admin_headers):
    resp = client.post("/signup", json=NEW_USER, headers={"Authorization": "Basic YWRtaW46c2VjcmV0"})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Invalid token"}


def test_signup_rejects_expired_token(client, admin_headers):
    admin = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["user"]
    expired = create_access_token({"id": admin["id"], "role": "ADMIN"}, expires_delta=-60)
    resp = client.post("/signup", json=NEW_USER, headers=bearer(expired))
    assert resp.status_code == 403


def test_signup_requires_admin(client, accounts):
    for key in ("user_headers", "owner_headers"):
        resp = client.post("/signup", json=NEW_USER, headers=accounts[key])
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access required"}


def test_signup_by_admin(client, admin_headers):
    resp = client.post("/signup", json=NEW_USER, headers=admin_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created"
    assert body["user"]["email"] == "natalie@example.com"
    assert body["user"]["role"] == "USER"
    assert "password" not in body["user"]


def test_signup_duplicate_email(client, admin_headers):
    client.post("/signup", json=NEW_USER, headers=admin_headers)
    resp = client.post("/signup", json=NEW_USER, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email already exists"}


def test_signup_validation_messages(client, admin_headers):
    cases = [
        ({"name": "Too Short"}, "Name must be 20-60 characters"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"password": "abcdefgh"}, "Password must be 8-16 characters with uppercase and special character"),
        ({"role": "SUPERUSER"}, "Invalid role"),
    ]
    for override, message in cases:
        resp = client.post("/signup", json={**NEW_USER, **override}, headers=admin_headers)
        assert resp.status_code == 400, override
        assert resp.json() == {"error": message}


def test_signup_missing_field(client, admin_headers):
    body = {k: v for k, v in NEW_USER.items() if k != "password"}
    resp = client.post("/signup", json=body, headers=admin_headers)
    assert resp.status_code == 400
    assert "password" in resp.json()["error"]


def test_login_returns_token_and_user(client, accounts):
    body = login(client, "owner@example.com")
    assert body["token"].count(".") == 2
    assert body["user"]["role"] == "OWNER"
    assert body["user"]["name"] == "Oliver Benjamin Storekeeper"


def test_login_errors(client, accounts):
    resp = client.post("/login", json={"email": "missing@example.com", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 400
    assert resp.json() == {"error": "User not found"}

    resp = client.post("/login", json={"email": "user@example.com", "password": "Wrong#Pass1"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid password"}

    resp = client.post("/login", json={"email": "bad-email", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid email format"}


def test_change_password(client, accounts):
    headers = accounts["user_headers"]
    resp = client.put(
        "/users/password",
        json={"currentPassword": "Wrong#Pass1", "newPassword": "Better#Pass2"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Current password is incorrect"}

    resp = client.put(
        "/users/password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "weakpass"},
        headers=headers,
    )
    assert resp.status_code == 400

    resp = client.put(
        "/users/password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "Better#Pass2"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {"message": "Password updated successfully"}
    login(client, "user@example.com", "Better#Pass2")


def test_change_password_requires_token(client):
    resp = client.put("/users/password", json={"currentPassword": "a", "newPassword": "Better#Pass2"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# User administration
# ---------------------------------------------------------------------------

def test_admin_user_listing(client, admin_headers, accounts, store):
    client.post(f"/stores/{store['id']}/rate", json={"rating": 5}, headers=accounts["user_headers"])

    resp = client.get("/admin/users", headers=admin_headers)
    assert resp.status_code == 200
    users = {u["email"]: u for u in resp.json()}
    assert set(users) == {ADMIN_EMAIL, "owner@example.com", "user@example.com", "other@example.com"}
    assert users["owner@example.com"]["_count"] == {"ratings": 0, "stores": 1}
    assert users["user@example.com"]["_count"] == {"ratings": 1, "stores": 0}

    resp = client.get("/admin/users", params={"role": "USER"}, headers=admin_headers)
    assert {u["email"] for u in resp.json()} == {"user@example.com", "other@example.com"}

    resp = client.get("/admin/users", params={"search": "victor"}, headers=admin_headers)
    assert [u["email"] for u in resp.json()] == ["other@example.com"]


def test_admin_routes_reject_other_roles(client, accounts):
    for key in ("user_headers", "owner_headers"):
        assert client.get("/admin/users", headers=accounts[key]).status_code == 403
        assert client.get("/admin/stores", headers=accounts[key]).status_code == 403
        assert client.get("/admin/dashboard", headers=accounts[key]).status_code == 403


def test_admin_update_user(client, admin_headers, accounts):
    user_id = accounts["user"]["id"]
    resp = client.put(
        f"/admin/users/{user_id}",
        json={"name": "Ursula Renamed Rating Customer", "email": "ursula@example.com", "role": "OWNER"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "User updated"
    assert body["user"]["role"] == "OWNER"

    resp = client.put(
        f"/admin/users/{user_id}",
        json={"name": "Ursula Renamed Rating Customer", "email": "owner@example.com", "role": "OWNER"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email already exists"}

    resp = client.put(
        "/admin/users/9999",
        json={"name": "Nobody Important At All", "email": "nobody@example.com", "role": "USER"},
        headers=admin_headers,
    )
    assert resp.status_code == 404


def test_admin_delete_user(client, admin_headers, accounts, store):
    owner_id = accounts["owner"]["id"]
    resp = client.delete(f"/admin/users/{owner_id}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot delete user with stores or ratings"}

    other_id = accounts["other"]["id"]
    resp = client.delete(f"/admin/users/{other_id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "User deleted successfully"}

    # the deleted user's token no longer works
    resp = client.post(f"/stores/{store['id']}/rate", json={"rating": 3}, headers=accounts["other_headers"])
    assert resp.status_code == 401
    assert resp.json() == {"error": "User no longer exists"}

    assert client.delete(f"/admin/users/{other_id}", headers=admin_headers).status_code == 404


def test_admin_cannot_delete_self(client, admin_headers):
    admin = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["user"]
    resp = client.delete(f"/admin/users/{admin['id']}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot delete your own account"}


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

def test_create_store(client, store, accounts):
    assert store["name"] == STORE_NAME
    assert store["address"] == STORE_ADDRESS
    assert store["ownerId"] == accounts["owner"]["id"]
    assert store["owner"]["email"] == "owner@example.com"


def test_create_store_requires_admin(client, accounts):
    body = {"name": STORE_NAME, "address": STORE_ADDRESS, "ownerId": accounts["owner"]["id"]}
    assert client.post("/stores", json=body).status_code == 401
    for key in ("user_headers", "owner_headers"):
        resp = client.post("/stores", json=body, headers=accounts[key])
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access required"}


def test_create_store_validation(client, admin_headers, accounts):
    owner_id = accounts["owner"]["id"]
    resp = client.post(
        "/stores",
        json={"name": "Tiny", "address": STORE_ADDRESS, "ownerId": owner_id},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Name must be 20-60 characters"}

    resp = client.post(
        "/stores",
        json={"name": STORE_NAME, "address": "x" * 401, "ownerId": owner_id},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Address must be up to 400 characters"}

    resp = client.post(
        "/stores",
        json={"name": STORE_NAME, "address": STORE_ADDRESS, "ownerId": accounts["user"]["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid owner ID or user is not a store owner"}


def test_public_store_listing(client, store, accounts):
    client.post(f"/stores/{store['id']}/rate", json={"rating": 4}, headers=accounts["user_headers"])

    resp = client.get("/stores")
    assert resp.status_code == 200
    [listed] = resp.json()
    assert listed["averageRating"] == 4.0
    assert listed["totalRatings"] == 1
    assert listed["ratings"][0]["user"] == {"id": accounts["user"]["id"], "name": "Ursula Normal Rating Customer"}
    assert listed["owner"]["name"] == "Oliver Benjamin Storekeeper"

    assert client.get("/stores", params={"search": "market street"}).json()[0]["id"] == store["id"]
    assert client.get("/stores", params={"search": "nowhere"}).json() == []


def test_admin_store_management(client, admin_headers, accounts, store):
    assert len(client.get("/admin/stores", headers=admin_headers).json()) == 1

    resp = client.put(
        f"/admin/stores/{store['id']}",
        json={"name": "Renamed Downtown Grocery", "address": "43 Market Street", "ownerId": accounts["owner"]["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Store updated"
    assert resp.json()["store"]["name"] == "Renamed Downtown Grocery"

    resp = client.put(
        "/admin/stores/9999",
        json={"name": "Renamed Downtown Grocery", "address": "43 Market Street", "ownerId": accounts["owner"]["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "Store not found"}

    resp = client.delete(f"/admin/stores/{store['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Store deleted successfully"}
    assert client.delete(f"/admin/stores/{store['id']}", headers=admin_headers).status_code == 404
    assert client.get("/stores").json() == []


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

def test_rate_store(client, store, accounts):
    url = f"/stores/{store['id']}/rate"
    first = client.post(url, json={"rating": 5}, headers=accounts["user_headers"])
    assert first.status_code == 200
    assert first.json()["rating"] == 5
    assert first.json()["storeId"] == store["id"]

    second = client.post(url, json={"rating": 3}, headers=accounts["user_headers"])
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["rating"] == 3


def test_only_normal_users_rate(client, admin_headers, store, accounts):
    url = f"/stores/{store['id']}/rate"
    for headers in (accounts["owner_headers"], admin_headers):
        resp = client.post(url, json={"rating": 5}, headers=headers)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Only normal users can rate stores"}
    assert client.post(url, json={"rating": 5}).status_code == 401


def test_invalid_ratings(client, store, accounts):
    url = f"/stores/{store['id']}/rate"
    for value in (0, 6, 2.5, "5", None):
        resp = client.post(url, json={"rating": value}, headers=accounts["user_headers"])
        assert resp.status_code == 400, value
        assert resp.json() == {"error": "Rating must be between 1 and 5"}
    assert client.get("/stores").json()[0]["totalRatings"] == 0


def test_rate_missing_store(client, accounts):
    resp = client.post("/stores/9999/rate", json={"rating": 4}, headers=accounts["user_headers"])
    assert resp.status_code == 404
    assert resp.json() == {"error": "Store not found"}


# ---------------------------------------------------------------------------
# Owner view and dashboard
# ---------------------------------------------------------------------------

def test_owner_stores(client, store, accounts):
    client.post(f"/stores/{store['id']}/rate", json={"rating": 2}, headers=accounts["user_headers"])
    client.post(f"/stores/{store['id']}/rate", json={"rating": 5}, headers=accounts["other_headers"])

    resp = client.get("/owner/stores", headers=accounts["owner_headers"])
    assert resp.status_code == 200
    [own] = resp.json()
    assert own["id"] == store["id"]
    assert own["averageRating"] == 3.5
    assert own["totalRatings"] == 2
    assert {r["user"]["email"] for r in own["ratings"]} == {"user@example.com", "other@example.com"}

    resp = client.get("/owner/stores", headers=accounts["user_headers"])
    assert resp.status_code == 403
    assert resp.json() == {"error": "Store owner access required"}


def test_dashboard(client, admin_headers, store, accounts):
    client.post(f"/stores/{store['id']}/rate", json={"rating": 4}, headers=accounts["user_headers"])

    resp = client.get("/admin/dashboard", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalUsers"] == 4
    assert body["totalStores"] == 1
    assert body["totalRatings"] == 1
    assert body["usersByRole"] == {"ADMIN": 1, "OWNER": 1, "USER": 2}
    assert body["topStores"] == [
        {
            "id": store["id"],
            "name": STORE_NAME,
            "averageRating": 4.0,
            "totalRatings": 1,
            "owner": "Oliver Benjamin Storekeeper",
        }
    ]


def test_new_owner_can_be_created_and_assigned(client, admin_headers):
    owner = signup(client, admin_headers, "Freshly Created Shop Owner", "fresh@example.com", "OWNER")
    resp = client.post(
        "/stores",
        json={"name": "Freshly Opened Bakery Shop", "address": "5 Baker Street", "ownerId": owner["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    token = login(client, "fresh@example.com")["token"]
    listed = client.get("/owner/stores", headers=bearer(token)).json()
    assert [s["name"] for s in listed] == ["Freshly Opened Bakery Shop"]
