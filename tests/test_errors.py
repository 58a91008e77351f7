import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from store_ratings_api.app.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    register_exception_handlers,
)


def build_client(exc):
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc,status_code",
    [
        (ValidationError("bad input"), 400),
        (AuthenticationError("who are you"), 401),
        (AuthorizationError("not for you"), 403),
        (NotFoundError("gone"), 404),
        (ConflictError("taken"), 400),
    ],
)
def test_service_errors_map_to_status_and_body(exc, status_code):
    resp = build_client(exc).get("/boom")
    assert resp.status_code == status_code
    assert resp.json() == {"error": exc.message}


def test_unexpected_errors_are_hidden():
    resp = build_client(RuntimeError("database exploded")).get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)
