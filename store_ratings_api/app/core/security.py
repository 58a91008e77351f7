"""
Security helpers for password hashing and JWT authentication.

Tokens are compact JWTs signed with HMAC (SHA‑256 by default) and
base64url encoded.  The payload carries the caller's ``id`` and
``role`` plus an expiration timestamp (``exp``).  The signing secret,
token lifetime and algorithm come from the ``Settings`` the
application was built with (``request.app.state.settings``), falling
back to the module level ``settings`` outside a request.

Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random
per‑password salt; the iteration count is stored alongside the hash
so it can be raised later without invalidating existing accounts.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, settings
from .db import Database, get_db
from .permissions import Action, Role, denial_message, is_allowed


logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000

HMAC_ALGORITHMS = {
    "HS256": hashlib.sha256,
    "HS384": hashlib.sha384,
    "HS512": hashlib.sha512,
}


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _digest_for(algorithm: str):
    try:
        return HMAC_ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"Unsupported token algorithm: {algorithm}")


def _sign(message: bytes, secret: str, algorithm: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, _digest_for(algorithm)).digest()


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[int] = None,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field holding the
    expiration time as a UNIX timestamp.

    Parameters
    ----------
    data : dict
        Claims to embed in the token, e.g. ``{"id": 1, "role": "ADMIN"}``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    secret_key : Optional[str]
        Signing secret.  Defaults to ``settings.secret_key``.
    algorithm : Optional[str]
        ``HS256``, ``HS384`` or ``HS512``.  Defaults to ``settings.algorithm``.

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    alg = algorithm or settings.algorithm
    to_encode = data.copy()
    exp_seconds = expires_delta if expires_delta is not None else settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": alg, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature = _sign(signing_input, secret_key or settings.secret_key, alg)
    return f"{header_b64}.{payload_b64}.{_b64_url_encode(signature)}"


def decode_access_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Returns the payload if the header names the expected algorithm,
    the signature matches and the token has not expired, otherwise
    ``None``.
    """
    alg = algorithm or settings.algorithm
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        if not isinstance(header, dict) or header.get("alg") != alg:
            return None
        expected_sig = _sign(signing_input, secret_key or settings.secret_key, alg)
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors
        return None
    if not isinstance(data, dict):
        return None
    exp = data.get("exp")
    if not isinstance(exp, (int, float)) or int(exp) < int(time.time()):
        return None
    return data


def issue_token_for(user: Dict[str, Any], cfg: Optional[Settings] = None) -> str:
    """Issue an access token for a user record (``id`` and ``role``).

    ``cfg`` supplies the secret, lifetime and algorithm; the module
    level ``settings`` are used when it is omitted.
    """
    cfg = cfg or settings
    role = user["role"]
    return create_access_token(
        {"id": user["id"], "role": role.value if isinstance(role, Role) else role},
        expires_delta=cfg.access_token_expire_minutes * 60,
        secret_key=cfg.secret_key,
        algorithm=cfg.algorithm,
    )


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return getattr(request.app.state, "settings", settings)


security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
    cfg: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Dependency that resolves the authenticated caller.

    A missing ``Authorization`` header yields 401.  A header with a
    scheme other than ``Bearer``, a token with a bad signature, a
    malformed payload or an expired ``exp`` yields 403.  The caller's
    role is taken from the token, but the user must still exist:
    tokens of deleted users are rejected with 401.
    """
    if credentials is None:
        if request.headers.get("Authorization"):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials, secret_key=cfg.secret_key, algorithm=cfg.algorithm)
    role = Role.parse(payload.get("role")) if payload else None
    user_id = payload.get("id") if payload else None
    if role is None or not isinstance(user_id, int):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")

    with db.session() as conn:
        row = conn.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"id": user_id, "role": role}


def require_action(action: Action) -> Callable[..., Dict[str, Any]]:
    """Dependency factory enforcing the access policy for ``action``.

    Use in endpoints as ``Depends(require_action(Action.MANAGE_STORES))``.
    Returns the caller on success and raises 403 with the action's
    denial message otherwise.
    """

    def _action_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not is_allowed(current_user["role"], action):
            logger.warning(
                "Denied %s for user %s with role %s",
                action.value,
                current_user["id"],
                current_user["role"].value,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=denial_message(action))
        return current_user

    return _action_dependency


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    The result has the form ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored hash string."""
    try:
        scheme, iterations, salt_hex, hash_hex = hashed_password.split("$", 3)
        if scheme != "pbkdf2_sha256":
            return False
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
        dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, int(iterations))
    except (AttributeError, ValueError):
        return False
    return hmac.compare_digest(dk, stored_hash)
