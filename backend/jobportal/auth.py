from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from collections.abc import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from jobportal.config import settings
from jobportal.database import get_db
from jobportal.errors import Forbidden, Unauthorized
from jobportal.models.user import User


security = HTTPBearer(auto_error=False)
PBKDF2_ITERATIONS = 210_000


def _pbkdf2(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations).hex()


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${_pbkdf2(password, salt, PBKDF2_ITERATIONS)}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        _, iterations, salt, digest = password_hash.split("$", 3)
        expected = _pbkdf2(password, salt, int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(expected, digest)


def _token_signature(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def create_access_token(user_id: int, *, secret: str | None = None, ttl_seconds: int | None = None) -> str:
    """Bearer token of the form base64("<user_id>:<expires>:<nonce>:<hmac>")."""
    secret = secret or settings.auth_secret
    ttl = settings.auth_token_ttl_seconds if ttl_seconds is None else ttl_seconds
    payload = f"{user_id}:{int(time.time()) + ttl}:{secrets.token_hex(6)}"
    raw = f"{payload}:{_token_signature(payload, secret)}".encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def decode_access_token(token: str, *, secret: str | None = None) -> int | None:
    if not token:
        return None
    secret = secret or settings.auth_secret
    try:
        decoded = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
        payload, signature = decoded.rsplit(":", 1)
        user_id, expires, _nonce = payload.split(":")
        if not hmac.compare_digest(_token_signature(payload, secret), signature):
            return None
        if int(expires) < int(time.time()):
            return None
        return int(user_id)
    except (ValueError, UnicodeDecodeError):
        return None


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Authentication required")

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise Unauthorized("Invalid or expired token")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise Unauthorized("Invalid user")
    return user


def require_role(role: str) -> Callable[..., User]:
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise Forbidden(f"User role {current_user.role} is not authorized to access this route")
        return current_user

    return dependency
