"""
Shared authentication helpers.
Provides password hashing, token creation and verification, and the request
guards used by every blueprint.

Guards are plain functions that either return an identity or raise a typed
error (`AuthenticationError` / `AuthorizationError`). The decorators at the
bottom run a guard before the view and hand its result to the view as a
keyword argument.
"""

import os
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache, wraps
from typing import Any, Callable, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from dotenv import load_dotenv
from flask import request

from backend.auth_service.models import User
from backend.common.errors import AuthenticationError, AuthorizationError
from backend.database.repositories import get_repositories

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 1440))  # Default 24 hours

ph = PasswordHasher()


# --- PASSWORDS ---
def hash_password(password: str) -> str:
    """Argon2 hash of a plaintext password."""
    return ph.hash(password)


@lru_cache(maxsize=None)
def _unknown_account_hash(hasher: PasswordHasher) -> str:
    # Random secret: nothing a caller sends can match it
    return hasher.hash(secrets.token_urlsafe(32))


def verify_password(password_hash: Optional[str], candidate: str) -> bool:
    """
    Check a candidate password against a stored hash.

    Any verification failure (mismatch, corrupt hash) is just False.
    Without a stored hash (no such account) the candidate is still checked
    against a throwaway hash, so an unknown email costs the same argon2
    work as a wrong password.
    """
    try:
        if password_hash is None:
            ph.verify(_unknown_account_hash(ph), candidate)
            return False
        return ph.verify(password_hash, candidate)
    except (VerificationError, InvalidHashError):
        return False


# --- JWT CREATION ---
def create_token(user_id: int, expires_in: Optional[timedelta] = None) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.
        expires_in (timedelta, optional): Lifetime override.

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else timedelta(minutes=TOKEN_EXPIRATION_MINUTES)

    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + lifetime,
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# --- JWT VALIDATION ---
def verify_token(token: str) -> Optional[int]:
    """
    Validate a JWT.

    Malformed, expired and badly signed tokens all yield None; callers never
    learn which one it was.

    Returns:
        int: user_id if valid, None otherwise.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        return None


def bearer_token() -> Optional[str]:
    """Token from the `Authorization: Bearer <token>` header, if any."""
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


# --- GUARDS ---
def require_authenticated() -> User:
    """
    Resolve the caller from the bearer token.

    Raises:
        AuthenticationError: token missing, invalid, or its user no longer exists.
    """
    token = bearer_token()
    if token is None:
        raise AuthenticationError("Missing token")

    user_id = verify_token(token)
    if user_id is None:
        raise AuthenticationError("Invalid token")

    user = get_repositories().users.get(user_id)
    if user is None:
        raise AuthenticationError("Invalid token")
    return user


def optional_identity() -> Optional[int]:
    """Caller's user id when a valid token is present, otherwise None."""
    token = bearer_token()
    if token is None:
        return None
    return verify_token(token)


def require_admin() -> User:
    """
    Required-auth followed by the administrator check.

    Raises:
        AuthenticationError: as require_authenticated().
        AuthorizationError: the caller is not an administrator.
    """
    user = require_authenticated()
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


def require_ownership(owner_id: int, user: User, message: str = "Permission denied") -> None:
    """Raise AuthorizationError unless `user` owns the resource."""
    if owner_id != user.user_id:
        raise AuthorizationError(message)


# --- VIEW DECORATORS ---
def login_required(view: Callable) -> Callable:
    """Pass the authenticated `User` to the view as `current_user`."""
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        kwargs["current_user"] = require_authenticated()
        return view(*args, **kwargs)
    return wrapper


def auth_optional(view: Callable) -> Callable:
    """Pass the caller's id (or None) to the view as `viewer_id`."""
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        kwargs["viewer_id"] = optional_identity()
        return view(*args, **kwargs)
    return wrapper


def admin_required(view: Callable) -> Callable:
    """Pass the authenticated administrator to the view as `admin`."""
    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        kwargs["admin"] = require_admin()
        return view(*args, **kwargs)
    return wrapper
