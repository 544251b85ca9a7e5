"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login

Token and password logic lives in `auth_service.utils`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Blueprint, jsonify, Response

from backend.auth_service.models import User
from backend.auth_service.repository import conflict_for
from backend.auth_service.utils import create_token, hash_password, verify_password
from backend.auth_service.validation import validate_login, validate_registration
from backend.common.errors import AuthenticationError, failure_message
from backend.common.http import json_body, register_request_logging
from backend.database.repositories import get_repositories

auth_bp = Blueprint("auth", __name__)
register_request_logging(auth_bp, "Auth")

INVALID_CREDENTIALS = "Invalid email or password. Please check your credentials and try again."


def session_payload(user: User) -> Dict[str, Any]:
    """Body returned by register and login."""
    return {
        "id": user.user_id,
        "username": user.username,
        "email": user.email,
        "isAdmin": user.is_admin,
        "token": create_token(user.user_id),
    }


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
@failure_message("Unable to create account. Please try again later.")
def register() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - username (str): 3-30 characters, unique ignoring case.
    - email (str): Unique email address, unique ignoring case.
    - password (str): 6-100 characters.
    - zipcode (str): 12345 or 12345-6789.

    Returns:
        201: JSON with id, username, email, isAdmin and a new JWT token.
        400: Missing or invalid fields.
        409: Email or username already taken.
        500: Server-side error (hashing or database).
    """
    fields = validate_registration(json_body())
    users = get_repositories().users

    existing = users.find_conflict(fields["username"], fields["email"])
    if existing:
        raise conflict_for("email" if existing.email.lower() == fields["email"] else "username")

    # If two registrations race past the check above, add() reports the conflict.
    user = users.add(User(
        username=fields["username"],
        email=fields["email"],
        password_hash=hash_password(fields["password"]),
        zipcode=fields["zipcode"],
    ))

    return jsonify(session_payload(user)), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
@failure_message("Unable to log in. Please try again later.")
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with id, username, email, isAdmin and JWT token.
        400: Missing or malformed credentials.
        401: Invalid credentials (same message for unknown email and wrong password).
        500: Database error.
    """
    fields = validate_login(json_body())
    users = get_repositories().users

    user = users.get_by_email(fields["email"])
    password_ok = verify_password(user.password_hash if user else None, fields["password"])
    if user is None or not password_ok:
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login = datetime.now(timezone.utc)
    users.record_login(user.user_id, user.last_login)

    return jsonify(session_payload(user)), 200
