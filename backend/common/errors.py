"""
Error taxonomy shared by every service.

Views raise these exceptions instead of building error responses by hand;
`register_error_handlers` turns them into `{"error": message}` JSON with the
matching status code. Anything that is not an `ApiError` is logged and
reduced to a generic 500 so internal details never reach the caller.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, Tuple

from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that are safe to show to the client."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(ApiError):
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Already exists"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InternalError(ApiError):
    status_code = 500


def failure_message(message: str) -> Callable:
    """
    Give a view its own 500 message.

    `ApiError`s raised inside the view pass through untouched. Any other
    exception is logged with its traceback and replaced by
    `InternalError(message)`.
    """
    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any):
            try:
                return view(*args, **kwargs)
            except ApiError:
                raise
            except Exception:
                logger.exception("%s (%s)", message, view.__name__)
                raise InternalError(message)
        return wrapper
    return decorator


def register_error_handlers(app: Flask) -> None:
    """Install the JSON error handlers on the application."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> Tuple[Response, int]:
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Response, int]:
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception) -> Tuple[Response, int]:
        logger.exception("Unhandled error: %s", error)
        return jsonify({"error": "Internal server error"}), 500
