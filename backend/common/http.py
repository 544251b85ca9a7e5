"""
Small request/response helpers shared by the blueprints.
"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, request, Response

from backend.common.errors import ValidationError

logger = logging.getLogger(__name__)


def json_body() -> Dict[str, Any]:
    """
    The request's JSON object. A missing or non-JSON body counts as {}.

    Raises:
        ValidationError: the body is JSON but not an object.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# Upper bounds keep OFFSET within bigint and `days` within timedelta
MAX_PAGE = 1_000_000
MAX_LIMIT = 1000
MAX_DAYS = 36500


def _positive_int(raw: Optional[str], default: int, maximum: Optional[int] = None) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    if value < 1:
        return default
    if maximum is not None and value > maximum:
        return maximum
    return value


def pagination_args(default_limit: int = 50) -> Tuple[int, int]:
    """
    `page` and `limit` query parameters. Bad or non-positive values fall
    back to defaults; values above the caps are clamped to them.
    """
    page = _positive_int(request.args.get("page"), 1, MAX_PAGE)
    limit = _positive_int(request.args.get("limit"), default_limit, MAX_LIMIT)
    return page, limit


def int_arg(name: str, default: int, maximum: Optional[int] = None) -> int:
    return _positive_int(request.args.get(name), default, maximum)


def pagination_block(page: int, limit: int, total: int, total_key: str, per_page_key: str) -> Dict[str, int]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit),
        total_key: total,
        per_page_key: limit,
    }


def register_request_logging(bp: Blueprint, label: str) -> None:
    """
    Log method and path of every request to the blueprint, and the status
    of every response. Headers are left out so tokens never reach the log.
    """

    @bp.before_request
    def log_request() -> None:
        logger.info("[%s] Incoming %s %s", label, request.method, request.path)

    @bp.after_request
    def log_response(response: Response) -> Response:
        logger.info("[%s] Response %s", label, response.status)
        return response
