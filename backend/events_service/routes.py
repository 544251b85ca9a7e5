"""
Events service routes: create, read, update, delete events, plus RSVP,
favorites and comments.

Only the organizer may edit or delete an event. Any signed-in user may
RSVP, favorite and comment; those changes go through
`EventRepository.mutate` so each one is a single locked update of the
event aggregate.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from flask import Blueprint, request, jsonify, Response

from backend.auth_service.models import User
from backend.auth_service.utils import auth_optional, login_required, require_ownership
from backend.common.errors import NotFoundError, failure_message
from backend.common.http import json_body, register_request_logging
from backend.database.repositories import get_repositories
from backend.events_service.models import Event, RsvpStatus
from backend.events_service.validation import validate_comment_text, validate_event_payload

events_bp = Blueprint("events", __name__)
register_request_logging(events_bp, "Events")


def load_event(event_id: int) -> Event:
    event = get_repositories().events.get(event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event


@events_bp.route("", methods=["GET"])
@auth_optional
@failure_message("Failed to fetch events")
def list_events(viewer_id: Optional[int]) -> Tuple[Response, int]:
    """
    Return events, optionally filtered.

    Query parameters:
    - category: exact category match.
    - search: case-insensitive text matched against title, description and location.

    Signed-in callers also get their own RSVP status and favorite flag per event.

    Returns:
        200: List of event projections, by date then newest-created.
        500: Database error.
    """
    category = request.args.get("category") or None
    search = request.args.get("search") or None

    events = get_repositories().events.list(category=category, search=search)
    return jsonify([event.to_client_dict(viewer_id) for event in events]), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
@auth_optional
@failure_message("Failed to fetch event")
def get_event(event_id: int, viewer_id: Optional[int]) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    Returns:
        200: Event projection.
        404: Event not found.
    """
    return jsonify(load_event(event_id).to_client_dict(viewer_id)), 200


@events_bp.route("", methods=["POST"])
@login_required
@failure_message("Failed to create event")
def create_event(current_user: User) -> Tuple[Response, int]:
    """
    Create an event. The caller becomes its organizer.

    Returns:
        201: Event projection.
        400: Validation error.
        401: Not signed in.
        500: Server error.
    """
    fields = validate_event_payload(json_body())

    event = Event(
        organizer=current_user.username,
        organizer_id=current_user.user_id,
        **fields,
    )
    event = get_repositories().events.add(event)

    return jsonify(event.to_client_dict(current_user.user_id)), 201


@events_bp.route("/<int:event_id>", methods=["PUT"])
@login_required
@failure_message("Failed to update event")
def update_event(event_id: int, current_user: User) -> Tuple[Response, int]:
    """
    Replace an event's editable fields. Organizer only.

    The body must be a complete, valid event; optional fields that are left
    out are reset to their defaults.

    Returns:
        200: Updated event projection.
        400: Validation error.
        403: Caller is not the organizer (checked before the body).
        404: Event not found.
    """
    event = load_event(event_id)
    require_ownership(event.organizer_id, current_user, "You can only edit your own events")

    fields = validate_event_payload(json_body())
    event.apply_fields(fields)
    event.updated_at = datetime.now(timezone.utc)

    event = get_repositories().events.save(event)
    return jsonify(event.to_client_dict(current_user.user_id)), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@login_required
@failure_message("Failed to delete event")
def delete_event(event_id: int, current_user: User) -> Tuple[str, int]:
    """
    Delete an event. Organizer only; immediate and irreversible.

    Returns:
        204: Deleted.
        403: Caller is not the organizer.
        404: Event not found.
    """
    event = load_event(event_id)
    require_ownership(event.organizer_id, current_user, "You can only delete your own events")

    if not get_repositories().events.delete(event_id):
        raise NotFoundError("Event not found")
    return "", 204


@events_bp.route("/<int:event_id>/rsvp", methods=["POST"])
@login_required
@failure_message("Failed to update RSVP")
def rsvp(event_id: int, current_user: User) -> Tuple[Response, int]:
    """
    Set the caller's RSVP.

    Body: { "rsvp_status": "going" | "interested" | "not_going" | "" }
    "not_going" and "" remove the caller's RSVP.

    Returns:
        200: { "event_id", "rsvp_status" }
        400: Invalid status.
        404: Event not found.
    """
    requested = json_body().get("rsvp_status")
    status = RsvpStatus.parse(requested)

    get_repositories().events.mutate(
        event_id, lambda event: event.set_rsvp(current_user.user_id, status)
    )

    return jsonify({"event_id": event_id, "rsvp_status": requested}), 200


@events_bp.route("/<int:event_id>/favorite", methods=["POST"])
@login_required
@failure_message("Failed to update favorite")
def favorite(event_id: int, current_user: User) -> Tuple[Response, int]:
    """
    Add or remove the event from the caller's favorites.

    Body: { "is_favorited": bool }. Repeating the current state is a no-op.

    Returns:
        200: { "event_id", "is_favorited" }
        404: Event not found.
    """
    is_favorited = bool(json_body().get("is_favorited"))

    get_repositories().events.mutate(
        event_id, lambda event: event.set_favorite(current_user.user_id, is_favorited)
    )

    return jsonify({"event_id": event_id, "is_favorited": is_favorited}), 200


@events_bp.route("/<int:event_id>/comments", methods=["POST"])
@login_required
@failure_message("Failed to add comment")
def add_comment(event_id: int, current_user: User) -> Tuple[Response, int]:
    """
    Append a comment. Comments cannot be edited or deleted afterwards.

    Body: { "text": str } (1-500 characters after trimming)

    Returns:
        201: The new comment.
        400: Missing or too-long text.
        404: Event not found.
    """
    text = validate_comment_text(json_body().get("text"))
    now = datetime.now(timezone.utc)

    comment = get_repositories().events.mutate(
        event_id,
        lambda event: event.add_comment(current_user.user_id, current_user.username, text, now),
    )

    return jsonify(comment.to_dict()), 201


@events_bp.route("/<int:event_id>/comments", methods=["GET"])
@failure_message("Failed to fetch comments")
def list_comments(event_id: int) -> Tuple[Response, int]:
    """
    Get an event's comments, newest first.

    Returns:
        200: List of comments.
        404: Event not found.
    """
    event = load_event(event_id)
    return jsonify([c.to_dict() for c in event.comments_newest_first()]), 200
