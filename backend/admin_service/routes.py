"""
Admin service routes.

Every endpoint requires an administrator token. Provides:
- Paginated listings of users, recently active members, events and notifications
- System statistics
- Deletion of users (with their events), events and notifications
- Creation of broadcast notifications
"""

from datetime import datetime, timedelta, timezone
from typing import Tuple

from flask import Blueprint, jsonify, Response

from backend.admin_service.models import build_notification
from backend.auth_service.models import User
from backend.auth_service.utils import admin_required
from backend.common.errors import NotFoundError, ValidationError, failure_message
from backend.common.http import (
    MAX_DAYS, int_arg, json_body, pagination_args, pagination_block, register_request_logging,
)
from backend.database.repositories import get_repositories

admin_bp = Blueprint("admin", __name__)
register_request_logging(admin_bp, "Admin")

RECENT_USER_DAYS = 7
DEFAULT_ACTIVE_DAYS = 30


# --- LISTINGS ---
@admin_bp.route("/users", methods=["GET"])
@admin_required
@failure_message("Failed to fetch users")
def list_users(admin: User) -> Tuple[Response, int]:
    """
    All users, newest first. Query: page, limit (default 50).

    Returns:
        200: { users, pagination }
    """
    page, limit = pagination_args()
    users = get_repositories().users

    total = users.count()
    page_users = users.list_page((page - 1) * limit, limit)

    return jsonify({
        "users": [u.to_dict() for u in page_users],
        "pagination": pagination_block(page, limit, total, "totalUsers", "usersPerPage"),
    }), 200


@admin_bp.route("/active-members", methods=["GET"])
@admin_required
@failure_message("Failed to fetch active members")
def list_active_members(admin: User) -> Tuple[Response, int]:
    """
    Users who logged in within the last `days` days (default 30), most
    recent login first. Query: days, page, limit.

    Returns:
        200: { members, days, pagination }
    """
    days = int_arg("days", DEFAULT_ACTIVE_DAYS, maximum=MAX_DAYS)
    page, limit = pagination_args()
    since = datetime.now(timezone.utc) - timedelta(days=days)
    users = get_repositories().users

    total = users.count_active(since)
    members = users.list_active(since, (page - 1) * limit, limit)

    return jsonify({
        "members": [u.to_dict() for u in members],
        "days": days,
        "pagination": pagination_block(page, limit, total, "totalActiveMembers", "membersPerPage"),
    }), 200


@admin_bp.route("/events", methods=["GET"])
@admin_required
@failure_message("Failed to fetch events")
def list_events(admin: User) -> Tuple[Response, int]:
    """
    All events, newest first, each with its organizer's account.

    Returns:
        200: { events, pagination }
    """
    page, limit = pagination_args()
    events = get_repositories().events

    total = events.count()
    rows = []
    for event, organizer in events.list_page((page - 1) * limit, limit):
        data = event.to_client_dict()
        data["organizer_account"] = organizer
        rows.append(data)

    return jsonify({
        "events": rows,
        "pagination": pagination_block(page, limit, total, "totalEvents", "eventsPerPage"),
    }), 200


@admin_bp.route("/stats", methods=["GET"])
@admin_required
@failure_message("Failed to fetch statistics")
def stats(admin: User) -> Tuple[Response, int]:
    """
    System statistics.

    Returns:
        200: totalUsers, totalEvents, adminUsers, recentUsers (last 7 days),
             upcomingEvents (dated today or later), eventsByCategory.
    """
    repos = get_repositories()
    now = datetime.now(timezone.utc)

    return jsonify({
        "totalUsers": repos.users.count(),
        "totalEvents": repos.events.count(),
        "adminUsers": repos.users.count_admins(),
        "recentUsers": repos.users.count_created_since(now - timedelta(days=RECENT_USER_DAYS)),
        "upcomingEvents": repos.events.count_upcoming(now.date().isoformat()),
        "eventsByCategory": [
            {"category": category, "count": count}
            for category, count in repos.events.count_by_category()
        ],
    }), 200


# --- DELETION ---
@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@admin_required
@failure_message("Failed to delete user")
def delete_user(user_id: int, admin: User) -> Tuple[Response, int]:
    """
    Delete a user and every event they organize.

    Returns:
        200: Deleted.
        400: Admin tried to delete their own account.
        404: User not found.
    """
    if user_id == admin.user_id:
        raise ValidationError("Cannot delete your own account")

    repos = get_repositories()
    if repos.users.get(user_id) is None:
        raise NotFoundError("User not found")

    repos.events.delete_by_organizer(user_id)
    repos.users.delete(user_id)

    return jsonify({"message": "User and their events deleted successfully"}), 200


@admin_bp.route("/events/<int:event_id>", methods=["DELETE"])
@admin_required
@failure_message("Failed to delete event")
def delete_event(event_id: int, admin: User) -> Tuple[Response, int]:
    """
    Delete any event regardless of organizer.

    Returns:
        200: Deleted.
        404: Event not found.
    """
    if not get_repositories().events.delete(event_id):
        raise NotFoundError("Event not found")
    return jsonify({"message": "Event deleted successfully"}), 200


# --- NOTIFICATIONS ---
@admin_bp.route("/notifications", methods=["POST"])
@admin_required
@failure_message("Failed to create notification")
def create_notification(admin: User) -> Tuple[Response, int]:
    """
    Create a broadcast notification.

    Body: title, message, and optionally type, priority, targetUsers,
    specificUserIds (with targetUsers "specific") and expiresAt.

    Returns:
        201: { message, notification }
        400: Validation error.
    """
    notification = build_notification(json_body(), created_by=admin.user_id)
    notification = get_repositories().notifications.add(notification)

    return jsonify({
        "message": "Notification created successfully",
        "notification": notification.to_dict(),
    }), 201


@admin_bp.route("/notifications", methods=["GET"])
@admin_required
@failure_message("Failed to fetch notifications")
def list_notifications(admin: User) -> Tuple[Response, int]:
    """Notifications, newest first. Query: page, limit (default 20)."""
    page, limit = pagination_args(default_limit=20)
    notifications = get_repositories().notifications

    total = notifications.count()
    rows = [n.to_dict(creator) for n, creator in notifications.list_page((page - 1) * limit, limit)]

    return jsonify({
        "notifications": rows,
        "pagination": pagination_block(page, limit, total, "totalNotifications", "notificationsPerPage"),
    }), 200


@admin_bp.route("/notifications/<int:notification_id>", methods=["DELETE"])
@admin_required
@failure_message("Failed to delete notification")
def delete_notification(notification_id: int, admin: User) -> Tuple[Response, int]:
    """
    Returns:
        200: Deleted.
        404: Notification not found.
    """
    if not get_repositories().notifications.delete(notification_id):
        raise NotFoundError("Notification not found")
    return jsonify({"message": "Notification deleted successfully"}), 200
