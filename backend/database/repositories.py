"""
The repository bundle handed to the Flask app.

Views never build repositories themselves; they ask for the bundle the app
was created with, so tests can swap in their own implementations.
"""

from dataclasses import dataclass

from flask import current_app

from backend.admin_service.repository import NotificationRepository, PgNotificationRepository
from backend.auth_service.repository import PgUserRepository, UserRepository
from backend.events_service.repository import EventRepository, PgEventRepository

EXTENSION_KEY = "repositories"


@dataclass
class Repositories:
    users: UserRepository
    events: EventRepository
    notifications: NotificationRepository


def postgres_repositories() -> Repositories:
    return Repositories(
        users=PgUserRepository(),
        events=PgEventRepository(),
        notifications=PgNotificationRepository(),
    )


def get_repositories() -> Repositories:
    """Repositories of the current app. Only valid inside a request or app context."""
    return current_app.extensions[EXTENSION_KEY]
