"""API routes."""

from convops.api.routes.analytics import router as analytics_router
from convops.api.routes.auth import router as auth_router
from convops.api.routes.avatars import router as avatars_router
from convops.api.routes.bots import router as bots_router
from convops.api.routes.client_applications import router as client_applications_router
from convops.api.routes.client_portal import router as client_portal_router
from convops.api.routes.clients import router as clients_router
from convops.api.routes.conversations import report_router
from convops.api.routes.conversations import router as conversations_router
from convops.api.routes.health import router as health_router
from convops.api.routes.sentiment import router as sentiment_router
from convops.api.routes.users import router as users_router

__all__ = [
    "analytics_router",
    "auth_router",
    "avatars_router",
    "bots_router",
    "client_applications_router",
    "client_portal_router",
    "clients_router",
    "conversations_router",
    "health_router",
    "report_router",
    "sentiment_router",
    "users_router",
]
