"""
API Module
FastAPI routers for the Smart HealthMate application
"""

from api.users import router as users_router
from api.medicines import router as medicines_router
from api.adherence import router as adherence_router
from api.reminders import router as reminders_router
from api.vitals import router as vitals_router
from api.alerts import router as alerts_router

from api.deps import (
    get_db,
    get_now,
    get_current_user_id,
    http_error,
    services,
)


__all__ = [
    # Routers
    "users_router",
    "medicines_router",
    "adherence_router",
    "reminders_router",
    "vitals_router",
    "alerts_router",
    # Dependencies
    "get_db",
    "get_now",
    "get_current_user_id",
    "http_error",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(users_router, prefix=prefix)
    app.include_router(medicines_router, prefix=prefix)
    app.include_router(adherence_router, prefix=prefix)
    app.include_router(reminders_router, prefix=prefix)
    app.include_router(vitals_router, prefix=prefix)
    app.include_router(alerts_router, prefix=prefix)
