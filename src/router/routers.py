# src/router/routers.py

from fastapi import FastAPI
from src.auth.auth_controller import router as auth_router
from src.modules.users.users_controller import router as users_router
from src.modules.patients.patients_controller import router as patients_router
from src.modules.prescriptions.prescriptions_controller import router as prescriptions_router
from src.modules.reports.reports_controller import router as reports_router
from src.modules.vitals.vitals_controller import router as vitals_router
from src.modules.notifications.notifications_controller import router as notifications_router
from src.modules.stats.stats_controller import router as stats_router

API_PREFIX = "/api"


def include_routers(app: FastAPI) -> None:
    """Include all API routers in the FastAPI application."""
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(patients_router, prefix=API_PREFIX)
    app.include_router(prescriptions_router, prefix=API_PREFIX)
    app.include_router(reports_router, prefix=API_PREFIX)
    app.include_router(vitals_router, prefix=API_PREFIX)
    app.include_router(notifications_router, prefix=API_PREFIX)
    app.include_router(stats_router, prefix=API_PREFIX)
