"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Authentication is NOT applied at the include_router level here.
The users router mixes open routes (sign-up, login, public avatar) with
protected ones, so each protected route pulls in the principal through
its service dependency (api/deps.py), which depends on get_current_user.
"""

from fastapi import APIRouter

from tasktrack.api.health import router as health_router
from tasktrack.api.tasks import router as tasks_router
from tasktrack.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(tasks_router, tags=["tasks"])
