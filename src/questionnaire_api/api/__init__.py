"""API routers for the Questionnaire API."""

from questionnaire_api.api.dashboard import router as dashboard_router
from questionnaire_api.api.responses import router as responses_router

__all__ = [
    "dashboard_router",
    "responses_router",
]
