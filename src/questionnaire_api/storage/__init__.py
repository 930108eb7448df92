"""Storage layer for the Questionnaire API."""

from questionnaire_api.storage.database import (
    DatabaseManager,
    create_database_manager,
)
from questionnaire_api.storage.models import RESPONSE_COLUMNS, Base, ResponseModel

__all__ = [
    "RESPONSE_COLUMNS",
    "Base",
    "DatabaseManager",
    "ResponseModel",
    "create_database_manager",
]
