"""Questionnaire responses core logic."""

from questionnaire_api.core.responses.service import (
    QuestionnaireService,
    ResponseStats,
)
from questionnaire_api.core.responses.store import ResponsesStore

__all__ = [
    "QuestionnaireService",
    "ResponseStats",
    "ResponsesStore",
]
