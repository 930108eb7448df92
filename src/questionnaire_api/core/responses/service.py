"""Questionnaire service - validation and storage orchestration."""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from questionnaire_api.core.errors import NotFoundError, StoreError, ValidationError
from questionnaire_api.core.responses.export import render_responses_csv
from questionnaire_api.core.responses.store import ResponsesStore
from questionnaire_api.observability.logging import get_logger
from questionnaire_api.observability.metrics import metrics_registry
from questionnaire_api.storage.database import DatabaseManager
from questionnaire_api.storage.models import ResponseModel

logger = get_logger(__name__)

DAILY_BREAKDOWN_DAYS = 30

# Largest value an SQLite INTEGER primary key can hold
MAX_RESPONSE_ID = 2**63 - 1


class DailyCount(BaseModel):
    """Submissions received on one calendar day."""

    day: date
    count: int


class ResponseStats(BaseModel):
    """Aggregates over the responses table."""

    total: int
    today: int
    unique_emails: int
    daily: list[DailyCount] | None = None


def parse_response_id(raw_id: str | int) -> int:
    """Turn a path identifier into a primary key.

    Anything that is not a base-10 integer within SQLite's INTEGER range
    cannot name a row.
    """
    if isinstance(raw_id, int):
        key = raw_id
    else:
        candidate = raw_id.strip()
        if not (candidate.isascii() and candidate.isdigit()):
            raise NotFoundError("Response not found")
        key = int(candidate)
    if not 0 <= key <= MAX_RESPONSE_ID:
        raise NotFoundError("Response not found")
    return key


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class QuestionnaireService:
    """Business operations over stored questionnaire responses.

    Each operation opens its own session; statements within one call are
    committed together but different calls share no transaction.
    """

    def __init__(self, db_manager: DatabaseManager):
        self._db_manager = db_manager

    @asynccontextmanager
    async def _store(
        self, operation: str, failure_message: str
    ) -> AsyncIterator[ResponsesStore]:
        """Open a session-scoped store and translate database failures."""
        start = time.time()
        status = "success"
        try:
            async with self._db_manager.session() as session:
                yield ResponsesStore(session)
        except SQLAlchemyError as e:
            status = "failure"
            logger.error(
                "Store operation failed", operation=operation, error=str(e)
            )
            raise StoreError(failure_message) from e
        finally:
            metrics_registry.record_database_operation(
                operation=operation,
                table="responses",
                status=status,
                duration=time.time() - start,
            )

    async def submit(
        self,
        first_name: str | None,
        email: str | None,
        answers: list[str | None] | None = None,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ResponseModel:
        """Store a new questionnaire submission.

        Args:
            first_name: Required, must not be blank
            email: Required, must not be blank
            answers: Up to five optional answers; blank answers are stored as NULL
            ip_address: Caller address captured from the request
            user_agent: Caller User-Agent captured from the request

        Returns:
            The stored ResponseModel

        Raises:
            ValidationError: first_name or email missing
            StoreError: the insert failed
        """
        if _blank(first_name) or _blank(email):
            metrics_registry.record_submission("rejected")
            raise ValidationError("First name and email are required")

        answers = [None if _blank(a) else a for a in (answers or [])]
        if len(answers) > 5:
            raise ValidationError("At most five answers can be submitted")

        try:
            async with self._store("insert", "Failed to save response") as store:
                response = await store.create(
                    first_name=first_name.strip(),
                    email=email.strip(),
                    answers=answers,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
        except StoreError:
            metrics_registry.record_submission("failed")
            raise

        metrics_registry.record_submission("accepted")
        logger.info("New response saved", response_id=response.id)
        return response

    async def list_responses(self) -> list[ResponseModel]:
        """All responses, most recent first."""
        async with self._store("select", "Failed to fetch responses") as store:
            return await store.list_all()

    async def get_response(self, response_id: str | int) -> ResponseModel:
        """Fetch one response.

        Raises:
            NotFoundError: no row with this id
        """
        key = parse_response_id(response_id)
        async with self._store("select", "Failed to fetch response") as store:
            response = await store.get(key)
        if response is None:
            raise NotFoundError("Response not found")
        return response

    async def get_stats(self, include_daily: bool = False) -> ResponseStats:
        """Compute totals in one session.

        A failure in any aggregate fails the whole call.
        """
        async with self._store("aggregate", "Failed to compute statistics") as store:
            total = await store.count_total()
            today = await store.count_today()
            unique_emails = await store.count_unique_emails()
            daily = None
            if include_daily:
                daily = [
                    DailyCount(day=day, count=count)
                    for day, count in await store.daily_counts(DAILY_BREAKDOWN_DAYS)
                ]

        return ResponseStats(
            total=total, today=today, unique_emails=unique_emails, daily=daily
        )

    async def delete_response(self, response_id: str | int) -> None:
        """Hard-delete one response.

        Raises:
            NotFoundError: no row with this id (including already deleted)
        """
        key = parse_response_id(response_id)
        async with self._store("delete", "Failed to delete response") as store:
            deleted = await store.delete(key)
        if not deleted:
            raise NotFoundError("Response not found")
        logger.info("Response deleted", response_id=key)

    async def search(self, query: str | None) -> list[ResponseModel]:
        """Responses whose first name or email contains ``query``.

        Raises:
            ValidationError: query missing or blank
        """
        if _blank(query):
            raise ValidationError("Search query is required")
        async with self._store("select", "Search failed") as store:
            return await store.search(query.strip())

    async def export_csv(self) -> str:
        """Render every response, most recent first, as a CSV document."""
        async with self._store("select", "Export failed") as store:
            responses = await store.list_all()
        return render_responses_csv(responses)
