"""Persistent storage for questionnaire responses."""

from datetime import date

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from questionnaire_api.storage.models import ResponseModel


def _newest_first(query):
    # submitted_at has one-second resolution; id breaks ties
    return query.order_by(ResponseModel.submitted_at.desc(), ResponseModel.id.desc())


class ResponsesStore:
    """Database operations for questionnaire responses.

    Every method issues a single parameterized statement except
    ``create`` and ``delete``, which need a follow-up read.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        first_name: str,
        email: str,
        answers: list[str | None],
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ResponseModel:
        """Insert a new response row.

        Args:
            first_name: Respondent's first name
            email: Respondent's email address
            answers: Up to five free-text answers, in question order
            ip_address: Originating client address
            user_agent: Originating client User-Agent header

        Returns:
            Created ResponseModel with id and submitted_at populated
        """
        if len(answers) > 5:
            raise ValueError("At most five answers can be stored")
        padded = list(answers) + [None] * (5 - len(answers))

        response = ResponseModel(
            first_name=first_name,
            email=email,
            question_1=padded[0],
            question_2=padded[1],
            question_3=padded[2],
            question_4=padded[3],
            question_5=padded[4],
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._session.add(response)
        await self._session.flush()
        # submitted_at is filled in by the database
        await self._session.refresh(response)
        return response

    async def get(self, response_id: int) -> ResponseModel | None:
        """Get a response by ID, or None if it does not exist."""
        result = await self._session.execute(
            select(ResponseModel).where(ResponseModel.id == response_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[ResponseModel]:
        """List every response, most recent first."""
        result = await self._session.execute(_newest_first(select(ResponseModel)))
        return list(result.scalars().all())

    async def search(self, query: str) -> list[ResponseModel]:
        """Case-insensitive substring match on first name or email.

        LIKE wildcards in ``query`` are matched literally.
        """
        statement = select(ResponseModel).where(
            or_(
                ResponseModel.first_name.icontains(query, autoescape=True),
                ResponseModel.email.icontains(query, autoescape=True),
            )
        )
        result = await self._session.execute(_newest_first(statement))
        return list(result.scalars().all())

    async def delete(self, response_id: int) -> bool:
        """Delete a response.

        Returns:
            True if deleted, False if not found
        """
        response = await self.get(response_id)
        if response is None:
            return False

        await self._session.delete(response)
        await self._session.flush()
        return True

    async def count_total(self) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(ResponseModel)
        )
        return result.scalar_one()

    async def count_today(self) -> int:
        """Count responses whose submission date is the database's current date."""
        result = await self._session.execute(
            select(func.count())
            .select_from(ResponseModel)
            .where(func.date(ResponseModel.submitted_at) == func.date("now"))
        )
        return result.scalar_one()

    async def count_unique_emails(self) -> int:
        result = await self._session.execute(
            select(func.count(distinct(ResponseModel.email)))
        )
        return result.scalar_one()

    async def daily_counts(self, days: int = 30) -> list[tuple[date, int]]:
        """Per-day submission counts for the last ``days`` calendar days.

        Days without submissions are omitted. Newest day first.
        """
        day = func.date(ResponseModel.submitted_at)
        result = await self._session.execute(
            select(day.label("day"), func.count().label("count"))
            .where(day >= func.date("now", f"-{days - 1} days"))
            .group_by(day)
            .order_by(day.desc())
        )
        return [
            (
                row.day if isinstance(row.day, date) else date.fromisoformat(row.day),
                row.count,
            )
            for row in result.all()
        ]
