"""SQLAlchemy ORM models for the Questionnaire API."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


# -----------------------------------------------------------------------------
# Questionnaire Responses
# -----------------------------------------------------------------------------


class ResponseModel(Base):
    """One submitted questionnaire entry."""

    __tablename__ = "responses"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    question_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_3: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_4: Mapped[str | None] = mapped_column(Text, nullable=True)
    question_5: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )
    ip_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)


# Persisted columns in table order; shared by the JSON and CSV serializers
RESPONSE_COLUMNS: tuple[str, ...] = (
    "id",
    "first_name",
    "email",
    "question_1",
    "question_2",
    "question_3",
    "question_4",
    "question_5",
    "submitted_at",
    "ip_address",
    "user_agent",
)
