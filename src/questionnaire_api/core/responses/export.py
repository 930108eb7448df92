"""CSV export of questionnaire responses."""

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from questionnaire_api.storage.models import RESPONSE_COLUMNS, ResponseModel

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

CSV_HEADER: tuple[str, ...] = (
    "ID",
    "First Name",
    "Email",
    "Question 1",
    "Question 2",
    "Question 3",
    "Question 4",
    "Question 5",
    "Submitted At",
    "IP Address",
    "User Agent",
)


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp the way SQLite stores CURRENT_TIMESTAMP."""
    if value is None:
        return None
    return value.strftime(TIMESTAMP_FORMAT)


def csv_values(response: ResponseModel) -> list[str]:
    """Column values of one row as CSV cells; NULL becomes an empty string."""
    values = []
    for column in RESPONSE_COLUMNS:
        value = getattr(response, column)
        if isinstance(value, datetime):
            value = format_timestamp(value)
        values.append("" if value is None else str(value))
    return values


def render_responses_csv(responses: Iterable[ResponseModel]) -> str:
    """Serialize responses to a CSV document held in memory.

    The header row is left unquoted; every data cell is double-quoted.
    """
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADER)

    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for response in responses:
        writer.writerow(csv_values(response))

    return buffer.getvalue()
