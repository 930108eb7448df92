"""Questionnaire API router - /api endpoints."""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from questionnaire_api.core.responses import QuestionnaireService
from questionnaire_api.core.responses.export import format_timestamp

router = APIRouter(prefix="/api", tags=["responses"])

CSV_FILENAME = "responses.csv"

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


# -----------------------------------------------------------------------------
# Request/Response Models
# -----------------------------------------------------------------------------


class SubmitQuestionnaireRequest(BaseModel):
    """Request body for POST /api/submit-questionnaire."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName", description="Respondent's first name")
    email: str = Field(description="Respondent's email address")
    question1: str | None = Field(default=None)
    question2: str | None = Field(default=None)
    question3: str | None = Field(default=None)
    question4: str | None = Field(default=None)
    question5: str | None = Field(default=None)

    @field_validator("first_name", "email")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @property
    def answers(self) -> list[str | None]:
        return [
            self.question1,
            self.question2,
            self.question3,
            self.question4,
            self.question5,
        ]


class ResponseRecord(BaseModel):
    """A stored questionnaire response as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    email: str
    question_1: str | None = None
    question_2: str | None = None
    question_3: str | None = None
    question_4: str | None = None
    question_5: str | None = None
    submitted_at: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @field_validator("submitted_at", mode="before")
    @classmethod
    def format_submitted_at(cls, value: datetime | str | None) -> str | None:
        if isinstance(value, datetime):
            return format_timestamp(value)
        return value


class SubmitResponse(BaseModel):
    success: bool = True
    responseId: int
    message: str = "Response saved successfully"


class ListResponsesResponse(BaseModel):
    success: bool = True
    count: int
    responses: list[ResponseRecord]


class GetResponseResponse(BaseModel):
    success: bool = True
    response: ResponseRecord


class DailyStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    count: int


class StatsPayload(BaseModel):
    total: int
    today: int
    uniqueEmails: int
    daily: list[DailyStats] | None = None


class StatsResponse(BaseModel):
    success: bool = True
    stats: StatsPayload


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Response deleted successfully"


class SearchResponse(BaseModel):
    success: bool = True
    count: int
    results: list[ResponseRecord]


# -----------------------------------------------------------------------------
# Dependency Injection
# -----------------------------------------------------------------------------


def get_questionnaire_service(request: Request) -> QuestionnaireService:
    """Get the QuestionnaireService created during app startup."""
    return request.app.state.questionnaire_service


def get_client_ip(request: Request) -> str | None:
    """Originating address: first X-Forwarded-For hop, else the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else None


async def read_submission(request: Request) -> SubmitQuestionnaireRequest:
    """Parse a submission sent as JSON or as an HTML form post."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        data = dict(await request.form())
    else:
        try:
            data = await request.json()
        except ValueError:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error"}]
            )

    try:
        return SubmitQuestionnaireRequest.model_validate(data)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e


ServiceDep = Annotated[QuestionnaireService, Depends(get_questionnaire_service)]
ClientIpDep = Annotated[str | None, Depends(get_client_ip)]
SubmissionDep = Annotated[SubmitQuestionnaireRequest, Depends(read_submission)]


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/submit-questionnaire")
async def submit_questionnaire(
    body: SubmissionDep,
    request: Request,
    service: ServiceDep,
    ip_address: ClientIpDep,
) -> SubmitResponse:
    """Store a questionnaire submission."""
    response = await service.submit(
        first_name=body.first_name,
        email=body.email,
        answers=body.answers,
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )
    return SubmitResponse(responseId=response.id)


@router.get("/responses")
async def list_responses(service: ServiceDep) -> ListResponsesResponse:
    """List all responses, most recent first."""
    responses = await service.list_responses()
    return ListResponsesResponse(
        count=len(responses),
        responses=[ResponseRecord.model_validate(r) for r in responses],
    )


@router.get("/responses/{response_id}")
async def get_response(response_id: str, service: ServiceDep) -> GetResponseResponse:
    """Retrieve one response."""
    response = await service.get_response(response_id)
    return GetResponseResponse(response=ResponseRecord.model_validate(response))


@router.delete("/responses/{response_id}")
async def delete_response(response_id: str, service: ServiceDep) -> DeleteResponse:
    """Delete one response."""
    await service.delete_response(response_id)
    return DeleteResponse()


@router.get("/stats", response_model_exclude_none=True)
async def get_stats(service: ServiceDep, daily: bool = False) -> StatsResponse:
    """Totals; ``?daily=true`` adds a per-day breakdown of the last 30 days."""
    stats = await service.get_stats(include_daily=daily)
    return StatsResponse(
        stats=StatsPayload(
            total=stats.total,
            today=stats.today,
            uniqueEmails=stats.unique_emails,
            daily=[DailyStats(day=d.day, count=d.count) for d in stats.daily]
            if stats.daily is not None
            else None,
        )
    )


@router.get("/search")
async def search_responses(
    service: ServiceDep, query: str | None = None
) -> SearchResponse:
    """Search responses by first name or email."""
    results = await service.search(query)
    return SearchResponse(
        count=len(results),
        results=[ResponseRecord.model_validate(r) for r in results],
    )


@router.get("/export/csv")
async def export_csv(service: ServiceDep) -> Response:
    """Download every response as a CSV attachment."""
    content = await service.export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )
