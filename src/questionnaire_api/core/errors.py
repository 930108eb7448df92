"""Error taxonomy shared by the service layer and the HTTP handlers."""


class QuestionnaireError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuestionnaireError):
    """Required input missing or malformed. Nothing was written."""

    status_code = 400


class NotFoundError(QuestionnaireError):
    """Identifier does not resolve to a stored response."""

    status_code = 404


class StoreError(QuestionnaireError):
    """The database failed to read or write."""

    status_code = 500
