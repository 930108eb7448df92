"""FastAPI application entrypoint for the Questionnaire API."""

from contextlib import asynccontextmanager
from typing import Any

import yaml
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from questionnaire_api import __version__
from questionnaire_api.api import dashboard_router, responses_router
from questionnaire_api.config import Settings, StackConfig, settings
from questionnaire_api.core.errors import QuestionnaireError
from questionnaire_api.core.responses import QuestionnaireService
from questionnaire_api.observability.logging import (
    RequestIDMiddleware,
    configure_logging,
    get_logger,
)
from questionnaire_api.observability.metrics import (
    MetricsMiddleware,
    metrics_endpoint,
    setup_metrics,
)
from questionnaire_api.storage.database import DatabaseManager, create_database_manager

logger = get_logger(__name__)

SERVICE_NAME = "Questionnaire API"


def load_config(settings: Settings) -> StackConfig:
    """Load configuration from file or environment."""
    if settings.config_file and settings.config_file.exists():
        logger.info("Loading config", path=str(settings.config_file))
        with open(settings.config_file) as f:
            config_dict = yaml.safe_load(f) or {}
        return StackConfig.from_dict(config_dict)
    else:
        return settings.to_stack_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Opens the database on startup and closes it on shutdown. A failure to
    create the table is logged and the service keeps running degraded.
    """
    config: StackConfig = app.state.config
    configure_logging(
        level=config.logging.level,
        json_logs=config.logging.json_logs,
        enable_access_logs=config.logging.enable_access_logs,
    )
    logger.info("Starting Questionnaire API...", port=config.server.port)

    db_manager = create_database_manager(config.storage)
    try:
        await db_manager.create_tables()
        logger.info("Database table ready", db_path=config.storage.db_path)
    except SQLAlchemyError as e:
        logger.error(
            "Database initialization failed, continuing degraded",
            db_path=config.storage.db_path,
            error=str(e),
        )

    app.state.db_manager = db_manager
    app.state.questionnaire_service = QuestionnaireService(db_manager)

    if config.monitoring.enable_metrics:
        setup_metrics("questionnaire-api", __version__)

    logger.info("Questionnaire API started successfully")

    yield

    logger.info("Shutting down Questionnaire API...")
    await db_manager.close()
    logger.info("Database connection closed")


def _error_body(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


def add_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto the {success, message} error body."""

    @app.exception_handler(QuestionnaireError)
    async def questionnaire_error_handler(
        request: Request, exc: QuestionnaireError
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"] if part != "body")
            problems.append(f"{location}: {error['msg']}" if location else error["msg"])
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request: " + "; ".join(problems)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail
        if exc.status_code == 404:
            message = f"Endpoint {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(message)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error(
            "Unhandled exception",
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def create_app(config: StackConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = load_config(settings)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Collects questionnaire submissions and serves them back",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    # Last added runs first
    if config.monitoring.enable_metrics:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(responses_router)
    app.include_router(dashboard_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "success": True,
            "message": f"{SERVICE_NAME} Server",
            "version": __version__,
            "endpoints": {
                "submit": "POST /api/submit-questionnaire",
                "getAll": "GET /api/responses",
                "getOne": "GET /api/responses/:id",
                "stats": "GET /api/stats",
                "delete": "DELETE /api/responses/:id",
                "search": "GET /api/search?query=name",
                "export": "GET /api/export/csv",
                "admin": "GET /admin",
            },
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        db_manager: DatabaseManager = request.app.state.db_manager
        database_ok = await db_manager.health_check()
        return {
            "status": "healthy" if database_ok else "degraded",
            "database": "ok" if database_ok else "unavailable",
        }

    if config.monitoring.enable_metrics:
        app.get("/metrics", include_in_schema=False)(metrics_endpoint)

    add_exception_handlers(app)

    # Public assets go last so API routes take precedence
    if config.dashboard.static_dir.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=config.dashboard.static_dir, html=True),
            name="public",
        )

    return app


# Create the app instance
app = create_app()


def main():
    """Run the server."""
    import uvicorn

    config = load_config(settings)
    uvicorn.run(
        "questionnaire_api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
