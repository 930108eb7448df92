"""Admin dashboard router."""

import html
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse

from questionnaire_api.config import DashboardConfig
from questionnaire_api.observability.logging import get_logger

router = APIRouter(tags=["dashboard"])

logger = get_logger(__name__)


def _missing_dashboard_page(admin_page: Path) -> str:
    """Diagnostic page listing what is actually beside the expected asset."""
    directory = admin_page.parent
    try:
        entries = sorted(p.name for p in directory.iterdir())
    except OSError:
        entries = []

    items = "\n".join(f"    <li>{html.escape(name)}</li>" for name in entries)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head><title>Admin dashboard not found</title></head>\n<body>\n"
        "  <h1>Admin dashboard not found</h1>\n"
        f"  <p>Expected file: <code>{html.escape(str(admin_page))}</code></p>\n"
        f"  <p>Files in <code>{html.escape(str(directory))}</code>:</p>\n"
        f"  <ul>\n{items}\n  </ul>\n"
        "</body>\n</html>\n"
    )


@router.get("/admin", include_in_schema=False)
async def admin_dashboard(request: Request):
    """Serve the admin dashboard HTML file."""
    dashboard: DashboardConfig = request.app.state.config.dashboard
    admin_page = dashboard.admin_page

    if admin_page.is_file():
        return FileResponse(admin_page, media_type="text/html")

    logger.warning("Admin dashboard asset missing", path=str(admin_page))
    return HTMLResponse(_missing_dashboard_page(admin_page), status_code=404)
