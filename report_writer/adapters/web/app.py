"""
FastAPI application factory for the AI Report Writer API.
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from report_writer.config.logger import get_logger
from report_writer.infra.errors import ReportWriterError
from report_writer.service import ReportService, set_service

from .routes import router

logger = get_logger(__name__)


async def _report_writer_error(request: Request, exc: ReportWriterError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"error": exc.user_message}
    fields = getattr(exc, "fields", None)
    if fields:
        body["fields"] = fields
    return JSONResponse(body, status_code=exc.status_code)


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": ReportWriterError.default_message}, status_code=500)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(service: Optional[ReportService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing *service* installs it as the process-wide ReportService, which
    is how tests inject a prompt store and a fake completion client.
    """
    if service is not None:
        set_service(service)

    app = FastAPI(title="AI Report Writer", docs_url="/docs")
    app.add_exception_handler(ReportWriterError, _report_writer_error)
    app.add_exception_handler(Exception, _unexpected_error)
    app.include_router(router)

    return app
