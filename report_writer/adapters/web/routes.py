"""
Route handlers for the AI Report Writer API.

Covers:
- Outline and report generation (JSON or server-sent events)
- Prompt template administration
- Report export and service health/cost endpoints
"""
import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.concurrency import run_in_threadpool

from report_writer.config.logger import get_logger
from report_writer.infra.errors import InputValidationError
from report_writer.infra.llm import get_token_tracker
from report_writer.pipeline.relay import SSE_MEDIA_TYPE, StreamRelay
from report_writer.service import ReportService, get_service

logger = get_logger(__name__)

router = APIRouter()

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


# =========================================================================
# Helpers
# =========================================================================

def _service() -> ReportService:
    return get_service()


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputValidationError("Request body must be valid JSON.") from e


def _wants_stream(request: Request) -> bool:
    flag = request.query_params.get("stream", "").lower()
    if flag in ("1", "true", "yes", "on"):
        return True
    return SSE_MEDIA_TYPE in request.headers.get("accept", "")


def _sse_response(relay: StreamRelay) -> StreamingResponse:
    return StreamingResponse(relay.sse(), media_type=SSE_MEDIA_TYPE, headers=_SSE_HEADERS)


# =========================================================================
# Generation
# =========================================================================

@router.post("/api/generate-outline")
async def api_generate_outline(request: Request):
    body = await _json_body(request)
    service = _service()

    if _wants_stream(request):
        return _sse_response(service.stream_outline(body))

    outline = await run_in_threadpool(service.generate_outline, body)
    return JSONResponse(outline.to_api())


@router.post("/api/generate-report")
async def api_generate_report(request: Request):
    body = await _json_body(request)
    service = _service()

    if _wants_stream(request):
        return _sse_response(service.stream_report(body))

    logger.info("Report generation requested")
    report = await run_in_threadpool(service.generate_report, body)
    return JSONResponse(report.to_api())


# =========================================================================
# Prompt administration
# =========================================================================

@router.get("/api/prompts")
async def api_list_prompts():
    return [t.to_api() for t in _service().list_prompts()]


@router.post("/api/prompts")
@router.post("/api/prompts/reset")
async def api_reset_prompts():
    _service().reset_prompts()
    return {"message": "Prompt templates have been reset."}


@router.get("/api/prompts/{prompt_id}")
async def api_get_prompt(prompt_id: str):
    return _service().get_prompt(prompt_id).to_api()


@router.put("/api/prompts/{prompt_id}")
async def api_update_prompt(prompt_id: str, request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        raise InputValidationError("Request body must be a JSON object.")
    template = _service().update_prompt(prompt_id, body)
    return {"message": "Prompt template updated.", "prompt": template.to_api()}


# =========================================================================
# Export + service endpoints
# =========================================================================

@router.post("/api/export/{fmt}")
async def api_export_report(fmt: str, request: Request):
    body = await _json_body(request)
    content, media_type, filename = _service().export_report(body, fmt)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/costs")
async def api_costs():
    return get_token_tracker().get_stats()


@router.get("/health")
async def health():
    return {"status": "ok"}
