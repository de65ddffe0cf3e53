"""
ReportService — facade for the outline → report workflow and prompt admin.

Single API for the web and CLI adapters. Owns the prompt store and the
completion client and hands them to the generators explicitly.
"""
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .config.settings import Config, get_config
from .config.types import (
    OutlineRequest,
    OutlineResult,
    PromptTemplate,
    PromptUpdate,
    ReportRequest,
    ReportResult,
)
from .config.logger import get_logger
from .infra.errors import InputValidationError, PromptNotFoundError
from .infra.llm import get_llm_client
from .infra.prompt_store import PromptStore, build_prompt_store
from .pipeline.export import ReportExporter
from .pipeline.outline import OutlineGenerator
from .pipeline.relay import StreamRelay
from .pipeline.report import ReportGenerator

logger = get_logger(__name__)

OUTLINE_REQUIRED = ("purpose", "topic", "audience", "content")
REPORT_REQUIRED = ("titleStructure", "audience", "content", "tone")


def _missing_fields(payload: Mapping[str, Any], required: Tuple[str, ...]) -> List[str]:
    missing = []
    for name in required:
        value = payload.get(name)
        if value is None or (isinstance(value, (str, dict, list)) and not value):
            missing.append(name)
        elif isinstance(value, str) and not value.strip():
            missing.append(name)
    return missing


def _describe(e: ValidationError) -> str:
    first = e.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ())) or "request"
    return f"Invalid value for {where}: {first.get('msg', 'invalid')}"


def parse_outline_request(payload: Union[Mapping[str, Any], OutlineRequest]) -> OutlineRequest:
    """Validate an outline form submission before any remote call."""
    if isinstance(payload, OutlineRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InputValidationError("Request body must be a JSON object.")
    missing = _missing_fields(payload, OUTLINE_REQUIRED)
    if missing:
        raise InputValidationError("Please fill in all required fields.", fields=missing)
    data = {k: payload[k] for k in OUTLINE_REQUIRED}
    if payload.get("tone"):
        data["tone"] = payload["tone"]
    try:
        return OutlineRequest(**data)
    except ValidationError as e:
        raise InputValidationError(_describe(e)) from e


def parse_report_request(payload: Union[Mapping[str, Any], ReportRequest]) -> ReportRequest:
    """Validate a report request, including the shape of its outline."""
    if isinstance(payload, ReportRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InputValidationError("Request body must be a JSON object.")
    missing = _missing_fields(payload, REPORT_REQUIRED)
    if missing:
        raise InputValidationError("Required data is missing.", fields=missing)
    try:
        return ReportRequest(**{k: payload[k] for k in REPORT_REQUIRED})
    except ValidationError as e:
        raise InputValidationError(_describe(e)) from e


def parse_report_result(payload: Union[Mapping[str, Any], ReportResult]) -> ReportResult:
    if isinstance(payload, ReportResult):
        return payload
    try:
        return ReportResult.model_validate(payload)
    except ValidationError as e:
        raise InputValidationError(_describe(e)) from e


class ReportService:
    """Facade over prompt store, generators, stream relay and exporter."""

    def __init__(self, store: Optional[PromptStore] = None, client=None, config: Optional[Config] = None):
        self._config = config
        self.store = store if store is not None else build_prompt_store()
        self._client = client
        self._client_lock = threading.Lock()
        self.exporter = ReportExporter(config)

    @property
    def config(self) -> Config:
        return self._config or get_config()

    @property
    def client(self):
        # Built on first use so the app starts without an API key
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = get_llm_client()
        return self._client

    @property
    def outlines(self) -> OutlineGenerator:
        return OutlineGenerator(self.store, self.client, self._config)

    @property
    def reports(self) -> ReportGenerator:
        return ReportGenerator(self.store, self.client, self._config)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_outline(self, payload) -> OutlineResult:
        request = parse_outline_request(payload)
        return self.outlines.generate(request)

    def generate_report(self, payload) -> ReportResult:
        request = parse_report_request(payload)
        return self.reports.generate(request)

    def stream_outline(self, payload) -> StreamRelay:
        """Validate now; open the upstream stream when the relay is consumed."""
        request = parse_outline_request(payload)
        generator = self.outlines
        return StreamRelay(
            lambda: generator.stream(request),
            finalize=generator.parse,
            label="outline",
        )

    def stream_report(self, payload) -> StreamRelay:
        request = parse_report_request(payload)
        generator = self.reports
        return StreamRelay(
            lambda: generator.stream(request),
            finalize=generator.parse,
            label="report",
        )

    # ------------------------------------------------------------------
    # Prompt administration
    # ------------------------------------------------------------------

    def list_prompts(self) -> List[PromptTemplate]:
        return self.store.get_all()

    def get_prompt(self, prompt_id: str) -> PromptTemplate:
        template = self.store.get_by_id(prompt_id)
        if template is None:
            raise PromptNotFoundError(prompt_id)
        return template

    def update_prompt(self, prompt_id: str, fields: Union[Dict[str, Any], PromptUpdate]) -> PromptTemplate:
        if isinstance(fields, Mapping):
            try:
                fields = PromptUpdate(**{
                    k: v for k, v in fields.items() if k in PromptUpdate.model_fields
                })
            except ValidationError as e:
                raise InputValidationError(_describe(e)) from e
        if not self.store.update(prompt_id, fields):
            raise PromptNotFoundError(prompt_id)
        return self.get_prompt(prompt_id)

    def reset_prompts(self) -> List[PromptTemplate]:
        self.store.reset()
        return self.store.get_all()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_report(self, payload, fmt: str) -> Tuple[str, str, str]:
        report = parse_report_result(payload)
        try:
            return self.exporter.export(report, fmt)
        except ValueError as e:
            raise InputValidationError(str(e)) from e


# Global service instance
_service: Optional[ReportService] = None
_service_lock = threading.Lock()


def get_service() -> ReportService:
    """Get the process-wide ReportService"""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = ReportService()
    return _service


def set_service(service: Optional[ReportService]) -> None:
    """Replace (or clear, with None) the process-wide ReportService."""
    global _service
    with _service_lock:
        _service = service
