"""ReportGenerator — expands an approved outline into a full report."""
import json
from typing import Iterator, Optional, Tuple

from report_writer.config.settings import Config, get_config
from report_writer.config.types import PromptType, ReportRequest, ReportResult
from report_writer.config.logger import get_logger
from report_writer.infra.llm import CompletionOptions
from report_writer.infra.prompt_store import (
    PromptStore,
    default_system_prompt,
    default_template_content,
)
from report_writer.pipeline.render import render
from report_writer.pipeline.validation import parse_result, validate_result

logger = get_logger(__name__)


class ReportGenerator:
    """Composes the prompt store, renderer and completion client for reports.

    Heading order, the Executive Summary and the References section are
    requested in the prompt text only; the result is checked for shape,
    not for those rules.
    """

    def __init__(self, store: PromptStore, client, config: Optional[Config] = None):
        self.store = store
        self.client = client
        self._config = config

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def build_prompt(self, request: ReportRequest) -> Tuple[str, str]:
        template = self.store.get_by_type(PromptType.REPORT)
        if template is not None:
            content = template.content
        else:
            logger.warning("No report template stored; using built-in default")
            content = default_template_content(PromptType.REPORT)

        title_structure = json.dumps(
            request.title_structure.to_api(), ensure_ascii=False
        )
        user = render(content, {
            "titleStructure": title_structure,
            "audience": request.audience.label,
            "content": request.content,
            "tone": request.tone.label,
            # older templates name the tone "style"
            "style": request.tone.label,
        })
        return default_system_prompt(PromptType.REPORT), user

    def options(self, streaming: bool = False) -> CompletionOptions:
        llm = self.config.llm
        return CompletionOptions(
            model=llm.models.report,
            temperature=llm.temperature.report,
            max_tokens=llm.max_tokens.report,
            timeout=llm.timeout.stream if streaming else llm.timeout.report,
            json_mode=True,
        )

    def generate(self, request: ReportRequest) -> ReportResult:
        system, user = self.build_prompt(request)
        logger.info(
            "Generating report %r (%d outline headings)",
            request.title_structure.title[:80], len(request.title_structure.structure),
        )
        data = self.client.complete_json(system, user, self.options())
        report = validate_result(ReportResult, data)
        logger.info("Report generated with %d items", len(report.report))
        return report

    def stream(self, request: ReportRequest) -> Iterator[str]:
        system, user = self.build_prompt(request)
        logger.info("Streaming report %r", request.title_structure.title[:80])
        return self.client.complete_stream(system, user, self.options(streaming=True))

    def parse(self, text: str) -> ReportResult:
        return parse_result(ReportResult, text)
