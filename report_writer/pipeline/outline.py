"""OutlineGenerator — turns report requirements into a title and heading structure."""
from typing import Iterator, Optional, Tuple

from report_writer.config.settings import Config, get_config
from report_writer.config.types import OutlineRequest, OutlineResult, PromptType
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


class OutlineGenerator:
    """Composes the prompt store, renderer and completion client for outlines.

    No retry happens here; a failed generation is resubmitted by the caller.
    """

    def __init__(self, store: PromptStore, client, config: Optional[Config] = None):
        self.store = store
        self.client = client
        self._config = config

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def build_prompt(self, request: OutlineRequest) -> Tuple[str, str]:
        """Return the (system, user) prompt pair for *request*."""
        template = self.store.get_by_type(PromptType.OUTLINE)
        if template is not None:
            content = template.content
        else:
            logger.warning("No outline template stored; using built-in default")
            content = default_template_content(PromptType.OUTLINE)

        user = render(content, {
            "purpose": request.purpose,
            "topic": request.topic,
            "audience": request.audience.label,
            "content": request.content,
            "tone": request.tone.label,
        })
        return default_system_prompt(PromptType.OUTLINE), user

    def options(self, streaming: bool = False) -> CompletionOptions:
        llm = self.config.llm
        return CompletionOptions(
            model=llm.models.outline,
            temperature=llm.temperature.outline,
            max_tokens=llm.max_tokens.outline,
            timeout=llm.timeout.stream if streaming else llm.timeout.outline,
            json_mode=True,
        )

    def generate(self, request: OutlineRequest) -> OutlineResult:
        system, user = self.build_prompt(request)
        logger.info("Generating outline for topic %r", request.topic[:80])
        data = self.client.complete_json(system, user, self.options())
        outline = validate_result(OutlineResult, data)
        logger.info("Outline generated with %d headings", len(outline.structure))
        return outline

    def stream(self, request: OutlineRequest) -> Iterator[str]:
        """Raw text fragments of the outline as the model writes them."""
        system, user = self.build_prompt(request)
        logger.info("Streaming outline for topic %r", request.topic[:80])
        return self.client.complete_stream(system, user, self.options(streaming=True))

    def parse(self, text: str) -> OutlineResult:
        return parse_result(OutlineResult, text)
