"""Structural validation of model output against the result schemas."""
import json
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from report_writer.config.settings import get_config
from report_writer.config.logger import get_logger
from report_writer.infra.errors import ResponseParseError
from report_writer.infra.llm import parse_json_payload

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def validate_result(model: Type[M], data: Any, raw: str = "") -> M:
    """Validate parsed JSON; schema failures become ResponseParseError."""
    if not raw:
        raw = json.dumps(data, ensure_ascii=False, default=str)
    if not isinstance(data, dict):
        logger.warning(
            "%s payload is a %s, not an object: %r",
            model.__name__, type(data).__name__, raw[:get_config().logging.raw_payload_chars],
        )
        raise ResponseParseError(raw=raw, detail="top-level JSON value is not an object")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "%s payload failed validation (%d errors): %r",
            model.__name__, e.error_count(), raw[:get_config().logging.raw_payload_chars],
        )
        raise ResponseParseError(raw=raw, detail=str(e)) from e


def parse_result(model: Type[M], text: str) -> M:
    """Parse raw completion text and validate it in one step."""
    return validate_result(model, parse_json_payload(text), raw=text)
