"""
Completion client for AI Report Writer.
Wraps the OpenAI chat-completions API in a JSON mode call and a streaming
call, translating SDK failures into the report writer error taxonomy.
"""
import json
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import httpx
import openai

from report_writer.config.settings import get_config, get_env_settings
from report_writer.config.logger import get_logger
from report_writer.infra.errors import (
    ReportWriterError,
    UpstreamTimeoutError,
    UpstreamRateLimitError,
    UpstreamTransportError,
    EmptyResponseError,
    ResponseParseError,
)

logger = get_logger(__name__)


# =============================================================================
# MODEL PRICING (per 1M tokens: input / output USD)
# =============================================================================

MODEL_PRICING: Dict[str, Dict[str, float]] = {
    "gpt-4o-mini":   {"input": 0.15,  "output": 0.60},
    "gpt-4o":        {"input": 2.50,  "output": 10.00},
    "gpt-4.1-nano":  {"input": 0.10,  "output": 0.40},
    "gpt-4.1-mini":  {"input": 0.40,  "output": 1.60},
    "gpt-4.1":       {"input": 2.00,  "output": 8.00},
}


# =============================================================================
# TOKEN TRACKER
# =============================================================================

class TokenTracker:
    """Thread-safe, in-memory token usage and cost tracker."""

    def __init__(self, pricing: Optional[Dict[str, Dict[str, float]]] = None):
        self._lock = threading.Lock()
        self._pricing = pricing or MODEL_PRICING
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self._cost = 0.0
        self._calls = 0

    def record(self, model: str, prompt_tokens: int, completion_tokens: int):
        cost = self._cost_for_model(model, prompt_tokens, completion_tokens)
        with self._lock:
            self._prompt_tokens += prompt_tokens
            self._completion_tokens += completion_tokens
            self._cost += cost
            self._calls += 1

    def get_stats(self) -> Dict:
        with self._lock:
            return {
                "prompt_tokens": self._prompt_tokens,
                "completion_tokens": self._completion_tokens,
                "total_tokens": self._prompt_tokens + self._completion_tokens,
                "total_cost": round(self._cost, 6),
                "calls": self._calls,
            }

    def _cost_for_model(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        pricing = self._pricing.get(model)
        # Prefix match for dated names like gpt-4.1-2025-04-14; longest prefix wins
        if pricing is None:
            for prefix in sorted(self._pricing, key=len, reverse=True):
                if model.startswith(prefix):
                    pricing = self._pricing[prefix]
                    break
        if pricing is None:
            return 0.0
        return (
            (prompt_tokens / 1_000_000) * pricing["input"]
            + (completion_tokens / 1_000_000) * pricing["output"]
        )


_token_tracker: Optional[TokenTracker] = None


def get_token_tracker() -> TokenTracker:
    """Get the singleton TokenTracker instance."""
    global _token_tracker
    if _token_tracker is None:
        _token_tracker = TokenTracker()
    return _token_tracker


# =============================================================================
# ERROR TRANSLATION + JSON PARSING
# =============================================================================

def translate_error(exc: Exception) -> ReportWriterError:
    """Map an SDK/transport exception onto the error taxonomy."""
    if isinstance(exc, ReportWriterError):
        return exc
    # APITimeoutError subclasses APIConnectionError, so it is checked first
    if isinstance(exc, (openai.APITimeoutError, httpx.TimeoutException)):
        return UpstreamTimeoutError()
    if isinstance(exc, openai.RateLimitError):
        return UpstreamRateLimitError()
    return UpstreamTransportError()


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        if first_newline != -1 and text.endswith("```"):
            return text[first_newline + 1:-3].strip()
    return text


def parse_json_payload(text: str) -> Any:
    """Parse a completion payload as JSON.

    Raises EmptyResponseError for a blank payload and ResponseParseError
    (with the raw text attached and logged) for anything unparseable.
    """
    if text is None or not text.strip():
        raise EmptyResponseError()
    try:
        return json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        limit = get_config().logging.raw_payload_chars
        logger.warning("Unparseable completion payload (%s): %r", e, text[:limit])
        raise ResponseParseError(raw=text, detail=str(e)) from e


# =============================================================================
# OPENAI CLIENT
# =============================================================================

@dataclass(frozen=True)
class CompletionOptions:
    model: str
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = 60.0
    json_mode: bool = True


class OpenAIClient:
    """Client for the OpenAI chat-completions API.

    ``sdk_client`` may be any object exposing ``chat.completions.create``;
    when omitted an ``openai.OpenAI`` instance is built from the environment
    with SDK retries disabled.
    """

    def __init__(self, sdk_client=None, tracker: Optional[TokenTracker] = None):
        if sdk_client is None:
            settings = get_env_settings()
            base_url = settings.openai_base_url or "https://api.openai.com/v1"
            logger.info("OpenAI client init: base_url=%s", base_url)
            sdk_client = openai.OpenAI(
                api_key=settings.openai_api_key,
                base_url=base_url,
                max_retries=0,
            )
        self.client = sdk_client
        self.tracker = tracker or get_token_tracker()

    @staticmethod
    def _messages(system: Optional[str], prompt: str) -> List[Dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _request_kwargs(messages: List[Dict[str, str]], options: CompletionOptions) -> Dict[str, Any]:
        model = options.model
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "timeout": options.timeout,
        }

        # Reasoning models reject a custom temperature
        if not any(model.startswith(p) for p in ("o1", "o3", "o4", "gpt-5")):
            kwargs["temperature"] = options.temperature

        # Newer models require max_completion_tokens instead of max_tokens
        if any(model.startswith(p) for p in ("gpt-5", "o1", "o3", "o4", "gpt-4.1")):
            kwargs["max_completion_tokens"] = options.max_tokens
        else:
            kwargs["max_tokens"] = options.max_tokens

        if options.json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    @staticmethod
    def _extract_content_text(response: Any) -> str:
        try:
            message = response.choices[0].message
        except (AttributeError, IndexError, TypeError):
            return ""
        content = getattr(message, "content", None)
        return content if isinstance(content, str) else ""

    def complete(self, system: Optional[str], prompt: str, options: CompletionOptions) -> str:
        """Wait for the full response and return its text.

        Raises EmptyResponseError when the model returns nothing.
        """
        kwargs = self._request_kwargs(self._messages(system, prompt), options)
        logger.debug("OpenAI completion with model: %s", options.model)

        try:
            response = self.client.chat.completions.create(**kwargs)
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.error("OpenAI API error: %s", e)
            raise translate_error(e) from e

        usage = getattr(response, "usage", None)
        if usage:
            self.tracker.record(options.model, usage.prompt_tokens, usage.completion_tokens)

        text = self._extract_content_text(response)
        if not text.strip():
            choices = getattr(response, "choices", None) or [None]
            finish_reason = getattr(choices[0], "finish_reason", "unknown")
            logger.warning(
                "OpenAI returned empty content (model=%s, finish_reason=%s)",
                options.model, finish_reason,
            )
            raise EmptyResponseError()
        return text

    def complete_json(self, system: Optional[str], prompt: str, options: CompletionOptions) -> Any:
        """Non-streaming call whose payload is parsed as JSON."""
        return parse_json_payload(self.complete(system, prompt, options))

    def complete_stream(self, system: Optional[str], prompt: str, options: CompletionOptions) -> Iterator[str]:
        """Yield text fragments as the model produces them.

        The generator is finite and single-use. Closing it early closes the
        underlying HTTP stream.
        """
        kwargs = self._request_kwargs(self._messages(system, prompt), options)
        kwargs["stream"] = True
        logger.debug("OpenAI streaming completion with model: %s", options.model)

        try:
            stream = self.client.chat.completions.create(**kwargs)
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.error("OpenAI API error (stream open): %s", e)
            raise translate_error(e) from e

        try:
            for chunk in stream:
                choices = getattr(chunk, "choices", None)
                if not choices:
                    continue
                text = getattr(choices[0].delta, "content", None)
                if text:
                    yield text
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.error("OpenAI API error (mid-stream): %s", e)
            raise translate_error(e) from e
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()


# =============================================================================
# CLIENT FACTORY
# =============================================================================

_client: Optional[OpenAIClient] = None
_client_lock = threading.Lock()


def get_llm_client() -> OpenAIClient:
    """Get the shared OpenAI client"""
    global _client

    if _client is None:
        with _client_lock:
            if _client is None:
                logger.info("Initializing OpenAI LLM client")
                _client = OpenAIClient()

    return _client


def reset_client():
    """Reset the global client instance"""
    global _client
    _client = None
