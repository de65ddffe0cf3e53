"""
Stream relay: forwards completion fragments as server-sent events.

Event payloads (each framed as ``data: <JSON>\\n\\n``):

    {"chunk": str, "accumulated": str}   one per fragment
    {"done": true, "final": str}         terminal, on success
    {"error": str}                       terminal, on failure

Every chunk event repeats the full accumulated text so a client that
missed earlier events can resynchronize from any later one. Failures are
reported in-band; the relay itself never raises.
"""
import json
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from pydantic import BaseModel

from report_writer.config.logger import get_logger
from report_writer.infra.errors import EmptyResponseError, ReportWriterError

logger = get_logger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"


class RelayState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


def encode_event(payload: dict) -> bytes:
    """Frame one payload as an SSE ``data:`` line."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def _to_jsonable(result: Any) -> Any:
    if hasattr(result, "to_api"):
        return result.to_api()
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", exclude_none=True)
    return result


FragmentSource = Union[Iterable[str], Callable[[], Iterable[str]]]


class StreamRelay:
    """Single-use relay from a fragment source to SSE payloads.

    *source* is either an iterable of text fragments or a zero-argument
    callable returning one; the callable form defers opening the upstream
    call until the first event is requested, so failures while opening are
    reported in-band too. *finalize* turns the accumulated text into the
    validated result carried by the terminal event.
    """

    def __init__(
        self,
        source: FragmentSource,
        finalize: Optional[Callable[[str], Any]] = None,
        label: str = "generation",
    ):
        self._source = source
        self._finalize = finalize
        self.label = label
        self.state = RelayState.IDLE
        self.accumulated = ""
        self.error: Optional[str] = None

    def events(self) -> Iterator[dict]:
        if self.state is not RelayState.IDLE:
            raise RuntimeError("StreamRelay instances are single-use")

        fragments = None
        try:
            fragments = iter(self._source() if callable(self._source) else self._source)
            for fragment in fragments:
                if not fragment:
                    continue
                if self.state is RelayState.IDLE:
                    self.state = RelayState.STREAMING
                self.accumulated += fragment
                yield {"chunk": fragment, "accumulated": self.accumulated}

            if not self.accumulated.strip():
                raise EmptyResponseError()

            final = self.accumulated
            if self._finalize is not None:
                final = json.dumps(
                    _to_jsonable(self._finalize(self.accumulated)), ensure_ascii=False
                )
            self.state = RelayState.DONE
            logger.info("%s stream finished (%d chars)", self.label, len(self.accumulated))
            yield {"done": True, "final": final}

        except ReportWriterError as e:
            self.state = RelayState.FAILED
            self.error = e.user_message
            logger.error("%s stream failed: %s", self.label, e)
            yield {"error": e.user_message}

        except Exception as e:
            self.state = RelayState.FAILED
            self.error = ReportWriterError.default_message
            logger.exception("%s stream failed unexpectedly: %s", self.label, e)
            yield {"error": self.error}

        finally:
            close = getattr(fragments, "close", None)
            if callable(close):
                close()

    def sse(self) -> Iterator[bytes]:
        """The relay's events, framed for a ``text/event-stream`` response."""
        for payload in self.events():
            yield encode_event(payload)
