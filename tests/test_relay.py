"""
Tests for report_writer.pipeline.relay — SSE framing and the stream relay
state machine.
"""
import json

import pytest

from conftest import OUTLINE_PAYLOAD, OUTLINE_FORM, FakeCompletionClient, split_chunks
from report_writer.config.types import OutlineResult
from report_writer.infra.errors import UpstreamTimeoutError, UpstreamTransportError
from report_writer.pipeline.relay import RelayState, StreamRelay, encode_event
from report_writer.pipeline.validation import parse_result
from report_writer.service import ReportService


def _parse_outline(text):
    return parse_result(OutlineResult, text)


class TestEncodeEvent:
    def test_framing(self):
        assert encode_event({"chunk": "a"}) == b'data: {"chunk": "a"}\n\n'

    def test_non_ascii_is_kept(self):
        frame = encode_event({"chunk": "△△ %(TBD)"})
        assert frame.decode("utf-8") == 'data: {"chunk": "△△ %(TBD)"}\n\n'


class TestStreamRelay:
    def test_chunks_accumulate_then_done(self):
        relay = StreamRelay(["ab", "cd", "ef"])
        assert relay.state is RelayState.IDLE

        events = list(relay.events())

        assert events[:3] == [
            {"chunk": "ab", "accumulated": "ab"},
            {"chunk": "cd", "accumulated": "abcd"},
            {"chunk": "ef", "accumulated": "abcdef"},
        ]
        assert events[3] == {"done": True, "final": "abcdef"}
        assert relay.state is RelayState.DONE

    def test_state_is_streaming_mid_stream(self):
        relay = StreamRelay(["x", "y"])
        events = relay.events()
        next(events)
        assert relay.state is RelayState.STREAMING
        list(events)
        assert relay.state is RelayState.DONE

    def test_each_accumulated_is_prefix_of_final(self):
        text = json.dumps(OUTLINE_PAYLOAD)
        relay = StreamRelay(split_chunks(text), finalize=_parse_outline)
        events = list(relay.events())

        chunks = events[:-1]
        assert "".join(e["chunk"] for e in chunks) == text
        for earlier, later in zip(chunks, chunks[1:]):
            assert later["accumulated"].startswith(earlier["accumulated"])
        assert json.loads(events[-1]["final"]) == OUTLINE_PAYLOAD

    def test_empty_fragments_are_skipped(self):
        events = list(StreamRelay(["", "a", ""]).events())
        assert events == [
            {"chunk": "a", "accumulated": "a"},
            {"done": True, "final": "a"},
        ]

    def test_error_mid_stream(self):
        def fragments():
            yield "partial"
            raise UpstreamTimeoutError()

        relay = StreamRelay(fragments())
        events = list(relay.events())

        assert events[0] == {"chunk": "partial", "accumulated": "partial"}
        assert events[-1] == {"error": UpstreamTimeoutError.default_message}
        assert not any("done" in e for e in events)
        assert relay.state is RelayState.FAILED

    def test_empty_stream_fails(self):
        relay = StreamRelay([])
        events = list(relay.events())
        assert len(events) == 1
        assert "error" in events[0]
        assert relay.state is RelayState.FAILED

    def test_unparseable_final_text_fails(self):
        relay = StreamRelay(['{"title": ', '"T"'], finalize=_parse_outline)
        events = list(relay.events())
        assert len(events) == 3
        assert events[-1] == {"error": "Failed to parse the response from the completion service."}
        assert relay.state is RelayState.FAILED

    def test_unexpected_exception_gets_generic_message(self):
        def fragments():
            yield "x"
            raise KeyError("internal detail")

        events = list(StreamRelay(fragments()).events())
        assert "internal detail" not in events[-1]["error"]
        assert events[-1]["error"]

    def test_callable_source_open_failure_is_in_band(self):
        def open_stream():
            raise UpstreamTransportError()

        relay = StreamRelay(open_stream)
        events = list(relay.events())
        assert events == [{"error": UpstreamTransportError.default_message}]

    def test_closing_relay_closes_upstream(self):
        client = FakeCompletionClient(fragments=["a", "b", "c"])
        relay = StreamRelay(lambda: client.complete_stream("s", "p", None))
        events = relay.events()
        next(events)
        events.close()
        assert client.stream_closed is True

    def test_single_use(self):
        relay = StreamRelay(["a"])
        list(relay.events())
        with pytest.raises(RuntimeError):
            list(relay.events())

    def test_sse_bytes(self):
        frames = list(StreamRelay(["hi"]).sse())
        assert frames == [
            b'data: {"chunk": "hi", "accumulated": "hi"}\n\n',
            b'data: {"done": true, "final": "hi"}\n\n',
        ]


class TestServiceStreams:
    def test_stream_outline_final_matches_non_stream(self, store):
        text = json.dumps(OUTLINE_PAYLOAD)
        client = FakeCompletionClient(payload=OUTLINE_PAYLOAD, fragments=split_chunks(text))
        service = ReportService(store=store, client=client)

        events = list(service.stream_outline(OUTLINE_FORM).events())
        streamed = json.loads(events[-1]["final"])

        assert streamed == service.generate_outline(OUTLINE_FORM).to_api()

    def test_stream_is_opened_lazily(self, store):
        client = FakeCompletionClient(fragments=["{}"])
        relay = ReportService(store=store, client=client).stream_outline(OUTLINE_FORM)
        assert client.calls == []
        list(relay.events())
        assert client.calls[0][0] == "stream"
