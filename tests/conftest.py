"""
Shared fixtures for the AI Report Writer test suite.

Provides isolated test environments with:
- A fresh Config singleton per test (SQLite prompt file under tmp_path)
- Service and LLM client singleton resets
- A scripted completion client standing in for the OpenAI API
"""
import copy
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `report_writer` is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


OUTLINE_PAYLOAD = {
    "title": "Cloud Migration Plan for FY2026",
    "structure": [
        {"heading": "Background", "subheadings": ["Current infrastructure", "Cost drivers"]},
        {"heading": "Migration Strategy"},
        {"heading": "Findings and Recommendations", "subheadings": ["Findings", "Recommendations"]},
    ],
}

REPORT_PAYLOAD = {
    "title": "Cloud Migration Plan for FY2026",
    "report": [
        {"heading": "Executive Summary", "content": ["Summary paragraph one.", "Summary paragraph two."]},
        {
            "heading": "Background",
            "sections": [
                {"subheading": "Current infrastructure", "content": ["Three data centres."]},
                {"subheading": "Cost drivers", "content": ["Licensing is △△ %(TBD) of spend."]},
            ],
        },
        {"heading": "Migration Strategy", "content": ["Lift and shift first."]},
        {"heading": "References", "content": ["(OECD, 2023)"]},
    ],
}

OUTLINE_FORM = {
    "purpose": "Secure budget approval",
    "topic": "Cloud migration",
    "audience": "executives",
    "content": "Data centre lease ends in 2026; licensing costs rising.",
    "tone": "formal",
}


class FakeCompletionClient:
    """Scripted stand-in for OpenAIClient.

    *payload* is returned by complete_json (a str is parsed like a real
    response); *fragments* are yielded by complete_stream; *error*, when
    set, is raised by complete_json and after the last fragment of a stream.
    """

    def __init__(self, payload=None, fragments=None, error=None):
        self.payload = payload
        self.fragments = list(fragments or [])
        self.error = error
        self.calls = []
        self.stream_closed = False

    def complete_json(self, system, prompt, options):
        from report_writer.infra.llm import parse_json_payload

        self.calls.append(("json", system, prompt, options))
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, str):
            return parse_json_payload(self.payload)
        return copy.deepcopy(self.payload)

    def complete_stream(self, system, prompt, options):
        self.calls.append(("stream", system, prompt, options))
        return self._fragments()

    def _fragments(self):
        try:
            for fragment in self.fragments:
                yield fragment
            if self.error is not None:
                raise self.error
        finally:
            self.stream_closed = True


def split_chunks(text: str, size: int = 7):
    return [text[i:i + size] for i in range(0, len(text), size)]


# ---------------------------------------------------------------------------
# Core fixtures: config + singleton isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_environment(tmp_path):
    """Auto-use fixture that gives every test its own config.

    Resets the global singletons in report_writer.service and
    report_writer.infra.llm so tests never leak state into each other.
    """
    from report_writer.config.settings import Config, set_config
    from report_writer.infra import llm as llm_mod
    from report_writer.service import set_service

    config = Config()
    config.prompts.backend = "memory"
    config.prompts.database_path = str(tmp_path / "prompts.db")
    config.export.directory = str(tmp_path / "exports")
    set_config(config)
    set_service(None)
    llm_mod.reset_client()

    yield config

    set_service(None)
    llm_mod.reset_client()
    set_config(Config())


@pytest.fixture
def test_config(isolated_environment):
    """Explicit access to the test Config object."""
    return isolated_environment


@pytest.fixture
def store():
    from report_writer.infra.prompt_store import PromptStore
    return PromptStore()


@pytest.fixture
def fake_client():
    return FakeCompletionClient(payload=copy.deepcopy(OUTLINE_PAYLOAD))


@pytest.fixture
def service(store, fake_client):
    from report_writer.service import ReportService
    return ReportService(store=store, client=fake_client)
