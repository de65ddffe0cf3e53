"""
Tests for report_writer.infra.prompt_store — defaults, update, reset, and
both backings.
"""
from datetime import datetime, timezone

import pytest

from report_writer.config.types import PromptType, PromptUpdate
from report_writer.infra.prompt_store import (
    PromptStore,
    MemoryPromptBackend,
    SQLitePromptBackend,
    build_prompt_store,
    default_system_prompt,
    default_template_content,
    default_templates,
)
from report_writer.pipeline.render import find_tokens


class TestDefaults:
    def test_two_defaults(self):
        ids = [t.id for t in default_templates()]
        assert sorted(ids) == ["outline-default", "report-default"]

    def test_outline_default_tokens(self):
        tokens = find_tokens(default_template_content(PromptType.OUTLINE))
        for name in ("purpose", "topic", "audience", "content"):
            assert name in tokens

    def test_report_default_tokens(self):
        tokens = find_tokens(default_template_content("report"))
        for name in ("titleStructure", "audience", "content", "tone"):
            assert name in tokens

    def test_system_prompts_are_distinct(self):
        assert default_system_prompt("outline") != default_system_prompt("report")


class TestPromptStore:
    def test_seeded_on_creation(self, store):
        assert len(store.get_all()) == 2

    def test_get_by_type(self, store):
        assert store.get_by_type("outline").id == "outline-default"
        assert store.get_by_type(PromptType.REPORT).id == "report-default"

    def test_get_by_id_unknown(self, store):
        assert store.get_by_id("nope") is None

    def test_update_changes_content_and_timestamp(self, store):
        old = store.get_by_id("outline-default").model_copy(
            update={"updated_at": datetime(2000, 1, 1, tzinfo=timezone.utc)}
        )
        store.backend.save(old)

        assert store.update("outline-default", {"content": "New {{topic}}", "name": "Mine"}) is True

        updated = store.get_by_id("outline-default")
        assert updated.content == "New {{topic}}"
        assert updated.name == "Mine"
        assert updated.updated_at > old.updated_at
        assert updated.created_at == old.created_at

    def test_update_accepts_model(self, store):
        assert store.update("report-default", PromptUpdate(description="d")) is True
        assert store.get_by_id("report-default").description == "d"

    def test_update_ignores_identity_fields(self, store):
        store.update("outline-default", {"id": "hijack", "type": "report"})
        template = store.get_by_id("outline-default")
        assert template is not None
        assert template.type == "outline"
        assert store.get_by_id("hijack") is None

    def test_update_unknown_id_is_noop(self, store):
        before = [t.model_dump() for t in store.get_all()]
        assert store.update("missing-id", {"content": "x"}) is False
        assert [t.model_dump() for t in store.get_all()] == before

    def test_reset_restores_defaults(self, store):
        store.update("outline-default", {"content": "edited"})
        store.reset()
        assert sorted(t.id for t in store.get_all()) == ["outline-default", "report-default"]
        outline = store.get_by_type("outline")
        assert outline.id == "outline-default"
        assert outline.content == default_template_content("outline")

    def test_get_all_returns_copies(self, store):
        first = store.get_all()[0]
        first.content = "mutated outside"
        assert store.get_by_id(first.id).content != "mutated outside"

    def test_api_shape_uses_camel_case(self, store):
        data = store.get_by_id("outline-default").to_api()
        assert set(data) == {"id", "name", "description", "content", "type", "createdAt", "updatedAt"}
        assert data["type"] == "outline"


class TestSQLiteBackend:
    def test_edits_survive_new_store(self, tmp_path):
        db_path = str(tmp_path / "prompts.db")
        first = PromptStore(SQLitePromptBackend(db_path))
        assert first.update("report-default", {"content": "Persisted {{content}}"})

        second = PromptStore(SQLitePromptBackend(db_path))
        template = second.get_by_id("report-default")
        assert template.content == "Persisted {{content}}"
        assert template.updated_at.tzinfo is not None

    def test_reset(self, tmp_path):
        store = PromptStore(SQLitePromptBackend(str(tmp_path / "p.db")))
        store.update("outline-default", {"content": "x"})
        store.reset()
        assert store.get_by_type("outline").content == default_template_content("outline")
        assert len(store.get_all()) == 2


class TestBuildPromptStore:
    def test_memory(self):
        assert isinstance(build_prompt_store("memory").backend, MemoryPromptBackend)

    def test_sqlite_uses_config_path(self, test_config):
        store = build_prompt_store("sqlite")
        assert isinstance(store.backend, SQLitePromptBackend)
        assert store.backend.db_path == test_config.prompts.database_path

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_prompt_store("redis")
