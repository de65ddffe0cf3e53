"""
Prompt Store for AI Report Writer.

Holds the two editable prompt templates ("outline" and "report") behind an
injectable backing: a dict in process memory, or a SQLite table managed
through SQLAlchemy for deployments that need edits to survive restarts.
"""
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from report_writer.config.settings import get_config
from report_writer.config.types import PromptTemplate, PromptType, PromptUpdate
from report_writer.config.logger import get_logger
from report_writer.pipeline._prompts import get_prompt_set

logger = get_logger(__name__)

# Stage/prompt-set name of the built-in default for each template type
_DEFAULT_SETS = {
    PromptType.OUTLINE: ("outline", "generate_outline"),
    PromptType.REPORT: ("report", "generate_report"),
}

UPDATABLE_FIELDS = ("name", "description", "content")


def default_system_prompt(prompt_type: Union[PromptType, str]) -> str:
    """Fixed system instruction for a template type."""
    stage, name = _DEFAULT_SETS[PromptType(prompt_type)]
    return get_prompt_set(stage, name)["system"].strip()


def default_template_content(prompt_type: Union[PromptType, str]) -> str:
    """Built-in template body, used when the store has no template of a type."""
    stage, name = _DEFAULT_SETS[PromptType(prompt_type)]
    return get_prompt_set(stage, name)["template"]


def default_templates() -> List[PromptTemplate]:
    """Fresh copies of the built-in templates (outline-default, report-default)."""
    now = datetime.now(timezone.utc)
    templates = []
    for prompt_type, (stage, name) in _DEFAULT_SETS.items():
        ps = get_prompt_set(stage, name)
        templates.append(PromptTemplate(
            id=ps["id"],
            name=ps["name"],
            description=ps["description"],
            content=ps["template"],
            type=prompt_type,
            created_at=now,
            updated_at=now,
        ))
    return templates


# =============================================================================
# BACKINGS
# =============================================================================

class MemoryPromptBackend:
    """Templates kept in a dict; lost when the process exits."""

    def __init__(self):
        self._templates: Dict[str, PromptTemplate] = {}

    def load_all(self) -> List[PromptTemplate]:
        return [t.model_copy() for t in self._templates.values()]

    def save(self, template: PromptTemplate) -> None:
        self._templates[template.id] = template.model_copy()

    def replace_all(self, templates: List[PromptTemplate]) -> None:
        self._templates = {t.id: t.model_copy() for t in templates}


Base = declarative_base()


class PromptTemplateModel(Base):
    """SQLAlchemy model for prompt templates"""
    __tablename__ = 'prompt_templates'

    id = Column(String(100), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, default="")
    content = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    def to_pydantic(self) -> PromptTemplate:
        return PromptTemplate(
            id=self.id,
            name=self.name,
            description=self.description or "",
            content=self.content,
            type=PromptType(self.type),
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )

    def apply(self, template: PromptTemplate) -> None:
        self.name = template.name
        self.description = template.description
        self.content = template.content
        self.type = PromptType(template.type).value
        self.created_at = template.created_at
        self.updated_at = template.updated_at


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLitePromptBackend:
    """Templates persisted in a SQLite file."""

    def __init__(self, db_path: Optional[str] = None):
        config = get_config()
        self.db_path = db_path or config.prompts.database_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            connect_args={"check_same_thread": False}
        )
        self.Session = sessionmaker(bind=self.engine)
        Base.metadata.create_all(self.engine)

    def load_all(self) -> List[PromptTemplate]:
        with self.Session() as session:
            rows = session.query(PromptTemplateModel).order_by(PromptTemplateModel.type.asc()).all()
            return [row.to_pydantic() for row in rows]

    def save(self, template: PromptTemplate) -> None:
        with self.Session() as session:
            row = session.get(PromptTemplateModel, template.id)
            if row is None:
                row = PromptTemplateModel(id=template.id)
                session.add(row)
            row.apply(template)
            session.commit()

    def replace_all(self, templates: List[PromptTemplate]) -> None:
        with self.Session() as session:
            session.query(PromptTemplateModel).delete()
            for template in templates:
                row = PromptTemplateModel(id=template.id)
                row.apply(template)
                session.add(row)
            session.commit()


# =============================================================================
# STORE
# =============================================================================

class PromptStore:
    """Read/update/reset access to the prompt templates.

    The store is seeded with the built-in defaults when its backing is empty.
    Writers are serialized with a lock; the last update wins.
    """

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryPromptBackend()
        self._lock = threading.Lock()
        with self._lock:
            if not self.backend.load_all():
                self.backend.replace_all(default_templates())

    def get_all(self) -> List[PromptTemplate]:
        with self._lock:
            return self.backend.load_all()

    def get_by_type(self, prompt_type: Union[PromptType, str]) -> Optional[PromptTemplate]:
        wanted = PromptType(prompt_type).value
        for template in self.get_all():
            if PromptType(template.type).value == wanted:
                return template
        return None

    def get_by_id(self, prompt_id: str) -> Optional[PromptTemplate]:
        for template in self.get_all():
            if template.id == prompt_id:
                return template
        return None

    def update(self, prompt_id: str, fields: Union[PromptUpdate, dict]) -> bool:
        """Apply name/description/content changes; False if the id is unknown."""
        if isinstance(fields, PromptUpdate):
            fields = fields.model_dump(exclude_none=True)
        changes = {
            k: v for k, v in (fields or {}).items()
            if k in UPDATABLE_FIELDS and v is not None
        }

        with self._lock:
            current = next(
                (t for t in self.backend.load_all() if t.id == prompt_id), None
            )
            if current is None:
                logger.warning("Update requested for unknown prompt %r", prompt_id)
                return False
            updated = current.model_copy(update={
                **changes,
                "updated_at": datetime.now(timezone.utc),
            })
            self.backend.save(updated)

        logger.info("Updated prompt %r (%s)", prompt_id, ", ".join(changes) or "timestamp only")
        return True

    def reset(self) -> None:
        """Restore exactly the built-in default templates."""
        with self._lock:
            self.backend.replace_all(default_templates())
        logger.info("Prompt templates reset to defaults")


def build_prompt_store(backend_name: Optional[str] = None) -> PromptStore:
    """Create a PromptStore for the configured backing ("memory" or "sqlite")."""
    config = get_config()
    backend_name = (backend_name or config.prompts.backend).lower()
    if backend_name == "sqlite":
        return PromptStore(SQLitePromptBackend(config.prompts.database_path))
    if backend_name == "memory":
        return PromptStore(MemoryPromptBackend())
    raise ValueError(f"Unknown prompt store backend: {backend_name!r}")
