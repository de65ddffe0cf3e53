"""
Domain models (enums + Pydantic data models) for AI Report Writer.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class PromptType(str, Enum):
    OUTLINE = "outline"
    REPORT = "report"


class Audience(str, Enum):
    INTERNAL_TEAM = "internal_team"
    EXECUTIVES = "executives"
    CLIENTS = "clients"
    GENERAL_PUBLIC = "general_public"

    @property
    def label(self) -> str:
        return AUDIENCE_LABELS[self]


class Tone(str, Enum):
    FORMAL = "formal"
    PROFESSIONAL = "professional"
    ANALYTICAL = "analytical"
    EXPLANATORY = "explanatory"

    @property
    def label(self) -> str:
        return TONE_LABELS[self]


AUDIENCE_LABELS = {
    Audience.INTERNAL_TEAM: "Internal team",
    Audience.EXECUTIVES: "Executives",
    Audience.CLIENTS: "Clients",
    Audience.GENERAL_PUBLIC: "General public",
}

TONE_LABELS = {
    Tone.FORMAL: "Formal",
    Tone.PROFESSIONAL: "Professional",
    Tone.ANALYTICAL: "Analytical",
    Tone.EXPLANATORY: "Explanatory",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

class PromptTemplate(BaseModel):
    """An editable prompt template with ``{{field}}`` tokens."""
    id: str
    name: str
    description: str = ""
    content: str
    type: PromptType
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")

    class Config:
        populate_by_name = True
        use_enum_values = True

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PromptUpdate(BaseModel):
    """Fields an administrator may change on a template."""
    name: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None


# =============================================================================
# REQUESTS
# =============================================================================

class OutlineRequest(BaseModel):
    purpose: str
    topic: str
    audience: Audience
    content: str
    tone: Tone = Tone.PROFESSIONAL


class OutlineItem(BaseModel):
    heading: str
    subheadings: Optional[List[str]] = None

    @field_validator("heading")
    @classmethod
    def _heading_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("heading must not be empty")
        return v


class OutlineResult(BaseModel):
    """Proposed title plus ordered heading/subheading structure."""
    title: str
    structure: List[OutlineItem] = Field(min_length=1)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class ReportRequest(BaseModel):
    title_structure: OutlineResult = Field(alias="titleStructure")
    audience: Audience
    content: str
    tone: Tone

    class Config:
        populate_by_name = True


# =============================================================================
# REPORT RESULT
# =============================================================================

class ReportSection(BaseModel):
    subheading: str
    content: List[str]


class ReportItem(BaseModel):
    """One top-level heading: flat paragraphs or nested subsections."""
    heading: str
    content: Optional[List[str]] = None
    sections: Optional[List[ReportSection]] = None

    @model_validator(mode="after")
    def _has_body(self) -> "ReportItem":
        if self.content is None and self.sections is None:
            raise ValueError(
                f"report item {self.heading!r} has neither content nor sections"
            )
        return self

    @property
    def is_nested(self) -> bool:
        return self.sections is not None


class ReportResult(BaseModel):
    title: str
    report: List[ReportItem]

    def to_api(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
