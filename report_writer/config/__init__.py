"""
Configuration package: settings, domain types, and logging.
"""
from .settings import (
    Config,
    Settings,
    load_config,
    get_config,
    set_config,
    get_env_settings,
    apply_overrides,
)
from .types import (
    PromptType,
    Audience,
    Tone,
    PromptTemplate,
    PromptUpdate,
    OutlineRequest,
    OutlineItem,
    OutlineResult,
    ReportRequest,
    ReportSection,
    ReportItem,
    ReportResult,
)

__all__ = [
    "Config",
    "Settings",
    "load_config",
    "get_config",
    "set_config",
    "get_env_settings",
    "apply_overrides",
    "PromptType",
    "Audience",
    "Tone",
    "PromptTemplate",
    "PromptUpdate",
    "OutlineRequest",
    "OutlineItem",
    "OutlineResult",
    "ReportRequest",
    "ReportSection",
    "ReportItem",
    "ReportResult",
]
