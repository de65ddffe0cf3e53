"""
AI Report Writer - outline and report generation backed by a chat-completion model
"""

__version__ = "1.0.0"

from .config import get_config, get_env_settings, load_config
from .config.logger import get_logger
from .infra.llm import get_llm_client, OpenAIClient, CompletionOptions
from .infra.prompt_store import PromptStore, MemoryPromptBackend, SQLitePromptBackend
from .pipeline.render import render
from .pipeline.outline import OutlineGenerator
from .pipeline.report import ReportGenerator
from .pipeline.relay import StreamRelay
from .service import ReportService, get_service

__all__ = [
    # Config
    "get_config",
    "get_env_settings",
    "load_config",

    # Logger
    "get_logger",

    # LLM
    "get_llm_client",
    "OpenAIClient",
    "CompletionOptions",

    # Prompts
    "PromptStore",
    "MemoryPromptBackend",
    "SQLitePromptBackend",
    "render",

    # Generators
    "OutlineGenerator",
    "ReportGenerator",
    "StreamRelay",

    # Service
    "ReportService",
    "get_service",
]
