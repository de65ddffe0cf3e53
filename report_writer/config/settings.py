"""
Configuration classes, singletons, and loaders for AI Report Writer.
"""
import copy
import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================

class LLMModelsConfig(BaseModel):
    outline: str = "gpt-4.1"
    report: str = "gpt-4.1"


class LLMMaxTokensConfig(BaseModel):
    outline: int = 2000
    report: int = 16000  # reports are much longer than outlines


class LLMTemperatureConfig(BaseModel):
    outline: float = 0.7
    report: float = 0.7


class LLMTimeoutConfig(BaseModel):
    """Per-call wall-clock budgets in seconds."""
    outline: float = 30.0
    report: float = 60.0
    stream: float = 300.0


class LLMConfig(BaseModel):
    models: LLMModelsConfig = Field(default_factory=LLMModelsConfig)
    max_tokens: LLMMaxTokensConfig = Field(default_factory=LLMMaxTokensConfig)
    temperature: LLMTemperatureConfig = Field(default_factory=LLMTemperatureConfig)
    timeout: LLMTimeoutConfig = Field(default_factory=LLMTimeoutConfig)


class PromptsConfig(BaseModel):
    backend: str = "memory"  # "memory" or "sqlite"
    database_path: str = "data/prompts.db"


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000


class ExportConfig(BaseModel):
    directory: str = "exports"
    include_toc: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "logs/report_writer.log"
    max_file_size: int = 10
    backup_count: int = 5
    raw_payload_chars: int = 500


class Config(BaseModel):
    """Main configuration model"""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# ENVIRONMENT SETTINGS
# =============================================================================

class Settings(BaseSettings):
    """Environment-based settings"""
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")

    # Overrides both llm.models.outline and llm.models.report when set
    default_model: Optional[str] = Field(default=None, alias="REPORT_WRITER_MODEL")

    class Config:
        env_file = ".env"
        extra = "ignore"


# =============================================================================
# CONFIGURATION LOADER
# =============================================================================

def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from YAML file"""
    path = Path(config_path)

    if path.exists():
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return Config(**data)

    # Check for example config
    example_path = Path("config.example.yaml")
    if example_path.exists():
        with open(example_path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return Config(**data)

    return Config()


def get_settings() -> Settings:
    """Get environment settings"""
    return Settings()


# Global instances
_config: Optional[Config] = None
_settings: Optional[Settings] = None
_config_lock = threading.Lock()
_settings_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance, with env var overrides for model names."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_config()
                _apply_env_model_overrides(_config)
    return _config


def _apply_env_model_overrides(config: Config) -> None:
    """Override config.yaml model names with env vars when set."""
    settings = get_env_settings()
    if settings.default_model:
        config.llm.models.outline = settings.default_model
        config.llm.models.report = settings.default_model


def get_env_settings() -> Settings:
    """Get global settings instance"""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = get_settings()
    return _settings


def set_config(config: Config) -> None:
    """Replace the global config singleton (thread-safe)."""
    global _config
    with _config_lock:
        _config = config


def apply_overrides(base: Config, overrides: dict) -> Config:
    """
    Deep-copy *base* config and apply dotted-key overrides.

    Keys use dot notation matching the Config model hierarchy, e.g.
    ``"llm.max_tokens.report": 8000``.  String values are coerced to
    the target field's type (int / float / bool).
    """
    data = copy.deepcopy(base.model_dump())

    for dotted_key, value in overrides.items():
        parts = dotted_key.split(".")
        target = data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        field_name = parts[-1]

        current = target.get(field_name)
        if isinstance(value, str):
            if isinstance(current, bool):
                value = value.lower() in ("true", "1", "yes", "on")
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)

        target[field_name] = value

    return Config(**data)
