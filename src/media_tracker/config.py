"""Configuration management using Pydantic models."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_MAX_RESULTS, DEFAULT_REQUEST_TIMEOUT_SECONDS
from .cover_quality import PLACEHOLDER_SERVICES, PLACEHOLDER_SIZE

logger = logging.getLogger(__name__)

# Environment variables that override API keys from the config file
ENV_OVERRIDES = {
    "GOOGLE_BOOKS_API_KEY": "google_books_api_key",
    "OMDB_API_KEY": "omdb_api_key",
    "RAWG_API_KEY": "rawg_api_key",
    "SEMANTIC_SCHOLAR_API_KEY": "semantic_scholar_api_key",
}

# Placeholder values that indicate unconfigured credentials
INVALID_PLACEHOLDERS = {
    "YOUR_GOOGLE_BOOKS_API_KEY_HERE",
    "YOUR_OMDB_API_KEY_HERE",
    "YOUR_RAWG_API_KEY_HERE",
    "YOUR_SEMANTIC_SCHOLAR_API_KEY_HERE",
    "",
}


class ProvidersConfig(BaseModel):
    """Metadata provider settings."""
    google_books_api_key: Optional[str] = None
    omdb_api_key: Optional[str] = None
    rawg_api_key: Optional[str] = None
    semantic_scholar_api_key: Optional[str] = None
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1, le=40)
    request_timeout: Optional[float] = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)

    @field_validator(
        "google_books_api_key",
        "omdb_api_key",
        "rawg_api_key",
        "semantic_scholar_api_key",
        mode="before",
    )
    @classmethod
    def drop_placeholder_keys(cls, v):
        """Treat template placeholders as "not configured"."""
        if v is None or str(v).strip() in INVALID_PLACEHOLDERS:
            return None
        return str(v).strip()


class PlaceholderConfig(BaseModel):
    """Placeholder cover settings."""
    service: str = PLACEHOLDER_SERVICES[0]
    size: str = PLACEHOLDER_SIZE

    @field_validator("service")
    @classmethod
    def known_service(cls, v):
        v = v.rstrip("/")
        if v not in PLACEHOLDER_SERVICES:
            raise ValueError(f"Unknown placeholder service {v!r}; expected one of {PLACEHOLDER_SERVICES}")
        return v


class StoreConfig(BaseModel):
    """Row store settings."""
    path: str = "data/entries.json"


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def upper_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Invalid log level: {v}")
        return v


class Config(BaseModel):
    """Root configuration model."""
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    placeholder: PlaceholderConfig = Field(default_factory=PlaceholderConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("providers", "placeholder", "store", "logging", mode="before")
    @classmethod
    def ensure_section(cls, v):
        """Allow empty sections in YAML (parsed as None)."""
        return v if v is not None else {}


def get_config_path() -> Path:
    """Get config file path based on environment."""
    if os.path.exists("/.dockerenv"):
        return Path("/app/data/config.yaml")
    return Path("data/config.yaml")


def _create_config_template(config_path: Path) -> None:
    """Create config file from the bundled example."""
    example_path = Path("config.example.yaml")
    if example_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(example_path, config_path)
        logger.info(f"Created config template: {config_path}")
        logger.info("Edit the config file to add your provider API keys")


def apply_env_overrides(raw_config: dict, environ: Optional[dict] = None) -> dict:
    """Overlay API keys found in the environment onto the raw config."""
    environ = os.environ if environ is None else environ
    providers = dict(raw_config.get("providers") or {})
    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            providers[field_name] = value
    merged = dict(raw_config)
    merged["providers"] = providers
    return merged


def load_config(path: Optional[Path] = None, environ: Optional[dict] = None) -> Config:
    """Load and validate configuration.

    Called once at process start; the resulting ``Config`` is passed explicitly
    to everything that needs it. A missing file yields the defaults.
    """
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists() and path is None:
        _create_config_template(config_path)

    raw_config = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise
        logger.info(f"Loaded configuration from {config_path}")
    else:
        logger.info(f"No config file at {config_path}, using defaults")

    return Config(**apply_env_overrides(raw_config, environ))


def missing_provider_keys(config: Config) -> list[str]:
    """Names of provider API keys that are not configured.

    Open Library and Semantic Scholar work without a key and are not listed.
    """
    missing = []
    if not config.providers.google_books_api_key:
        missing.append("GOOGLE_BOOKS_API_KEY")
    if not config.providers.omdb_api_key:
        missing.append("OMDB_API_KEY")
    if not config.providers.rawg_api_key:
        missing.append("RAWG_API_KEY")
    return missing
