"""Export settings.

Settings come from an optional YAML file (path from the DC_EXPORT_CONFIG
environment variable, default config/export.yaml). Keys may be flat or
nested under an `export:` section. Anything not set falls back to the
defaults below.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dcexport.exceptions import ConfigurationError
from dcexport.utils.config_loader import ConfigLoader

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

CONFIG_ENV_VAR = "DC_EXPORT_CONFIG"
TOKEN_ENV_VAR = "DIGITAL_COLLECTIONS_TOKEN"
DEFAULT_CONFIG_PATH = Path("config/export.yaml")

DEFAULT_API_BASE_URL = "http://api.repo.nypl.org/api/v1"
DEFAULT_ITEM_URL_BASE = "http://digitalcollections.nypl.org/items"
DEFAULT_IMAGE_HOST = "http://images.nypl.org/index.php"


class ExportSettings(BaseModel):
    """Runtime settings for an export run."""
    model_config = ConfigDict(extra='forbid')

    api_base_url: str = DEFAULT_API_BASE_URL
    item_url_base: str = DEFAULT_ITEM_URL_BASE
    image_host: str = DEFAULT_IMAGE_HOST
    collections_path: Path = Path("data/collections.json")
    cache_path: Path = Path("data/cache/mods_cache.db")
    page_size: int = Field(default=500, ge=1)
    concurrency: int = Field(default=1, ge=1)  # enrichments in flight
    strict_cache_reads: bool = False
    request_timeout: Optional[float] = None  # seconds; None disables timeouts
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return level


def resolve_config_path() -> Path:
    return Path(os.getenv(CONFIG_ENV_VAR, str(DEFAULT_CONFIG_PATH)))


def load_settings(path: Optional[Path] = None) -> ExportSettings:
    """Load settings from YAML, or return defaults when the file does not exist.

    An explicitly configured path (argument or environment variable) must
    exist; only the default location is allowed to be absent.

    Raises:
        ConfigurationError: If the file is unreadable or holds invalid values.
    """
    explicit = path is not None or CONFIG_ENV_VAR in os.environ
    path = Path(path) if path is not None else resolve_config_path()

    if not path.exists() and not explicit:
        return ExportSettings()

    loader = ConfigLoader(path)
    values = loader.get("export", loader.as_dict())
    if not isinstance(values, dict):
        raise ConfigurationError.from_invalid_content(path, "'export' must be a mapping")

    try:
        return ExportSettings(**values)
    except ValidationError as e:
        raise ConfigurationError.from_invalid_content(path, str(e), e) from e
