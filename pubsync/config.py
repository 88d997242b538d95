"""Configuration loading and validation for pubsync.

Reads a YAML config file and produces a validated PubSyncConfig object.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OpenAlexConfig(BaseModel):
    """Connection settings for the OpenAlex search API."""

    base_url: str = "https://api.openalex.org"
    email: str | None = None
    timeout: float = Field(default=30.0, gt=0)
    retries: int = Field(default=2, ge=0)
    per_page: int = Field(default=25, ge=1, le=200)


class SheetsConfig(BaseModel):
    """Google Sheets approval store settings."""

    credentials_path: str = "~/.pubsync/service-account.json"
    spreadsheet_id: str = ""
    worksheet: str | None = None

    @property
    def resolved_credentials_path(self) -> Path:
        """Return the credentials path with ~ expanded."""
        return Path(self.credentials_path).expanduser()


class SyncConfig(BaseModel):
    """Sync run settings."""

    window_days: int = Field(default=7, ge=0)
    journals: list[str] = Field(default_factory=list)


class PubSyncConfig(BaseModel):
    """Top-level pubsync configuration."""

    openalex: OpenAlexConfig = Field(default_factory=OpenAlexConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)


def load_config(config_path: str | Path) -> PubSyncConfig:
    """Load and validate a pubsync YAML configuration file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Validated PubSyncConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the YAML is malformed.
        pydantic.ValidationError: If the config fails validation.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    config = PubSyncConfig.model_validate(raw)
    logger.info(
        "Loaded config with %d journals from %s",
        len(config.sync.journals),
        path,
    )
    return config
