import json
from pathlib import Path
from typing import Literal

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from dcp_ingest.core.errors import ConfigError
from dcp_ingest.schemas.readings import IngestConfig


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Ingestion config file (url, dataDir, stations, exclude)
    CONFIG_PATH: str = "config.json"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/dcp_ingest.log"  # empty string disables the file sink
    SLACK_WEBHOOK_URL: str | None = None

    # In-process schedule for the API server; cron is the usual driver
    INGEST_SCHEDULE_ENABLED: bool = False
    INGEST_INTERVAL_SECONDS: int = 10 * 60

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development


settings = Settings()


def load_ingest_config(path: str | Path) -> IngestConfig:
    """Load and validate the JSON ingestion config.

    Raises ConfigError when the file is missing, is not valid JSON, or lacks
    a required key (url, dataDir, stations).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    try:
        return IngestConfig.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid config in {config_path}: {problems}") from exc
