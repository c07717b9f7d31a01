"""Pipeline configuration from environment variables (and an optional .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .batching import DEFAULT_BATCH_SIZE
from .errors import ConfigError
from .storage import DEFAULT_DATABASE_URL

# Load environment variables
load_dotenv()


@dataclass
class PipelineConfig:
    """Configuration for an ingestion run."""
    database_url: str = DEFAULT_DATABASE_URL
    batch_size: int = DEFAULT_BATCH_SIZE
    log_level: str = "INFO"
    json_logs: bool = False


def _parse_batch_size(value: str) -> int:
    try:
        batch_size = int(value)
    except ValueError:
        raise ConfigError(f"ACCODES_BATCH_SIZE must be an integer, got {value!r}")
    if batch_size < 1:
        raise ConfigError(f"ACCODES_BATCH_SIZE must be a positive integer, got {batch_size}")
    return batch_size


def get_pipeline_config(batch_size: Optional[int] = None) -> PipelineConfig:
    """
    Get pipeline configuration from environment.

    An explicit `batch_size` (e.g. from the command line) replaces
    ACCODES_BATCH_SIZE, which is then not read at all.
    """
    if batch_size is None:
        batch_size = _parse_batch_size(os.getenv("ACCODES_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))
    elif batch_size < 1:
        raise ConfigError(f"batch size must be a positive integer, got {batch_size}")

    return PipelineConfig(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        batch_size=batch_size,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
    )


def sqlalchemy_url(database_url: str) -> str:
    """Point a plain postgresql:// URL at the psycopg 3 driver for SQLAlchemy/alembic."""
    for prefix in ("postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return "postgresql+psycopg://" + database_url[len(prefix):]
    return database_url
