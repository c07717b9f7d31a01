"""Schema management through the bundled alembic migrations."""

from pathlib import Path

from alembic import command
from alembic.config import Config

from .config import sqlalchemy_url

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def alembic_config(database_url: str) -> Config:
    """Build an alembic Config without an alembic.ini on disk."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation: escape percent-encoded credentials
    cfg.set_main_option("sqlalchemy.url", sqlalchemy_url(database_url).replace("%", "%%"))
    return cfg


def upgrade_schema(database_url: str, revision: str = "head", sql_only: bool = False) -> None:
    """Apply migrations up to `revision`; with sql_only the DDL is printed instead."""
    command.upgrade(alembic_config(database_url), revision, sql=sql_only)
