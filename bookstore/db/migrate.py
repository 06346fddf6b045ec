"""
Migration runner

Thin wrapper over Alembic's command API. Each revision runs in its own
transaction, so when one fails the schema is left at the last revision that
applied cleanly and the failure surfaces as MigrationError.

Run: alembic upgrade head    (or use upgrade()/downgrade() from code)
"""
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection

from bookstore.core.exceptions import MigrationError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"
VERSIONS_DIR = PROJECT_ROOT / "migrations" / "versions"


def get_alembic_config(
    database_url: Optional[str] = None,
    connection: Optional[Connection] = None,
    version_locations: Optional[Iterable] = None,
) -> Config:
    """
    Build an Alembic Config for this project.

    Args:
        database_url: Overrides DATABASE_URL from settings
        connection: An open synchronous connection to run on instead of
            creating an engine
        version_locations: Extra revision directories searched after the
            project's own
    """
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    # Leave the caller's logging setup alone
    cfg.attributes["configure_logger"] = False
    if database_url:
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    if connection is not None:
        cfg.attributes["connection"] = connection
    if version_locations:
        locations = [str(VERSIONS_DIR), *(str(location) for location in version_locations)]
        cfg.set_main_option("version_locations", os.pathsep.join(locations))
    return cfg


def upgrade(revision: str = "head", **kwargs) -> None:
    cfg = get_alembic_config(**kwargs)
    logger.info(f"Upgrading schema to {revision}")
    try:
        command.upgrade(cfg, revision)
    except Exception as e:
        logger.error(f"Upgrade to {revision} failed: {e}")
        raise MigrationError(
            f"Upgrade to {revision} failed: {e}",
            details={"direction": "upgrade", "target": revision},
        ) from e


def downgrade(revision: str = "-1", **kwargs) -> None:
    cfg = get_alembic_config(**kwargs)
    logger.info(f"Downgrading schema to {revision}")
    try:
        command.downgrade(cfg, revision)
    except Exception as e:
        logger.error(f"Downgrade to {revision} failed: {e}")
        raise MigrationError(
            f"Downgrade to {revision} failed: {e}",
            details={"direction": "downgrade", "target": revision},
        ) from e


def current_revision(connection: Connection) -> Optional[str]:
    """Revision the connected database is at, or None if unversioned."""
    return MigrationContext.configure(connection).get_current_revision()
