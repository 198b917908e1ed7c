"""Alembic migration helpers."""

from __future__ import annotations

import logging

from recurring_planner.core.config import BASE_DIR

logger = logging.getLogger(__name__)


def _build_alembic_config(database_url: str):
    try:
        from alembic.config import Config
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency error path
        raise RuntimeError("Alembic is required. Install dependencies and retry.") from exc

    config = Config(str(BASE_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BASE_DIR / "migrations"))
    # 日本語: ini の % 補間を避ける / English: Escape % so ConfigParser interpolation leaves the URL intact
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def upgrade_to_head(database_url: str) -> None:
    """Apply migrations to the latest revision."""
    try:
        from alembic import command
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency error path
        raise RuntimeError("Alembic is required. Install dependencies and retry.") from exc

    logger.info("Applying database migrations")
    command.upgrade(_build_alembic_config(database_url), "head")
