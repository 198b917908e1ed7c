"""ASGI entry point: ``uvicorn recurring_planner.asgi:app``."""

import logging

from recurring_planner.application import app, create_app

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("recurring_planner_asgi")

__all__ = ["app", "create_app"]
