"""Create the database schema without running migrations (local development)."""

import logging

from community_hub.core.logging import configure_logging
from community_hub.core.settings import settings
from community_hub.db.session import create_tables

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    configure_logging(settings.log_level)
    init_db()
    logger.info("Database initialized.")
