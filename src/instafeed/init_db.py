"""Create tables and aggregation views directly from the ORM metadata."""

import logging

from instafeed.core.logging import configure_logging
from instafeed.core.settings import settings
from instafeed.db.session import create_tables, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables and views."""
    create_tables(engine)


if __name__ == "__main__":
    configure_logging(settings.log_level)
    init_db()
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))
