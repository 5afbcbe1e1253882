#!/usr/bin/env python3
"""Initialize the database for py-levelgen."""

import structlog

from .connection import db

logger = structlog.get_logger()


def main():
    """Initialize the database."""
    try:
        db.initialize()
    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        return False

    logger.info("Database initialized")
    return True


if __name__ == "__main__":
    main()
