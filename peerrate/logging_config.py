"""Root logger setup, driven by ``settings.LOG_LEVEL``."""

import logging

from peerrate.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise.
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
