import logging
import sys

from redirections.core.setting import settings


def configure_logging() -> logging.Logger:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    return logging.getLogger("redirections")
