import logging

from backend.core import config


def setup_logging() -> None:
    level = logging.DEBUG if config.APP_ENV == "local" else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
