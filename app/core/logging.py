import logging
from logging.config import dictConfig


def setup_logging(level: str = "INFO") -> None:
    level = (level or "INFO").upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": "%(asctime)s %(levelname)s %(name)s - %(message)s"}
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "loggers": {
                # httpx logs every outbound request at INFO (siteverify calls)
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )
    logging.getLogger(__name__).info("Logging configured: %s", level)
