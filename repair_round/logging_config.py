import logging.config
import sys


def configure_logging(level="INFO"):
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,

        # Formatters: How the logs look
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },

        # Handlers: Where the logs go
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": sys.stdout,
            },
        },

        # Loggers: The configuration for specific modules
        "loggers": {
            "repair_round": {
                "handlers": ["console"],
                "level": level,
                "propagate": False
            },
        }
    }

    logging.config.dictConfig(logging_config)
