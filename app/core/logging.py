import logging
import logging.config

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] [%(filename)s:%(lineno)d] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "app": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "main": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"level": "INFO"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}


def setup_logging(level: str = "INFO") -> None:
    config = {**LOGGING_CONFIG, "loggers": {name: dict(cfg) for name, cfg in LOGGING_CONFIG["loggers"].items()}}
    for name in ("app", "main"):
        config["loggers"][name]["level"] = level.upper()
    logging.config.dictConfig(config)
