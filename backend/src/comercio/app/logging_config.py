# backend/src/comercio/app/logging_config.py
import logging
import logging.config
import os

LOG_LEVEL = os.getenv("CE_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,  # mantiene loggers de uvicorn/fastapi
    "filters": {
        "cid": {
            "()": "comercio.observability.logging_filters.CorrelationIdLogFilter"
        }
    },
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s [cid=%(correlation_id)s] %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "filters": ["cid"],
            "formatter": "default",
        },
    },
    "root": {
        "level": LOG_LEVEL,
        "handlers": ["console"]
    },
    "loggers": {
        "uvicorn.error": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False
        },
        "uvicorn.access": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False
        },
        # httpx registra cada request a INFO; basta con WARNING
        "httpx": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False
        },
        "comercio": {
            "level": LOG_LEVEL,
            "handlers": ["console"],
            "propagate": False
        }
    }
}

def setup_logging():
    logging.config.dictConfig(LOGGING)
