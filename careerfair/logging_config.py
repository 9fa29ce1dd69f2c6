import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from careerfair.config import get_settings


def get_formatter(use_json: bool, service: str) -> logging.Formatter:
    if use_json:
        return JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level"},
            static_fields={"service": service},
        )
    return logging.Formatter(
        fmt=f"%(asctime)s | %(levelname)s | %(name)s | [svc={service}] | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logger(name: str, level: str | None = None, use_json: bool | None = None) -> logging.Logger:
    """
    Sets up a named logger writing to stdout. Calling it again for the same
    name replaces the handlers instead of stacking them.
    """
    settings = get_settings()
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    logger.propagate = False

    if logger.hasHandlers():
        logger.handlers.clear()

    use_json = settings.ENABLE_JSON_LOGS if use_json is None else use_json
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(get_formatter(use_json, settings.SERVICE_NAME))
    logger.addHandler(handler)
    return logger


# All module loggers are children of "careerfair" and inherit its handler.
app_logger = setup_logger("careerfair")
