# qrgate/observability/logger.py

# structured JSON logger
import logging
import os
import sys
import traceback

from pythonjsonlogger import jsonlogger

# Named loggers used across the app; handlers are attached by configure_logging
access_logger = logging.getLogger("access")
error_logger = logging.getLogger("error")


def _build_formatter() -> logging.Formatter:
    return jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(pathname)s %(lineno)d",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def _attach_file_handler(logger: logging.Logger, path: str, formatter: logging.Formatter) -> None:
    # Avoid adding handlers twice (e.g., during autoreload or repeated app creation)
    for h in list(logger.handlers):
        if not isinstance(h, logging.FileHandler):
            continue
        if h.baseFilename == os.path.abspath(path):
            return
        # LOGS_PATH changed: one file handler per logger
        logger.removeHandler(h)
        h.close()
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_logging(settings) -> None:
    """Configure root logging and the access/error file loggers.

    - Root logger gets a JSON console handler (stdout) at LOG_LEVEL.
    - access.log / error.log live under LOGS_PATH, JSON formatted.
    - Idempotent: calling it again does not duplicate handlers.
    """
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    formatter = _build_formatter()

    os.makedirs(settings.LOGS_PATH, exist_ok=True)

    access_logger.setLevel(logging.INFO)
    access_logger.propagate = False  # keep file routing stable
    _attach_file_handler(access_logger, os.path.join(settings.LOGS_PATH, "access.log"), formatter)

    error_logger.setLevel(logging.ERROR)
    error_logger.propagate = False
    _attach_file_handler(error_logger, os.path.join(settings.LOGS_PATH, "error.log"), formatter)

    # Add a JSON console handler on root (single instance)
    have_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    )
    if not have_console:
        console = logging.StreamHandler(stream=sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    logging.getLogger("startup").info("logging configured", extra={"level": settings.LOG_LEVEL})


def log_info(message: str) -> None:
    access_logger.info(message)


def log_exception(e: Exception, context: str = "") -> None:
    error_logger.error(
        f"Exception in {context}: {type(e).__name__}: {e}",
        extra={"traceback": traceback.format_exc()},
    )
