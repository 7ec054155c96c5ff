import logging
import os
import sys

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
ROUTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "pika")

_handler: logging.Handler | None = None


def setup_logging() -> logging.Logger:
    """
    Configures structured JSON logging on stdout and returns the root logger.

    Every module calls this at import time; the handler is built on the first
    call and reused afterwards. The level comes from ``LOG_LEVEL`` (INFO by
    default). Uvicorn's loggers and pika's are routed through the same handler
    so the API and the worker emit one log shape, with the ddtrace
    ``trace_id``/``span_id`` fields when tracing is patched in.
    """
    global _handler
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    root_logger = logging.getLogger()

    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))

        root_logger.handlers = []
        root_logger.addHandler(_handler)

        for logger_name in ROUTED_LOGGERS:
            routed = logging.getLogger(logger_name)
            routed.handlers = []
            routed.addHandler(_handler)
            routed.propagate = False

    root_logger.setLevel(level)
    for logger_name in ROUTED_LOGGERS:
        # pika is chatty at INFO
        logging.getLogger(logger_name).setLevel(
            logging.WARNING if logger_name == "pika" else level
        )
    return root_logger
