import logging
import sys


_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# pymongo logs every command and heartbeat at DEBUG
_QUIET_LOGGERS = ("pymongo",)
# uvicorn runs with log_config=None; its records go through the root handler
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    root = logging.getLogger()

    if not getattr(root, "_todo_api_handler", None):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.handlers.clear()
        root.addHandler(handler)
        root._todo_api_handler = handler

    root.setLevel(level)
    root._todo_api_handler.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
