"""
Run the Todo API server.

    python -m todo_api
"""

import logging

import uvicorn

from .config import get_settings
from .logging_setup import setup_logging
from .main import create_app


def run_server() -> None:
    settings = get_settings()
    setup_logging(settings.todo_debug)
    logging.getLogger(__name__).info(
        "Todo API server running on %s:%d", settings.host, settings.port
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run_server()
