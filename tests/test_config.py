from __future__ import annotations

import logging

import pytest

from todo_api.config import Settings
from todo_api.logging_setup import setup_logging


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ["PORT", "HOST", "TODO_BACKEND", "TODO_DATA_FILE", "MONGODB_URI", "CORS_ORIGINS"]:
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 3001
    assert settings.host == "0.0.0.0"
    assert settings.todo_backend == "file"
    assert settings.mongodb_uri is None
    assert settings.cors_origin_list == ["*"]


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TODO_BACKEND", "mongo")
    monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.todo_backend == "mongo"
    assert settings.mongodb_uri == "mongodb://db:27017"
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]


def test_rejects_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODO_BACKEND", "sqlite")

    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_setup_logging_is_idempotent() -> None:
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    try:
        setup_logging()
        handlers = list(root_logger.handlers)
        setup_logging(debug=True)

        assert root_logger.handlers == handlers
        assert root_logger.level == logging.DEBUG
    finally:
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
        root_logger._todo_api_handler = None


def test_setup_logging_quiets_driver_and_routes_server_logs() -> None:
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    try:
        setup_logging()

        assert logging.getLogger("pymongo").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").handlers == []
        assert logging.getLogger("uvicorn.access").propagate is True
    finally:
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
        root_logger._todo_api_handler = None
