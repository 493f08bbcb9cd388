"""Shared fixtures for the Todo API tests."""

from __future__ import annotations

from typing import Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from todo_api.config import Settings
from todo_api.main import create_app
from todo_api.operations import StorageError, TodoStore
from todo_api.schemas import Snapshot
from todo_api.storage import JsonFileBackend


class MemoryBackend:
    """In-memory backend whose load/save can be made to fail."""

    def __init__(self, snapshot: Optional[Snapshot] = None) -> None:
        self.snapshot = snapshot or Snapshot()
        self.fail_load = False
        self.fail_save = False
        self.saves = 0
        self.closed = False

    async def load(self) -> Snapshot:
        if self.fail_load:
            raise StorageError("Failed to load todos")
        return Snapshot(
            todos=[dict(t) for t in self.snapshot.todos],
            next_id=self.snapshot.next_id,
        )

    async def save(self, snapshot: Snapshot) -> None:
        if self.fail_save:
            raise StorageError("Failed to save todos")
        self.saves += 1
        self.snapshot = Snapshot(
            todos=[dict(t) for t in snapshot.todos],
            next_id=snapshot.next_id,
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest_asyncio.fixture
async def store(memory_backend: MemoryBackend) -> TodoStore:
    todo_store = TodoStore(memory_backend)
    await todo_store.open()
    return todo_store


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "todos.json"


@pytest.fixture
def client(data_file) -> TestClient:
    settings = Settings(todo_backend="file", todo_data_file=str(data_file))
    app = create_app(settings, store=TodoStore(JsonFileBackend(data_file)))
    with TestClient(app) as test_client:
        yield test_client
