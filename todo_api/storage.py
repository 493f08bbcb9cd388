"""
Persistence backends for the Todo store.

Two interchangeable implementations of the same interface:

    JsonFileBackend  pretty-printed JSON array on disk, rewritten on every save
    MongoBackend     one document per todo in a MongoDB collection

Failures surface as StorageError; the underlying exception is logged only.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from pymongo import AsyncMongoClient, DeleteMany, ReplaceOne
from pymongo.errors import PyMongoError

from .config import Settings
from .operations import StorageError
from .schemas import DEFAULT_CATEGORY, DEFAULT_PRIORITY, Snapshot, TodoDict


logger = logging.getLogger(__name__)


class PersistenceBackend(Protocol):
    async def load(self) -> Snapshot:
        ...

    async def save(self, snapshot: Snapshot) -> None:
        ...

    async def close(self) -> None:
        ...


def _todo_from_record(item: dict) -> TodoDict:
    return {
        "id": int(item["id"]),
        "text": str(item["text"]),
        "completed": bool(item.get("completed", False)),
        "category": str(item.get("category") or DEFAULT_CATEGORY),
        "priority": str(item.get("priority") or DEFAULT_PRIORITY),
    }


def _next_id_for(todos: list[TodoDict]) -> int:
    return max((t["id"] for t in todos), default=0) + 1


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------

class JsonFileBackend:
    """
    Stores the collection as a JSON array at ``path`` and the id counter in a
    ``<path>.seq`` sidecar. Writes go through a temp file and os.replace so a
    crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self.seq_path = self.path.with_name(self.path.name + ".seq")

    async def load(self) -> Snapshot:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, snapshot: Snapshot) -> None:
        await asyncio.to_thread(self._save_sync, snapshot)

    async def close(self) -> None:
        return None

    def _load_sync(self) -> Snapshot:
        if not self.path.exists():
            return Snapshot()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as err:
            logger.exception("Could not read %s", self.path)
            raise StorageError("Failed to load todos") from err
        if not isinstance(data, list):
            logger.error("Expected a JSON array in %s, got %s", self.path, type(data).__name__)
            raise StorageError("Failed to load todos")
        try:
            todos = [_todo_from_record(item) for item in data]
        except (KeyError, TypeError, ValueError) as err:
            logger.exception("Malformed todo record in %s", self.path)
            raise StorageError("Failed to load todos") from err

        next_id = _next_id_for(todos)
        if self.seq_path.exists():
            try:
                next_id = max(next_id, int(self.seq_path.read_text(encoding="utf-8").strip()))
            except (OSError, ValueError):
                logger.warning("Ignoring unreadable id counter %s", self.seq_path)
        return Snapshot(todos=todos, next_id=next_id)

    def _save_sync(self, snapshot: Snapshot) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(self.path, json.dumps(snapshot.todos, indent=2))
            self._write_atomic(self.seq_path, str(snapshot.next_id))
        except OSError as err:
            logger.exception("Could not write %s", self.path)
            raise StorageError("Failed to save todos") from err

    @staticmethod
    def _write_atomic(path: Path, content: str) -> None:
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


# ---------------------------------------------------------------------------
# MongoDB
# ---------------------------------------------------------------------------

COUNTER_ID = "todos"


class MongoBackend:
    """
    One document per todo, keyed by the integer id in ``_id``. The id counter
    lives in ``counters`` as ``{_id: "todos", seq: <next id>}``.
    """

    def __init__(self, database: Any, client: Optional[Any] = None):
        self._client = client
        self._todos = database["todos"]
        self._counters = database["counters"]

    @classmethod
    def from_uri(cls, uri: str, database: str) -> "MongoBackend":
        client: AsyncMongoClient = AsyncMongoClient(uri)
        return cls(client[database], client=client)

    async def load(self) -> Snapshot:
        try:
            docs = await self._todos.find({}).sort("_id", 1).to_list(None)
            counter = await self._counters.find_one({"_id": COUNTER_ID})
        except PyMongoError as err:
            logger.exception("Could not load todos from MongoDB")
            raise StorageError("Failed to load todos") from err

        try:
            todos = [_todo_from_record({**doc, "id": doc["_id"]}) for doc in docs]
        except (KeyError, TypeError, ValueError) as err:
            logger.exception("Malformed todo document in MongoDB")
            raise StorageError("Failed to load todos") from err

        next_id = _next_id_for(todos)
        if counter and isinstance(counter.get("seq"), int):
            next_id = max(next_id, counter["seq"])
        return Snapshot(todos=todos, next_id=next_id)

    async def save(self, snapshot: Snapshot) -> None:
        ids = [todo["id"] for todo in snapshot.todos]
        requests: list[Any] = [
            ReplaceOne(
                {"_id": todo["id"]},
                {k: v for k, v in todo.items() if k != "id"},
                upsert=True,
            )
            for todo in snapshot.todos
        ]
        requests.append(DeleteMany({"_id": {"$nin": ids}}))
        try:
            # counter first: a failed bulk_write then only skips an id
            await self._counters.update_one(
                {"_id": COUNTER_ID}, {"$max": {"seq": snapshot.next_id}}, upsert=True
            )
            await self._todos.bulk_write(requests, ordered=True)
        except PyMongoError as err:
            logger.exception("Could not save todos to MongoDB")
            raise StorageError("Failed to save todos") from err

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


def create_backend(settings: Settings) -> PersistenceBackend:
    if settings.todo_backend == "mongo":
        if not settings.mongodb_uri:
            raise ValueError("MONGODB_URI is required when TODO_BACKEND=mongo")
        logger.info("Using MongoDB backend (database %s)", settings.mongodb_database)
        return MongoBackend.from_uri(settings.mongodb_uri, settings.mongodb_database)
    logger.info("Using JSON file backend at %s", settings.todo_data_file)
    return JsonFileBackend(settings.todo_data_file)
