"""
Todo store and its error taxonomy.

The store owns the authoritative, ordered collection of todos. Every mutation
builds the complete new state on a copy, persists it through the backend and
only then commits it in memory, so a failed flush never leaves memory and
storage diverged. All access goes through a single asyncio lock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from .schemas import DEFAULT_CATEGORY, DEFAULT_PRIORITY, Snapshot, TodoDict

if TYPE_CHECKING:
    from .storage import PersistenceBackend


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TodoError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(TodoError):
    status_code = 400


class NotFoundError(TodoError):
    status_code = 404

    def __init__(self, message: str = "Todo not found"):
        super().__init__(message)


class StorageError(TodoError):
    status_code = 500


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _validate_string(args: dict, field: str) -> Optional[str]:
    val = args.get(field)
    if val is None:
        return None
    if not isinstance(val, str):
        raise ValidationError(f"{field}: Expected string, received {type(val).__name__}")
    return val


def _validate_bool(args: dict, field: str) -> Optional[bool]:
    val = args.get(field)
    if val is None:
        return None
    if not isinstance(val, bool):
        raise ValidationError(f"{field}: Expected boolean, received {type(val).__name__}")
    return val


def _parse_id(todo_id: Any) -> int:
    if isinstance(todo_id, bool):
        raise NotFoundError()
    if isinstance(todo_id, int):
        return todo_id
    if isinstance(todo_id, str) and todo_id.strip().isdecimal():
        try:
            return int(todo_id.strip())
        except ValueError:
            raise NotFoundError() from None
    raise NotFoundError()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class TodoStore:
    def __init__(self, backend: PersistenceBackend):
        self._backend = backend
        self._todos: dict[int, TodoDict] = {}
        self._next_id = 1
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def degraded(self) -> bool:
        return not self._loaded

    async def open(self) -> None:
        """Load the collection; on failure log and stay degraded."""
        async with self._lock:
            try:
                await self._load()
            except StorageError as err:
                logger.error("Store is degraded, backend could not be loaded: %s", err.message)

    async def close(self) -> None:
        await self._backend.close()

    async def _load(self) -> None:
        snapshot = await self._backend.load()
        todos = {todo["id"]: todo for todo in snapshot.todos}
        next_id = max([snapshot.next_id, *(i + 1 for i in todos)])
        self._todos = todos
        self._next_id = next_id
        self._loaded = True
        logger.info("Loaded %d todos (next id %d)", len(todos), next_id)

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self._load()

    async def _commit(self, todos: dict[int, TodoDict], next_id: int) -> None:
        await self._backend.save(Snapshot(todos=list(todos.values()), next_id=next_id))
        self._todos = todos
        self._next_id = next_id

    # -- operations ---------------------------------------------------------

    async def list(self) -> list[TodoDict]:
        async with self._lock:
            await self._ensure_loaded()
            return [dict(todo) for todo in self._todos.values()]

    async def create(self, args: Optional[dict]) -> TodoDict:
        if args is None:
            args = {}
        text = _validate_string(args, "text")
        category = _validate_string(args, "category")
        priority = _validate_string(args, "priority")
        if not text or not text.strip():
            raise ValidationError("Todo text is required")

        async with self._lock:
            await self._ensure_loaded()
            todo: TodoDict = {
                "id": self._next_id,
                "text": text.strip(),
                "completed": False,
                "category": category or DEFAULT_CATEGORY,
                "priority": priority or DEFAULT_PRIORITY,
            }
            todos = {**self._todos, todo["id"]: todo}
            await self._commit(todos, self._next_id + 1)

        logger.info("Created todo %d", todo["id"])
        return dict(todo)

    async def update(self, todo_id: Any, args: Optional[dict]) -> TodoDict:
        if args is None:
            args = {}
        category = _validate_string(args, "category")
        priority = _validate_string(args, "priority")
        completed = _validate_bool(args, "completed")

        async with self._lock:
            await self._ensure_loaded()
            key = _parse_id(todo_id)
            todo = self._todos.get(key)
            if todo is None:
                raise NotFoundError()

            updated: TodoDict = {**todo}
            updated["completed"] = (not todo["completed"]) if completed is None else completed
            if category:
                updated["category"] = category
            if priority:
                updated["priority"] = priority

            await self._commit({**self._todos, key: updated}, self._next_id)

        logger.info("Updated todo %d (completed=%s)", key, updated["completed"])
        return dict(updated)

    async def delete(self, todo_id: Any) -> TodoDict:
        async with self._lock:
            await self._ensure_loaded()
            key = _parse_id(todo_id)
            todo = self._todos.get(key)
            if todo is None:
                raise NotFoundError()

            todos = {k: v for k, v in self._todos.items() if k != key}
            await self._commit(todos, self._next_id)

        logger.info("Deleted todo %d", key)
        return dict(todo)
