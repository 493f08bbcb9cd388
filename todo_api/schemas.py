"""
Data models for the Todo API.
Uses plain dicts on the wire and in storage, typed with TypedDict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict


DEFAULT_CATEGORY = "personal"
DEFAULT_PRIORITY = "medium"


class TodoDict(TypedDict):
    id: int
    text: str
    completed: bool
    category: str
    priority: str


@dataclass
class Snapshot:
    """Persisted unit: the ordered todo list plus the next id to allocate."""

    todos: list[TodoDict] = field(default_factory=list)
    next_id: int = 1
