"""
FastAPI application for the Todo API.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from .config import Settings, get_settings
from .operations import TodoStore
from .router import handle_operation
from .storage import create_backend


logger = logging.getLogger(__name__)

LANDING_HTML = (
    "<h1>Welcome to the Todo API</h1>"
    '<p>Go to <a href="/todos">/todos</a> to see the data.</p>'
)


class InvalidBody(Exception):
    pass


async def _read_json_object(request: Request, allow_empty: bool = False) -> dict:
    body = await request.body()
    if not body.strip() and allow_empty:
        return {}
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise InvalidBody() from err
    if not isinstance(data, dict):
        raise InvalidBody()
    return data


def _respond(result: dict) -> JSONResponse:
    return JSONResponse(status_code=result["status"], content=result["body"])


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[TodoStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    if store is None:
        store = TodoStore(create_backend(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.open()
        if store.degraded:
            logger.warning("Serving in degraded mode; todo operations will fail until storage recovers")
        yield
        await store.close()

    app = FastAPI(title="Todo API", lifespan=lifespan)
    app.state.store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidBody)
    async def invalid_body(request: Request, exc: InvalidBody) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON in request body"})

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    @app.get("/todos")
    async def list_todos() -> JSONResponse:
        return _respond(await handle_operation(
            store.list(), storage_message="Failed to fetch todos",
        ))

    @app.post("/todos")
    async def create_todo(request: Request) -> JSONResponse:
        args = await _read_json_object(request, allow_empty=True)
        return _respond(await handle_operation(
            store.create(args), success_status=201, storage_message="Failed to save todo",
        ))

    @app.put("/todos/{todo_id}")
    async def update_todo(todo_id: str, request: Request) -> JSONResponse:
        args = await _read_json_object(request, allow_empty=True)
        return _respond(await handle_operation(
            store.update(todo_id, args), storage_message="Update failed",
        ))

    @app.delete("/todos/{todo_id}")
    async def delete_todo(todo_id: str) -> JSONResponse:
        return _respond(await handle_operation(
            store.delete(todo_id), storage_message="Delete failed",
        ))

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "message": "Server is running"}

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return LANDING_HTML

    return app
