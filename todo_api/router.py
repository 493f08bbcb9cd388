"""
Outcome mapping for Todo API requests.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable

from .operations import NotFoundError, StorageError, ValidationError


logger = logging.getLogger(__name__)


async def handle_operation(
    operation: Awaitable[Any],
    success_status: int = 200,
    storage_message: str = "Storage unavailable",
) -> dict:
    """
    Await a store operation and return {"status": int, "body": Any}.

    Error bodies are always {"error": <short message>}; storage failures use
    ``storage_message`` so no backend detail reaches the client.
    """
    try:
        result = await operation
        return {"status": success_status, "body": result}

    except ValidationError as err:
        return {"status": 400, "body": {"error": err.message}}

    except NotFoundError as err:
        return {"status": 404, "body": {"error": err.message}}

    except StorageError as err:
        logger.error("%s: %s", storage_message, err.message)
        return {"status": 500, "body": {"error": storage_message}}

    except Exception:
        logger.exception("Unhandled error while processing request")
        return {"status": 500, "body": {"error": "Internal server error"}}
