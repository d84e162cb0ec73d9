"""
Async DB helpers that transparently handle Motor (async) and in-memory (sync) collections.

Motor methods return awaitables; plain collections used by tests return values
directly. Each helper calls the method and awaits the result only when needed.
"""

from __future__ import annotations

import inspect
from typing import Any


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


async def db_find_one(collection: Any, query: dict[str, Any]) -> dict[str, Any] | None:
    return await _resolve(collection.find_one(query))


async def db_insert_one(collection: Any, doc: dict[str, Any]) -> Any:
    return await _resolve(collection.insert_one(doc))


async def db_update_one(collection: Any, query: dict[str, Any], update: dict[str, Any]) -> Any:
    return await _resolve(collection.update_one(query, update))


async def db_replace_one(collection: Any, query: dict[str, Any], doc: dict[str, Any]) -> Any:
    return await _resolve(collection.replace_one(query, doc))


async def db_delete_one(collection: Any, query: dict[str, Any]) -> Any:
    return await _resolve(collection.delete_one(query))


async def db_find_paginated(
    collection: Any,
    query: dict[str, Any],
    *,
    skip: int = 0,
    limit: int = 10,
    sort: list[tuple[str, int]] | None = None,
) -> list[dict[str, Any]]:
    """Find with optional sort/skip/limit.

    - sort: list of (field, direction) where direction is 1 (asc) or -1 (desc)
    """
    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(int(skip))
    if limit is not None:
        cursor = cursor.limit(int(limit))
    to_list = getattr(cursor, 'to_list', None)
    if callable(to_list):
        return await _resolve(to_list(length=limit))
    return list(cursor)


async def db_count(collection: Any, query: dict[str, Any]) -> int:
    return int(await _resolve(collection.count_documents(query)))
