"""Per-request response caching for read-only routes."""

import json
import asyncio
import logging
from functools import wraps
from typing import Iterable, Optional

from fastapi import Request

from .cache import Cache

logger = logging.getLogger(__name__)

CACHEABLE_METHOD = "GET"


def make_cache_key(path: str, query_params: Iterable[tuple[str, str]], scope: Optional[str] = None) -> str:
    """Build a cache key from the normalized path and sorted query parameters."""
    normalized = path.rstrip("/") or "/"
    query = json.dumps(sorted(query_params), separators=(",", ":"))
    key = f"{normalized}-{query}"
    if scope:
        key = f"{key}@{scope}"
    return key


def cached_response(vary_by_user: bool = False):
    """
    Cache the return value of an async route for GET requests.

    The route must accept ``request: Request``; with ``vary_by_user`` it must
    also accept ``user`` (the authenticated caller) so the key includes the
    caller id.

    Usage:
        @router.get("/dashboards/user")
        @cached_response(vary_by_user=True)
        async def user_dashboard(request: Request, user: CurrentUser = Depends(...)):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request: Request = kwargs["request"]
            if request.method != CACHEABLE_METHOD:
                return await func(*args, **kwargs)

            cache: Cache = request.app.state.cache
            scope = None
            if vary_by_user:
                scope = kwargs["user"].id
            cache_key = make_cache_key(request.url.path, request.query_params.multi_items(), scope)

            cached = cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache HIT: {cache_key}")
                return cached

            logger.debug(f"Cache MISS: {cache_key}")
            result = await func(*args, **kwargs)
            cache.set(cache_key, result)
            return result
        return wrapper
    return decorator


async def sweep_periodically(cache: Cache, interval: float) -> None:
    """Purge expired entries every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        removed = cache.purge_expired()
        if removed:
            logger.debug(f"Cache sweep removed {removed} expired entries")
