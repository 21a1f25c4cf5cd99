# Overview: Scoped read cache over Flask-Caching with generation-based invalidation.

"""
Read cache.

Each domain (scope) owns a generation counter. Cache keys embed the current
generation, so invalidate(scope) only has to bump the counter: every key
written under the old generation becomes unreachable and ages out on its
own timeout. The cache is a UX optimization; correctness never depends on
it.
"""

from __future__ import annotations

import hashlib
import json
import logging

from ..extensions import cache


logger = logging.getLogger(__name__)

SCOPE_STORES = "stores"
SCOPE_INVENTORY = "inventory"
SCOPE_SUPPLIERS = "suppliers"
SCOPE_RETURNS = "returns"
SCOPE_REPORTS = "reports"
SCOPE_FINANCE = "finance"
SCOPE_GAMIFICATION = "gamification"


def _generation_key(scope: str) -> str:
    return f"retailhub:gen:{scope}"


def generation(scope: str) -> int:
    return cache.get(_generation_key(scope)) or 0


def invalidate(*scopes: str) -> None:
    """Invalidate every cached read of the given scopes."""
    for scope in scopes:
        key = _generation_key(scope)
        cache.set(key, generation(scope) + 1, timeout=0)
        logger.debug("Cache scope invalidated: %s", scope)


def make_key(scope: str, key_parts) -> str:
    raw = json.dumps(key_parts, sort_keys=True, default=str)
    digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()
    return f"retailhub:{scope}:{generation(scope)}:{digest}"


def cached_query(scope: str, key_parts, producer, timeout: int | None = None):
    """
    Return the cached value for (scope, key_parts) or compute it.

    producer is a zero-argument callable; its result must be picklable
    (plain dicts and lists). None results are not cached.
    """
    key = make_key(scope, key_parts)
    value = cache.get(key)
    if value is not None:
        return value

    value = producer()
    if value is not None:
        cache.set(key, value, timeout=timeout)
    return value
