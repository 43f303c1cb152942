"""
Bundle Cache & Invalidation Signal
Keeps recently computed bundles for a short TTL and drops them after
data-changing events (CSV import, logout, fixture regeneration). External
cache owners are told through an asynchronous AWS Lambda invocation.
"""
import json
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from trakzi_analytics.core.config import settings

logger = logging.getLogger(__name__)

SCOPE_ALL = "all"
SCOPE_ANALYTICS = "analytics"
VALID_SCOPES = (SCOPE_ALL, SCOPE_ANALYTICS)

# Bundles dropped by invalidate("analytics"); everything is dropped by invalidate("all")
ANALYTICS_BUNDLES = frozenset(
    {
        "daily",
        "total-count",
        "trends",
        "savings",
        "grocery-vs-restaurant",
        "dashboard-stats",
        "analytics",
    }
)

T = TypeVar("T")
CacheKey = Tuple[str, str, int]


def scope_for(bundle: str) -> Optional[str]:
    return SCOPE_ANALYTICS if bundle in ANALYTICS_BUNDLES else None


@dataclass
class _Entry:
    value: Any
    generation: Tuple[int, int]
    expires_at: float


class BundleCache:
    """
    TTL cache keyed by (bundle, filter token, snapshot version).

    Each invalidation bumps a generation counter; a value computed before an
    invalidation is never stored or served afterwards.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, _Entry] = {}
        self._generations: Dict[str, int] = {SCOPE_ALL: 0, SCOPE_ANALYTICS: 0}

    def _generation(self, bundle: str) -> Tuple[int, int]:
        scope = scope_for(bundle)
        return self._generations[SCOPE_ALL], self._generations[scope] if scope else 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(self, bundle: str, token: str, version: int, compute: Callable[[], T]) -> T:
        key = (bundle, token, version)
        with self._lock:
            generation = self._generation(bundle)
            entry = self._entries.get(key)
            if entry and entry.generation == generation and entry.expires_at > self._clock():
                logger.debug(f"Bundle cache HIT: {key}")
                return entry.value

        logger.debug(f"Bundle cache MISS: {key}")
        value = compute()

        with self._lock:
            if self._generation(bundle) == generation:
                self._entries[key] = _Entry(value, generation, self._clock() + self._ttl)
        return value

    def invalidate(self, scope: str) -> int:
        """Drop every entry in ``scope``; returns how many were dropped."""
        with self._lock:
            if scope == SCOPE_ALL:
                dropped = len(self._entries)
                self._entries.clear()
            else:
                stale = [key for key in self._entries if scope_for(key[0]) == scope]
                for key in stale:
                    del self._entries[key]
                dropped = len(stale)
            self._generations[scope] += 1
        return dropped


class InvalidationSignal:
    """
    Fire-and-forget cache invalidation.

    ``invalidate`` never raises: the logout or import that triggered it must
    go through even when the external collaborator is unreachable. Delivery to
    the collaborator is at-most-once.
    """

    def __init__(
        self,
        cache: BundleCache,
        function_name: Optional[str] = None,
        region: str = "eu-west-1",
        lambda_client: Any = None,
    ) -> None:
        self._cache = cache
        self._function_name = function_name
        self._region = region
        self._lambda_client = lambda_client

    def _client(self) -> Any:
        if self._lambda_client is None:
            self._lambda_client = boto3.client("lambda", region_name=self._region)
        return self._lambda_client

    def invalidate(self, scope: str = SCOPE_ALL) -> None:
        if scope not in VALID_SCOPES:
            logger.warning(f"Ignoring cache invalidation for unknown scope '{scope}'")
            return

        dropped = self._cache.invalidate(scope)
        logger.info(f"Cache invalidated for scope '{scope}' ({dropped} bundles dropped)")
        self._notify(scope)

    def _notify(self, scope: str) -> None:
        if not self._function_name:
            return

        payload = {
            "scope": scope,
            "triggered_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self._client().invoke(
                FunctionName=self._function_name,
                InvocationType="Event",  # asynchronous, no result to wait for
                Payload=json.dumps(payload).encode("utf-8"),
            )
            logger.info(
                f"Invalidation for '{scope}' sent to {self._function_name} "
                f"(status {response.get('StatusCode')})"
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"AWS Lambda error while invalidating '{scope}': {str(e)}")
        except Exception as e:
            logger.error(f"Unexpected error invalidating '{scope}': {str(e)}", exc_info=True)


bundle_cache = BundleCache(settings.BUNDLE_CACHE_TTL_SECONDS)
invalidation_signal = InvalidationSignal(
    bundle_cache,
    function_name=settings.CACHE_INVALIDATION_FUNCTION,
    region=settings.AWS_REGION,
)


def invalidate(scope: str = SCOPE_ALL) -> None:
    """Module-level entry point used by routes and the scheduler."""
    invalidation_signal.invalidate(scope)
