"""
Shared route dependencies.
Every dashboard route resolves one AnalyticsRequest (one snapshot, one range)
and reads bundles through the bundle cache.
"""
from datetime import datetime
from typing import Callable, Optional, TypeVar

from fastapi import Depends, Query

from trakzi_analytics.core.config import settings
from trakzi_analytics.db.store import RecordStore, get_record_store
from trakzi_analytics.utils.analyzer import AnalyticsRequest, BundleAnalyzer
from trakzi_analytics.utils.cache import BundleCache, InvalidationSignal, bundle_cache, invalidation_signal
from trakzi_analytics.utils.periods import reference_now

T = TypeVar("T")

bundle_analyzer = BundleAnalyzer(settings.reference_tz, epsilon=settings.TREND_EPSILON)


def get_reference_now() -> datetime:
    return reference_now(bundle_analyzer.tz, settings.ALIGN_PERIODS_TO_DAYS)


def get_bundle_analyzer() -> BundleAnalyzer:
    return bundle_analyzer


def get_bundle_cache() -> BundleCache:
    return bundle_cache


def get_invalidation_signal() -> InvalidationSignal:
    return invalidation_signal


def get_analytics_request(
    filter_token: Optional[str] = Query(None, alias="filter", description="7d, 30d, 90d, ytd, all or a year"),
    store: RecordStore = Depends(get_record_store),
    now: datetime = Depends(get_reference_now),
    analyzer: BundleAnalyzer = Depends(get_bundle_analyzer),
) -> AnalyticsRequest:
    # RecordStoreError propagates to the 503 handler
    return AnalyticsRequest(store.snapshot(), filter_token, now, analyzer)


def cached(cache: BundleCache, request: AnalyticsRequest, bundle: str, build: Callable[[], T]) -> T:
    return cache.get_or_compute(bundle, request.token, request.snapshot.version, build)
