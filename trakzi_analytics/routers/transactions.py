"""
Transactions Router
Daily net series and total transaction count for the selected period
"""
from typing import List

from fastapi import APIRouter, Depends

from trakzi_analytics.models.bundles import DailyPoint, TotalTransactionCount
from trakzi_analytics.routers.deps import cached, get_analytics_request, get_bundle_cache
from trakzi_analytics.utils.analyzer import AnalyticsRequest
from trakzi_analytics.utils.cache import BundleCache

router = APIRouter()


@router.get("/daily", response_model=List[DailyPoint])
def get_daily_transactions(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    """One zero-filled entry per calendar day of the period."""
    return cached(cache, request, "daily", request.daily_series)


@router.get("/total-count", response_model=TotalTransactionCount)
def get_total_count(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "total-count", request.total_count)
