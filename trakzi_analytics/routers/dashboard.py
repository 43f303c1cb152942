"""
Dashboard Router
Trends, savings, headline stats and the home page bundle
"""
from fastapi import APIRouter, Depends

from trakzi_analytics.models.bundles import DashboardStats, HomeBundle, SavingsBundle, TrendsBundle
from trakzi_analytics.routers.deps import cached, get_analytics_request, get_bundle_cache
from trakzi_analytics.utils.analyzer import AnalyticsRequest
from trakzi_analytics.utils.cache import BundleCache

router = APIRouter()


@router.get("/trends", response_model=TrendsBundle)
def get_trends(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    """Current period against the equal-length period right before it."""
    return cached(cache, request, "trends", request.trends)


@router.get("/savings", response_model=SavingsBundle)
def get_savings(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "savings", request.savings)


@router.get("/dashboard-stats", response_model=DashboardStats)
def get_dashboard_stats(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "dashboard-stats", request.dashboard_stats)


@router.get("/home", response_model=HomeBundle)
def get_home(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "home", request.home)
