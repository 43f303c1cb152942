"""
Analytics Router
Full analytics page bundle and the grocery vs restaurant comparison
"""
from fastapi import APIRouter, Depends

from trakzi_analytics.models.bundles import AnalyticsBundle, GroceryVsRestaurantBundle
from trakzi_analytics.routers.deps import cached, get_analytics_request, get_bundle_cache
from trakzi_analytics.utils.analyzer import AnalyticsRequest
from trakzi_analytics.utils.cache import BundleCache

router = APIRouter()


@router.get("/grocery-vs-restaurant", response_model=GroceryVsRestaurantBundle)
def get_grocery_vs_restaurant(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "grocery-vs-restaurant", request.grocery_vs_restaurant)


@router.get("/bundle", response_model=AnalyticsBundle)
def get_analytics_bundle(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    """
    Every analytics chart in one response, built from a single filtered set
    so the widgets agree with each other.
    """
    return cached(cache, request, "analytics", request.analytics)
