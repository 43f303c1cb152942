"""
Charts Router
Data library and fridge (receipt) bundles
"""
from fastapi import APIRouter, Depends

from trakzi_analytics.models.bundles import DataLibraryBundle, FridgeBundle
from trakzi_analytics.routers.deps import cached, get_analytics_request, get_bundle_cache
from trakzi_analytics.utils.analyzer import AnalyticsRequest
from trakzi_analytics.utils.cache import BundleCache

router = APIRouter()


@router.get("/charts/data-library-bundle", response_model=DataLibraryBundle)
def get_data_library_bundle(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "data-library", request.data_library)


@router.get("/fridge", response_model=FridgeBundle)
def get_fridge_bundle(
    request: AnalyticsRequest = Depends(get_analytics_request),
    cache: BundleCache = Depends(get_bundle_cache),
):
    return cached(cache, request, "fridge", request.fridge)
