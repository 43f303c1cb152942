import json
import logging
from unittest.mock import Mock

from botocore.exceptions import ClientError, EndpointConnectionError

from trakzi_analytics.utils.cache import BundleCache, InvalidationSignal


class Counter:
    def __init__(self, value="bundle"):
        self.calls = 0
        self.value = value

    def __call__(self):
        self.calls += 1
        return self.value


def test_cached_bundle_is_computed_once():
    cache = BundleCache()
    compute = Counter()
    assert cache.get_or_compute("trends", "30d", 1, compute) == "bundle"
    assert cache.get_or_compute("trends", "30d", 1, compute) == "bundle"
    assert compute.calls == 1


def test_new_snapshot_version_misses():
    cache = BundleCache()
    compute = Counter()
    cache.get_or_compute("trends", "30d", 1, compute)
    cache.get_or_compute("trends", "30d", 2, compute)
    cache.get_or_compute("trends", "7d", 2, compute)
    assert compute.calls == 3


def test_entries_expire_after_ttl():
    now = [100.0]
    cache = BundleCache(ttl_seconds=60, clock=lambda: now[0])
    compute = Counter()
    cache.get_or_compute("savings", "all", 1, compute)
    now[0] += 59
    cache.get_or_compute("savings", "all", 1, compute)
    now[0] += 2
    cache.get_or_compute("savings", "all", 1, compute)
    assert compute.calls == 2


def test_analytics_scope_keeps_other_bundles():
    cache = BundleCache()
    trends, fridge = Counter(), Counter()
    cache.get_or_compute("trends", "all", 1, trends)
    cache.get_or_compute("fridge", "all", 1, fridge)

    assert cache.invalidate("analytics") == 1

    cache.get_or_compute("trends", "all", 1, trends)
    cache.get_or_compute("fridge", "all", 1, fridge)
    assert trends.calls == 2
    assert fridge.calls == 1


def test_all_scope_drops_everything():
    cache = BundleCache()
    cache.get_or_compute("trends", "all", 1, Counter())
    cache.get_or_compute("fridge", "all", 1, Counter())
    assert cache.invalidate("all") == 2
    assert len(cache) == 0


def test_value_computed_across_an_invalidation_is_not_stored():
    cache = BundleCache()

    def compute():
        cache.invalidate("all")
        return "stale"

    assert cache.get_or_compute("daily", "30d", 1, compute) == "stale"
    assert len(cache) == 0


def test_signal_invokes_lambda_asynchronously():
    cache = BundleCache()
    cache.get_or_compute("trends", "all", 1, Counter())
    client = Mock()
    client.invoke.return_value = {"StatusCode": 202}
    signal = InvalidationSignal(cache, function_name="trakzi-cache", lambda_client=client)

    signal.invalidate("analytics")

    assert len(cache) == 0
    client.invoke.assert_called_once()
    kwargs = client.invoke.call_args.kwargs
    assert kwargs["FunctionName"] == "trakzi-cache"
    assert kwargs["InvocationType"] == "Event"
    assert json.loads(kwargs["Payload"])["scope"] == "analytics"


def test_signal_never_raises_on_client_error(caplog):
    cache = BundleCache()
    cache.get_or_compute("trends", "all", 1, Counter())
    client = Mock()
    client.invoke.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "Function not found"}},
        "Invoke",
    )
    signal = InvalidationSignal(cache, function_name="missing", lambda_client=client)

    with caplog.at_level(logging.ERROR):
        signal.invalidate("all")

    assert len(cache) == 0
    assert "AWS Lambda error" in caplog.text


def test_signal_never_raises_when_unreachable():
    client = Mock()
    client.invoke.side_effect = EndpointConnectionError(endpoint_url="https://lambda.eu-west-1.amazonaws.com")
    InvalidationSignal(BundleCache(), function_name="trakzi-cache", lambda_client=client).invalidate()

    client.invoke.side_effect = RuntimeError("boom")
    InvalidationSignal(BundleCache(), function_name="trakzi-cache", lambda_client=client).invalidate()
    assert client.invoke.call_count == 2


def test_signal_without_function_stays_local():
    client = Mock()
    InvalidationSignal(BundleCache(), lambda_client=client).invalidate("all")
    client.invoke.assert_not_called()


def test_unknown_scope_is_ignored(caplog):
    cache = BundleCache()
    cache.get_or_compute("trends", "all", 1, Counter())
    client = Mock()
    signal = InvalidationSignal(cache, function_name="trakzi-cache", lambda_client=client)

    with caplog.at_level(logging.WARNING):
        signal.invalidate("everything")

    assert len(cache) == 1
    client.invoke.assert_not_called()
    assert "unknown scope" in caplog.text
