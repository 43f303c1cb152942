from datetime import date, datetime, timedelta, timezone

import pytest

from trakzi_analytics.db.store import RecordStore
from trakzi_analytics.models.transaction import CategoryInfo, Receipt, ReceiptItem, Transaction
from trakzi_analytics.utils.analyzer import AnalyticsRequest, BundleAnalyzer, describe_span
from trakzi_analytics.utils.filtering import filter_by_period
from trakzi_analytics.utils.periods import resolve

NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)

analyzer = BundleAnalyzer()


def tx(id, days_ago, amount, category, hour=12):
    return Transaction(
        id=id,
        timestamp=NOW - timedelta(days=days_ago) + timedelta(hours=hour),
        amount=amount,
        category=category,
        description=f"Transaction {id}",
    )


# one -10 grocery purchase every other day for 40 days
corpus = [tx(i, i, -10.0, "Groceries") for i in range(2, 41, 2)]


def snapshot_of(transactions, receipts=()):
    store = RecordStore()
    return store.replace(
        transactions,
        receipts,
        categories=[CategoryInfo(name="Groceries", color="#22c55e", broad_type="Essentials")],
    )


def test_daily_series_has_one_entry_per_day():
    request = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer)
    series = request.daily_series()
    assert len(series) == 30
    assert series[0].date == date(2025, 5, 16)
    assert series[-1].date == date(2025, 6, 14)


def test_daily_series_zero_fills_empty_days():
    series = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer).daily_series()
    assert series[-1].total == 0.0  # 1 day ago: no purchase
    assert series[-2].total == -10.0
    assert sum(point.total for point in series) == -150.0


def test_daily_series_labels_today_with_todays_date():
    now = NOW + timedelta(hours=9, minutes=30)
    records = corpus + [Transaction(id=99, timestamp=NOW + timedelta(hours=8), amount=-5.0, category="Dining")]
    date_range = resolve("30d", now)
    series = analyzer.daily_series(filter_by_period(records, date_range), date_range)
    assert len(series) == 30
    assert series[-1].date == date(2025, 6, 15)
    assert series[-1].total == -5.0
    # the partial first day (16 May from 09:30) folds into 17 May
    assert series[0].date == date(2025, 5, 17)
    assert series[0].total == -10.0
    assert sum(point.total for point in series) == -155.0


def test_daily_series_for_all_starts_at_earliest_record():
    series = AnalyticsRequest(snapshot_of(corpus), "all", NOW, analyzer).daily_series()
    assert len(series) == 40
    assert series[0].date == date(2025, 5, 6)


def test_daily_series_empty_corpus():
    assert analyzer.daily_series([], resolve("all", NOW)) == []
    assert len(analyzer.daily_series([], resolve("7d", NOW))) == 7


def test_grocery_vs_restaurant_ignores_other_categories():
    records = [
        tx(1, 1, -10.0, "Groceries"),
        tx(2, 2, -20.0, "Groceries"),
        tx(3, 3, -30.0, "groceries"),
        tx(4, 4, -15.0, "Dining"),
        tx(5, 5, -25.0, "Restaurants"),
        tx(6, 6, -100.0, "Shopping"),
        tx(7, 7, 5.0, "Groceries"),  # refund, not spending
    ]
    result = analyzer.grocery_vs_restaurant(records)
    assert result.grocery == 60.0
    assert result.restaurant == 40.0
    assert result.grocery_count == 3
    assert result.restaurant_count == 2
    assert [month.month for month in result.monthly] == ["2025-06"]
    assert result.monthly[0].label == "Jun 2025"


def test_trends_without_data_are_stable():
    result = analyzer.trends([], resolve("30d", NOW))
    assert result.current_period_total == 0.0
    assert result.prior_period_total == 0.0
    assert result.change == 0.0
    assert result.percent_change == 0.0
    assert result.direction == "stable"


def test_trends_without_prior_period_report_no_change():
    result = analyzer.trends([tx(1, 2, 500.0, "Income")], resolve("7d", NOW))
    assert result.current_period_total == 500.0
    assert result.prior_period_total == 0.0
    assert result.change == 0.0
    assert result.percent_change == 0.0
    assert result.direction == "stable"


def test_savings_without_prior_period_report_no_delta():
    result = analyzer.savings([tx(1, 2, 500.0, "Income")], resolve("7d", NOW))
    assert result.net_savings == 500.0
    assert result.delta == 0.0
    assert result.percent_change == 0.0

def test_trends_improving_when_net_rises():
    records = [tx(1, 3, -100.0, "Shopping"), tx(2, 10, -200.0, "Shopping")]
    result = analyzer.trends(records, resolve("7d", NOW))
    assert result.current_period_total == -100.0
    assert result.prior_period_total == -200.0
    assert result.change == 100.0
    assert result.percent_change == 0.5
    assert result.direction == "improving"


def test_trends_declining_when_net_falls():
    records = [tx(1, 3, -300.0, "Shopping"), tx(2, 10, -100.0, "Shopping")]
    result = analyzer.trends(records, resolve("7d", NOW))
    assert result.percent_change == -2.0
    assert result.direction == "declining"


def test_trends_small_change_is_stable():
    records = [tx(1, 3, -100.0, "Shopping"), tx(2, 10, -100.5, "Shopping")]
    assert analyzer.trends(records, resolve("7d", NOW)).direction == "stable"


def test_trends_for_all_have_no_prior_period():
    result = analyzer.trends(corpus, resolve("all", NOW))
    assert result.prior_period_total == 0.0
    assert result.direction == "stable"
    assert result.categories == ["Groceries"]


def test_savings_compares_with_prior_window():
    records = [
        tx(1, 3, 1000.0, "Income"),
        tx(2, 2, -400.0, "Groceries"),
        tx(3, 10, 500.0, "Income"),
    ]
    result = analyzer.savings(records, resolve("7d", NOW))
    assert result.total_income == 1000.0
    assert result.total_expense == 400.0
    assert result.net_savings == 600.0
    assert result.savings_rate == 60.0
    assert result.prior_net_savings == 500.0
    assert result.delta == 100.0
    assert result.percent_change == pytest.approx(0.2)
    assert len(result.chart_data) == 7
    assert result.chart_data[-1].cumulative == 600.0


def test_dashboard_stats():
    records = [
        tx(1, 1, -50.0, "Shopping"),
        tx(2, 2, -30.0, "Dining"),
        tx(3, 3, -50.0, "Groceries"),
        tx(4, 4, 1000.0, "Income"),
    ]
    stats = analyzer.dashboard_stats(records)
    assert stats.total_spent == 130.0
    assert stats.total_income == 1000.0
    assert stats.net == 870.0
    assert stats.transaction_count == 4
    assert stats.top_category == "Groceries"  # tie with Shopping
    assert stats.average_transaction == 43.33
    assert stats.breakdown.needs == 50.0
    assert stats.breakdown.wants == 80.0
    assert stats.breakdown.needs_percent == 38.5


def test_dashboard_stats_empty():
    stats = analyzer.dashboard_stats([])
    assert stats.total_spent == 0.0
    assert stats.transaction_count == 0
    assert stats.top_category is None
    assert stats.average_transaction == 0.0


def test_total_count_matches_filtered_records():
    request = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer)
    result = request.total_count()
    assert result.count == len(request.transactions) == 15
    assert result.first_date == date(2025, 5, 16)
    assert result.last_date == date(2025, 6, 13)
    assert result.time_span == "27 days"
    assert sum(point.value for point in result.trend) == 15


def test_total_count_empty():
    result = analyzer.total_count([])
    assert result.count == 0
    assert result.time_span == "No data"


def test_describe_span():
    assert describe_span(date(2024, 1, 1), date(2025, 3, 15)) == "1 year and 2 months"
    assert describe_span(date(2025, 5, 10), date(2025, 6, 2)) == "22 days"
    assert describe_span(date(2025, 3, 1), date(2025, 5, 4)) == "2 months and 3 days"
    assert describe_span(date(2025, 5, 1), date(2025, 5, 2)) == "1 day"


def test_widgets_of_one_request_agree():
    request = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer)
    stats = request.dashboard_stats()
    bundle = request.analytics()
    assert stats.transaction_count == request.total_count().count == bundle.kpis.transaction_count
    assert sum(point.total for point in request.daily_series()) == stats.net
    assert request.home().kpis == bundle.kpis


def test_bogus_filter_matches_all():
    snapshot = snapshot_of(corpus)
    bogus = AnalyticsRequest(snapshot, "nonsense", NOW, analyzer)
    everything = AnalyticsRequest(snapshot, "all", NOW, analyzer)
    assert bogus.token == "all"
    assert bogus.dashboard_stats() == everything.dashboard_stats()


def test_analytics_bundle():
    bundle = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer).analytics()
    assert bundle.has_data_in_other_periods is True
    assert len(bundle.daily_spending) == 30
    assert len(bundle.day_of_week_spending) == 7
    assert sum(day.count for day in bundle.day_of_week_spending) == 15
    assert bundle.needs_wants[0].classification == "Essentials"
    assert bundle.needs_wants[0].total == 150.0
    assert bundle.category_spending[0].color == "#22c55e"
    assert bundle.category_spending[0].percentage == 100.0
    assert bundle.transaction_history[0].date == date(2025, 6, 13)


def test_data_library_bundle():
    bundle = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer).data_library()
    assert len(bundle.transactions) == 15
    assert bundle.stats.total_expenses == 150.0
    assert bundle.stats.net_worth == -150.0  # no account balances loaded
    assert bundle.categories[0].name == "Groceries"
    assert bundle.categories[0].transaction_count == 15
    assert bundle.user_categories_count == 1


receipts = [
    Receipt(
        id="r1",
        timestamp=NOW - timedelta(days=2, hours=-10),
        store="Lidl",
        items=(
            ReceiptItem(name="Bananas", category="Fruits", price=3.0, quantity=2, broad_type="Nutritious"),
            ReceiptItem(name="Potato Chips", category="Salty Snacks", price=2.5, broad_type="Snacks"),
        ),
    ),
    Receipt(
        id="r2",
        timestamp=NOW - timedelta(days=1, hours=-10),
        store="Aldi",
        items=(ReceiptItem(name="Milk", category="Dairy", price=1.2, broad_type="Nutritious"),),
    ),
    Receipt(id="old", timestamp=NOW - timedelta(days=40), store="Aldi", total=99.0),
]


def test_receipt_total_defaults_to_item_sum():
    assert receipts[0].total == 5.5
    assert receipts[2].total == 99.0


def test_fridge_bundle():
    bundle = AnalyticsRequest(snapshot_of(corpus, receipts), "7d", NOW, analyzer).fridge()
    assert bundle.kpis.total_spent == pytest.approx(6.7)
    assert bundle.kpis.shopping_trips == 2
    assert bundle.kpis.stores_visited == 2
    assert bundle.kpis.average_receipt == pytest.approx(3.35)
    assert bundle.kpis.item_count == 4
    assert bundle.store_spending[0].store_name == "Lidl"
    assert bundle.broad_type_breakdown[0].type_name == "Nutritious"
    assert bundle.broad_type_breakdown[0].total == pytest.approx(4.2)
    assert len(bundle.daily_spending) == 7


def test_home_bundle():
    bundle = AnalyticsRequest(snapshot_of(corpus), "30d", NOW, analyzer).home()
    assert bundle.top_categories[0].category == "Groceries"
    assert len(bundle.daily_spending) == 30
    assert bundle.daily_spending[-2].total == 10.0
    assert bundle.recent_transactions == 15
