from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from trakzi_analytics.db.store import Snapshot
from trakzi_analytics.models.bundles import (
    AnalyticsBundle,
    BroadTypeTotal,
    CategorySpending,
    CountTrendPoint,
    DailyCashFlow,
    DailyPoint,
    DashboardStats,
    DataLibraryBundle,
    DayOfWeekCategory,
    DayOfWeekSpending,
    FridgeBundle,
    FridgeCategorySpending,
    FridgeKpis,
    GroceryVsRestaurantBundle,
    HistoryEntry,
    HomeBundle,
    Kpis,
    LibraryCategory,
    LibraryStats,
    LibraryTransaction,
    MonthlyCategory,
    MonthlyFoodSplit,
    NeedsWants,
    SavingsBundle,
    SavingsPoint,
    SpendingSplit,
    StoreSpending,
    TotalTransactionCount,
    TrendPoint,
    TrendsBundle,
)
from trakzi_analytics.models.transaction import Receipt, Transaction
from trakzi_analytics.utils.categories import (
    BUDGET_BUCKETS,
    FOOD_BUCKETS,
    GROCERY,
    NEEDS,
    RESTAURANT,
    SAVINGS,
    WANTS,
    CategoryBuckets,
)
from trakzi_analytics.utils.filtering import filter_by_period
from trakzi_analytics.utils.periods import DateRange, local_date, normalize_token, resolve, start_of_day

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
ONE_DAY = timedelta(days=1)
ONE_MICROSECOND = timedelta(microseconds=1)

Dated = TypeVar("Dated", Transaction, Receipt)


def _money(value: float) -> float:
    # "+ 0.0" turns -0.0 into 0.0
    return round(value, 2) + 0.0


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def describe_span(first: Optional[date], last: Optional[date]) -> str:
    """Human readable distance between two dates, e.g. "1 year and 2 months"."""
    if first is None or last is None:
        return "No data"

    years = last.year - first.year
    months = last.month - first.month
    days = last.day - first.day
    if days < 0:
        months -= 1
        days += 30
    if months < 0:
        years -= 1
        months += 12

    if years > 0:
        span = _plural(years, "year")
        if months > 0:
            span += f" and {_plural(months, 'month')}"
        return span
    if months > 0:
        span = _plural(months, "month")
        if days > 0:
            span += f" and {_plural(days, 'day')}"
        return span
    return _plural(days, "day")


class BundleAnalyzer:
    """
    Pure bundle builders shared by every dashboard route.

    Every method derives one widget shape from the records it is handed and
    never mutates them. Trends and savings compare against the preceding
    window, so they take the unfiltered corpus plus the resolved range.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        epsilon: float = 0.01,
        food_buckets: CategoryBuckets = FOOD_BUCKETS,
        budget_buckets: CategoryBuckets = BUDGET_BUCKETS,
    ) -> None:
        self.tz = tz
        self._epsilon = epsilon
        self._food_buckets = food_buckets
        self._budget_buckets = budget_buckets

    # ------------------------------------------------------------------
    # Calendar helpers
    # ------------------------------------------------------------------

    def calendar_days(self, date_range: DateRange, records: Sequence[Dated] = ()) -> List[date]:
        """
        Calendar days covered by ``date_range``: ceil(wall-clock span / 1 day)
        entries ending at the local date of the last instant before ``end``.
        An unbounded range starts at local midnight of the earliest record.
        """
        start = date_range.start
        if date_range.is_unbounded:
            if not records:
                return []
            earliest = min(record.timestamp for record in records)
            start = start_of_day(local_date(earliest, self.tz), self.tz)

        start_local = start.astimezone(self.tz)
        end_local = date_range.end.astimezone(self.tz)
        if end_local <= start_local:
            return []

        span = end_local.replace(tzinfo=None) - start_local.replace(tzinfo=None)
        whole_days, remainder = divmod(span, ONE_DAY)
        count = whole_days + (1 if remainder else 0)
        last = local_date(date_range.end - ONE_MICROSECOND, self.tz)
        return [last - timedelta(days=i) for i in range(count - 1, -1, -1)]

    def _bucket_by_day(
        self,
        records: Iterable[Dated],
        days: Sequence[date],
        value: Callable[[Dated], float],
    ) -> Dict[date, float]:
        totals: Dict[date, float] = {day: 0.0 for day in days}
        if not days:
            return totals
        first, last = days[0], days[-1]
        for record in records:
            day = local_date(record.timestamp, self.tz)
            # a leading partial day folds into the first entry
            day = min(max(day, first), last)
            totals[day] += value(record)
        return totals

    def _month_key(self, timestamp: datetime) -> str:
        return local_date(timestamp, self.tz).strftime("%Y-%m")

    def _compare(self, current: float, prior: float) -> Tuple[float, float, str]:
        """Absolute change, relative change and direction of ``current`` against ``prior``."""
        if prior == 0:
            return 0.0, 0.0, "stable"
        percent_change = (current - prior) / abs(prior)
        if abs(percent_change) < self._epsilon:
            direction = "stable"
        elif percent_change > 0:
            direction = "improving"
        else:
            direction = "declining"
        return _money(current - prior), round(percent_change, 4) + 0.0, direction

    @staticmethod
    def _income_expense(records: Iterable[Transaction]) -> Tuple[float, float]:
        income = 0.0
        expense = 0.0
        for tx in records:
            if tx.is_inflow:
                income += tx.amount
            elif tx.is_outflow:
                expense += -tx.amount
        return income, expense

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def daily_series(self, records: Sequence[Transaction], date_range: DateRange) -> List[DailyPoint]:
        """Signed net amount per calendar day, zero-filled."""
        days = self.calendar_days(date_range, records)
        totals = self._bucket_by_day(records, days, lambda tx: tx.amount)
        return [DailyPoint(date=day, total=_money(totals[day])) for day in days]

    def trends(self, corpus: Sequence[Transaction], date_range: DateRange) -> TrendsBundle:
        """
        Net total of the current window against the equal-length window right
        before it, taken from the unfiltered corpus. Direction is decided on
        the net total alone: up is "improving", down is "declining".
        """
        current = filter_by_period(corpus, date_range)
        prior = filter_by_period(corpus, date_range.preceding())

        current_total = sum(tx.amount for tx in current)
        prior_total = sum(tx.amount for tx in prior)
        change, percent_change, direction = self._compare(current_total, prior_total)

        months = sorted({self._month_key(tx.timestamp) for tx in current})
        by_category: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
        for tx in current:
            if tx.is_outflow:
                by_category[tx.category][self._month_key(tx.timestamp)] += -tx.amount

        category_trends = {
            category: [
                TrendPoint(date=f"{month}-01", value=_money(per_month.get(month, 0.0)))
                for month in months
            ]
            for category, per_month in sorted(by_category.items())
        }

        return TrendsBundle(
            current_period_total=_money(current_total),
            prior_period_total=_money(prior_total),
            change=change,
            percent_change=percent_change,
            direction=direction,
            category_trends=category_trends,
            categories=sorted(category_trends),
        )

    def savings(self, corpus: Sequence[Transaction], date_range: DateRange) -> SavingsBundle:
        current = filter_by_period(corpus, date_range)
        prior = filter_by_period(corpus, date_range.preceding())

        income, expense = self._income_expense(current)
        net = income - expense
        prior_net = sum(tx.amount for tx in prior)
        delta, percent_change, _ = self._compare(net, prior_net)

        days = self.calendar_days(date_range, current)
        per_day = self._bucket_by_day(current, days, lambda tx: tx.amount)
        chart_data = []
        cumulative = 0.0
        for day in days:
            cumulative += per_day[day]
            chart_data.append(SavingsPoint(date=day, amount=_money(per_day[day]), cumulative=_money(cumulative)))

        return SavingsBundle(
            total_income=_money(income),
            total_expense=_money(expense),
            net_savings=_money(net),
            savings_rate=round(_safe_ratio(net, income) * 100, 1) + 0.0,
            prior_net_savings=_money(prior_net),
            delta=delta,
            percent_change=percent_change,
            chart_data=chart_data,
        )

    def grocery_vs_restaurant(self, records: Sequence[Transaction]) -> GroceryVsRestaurantBundle:
        """
        Outflow totals for the grocery and restaurant buckets. Categories that
        map to neither bucket are left out entirely.
        """
        totals = {GROCERY: 0.0, RESTAURANT: 0.0}
        counts = {GROCERY: 0, RESTAURANT: 0}
        monthly: Dict[str, Dict[str, float]] = {}

        for tx in records:
            if not tx.is_outflow:
                continue
            bucket = self._food_buckets.bucket_for(tx.category)
            if bucket not in totals:
                continue
            spent = -tx.amount
            totals[bucket] += spent
            counts[bucket] += 1
            month = monthly.setdefault(self._month_key(tx.timestamp), {GROCERY: 0.0, RESTAURANT: 0.0})
            month[bucket] += spent

        return GroceryVsRestaurantBundle(
            grocery=_money(totals[GROCERY]),
            restaurant=_money(totals[RESTAURANT]),
            grocery_count=counts[GROCERY],
            restaurant_count=counts[RESTAURANT],
            monthly=[
                MonthlyFoodSplit(
                    month=key,
                    label=f"{MONTH_NAMES[int(key[5:7]) - 1]} {key[:4]}",
                    grocery=_money(values[GROCERY]),
                    restaurant=_money(values[RESTAURANT]),
                )
                for key, values in sorted(monthly.items())
            ],
        )

    def spending_split(self, records: Sequence[Transaction]) -> SpendingSplit:
        totals = {NEEDS: 0.0, WANTS: 0.0, SAVINGS: 0.0}
        spent = 0.0
        for tx in records:
            if not tx.is_outflow:
                continue
            spent += -tx.amount
            bucket = self._budget_buckets.bucket_for(tx.category)
            if bucket in totals:
                totals[bucket] += -tx.amount

        def percent(bucket: str) -> float:
            return round(_safe_ratio(totals[bucket], spent) * 100, 1) + 0.0

        return SpendingSplit(
            needs=_money(totals[NEEDS]),
            wants=_money(totals[WANTS]),
            savings=_money(totals[SAVINGS]),
            needs_percent=percent(NEEDS),
            wants_percent=percent(WANTS),
            savings_percent=percent(SAVINGS),
        )

    def dashboard_stats(self, records: Sequence[Transaction]) -> DashboardStats:
        income, expense = self._income_expense(records)
        outflows = [tx for tx in records if tx.is_outflow]

        by_category: Dict[str, float] = defaultdict(float)
        for tx in outflows:
            by_category[tx.category] += -tx.amount
        # ties break alphabetically so the answer is stable
        top_category = min(by_category, key=lambda name: (-by_category[name], name)) if by_category else None

        return DashboardStats(
            total_spent=_money(expense),
            total_income=_money(income),
            net=_money(income - expense),
            transaction_count=len(records),
            top_category=top_category,
            average_transaction=_money(_safe_ratio(expense, len(outflows))),
            breakdown=self.spending_split(records),
        )

    def total_count(self, records: Sequence[Transaction]) -> TotalTransactionCount:
        if not records:
            return TotalTransactionCount(count=0, time_span=describe_span(None, None))

        dates = [local_date(tx.timestamp, self.tz) for tx in records]
        first_date, last_date = min(dates), max(dates)
        per_month: Dict[str, int] = defaultdict(int)
        for day in dates:
            per_month[day.strftime("%Y-%m")] += 1

        return TotalTransactionCount(
            count=len(records),
            time_span=describe_span(first_date, last_date),
            first_date=first_date,
            last_date=last_date,
            trend=[CountTrendPoint(date=month, value=count) for month, count in sorted(per_month.items())],
        )

    def kpis(self, records: Sequence[Transaction]) -> Kpis:
        income, expense = self._income_expense(records)
        outflow_count = sum(1 for tx in records if tx.is_outflow)
        return Kpis(
            total_income=_money(income),
            total_expense=_money(expense),
            net_savings=_money(income - expense),
            transaction_count=len(records),
            avg_transaction=_money(_safe_ratio(expense, outflow_count)),
        )

    def category_spending(self, records: Sequence[Transaction], snapshot: Snapshot) -> List[CategorySpending]:
        totals: Dict[str, float] = defaultdict(float)
        counts: Dict[str, int] = defaultdict(int)
        for tx in records:
            if tx.is_outflow:
                totals[tx.category] += -tx.amount
                counts[tx.category] += 1

        grand_total = sum(totals.values())
        rows = [
            CategorySpending(
                category=category,
                total=_money(total),
                count=counts[category],
                color=snapshot.category_info(category).color,
                percentage=round(_safe_ratio(total, grand_total) * 100, 1) + 0.0,
            )
            for category, total in totals.items()
        ]
        rows.sort(key=lambda row: (-row.total, row.category))
        return rows

    def analytics(
        self,
        records: Sequence[Transaction],
        date_range: DateRange,
        snapshot: Snapshot,
    ) -> AnalyticsBundle:
        outflows = [tx for tx in records if tx.is_outflow]

        days = self.calendar_days(date_range, records)
        income_by_day = self._bucket_by_day(records, days, lambda tx: tx.amount if tx.is_inflow else 0.0)
        expense_by_day = self._bucket_by_day(records, days, lambda tx: -tx.amount if tx.is_outflow else 0.0)
        daily_spending = [
            DailyCashFlow(
                date=day,
                total=_money(expense_by_day[day]),
                income=_money(income_by_day[day]),
                expense=_money(expense_by_day[day]),
            )
            for day in days
        ]

        monthly: Dict[Tuple[str, str], float] = defaultdict(float)
        weekday_totals = [0.0] * 7
        weekday_counts = [0] * 7
        weekday_category: Dict[Tuple[int, str], float] = defaultdict(float)
        essentials = [0.0, 0]
        wants = [0.0, 0]
        for tx in outflows:
            spent = -tx.amount
            monthly[(self._month_key(tx.timestamp), tx.category)] += spent
            weekday = local_date(tx.timestamp, self.tz).weekday()
            weekday_totals[weekday] += spent
            weekday_counts[weekday] += 1
            weekday_category[(weekday, tx.category)] += spent
            split = essentials if self._budget_buckets.bucket_for(tx.category) == NEEDS else wants
            split[0] += spent
            split[1] += 1

        history = sorted(outflows, key=lambda tx: tx.timestamp, reverse=True)

        return AnalyticsBundle(
            kpis=self.kpis(records),
            category_spending=self.category_spending(records, snapshot),
            daily_spending=daily_spending,
            monthly_categories=[
                MonthlyCategory(month=month, category=category, total=_money(total))
                for (month, category), total in sorted(monthly.items())
            ],
            day_of_week_spending=[
                DayOfWeekSpending(day_of_week=day, total=_money(weekday_totals[day]), count=weekday_counts[day])
                for day in range(7)
            ],
            day_of_week_category=[
                DayOfWeekCategory(day_of_week=day, category=category, total=_money(total))
                for (day, category), total in sorted(weekday_category.items())
            ],
            needs_wants=[
                NeedsWants(classification="Essentials", total=_money(essentials[0]), count=essentials[1]),
                NeedsWants(classification="Wants", total=_money(wants[0]), count=wants[1]),
            ],
            transaction_history=[
                HistoryEntry(
                    id=tx.id,
                    date=local_date(tx.timestamp, self.tz),
                    description=tx.description,
                    amount=tx.amount,
                    category=tx.category,
                    color=snapshot.category_info(tx.category).color,
                )
                for tx in history
            ],
            has_data_in_other_periods=len(snapshot.transactions) > len(records),
        )

    def data_library(
        self,
        records: Sequence[Transaction],
        receipts: Sequence[Receipt],
        snapshot: Snapshot,
    ) -> DataLibraryBundle:
        income, expense = self._income_expense(records)
        net_worth = sum(account.balance for account in snapshot.accounts) if snapshot.accounts else income - expense

        counts: Dict[str, int] = defaultdict(int)
        spend: Dict[str, float] = defaultdict(float)
        for tx in records:
            counts[tx.category] += 1
            if tx.is_outflow:
                spend[tx.category] += -tx.amount

        names = list(snapshot.categories)
        names.extend(sorted(name for name in counts if name not in snapshot.categories))
        categories = []
        for name in names:
            info = snapshot.category_info(name)
            categories.append(
                LibraryCategory(
                    name=name,
                    color=info.color,
                    broad_type=info.broad_type,
                    transaction_count=counts.get(name, 0),
                    total_spend=_money(spend.get(name, 0.0)),
                )
            )

        return DataLibraryBundle(
            transactions=[
                LibraryTransaction(
                    id=tx.id,
                    date=local_date(tx.timestamp, self.tz),
                    description=tx.description,
                    amount=tx.amount,
                    balance=tx.balance,
                    category=tx.category,
                )
                for tx in sorted(records, key=lambda tx: tx.timestamp, reverse=True)
            ],
            stats=LibraryStats(
                total_income=_money(income),
                total_expenses=_money(expense),
                savings_rate=round(_safe_ratio(income - expense, income) * 100, 1) + 0.0,
                net_worth=_money(net_worth),
            ),
            categories=categories,
            receipt_transactions_count=sum(len(receipt.items) for receipt in receipts),
            user_categories_count=len(categories),
        )

    def fridge(self, receipts: Sequence[Receipt], date_range: DateRange) -> FridgeBundle:
        total_spent = sum(receipt.total for receipt in receipts)

        category_totals: Dict[Tuple[str, str], float] = defaultdict(float)
        category_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        broad_totals: Dict[str, float] = defaultdict(float)
        store_totals: Dict[str, float] = defaultdict(float)
        store_counts: Dict[str, int] = defaultdict(int)
        weekday_totals = [0.0] * 7
        weekday_counts = [0] * 7
        item_count = 0

        for receipt in receipts:
            store = receipt.store or "Unknown"
            store_totals[store] += receipt.total
            store_counts[store] += 1
            weekday = local_date(receipt.timestamp, self.tz).weekday()
            weekday_totals[weekday] += receipt.total
            weekday_counts[weekday] += 1
            for item in receipt.items:
                key = (item.category, item.broad_type)
                category_totals[key] += item.price
                category_counts[key] += 1
                broad_totals[item.broad_type] += item.price
                item_count += item.quantity

        days = self.calendar_days(date_range, receipts)
        per_day = self._bucket_by_day(receipts, days, lambda receipt: receipt.total)

        return FridgeBundle(
            kpis=FridgeKpis(
                total_spent=_money(total_spent),
                shopping_trips=len(receipts),
                stores_visited=len(store_totals),
                average_receipt=_money(_safe_ratio(total_spent, len(receipts))),
                item_count=item_count,
            ),
            category_spending=sorted(
                (
                    FridgeCategorySpending(
                        category=category,
                        broad_type=broad_type,
                        total=_money(total),
                        count=category_counts[(category, broad_type)],
                    )
                    for (category, broad_type), total in category_totals.items()
                ),
                key=lambda row: (-row.total, row.category),
            ),
            store_spending=sorted(
                (
                    StoreSpending(store_name=store, total=_money(total), count=store_counts[store])
                    for store, total in store_totals.items()
                ),
                key=lambda row: (-row.total, row.store_name),
            ),
            broad_type_breakdown=sorted(
                (BroadTypeTotal(type_name=name, total=_money(total)) for name, total in broad_totals.items()),
                key=lambda row: (-row.total, row.type_name),
            ),
            daily_spending=[DailyPoint(date=day, total=_money(per_day[day])) for day in days],
            day_of_week_spending=[
                DayOfWeekSpending(day_of_week=day, total=_money(weekday_totals[day]), count=weekday_counts[day])
                for day in range(7)
            ],
        )

    def home(self, records: Sequence[Transaction], date_range: DateRange, snapshot: Snapshot) -> HomeBundle:
        days = self.calendar_days(date_range, records)
        spent_by_day = self._bucket_by_day(records, days, lambda tx: -tx.amount if tx.is_outflow else 0.0)
        kpis = self.kpis(records)
        return HomeBundle(
            kpis=kpis,
            top_categories=self.category_spending(records, snapshot)[:10],
            daily_spending=[DailyPoint(date=day, total=_money(spent_by_day[day])) for day in days],
            recent_transactions=kpis.transaction_count,
        )


class AnalyticsRequest:
    """
    One logical dashboard request: a single snapshot and a single resolved
    range, filtered once and shared by every builder, so widgets rendered
    together can never disagree.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        token: Optional[str],
        now: datetime,
        analyzer: BundleAnalyzer,
    ) -> None:
        self.snapshot = snapshot
        self.token = normalize_token(token)
        self.date_range = resolve(token, now, analyzer.tz)
        self.analyzer = analyzer
        self.transactions: Tuple[Transaction, ...] = tuple(
            filter_by_period(snapshot.transactions, self.date_range)
        )
        self._receipts: Optional[Tuple[Receipt, ...]] = None

    @property
    def receipts(self) -> Tuple[Receipt, ...]:
        if self._receipts is None:
            self._receipts = tuple(filter_by_period(self.snapshot.receipts, self.date_range))
        return self._receipts

    def daily_series(self) -> List[DailyPoint]:
        return self.analyzer.daily_series(self.transactions, self.date_range)

    def trends(self) -> TrendsBundle:
        return self.analyzer.trends(self.snapshot.transactions, self.date_range)

    def savings(self) -> SavingsBundle:
        return self.analyzer.savings(self.snapshot.transactions, self.date_range)

    def grocery_vs_restaurant(self) -> GroceryVsRestaurantBundle:
        return self.analyzer.grocery_vs_restaurant(self.transactions)

    def dashboard_stats(self) -> DashboardStats:
        return self.analyzer.dashboard_stats(self.transactions)

    def total_count(self) -> TotalTransactionCount:
        return self.analyzer.total_count(self.transactions)

    def analytics(self) -> AnalyticsBundle:
        return self.analyzer.analytics(self.transactions, self.date_range, self.snapshot)

    def data_library(self) -> DataLibraryBundle:
        return self.analyzer.data_library(self.transactions, self.receipts, self.snapshot)

    def fridge(self) -> FridgeBundle:
        return self.analyzer.fridge(self.receipts, self.date_range)

    def home(self) -> HomeBundle:
        return self.analyzer.home(self.transactions, self.date_range, self.snapshot)
