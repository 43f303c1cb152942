import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Direction = Literal["improving", "declining", "stable"]


class DailyPoint(BaseModel):
    date: dt.date
    total: float


class TrendPoint(BaseModel):
    date: str
    value: float


class TrendsBundle(BaseModel):
    current_period_total: float
    prior_period_total: float
    change: float
    percent_change: float
    direction: Direction
    category_trends: Dict[str, List[TrendPoint]] = Field(default_factory=dict)
    categories: List[str] = Field(default_factory=list)


class SavingsPoint(BaseModel):
    date: dt.date
    amount: float
    cumulative: float


class SavingsBundle(BaseModel):
    total_income: float
    total_expense: float
    net_savings: float
    savings_rate: float
    prior_net_savings: float
    delta: float
    percent_change: float
    chart_data: List[SavingsPoint] = Field(default_factory=list)


class MonthlyFoodSplit(BaseModel):
    month: str  # YYYY-MM
    label: str  # "Jan 2025"
    grocery: float
    restaurant: float


class GroceryVsRestaurantBundle(BaseModel):
    grocery: float
    restaurant: float
    grocery_count: int
    restaurant_count: int
    monthly: List[MonthlyFoodSplit] = Field(default_factory=list)


class SpendingSplit(BaseModel):
    """50/30/20 breakdown of outflows."""

    needs: float = 0.0
    wants: float = 0.0
    savings: float = 0.0
    needs_percent: float = 0.0
    wants_percent: float = 0.0
    savings_percent: float = 0.0


class DashboardStats(BaseModel):
    total_spent: float
    total_income: float
    net: float
    transaction_count: int
    top_category: Optional[str] = None
    average_transaction: float
    breakdown: SpendingSplit = Field(default_factory=SpendingSplit)


class CountTrendPoint(BaseModel):
    date: str  # YYYY-MM
    value: int


class TotalTransactionCount(BaseModel):
    count: int
    time_span: str
    first_date: Optional[dt.date] = None
    last_date: Optional[dt.date] = None
    trend: List[CountTrendPoint] = Field(default_factory=list)


class Kpis(BaseModel):
    total_income: float
    total_expense: float
    net_savings: float
    transaction_count: int
    avg_transaction: float


class CategorySpending(BaseModel):
    category: str
    total: float
    count: int
    color: str
    percentage: float


class DailyCashFlow(BaseModel):
    date: dt.date
    total: float
    income: float
    expense: float


class MonthlyCategory(BaseModel):
    month: str
    category: str
    total: float


class DayOfWeekSpending(BaseModel):
    day_of_week: int  # Monday == 0
    total: float
    count: int


class DayOfWeekCategory(BaseModel):
    day_of_week: int
    category: str
    total: float


class NeedsWants(BaseModel):
    classification: Literal["Essentials", "Wants"]
    total: float
    count: int


class HistoryEntry(BaseModel):
    id: int
    date: dt.date
    description: str
    amount: float
    category: str
    color: str


class AnalyticsBundle(BaseModel):
    kpis: Kpis
    category_spending: List[CategorySpending]
    daily_spending: List[DailyCashFlow]
    monthly_categories: List[MonthlyCategory]
    day_of_week_spending: List[DayOfWeekSpending]
    day_of_week_category: List[DayOfWeekCategory]
    needs_wants: List[NeedsWants]
    transaction_history: List[HistoryEntry]
    has_data_in_other_periods: bool


class LibraryTransaction(BaseModel):
    id: int
    date: dt.date
    description: str
    amount: float
    balance: Optional[float] = None
    category: str


class LibraryStats(BaseModel):
    total_income: float
    total_expenses: float
    savings_rate: float
    net_worth: float


class LibraryCategory(BaseModel):
    name: str
    color: str
    broad_type: str
    transaction_count: int
    total_spend: float


class DataLibraryBundle(BaseModel):
    transactions: List[LibraryTransaction]
    stats: LibraryStats
    categories: List[LibraryCategory]
    receipt_transactions_count: int
    user_categories_count: int


class FridgeKpis(BaseModel):
    total_spent: float
    shopping_trips: int
    stores_visited: int
    average_receipt: float
    item_count: int


class FridgeCategorySpending(BaseModel):
    category: str
    broad_type: str
    total: float
    count: int


class StoreSpending(BaseModel):
    store_name: str
    total: float
    count: int


class BroadTypeTotal(BaseModel):
    type_name: str
    total: float


class FridgeBundle(BaseModel):
    kpis: FridgeKpis
    category_spending: List[FridgeCategorySpending]
    store_spending: List[StoreSpending]
    broad_type_breakdown: List[BroadTypeTotal]
    daily_spending: List[DailyPoint]
    day_of_week_spending: List[DayOfWeekSpending]


class HomeBundle(BaseModel):
    kpis: Kpis
    top_categories: List[CategorySpending]
    daily_spending: List[DailyPoint]
    recent_transactions: int
