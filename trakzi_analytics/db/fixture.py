"""
Demo corpus generator.

Dates are laid out relative to "now" so charts always look current, and the
PRNG is seeded so the same (now, seed) pair always produces the same corpus.
"""
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Tuple

from trakzi_analytics.db.store import RecordStore, Snapshot
from trakzi_analytics.models.transaction import (
    AccountBalance,
    CategoryInfo,
    Receipt,
    ReceiptItem,
    Transaction,
)
from trakzi_analytics.utils.periods import as_aware, start_of_day

OPENING_BALANCE = 4250.50
SAVINGS_BALANCE = 8200.00
RECEIPT_HORIZON_DAYS = 60


@dataclass(frozen=True)
class CategoryProfile:
    name: str
    color: str
    kind: str  # "expense" | "income"
    low: float
    high: float
    freq: float  # 0 means fixed monthly entry only


CATEGORY_PROFILES: Tuple[CategoryProfile, ...] = (
    CategoryProfile("Groceries", "#22c55e", "expense", 30, 150, 0.25),
    CategoryProfile("Dining", "#a855f7", "expense", 15, 80, 0.15),
    CategoryProfile("Transport", "#ec4899", "expense", 10, 50, 0.15),
    CategoryProfile("Shopping", "#f97316", "expense", 25, 120, 0.12),
    CategoryProfile("Entertainment", "#8b5cf6", "expense", 15, 90, 0.10),
    CategoryProfile("Utilities", "#f59e0b", "expense", 60, 200, 0.05),
    CategoryProfile("Medical/Healthcare", "#14b8a6", "expense", 40, 150, 0.04),
    CategoryProfile("Travel", "#0ea5e9", "expense", 100, 500, 0.03),
    CategoryProfile("Education", "#6366f1", "expense", 50, 300, 0.03),
    CategoryProfile("Personal Care", "#db2777", "expense", 20, 80, 0.03),
    CategoryProfile("Gifts/Donations", "#f43f5e", "expense", 30, 100, 0.03),
    CategoryProfile("Subscriptions", "#ef4444", "expense", 10, 30, 0.02),
    CategoryProfile("Housing", "#06b6d4", "expense", 1200, 1200, 0),
    CategoryProfile("Income", "#3b82f6", "income", 3200, 3200, 0),
    CategoryProfile("Freelance", "#3b82f6", "income", 300, 800, 0.10),
)

ESSENTIALS = ("Groceries", "Housing", "Utilities", "Transport", "Medical/Healthcare")

MERCHANTS: Dict[str, Tuple[str, ...]] = {
    "Groceries": ("Mercadona", "Lidl", "Carrefour", "Aldi", "Local Market", "Costco"),
    "Dining": ("Starbucks", "McDonalds", "Local Cafe", "Italian Bistro", "Sushi Place", "Burger King"),
    "Transport": ("Uber", "Metro", "Gas Station", "Bus Ticket", "Parking", "Train Ticket"),
    "Shopping": ("Amazon", "Zara", "H&M", "IKEA", "Decathlon", "Fnac"),
    "Entertainment": ("Cinema", "Netflix", "Spotify", "Bowling", "Concert", "Museum"),
    "Utilities": ("Water Bill", "Electric Bill", "Phone Bill", "Heating"),
    "Medical/Healthcare": ("Pharmacy", "Dentist", "Doctor Visit", "Optician", "Physio"),
    "Travel": ("Flight", "Hotel", "Train", "Airbnb", "Car Rental"),
    "Freelance": ("Web Design Project", "Consulting Fee", "Logo Design"),
    "Education": ("Udemy Course", "Books", "Workshop", "Tuition"),
    "Personal Care": ("Haircut", "Gym", "Cosmetics", "Spa"),
    "Gifts/Donations": ("Birthday Gift", "Charity Donation", "Wedding Gift"),
    "Subscriptions": ("Netflix", "Spotify", "Amazon Prime", "Adobe Creative Cloud"),
}

# receipt item category -> (broad type, item names)
RECEIPT_CATALOGUE: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "Fruits": ("Nutritious", ("Bananas", "Apples", "Oranges", "Strawberries")),
    "Vegetables": ("Nutritious", ("Tomatoes", "Spinach", "Carrots", "Broccoli")),
    "Meat & Poultry": ("Nutritious", ("Chicken Breast", "Ground Beef", "Turkey Slices")),
    "Dairy": ("Nutritious", ("Milk", "Greek Yogurt", "Cheese")),
    "Bread": ("Nutritious", ("Whole Wheat Bread", "Baguette")),
    "Salty Snacks": ("Snacks", ("Potato Chips", "Pretzels", "Salted Nuts")),
    "Chocolate & Candy": ("Snacks", ("Dark Chocolate", "Gummy Bears")),
    "Pastries": ("Snacks", ("Croissant", "Muffin")),
    "Soft Drinks": ("Other", ("Cola", "Lemon Soda")),
    "Coffee & Tea": ("Other", ("Ground Coffee", "Green Tea")),
}

RECEIPT_STORES = ("Mercadona", "Lidl", "Carrefour", "Aldi", "Whole Foods", "Costco")


def category_catalogue() -> List[CategoryInfo]:
    infos = []
    for profile in CATEGORY_PROFILES:
        if profile.name == "Freelance":
            continue  # booked under "Income"
        if profile.kind == "income":
            broad_type = "Other"
        elif profile.name in ESSENTIALS:
            broad_type = "Essentials"
        else:
            broad_type = "Wants"
        infos.append(CategoryInfo(name=profile.name, color=profile.color, broad_type=broad_type))
    return infos


def _pick_category(rng: random.Random) -> CategoryProfile:
    weighted = [profile for profile in CATEGORY_PROFILES if profile.freq > 0]
    return rng.choices(weighted, weights=[profile.freq for profile in weighted], k=1)[0]


def generate_transactions(
    now: datetime,
    seed: int = 1337,
    days: int = 180,
    tz: tzinfo = timezone.utc,
) -> List[Transaction]:
    """Oldest-first demo transactions covering ``days`` calendar days up to ``now``."""
    now = as_aware(now)
    rng = random.Random(seed)
    latest = now - timedelta(seconds=1)
    today = latest.astimezone(tz).date()

    items: List[Transaction] = []
    balance = OPENING_BALANCE

    def book(ts: datetime, amount: float, category: str, description: str) -> None:
        nonlocal balance
        balance = round(balance + amount, 2)
        items.append(
            Transaction(
                id=len(items) + 1,
                timestamp=min(ts, latest),
                amount=amount,
                category=category,
                merchant=description,
                account_id="checking",
                description=description,
                balance=balance,
            )
        )

    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        midnight = start_of_day(day, tz)
        pending = []

        if day.day == 1:
            pending.append((midnight + timedelta(hours=8), 3200.00, "Income", "Monthly Salary"))
            pending.append((midnight + timedelta(hours=9), -1200.00, "Housing", "Rent Payment"))
            pending.append((midnight + timedelta(hours=9, minutes=30), -49.99, "Utilities", "Fiber Internet"))

        for _ in range(rng.randint(0, 3)):
            profile = _pick_category(rng)
            amount = round(rng.uniform(profile.low, profile.high), 2)
            signed = amount if profile.kind == "income" else -amount
            description = rng.choice(MERCHANTS.get(profile.name, (profile.name,)))
            category = "Income" if profile.name == "Freelance" else profile.name
            ts = midnight + timedelta(hours=rng.randint(7, 21), minutes=rng.randint(0, 59))
            pending.append((ts, signed, category, description))

        for entry in sorted(pending, key=lambda e: e[0]):
            book(*entry)

    return items


def generate_receipts(
    now: datetime,
    seed: int = 1337,
    days: int = RECEIPT_HORIZON_DAYS,
    tz: tzinfo = timezone.utc,
) -> List[Receipt]:
    now = as_aware(now)
    rng = random.Random(seed * 7 + 1)
    latest = now - timedelta(seconds=1)
    today = latest.astimezone(tz).date()
    categories = list(RECEIPT_CATALOGUE)

    receipts: List[Receipt] = []
    for offset in range(days - 1, -1, -1):
        if rng.random() > 0.35:
            continue
        day = today - timedelta(days=offset)
        ts = start_of_day(day, tz) + timedelta(hours=rng.randint(8, 19), minutes=rng.randint(0, 59))

        lines = []
        for _ in range(rng.randint(3, 10)):
            category = rng.choice(categories)
            broad_type, names = RECEIPT_CATALOGUE[category]
            quantity = rng.randint(1, 3)
            unit_price = round(rng.uniform(1.5, 9.5), 2)
            lines.append(
                ReceiptItem(
                    name=rng.choice(names),
                    category=category,
                    price=round(unit_price * quantity, 2),
                    quantity=quantity,
                    broad_type=broad_type,
                )
            )

        receipts.append(
            Receipt(
                id=f"rcpt_{len(receipts) + 1}",
                timestamp=min(ts, latest),
                store=rng.choice(RECEIPT_STORES),
                items=tuple(lines),
            )
        )
    return receipts


def generate_fixture(
    store: RecordStore,
    now: datetime,
    seed: int = 1337,
    days: int = 180,
    tz: tzinfo = timezone.utc,
) -> Snapshot:
    """Generate a full demo corpus and swap it into ``store``."""
    transactions = generate_transactions(now, seed=seed, days=days, tz=tz)
    receipts = generate_receipts(now, seed=seed, days=min(days, RECEIPT_HORIZON_DAYS), tz=tz)
    checking = transactions[-1].balance if transactions else OPENING_BALANCE
    accounts = (
        AccountBalance(account_id="checking", name="Checking", balance=checking),
        AccountBalance(account_id="savings", name="Savings", balance=SAVINGS_BALANCE),
    )
    return store.replace(transactions, receipts, categories=category_catalogue(), accounts=accounts)
