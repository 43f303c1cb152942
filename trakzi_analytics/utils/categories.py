"""
Declarative category tag -> bucket mappings shared by every category-based
bundle builder.
"""
from typing import Dict, Mapping, Optional

GROCERY = "grocery"
RESTAURANT = "restaurant"

NEEDS = "needs"
WANTS = "wants"
SAVINGS = "savings"

DEFAULT_FOOD_BUCKETS: Dict[str, str] = {
    "groceries": GROCERY,
    "grocery": GROCERY,
    "supermarket": GROCERY,
    "dining": RESTAURANT,
    "restaurant": RESTAURANT,
    "restaurants": RESTAURANT,
    "eating out": RESTAURANT,
    "takeaway": RESTAURANT,
}

# 50/30/20 classification
DEFAULT_BUDGET_BUCKETS: Dict[str, str] = {
    "groceries": NEEDS,
    "housing": NEEDS,
    "rent": NEEDS,
    "mortgage": NEEDS,
    "utilities": NEEDS,
    "transport": NEEDS,
    "fuel": NEEDS,
    "insurance": NEEDS,
    "medical/healthcare": NEEDS,
    "health care": NEEDS,
    "dining": WANTS,
    "restaurants": WANTS,
    "shopping": WANTS,
    "entertainment": WANTS,
    "travel": WANTS,
    "education": WANTS,
    "personal care": WANTS,
    "gifts/donations": WANTS,
    "subscriptions": WANTS,
    "savings": SAVINGS,
    "transfers": SAVINGS,
}


class CategoryBuckets:
    """
    Maps category tags to bucket names. Keys are normalised once at
    construction; lookups are case and whitespace insensitive.
    """

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = {self._key(tag): bucket for tag, bucket in mapping.items()}

    @staticmethod
    def _key(tag: str) -> str:
        return tag.strip().lower()

    def bucket_for(self, category: Optional[str]) -> Optional[str]:
        if not category:
            return None
        return self._mapping.get(self._key(category))


FOOD_BUCKETS = CategoryBuckets(DEFAULT_FOOD_BUCKETS)
BUDGET_BUCKETS = CategoryBuckets(DEFAULT_BUDGET_BUCKETS)
