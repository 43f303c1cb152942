"""
Filter Engine
Selects the records whose timestamp falls inside a resolved date range.
"""
from typing import Iterable, List, TypeVar

from trakzi_analytics.utils.periods import DateRange

Record = TypeVar("Record")


def filter_by_period(records: Iterable[Record], date_range: DateRange) -> List[Record]:
    """
    Keep records with ``start <= timestamp < end``, in their original order.

    Works on anything carrying a ``timestamp`` (transactions and receipts).
    No sortedness is assumed, so this is a single linear scan.
    """
    return [record for record in records if date_range.contains(record.timestamp)]
