"""
Record Store
Holds the current immutable snapshot of transactions, receipts, categories
and account balances. Builders only ever see a Snapshot; regeneration or a
CSV import produces a new Snapshot that replaces the old one in a single
reference swap.
"""
import csv
import io
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, TextIO, Tuple, Union

from pydantic import ValidationError

from trakzi_analytics.models.transaction import AccountBalance, CategoryInfo, Receipt, Transaction

logger = logging.getLogger(__name__)

CSV_FIELDS = ("date", "description", "amount", "category")


class RecordStoreError(Exception):
    """No correct bundle can be produced from the store."""


class RecordStoreUnavailable(RecordStoreError):
    pass


class RecordStoreCorrupt(RecordStoreError):
    pass


@dataclass(frozen=True)
class Snapshot:
    version: int
    generated_at: datetime
    transactions: Tuple[Transaction, ...] = ()
    receipts: Tuple[Receipt, ...] = ()
    categories: Mapping[str, CategoryInfo] = field(default_factory=lambda: MappingProxyType({}))
    accounts: Tuple[AccountBalance, ...] = ()

    def category_info(self, name: str) -> CategoryInfo:
        info = self.categories.get(name)
        if info is None:
            return CategoryInfo(name=name)
        return info


class RecordStore:
    """Owner of the record arrays. Readers get a snapshot and keep it for the whole request."""

    def __init__(self, snapshot: Optional[Snapshot] = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = snapshot
        self._version = snapshot.version if snapshot else 0

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    def snapshot(self) -> Snapshot:
        current = self._snapshot
        if current is None:
            raise RecordStoreUnavailable("Record store has not been loaded yet")
        return current

    def replace(
        self,
        transactions: Iterable[Transaction],
        receipts: Iterable[Receipt] = (),
        categories: Optional[Iterable[CategoryInfo]] = None,
        accounts: Iterable[AccountBalance] = (),
    ) -> Snapshot:
        """Build the next snapshot off to the side, then swap it in."""
        transactions = tuple(transactions)
        receipts = tuple(receipts)
        accounts = tuple(accounts)
        if categories is None and self._snapshot is not None:
            category_map = dict(self._snapshot.categories)
        else:
            category_map = {info.name: info for info in categories or ()}

        with self._lock:
            snapshot = Snapshot(
                version=self._version + 1,
                generated_at=datetime.now(timezone.utc),
                transactions=transactions,
                receipts=receipts,
                categories=MappingProxyType(category_map),
                accounts=accounts,
            )
            self._snapshot = snapshot
            self._version = snapshot.version

        logger.info(
            f"Record store swapped to version {snapshot.version} "
            f"({len(transactions)} transactions, {len(receipts)} receipts)"
        )
        return snapshot


def _parse_timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def load_transactions_csv(source: Union[str, Path, TextIO]) -> Tuple[Transaction, ...]:
    """
    Parse a CSV export with columns date, description, amount, category and
    optional merchant, account_id, balance.

    Raises RecordStoreCorrupt on a missing column or malformed row; a half
    imported file must never reach the store.
    """
    if isinstance(source, (str, Path)):
        with Path(source).open(newline="", encoding="utf-8") as fp:
            return load_transactions_csv(io.StringIO(fp.read()))

    reader = csv.DictReader(source)
    missing = [name for name in CSV_FIELDS if name not in (reader.fieldnames or [])]
    if missing:
        raise RecordStoreCorrupt(f"CSV is missing required columns: {', '.join(missing)}")

    transactions = []
    for row_number, row in enumerate(reader, start=2):
        try:
            balance = (row.get("balance") or "").strip()
            transactions.append(
                Transaction(
                    id=len(transactions) + 1,
                    timestamp=_parse_timestamp(row["date"]),
                    amount=float(row["amount"]),
                    category=(row["category"] or "Uncategorized").strip(),
                    merchant=(row.get("merchant") or row["description"] or "").strip(),
                    account_id=(row.get("account_id") or "main").strip(),
                    description=(row["description"] or "").strip(),
                    balance=float(balance) if balance else None,
                )
            )
        except (AttributeError, ValueError, TypeError, ValidationError) as e:
            raise RecordStoreCorrupt(f"Malformed CSV row {row_number}: {e}") from e

    return tuple(transactions)


# Process-wide store; loaded in the application lifespan
record_store = RecordStore()


def get_record_store() -> RecordStore:
    return record_store
