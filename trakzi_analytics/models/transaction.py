from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Annotated


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Instant = Annotated[datetime, AfterValidator(_as_utc)]


class Transaction(BaseModel):
    """A single bank movement. Negative amounts are outflows, positive are inflows."""

    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: Instant
    amount: float
    category: str
    merchant: str = ""
    account_id: str = "main"
    description: str = ""
    balance: Optional[float] = None

    @property
    def is_outflow(self) -> bool:
        return self.amount < 0

    @property
    def is_inflow(self) -> bool:
        return self.amount > 0


class ReceiptItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    price: float  # line total (quantity * unit price)
    quantity: int = 1
    broad_type: str = "Other"


class Receipt(BaseModel):
    """An itemised grocery receipt ("fridge" record)."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: Instant
    store: str = ""
    items: Tuple[ReceiptItem, ...] = Field(default_factory=tuple)
    total: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _default_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("total") is None:
            prices = (
                item["price"] if isinstance(item, dict) else item.price
                for item in data.get("items") or ()
            )
            data = dict(data, total=round(sum(prices), 2))
        return data


class CategoryInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    color: str = "#94a3b8"
    broad_type: str = "Wants"


class AccountBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_id: str
    name: str
    balance: float
