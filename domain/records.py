from dataclasses import dataclass, field, replace
from datetime import date as dt_date
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from .errors import ValidationError
from .validation import (
    parse_amount,
    parse_non_negative,
    parse_timestamp,
    parse_ymd,
    require_purpose,
)


def _new_record_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMethod(str, Enum):
    HAND = "hand"
    GPAY = "gpay"

    @property
    def label(self) -> str:
        return "GPay" if self is PaymentMethod.GPAY else "Hand"

    @classmethod
    def parse(cls, value: "PaymentMethod | str") -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {value}") from exc


@dataclass(frozen=True)
class WalletBaseline:
    initial_hand: float = 0.0
    initial_gpay: float = 0.0
    created_at: datetime = field(default_factory=_utc_now)
    id: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "initial_hand", parse_non_negative(self.initial_hand))
        object.__setattr__(self, "initial_gpay", parse_non_negative(self.initial_gpay))
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))

    def initial_for(self, method: PaymentMethod | str) -> float:
        if PaymentMethod.parse(method) is PaymentMethod.HAND:
            return self.initial_hand
        return self.initial_gpay

    def to_row(self) -> dict:
        return {
            "initial_hand": self.initial_hand,
            "initial_gpay": self.initial_gpay,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict) -> "WalletBaseline":
        return cls(
            initial_hand=float(row.get("initial_hand") or 0.0),
            initial_gpay=float(row.get("initial_gpay") or 0.0),
            created_at=row.get("created_at"),
            id=row.get("id"),
        )


@dataclass(frozen=True)
class DepositRecord:
    amount: float
    method: PaymentMethod
    date: dt_date | str
    id: str = field(default_factory=_new_record_id)
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "method", PaymentMethod.parse(self.method))
        object.__setattr__(self, "date", parse_ymd(self.date))
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        if not str(self.id or "").strip():
            raise ValidationError("Record id must not be empty")

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "method": self.method.value,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict) -> "DepositRecord":
        return cls(
            id=str(row["id"]),
            amount=row["amount"],
            method=row["method"],
            date=row["date"],
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class SpendRecord:
    purpose: str
    amount: float
    method: PaymentMethod
    date: dt_date | str
    id: str = field(default_factory=_new_record_id)
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "purpose", require_purpose(self.purpose))
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "method", PaymentMethod.parse(self.method))
        object.__setattr__(self, "date", parse_ymd(self.date))
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        if not str(self.id or "").strip():
            raise ValidationError("Record id must not be empty")

    def with_updates(
        self,
        *,
        purpose: str | None = None,
        amount: float | None = None,
        method: PaymentMethod | str | None = None,
        date: dt_date | str | None = None,
    ) -> "SpendRecord":
        """Return a copy with the given fields replaced; id and created_at stay."""
        changes: dict = {}
        if purpose is not None:
            changes["purpose"] = purpose
        if amount is not None:
            changes["amount"] = amount
        if method is not None:
            changes["method"] = method
        if date is not None:
            changes["date"] = date
        return replace(self, **changes)

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "purpose": self.purpose,
            "amount": self.amount,
            "method": self.method.value,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict) -> "SpendRecord":
        return cls(
            id=str(row["id"]),
            purpose=row["purpose"],
            amount=row["amount"],
            method=row["method"],
            date=row["date"],
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class AppSettings:
    pin_hash: str | None = None
    budget_limit: float = 0.0
    id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "budget_limit",
            parse_non_negative(self.budget_limit, "Budget cannot be negative"),
        )
        if self.pin_hash is not None and not str(self.pin_hash).strip():
            object.__setattr__(self, "pin_hash", None)

    @property
    def has_pin(self) -> bool:
        return self.pin_hash is not None

    def to_row(self) -> dict:
        return {"pin_hash": self.pin_hash, "budget_limit": self.budget_limit}

    @classmethod
    def from_row(cls, row: dict) -> "AppSettings":
        return cls(
            pin_hash=row.get("pin_hash"),
            budget_limit=float(row.get("budget_limit") or 0.0),
            id=row.get("id"),
        )


@dataclass(frozen=True)
class BalanceState:
    hand: float
    gpay: float
    total: float

    def for_method(self, method: PaymentMethod | str) -> float:
        if PaymentMethod.parse(method) is PaymentMethod.HAND:
            return self.hand
        return self.gpay
