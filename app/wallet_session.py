from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date as dt_date

from domain.balance import BUDGET_NEAR_PERCENT, available_balance, compute_balance
from domain.errors import (
    DomainError,
    InsufficientFundsError,
    RemoteWriteError,
    WriteInProgressError,
)
from domain.records import (
    AppSettings,
    BalanceState,
    DepositRecord,
    PaymentMethod,
    SpendRecord,
    WalletBaseline,
)
from domain.reports import MonthReport
from domain.validation import (
    parse_amount,
    parse_non_negative,
    parse_ymd,
    require_purpose,
)
from infrastructure.repositories import RecordStore, StoreError

from .connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletSnapshot:
    baseline: WalletBaseline = field(default_factory=WalletBaseline)
    deposits: tuple[DepositRecord, ...] = ()
    spends: tuple[SpendRecord, ...] = ()
    budget_limit: float = 0.0


class WalletDataSession:
    """In-memory view of the wallet, written through to the record store.

    Each mutator writes remotely first and, only on success, publishes a new
    snapshot with one assignment; readers never see a half-applied change.
    """

    def __init__(self, store: RecordStore, connectivity: ConnectivityMonitor) -> None:
        self._store = store
        self._connectivity = connectivity
        self._snapshot = WalletSnapshot()
        self._settings_id: str | None = None
        self._write_lock = threading.Lock()
        self._loaded = False

    @property
    def snapshot(self) -> WalletSnapshot:
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def budget_limit(self) -> float:
        return self._snapshot.budget_limit

    def load(self) -> WalletSnapshot:
        if not self._connectivity.is_online:
            logger.warning("Offline at startup, wallet data not loaded")
            return self._snapshot
        try:
            baseline = self._store.load_baseline()
            deposits = self._store.load_deposits()
            spends = self._store.load_spends()
            settings = self._store.load_settings()
        except (StoreError, DomainError) as exc:
            logger.warning("Failed to load wallet data: %s", exc)
            return self._snapshot

        if settings is not None:
            self._settings_id = settings.id
        self._snapshot = WalletSnapshot(
            baseline=baseline or WalletBaseline(),
            deposits=tuple(deposits),
            spends=tuple(spends),
            budget_limit=settings.budget_limit if settings is not None else 0.0,
        )
        self._loaded = True
        logger.info(
            "Wallet data loaded deposits=%s spends=%s", len(deposits), len(spends)
        )
        return self._snapshot

    def balance(self) -> BalanceState:
        snapshot = self._snapshot
        return compute_balance(snapshot.baseline, snapshot.deposits, snapshot.spends)

    def available(self, method: PaymentMethod | str, exclude_id: str | None = None) -> float:
        snapshot = self._snapshot
        return available_balance(
            method,
            snapshot.baseline,
            snapshot.deposits,
            snapshot.spends,
            exclude_id=exclude_id,
        )

    def get_spend(self, record_id: str) -> SpendRecord | None:
        return next((spend for spend in self._snapshot.spends if spend.id == record_id), None)

    def month_report(
        self,
        month: str,
        today: dt_date | None = None,
        near_percent: float = BUDGET_NEAR_PERCENT,
    ) -> MonthReport:
        snapshot = self._snapshot
        return MonthReport(
            snapshot.baseline,
            snapshot.deposits,
            snapshot.spends,
            month,
            budget_limit=snapshot.budget_limit,
            today=today,
            near_percent=near_percent,
        )

    @contextmanager
    def _write_guard(self) -> Iterator[None]:
        if not self._write_lock.acquire(blocking=False):
            raise WriteInProgressError("Please wait, still saving")
        try:
            yield
        finally:
            self._write_lock.release()

    def _ensure_funds(self, method: PaymentMethod, amount: float, exclude_id: str | None) -> None:
        available = self.available(method, exclude_id=exclude_id)
        if amount > available:
            logger.warning(
                "Spend rejected method=%s amount=%s available=%s",
                method.value,
                amount,
                available,
            )
            raise InsufficientFundsError(method.value, available, amount)

    def add_deposit(
        self, amount: float, method: PaymentMethod | str, date: dt_date | str
    ) -> DepositRecord:
        record = DepositRecord(amount=amount, method=method, date=date)
        self._connectivity.require_online("add money")
        with self._write_guard():
            try:
                saved = self._store.insert_deposit(record)
            except StoreError as exc:
                logger.warning("Deposit write failed: %s", exc)
                raise RemoteWriteError("Failed to add money. Please try again.") from exc
            snapshot = self._snapshot
            self._snapshot = replace(snapshot, deposits=(saved,) + snapshot.deposits)
        logger.info(
            "Deposit record created id=%s method=%s amount=%s",
            saved.id,
            saved.method.value,
            saved.amount,
        )
        return saved

    def add_spend(
        self,
        purpose: str,
        amount: float,
        method: PaymentMethod | str,
        date: dt_date | str,
    ) -> SpendRecord:
        record = SpendRecord(purpose=purpose, amount=amount, method=method, date=date)
        self._connectivity.require_online("add spend")
        with self._write_guard():
            self._ensure_funds(record.method, record.amount, exclude_id=None)
            try:
                saved = self._store.insert_spend(record)
            except StoreError as exc:
                logger.warning("Spend write failed: %s", exc)
                raise RemoteWriteError("Failed to add spend. Please try again.") from exc
            snapshot = self._snapshot
            self._snapshot = replace(snapshot, spends=(saved,) + snapshot.spends)
        logger.info(
            "Spend record created id=%s method=%s amount=%s",
            saved.id,
            saved.method.value,
            saved.amount,
        )
        return saved

    def update_spend(
        self,
        record_id: str,
        *,
        purpose: str | None = None,
        amount: float | None = None,
        method: PaymentMethod | str | None = None,
        date: dt_date | str | None = None,
    ) -> SpendRecord | None:
        """Edit a spend in place; returns None when the id is not in the snapshot."""
        if purpose is not None:
            purpose = require_purpose(purpose)
        if amount is not None:
            amount = parse_amount(amount)
        if method is not None:
            method = PaymentMethod.parse(method)
        if date is not None:
            date = parse_ymd(date)
        self._connectivity.require_online("update spend")

        with self._write_guard():
            existing = self.get_spend(record_id)
            if existing is None:
                logger.warning("Spend update skipped, unknown id=%s", record_id)
                return None
            updated = existing.with_updates(
                purpose=purpose, amount=amount, method=method, date=date
            )
            self._ensure_funds(updated.method, updated.amount, exclude_id=existing.id)
            try:
                saved = self._store.update_spend(updated)
            except StoreError as exc:
                logger.warning("Spend update failed id=%s: %s", record_id, exc)
                raise RemoteWriteError("Failed to update. Please try again.") from exc
            snapshot = self._snapshot
            self._snapshot = replace(
                snapshot,
                spends=tuple(saved if spend.id == saved.id else spend for spend in snapshot.spends),
            )
        logger.info(
            "Spend record updated id=%s method=%s amount=%s",
            saved.id,
            saved.method.value,
            saved.amount,
        )
        return saved

    def set_initial_balance(
        self, hand: float | None = None, gpay: float | None = None
    ) -> WalletBaseline:
        current = self._snapshot.baseline
        hand = current.initial_hand if hand is None else parse_non_negative(hand)
        gpay = current.initial_gpay if gpay is None else parse_non_negative(gpay)
        self._connectivity.require_online("update balance")
        with self._write_guard():
            try:
                saved = self._store.save_baseline(
                    replace(current, initial_hand=hand, initial_gpay=gpay)
                )
            except StoreError as exc:
                logger.warning("Initial balance write failed: %s", exc)
                raise RemoteWriteError("Failed to save. Please try again.") from exc
            self._snapshot = replace(self._snapshot, baseline=saved)
        logger.info("Initial balances saved hand=%s gpay=%s", saved.initial_hand, saved.initial_gpay)
        return saved

    def set_budget_limit(self, limit: float) -> float:
        limit = parse_non_negative(limit, "Budget cannot be negative")
        self._connectivity.require_online("update budget")
        with self._write_guard():
            try:
                saved = self._store.save_settings(
                    AppSettings(budget_limit=limit, id=self._settings_id),
                    fields=("budget_limit",),
                )
            except StoreError as exc:
                logger.warning("Budget limit write failed: %s", exc)
                raise RemoteWriteError("Failed to save. Please try again.") from exc
            self._settings_id = saved.id
            self._snapshot = replace(self._snapshot, budget_limit=saved.budget_limit)
        logger.info("Budget limit saved limit=%s", saved.budget_limit)
        return saved.budget_limit
