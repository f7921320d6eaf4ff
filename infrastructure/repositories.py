import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from uuid import uuid4

from domain.errors import NotFoundError
from domain.records import AppSettings, DepositRecord, SpendRecord, WalletBaseline

logger = logging.getLogger(__name__)
SETTINGS_FIELDS = ("pin_hash", "budget_limit")


class StoreError(Exception):
    """The record store rejected a request or could not be reached."""


class RecordStore(ABC):
    """Four logical tables: wallet baseline, deposits, spends, settings."""

    @abstractmethod
    def load_baseline(self) -> WalletBaseline | None:
        """Return the baseline row, or None if it was never written."""
        pass

    @abstractmethod
    def save_baseline(self, baseline: WalletBaseline) -> WalletBaseline:
        """Insert the baseline row if absent, update it otherwise."""
        pass

    @abstractmethod
    def load_deposits(self) -> list[DepositRecord]:
        """Deposit records, newest created first."""
        pass

    @abstractmethod
    def insert_deposit(self, record: DepositRecord) -> DepositRecord:
        pass

    @abstractmethod
    def load_spends(self) -> list[SpendRecord]:
        """Spend records, newest created first."""
        pass

    @abstractmethod
    def insert_spend(self, record: SpendRecord) -> SpendRecord:
        pass

    @abstractmethod
    def update_spend(self, record: SpendRecord) -> SpendRecord:
        """Replace purpose, amount, method and date of an existing spend."""
        pass

    @abstractmethod
    def load_settings(self) -> AppSettings | None:
        """Return the settings row, or None if it was never written."""
        pass

    @abstractmethod
    def save_settings(
        self, settings: AppSettings, fields: tuple[str, ...] = SETTINGS_FIELDS
    ) -> AppSettings:
        """Insert the settings row if absent, otherwise update only `fields`."""
        pass

    def close(self) -> None:
        """Release connections; the default store holds none."""


class InMemoryRecordStore(RecordStore):
    """Process-local store for tests and offline development."""

    def __init__(
        self,
        *,
        baseline: WalletBaseline | None = None,
        deposits: list[DepositRecord] | None = None,
        spends: list[SpendRecord] | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._baseline = baseline
        self._deposits = list(deposits or [])
        self._spends = list(spends or [])
        self._settings = settings
        self.fail_writes = False

    @staticmethod
    def _newest_first(records: list) -> list:
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def _check_writable(self) -> None:
        if self.fail_writes:
            logger.debug("In-memory store rejecting write: fail_writes is set")
            raise StoreError("Store rejected the write")

    def load_baseline(self) -> WalletBaseline | None:
        with self._lock:
            return self._baseline

    def save_baseline(self, baseline: WalletBaseline) -> WalletBaseline:
        with self._lock:
            self._check_writable()
            if self._baseline is None:
                stored = WalletBaseline(
                    initial_hand=baseline.initial_hand,
                    initial_gpay=baseline.initial_gpay,
                    created_at=baseline.created_at,
                    id=baseline.id or str(uuid4()),
                )
            else:
                stored = WalletBaseline(
                    initial_hand=baseline.initial_hand,
                    initial_gpay=baseline.initial_gpay,
                    created_at=self._baseline.created_at,
                    id=self._baseline.id,
                )
            self._baseline = stored
            return stored

    def load_deposits(self) -> list[DepositRecord]:
        with self._lock:
            return self._newest_first(self._deposits)

    def insert_deposit(self, record: DepositRecord) -> DepositRecord:
        with self._lock:
            self._check_writable()
            if any(existing.id == record.id for existing in self._deposits):
                raise StoreError(f"Duplicate deposit id {record.id}")
            self._deposits.append(record)
            return record

    def load_spends(self) -> list[SpendRecord]:
        with self._lock:
            return self._newest_first(self._spends)

    def insert_spend(self, record: SpendRecord) -> SpendRecord:
        with self._lock:
            self._check_writable()
            if any(existing.id == record.id for existing in self._spends):
                raise StoreError(f"Duplicate spend id {record.id}")
            self._spends.append(record)
            return record

    def update_spend(self, record: SpendRecord) -> SpendRecord:
        with self._lock:
            self._check_writable()
            for index, existing in enumerate(self._spends):
                if existing.id == record.id:
                    updated = existing.with_updates(
                        purpose=record.purpose,
                        amount=record.amount,
                        method=record.method,
                        date=record.date,
                    )
                    self._spends[index] = updated
                    return updated
            raise NotFoundError(f"Spend record not found: {record.id}")

    def load_settings(self) -> AppSettings | None:
        with self._lock:
            return self._settings

    def save_settings(
        self, settings: AppSettings, fields: tuple[str, ...] = SETTINGS_FIELDS
    ) -> AppSettings:
        with self._lock:
            self._check_writable()
            if self._settings is None:
                stored = replace(settings, id=settings.id or str(uuid4()))
            else:
                changes = {name: getattr(settings, name) for name in fields}
                stored = replace(self._settings, **changes)
            self._settings = stored
            return stored
