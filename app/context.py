from __future__ import annotations

import logging
from datetime import date as dt_date
from datetime import datetime

from domain.balance import BUDGET_NEAR_PERCENT, spends_for_month
from domain.reports import MonthReport, month_options
from infrastructure.repositories import RecordStore

from .auth import PinAuthGate
from .connectivity import ConnectivityMonitor
from .wallet_session import WalletDataSession

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "pdf", "xlsx")


def export_spends(
    spends,
    period_label: str,
    directory: str,
    fmt: str,
    generated_at: datetime | None = None,
) -> str:
    """Write spends in `fmt` and return the file path."""
    fmt = (fmt or "csv").lower()
    try:
        if fmt == "csv":
            from utils.csv_utils import export_spends_to_csv

            return export_spends_to_csv(spends, period_label, directory)
        if fmt in ("xlsx", "xls"):
            from utils.excel_utils import export_spends_to_xlsx

            return export_spends_to_xlsx(spends, period_label, directory)
        if fmt == "pdf":
            from utils.pdf_utils import export_spends_to_pdf

            return export_spends_to_pdf(
                spends, period_label, directory, generated_at=generated_at
            )
        raise ValueError(f"Unsupported export format: {fmt}")
    except OSError:
        logger.exception("Failed to export spends to %s (%s)", directory, fmt)
        raise


class AppContext:
    """Everything one running app shares: store, connectivity, PIN gate, wallet.

    Built once at startup (see bootstrap.bootstrap_context) and passed to
    whatever drives the UI; there are no module-level singletons.
    """

    def __init__(
        self,
        store: RecordStore,
        connectivity: ConnectivityMonitor,
        gate: PinAuthGate,
        session: WalletDataSession,
        export_dir: str,
        near_percent: float = BUDGET_NEAR_PERCENT,
    ) -> None:
        self.store = store
        self.connectivity = connectivity
        self.gate = gate
        self.session = session
        self.export_dir = export_dir
        self.near_percent = near_percent

    def start(self) -> None:
        self.gate.load()
        self.session.load()
        self.connectivity.subscribe(self._on_connectivity_change)
        logger.info(
            "App context started online=%s pin_state=%s",
            self.connectivity.is_online,
            self.gate.state.value,
        )

    def _on_connectivity_change(self, online: bool) -> None:
        if online and not (self.gate.loaded and self.session.loaded):
            self.reload()

    def reload(self) -> None:
        """Re-read store state, e.g. after coming back online."""
        if not self.gate.loaded:
            self.gate.load()
        self.session.load()

    def close(self) -> None:
        self.connectivity.unsubscribe(self._on_connectivity_change)
        self.gate.lock()
        self.store.close()
        logger.info("App context closed")

    def __enter__(self) -> "AppContext":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def month_report(self, month: str, today: dt_date | None = None) -> MonthReport:
        self.gate.require_unlocked()
        return self.session.month_report(month, today=today, near_percent=self.near_percent)

    def month_options(self, today: dt_date | None = None) -> list[tuple[str, str]]:
        return month_options(today)

    def export_month(
        self,
        month: str,
        fmt: str = "csv",
        directory: str | None = None,
        generated_at: datetime | None = None,
    ) -> str:
        """Export one month of spends; label is "Month YYYY"."""
        self.gate.require_unlocked()
        spends = spends_for_month(self.session.snapshot.spends, month)
        label = MonthReport.label_for(month)
        return export_spends(
            spends,
            label,
            directory or self.export_dir,
            fmt,
            generated_at=generated_at,
        )
