import csv
import os
import tempfile
from datetime import date

import pytest

from app.auth import PinAuthGate, PinState
from app.connectivity import ConnectivityMonitor
from app.context import AppContext, export_spends
from app.wallet_session import WalletDataSession
from domain.errors import AuthenticationRequired, ValidationError
from domain.pin import LegacyPinHasher
from domain.records import AppSettings, SpendRecord, WalletBaseline
from infrastructure.repositories import InMemoryRecordStore


def _context(tmp_dir, online=True, spends=None):
    store = InMemoryRecordStore(
        baseline=WalletBaseline(initial_hand=1000, initial_gpay=500, id="w1"),
        settings=AppSettings(pin_hash="1509442", id="cfg"),
        spends=spends,
    )
    connectivity = ConnectivityMonitor(online=online)
    gate = PinAuthGate(store, connectivity, hasher=LegacyPinHasher())
    session = WalletDataSession(store, connectivity)
    return AppContext(store, connectivity, gate, session, export_dir=tmp_dir)


def _spends():
    return [
        SpendRecord(purpose="Late", amount=30, method="hand", date="2025-01-20"),
        SpendRecord(purpose="Other month", amount=99, method="hand", date="2025-02-01"),
        SpendRecord(purpose="Early", amount=20, method="gpay", date="2025-01-02"),
    ]


def test_start_loads_gate_and_session():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir)
        context.start()

        assert context.gate.state is PinState.LOCKED
        assert context.session.balance().total == 1500.0


def test_report_and_export_require_unlock():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir)
        context.start()

        with pytest.raises(AuthenticationRequired):
            context.month_report("2025-01")
        with pytest.raises(AuthenticationRequired):
            context.export_month("2025-01")


def test_export_month_filters_and_sorts():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir, spends=_spends())
        context.start()
        context.gate.enter_pin("1234")

        path = context.export_month("2025-01", "csv")

        assert os.path.basename(path) == "expenses-January-2025.csv"
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        assert [row[1] for row in rows] == ["Purpose", "Early", "Late", "TOTAL"]
        assert rows[-1][2] == "50.00"


def test_export_month_without_records():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir, spends=_spends())
        context.start()
        context.gate.enter_pin("1234")

        with pytest.raises(ValidationError, match="No records to export"):
            context.export_month("2024-06", "pdf")


def test_month_report_through_context():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir, spends=_spends())
        context.start()
        context.gate.enter_pin("1234")

        report = context.month_report("2025-01", today=date(2025, 1, 21))

        assert report.total_spent() == 50.0
        assert context.month_options(date(2025, 1, 21))[0] == ("2025-01", "January 2025")


def test_offline_start_reloads_when_back_online():
    with tempfile.TemporaryDirectory() as tmp_dir:
        context = _context(tmp_dir, online=False)
        context.start()
        assert context.gate.state is PinState.UNINITIALIZED
        assert not context.session.loaded

        context.connectivity.set_online(True)

        assert context.gate.state is PinState.LOCKED
        assert context.session.loaded


def test_close_locks_gate():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with _context(tmp_dir) as context:
            context.gate.enter_pin("1234")
            assert context.gate.is_authenticated
        assert context.gate.state is PinState.LOCKED


@pytest.mark.parametrize("fmt, ext", [("csv", ".csv"), ("PDF", ".pdf"), ("xlsx", ".xlsx")])
def test_export_spends_dispatch(fmt, ext):
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = export_spends(_spends(), "All", tmp_dir, fmt)
        assert path.endswith(ext)
        assert os.path.getsize(path) > 0


def test_export_spends_unknown_format():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_spends(_spends(), "All", tmp_dir, "json")
