import json
from unittest.mock import Mock, patch

import pytest
import requests

from domain.errors import NotFoundError
from domain.records import AppSettings, DepositRecord, PaymentMethod, SpendRecord, WalletBaseline
from infrastructure.repositories import StoreError
from infrastructure.rest_repository import RestRecordStore

BASE_URL = "https://example.supabase.co"


def _response(body=None, status=200):
    resp = Mock(spec=requests.Response)
    resp.status_code = status
    resp.content = b"" if body is None else json.dumps(body).encode("utf-8")
    resp.json.return_value = body
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


def _spend_row(**overrides):
    row = {
        "id": "s1",
        "purpose": "Lunch",
        "amount": 120.5,
        "method": "gpay",
        "date": "2025-01-05",
        "created_at": "2025-01-05T09:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def session():
    return requests.Session()


@pytest.fixture
def store(session):
    return RestRecordStore(BASE_URL + "/", "anon-key", timeout=5, session=session)


def test_auth_headers_are_set(store, session):
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer anon-key"


def test_load_spends_orders_newest_first(store, session):
    with patch.object(session, "request", return_value=_response([_spend_row()])) as request:
        spends = store.load_spends()

    assert len(spends) == 1
    assert spends[0].method is PaymentMethod.GPAY
    assert spends[0].amount == 120.5
    method, url = request.call_args.args
    assert method == "GET"
    assert url == f"{BASE_URL}/rest/v1/spend_records"
    assert request.call_args.kwargs["params"] == {"select": "*", "order": "created_at.desc"}
    assert request.call_args.kwargs["timeout"] == 5


def test_load_baseline_missing_row(store, session):
    with patch.object(session, "request", return_value=_response([])):
        assert store.load_baseline() is None


def test_insert_deposit_posts_row_and_asks_for_representation(store, session):
    record = DepositRecord(amount=200, method="hand", date="2025-01-02")
    with patch.object(session, "request", return_value=_response([record.to_row()])) as request:
        saved = store.insert_deposit(record)

    assert saved == record
    assert request.call_args.args == ("POST", f"{BASE_URL}/rest/v1/add_money_records")
    assert request.call_args.kwargs["json"] == record.to_row()
    assert request.call_args.kwargs["headers"] == {"Prefer": "return=representation"}


def test_update_spend_patches_by_id(store, session):
    record = SpendRecord.from_row(_spend_row())
    updated = record.with_updates(amount=99)
    with patch.object(
        session, "request", return_value=_response([_spend_row(amount=99)])
    ) as request:
        saved = store.update_spend(updated)

    assert saved.amount == 99.0
    assert request.call_args.args[0] == "PATCH"
    assert request.call_args.kwargs["params"] == {"id": "eq.s1"}
    assert request.call_args.kwargs["json"] == {
        "purpose": "Lunch",
        "amount": 99.0,
        "method": "gpay",
        "date": "2025-01-05",
    }


def test_update_spend_unknown_id(store, session):
    record = SpendRecord.from_row(_spend_row())
    with patch.object(session, "request", return_value=_response([])):
        with pytest.raises(NotFoundError):
            store.update_spend(record)


def test_save_baseline_inserts_when_no_row_exists(store, session):
    inserted = {"id": "w1", "initial_hand": 1000, "initial_gpay": 500, "created_at": None}
    with patch.object(
        session, "request", side_effect=[_response([]), _response([inserted])]
    ) as request:
        saved = store.save_baseline(WalletBaseline(initial_hand=1000, initial_gpay=500))

    assert saved.id == "w1"
    assert [c.args[0] for c in request.call_args_list] == ["GET", "POST"]


def test_save_baseline_updates_known_row(store, session):
    row = {"id": "w1", "initial_hand": 10, "initial_gpay": 0, "created_at": None}
    with patch.object(session, "request", return_value=_response([row])) as request:
        store.save_baseline(WalletBaseline(initial_hand=10, id="w1"))

    assert request.call_count == 1
    assert request.call_args.args[0] == "PATCH"
    assert request.call_args.kwargs["params"] == {"id": "eq.w1"}


def test_save_settings_patches_only_named_fields(store, session):
    existing = {"id": "cfg", "pin_hash": "1509442", "budget_limit": 0}
    updated = dict(existing, budget_limit=2500)
    with patch.object(
        session, "request", side_effect=[_response([existing]), _response([updated])]
    ) as request:
        saved = store.save_settings(AppSettings(budget_limit=2500), fields=("budget_limit",))

    assert saved.pin_hash == "1509442"
    assert saved.budget_limit == 2500.0
    patch_call = request.call_args_list[1]
    assert patch_call.args[0] == "PATCH"
    assert patch_call.kwargs["json"] == {"budget_limit": 2500.0}


def test_http_error_becomes_store_error(store, session):
    with patch.object(session, "request", return_value=_response({"message": "no"}, status=401)):
        with pytest.raises(StoreError):
            store.load_deposits()


def test_timeout_becomes_store_error(store, session):
    with patch.object(session, "request", side_effect=requests.Timeout("slow")):
        with pytest.raises(StoreError, match="timed out"):
            store.load_settings()


def test_connection_error_becomes_store_error(store, session):
    with patch.object(session, "request", side_effect=requests.ConnectionError("down")):
        with pytest.raises(StoreError):
            store.insert_spend(SpendRecord.from_row(_spend_row()))


def test_invalid_json_becomes_store_error(store, session):
    resp = _response([])
    resp.content = b"<html>"
    resp.json.side_effect = ValueError("not json")
    with patch.object(session, "request", return_value=resp):
        with pytest.raises(StoreError, match="invalid JSON"):
            store.load_spends()


def test_close_closes_session(store, session):
    with patch.object(session, "close") as close:
        store.close()
    close.assert_called_once_with()
