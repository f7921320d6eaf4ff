from __future__ import annotations

import logging

import requests

from domain.errors import NotFoundError
from domain.records import AppSettings, DepositRecord, SpendRecord, WalletBaseline
from infrastructure.repositories import SETTINGS_FIELDS, RecordStore, StoreError

logger = logging.getLogger(__name__)

BASELINE_TABLE = "wallet_state"
DEPOSITS_TABLE = "add_money_records"
SPENDS_TABLE = "spend_records"
SETTINGS_TABLE = "app_settings"


class RestRecordStore(RecordStore):
    """RecordStore over a PostgREST-style HTTP API (``/rest/v1/<table>``).

    Singleton rows (baseline, settings) are updated in place when a row
    already exists and inserted otherwise; the store itself keeps no state.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def close(self) -> None:
        self._session.close()

    def _url(self, table: str) -> str:
        return f"{self._base_url}/rest/v1/{table}"

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict | None = None,
        payload: dict | None = None,
    ) -> list[dict]:
        headers = {"Prefer": "return=representation"} if method != "GET" else None
        logger.debug("Store request %s %s params=%s", method, table, params)
        try:
            resp = self._session.request(
                method,
                self._url(table),
                params=params,
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise StoreError(f"Store request timed out: {method} {table}") from exc
        except requests.RequestException as exc:
            raise StoreError(f"Store request failed: {method} {table}: {exc}") from exc

        if not resp.content:
            return []
        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreError(f"Store returned invalid JSON for {method} {table}") from exc
        if isinstance(body, dict):
            return [body]
        if not isinstance(body, list):
            raise StoreError(f"Unexpected store response for {method} {table}")
        return body

    def _select_first(self, table: str) -> dict | None:
        rows = self._request("GET", table, params={"select": "*", "limit": "1"})
        return rows[0] if rows else None

    def _select_newest_first(self, table: str) -> list[dict]:
        return self._request("GET", table, params={"select": "*", "order": "created_at.desc"})

    def _single(self, rows: list[dict], table: str) -> dict:
        if not rows:
            raise StoreError(f"Store returned no row for {table}")
        return rows[0]

    def _existing_id(self, table: str, known_id: str | None) -> str | None:
        if known_id:
            return known_id
        row = self._select_first(table)
        return str(row["id"]) if row and row.get("id") is not None else None

    def load_baseline(self) -> WalletBaseline | None:
        row = self._select_first(BASELINE_TABLE)
        return WalletBaseline.from_row(row) if row else None

    def save_baseline(self, baseline: WalletBaseline) -> WalletBaseline:
        payload = {
            "initial_hand": baseline.initial_hand,
            "initial_gpay": baseline.initial_gpay,
        }
        row_id = self._existing_id(BASELINE_TABLE, baseline.id)
        if row_id:
            rows = self._request(
                "PATCH", BASELINE_TABLE, params={"id": f"eq.{row_id}"}, payload=payload
            )
        else:
            rows = self._request("POST", BASELINE_TABLE, payload=payload)
        return WalletBaseline.from_row(self._single(rows, BASELINE_TABLE))

    def load_deposits(self) -> list[DepositRecord]:
        return [DepositRecord.from_row(row) for row in self._select_newest_first(DEPOSITS_TABLE)]

    def insert_deposit(self, record: DepositRecord) -> DepositRecord:
        rows = self._request("POST", DEPOSITS_TABLE, payload=record.to_row())
        return DepositRecord.from_row(self._single(rows, DEPOSITS_TABLE))

    def load_spends(self) -> list[SpendRecord]:
        return [SpendRecord.from_row(row) for row in self._select_newest_first(SPENDS_TABLE)]

    def insert_spend(self, record: SpendRecord) -> SpendRecord:
        rows = self._request("POST", SPENDS_TABLE, payload=record.to_row())
        return SpendRecord.from_row(self._single(rows, SPENDS_TABLE))

    def update_spend(self, record: SpendRecord) -> SpendRecord:
        payload = {
            "purpose": record.purpose,
            "amount": record.amount,
            "method": record.method.value,
            "date": record.date.isoformat(),
        }
        rows = self._request(
            "PATCH", SPENDS_TABLE, params={"id": f"eq.{record.id}"}, payload=payload
        )
        if not rows:
            raise NotFoundError(f"Spend record not found: {record.id}")
        return SpendRecord.from_row(rows[0])

    def load_settings(self) -> AppSettings | None:
        row = self._select_first(SETTINGS_TABLE)
        return AppSettings.from_row(row) if row else None

    def save_settings(
        self, settings: AppSettings, fields: tuple[str, ...] = SETTINGS_FIELDS
    ) -> AppSettings:
        row = settings.to_row()
        row_id = self._existing_id(SETTINGS_TABLE, settings.id)
        if row_id:
            payload = {name: row[name] for name in fields}
            rows = self._request(
                "PATCH", SETTINGS_TABLE, params={"id": f"eq.{row_id}"}, payload=payload
            )
        else:
            rows = self._request("POST", SETTINGS_TABLE, payload=row)
        return AppSettings.from_row(self._single(rows, SETTINGS_TABLE))
