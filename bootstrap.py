from __future__ import annotations

import logging

import config
from app.auth import PinAuthGate
from app.connectivity import ConnectivityMonitor
from app.context import AppContext
from app.wallet_session import WalletDataSession
from domain.pin import PinHasher
from infrastructure.repositories import InMemoryRecordStore, RecordStore
from infrastructure.rest_repository import RestRecordStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    level = level if level is not None else config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_store() -> RecordStore:
    if config.USE_REMOTE_STORE:
        if not config.STORE_URL or not config.STORE_API_KEY:
            raise RuntimeError("USE_REMOTE_STORE is set but STORE_URL or STORE_API_KEY is missing")
        logger.info("Storage selected: remote (%s)", config.STORE_URL)
        return RestRecordStore(
            config.STORE_URL, config.STORE_API_KEY, timeout=config.STORE_TIMEOUT
        )
    logger.info("Storage selected: in-memory")
    return InMemoryRecordStore()


def bootstrap_context(
    store: RecordStore | None = None,
    online: bool = True,
    start: bool = True,
) -> AppContext:
    store = store if store is not None else build_store()
    connectivity = ConnectivityMonitor(online=online)
    gate = PinAuthGate(store, connectivity, hasher=PinHasher.for_scheme(config.PIN_HASH_SCHEME))
    session = WalletDataSession(store, connectivity)
    context = AppContext(
        store,
        connectivity,
        gate,
        session,
        export_dir=config.EXPORT_DIR,
        near_percent=config.BUDGET_ALERT_PERCENT,
    )
    if start:
        context.start()
    return context
