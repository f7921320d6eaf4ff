import logging
from enum import Enum

from domain.errors import (
    AuthenticationRequired,
    DomainError,
    PinMismatchError,
    RemoteWriteError,
)
from domain.pin import PinHasher, ScryptPinHasher, verify_pin_hash
from domain.records import AppSettings
from domain.validation import ensure_pin
from infrastructure.repositories import RecordStore, StoreError

from .connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)


class PinState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_FIRST_ENTRY = "awaiting_first_entry"
    AWAITING_CONFIRM_ENTRY = "awaiting_confirm_entry"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


_SETUP_STATES = (PinState.UNINITIALIZED, PinState.AWAITING_FIRST_ENTRY)


class PinAuthGate:
    """Four-digit PIN lock in front of the whole application.

    Setup takes two matching entries; after that every entry is checked
    against the stored hash. Only the hash ever leaves this object.
    """

    def __init__(
        self,
        store: RecordStore,
        connectivity: ConnectivityMonitor,
        hasher: PinHasher | None = None,
    ) -> None:
        self._store = store
        self._connectivity = connectivity
        self._hasher = hasher or ScryptPinHasher()
        self._state = PinState.UNINITIALIZED
        self._pin_hash: str | None = None
        self._settings_id: str | None = None
        self._first_entry: str | None = None
        self._loaded = False

    @property
    def state(self) -> PinState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is PinState.UNLOCKED

    @property
    def is_pin_set(self) -> bool:
        return self._pin_hash is not None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> PinState:
        """Read the stored hash; offline or on failure the gate stays unloaded."""
        if not self._connectivity.is_online:
            logger.warning("Offline at startup, PIN settings not loaded")
            return self._state
        try:
            settings = self._store.load_settings()
        except (StoreError, DomainError) as exc:
            logger.warning("Failed to load PIN settings: %s", exc)
            return self._state

        self._loaded = True
        if settings is not None:
            self._settings_id = settings.id
        if settings is not None and settings.has_pin:
            self._pin_hash = settings.pin_hash
            self._state = PinState.LOCKED
        else:
            self._pin_hash = None
            self._state = PinState.UNINITIALIZED
        return self._state

    def enter_pin(self, digits: str) -> PinState:
        ensure_pin(digits)
        if self._state in _SETUP_STATES:
            self._connectivity.require_online("set PIN")
            self._reload_before_setup()
        if self._state in _SETUP_STATES:
            return self._accept_first_entry(digits)
        if self._state is PinState.AWAITING_CONFIRM_ENTRY:
            return self._accept_confirm_entry(digits)
        if self._state is PinState.LOCKED:
            if not self.verify_pin(digits):
                raise PinMismatchError("Incorrect PIN")
            return self._state
        return self._state

    def _reload_before_setup(self) -> None:
        # A PIN may only be created once the store confirmed none exists.
        if self._loaded:
            return
        self.load()
        if not self._loaded:
            raise RemoteWriteError("Could not check PIN settings. Please try again.")

    def _accept_first_entry(self, digits: str) -> PinState:
        self._first_entry = digits
        self._state = PinState.AWAITING_CONFIRM_ENTRY
        return self._state

    def _accept_confirm_entry(self, digits: str) -> PinState:
        if digits != self._first_entry:
            self._first_entry = None
            self._state = PinState.AWAITING_FIRST_ENTRY
            raise PinMismatchError("PINs do not match")
        self._connectivity.require_online("set PIN")
        self._persist_hash(self._hasher.hash(digits), "Failed to set PIN. Please try again.")
        self._first_entry = None
        self._state = PinState.UNLOCKED
        logger.info("PIN set")
        return self._state

    def verify_pin(self, digits: str) -> bool:
        """Check an entry against the loaded hash; works offline."""
        matched = verify_pin_hash(digits, self._pin_hash)
        if self._state is PinState.LOCKED:
            if matched:
                self._state = PinState.UNLOCKED
                logger.info("App unlocked")
            else:
                logger.warning("Incorrect PIN entered")
        return matched

    def change_pin(self, current: str, new: str) -> None:
        if self._state is not PinState.UNLOCKED:
            raise AuthenticationRequired("Unlock the app to change PIN")
        ensure_pin(current, "Enter your current 4-digit PIN")
        ensure_pin(new, "New PIN must be 4 digits")
        self._connectivity.require_online("change PIN")
        if not verify_pin_hash(current, self._pin_hash):
            raise PinMismatchError("Current PIN incorrect")
        self._persist_hash(self._hasher.hash(new), "Failed to change PIN. Please try again.")
        logger.info("PIN changed")

    def _persist_hash(self, pin_hash: str, failure_message: str) -> None:
        try:
            saved = self._store.save_settings(
                AppSettings(pin_hash=pin_hash, id=self._settings_id),
                fields=("pin_hash",),
            )
        except StoreError as exc:
            logger.warning("PIN write rejected by store: %s", exc)
            raise RemoteWriteError(failure_message) from exc
        self._settings_id = saved.id
        self._pin_hash = pin_hash
        self._loaded = True

    def lock(self) -> None:
        if self._pin_hash is not None:
            self._state = PinState.LOCKED
            logger.info("App locked")

    def logout(self) -> None:
        self.lock()

    def require_unlocked(self) -> None:
        if self._state is not PinState.UNLOCKED:
            raise AuthenticationRequired("Enter your PIN to continue")
