"""PIN hashing schemes.

Two formats can be stored in the settings row:

* ``legacy`` - the signed 32-bit rolling hash written by earlier versions of
  the app, rendered as a decimal string (e.g. ``"1509442"`` for ``1234``).
* ``scrypt`` - ``scrypt$<salt-hex>$<digest-hex>``, salted per installation.

``verify_pin_hash`` recognises either format, so rows written by the old
hash keep unlocking the app after the default scheme moves to scrypt.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from abc import ABC, abstractmethod

SCRYPT_PREFIX = "scrypt"
SCRYPT_PARAMS = {"n": 2**14, "r": 8, "p": 1, "dklen": 32}

_LEGACY_PATTERN = re.compile(r"-?\d+")


class PinHasher(ABC):
    scheme: str = ""

    @abstractmethod
    def hash(self, pin: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def matches(self, pin: str, stored: str) -> bool:
        raise NotImplementedError

    @staticmethod
    def for_scheme(scheme: str) -> "PinHasher":
        name = (scheme or "").strip().lower()
        if name == LegacyPinHasher.scheme:
            return LegacyPinHasher()
        if name == ScryptPinHasher.scheme:
            return ScryptPinHasher()
        raise ValueError(f"Unknown PIN hash scheme: {scheme}")


class LegacyPinHasher(PinHasher):
    scheme = "legacy"

    def hash(self, pin: str) -> str:
        value = 0
        for char in pin:
            value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
        if value >= 0x80000000:
            value -= 0x100000000
        return str(value)

    def matches(self, pin: str, stored: str) -> bool:
        return hmac.compare_digest(self.hash(pin), stored)


class ScryptPinHasher(PinHasher):
    scheme = "scrypt"

    def __init__(self, salt: bytes | None = None) -> None:
        self._salt = salt

    @staticmethod
    def _digest(pin: str, salt: bytes) -> bytes:
        return hashlib.scrypt(
            pin.encode("utf-8"),
            salt=salt,
            n=SCRYPT_PARAMS["n"],
            r=SCRYPT_PARAMS["r"],
            p=SCRYPT_PARAMS["p"],
            dklen=SCRYPT_PARAMS["dklen"],
        )

    def hash(self, pin: str) -> str:
        salt = self._salt if self._salt is not None else secrets.token_bytes(16)
        return f"{SCRYPT_PREFIX}${salt.hex()}${self._digest(pin, salt).hex()}"

    def matches(self, pin: str, stored: str) -> bool:
        parts = stored.split("$")
        if len(parts) != 3 or parts[0] != SCRYPT_PREFIX:
            return False
        try:
            salt = bytes.fromhex(parts[1])
            expected = bytes.fromhex(parts[2])
        except ValueError:
            return False
        return hmac.compare_digest(self._digest(pin, salt), expected)


def scheme_of(stored: str) -> str | None:
    if stored.startswith(f"{SCRYPT_PREFIX}$"):
        return ScryptPinHasher.scheme
    if _LEGACY_PATTERN.fullmatch(stored):
        return LegacyPinHasher.scheme
    return None


def verify_pin_hash(pin: str, stored: str | None) -> bool:
    if not stored:
        return False
    scheme = scheme_of(stored)
    if scheme is None:
        return False
    return PinHasher.for_scheme(scheme).matches(pin, stored)
