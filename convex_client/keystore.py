"""
Password-protected key storage.

Two independent tiers:

    Persisted records (StoredKeyRecord):
        One per alias: public key, salt, iv, AES-256-GCM ciphertext of the
        32-byte private seed, and the PBKDF2 iteration count. The plaintext
        private key never appears in a record. Safe to keep indefinitely.

    Unlocked sessions (UnlockedKeyCache):
        Plaintext key pairs the user has explicitly unlocked, held in
        memory only. Cleared by lock(), delete_key_pair(), clear or process
        exit. Clearing one tier never touches the other.

Key derivation: PBKDF2-HMAC-SHA256(password, salt[16], iterations) -> 32
bytes, used as an AES-256-GCM key with a random 12-byte iv.

A wrong password or a corrupted record is an expected outcome: lookups
return None instead of raising.

Records are replaced or deleted whole, never partially updated.
"""

from __future__ import annotations

import hmac
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import jsonschema  # type: ignore[import-untyped]
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from convex_client.config import DEFAULT_PBKDF2_ITERATIONS
from convex_client.crypto import KeyPair

logger = logging.getLogger(__name__)

SALT_SIZE = 16
IV_SIZE = 12
AES_KEY_SIZE = 32


# =========================================================================
# Encryption
# =========================================================================


@dataclass(frozen=True)
class EncryptedPayload:
    salt: bytes
    iv: bytes
    ciphertext: bytes
    iterations: int


def derive_key(password: str, salt: bytes, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> bytes:
    """Derive a 256-bit AES key from a password with PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=AES_KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_data(
    data: bytes,
    password: str,
    iterations: int = DEFAULT_PBKDF2_ITERATIONS,
) -> EncryptedPayload:
    """Encrypt with a password-derived key, fresh salt and iv."""
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_key(password, salt, iterations)
    ciphertext = AESGCM(key).encrypt(iv, data, None)
    return EncryptedPayload(salt=salt, iv=iv, ciphertext=ciphertext, iterations=iterations)


def decrypt_data(
    ciphertext: bytes,
    iv: bytes,
    password: str,
    salt: bytes,
    iterations: int = DEFAULT_PBKDF2_ITERATIONS,
) -> bytes:
    """Decrypt data produced by ``encrypt_data``.

    Raises:
        cryptography.exceptions.InvalidTag: Wrong password or tampered data.
    """
    key = derive_key(password, salt, iterations)
    return AESGCM(key).decrypt(iv, ciphertext, None)


# =========================================================================
# Stored record
# =========================================================================

_HEX_FIELD = {"type": "string", "pattern": "^[0-9a-f]*$"}

STORED_RECORD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["publicKey", "salt", "iv", "encryptedPrivateKey", "iterations"],
    "properties": {
        "publicKey": {**_HEX_FIELD, "minLength": 64, "maxLength": 64},
        "salt": {**_HEX_FIELD, "minLength": 2 * SALT_SIZE, "maxLength": 2 * SALT_SIZE},
        "iv": {**_HEX_FIELD, "minLength": 2 * IV_SIZE, "maxLength": 2 * IV_SIZE},
        "encryptedPrivateKey": {**_HEX_FIELD, "minLength": 2},
        "iterations": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}


@dataclass(frozen=True)
class StoredKeyRecord:
    """Encrypted key material for one alias. Holds no plaintext secret."""

    public_key: bytes
    salt: bytes
    iv: bytes
    encrypted_private_key: bytes
    iterations: int = DEFAULT_PBKDF2_ITERATIONS

    @classmethod
    def seal(
        cls,
        key_pair: KeyPair,
        password: str,
        iterations: int = DEFAULT_PBKDF2_ITERATIONS,
    ) -> StoredKeyRecord:
        payload = encrypt_data(key_pair.private_key, password, iterations)
        return cls(
            public_key=key_pair.public_key,
            salt=payload.salt,
            iv=payload.iv,
            encrypted_private_key=payload.ciphertext,
            iterations=payload.iterations,
        )

    def open(self, password: str) -> KeyPair | None:
        """Decrypt the key pair, or None on wrong password / corrupted data."""
        try:
            seed = decrypt_data(
                self.encrypted_private_key, self.iv, password, self.salt, self.iterations
            )
            key_pair = KeyPair.from_seed(seed)
        except (InvalidTag, ValueError):
            return None
        if not hmac.compare_digest(key_pair.public_key, self.public_key):
            return None
        return key_pair

    def to_dict(self) -> dict[str, object]:
        """Portable JSON form (hex-encoded byte fields)."""
        return {
            "publicKey": self.public_key.hex(),
            "salt": self.salt.hex(),
            "iv": self.iv.hex(),
            "encryptedPrivateKey": self.encrypted_private_key.hex(),
            "iterations": self.iterations,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredKeyRecord:
        """Parse the JSON form.

        Raises:
            ValueError: If the data does not match STORED_RECORD_SCHEMA.
        """
        try:
            jsonschema.validate(instance=data, schema=STORED_RECORD_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid key record: {e.message}") from e
        return cls(
            public_key=bytes.fromhex(data["publicKey"]),
            salt=bytes.fromhex(data["salt"]),
            iv=bytes.fromhex(data["iv"]),
            encrypted_private_key=bytes.fromhex(data["encryptedPrivateKey"]),
            iterations=data["iterations"],
        )


# =========================================================================
# Unlocked session cache
# =========================================================================


class UnlockedKeyCache:
    """In-memory map alias -> unlocked key pair.

    Lookup by public key compares against every entry with a constant-time
    comparison and without an early exit.
    """

    def __init__(self) -> None:
        self._entries: dict[str, KeyPair] = {}

    def put(self, alias: str, key_pair: KeyPair) -> None:
        self._entries[alias] = key_pair

    def get(self, alias: str) -> KeyPair | None:
        return self._entries.get(alias)

    def find_by_public_key(self, public_key: bytes) -> KeyPair | None:
        target = bytes(public_key)
        found: KeyPair | None = None
        for key_pair in list(self._entries.values()):
            if hmac.compare_digest(key_pair.public_key, target) and found is None:
                found = key_pair
        return found

    def remove(self, alias: str) -> None:
        self._entries.pop(alias, None)

    def aliases(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# =========================================================================
# KeyStore
# =========================================================================


class KeyStore(ABC):
    """Abstract key store.

    Subclasses supply record persistence through four hooks; encryption,
    lookup and the unlocked-session cache are shared.

    Args:
        iterations: PBKDF2 iteration count for newly stored records.
            Existing records keep the count they were written with.
    """

    def __init__(self, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> None:
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got: {iterations}")
        self._iterations = iterations
        self._unlocked = UnlockedKeyCache()

    @property
    def iterations(self) -> int:
        return self._iterations

    # --- persistence hooks ---

    @abstractmethod
    def _put_record(self, alias: str, record: StoredKeyRecord) -> None: ...

    @abstractmethod
    def _get_record(self, alias: str) -> StoredKeyRecord | None:
        """Return the record, or None if missing. May raise ValueError if corrupted."""

    @abstractmethod
    def _delete_record(self, alias: str) -> None: ...

    @abstractmethod
    def _record_aliases(self) -> list[str]: ...

    def _load(self, alias: str) -> StoredKeyRecord | None:
        try:
            return self._get_record(alias)
        except ValueError:
            logger.warning("key record for alias %r is corrupted", alias)
            return None

    # --- persisted records ---

    def store_key_pair(self, alias: str, key_pair: KeyPair, password: str) -> None:
        """Encrypt and persist a key pair under ``alias``, replacing any existing record."""
        record = StoredKeyRecord.seal(key_pair, password, self._iterations)
        self._put_record(alias, record)
        logger.info("stored key pair for alias %r", alias)

    def get_key_pair(self, alias: str, password: str) -> KeyPair | None:
        """Decrypt the key pair for ``alias``.

        Returns None if the alias is unknown, the password is wrong, or the
        record is corrupted.
        """
        record = self._load(alias)
        if record is None:
            return None
        key_pair = record.open(password)
        if key_pair is None:
            logger.warning("decryption failed for alias %r", alias)
        return key_pair

    def get_public_key(self, alias: str) -> bytes | None:
        """Stored public key. No password needed."""
        record = self._load(alias)
        return record.public_key if record is not None else None

    def list_aliases(self) -> list[str]:
        return self._record_aliases()

    def delete_key_pair(self, alias: str) -> None:
        """Remove the record and any unlocked session for ``alias``."""
        self._delete_record(alias)
        self._unlocked.remove(alias)
        logger.info("deleted key pair for alias %r", alias)

    def export_record(self, alias: str) -> dict[str, object] | None:
        """Encrypted record in portable JSON form, or None."""
        record = self._load(alias)
        return record.to_dict() if record is not None else None

    def import_record(self, alias: str, data: dict[str, Any]) -> None:
        """Persist an exported record under ``alias``.

        Raises:
            ValueError: If the data is not a valid key record.
        """
        self._put_record(alias, StoredKeyRecord.from_dict(data))
        logger.info("imported key record for alias %r", alias)

    # --- unlocked sessions ---

    def store_unlocked_key_pair(self, alias: str, key_pair: KeyPair) -> None:
        self._unlocked.put(alias, key_pair)

    def get_unlocked_key_pair(self, alias: str) -> KeyPair | None:
        return self._unlocked.get(alias)

    def get_unlocked_key_pair_by_public_key(self, public_key: bytes) -> KeyPair | None:
        return self._unlocked.find_by_public_key(public_key)

    def unlock(self, alias: str, password: str) -> KeyPair | None:
        """Decrypt and cache the key pair. Returns None on failure."""
        key_pair = self.get_key_pair(alias, password)
        if key_pair is not None:
            self._unlocked.put(alias, key_pair)
            logger.info("unlocked alias %r", alias)
        return key_pair

    def lock(self, alias: str) -> None:
        self._unlocked.remove(alias)
        logger.info("locked alias %r", alias)

    def is_unlocked(self, alias: str) -> bool:
        return self._unlocked.get(alias) is not None

    def is_unlocked_public_key(self, public_key: bytes) -> bool:
        return self._unlocked.find_by_public_key(public_key) is not None

    def remove_unlocked_key_pair(self, alias: str) -> None:
        self._unlocked.remove(alias)

    def get_unlocked_aliases(self) -> list[str]:
        return self._unlocked.aliases()

    def clear_unlocked_key_pairs(self) -> None:
        self._unlocked.clear()


class MemoryKeyStore(KeyStore):
    """Key store holding encrypted records in a dict for the process lifetime."""

    def __init__(self, iterations: int = DEFAULT_PBKDF2_ITERATIONS) -> None:
        super().__init__(iterations)
        self._records: dict[str, StoredKeyRecord] = {}

    def _put_record(self, alias: str, record: StoredKeyRecord) -> None:
        self._records[alias] = record

    def _get_record(self, alias: str) -> StoredKeyRecord | None:
        return self._records.get(alias)

    def _delete_record(self, alias: str) -> None:
        self._records.pop(alias, None)

    def _record_aliases(self) -> list[str]:
        return list(self._records)
