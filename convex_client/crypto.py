"""
Ed25519 key pairs and signing primitives.

Backed by ``cryptography``'s Ed25519 implementation. The backend needs no
global initialisation: importing this module has no side effects, and the
functions are safe to call as soon as the process has started.

Key material:
    - private key: the 32-byte Ed25519 seed
    - public key: the 32-byte raw public point, derived from the seed
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
)

Hex = Union[bytes, str]

KEY_SIZE = 32
SIGNATURE_SIZE = 64

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


# =========================================================================
# Hex helpers
# =========================================================================


def bytes_to_hex(data: bytes) -> str:
    """Lowercase hex encoding, no prefix."""
    return bytes(data).hex()


def hex_to_bytes(value: Hex) -> bytes:
    """Decode a hex string (optional "0x" prefix) or pass bytes through.

    Raises:
        ValueError: On odd length or non-hex characters.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    text = value[2:] if value[:2] in ("0x", "0X") else value
    if len(text) % 2 != 0:
        raise ValueError(f"Invalid hex string: length must be even: {value}")
    if not _HEX_RE.fullmatch(text):
        raise ValueError("Invalid hex string: unrecognised character")
    return bytes.fromhex(text)


def _derive_public_key(seed: bytes) -> bytes:
    private_key = Ed25519PrivateKey.from_private_bytes(seed)
    return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


# =========================================================================
# KeyPair
# =========================================================================


@dataclass(frozen=True)
class KeyPair:
    """Immutable Ed25519 key pair.

    Use ``KeyPair.generate()`` or ``KeyPair.from_seed(seed)``. Direct
    construction is validated: both halves must be 32 bytes and the
    public key must be the one derived from the private seed.

    Example:
        kp = KeyPair.generate()
        kp2 = KeyPair.from_seed(kp.private_key)
        assert kp2.public_key == kp.public_key
    """

    private_key: bytes = field(repr=False)
    public_key: bytes

    def __post_init__(self) -> None:
        if len(self.private_key) != KEY_SIZE:
            raise ValueError("Private key must be exactly 32 bytes")
        if len(self.public_key) != KEY_SIZE:
            raise ValueError("Public key must be exactly 32 bytes")
        if _derive_public_key(bytes(self.private_key)) != bytes(self.public_key):
            raise ValueError("Public key does not match private key")
        object.__setattr__(self, "private_key", bytes(self.private_key))
        object.__setattr__(self, "public_key", bytes(self.public_key))

    @classmethod
    def generate(cls) -> KeyPair:
        """Generate a new random key pair."""
        return cls.from_seed(os.urandom(KEY_SIZE))

    @classmethod
    def from_seed(cls, seed: Hex) -> KeyPair:
        """Derive a key pair from a 32-byte seed (bytes or hex). Deterministic."""
        seed_bytes = hex_to_bytes(seed)
        if len(seed_bytes) != KEY_SIZE:
            raise ValueError("Seed must be exactly 32 bytes")
        return cls(private_key=seed_bytes, public_key=_derive_public_key(seed_bytes))

    @property
    def public_key_hex(self) -> str:
        return bytes_to_hex(self.public_key)

    @property
    def private_key_hex(self) -> str:
        """Hex of the private seed. Never log or display this."""
        return bytes_to_hex(self.private_key)

    def to_hex(self) -> dict[str, str]:
        """Both halves as hex. Exposes the private key."""
        return {"publicKey": self.public_key_hex, "privateKey": self.private_key_hex}

    def __str__(self) -> str:
        return f"KeyPair {{ publicKey: {self.public_key_hex[:16]}... }}"


# =========================================================================
# Sign / verify
# =========================================================================


def sign(message: Hex, private_key: bytes) -> bytes:
    """Sign a message (bytes or hex) with a 32-byte private seed."""
    key = Ed25519PrivateKey.from_private_bytes(bytes(private_key))
    return key.sign(hex_to_bytes(message))


def verify(message: Hex, signature: Hex, public_key: Hex) -> bool:
    """Check an Ed25519 signature. Returns False instead of raising."""
    try:
        key = Ed25519PublicKey.from_public_bytes(hex_to_bytes(public_key))
        key.verify(hex_to_bytes(signature), hex_to_bytes(message))
    except (InvalidSignature, ValueError):
        return False
    return True
