"""
Signer protocol — the secrets boundary.

The transaction protocol never sees private keys. It asks a Signer for a
public key and a signature over the prepared transaction hash.

Concrete implementations:
    - KeyPairSigner (local key pair)
    - hardware, remote or multi-key signers can implement the same
      protocol without protocol changes
"""

from __future__ import annotations

import hmac
from typing import Protocol, runtime_checkable

from convex_client.crypto import Hex, KeyPair, bytes_to_hex, hex_to_bytes, sign


@runtime_checkable
class Signer(Protocol):
    """Interface for Ed25519 signing.

    For single-key signers, ``sign_for`` requires the requested public key
    to be the signer's own key. Multi-key signers may sign with any key
    they manage.
    """

    def get_public_key(self) -> bytes:
        """Default public key (32 bytes)."""
        ...

    def sign(self, message: bytes) -> bytes:
        """Sign with the default key. Returns a 64-byte signature."""
        ...

    def sign_for(self, message: bytes, public_key: Hex) -> bytes:
        """Sign with the key identified by ``public_key``.

        Raises:
            ValueError: If this signer does not manage that key.
        """
        ...


class KeyPairSigner:
    """Signer backed by a local KeyPair."""

    def __init__(self, key_pair: KeyPair) -> None:
        self._key_pair = key_pair

    @property
    def key_pair(self) -> KeyPair:
        return self._key_pair

    def get_public_key(self) -> bytes:
        return self._key_pair.public_key

    def sign(self, message: bytes) -> bytes:
        return sign(message, self._key_pair.private_key)

    def sign_for(self, message: bytes, public_key: Hex) -> bytes:
        ours = self._key_pair.public_key_hex
        theirs = bytes_to_hex(hex_to_bytes(public_key))
        if not hmac.compare_digest(ours, theirs):
            raise ValueError(
                f"Public key mismatch: this signer manages {ours[:16]}... "
                f"but was asked to sign for {theirs[:16]}..."
            )
        return self.sign(message)

    def __repr__(self) -> str:
        return f"KeyPairSigner({self._key_pair.public_key_hex[:16]}...)"
