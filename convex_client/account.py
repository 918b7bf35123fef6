"""
Account handle.

Read operations (balance, sequence, controller, key) work for any
account. Write operations pick the authority path:

    - key authority: the client IS the bound account, so the operation
      runs directly, e.g. ``(set-controller #7)``
    - controller authority: otherwise it runs via
      ``(eval-as #13 '(set-controller #7))`` and the client must be the
      account's controller

CNS-named or unparseable bound addresses always take the controller path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from convex_client.crypto import KEY_SIZE, Hex, bytes_to_hex, hex_to_bytes
from convex_client.errors import InvalidAddressError, InvalidKeyError
from convex_client.format import AddressLike, to_address, to_numeric_address
from convex_client.result import Result

if TYPE_CHECKING:
    from convex_client.client import Convex


def _format_key(key: Hex) -> str:
    try:
        raw = hex_to_bytes(key)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid public key: {e}") from None
    if len(raw) != KEY_SIZE:
        raise InvalidKeyError(f"Public key must be {KEY_SIZE} bytes, got {len(raw)}")
    return f"0x{bytes_to_hex(raw)}"


class AccountHandle:
    def __init__(self, client: Convex, address: AddressLike) -> None:
        self._client = client
        self._address = to_address(address)

    @property
    def address(self) -> str:
        """Canonical address this handle is bound to."""
        return self._address

    def is_own_account(self) -> bool:
        """True when the client's own address is this account (key authority)."""
        own = self._client.address
        if own is None:
            return False
        try:
            return own == to_numeric_address(self._address)
        except InvalidAddressError:
            return False

    def _authorised(self, op: str) -> str:
        if self.is_own_account():
            return op
        return f"(eval-as {self._address} '{op})"

    async def balance(self) -> Result:
        return await self._client.query(f"(balance {self._address})")

    async def get_sequence(self) -> Result:
        return await self._client.query(f"(:sequence (account {self._address}))")

    async def get_controller(self) -> Result:
        """Controller address, or nil."""
        return await self._client.query(f"(:controller (account {self._address}))")

    async def get_key(self) -> Result:
        """Account public key as a blob, or nil."""
        return await self._client.query(f"(:key (account {self._address}))")

    async def set_controller(self, controller: AddressLike | None) -> Result:
        """Set or (with None) remove the account controller."""
        ctrl = "nil" if controller is None else to_address(controller)
        return await self._client.transact(self._authorised(f"(set-controller {ctrl})"))

    async def set_key(self, key: Hex) -> Result:
        """Rotate the account's Ed25519 public key."""
        return await self._client.transact(self._authorised(f"(set-key {_format_key(key)})"))

    def __repr__(self) -> str:
        return f"AccountHandle({self._address})"
