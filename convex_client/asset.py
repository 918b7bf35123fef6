"""
Token handles: generic assets (``@convex.asset``) and CAD29 fungible
tokens (``@convex.fungible``).

Both implement the TokenHandle capability set. They are independent
implementations sharing the address codec, and the caller chooses one
through ``Convex.asset()`` or ``Convex.fungible()``.

Quantity rules differ:
    - AssetHandle accepts raw CVM quantities (strings) for non-fungible
      assets; in transactions these are sandboxed with ``(query ...)``.
    - FungibleToken accepts only validated integer amounts, so nothing
      needs sandboxing.

Handle creation is local and instant; no network call is made until an
operation is invoked.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from convex_client.format import (
    AddressLike,
    BalanceLike,
    QuantityLike,
    format_balance,
    sandbox_quantity,
    to_address,
)
from convex_client.result import Result

if TYPE_CHECKING:
    from convex_client.client import Convex

OWN_ADDRESS = "*address*"


def _holder(holder: AddressLike | None) -> str:
    return OWN_ADDRESS if holder is None else to_address(holder)


@runtime_checkable
class TokenHandle(Protocol):
    """Operations common to every token handle."""

    @property
    def token(self) -> str: ...

    async def balance(self, holder: AddressLike | None = None) -> Result: ...

    async def transfer(self, to: AddressLike, quantity: QuantityLike) -> Result: ...

    async def offer(self, to: AddressLike, quantity: QuantityLike) -> Result: ...

    async def accept(self, sender: AddressLike, quantity: QuantityLike) -> Result: ...

    async def supply(self) -> Result: ...


class AssetHandle:
    """Handle for any asset via the generic ``@convex.asset`` library.

    Works with fungible tokens, NFTs, multi-tokens and any CVM asset type.
    """

    def __init__(self, client: Convex, token: AddressLike) -> None:
        self._client = client
        self._token = to_address(token)

    @property
    def token(self) -> str:
        """Canonical address of the asset."""
        return self._token

    async def balance(self, holder: AddressLike | None = None) -> Result:
        """Asset balance of ``holder`` (defaults to the querying account)."""
        return await self._client.query(
            f"(@convex.asset/balance {self._token} {_holder(holder)})"
        )

    async def transfer(self, to: AddressLike, quantity: QuantityLike) -> Result:
        return await self._client.transact(
            f"(@convex.asset/transfer {to_address(to)} {self._token} {sandbox_quantity(quantity)})"
        )

    async def offer(self, to: AddressLike, quantity: QuantityLike) -> Result:
        """Offer the asset to ``to`` for later acceptance."""
        return await self._client.transact(
            f"(@convex.asset/offer {to_address(to)} {self._token} {sandbox_quantity(quantity)})"
        )

    async def accept(self, sender: AddressLike, quantity: QuantityLike) -> Result:
        """Accept an asset previously offered by ``sender``."""
        return await self._client.transact(
            f"(@convex.asset/accept {to_address(sender)} {self._token} {sandbox_quantity(quantity)})"
        )

    async def supply(self) -> Result:
        return await self._client.query(f"(@convex.asset/total-supply {self._token})")

    def __repr__(self) -> str:
        return f"AssetHandle({self._token})"


class FungibleToken:
    """Handle for CAD29 fungible tokens via ``@convex.fungible``.

    Every amount is validated with ``format_balance``; raw CVM quantities
    are rejected.
    """

    def __init__(self, client: Convex, token: AddressLike) -> None:
        self._client = client
        self._token = to_address(token)

    @property
    def token(self) -> str:
        return self._token

    async def balance(self, holder: AddressLike | None = None) -> Result:
        return await self._client.query(
            f"(@convex.fungible/balance {self._token} {_holder(holder)})"
        )

    async def transfer(self, to: AddressLike, amount: BalanceLike) -> Result:
        return await self._client.transact(
            f"(@convex.fungible/transfer {self._token} {to_address(to)} {format_balance(amount)})"
        )

    async def offer(self, to: AddressLike, amount: BalanceLike) -> Result:
        return await self._client.transact(
            f"(@convex.asset/offer {to_address(to)} {self._token} {format_balance(amount)})"
        )

    async def accept(self, sender: AddressLike, amount: BalanceLike) -> Result:
        return await self._client.transact(
            f"(@convex.asset/accept {to_address(sender)} {self._token} {format_balance(amount)})"
        )

    async def mint(self, amount: BalanceLike) -> Result:
        """Mint new tokens. The caller must hold minting rights."""
        return await self._client.transact(
            f"(@convex.fungible/mint {self._token} {format_balance(amount)})"
        )

    async def burn(self, amount: BalanceLike) -> Result:
        return await self._client.transact(
            f"(@convex.fungible/burn {self._token} {format_balance(amount)})"
        )

    async def supply(self) -> Result:
        return await self._client.query(f"(@convex.fungible/total-supply {self._token})")

    async def decimals(self) -> Result:
        return await self._client.query(f"(@convex.fungible/decimals {self._token})")

    def __repr__(self) -> str:
        return f"FungibleToken({self._token})"
