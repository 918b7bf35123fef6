"""
Convex Name System handle (``@convex.cns``).

The bound name is validated at construction and interpolated as a quoted
symbol, e.g. ``(@convex.cns/resolve 'convex.core)``.

Name-registry source uses the resolve / update / control surface of
``@convex.cns``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from convex_client.format import AddressLike, to_address, validate_cns_name
from convex_client.result import Result

if TYPE_CHECKING:
    from convex_client.client import Convex


class CnsHandle:
    def __init__(self, client: Convex, name: str) -> None:
        validate_cns_name(name)
        self._client = client
        self._name = name

    @property
    def name(self) -> str:
        """Bare dotted name (no "@")."""
        return self._name

    async def resolve(self) -> Result:
        return await self._client.query(f"(@convex.cns/resolve '{self._name})")

    async def set(self, value: AddressLike) -> Result:
        """Point this name at an address. Requires permission on the entry."""
        return await self._client.transact(
            f"(@convex.cns/update '{self._name} {to_address(value)})"
        )

    async def set_controller(self, controller: AddressLike) -> Result:
        return await self._client.transact(
            f"(@convex.cns/control '{self._name} {to_address(controller)})"
        )

    def __repr__(self) -> str:
        return f"CnsHandle({self._name!r})"
