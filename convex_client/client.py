"""
Convex client — queries, transactions and account management against a
single peer.

The client holds two pieces of mutable state, the active address and the
active signer. Both are written only by the explicit setters and are
replaced by single assignments. Every transaction snapshots them into an
AccountSession before its first network call.

Every Result-returning call goes through ``throw_if_error``: a Result with
an ``errorCode`` raises ConvexError, anything else is returned unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from convex_client.account import AccountHandle
from convex_client.asset import AssetHandle, FungibleToken
from convex_client.cns import CnsHandle
from convex_client.config import ClientOptions
from convex_client.crypto import KEY_SIZE, Hex, KeyPair, bytes_to_hex, hex_to_bytes
from convex_client.errors import InvalidKeyError, NoAccountError, ProtocolError, throw_if_error
from convex_client.format import (
    AddressLike,
    BalanceLike,
    format_balance,
    to_address,
    to_numeric_address,
)
from convex_client.peer import PeerApi
from convex_client.protocol import AccountSession, execute_transaction, require_session
from convex_client.result import AccountInfo, NewAccount, Result
from convex_client.signer import KeyPairSigner, Signer
from convex_client.transport import HttpxTransport, PeerTransport

logger = logging.getLogger(__name__)


def _account_key_hex(account_key: KeyPair | Hex) -> str:
    if isinstance(account_key, KeyPair):
        return account_key.public_key_hex
    try:
        raw = hex_to_bytes(account_key)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid account key: {e}") from None
    if len(raw) != KEY_SIZE:
        raise InvalidKeyError(f"Account key must be {KEY_SIZE} bytes, got {len(raw)}")
    return bytes_to_hex(raw)


class Convex:
    """Client for a Convex peer.

    Args:
        peer_url: Base URL of the peer (e.g. "http://localhost:8080").
        options: Timeout and headers. Defaults to ClientOptions().
        transport: Injectable transport. Defaults to an HttpxTransport
            built from ``options``.

    Example:
        convex = Convex("http://localhost:8080")
        kp = KeyPair.generate()
        account = await convex.create_account(kp, faucet=100_000_000)
        convex.set_account(account.address, kp)
        await convex.transfer("#13", 100)
    """

    def __init__(
        self,
        peer_url: str,
        options: ClientOptions | None = None,
        transport: PeerTransport | None = None,
    ) -> None:
        self._peer_url = peer_url
        self._options = options or ClientOptions()
        if transport is None:
            transport = HttpxTransport(
                timeout_s=self._options.timeout_s,
                headers=self._options.headers,
            )
        self._peer = PeerApi(peer_url, transport)
        self._address: int | None = None
        self._signer: Signer | None = None

    # -----------------------------------------------------------------
    # Account state
    # -----------------------------------------------------------------

    @property
    def peer_url(self) -> str:
        return self._peer_url

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def address(self) -> int | None:
        """Active account number, or None."""
        return self._address

    @property
    def signer(self) -> Signer | None:
        return self._signer

    def has_account(self) -> bool:
        """True when both an address and a signer are set."""
        return self._address is not None and self._signer is not None

    def set_address(self, address: AddressLike) -> None:
        """Set the active account. CNS names are rejected."""
        self._address = to_numeric_address(address)

    def set_signer(self, signer: Signer | KeyPair) -> None:
        """Set the active signer. A KeyPair is wrapped in a KeyPairSigner."""
        self._signer = KeyPairSigner(signer) if isinstance(signer, KeyPair) else signer

    def set_account(self, address: AddressLike, signer: Signer | KeyPair) -> None:
        # validate before touching either field
        numeric = to_numeric_address(address)
        self.set_signer(signer)
        self._address = numeric

    def session(self) -> AccountSession:
        """Snapshot of the active account for one transaction.

        Raises:
            NoAccountError: If the address or signer is missing.
        """
        return require_session(self._address, self._signer)

    def set_timeout(self, timeout_s: float) -> None:
        """Change the per-request timeout for subsequent calls."""
        self._options = replace(self._options, timeout_s=timeout_s)
        # duck typing: fakes and custom transports may not carry a timeout
        if hasattr(self._peer.transport, "timeout_s"):
            self._peer.transport.timeout_s = timeout_s  # type: ignore[attr-defined]

    # -----------------------------------------------------------------
    # Core operations
    # -----------------------------------------------------------------

    async def query(self, source: str, address: AddressLike | None = None) -> Result:
        """Run read-only CVM source.

        Args:
            source: CVM source text.
            address: Optional numeric account to query as.
        """
        numeric = to_numeric_address(address) if address is not None else None
        response = await self._peer.query(source, numeric)
        return throw_if_error(Result.from_dict(response))

    async def transact(self, source: str) -> Result:
        """Prepare, sign and submit CVM source as the active account.

        Raises:
            NoAccountError: Before any network call, if no account is set.
            ProtocolError: If the peer returns no transaction hash.
            ConvexError: If the ledger reports an error.
            TransportError: On network failure.
        """
        session = self.session()
        return await execute_transaction(self._peer, session, source)

    # -----------------------------------------------------------------
    # Accounts
    # -----------------------------------------------------------------

    async def create_account(
        self,
        account_key: KeyPair | Hex,
        faucet: BalanceLike | None = None,
    ) -> NewAccount:
        """Create an account for a public key.

        Only the public key is sent. A KeyPair argument does not change the
        active account; call ``set_account`` with the returned address.

        Raises:
            ProtocolError: If the peer response has no address.
        """
        key_hex = _account_key_hex(account_key)
        amount = int(format_balance(faucet)) if faucet is not None else None
        response = await self._peer.create_account(key_hex, amount)
        throw_if_error(Result.from_dict(response))
        if response.get("address") is None:
            raise ProtocolError("Failed to create account: no address returned by peer")
        account = NewAccount.from_dict(response)
        logger.info("created account #%d", account.address)
        return account

    async def request_funds(self, address: AddressLike, amount: BalanceLike) -> Result:
        """Ask the peer faucet to fund an account."""
        numeric = to_numeric_address(address)
        response = await self._peer.faucet(numeric, int(format_balance(amount)))
        return throw_if_error(Result.from_dict(response))

    async def get_account_info(self, address: AddressLike | None = None) -> AccountInfo:
        """Account state for ``address`` (defaults to the active account).

        Raises:
            NoAccountError: If no address is given and none is set.
            ProtocolError: If the peer response has no address.
        """
        if address is not None:
            numeric = to_numeric_address(address)
        elif self._address is not None:
            numeric = self._address
        else:
            raise NoAccountError("No account set. Call set_address() first.")
        response = await self._peer.get_account(numeric)
        throw_if_error(Result.from_dict(response))
        if response.get("address") is None:
            raise ProtocolError("Account lookup failed: no address returned by peer")
        return AccountInfo.from_dict(response)

    async def get_sequence(self) -> int:
        """Current transaction sequence number of the active account."""
        info = await self.get_account_info()
        return info.sequence

    # -----------------------------------------------------------------
    # Native coin
    # -----------------------------------------------------------------

    async def balance(self, address: AddressLike | None = None) -> Result:
        """Coin balance of ``address``, or of the querying account."""
        if address is None:
            return await self.query("*balance*", self._address)
        return await self.query(f"(balance {to_address(address)})")

    async def transfer(self, to: AddressLike, amount: BalanceLike) -> Result:
        """Transfer native coins from the active account."""
        return await self.transact(f"(transfer {to_address(to)} {format_balance(amount)})")

    # -----------------------------------------------------------------
    # Handles
    # -----------------------------------------------------------------

    def account(self, address: AddressLike) -> AccountHandle:
        return AccountHandle(self, address)

    def asset(self, token: AddressLike) -> AssetHandle:
        return AssetHandle(self, token)

    def fungible(self, token: AddressLike) -> FungibleToken:
        return FungibleToken(self, token)

    def cns(self, name: str) -> CnsHandle:
        return CnsHandle(self, name)

    def __repr__(self) -> str:
        return f"Convex({self._peer_url!r}, address={self._address})"
