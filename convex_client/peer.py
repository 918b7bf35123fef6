"""
Peer REST API — one method per endpoint.

Builds request bodies and URLs; parsing into Result / AccountInfo and the
uniform error check are left to the caller. All methods are single
network round trips.

    POST /api/v1/query                {source, address?}
    POST /api/v1/transaction/prepare  {address, source}
    POST /api/v1/transaction/submit   {hash, sig, accountKey}
    POST /api/v1/createAccount        {accountKey, faucet?}
    POST /api/v1/faucet               {address, amount}
    GET  /api/v1/accounts/{address}
"""

from __future__ import annotations

import logging
from typing import Any

from convex_client.transport import HttpxTransport, PeerTransport

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"
PREPARE_PATH = "/api/v1/transaction/prepare"
SUBMIT_PATH = "/api/v1/transaction/submit"
CREATE_ACCOUNT_PATH = "/api/v1/createAccount"
FAUCET_PATH = "/api/v1/faucet"
ACCOUNTS_PATH = "/api/v1/accounts"


class PeerApi:
    """Thin endpoint layer over a PeerTransport.

    Args:
        base_url: Peer base URL (e.g. "http://localhost:8080").
        transport: Injectable transport. Defaults to HttpxTransport.
    """

    def __init__(self, base_url: str, transport: PeerTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport or HttpxTransport()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def transport(self) -> PeerTransport:
        return self._transport

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def query(self, source: str, address: int | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"source": source}
        if address is not None:
            payload["address"] = address
        logger.debug("query (address=%s)", address)
        return await self._transport.post_json(self._url(QUERY_PATH), payload)

    async def prepare(self, address: int, source: str) -> dict[str, Any]:
        logger.debug("prepare transaction for #%d", address)
        return await self._transport.post_json(
            self._url(PREPARE_PATH), {"address": address, "source": source}
        )

    async def submit(self, tx_hash: str, sig_hex: str, account_key_hex: str) -> dict[str, Any]:
        logger.debug("submit transaction %s", tx_hash)
        return await self._transport.post_json(
            self._url(SUBMIT_PATH),
            {"hash": tx_hash, "sig": sig_hex, "accountKey": account_key_hex},
        )

    async def create_account(self, account_key_hex: str, faucet: int | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"accountKey": account_key_hex}
        if faucet is not None:
            payload["faucet"] = faucet
        logger.debug("create account")
        return await self._transport.post_json(self._url(CREATE_ACCOUNT_PATH), payload)

    async def faucet(self, address: int, amount: int) -> dict[str, Any]:
        logger.debug("faucet request for #%d", address)
        return await self._transport.post_json(
            self._url(FAUCET_PATH), {"address": address, "amount": amount}
        )

    async def get_account(self, address: int) -> dict[str, Any]:
        logger.debug("account lookup #%d", address)
        return await self._transport.get_json(self._url(f"{ACCOUNTS_PATH}/{address}"))
