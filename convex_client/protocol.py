"""
Two-phase transaction protocol: prepare -> sign -> submit.

    NO_ACCOUNT --(session)--> PREPARED --(signer)--> SIGNED --(peer)--> SUBMITTED

    Any step may fail instead, ending in FAILED.

Steps run strictly in sequence, one network round trip at a time:

    1. Prepare: POST {address, source}; the peer returns a transaction hash.
    2. Sign: the hash is decoded from hex (optional "0x") and the raw bytes
       are signed by the session's Signer. No network access.
    3. Submit: POST {hash, sig, accountKey}; the response goes through the
       uniform Result check before it is returned.

If prepare fails the signer is never invoked; if signing fails submit is
never attempted. Nothing is retried: replaying a signed hash must be a
caller decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from convex_client.crypto import bytes_to_hex, hex_to_bytes
from convex_client.errors import NoAccountError, ProtocolError, throw_if_error
from convex_client.peer import PeerApi
from convex_client.result import Result
from convex_client.signer import Signer

logger = logging.getLogger(__name__)


class TransactionState(StrEnum):
    NO_ACCOUNT = "NO_ACCOUNT"
    PREPARED = "PREPARED"
    SIGNED = "SIGNED"
    SUBMITTED = "SUBMITTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class AccountSession:
    """The account a transaction is sent from and the signer that authorises it."""

    address: int
    signer: Signer


def require_session(address: int | None, signer: Signer | None) -> AccountSession:
    """Build a session or fail before any network access.

    Raises:
        NoAccountError: If either the address or the signer is missing.
    """
    if address is None or signer is None:
        raise NoAccountError("No account set. Call set_account() first.")
    return AccountSession(address=address, signer=signer)


async def prepare_transaction(peer: PeerApi, session: AccountSession, source: str) -> str:
    """Ask the peer to prepare a transaction and return its hash.

    Raises:
        ConvexError: If the peer rejected the transaction at prepare time.
        ProtocolError: If the response has no hash, or the hash is empty
            or not hex once decoded.
    """
    response = await peer.prepare(session.address, source)
    throw_if_error(Result.from_dict(response))
    tx_hash = response.get("hash")
    if not isinstance(tx_hash, str) or not tx_hash:
        raise ProtocolError("Transaction prepare failed: no hash returned by peer")
    try:
        raw = hex_to_bytes(tx_hash)
    except ValueError as e:
        raise ProtocolError(f"Transaction prepare failed: malformed hash: {e}") from e
    if not raw:
        raise ProtocolError("Transaction prepare failed: empty hash returned by peer")
    return tx_hash


def sign_transaction_hash(session: AccountSession, tx_hash: str) -> bytes:
    """Sign the raw bytes of a prepared transaction hash."""
    return session.signer.sign(hex_to_bytes(tx_hash))


async def submit_transaction(
    peer: PeerApi,
    session: AccountSession,
    tx_hash: str,
    signature: bytes,
) -> Result:
    """Submit a signed hash and return the checked Result."""
    response = await peer.submit(
        tx_hash,
        bytes_to_hex(signature),
        bytes_to_hex(session.signer.get_public_key()),
    )
    return throw_if_error(Result.from_dict(response))


async def execute_transaction(
    peer: PeerApi,
    session: AccountSession,
    source: str,
) -> Result:
    """Run the full prepare -> sign -> submit sequence for one source string."""
    state = TransactionState.NO_ACCOUNT
    try:
        tx_hash = await prepare_transaction(peer, session, source)
        state = TransactionState.PREPARED
        logger.debug("transaction %s %s", tx_hash, state)

        signature = sign_transaction_hash(session, tx_hash)
        state = TransactionState.SIGNED
        logger.debug("transaction %s %s", tx_hash, state)

        result = await submit_transaction(peer, session, tx_hash, signature)
        state = TransactionState.SUBMITTED
        logger.debug("transaction %s %s", tx_hash, state)
        return result
    except Exception:
        logger.debug("transaction %s after %s", TransactionState.FAILED, state)
        raise
