"""
Convex client SDK.

Public API:

    Client:
        - ``Convex`` — queries, transactions, accounts, handle factories.
        - ``ClientOptions`` — timeout and headers.

    Handles (build CVM source, then query/transact):
        - ``AccountHandle``, ``AssetHandle``, ``FungibleToken``, ``CnsHandle``
        - ``TokenHandle`` — capability protocol shared by token handles.

    Transaction protocol:
        - ``AccountSession``, ``execute_transaction``

    Keys and signing:
        - ``KeyPair``, ``Signer``, ``KeyPairSigner``
        - ``sign``, ``verify``, ``bytes_to_hex``, ``hex_to_bytes``

    Key storage:
        - ``KeyStore``, ``MemoryKeyStore``, ``SqliteKeyStore``,
          ``StoredKeyRecord``

    Results and errors:
        - ``Result``, ``ResultInfo``, ``AccountInfo``, ``NewAccount``
        - ``ConvexError``, ``throw_if_error``, validation / protocol /
          transport error types

    Transport:
        - ``PeerTransport`` — injectable transport protocol.
        - ``HttpxTransport`` — default httpx-based transport.
"""

from convex_client.account import AccountHandle
from convex_client.asset import AssetHandle, FungibleToken, TokenHandle
from convex_client.client import Convex
from convex_client.cns import CnsHandle
from convex_client.config import ClientOptions, peer_url_from_env
from convex_client.crypto import KeyPair, bytes_to_hex, hex_to_bytes, sign, verify
from convex_client.errors import (
    ConvexError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidKeyError,
    InvalidNameError,
    NoAccountError,
    ProtocolError,
    TransportError,
    throw_if_error,
)
from convex_client.format import (
    format_balance,
    format_quantity,
    to_address,
    to_numeric_address,
    validate_cns_name,
)
from convex_client.keystore import KeyStore, MemoryKeyStore, StoredKeyRecord
from convex_client.protocol import AccountSession, execute_transaction
from convex_client.result import AccountInfo, NewAccount, Result, ResultInfo
from convex_client.signer import KeyPairSigner, Signer
from convex_client.sqlite_keystore import SqliteKeyStore
from convex_client.transport import HttpxTransport, PeerTransport

__version__ = "0.1.0"

__all__ = [
    "AccountHandle",
    "AccountInfo",
    "AccountSession",
    "AssetHandle",
    "ClientOptions",
    "CnsHandle",
    "Convex",
    "ConvexError",
    "FungibleToken",
    "HttpxTransport",
    "InvalidAddressError",
    "InvalidAmountError",
    "InvalidKeyError",
    "InvalidNameError",
    "KeyPair",
    "KeyPairSigner",
    "KeyStore",
    "MemoryKeyStore",
    "NewAccount",
    "NoAccountError",
    "PeerTransport",
    "ProtocolError",
    "Result",
    "ResultInfo",
    "Signer",
    "SqliteKeyStore",
    "StoredKeyRecord",
    "TokenHandle",
    "TransportError",
    "bytes_to_hex",
    "execute_transaction",
    "format_balance",
    "format_quantity",
    "hex_to_bytes",
    "peer_url_from_env",
    "sign",
    "throw_if_error",
    "to_address",
    "to_numeric_address",
    "validate_cns_name",
    "verify",
]
