"""
Address and quantity codec for CVM source generation.

Every value interpolated into generated CVM source passes through one of
these functions first. The single exception is ``format_quantity`` with a
string argument, which returns raw CVM text for generic-asset quantities
(sets of IDs, maps); callers that transact with it must sandbox it.

Address forms:
    - Numeric: 42, "42", "#42"  ->  "#42"
    - CNS:     "@convex.core"   ->  "@convex.core" (validated, unchanged)

Amount forms:
    - int >= 0, integral float >= 0, all-digit string  ->  decimal string
"""

from __future__ import annotations

import math
import re
from typing import Union

from convex_client.errors import (
    InvalidAddressError,
    InvalidAmountError,
    InvalidNameError,
)

AddressLike = Union[int, str]
BalanceLike = Union[int, float, str]
QuantityLike = Union[int, float, str]

# ASCII-only: \d would also accept non-ASCII digits
_DIGITS_RE = re.compile(r"[0-9]+")
_CNS_NAME_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9._-]*")


def _reject_bool(value: object, error: type[ValueError], label: str) -> None:
    # bool is an int subclass; True must not become "#1"
    if isinstance(value, bool):
        raise error(f"{label}: {value!r}")


def to_address(value: AddressLike) -> str:
    """Normalize an address to canonical CVM form ("#42" or "@name.path").

    Raises:
        InvalidAddressError: If the input is neither a numeric address nor
            a well-formed CNS reference.
    """
    _reject_bool(value, InvalidAddressError, "Invalid Convex address")
    if not isinstance(value, (int, str)):
        raise InvalidAddressError(f"Invalid Convex address: {value!r}")

    text = str(value)
    if text.startswith("@"):
        if not _CNS_NAME_RE.fullmatch(text[1:]):
            raise InvalidAddressError(f"Invalid CNS address: {value}")
        return text

    digits = text[1:] if text.startswith("#") else text
    if not _DIGITS_RE.fullmatch(digits):
        raise InvalidAddressError(f"Invalid Convex address: {value}")
    return f"#{int(digits)}"


def to_numeric_address(value: AddressLike) -> int:
    """Parse an address to its account number.

    CNS names are rejected: the REST API accepts only numeric account
    identifiers, and names are resolved by the ledger inside CVM source.

    Raises:
        InvalidAddressError: If the input is not a numeric address.
    """
    _reject_bool(value, InvalidAddressError, "Invalid Convex address")
    if isinstance(value, int):
        if value < 0:
            raise InvalidAddressError(f"Invalid Convex address: {value}")
        return value

    text = str(value)
    digits = text[1:] if text.startswith("#") else text
    if not isinstance(value, str) or not _DIGITS_RE.fullmatch(digits):
        raise InvalidAddressError(
            f'Numeric address required (got "{value}"). '
            "CNS names must be resolved first."
        )
    return int(digits)


def validate_cns_name(name: str) -> None:
    """Check a bare CNS name (no "@" prefix).

    Raises:
        InvalidNameError: If the name is not a dotted path.
    """
    if not isinstance(name, str) or not _CNS_NAME_RE.fullmatch(name):
        raise InvalidNameError(f'Invalid CNS name: "{name}"')


def format_balance(amount: BalanceLike) -> str:
    """Format a validated non-negative integer amount for CVM source.

    Raises:
        InvalidAmountError: On negative, fractional, non-finite or
            non-digit input.
    """
    _reject_bool(amount, InvalidAmountError, "Invalid amount")
    if isinstance(amount, int):
        if amount < 0:
            raise InvalidAmountError(f"Negative amount: {amount}")
        return str(amount)
    if isinstance(amount, float):
        if not math.isfinite(amount) or not amount.is_integer() or amount < 0:
            raise InvalidAmountError(f"Invalid amount: {amount}")
        return str(int(amount))
    if isinstance(amount, str) and _DIGITS_RE.fullmatch(amount):
        return amount
    raise InvalidAmountError(f'Invalid amount: "{amount}"')


def format_quantity(quantity: QuantityLike) -> str:
    """Format a generic asset quantity.

    Numbers are validated like ``format_balance``. Strings are returned
    verbatim as raw CVM source and are NOT validated.
    """
    if isinstance(quantity, str):
        return quantity
    return format_balance(quantity)


def sandbox_quantity(quantity: QuantityLike) -> str:
    """Format a quantity for a transacting call.

    Raw strings are wrapped in ``(query ...)`` so that the expression is
    evaluated without keeping any state changes it makes.
    """
    if isinstance(quantity, str):
        return f"(query {format_quantity(quantity)})"
    return format_balance(quantity)
