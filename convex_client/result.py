"""
Result envelope and account records returned by the peer REST API.

Mirrors the JSON representation of convex.core.Result:

    value      JSON-converted CVM value (may lose type information)
    result     CVM printed representation ("#42", "[1 2 3]")
    errorCode  error keyword ("NOBODY", "FUNDS"), absent on success
    info       execution metadata (juice, fees, mem, trace, ...)

Invariant: ``error_code`` is set if and only if the result is a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from convex_client.format import to_numeric_address


@dataclass(frozen=True)
class ResultInfo:
    """Execution metadata attached to a Result.

    Known keys are lifted into attributes; ``raw`` keeps the mapping as
    the peer sent it so nothing is lost when the peer adds fields.
    """

    juice: int | None = None
    fees: int | None = None
    mem: int | None = None
    source: str | None = None
    tx: str | None = None
    trace: Any = None
    eaddr: str | None = None
    loc: list[int] | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResultInfo:
        return cls(
            juice=data.get("juice"),
            fees=data.get("fees"),
            mem=data.get("mem"),
            source=data.get("source"),
            tx=data.get("tx"),
            trace=data.get("trace"),
            eaddr=data.get("eaddr"),
            loc=data.get("loc"),
            raw=dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class Result:
    """Outcome of a query or transaction."""

    value: Any = None
    result: str | None = None
    error_code: str | None = None
    info: ResultInfo | None = None

    @property
    def is_error(self) -> bool:
        return bool(self.error_code)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result:
        info = data.get("info")
        return cls(
            value=data.get("value"),
            result=data.get("result"),
            error_code=data.get("errorCode"),
            info=ResultInfo.from_dict(info) if isinstance(info, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.value is not None:
            out["value"] = self.value
        if self.result is not None:
            out["result"] = self.result
        if self.error_code is not None:
            out["errorCode"] = self.error_code
        if self.info is not None:
            out["info"] = self.info.to_dict()
        return out


@dataclass(frozen=True)
class AccountInfo:
    """Account state from GET /api/v1/accounts/{address}."""

    address: int
    balance: int
    sequence: int
    public_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountInfo:
        return cls(
            address=to_numeric_address(data["address"]),
            balance=data.get("balance", 0),
            sequence=data.get("sequence", 0),
            public_key=data.get("key", data.get("publicKey")),
        )


@dataclass(frozen=True)
class NewAccount:
    """Account created by POST /api/v1/createAccount."""

    address: int
    balance: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NewAccount:
        return cls(
            address=to_numeric_address(data["address"]),
            balance=data.get("balance"),
        )
