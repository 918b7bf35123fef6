"""
Client configuration.

Options are plain frozen values passed to the constructor. Two
environment variables are honoured for convenience:

    CONVEX_PEER_URL   base URL of the peer (see ``peer_url_from_env``)
    CONVEX_TIMEOUT_S  request timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_PBKDF2_ITERATIONS = 100_000

ENV_PEER_URL = "CONVEX_PEER_URL"
ENV_TIMEOUT_S = "CONVEX_TIMEOUT_S"


@dataclass(frozen=True)
class ClientOptions:
    """Options for a Convex client.

    Attributes:
        timeout_s: Per-request timeout in seconds. Each network round trip
            is bounded by it; a timed-out call raises TransportError.
        headers: Additional HTTP headers sent with every request.
    """

    timeout_s: float = DEFAULT_TIMEOUT_S
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got: {self.timeout_s}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientOptions:
        env = os.environ if environ is None else environ
        raw = env.get(ENV_TIMEOUT_S)
        if raw is None or raw == "":
            return cls()
        try:
            timeout_s = float(raw)
        except ValueError:
            raise ValueError(f"{ENV_TIMEOUT_S} must be a number, got: {raw!r}") from None
        return cls(timeout_s=timeout_s)


def peer_url_from_env(default: str, environ: Mapping[str, str] | None = None) -> str:
    """Peer URL from CONVEX_PEER_URL, falling back to ``default``."""
    env = os.environ if environ is None else environ
    return env.get(ENV_PEER_URL) or default
