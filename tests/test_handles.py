"""
Tests for account, asset, fungible-token and CNS handles.

Handles only build CVM source; these tests pin the exact source text
sent to the peer and check that invalid input is rejected before any
network call.
"""

from __future__ import annotations

from typing import Any

import pytest

from convex_client import (
    AccountHandle,
    AssetHandle,
    CnsHandle,
    Convex,
    FungibleToken,
    KeyPair,
    NoAccountError,
    TokenHandle,
)
from convex_client.errors import (
    InvalidAddressError,
    InvalidAmountError,
    InvalidKeyError,
    InvalidNameError,
)

TX_HASH = "cd" * 32


class FakeTransport:
    """Answers prepare with a hash and everything else with a success Result."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((url, payload))
        if url.endswith("/transaction/prepare"):
            return {"hash": TX_HASH}
        return {"value": None, "result": "nil"}

    async def get_json(self, url: str) -> dict[str, Any]:
        raise AssertionError("handles never GET")

    @property
    def sources(self) -> list[str]:
        return [payload["source"] for _, payload in self.calls if "source" in payload]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> Convex:
    convex = Convex("http://peer.test", transport=transport)
    convex.set_account(12, KeyPair.generate())
    return convex


@pytest.fixture
def anonymous(transport: FakeTransport) -> Convex:
    return Convex("http://peer.test", transport=transport)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_factories(self, client: Convex) -> None:
        assert isinstance(client.account(13), AccountHandle)
        assert isinstance(client.asset(128), AssetHandle)
        assert isinstance(client.fungible(128), FungibleToken)
        assert isinstance(client.cns("convex.core"), CnsHandle)

    def test_token_protocol(self, client: Convex) -> None:
        assert isinstance(client.asset(1), TokenHandle)
        assert isinstance(client.fungible(1), TokenHandle)

    def test_addresses_normalized(self, client: Convex) -> None:
        assert client.fungible("128").token == "#128"
        assert client.asset("@my.token").token == "@my.token"
        assert client.account("13").address == "#13"

    def test_invalid_rejected_at_construction(self, client: Convex, transport: FakeTransport) -> None:
        with pytest.raises(InvalidAddressError):
            client.fungible("#1 (evil)")
        with pytest.raises(InvalidAddressError):
            client.account("nope")
        with pytest.raises(InvalidNameError):
            client.cns("foo) (hack")
        assert transport.calls == []


# ---------------------------------------------------------------------------
# Fungible tokens
# ---------------------------------------------------------------------------


class TestFungibleToken:
    @pytest.mark.asyncio
    async def test_balance_own(self, client: Convex, transport: FakeTransport) -> None:
        await client.fungible(128).balance()
        assert transport.sources == ["(@convex.fungible/balance #128 *address*)"]

    @pytest.mark.asyncio
    async def test_balance_holder(self, client: Convex, transport: FakeTransport) -> None:
        await client.fungible("#128").balance(13)
        assert transport.sources == ["(@convex.fungible/balance #128 #13)"]

    @pytest.mark.asyncio
    async def test_transfer(self, client: Convex, transport: FakeTransport) -> None:
        await client.fungible(128).transfer("#13", 500)
        assert transport.sources == ["(@convex.fungible/transfer #128 #13 500)"]

    @pytest.mark.asyncio
    async def test_mint_burn(self, client: Convex, transport: FakeTransport) -> None:
        token = client.fungible(128)
        await token.mint(1000)
        await token.burn("10")
        assert transport.sources == [
            "(@convex.fungible/mint #128 1000)",
            "(@convex.fungible/burn #128 10)",
        ]

    @pytest.mark.asyncio
    async def test_offer_accept(self, client: Convex, transport: FakeTransport) -> None:
        token = client.fungible(128)
        await token.offer(13, 5)
        await token.accept(14, 5)
        assert transport.sources == [
            "(@convex.asset/offer #13 #128 5)",
            "(@convex.asset/accept #14 #128 5)",
        ]

    @pytest.mark.asyncio
    async def test_queries(self, client: Convex, transport: FakeTransport) -> None:
        token = client.fungible(128)
        await token.supply()
        await token.decimals()
        assert transport.sources == [
            "(@convex.fungible/total-supply #128)",
            "(@convex.fungible/decimals #128)",
        ]

    @pytest.mark.asyncio
    async def test_rejects_raw_quantity(self, client: Convex, transport: FakeTransport) -> None:
        with pytest.raises(InvalidAmountError):
            await client.fungible(128).transfer(13, "#{:foo}")
        with pytest.raises(InvalidAmountError):
            await client.fungible(128).mint(-1)
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_query_needs_no_account(self, anonymous: Convex, transport: FakeTransport) -> None:
        await anonymous.fungible(128).balance(13)
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("op", ["transfer", "mint", "burn"])
    async def test_writes_need_account(
        self, anonymous: Convex, transport: FakeTransport, op: str
    ) -> None:
        token = anonymous.fungible(128)
        with pytest.raises(NoAccountError):
            if op == "transfer":
                await token.transfer(13, 1)
            else:
                await getattr(token, op)(1)
        assert transport.calls == []


# ---------------------------------------------------------------------------
# Generic assets
# ---------------------------------------------------------------------------


class TestAssetHandle:
    @pytest.mark.asyncio
    async def test_balance(self, client: Convex, transport: FakeTransport) -> None:
        asset = client.asset(256)
        await asset.balance()
        await asset.balance("#13")
        assert transport.sources == [
            "(@convex.asset/balance #256 *address*)",
            "(@convex.asset/balance #256 #13)",
        ]

    @pytest.mark.asyncio
    async def test_transfer_numeric(self, client: Convex, transport: FakeTransport) -> None:
        await client.asset(256).transfer(13, 100)
        assert transport.sources == ["(@convex.asset/transfer #13 #256 100)"]

    @pytest.mark.asyncio
    async def test_transfer_raw_quantity_sandboxed(
        self, client: Convex, transport: FakeTransport
    ) -> None:
        await client.asset(256).transfer("#13", "#{:foo :bar}")
        assert transport.sources == ["(@convex.asset/transfer #13 #256 (query #{:foo :bar}))"]

    @pytest.mark.asyncio
    async def test_offer_accept(self, client: Convex, transport: FakeTransport) -> None:
        asset = client.asset(256)
        await asset.offer(13, "#{1 2}")
        await asset.accept(14, 3)
        assert transport.sources == [
            "(@convex.asset/offer #13 #256 (query #{1 2}))",
            "(@convex.asset/accept #14 #256 3)",
        ]

    @pytest.mark.asyncio
    async def test_supply(self, client: Convex, transport: FakeTransport) -> None:
        await client.asset("@my.nft").supply()
        assert transport.sources == ["(@convex.asset/total-supply @my.nft)"]


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class TestAccountHandle:
    @pytest.mark.asyncio
    async def test_queries(self, client: Convex, transport: FakeTransport) -> None:
        account = client.account(13)
        await account.balance()
        await account.get_sequence()
        await account.get_controller()
        await account.get_key()
        assert transport.sources == [
            "(balance #13)",
            "(:sequence (account #13))",
            "(:controller (account #13))",
            "(:key (account #13))",
        ]

    def test_is_own_account(self, client: Convex, anonymous: Convex) -> None:
        assert client.account(12).is_own_account() is True
        assert client.account("#12").is_own_account() is True
        assert client.account(13).is_own_account() is False
        assert client.account("@user.mike").is_own_account() is False
        assert anonymous.account(12).is_own_account() is False

    @pytest.mark.asyncio
    async def test_own_account_runs_directly(self, client: Convex, transport: FakeTransport) -> None:
        await client.account(12).set_controller(7)
        assert transport.sources == ["(set-controller #7)"]

    @pytest.mark.asyncio
    async def test_other_account_uses_eval_as(
        self, client: Convex, transport: FakeTransport
    ) -> None:
        await client.account(13).set_controller("#7")
        assert transport.sources == ["(eval-as #13 '(set-controller #7))"]

    @pytest.mark.asyncio
    async def test_cns_account_uses_eval_as(self, client: Convex, transport: FakeTransport) -> None:
        await client.account("@user.mike").set_controller(None)
        assert transport.sources == ["(eval-as @user.mike '(set-controller nil))"]

    @pytest.mark.asyncio
    async def test_set_key(self, client: Convex, transport: FakeTransport) -> None:
        kp = KeyPair.generate()
        await client.account(12).set_key(kp.public_key_hex.upper())
        await client.account(13).set_key(kp.public_key)
        assert transport.sources == [
            f"(set-key 0x{kp.public_key_hex})",
            f"(eval-as #13 '(set-key 0x{kp.public_key_hex}))",
        ]

    @pytest.mark.asyncio
    async def test_set_key_rejects_bad_key(self, client: Convex, transport: FakeTransport) -> None:
        with pytest.raises(InvalidKeyError):
            await client.account(12).set_key("abcd")
        with pytest.raises(InvalidKeyError):
            await client.account(12).set_key("zz" * 32)
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_writes_need_account(self, anonymous: Convex, transport: FakeTransport) -> None:
        with pytest.raises(NoAccountError):
            await anonymous.account(13).set_controller(7)
        assert transport.calls == []


# ---------------------------------------------------------------------------
# CNS
# ---------------------------------------------------------------------------


class TestCnsHandle:
    @pytest.mark.asyncio
    async def test_resolve(self, anonymous: Convex, transport: FakeTransport) -> None:
        await anonymous.cns("convex.core").resolve()
        assert transport.sources == ["(@convex.cns/resolve 'convex.core)"]

    @pytest.mark.asyncio
    async def test_set(self, client: Convex, transport: FakeTransport) -> None:
        await client.cns("user.mike").set(12)
        assert transport.sources == ["(@convex.cns/update 'user.mike #12)"]

    @pytest.mark.asyncio
    async def test_set_controller(self, client: Convex, transport: FakeTransport) -> None:
        await client.cns("user.mike").set_controller("#7")
        assert transport.sources == ["(@convex.cns/control 'user.mike #7)"]

    @pytest.mark.asyncio
    async def test_set_rejects_bad_value(self, client: Convex, transport: FakeTransport) -> None:
        with pytest.raises(InvalidAddressError):
            await client.cns("user.mike").set("#7) (evil")
        assert transport.calls == []

    def test_name(self, client: Convex) -> None:
        assert client.cns("a.b").name == "a.b"
