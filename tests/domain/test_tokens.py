from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from kickoff.adapters.token_store import InMemoryTokenStore
from kickoff.domain.errors import (
    CredentialRelayError,
    NotConnectedError,
    ReauthRequiredError,
    TransientAuthError,
)
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.credentials import TokenGrant
from kickoff.domain.tokens import ConnectionState, TokenLifecycleManager, TokenRecord
from tests.helpers.fakes import NOW, FakeTokenRelay, make_token

PLATFORM = PlatformId.TASK_BOARD


def _manager(
    store: InMemoryTokenStore,
    relay: FakeTokenRelay,
) -> TokenLifecycleManager:
    return TokenLifecycleManager(store=store, relay=relay, clock=lambda: NOW)


def test_fresh_token_is_returned_without_refresh() -> None:
    store = InMemoryTokenStore({PLATFORM: make_token()})
    relay = FakeTokenRelay()

    token = asyncio.run(_manager(store, relay).get_valid_token(PLATFORM))

    assert token == "access-1"
    assert relay.refresh_calls == []


def test_missing_record_raises_not_connected() -> None:
    manager = _manager(InMemoryTokenStore(), FakeTokenRelay())

    with pytest.raises(NotConnectedError):
        asyncio.run(manager.get_valid_token(PLATFORM))


def test_token_inside_safety_margin_is_refreshed_and_keeps_refresh_token() -> None:
    store = InMemoryTokenStore({PLATFORM: make_token(expires_at=NOW + timedelta(seconds=30))})
    relay = FakeTokenRelay(grant=TokenGrant(access_token="access-2", expires_in=7200))

    token = asyncio.run(_manager(store, relay).get_valid_token(PLATFORM))

    assert token == "access-2"
    stored = store.load(PLATFORM)
    assert stored is not None
    assert stored.refresh_token == "refresh-1"
    assert stored.expires_at == NOW + timedelta(seconds=7200)


def test_concurrent_callers_share_one_refresh() -> None:
    store = InMemoryTokenStore({PLATFORM: make_token(expires_at=NOW - timedelta(minutes=1))})

    async def scenario() -> tuple[list[str], FakeTokenRelay]:
        gate = asyncio.Event()
        relay = FakeTokenRelay(gate=gate)
        manager = _manager(store, relay)
        callers = [asyncio.create_task(manager.get_valid_token(PLATFORM)) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        return list(await asyncio.gather(*callers)), relay

    tokens, relay = asyncio.run(scenario())

    assert tokens == ["access-2"] * 5
    assert len(relay.refresh_calls) == 1


def test_cancelled_caller_does_not_cancel_shared_refresh() -> None:
    store = InMemoryTokenStore({PLATFORM: make_token(expires_at=NOW - timedelta(minutes=1))})

    async def scenario() -> str:
        gate = asyncio.Event()
        manager = _manager(store, FakeTokenRelay(gate=gate))
        first = asyncio.create_task(manager.get_valid_token(PLATFORM))
        second = asyncio.create_task(manager.get_valid_token(PLATFORM))
        await asyncio.sleep(0)
        first.cancel()
        gate.set()
        return await second

    assert asyncio.run(scenario()) == "access-2"


def test_rejected_refresh_deletes_record_and_requires_reauth() -> None:
    store = InMemoryTokenStore({PLATFORM: make_token(expires_at=NOW - timedelta(minutes=1))})
    relay = FakeTokenRelay(error=CredentialRelayError(PLATFORM, "invalid_grant"))

    with pytest.raises(ReauthRequiredError) as exc:
        asyncio.run(_manager(store, relay).get_valid_token(PLATFORM))

    assert exc.value.reason == "invalid_grant"
    assert store.load(PLATFORM) is None


def test_transient_refresh_failure_keeps_record() -> None:
    record = make_token(expires_at=NOW - timedelta(minutes=1))
    store = InMemoryTokenStore({PLATFORM: record})
    relay = FakeTokenRelay(
        error=CredentialRelayError(PLATFORM, "network_error", transient=True)
    )

    with pytest.raises(TransientAuthError):
        asyncio.run(_manager(store, relay).get_valid_token(PLATFORM))

    assert store.load(PLATFORM) == record


def test_expired_record_without_refresh_token_requires_reauth() -> None:
    store = InMemoryTokenStore(
        {PLATFORM: make_token(refresh_token=None, expires_at=NOW - timedelta(minutes=1))}
    )
    relay = FakeTokenRelay()

    with pytest.raises(ReauthRequiredError):
        asyncio.run(_manager(store, relay).get_valid_token(PLATFORM))

    assert relay.refresh_calls == []
    assert store.load(PLATFORM) is None


def test_connect_stores_exchanged_grant_with_default_lifetime() -> None:
    store = InMemoryTokenStore()
    relay = FakeTokenRelay(grant=TokenGrant(access_token="fresh", refresh_token="r-9"))
    manager = _manager(store, relay)

    record = asyncio.run(manager.connect(PLATFORM, "code-1", state="xyz"))

    assert relay.exchange_calls == [(PLATFORM, "code-1", "xyz")]
    assert record == TokenRecord(
        access_token="fresh",
        refresh_token="r-9",
        expires_at=NOW + timedelta(hours=1),
        obtained_at=NOW,
    )
    assert manager.is_connected(PLATFORM)


def test_connection_status_and_disconnect() -> None:
    store = InMemoryTokenStore(
        {
            PlatformId.RECORD_STORE: make_token(),
            PlatformId.TASK_BOARD: make_token(expires_at=NOW + timedelta(seconds=10)),
        }
    )
    manager = _manager(store, FakeTokenRelay())

    assert manager.connection_status() == {
        PlatformId.RECORD_STORE: ConnectionState.CONNECTED,
        PlatformId.TASK_BOARD: ConnectionState.EXPIRED,
        PlatformId.DOCUMENT_STORE: ConnectionState.DISCONNECTED,
    }

    manager.disconnect(PlatformId.RECORD_STORE)

    assert not manager.is_connected(PlatformId.RECORD_STORE)
