"""Token lifecycle management.

Every outbound platform call asks the manager for an access token. Tokens are
refreshed lazily when they are expired or about to expire, and concurrent
callers for the same platform share a single in-flight refresh.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import (
    CredentialRelayError,
    NotConnectedError,
    ReauthRequiredError,
    TransientAuthError,
)
from .platforms import PROCESSING_ORDER, PlatformId

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .ports.credentials import TokenGrant, TokenRelay, TokenStore

log = getLogger(__name__)

DEFAULT_SAFETY_MARGIN: Final[timedelta] = timedelta(seconds=60)
DEFAULT_TOKEN_LIFETIME: Final[timedelta] = timedelta(seconds=3600)

type Clock = Callable[[], datetime]
type TokenProvider = Callable[[], Awaitable[str]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenRecord:
    access_token: str
    refresh_token: str | None
    expires_at: datetime
    obtained_at: datetime

    def needs_refresh(self, now: datetime, margin: timedelta) -> bool:
        return now >= self.expires_at - margin

    @classmethod
    def from_grant(
        cls,
        grant: TokenGrant,
        *,
        now: datetime,
        previous_refresh_token: str | None = None,
    ) -> TokenRecord:
        """Build a record from a relay grant.

        Providers may omit ``expires_in`` (an hour is assumed) and may omit a
        rotated refresh token (the previous one stays valid).
        """

        lifetime = (
            timedelta(seconds=grant.expires_in)
            if grant.expires_in and grant.expires_in > 0
            else DEFAULT_TOKEN_LIFETIME
        )
        return cls(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or previous_refresh_token,
            expires_at=now + lifetime,
            obtained_at=now,
        )


class ConnectionState(StrEnum):
    CONNECTED = "connected"
    EXPIRED = "expired"
    DISCONNECTED = "disconnected"


class TokenLifecycleManager:
    """Sole owner of the per-platform token records."""

    def __init__(
        self,
        *,
        store: TokenStore,
        relay: TokenRelay,
        safety_margin: timedelta = DEFAULT_SAFETY_MARGIN,
        clock: Clock = _utcnow,
    ) -> None:
        self._store = store
        self._relay = relay
        self._safety_margin = safety_margin
        self._clock = clock
        self._refreshes: dict[PlatformId, asyncio.Task[TokenRecord]] = {}

    async def get_valid_token(self, platform: PlatformId) -> str:
        """Return an access token that is valid beyond the safety margin.

        Raises ``NotConnectedError`` when no record exists,
        ``ReauthRequiredError`` when the record cannot be refreshed (the record
        is deleted first) and ``TransientAuthError`` when the relay is
        temporarily unavailable (the record is kept).
        """

        record = self._store.load(platform)
        if record is None:
            raise NotConnectedError(platform)
        if not record.needs_refresh(self._clock(), self._safety_margin):
            return record.access_token
        refreshed = await self._join_refresh(platform)
        return refreshed.access_token

    def token_provider(self, platform: PlatformId) -> TokenProvider:
        return partial(self.get_valid_token, platform)

    async def connect(
        self, platform: PlatformId, code: str, *, state: str | None = None
    ) -> TokenRecord:
        """Exchange an OAuth authorization code and store the resulting record."""

        try:
            grant = await self._relay.exchange_code(platform, code, state=state)
        except CredentialRelayError as exc:
            if exc.transient:
                raise TransientAuthError(platform, str(exc)) from exc
            raise ReauthRequiredError(platform, exc.error) from exc
        record = self.store_grant(platform, grant)
        log.info("Connected to %s", platform.label)
        return record

    def store_grant(self, platform: PlatformId, grant: TokenGrant) -> TokenRecord:
        record = TokenRecord.from_grant(grant, now=self._clock())
        self._store.save(platform, record)
        return record

    def disconnect(self, platform: PlatformId) -> None:
        self._store.delete(platform)
        log.info("Disconnected from %s", platform.label)

    def is_connected(self, platform: PlatformId) -> bool:
        return self._store.load(platform) is not None

    def connection_status(self) -> dict[PlatformId, ConnectionState]:
        now = self._clock()
        status: dict[PlatformId, ConnectionState] = {}
        for platform in PROCESSING_ORDER:
            record = self._store.load(platform)
            if record is None:
                status[platform] = ConnectionState.DISCONNECTED
            elif record.needs_refresh(now, self._safety_margin):
                status[platform] = ConnectionState.EXPIRED
            else:
                status[platform] = ConnectionState.CONNECTED
        return status

    async def _join_refresh(self, platform: PlatformId) -> TokenRecord:
        task = self._refreshes.get(platform)
        if task is None:
            task = asyncio.create_task(self._refresh(platform), name=f"refresh-{platform}")
            self._refreshes[platform] = task
            task.add_done_callback(partial(self._forget_refresh, platform))
        # A cancelled waiter must not cancel the refresh other waiters share.
        return await asyncio.shield(task)

    def _forget_refresh(self, platform: PlatformId, task: asyncio.Task[TokenRecord]) -> None:
        if self._refreshes.get(platform) is task:
            del self._refreshes[platform]
        if not task.cancelled():
            # Waiters re-raise the failure; retrieving it here silences the
            # "exception never retrieved" warning when every waiter was cancelled.
            task.exception()

    async def _refresh(self, platform: PlatformId) -> TokenRecord:
        record = self._store.load(platform)
        if record is None:
            raise NotConnectedError(platform)
        if not record.needs_refresh(self._clock(), self._safety_margin):
            return record
        if not record.refresh_token:
            self._store.delete(platform)
            log.warning("%s token expired without a refresh token", platform.label)
            raise ReauthRequiredError(platform, "token expired and no refresh token is stored")

        log.info("Refreshing %s access token", platform.label)
        try:
            grant = await self._relay.refresh(platform, record.refresh_token)
        except CredentialRelayError as exc:
            if exc.transient:
                log.warning("Transient %s token refresh failure: %s", platform.label, exc)
                raise TransientAuthError(platform, str(exc)) from exc
            self._store.delete(platform)
            log.warning("%s rejected the token refresh: %s", platform.label, exc)
            raise ReauthRequiredError(platform, exc.error) from exc

        refreshed = TokenRecord.from_grant(
            grant,
            now=self._clock(),
            previous_refresh_token=record.refresh_token,
        )
        self._store.save(platform, refreshed)
        return refreshed
