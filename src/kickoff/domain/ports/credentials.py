"""Ports for obtaining and persisting platform credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from kickoff.domain.platforms import PlatformId
    from kickoff.domain.tokens import TokenRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenGrant:
    """Token payload returned by the relay for an exchange or refresh."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class TokenRelay(Protocol):
    """Server-side relay holding the OAuth client secrets."""

    async def exchange_code(
        self, platform: PlatformId, code: str, *, state: str | None = None
    ) -> TokenGrant:
        """Exchange an authorization code; ``state`` carries the PKCE verifier if any."""
        ...

    async def refresh(self, platform: PlatformId, refresh_token: str) -> TokenGrant: ...


class TokenStore(Protocol):
    def load(self, platform: PlatformId) -> TokenRecord | None: ...

    def save(self, platform: PlatformId, record: TokenRecord) -> None: ...

    def delete(self, platform: PlatformId) -> None: ...
