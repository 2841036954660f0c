"""OAuth relay adapter."""

from __future__ import annotations

from .client import SERVICE_NAMES, OAuthRelayClient
from .schema import parse_callback_page

__all__ = ["SERVICE_NAMES", "OAuthRelayClient", "parse_callback_page"]
