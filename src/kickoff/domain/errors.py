"""Domain error taxonomy.

Errors carry the platform they concern so callers can tell the operator which
connection to repair. Nothing here is fatal to the process: the aggregator and
orchestrator turn per-platform errors into report and outcome values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .platforms import PlatformId


class KickoffError(Exception):
    """Base class for domain errors."""


class AuthError(KickoffError):
    """A platform cannot be called with the stored credentials."""

    def __init__(self, platform: PlatformId, message: str) -> None:
        super().__init__(message)
        self.platform = platform


class NotConnectedError(AuthError):
    """No token record exists for the platform."""

    def __init__(self, platform: PlatformId) -> None:
        super().__init__(platform, f"Not connected to {platform.label}")


class ReauthRequiredError(AuthError):
    """The platform must be reconnected; the stored record has been discarded."""

    def __init__(self, platform: PlatformId, reason: str) -> None:
        super().__init__(platform, f"{platform.label} needs to be reconnected: {reason}")
        self.reason = reason


class TransientAuthError(AuthError):
    """Token refresh failed for a transient reason; the record is kept."""


class TransportError(KickoffError):
    """Network failure or unexpected response from a platform."""

    def __init__(
        self,
        platform: PlatformId,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code


class CredentialRelayError(KickoffError):
    """The token relay or the upstream provider refused an exchange or refresh."""

    def __init__(
        self,
        platform: PlatformId,
        error: str,
        *,
        description: str | None = None,
        transient: bool = False,
    ) -> None:
        detail = f"{error}: {description}" if description else error
        super().__init__(f"{platform.label} token relay error ({detail})")
        self.platform = platform
        self.error = error
        self.description = description
        self.transient = transient


class PolicyError(KickoffError):
    """A resolution choice is not legal for the current duplicate report."""

    def __init__(self, platform: PlatformId, choice: str, reason: str) -> None:
        super().__init__(f"{platform.label}: cannot apply '{choice}': {reason}")
        self.platform = platform
        self.choice = choice
        self.reason = reason


class InputValidationError(KickoffError, ValueError):
    """Operator input (for example a pasted URL) is malformed."""

    def __init__(self, field: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid {field} '{value}': {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class ProvisioningInProgressError(KickoffError):
    """A provisioning run for the same submission is already executing."""

    def __init__(self, submission_key: str) -> None:
        super().__init__(f"Provisioning already running for submission {submission_key!r}")
        self.submission_key = submission_key


class UnresolvedDuplicatesError(KickoffError, ValueError):
    """Existing projects were found and the operator has not said what to do with them."""

    def __init__(self, platforms: Sequence[PlatformId]) -> None:
        labels = ", ".join(platform.label for platform in platforms)
        super().__init__(f"Existing projects need a resolution choice: {labels}")
        self.platforms = tuple(platforms)
