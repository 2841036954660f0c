"""Probe results: what a platform reported for a candidate project name."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from datetime import datetime

    from .urls import LinkedResource


class ProbeStatus(StrEnum):
    NOT_FOUND = "not_found"
    MATCHED = "matched"
    USER_PROVIDED = "user_provided"
    SKIPPED = "skipped"


class SkipReason(StrEnum):
    """Why a probe did not run. A skipped probe never means "safe to create"."""

    NOT_CONNECTED = "not_connected"
    UNAVAILABLE = "unavailable"
    NOT_CONFIGURED = "not_configured"
    CHECK_DISABLED = "check_disabled"


@dataclass(frozen=True, slots=True, kw_only=True)
class ProbeMatch:
    """One existing resource whose name overlaps the candidate."""

    resource_id: str
    label: str
    url: str
    created_at: datetime | None = None


class _ProbeResultBase:
    """Flat read-only view shared by all probe result variants."""

    __slots__ = ()

    @property
    def primary(self) -> ProbeMatch | None:
        return None

    @property
    def found(self) -> bool:
        return False

    @property
    def user_provided(self) -> bool:
        return False

    @property
    def skipped_probe(self) -> bool:
        return False

    @property
    def matched_resource_id(self) -> str | None:
        return self.primary.resource_id if self.primary else None

    @property
    def matched_url(self) -> str | None:
        return self.primary.url if self.primary else None

    @property
    def matched_label(self) -> str | None:
        return self.primary.label if self.primary else None

    @property
    def created_at(self) -> datetime | None:
        return self.primary.created_at if self.primary else None


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFoundProbe(_ProbeResultBase):
    status: Literal[ProbeStatus.NOT_FOUND] = ProbeStatus.NOT_FOUND


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchedProbe(_ProbeResultBase):
    """At least one existing resource matched; the first one is surfaced as primary."""

    matches: tuple[ProbeMatch, ...]
    status: Literal[ProbeStatus.MATCHED] = ProbeStatus.MATCHED

    def __post_init__(self) -> None:
        if not self.matches:
            raise ValueError("Matched probe result must include at least one match")

    @property
    def primary(self) -> ProbeMatch:
        return self.matches[0]

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class UserProvidedProbe(_ProbeResultBase):
    """The operator supplied a link; it is an affirmed match and is never re-probed."""

    link: LinkedResource
    status: Literal[ProbeStatus.USER_PROVIDED] = ProbeStatus.USER_PROVIDED

    @property
    def primary(self) -> ProbeMatch:
        return ProbeMatch(resource_id=self.link.resource_id, label=self.link.url, url=self.link.url)

    @property
    def found(self) -> bool:
        return True

    @property
    def user_provided(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class SkippedProbe(_ProbeResultBase):
    reason: SkipReason
    detail: str | None = None
    status: Literal[ProbeStatus.SKIPPED] = ProbeStatus.SKIPPED

    @property
    def skipped_probe(self) -> bool:
        return True


type ProbeResult = NotFoundProbe | MatchedProbe | UserProvidedProbe | SkippedProbe


def probe_result_from_matches(matches: tuple[ProbeMatch, ...]) -> ProbeResult:
    if not matches:
        return NotFoundProbe()
    return MatchedProbe(matches=matches)
