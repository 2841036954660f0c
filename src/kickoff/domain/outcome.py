"""Provisioning outcome and the per-platform provisioning state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from .platforms import PROCESSING_ORDER, PlatformId

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .ports.records import ResourceLinks

log = getLogger(__name__)


class ProvisionStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    LINKED = "linked"
    SKIPPED = "skipped"
    FAILED = "failed"


SUCCESS_STATUSES: Final[frozenset[ProvisionStatus]] = frozenset(
    {ProvisionStatus.CREATED, ProvisionStatus.UPDATED, ProvisionStatus.LINKED}
)


class ProvisionState(StrEnum):
    NOT_STARTED = "not_started"
    CREATING = "creating"
    UPDATING = "updating"
    CREATED = "created"
    UPDATED = "updated"
    LINKED = "linked"
    SKIPPED = "skipped"
    FAILED = "failed"


TRANSITIONS: Final[dict[ProvisionState, frozenset[ProvisionState]]] = {
    ProvisionState.NOT_STARTED: frozenset(
        {
            ProvisionState.SKIPPED,
            ProvisionState.LINKED,
            ProvisionState.CREATING,
            ProvisionState.UPDATING,
        }
    ),
    ProvisionState.CREATING: frozenset({ProvisionState.CREATED, ProvisionState.FAILED}),
    ProvisionState.UPDATING: frozenset({ProvisionState.UPDATED, ProvisionState.FAILED}),
    ProvisionState.CREATED: frozenset(),
    ProvisionState.UPDATED: frozenset(),
    ProvisionState.LINKED: frozenset(),
    ProvisionState.SKIPPED: frozenset(),
    ProvisionState.FAILED: frozenset(),
}


class IllegalTransitionError(RuntimeError):
    def __init__(self, platform: PlatformId, current: ProvisionState, target: ProvisionState):
        super().__init__(f"{platform}: cannot move from {current} to {target}")
        self.platform = platform
        self.current = current
        self.target = target


class ProvisionTracker:
    """Tracks each platform's state during one run; terminal states are final."""

    def __init__(self) -> None:
        self._states = dict.fromkeys(PROCESSING_ORDER, ProvisionState.NOT_STARTED)

    def state(self, platform: PlatformId) -> ProvisionState:
        return self._states[platform]

    def advance(self, platform: PlatformId, target: ProvisionState) -> None:
        current = self._states[platform]
        if target not in TRANSITIONS[current]:
            raise IllegalTransitionError(platform, current, target)
        self._states[platform] = target
        log.debug("%s: %s -> %s", platform, current, target)

    def is_terminal(self, platform: PlatformId) -> bool:
        return not TRANSITIONS[self._states[platform]]


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisionedResource:
    platform: PlatformId
    status: ProvisionStatus
    resource_id: str | None = None
    url: str | None = None
    error: str | None = None
    details: Mapping[str, str] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES


@dataclass(frozen=True, slots=True, kw_only=True)
class WriteBackResult:
    """Links written onto the record store entry after provisioning."""

    attempted: bool
    succeeded: bool = False
    links: ResourceLinks | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisioningOutcome:
    record_store: ProvisionedResource
    task_board: ProvisionedResource
    document_store: ProvisionedResource
    write_back: WriteBackResult
    started_at: datetime
    finished_at: datetime

    def resource_for(self, platform: PlatformId) -> ProvisionedResource:
        match platform:
            case PlatformId.RECORD_STORE:
                return self.record_store
            case PlatformId.TASK_BOARD:
                return self.task_board
            case PlatformId.DOCUMENT_STORE:
                return self.document_store

    def items(self) -> tuple[tuple[PlatformId, ProvisionedResource], ...]:
        return tuple((platform, self.resource_for(platform)) for platform in PROCESSING_ORDER)

    @property
    def failures(self) -> tuple[ProvisionedResource, ...]:
        return tuple(
            resource for _, resource in self.items() if resource.status is ProvisionStatus.FAILED
        )

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def is_partial(self) -> bool:
        """Some platforms failed while others succeeded."""

        return bool(self.failures) and any(resource.succeeded for _, resource in self.items())
