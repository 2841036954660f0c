"""The immutable duplicate report produced by one check across all platforms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .platforms import PROCESSING_ORDER, PlatformId

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .probe import ProbeResult


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateReport:
    """One probe result per platform.

    A new check always yields a new report; reports are never amended.
    """

    candidate_name: str
    record_store: ProbeResult
    task_board: ProbeResult
    document_store: ProbeResult
    checked_at: datetime

    @classmethod
    def from_results(
        cls,
        *,
        candidate_name: str,
        results: Mapping[PlatformId, ProbeResult],
        checked_at: datetime,
    ) -> DuplicateReport:
        return cls(
            candidate_name=candidate_name,
            record_store=results[PlatformId.RECORD_STORE],
            task_board=results[PlatformId.TASK_BOARD],
            document_store=results[PlatformId.DOCUMENT_STORE],
            checked_at=checked_at,
        )

    def result_for(self, platform: PlatformId) -> ProbeResult:
        match platform:
            case PlatformId.RECORD_STORE:
                return self.record_store
            case PlatformId.TASK_BOARD:
                return self.task_board
            case PlatformId.DOCUMENT_STORE:
                return self.document_store

    def items(self) -> tuple[tuple[PlatformId, ProbeResult], ...]:
        return tuple((platform, self.result_for(platform)) for platform in PROCESSING_ORDER)

    @property
    def has_duplicates(self) -> bool:
        """True when some platform holds a probed match the operator did not supply."""

        return any(result.found and not result.user_provided for _, result in self.items())

    @property
    def skipped_platforms(self) -> tuple[PlatformId, ...]:
        return tuple(platform for platform, result in self.items() if result.skipped_probe)
