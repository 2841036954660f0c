"""Duplicate aggregator: one concurrent check across every platform."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AuthError, InputValidationError
from .form import ExistingUrls
from .platforms import PROCESSING_ORDER, PlatformId
from .probe import SkippedProbe, SkipReason, UserProvidedProbe
from .report import DuplicateReport

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .probe import ProbeResult
    from .probes import PlatformProbe

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DuplicateAggregator:
    """Run the platform probes concurrently and assemble a ``DuplicateReport``.

    Probes settle independently: a failing probe turns into a skipped result
    for its platform and never affects the others. Platforms with an
    operator-supplied link are not probed at all.
    """

    def __init__(
        self,
        *,
        probes: Iterable[PlatformProbe],
        enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._probes: dict[PlatformId, PlatformProbe] = {probe.platform: probe for probe in probes}
        self._enabled = enabled
        self._clock = clock

    async def check_all(
        self,
        candidate_name: str,
        existing_urls: ExistingUrls | None = None,
    ) -> DuplicateReport:
        name = candidate_name.strip()
        if not name:
            raise InputValidationError("project name", candidate_name, "must not be blank")
        urls = existing_urls or ExistingUrls()

        results: dict[PlatformId, ProbeResult] = {}
        pending: list[tuple[PlatformId, PlatformProbe]] = []
        for platform in PROCESSING_ORDER:
            link = urls.for_platform(platform)
            if link is not None:
                results[platform] = UserProvidedProbe(link=link)
            elif not self._enabled:
                results[platform] = SkippedProbe(reason=SkipReason.CHECK_DISABLED)
            elif (probe := self._probes.get(platform)) is None:
                results[platform] = SkippedProbe(reason=SkipReason.NOT_CONFIGURED)
            else:
                pending.append((platform, probe))

        settled = await asyncio.gather(
            *(self._settle(platform, probe, name) for platform, probe in pending)
        )
        results.update(zip((platform for platform, _ in pending), settled, strict=True))

        report = DuplicateReport.from_results(
            candidate_name=name,
            results=results,
            checked_at=self._clock(),
        )
        log.info(
            "Duplicate check for %r: %s",
            name,
            ", ".join(f"{platform}={result.status}" for platform, result in report.items()),
        )
        return report

    async def _settle(
        self,
        platform: PlatformId,
        probe: PlatformProbe,
        name: str,
    ) -> ProbeResult:
        try:
            return await probe.probe(name)
        except AuthError as exc:
            log.warning("Skipping %s duplicate check: %s", platform.label, exc)
            return SkippedProbe(reason=SkipReason.NOT_CONNECTED, detail=str(exc))
        except Exception as exc:  # noqa: BLE001
            log.warning("%s duplicate check failed: %s", platform.label, exc, exc_info=True)
            return SkippedProbe(reason=SkipReason.UNAVAILABLE, detail=str(exc))
