"""Resolution policy: what to do on each platform given a duplicate report.

Choices are closed per-platform enums. Their values follow the vocabulary of
the ``[duplicates.defaults]`` settings (``update``, ``use_existing``, ``keep``,
``create_new``, ``skip``, ``recreate``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import InputValidationError, PolicyError
from .platforms import PROCESSING_ORDER, PlatformId
from .probe import SkipReason, SkippedProbe

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .report import DuplicateReport

log = getLogger(__name__)


class RecordStoreChoice(StrEnum):
    UPDATE_EXISTING = "update"
    CREATE_NEW = "create_new"
    SKIP = "skip"


class TaskBoardChoice(StrEnum):
    USE_EXISTING = "use_existing"
    CREATE_NEW = "create_new"
    SKIP = "skip"


class DocumentStoreChoice(StrEnum):
    KEEP_EXISTING = "keep"
    CREATE_NEW = "create_new"
    SKIP = "skip"
    RECREATE = "recreate"


type ResolutionChoice = RecordStoreChoice | TaskBoardChoice | DocumentStoreChoice

CHOICE_TYPES: Final[dict[PlatformId, type[ResolutionChoice]]] = {
    PlatformId.RECORD_STORE: RecordStoreChoice,
    PlatformId.TASK_BOARD: TaskBoardChoice,
    PlatformId.DOCUMENT_STORE: DocumentStoreChoice,
}

REUSE_CHOICES: Final[dict[PlatformId, ResolutionChoice]] = {
    PlatformId.RECORD_STORE: RecordStoreChoice.UPDATE_EXISTING,
    PlatformId.TASK_BOARD: TaskBoardChoice.USE_EXISTING,
    PlatformId.DOCUMENT_STORE: DocumentStoreChoice.KEEP_EXISTING,
}

CREATE_CHOICES: Final[dict[PlatformId, ResolutionChoice]] = {
    PlatformId.RECORD_STORE: RecordStoreChoice.CREATE_NEW,
    PlatformId.TASK_BOARD: TaskBoardChoice.CREATE_NEW,
    PlatformId.DOCUMENT_STORE: DocumentStoreChoice.CREATE_NEW,
}

SKIP_CHOICES: Final[dict[PlatformId, ResolutionChoice]] = {
    PlatformId.RECORD_STORE: RecordStoreChoice.SKIP,
    PlatformId.TASK_BOARD: TaskBoardChoice.SKIP,
    PlatformId.DOCUMENT_STORE: DocumentStoreChoice.SKIP,
}

# Recreate trashes the matched folder, so it needs a match as much as the reuse choices do.
MATCH_REQUIRED: Final[frozenset[ResolutionChoice]] = frozenset(
    {*REUSE_CHOICES.values(), DocumentStoreChoice.RECREATE}
)


def platform_of(choice: ResolutionChoice) -> PlatformId:
    for platform, choice_type in CHOICE_TYPES.items():
        if isinstance(choice, choice_type):
            return platform
    raise TypeError(f"Not a resolution choice: {choice!r}")


def parse_choice(platform: PlatformId, value: str) -> ResolutionChoice:
    choice_type = CHOICE_TYPES[platform]
    try:
        return choice_type(value.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in choice_type)
        raise InputValidationError(
            f"{platform.label} resolution", value, f"expected one of: {allowed}"
        ) from None


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionPlan:
    record_store: RecordStoreChoice
    task_board: TaskBoardChoice
    document_store: DocumentStoreChoice

    def choice_for(self, platform: PlatformId) -> ResolutionChoice:
        match platform:
            case PlatformId.RECORD_STORE:
                return self.record_store
            case PlatformId.TASK_BOARD:
                return self.task_board
            case PlatformId.DOCUMENT_STORE:
                return self.document_store

    def with_choice(self, choice: ResolutionChoice) -> ResolutionPlan:
        return replace(self, **{platform_of(choice).value: choice})

    def items(self) -> tuple[tuple[PlatformId, ResolutionChoice], ...]:
        return tuple((platform, self.choice_for(platform)) for platform in PROCESSING_ORDER)


@dataclass(frozen=True, slots=True, kw_only=True)
class DuplicateDefaults:
    """Configured duplicate handling."""

    enabled: bool = True
    record_store: RecordStoreChoice = RecordStoreChoice.UPDATE_EXISTING
    task_board: TaskBoardChoice = TaskBoardChoice.USE_EXISTING
    document_store: DocumentStoreChoice = DocumentStoreChoice.KEEP_EXISTING
    allow_recreate: bool = False

    @classmethod
    def from_values(
        cls,
        *,
        enabled: bool = True,
        record_store: str = "update",
        task_board: str = "use_existing",
        document_store: str = "keep",
        allow_recreate: bool = False,
    ) -> DuplicateDefaults:
        return cls(
            enabled=enabled,
            record_store=RecordStoreChoice(parse_choice(PlatformId.RECORD_STORE, record_store)),
            task_board=TaskBoardChoice(parse_choice(PlatformId.TASK_BOARD, task_board)),
            document_store=DocumentStoreChoice(
                parse_choice(PlatformId.DOCUMENT_STORE, document_store)
            ),
            allow_recreate=allow_recreate,
        )


def get_default_resolutions(defaults: DuplicateDefaults) -> ResolutionPlan:
    """Pure: the same configuration always yields the same plan."""

    return ResolutionPlan(
        record_store=defaults.record_store,
        task_board=defaults.task_board,
        document_store=defaults.document_store,
    )


class ResolutionPolicy:
    def __init__(self, defaults: DuplicateDefaults | None = None) -> None:
        self._defaults = defaults or DuplicateDefaults()

    @property
    def defaults(self) -> DuplicateDefaults:
        return self._defaults

    def validate(self, choice: ResolutionChoice, report: DuplicateReport) -> None:
        """Raise ``PolicyError`` when ``choice`` is not legal for ``report``."""

        platform = platform_of(choice)
        result = report.result_for(platform)
        if choice in MATCH_REQUIRED and not result.found:
            raise PolicyError(platform, choice, "no existing resource was found")
        if choice is DocumentStoreChoice.RECREATE and not self._defaults.allow_recreate:
            raise PolicyError(platform, choice, "recreating folders is disabled")

    def validate_plan(self, plan: ResolutionPlan, report: DuplicateReport) -> None:
        for _, choice in plan.items():
            self.validate(choice, report)

    def is_legal(self, choice: ResolutionChoice, report: DuplicateReport) -> bool:
        try:
            self.validate(choice, report)
        except PolicyError:
            return False
        return True

    def initial_plan(self, report: DuplicateReport) -> ResolutionPlan:
        """Configured defaults, adjusted so every choice is legal for ``report``.

        A platform whose probe could not run is skipped rather than created: a
        failed check is not evidence that nothing exists. Only a check that was
        disabled by configuration falls back to creating.
        """

        plan = get_default_resolutions(self._defaults)
        for platform, default in plan.items():
            result = report.result_for(platform)
            if isinstance(result, SkippedProbe):
                fallback = (
                    CREATE_CHOICES[platform]
                    if result.reason is SkipReason.CHECK_DISABLED
                    else SKIP_CHOICES[platform]
                )
                plan = plan.with_choice(fallback)
            elif not self.is_legal(default, report):
                fallback = REUSE_CHOICES[platform] if result.found else CREATE_CHOICES[platform]
                plan = plan.with_choice(fallback)
        return plan


class ResolutionSession:
    """Resolution state for one submission while the operator reviews duplicates.

    Overrides survive a re-check against a new report; only ``reset`` brings
    back the configured defaults.
    """

    def __init__(self, policy: ResolutionPolicy, report: DuplicateReport) -> None:
        self._policy = policy
        self._report = report
        self._overrides: dict[PlatformId, ResolutionChoice] = {}

    @property
    def report(self) -> DuplicateReport:
        return self._report

    @property
    def overrides(self) -> Mapping[PlatformId, ResolutionChoice]:
        return dict(self._overrides)

    @property
    def plan(self) -> ResolutionPlan:
        plan = self._policy.initial_plan(self._report)
        for choice in self._overrides.values():
            plan = plan.with_choice(choice)
        return plan

    def choose(self, choice: ResolutionChoice) -> ResolutionPlan:
        self._policy.validate(choice, self._report)
        self._overrides[platform_of(choice)] = choice
        return self.plan

    def refresh(self, report: DuplicateReport) -> ResolutionPlan:
        self._report = report
        for platform, choice in self._overrides.items():
            if not self._policy.is_legal(choice, report):
                log.info("Override %s=%s no longer fits the new report", platform, choice)
        return self.plan

    def undecided(self) -> tuple[PlatformId, ...]:
        """Platforms with an existing match the operator has not chosen for yet."""
        return tuple(
            platform
            for platform, result in self._report.items()
            if result.found and not result.user_provided and platform not in self._overrides
        )

    def conflicts(self) -> tuple[PolicyError, ...]:
        errors: list[PolicyError] = []
        for choice in self._overrides.values():
            try:
                self._policy.validate(choice, self._report)
            except PolicyError as exc:
                errors.append(exc)
        return tuple(errors)

    def reset(self) -> ResolutionPlan:
        self._overrides.clear()
        return self.plan
