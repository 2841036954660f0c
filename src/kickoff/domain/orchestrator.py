"""Provisioning orchestrator: execute a resolution plan across the platforms.

Platforms are processed strictly in ``PROCESSING_ORDER``. A failure on one
platform is recorded in the outcome and never stops the others. There is no
cross-platform transaction: nothing is rolled back and no compensating deletes
are issued.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import KickoffError
from .outcome import (
    ProvisionedResource,
    ProvisioningOutcome,
    ProvisionState,
    ProvisionStatus,
    ProvisionTracker,
    WriteBackResult,
)
from .placeholders import DEFAULT_PLACEHOLDER_TOKENS, build_replacements
from .platforms import PROCESSING_ORDER, PlatformId
from .ports.boards import BoardItem
from .ports.documents import DocumentKind
from .ports.records import ResourceLinks
from .resolution import (
    CREATE_CHOICES,
    SKIP_CHOICES,
    DocumentStoreChoice,
    RecordStoreChoice,
    TaskBoardChoice,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from .form import ProjectForm
    from .ports.boards import TaskBoardClient
    from .ports.documents import DocumentStoreClient
    from .ports.records import RecordStoreClient
    from .probe import ProbeResult
    from .report import DuplicateReport
    from .resolution import ResolutionChoice, ResolutionPlan, ResolutionPolicy

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PlatformNotConfiguredError(KickoffError):
    def __init__(self, platform: PlatformId, what: str) -> None:
        super().__init__(f"{platform.label} is not configured: {what}")
        self.platform = platform


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisioningSettings:
    """Provisioning knobs that do not depend on a particular submission."""

    default_task_board_template: str | None = None
    task_board_templates: Mapping[str, str] = field(default_factory=dict)
    scoping_doc_template_id: str | None = None
    kickoff_deck_template_id: str | None = None
    placeholder_tokens: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PLACEHOLDER_TOKENS)
    )
    update_milestones: bool = False
    merge_milestones: bool = False
    merge_assignments: bool = False

    def task_board_template(self, project_type: str | None) -> str | None:
        if project_type and project_type in self.task_board_templates:
            return self.task_board_templates[project_type]
        return self.default_task_board_template


@dataclass(slots=True)
class _Followups:
    """Warnings from best-effort steps that follow a successful primary call."""

    platform: PlatformId
    warnings: list[str] = field(default_factory=list)
    details: dict[str, str] = field(default_factory=dict)

    async def attempt[T](self, label: str, step: Awaitable[T]) -> T | None:
        try:
            return await step
        except Exception as exc:  # noqa: BLE001
            log.warning("%s: %s failed: %s", self.platform.label, label, exc)
            self.warnings.append(f"{label} failed: {exc}")
            return None


class ProvisioningOrchestrator:
    def __init__(
        self,
        *,
        policy: ResolutionPolicy,
        record_store: RecordStoreClient | None = None,
        task_board: TaskBoardClient | None = None,
        document_store: DocumentStoreClient | None = None,
        settings: ProvisioningSettings | None = None,
        clock: Callable[[], datetime] = _utcnow,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._policy = policy
        self._record_store = record_store
        self._task_board = task_board
        self._document_store = document_store
        self._settings = settings or ProvisioningSettings()
        self._clock = clock
        self._today = today

    async def execute(
        self,
        form: ProjectForm,
        report: DuplicateReport,
        plan: ResolutionPlan,
    ) -> ProvisioningOutcome:
        """Run ``plan`` and return the outcome for every platform.

        The plan is validated against ``report`` first, so a ``PolicyError``
        is raised before any platform call is made.
        """

        self._policy.validate_plan(plan, report)
        started_at = self._clock()
        tracker = ProvisionTracker()
        resources: dict[PlatformId, ProvisionedResource] = {}
        log.info("Provisioning %r with plan %s", form.project_name, dict(plan.items()))

        for platform in PROCESSING_ORDER:
            resources[platform] = await self._provision(
                platform,
                form,
                report.result_for(platform),
                plan.choice_for(platform),
                tracker,
            )
        unfinished = [p for p in PROCESSING_ORDER if not tracker.is_terminal(p)]
        if unfinished:
            raise RuntimeError(f"Provisioning ended with unfinished platforms: {unfinished}")

        write_back = await self._write_back(resources)
        outcome = ProvisioningOutcome(
            record_store=resources[PlatformId.RECORD_STORE],
            task_board=resources[PlatformId.TASK_BOARD],
            document_store=resources[PlatformId.DOCUMENT_STORE],
            write_back=write_back,
            started_at=started_at,
            finished_at=self._clock(),
        )
        log.info(
            "Provisioning finished for %r: %s",
            form.project_name,
            ", ".join(f"{platform}={resource.status}" for platform, resource in outcome.items()),
        )
        return outcome

    async def _provision(
        self,
        platform: PlatformId,
        form: ProjectForm,
        result: ProbeResult,
        choice: ResolutionChoice,
        tracker: ProvisionTracker,
    ) -> ProvisionedResource:
        if choice is SKIP_CHOICES[platform]:
            tracker.advance(platform, ProvisionState.SKIPPED)
            return ProvisionedResource(platform=platform, status=ProvisionStatus.SKIPPED)

        if result.user_provided:
            tracker.advance(platform, ProvisionState.LINKED)
            return ProvisionedResource(
                platform=platform,
                status=ProvisionStatus.LINKED,
                resource_id=result.matched_resource_id,
                url=result.matched_url,
            )

        creating = choice is CREATE_CHOICES[platform] or choice is DocumentStoreChoice.RECREATE
        tracker.advance(platform, ProvisionState.CREATING if creating else ProvisionState.UPDATING)
        try:
            resource = await self._dispatch(platform, form, result, choice)
        except Exception as exc:  # noqa: BLE001
            log.warning("%s provisioning failed: %s", platform.label, exc, exc_info=True)
            tracker.advance(platform, ProvisionState.FAILED)
            return ProvisionedResource(
                platform=platform,
                status=ProvisionStatus.FAILED,
                error=str(exc) or type(exc).__name__,
            )
        tracker.advance(platform, ProvisionState(resource.status))
        return resource

    def _dispatch(
        self,
        platform: PlatformId,
        form: ProjectForm,
        result: ProbeResult,
        choice: ResolutionChoice,
    ) -> Awaitable[ProvisionedResource]:
        match choice:
            case RecordStoreChoice.CREATE_NEW if platform is PlatformId.RECORD_STORE:
                return self._create_record(form)
            case RecordStoreChoice.UPDATE_EXISTING:
                return self._update_record(form, result)
            case TaskBoardChoice.CREATE_NEW if platform is PlatformId.TASK_BOARD:
                return self._create_board(form)
            case TaskBoardChoice.USE_EXISTING:
                return self._use_board(form, result)
            case DocumentStoreChoice.CREATE_NEW if platform is PlatformId.DOCUMENT_STORE:
                return self._create_folder(form)
            case DocumentStoreChoice.RECREATE:
                return self._recreate_folder(form, result)
            case DocumentStoreChoice.KEEP_EXISTING:
                return self._keep_folder(result)
            case _:
                raise ValueError(f"Unsupported choice {choice!r} for {platform}")

    def _require_record_store(self) -> RecordStoreClient:
        if self._record_store is None:
            raise PlatformNotConfiguredError(PlatformId.RECORD_STORE, "no client")
        return self._record_store

    def _require_task_board(self) -> TaskBoardClient:
        if self._task_board is None:
            raise PlatformNotConfiguredError(PlatformId.TASK_BOARD, "no client")
        return self._task_board

    def _require_document_store(self) -> DocumentStoreClient:
        if self._document_store is None:
            raise PlatformNotConfiguredError(PlatformId.DOCUMENT_STORE, "no client")
        return self._document_store

    async def _create_record(self, form: ProjectForm) -> ProvisionedResource:
        client = self._require_record_store()
        ref = await client.create(form)
        followups = _Followups(PlatformId.RECORD_STORE)
        await self._add_record_children(
            client,
            ref.record_id,
            form,
            followups,
            milestones=True,
            assignments=True,
        )
        return ProvisionedResource(
            platform=PlatformId.RECORD_STORE,
            status=ProvisionStatus.CREATED,
            resource_id=ref.record_id,
            url=ref.url,
            details=followups.details,
            warnings=tuple(followups.warnings),
        )

    async def _update_record(self, form: ProjectForm, result: ProbeResult) -> ProvisionedResource:
        client = self._require_record_store()
        record_id = _matched_id(PlatformId.RECORD_STORE, result)
        ref = await client.update(record_id, form)
        followups = _Followups(PlatformId.RECORD_STORE)
        await self._add_record_children(
            client,
            ref.record_id,
            form,
            followups,
            milestones=self._settings.merge_milestones,
            assignments=self._settings.merge_assignments,
        )
        return ProvisionedResource(
            platform=PlatformId.RECORD_STORE,
            status=ProvisionStatus.UPDATED,
            resource_id=ref.record_id,
            url=ref.url,
            details=followups.details,
            warnings=tuple(followups.warnings),
        )

    async def _add_record_children(
        self,
        client: RecordStoreClient,
        record_id: str,
        form: ProjectForm,
        followups: _Followups,
        *,
        milestones: bool,
        assignments: bool,
    ) -> None:
        if milestones and form.named_milestones:
            created = await followups.attempt(
                "Creating milestone records",
                client.create_milestones(record_id, form.named_milestones),
            )
            if created is not None:
                followups.details["milestones_created"] = str(created)
        if assignments and form.roles:
            created = await followups.attempt(
                "Creating assignment records",
                client.create_assignments(record_id, form.roles),
            )
            if created is not None:
                followups.details["assignments_created"] = str(created)

    def _board_items(self, form: ProjectForm) -> tuple[BoardItem, ...]:
        return tuple(
            BoardItem(
                name=milestone.name.strip(),
                notes=milestone.description,
                due_date=milestone.due_date,
                assignee_name=form.milestone_assignee_name(milestone),
            )
            for milestone in form.named_milestones
        )

    async def _create_board(self, form: ProjectForm) -> ProvisionedResource:
        client = self._require_task_board()
        template_id = self._settings.task_board_template(form.project_type)
        if template_id is None:
            raise PlatformNotConfiguredError(PlatformId.TASK_BOARD, "no project template")
        ref = await client.create_from_template(template_id, form)
        followups = _Followups(PlatformId.TASK_BOARD)
        followups.details["template_id"] = template_id
        await self._add_board_items(client, ref.board_id, form, followups)
        return ProvisionedResource(
            platform=PlatformId.TASK_BOARD,
            status=ProvisionStatus.CREATED,
            resource_id=ref.board_id,
            url=ref.url,
            details=followups.details,
            warnings=tuple(followups.warnings),
        )

    async def _use_board(self, form: ProjectForm, result: ProbeResult) -> ProvisionedResource:
        board_id = _matched_id(PlatformId.TASK_BOARD, result)
        followups = _Followups(PlatformId.TASK_BOARD)
        if self._settings.update_milestones:
            await self._add_board_items(self._require_task_board(), board_id, form, followups)
        return ProvisionedResource(
            platform=PlatformId.TASK_BOARD,
            status=ProvisionStatus.UPDATED,
            resource_id=board_id,
            url=result.matched_url,
            details=followups.details,
            warnings=tuple(followups.warnings),
        )

    async def _add_board_items(
        self,
        client: TaskBoardClient,
        board_id: str,
        form: ProjectForm,
        followups: _Followups,
    ) -> None:
        items = self._board_items(form)
        if not items:
            return
        created = await followups.attempt(
            "Creating milestone tasks", client.add_items(board_id, items)
        )
        if created is not None:
            followups.details["tasks_created"] = str(created)

    async def _create_folder(
        self,
        form: ProjectForm,
        *,
        replaced_folder_id: str | None = None,
    ) -> ProvisionedResource:
        client = self._require_document_store()
        folder = await client.create_folder(form.project_name)
        followups = _Followups(PlatformId.DOCUMENT_STORE)
        if replaced_folder_id:
            followups.details["replaced_folder_id"] = replaced_folder_id
        placeholders = build_replacements(
            form,
            today=self._today(),
            tokens=self._settings.placeholder_tokens,
        )
        templates = (
            (
                self._settings.scoping_doc_template_id,
                DocumentKind.DOCUMENT,
                "Scoping Document",
                "scoping_doc_url",
            ),
            (
                self._settings.kickoff_deck_template_id,
                DocumentKind.PRESENTATION,
                "Kickoff Deck",
                "kickoff_deck_url",
            ),
        )
        for template_id, kind, suffix, detail_key in templates:
            if not template_id:
                continue
            document = await followups.attempt(
                f"Creating {suffix.lower()}",
                client.create_from_template(
                    template_id,
                    folder.folder_id,
                    title=f"{form.project_name} - {suffix}",
                    kind=kind,
                    placeholders=placeholders,
                ),
            )
            if document is not None:
                followups.details[detail_key] = document.url
        return ProvisionedResource(
            platform=PlatformId.DOCUMENT_STORE,
            status=ProvisionStatus.CREATED,
            resource_id=folder.folder_id,
            url=folder.url,
            details=followups.details,
            warnings=tuple(followups.warnings),
        )

    async def _recreate_folder(self, form: ProjectForm, result: ProbeResult) -> ProvisionedResource:
        folder_id = _matched_id(PlatformId.DOCUMENT_STORE, result)
        await self._require_document_store().trash_folder(folder_id)
        log.info("Trashed folder %s before recreating it", folder_id)
        return await self._create_folder(form, replaced_folder_id=folder_id)

    async def _keep_folder(self, result: ProbeResult) -> ProvisionedResource:
        return ProvisionedResource(
            platform=PlatformId.DOCUMENT_STORE,
            status=ProvisionStatus.UPDATED,
            resource_id=_matched_id(PlatformId.DOCUMENT_STORE, result),
            url=result.matched_url,
        )

    async def _write_back(
        self,
        resources: Mapping[PlatformId, ProvisionedResource],
    ) -> WriteBackResult:
        record = resources[PlatformId.RECORD_STORE]
        if not record.succeeded or record.resource_id is None:
            return WriteBackResult(attempted=False)

        links = _collect_links(resources)
        if links.is_empty():
            return WriteBackResult(attempted=False)

        try:
            client = self._require_record_store()
            if record.status is ProvisionStatus.LINKED:
                # A pasted record link is only known to be well formed.
                existing = await client.get(record.resource_id)
                log.debug("Linked record %s is %r", existing.record_id, existing.name)
            await client.write_links(record.resource_id, links)
        except Exception as exc:  # noqa: BLE001
            log.warning("Writing links back to record %s failed: %s", record.resource_id, exc)
            return WriteBackResult(attempted=True, succeeded=False, links=links, error=str(exc))
        log.info("Wrote resource links back to record %s", record.resource_id)
        return WriteBackResult(attempted=True, succeeded=True, links=links)


def _matched_id(platform: PlatformId, result: ProbeResult) -> str:
    if result.matched_resource_id is None:
        raise ValueError(f"{platform.label}: no matched resource to reuse")
    return result.matched_resource_id


def _collect_links(resources: Mapping[PlatformId, ProvisionedResource]) -> ResourceLinks:
    board = resources[PlatformId.TASK_BOARD]
    documents = resources[PlatformId.DOCUMENT_STORE]

    folder_url: str | None = None
    scoping_doc_url: str | None = None
    if documents.succeeded and documents.url:
        scoping_doc_url = documents.details.get("scoping_doc_url")
        if "/folders/" in documents.url:
            folder_url = documents.url
        elif scoping_doc_url is None:
            # An operator-supplied document link stands in for the scoping doc.
            scoping_doc_url = documents.url

    return ResourceLinks(
        task_board_url=board.url if board.succeeded else None,
        scoping_doc_url=scoping_doc_url,
        folder_url=folder_url,
    )
