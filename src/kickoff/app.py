"""Application wiring and synchronous entry points."""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from kickoff.adapters.airtable import AirtableClient
from kickoff.adapters.asana import AsanaClient, is_template_payload
from kickoff.adapters.google import GoogleDriveClient
from kickoff.adapters.oauth_relay import OAuthRelayClient
from kickoff.adapters.token_store import JsonFileTokenStore
from kickoff.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_airtable_config,
    get_asana_config,
    get_duplicates_config,
    get_google_config,
    get_oauth_relay_config,
    get_storage_config,
    load_integration_settings,
)
from kickoff.domain.aggregator import DuplicateAggregator
from kickoff.domain.errors import (
    InputValidationError,
    ProvisioningInProgressError,
    UnresolvedDuplicatesError,
)
from kickoff.domain.orchestrator import ProvisioningOrchestrator, ProvisioningSettings
from kickoff.domain.platforms import PlatformId
from kickoff.domain.probes import DocumentStoreProbe, RecordStoreProbe, TaskBoardProbe
from kickoff.domain.resolution import (
    DuplicateDefaults,
    ResolutionPolicy,
    ResolutionSession,
    get_default_resolutions,
)
from kickoff.domain.tokens import TokenLifecycleManager

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kickoff.adapters.platform_http import ClientFactory
    from kickoff.config import DuplicatesConfig, IntegrationSettings
    from kickoff.domain.form import ExistingUrls, ProjectForm
    from kickoff.domain.outcome import ProvisioningOutcome
    from kickoff.domain.ports.credentials import TokenRelay, TokenStore
    from kickoff.domain.probes import PlatformProbe
    from kickoff.domain.report import DuplicateReport
    from kickoff.domain.resolution import ResolutionChoice, ResolutionPlan
    from kickoff.domain.tokens import ConnectionState, TokenRecord

log = getLogger(__name__)


class ProjectProvisioningService:
    """Entry point for callers: check, resolve, then provision one submission."""

    def __init__(
        self,
        *,
        aggregator: DuplicateAggregator,
        policy: ResolutionPolicy,
        orchestrator: ProvisioningOrchestrator,
        tokens: TokenLifecycleManager,
    ) -> None:
        self._aggregator = aggregator
        self._policy = policy
        self._orchestrator = orchestrator
        self._tokens = tokens
        self._in_flight: dict[str, asyncio.Task[ProvisioningOutcome]] = {}

    @property
    def tokens(self) -> TokenLifecycleManager:
        return self._tokens

    @property
    def policy(self) -> ResolutionPolicy:
        return self._policy

    async def check_all(
        self,
        candidate_name: str,
        existing_urls: ExistingUrls | None = None,
    ) -> DuplicateReport:
        return await self._aggregator.check_all(candidate_name, existing_urls)

    def validate(self, choice: ResolutionChoice, report: DuplicateReport) -> None:
        self._policy.validate(choice, report)

    def default_resolutions(self) -> ResolutionPlan:
        return get_default_resolutions(self._policy.defaults)

    def open_session(self, report: DuplicateReport) -> ResolutionSession:
        return ResolutionSession(self._policy, report)

    async def execute(
        self,
        form: ProjectForm,
        report: DuplicateReport,
        plan: ResolutionPlan,
    ) -> ProvisioningOutcome:
        """Provision ``form``; a second run for the same submission is refused.

        The run itself is shielded: cancelling the caller does not abandon a
        half-provisioned project, the run finishes and keeps its outcome.
        """

        key = form.submission_key
        if key in self._in_flight:
            raise ProvisioningInProgressError(key)
        task = asyncio.create_task(
            self._orchestrator.execute(form, report, plan), name=f"provision-{key}"
        )
        self._in_flight[key] = task
        task.add_done_callback(partial(self._forget_run, key))
        return await asyncio.shield(task)

    def is_running(self, form: ProjectForm) -> bool:
        return form.submission_key in self._in_flight

    def _forget_run(self, key: str, task: asyncio.Task[ProvisioningOutcome]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled() and task.exception() is not None:
            log.debug("Provisioning run %r ended with an error", key)


def duplicate_defaults(config: DuplicatesConfig) -> DuplicateDefaults:
    try:
        return DuplicateDefaults.from_values(
            enabled=config.enabled,
            record_store=config.record_store_default,
            task_board=config.task_board_default,
            document_store=config.document_store_default,
            allow_recreate=config.allow_recreate,
        )
    except InputValidationError as exc:
        raise ConfigurationError(f"Invalid duplicate default: {exc}") from exc


def build_service(
    *,
    settings: IntegrationSettings | None = None,
    token_store: TokenStore | None = None,
    relay: TokenRelay | None = None,
    client_factory: ClientFactory | None = None,
) -> ProjectProvisioningService:
    """Wire the configured platforms into a service.

    A platform whose required configuration is missing is left out: its probe
    reports ``not_configured`` and provisioning it fails with a clear error.
    """

    settings = settings or load_integration_settings()
    store = token_store or JsonFileTokenStore.from_storage(get_storage_config())
    relay = relay or OAuthRelayClient(
        config=get_oauth_relay_config(), client_factory=client_factory
    )
    tokens = TokenLifecycleManager(store=store, relay=relay)

    duplicates = get_duplicates_config(settings.section("duplicates"))
    policy = ResolutionPolicy(duplicate_defaults(duplicates))

    record_store: AirtableClient | None = None
    try:
        airtable = get_airtable_config(settings.section("airtable"))
    except MissingConfigurationError as exc:
        log.warning("Airtable is not configured: %s", exc)
    else:
        record_store = AirtableClient(
            config=airtable,
            token_provider=tokens.token_provider(PlatformId.RECORD_STORE),
            client_factory=client_factory,
            update_fields=duplicates.update_fields,
        )

    task_board: AsanaClient | None = None
    default_template: str | None = None
    templates: dict[str, str] = {}
    try:
        asana = get_asana_config(settings.section("asana"), cache_predicate=is_template_payload)
    except MissingConfigurationError as exc:
        log.warning("Asana is not configured: %s", exc)
    else:
        task_board = AsanaClient(
            config=asana,
            token_provider=tokens.token_provider(PlatformId.TASK_BOARD),
            client_factory=client_factory,
        )
        default_template = asana.default_template_gid
        templates = dict(asana.templates)

    google = get_google_config(settings.section("google"))
    document_store = GoogleDriveClient(
        config=google,
        token_provider=tokens.token_provider(PlatformId.DOCUMENT_STORE),
        client_factory=client_factory,
    )

    probes: list[PlatformProbe] = [DocumentStoreProbe(document_store)]
    if record_store is not None:
        probes.append(RecordStoreProbe(record_store))
    if task_board is not None:
        probes.append(TaskBoardProbe(task_board))

    orchestrator = ProvisioningOrchestrator(
        policy=policy,
        record_store=record_store,
        task_board=task_board,
        document_store=document_store,
        settings=ProvisioningSettings(
            default_task_board_template=default_template,
            task_board_templates=templates,
            scoping_doc_template_id=google.scoping_doc_template_id,
            kickoff_deck_template_id=google.kickoff_deck_template_id,
            placeholder_tokens=asdict(google.placeholders),
            update_milestones=duplicates.update_milestones,
            merge_milestones=duplicates.merge_milestones,
            merge_assignments=duplicates.merge_assignments,
        ),
    )
    return ProjectProvisioningService(
        aggregator=DuplicateAggregator(probes=probes, enabled=duplicates.enabled),
        policy=policy,
        orchestrator=orchestrator,
        tokens=tokens,
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisioningRun:
    """What a provisioning request decided and, unless it was a dry run, did."""

    report: DuplicateReport
    plan: ResolutionPlan
    outcome: ProvisioningOutcome | None = None


def check_project(
    candidate_name: str,
    existing_urls: ExistingUrls | None = None,
    *,
    service: ProjectProvisioningService | None = None,
) -> DuplicateReport:
    """Check every platform for projects matching ``candidate_name``."""

    effective = service or build_service()
    return asyncio.run(effective.check_all(candidate_name, existing_urls))


async def run_provisioning(
    service: ProjectProvisioningService,
    form: ProjectForm,
    *,
    overrides: Iterable[ResolutionChoice] = (),
    dry_run: bool = False,
) -> ProvisioningRun:
    """Resolve and provision ``form``; existing matches need an explicit override."""

    report = await service.check_all(form.project_name, form.existing_urls)
    session = service.open_session(report)
    for choice in overrides:
        session.choose(choice)
    plan = session.plan
    log.info("Resolution plan for %r: %s", form.project_name, dict(plan.items()))
    if dry_run:
        return ProvisioningRun(report=report, plan=plan)
    undecided = session.undecided()
    if undecided:
        raise UnresolvedDuplicatesError(undecided)
    outcome = await service.execute(form, report, plan)
    return ProvisioningRun(report=report, plan=plan, outcome=outcome)


def provision_project(
    form: ProjectForm,
    *,
    overrides: Iterable[ResolutionChoice] = (),
    dry_run: bool = False,
    service: ProjectProvisioningService | None = None,
) -> ProvisioningRun:
    """Check for duplicates, resolve them and provision ``form``."""

    effective = service or build_service()
    return asyncio.run(
        run_provisioning(effective, form, overrides=overrides, dry_run=dry_run)
    )


def connect_platform(
    platform: PlatformId,
    code: str,
    *,
    state: str | None = None,
    service: ProjectProvisioningService | None = None,
) -> TokenRecord:
    effective = service or build_service()
    return asyncio.run(effective.tokens.connect(platform, code, state=state))


def disconnect_platform(
    platform: PlatformId,
    *,
    service: ProjectProvisioningService | None = None,
) -> None:
    effective = service or build_service()
    effective.tokens.disconnect(platform)


def connection_status(
    *,
    service: ProjectProvisioningService | None = None,
) -> dict[PlatformId, ConnectionState]:
    effective = service or build_service()
    return effective.tokens.connection_status()
