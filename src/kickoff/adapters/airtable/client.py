"""HTTP client for the Airtable REST API."""

from __future__ import annotations

from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

from pydantic import ValidationError

from kickoff.adapters.platform_http import default_client_factory, request_json
from kickoff.config.airtable import AIRTABLE_APP_URL
from kickoff.domain.errors import TransportError
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.records import RecordRef, RecordSummary

from .schema import RecordListResponse, RecordPayload, describe_error

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from kickoff.adapters.http_resilience import ResilientClient
    from kickoff.adapters.platform_http import ClientFactory, TokenProvider
    from kickoff.config.airtable import AirtableConfig
    from kickoff.domain.form import Milestone, ProjectForm, RoleAssignment
    from kickoff.domain.ports.records import ResourceLinks

log = getLogger(__name__)

# Airtable accepts at most ten records per create request.
BATCH_SIZE = 10


class AirtableAPIError(TransportError):
    """Raised when the Airtable API returns an error or an unexpected payload."""


def escape_formula_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_search_formula(name: str, field: str) -> str:
    """Formula matching records whose ``field`` contains ``name`` or vice versa."""

    literal = escape_formula_string(name.strip())
    return (
        f'OR(FIND(LOWER("{literal}"), LOWER({{{field}}})) > 0, '
        f'FIND(LOWER({{{field}}}), LOWER("{literal}")) > 0)'
    )


class AirtableClient:
    """Record store backed by an Airtable base."""

    def __init__(
        self,
        *,
        config: AirtableConfig,
        token_provider: TokenProvider,
        client_factory: ClientFactory | None = None,
        update_fields: Collection[str] = (),
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._token_provider = token_provider
        self._client_factory = client_factory or default_client_factory
        self._update_fields = frozenset(update_fields)

    def record_url(self, record_id: str) -> str:
        table = self._config.projects_table_id or quote(self._config.projects_table)
        parts = [AIRTABLE_APP_URL, self._config.base_id, table]
        if self._config.projects_table_id and self._config.projects_view_id:
            parts.append(self._config.projects_view_id)
        parts.append(record_id)
        return "/".join(parts)

    async def search(self, name: str) -> list[RecordSummary]:
        name_field = self._config.project_fields.name
        params = {
            "filterByFormula": build_search_formula(name, name_field),
            "maxRecords": str(self._config.search_limit),
        }
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client, "GET", self._table_path(self._config.projects_table), params=params
            )
        response = self._validate(RecordListResponse, payload)
        log.debug("Airtable search for %r returned %d record(s)", name, len(response.records))
        return [self._summary(record) for record in response.records]

    async def get(self, record_id: str) -> RecordSummary:
        path = f"{self._table_path(self._config.projects_table)}/{record_id}"
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(client, "GET", path)
        return self._summary(self._validate(RecordPayload, payload))

    async def create(self, form: ProjectForm) -> RecordRef:
        fields = self._project_fields(form)
        fields[self._config.project_fields.status] = self._config.default_status
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client,
                "POST",
                self._table_path(self._config.projects_table),
                json={"fields": fields},
            )
        record = self._validate(RecordPayload, payload)
        log.info("Created Airtable project record %s", record.id)
        return RecordRef(record_id=record.id, url=self.record_url(record.id))

    async def update(self, record_id: str, form: ProjectForm) -> RecordRef:
        fields = self._project_fields(form, only=self._update_fields or None)
        path = f"{self._table_path(self._config.projects_table)}/{record_id}"
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(client, "PATCH", path, json={"fields": fields})
        record = self._validate(RecordPayload, payload)
        log.info("Updated Airtable project record %s (%d field(s))", record.id, len(fields))
        return RecordRef(record_id=record.id, url=self.record_url(record.id))

    async def create_milestones(self, record_id: str, milestones: Sequence[Milestone]) -> int:
        names = self._config.milestone_fields
        records = [
            {
                "fields": {
                    names.name: milestone.name.strip(),
                    names.description: milestone.description,
                    names.due_date: milestone.due_date.isoformat() if milestone.due_date else None,
                    names.project_link: [record_id],
                }
            }
            for milestone in milestones
            if milestone.name.strip()
        ]
        return await self._create_batched(self._config.milestones_table, records)

    async def create_assignments(self, record_id: str, roles: Sequence[RoleAssignment]) -> int:
        names = self._config.assignment_fields
        records: list[dict[str, object]] = []
        for assignment in roles:
            if not assignment.member_id:
                continue
            fields: dict[str, object] = {
                names.role: self._config.role_value(assignment.role),
                names.team_member_link: [assignment.member_id],
                names.project_link: [record_id],
            }
            if assignment.fte is not None:
                fields[names.fte] = assignment.fte
            records.append({"fields": fields})
        return await self._create_batched(self._config.assignments_table, records)

    async def write_links(self, record_id: str, links: ResourceLinks) -> None:
        names = self._config.project_fields
        fields = {
            field: value
            for field, value in (
                (names.task_board_url, links.task_board_url),
                (names.scoping_doc_url, links.scoping_doc_url),
                (names.folder_url, links.folder_url),
            )
            if value
        }
        if not fields:
            return
        path = f"{self._table_path(self._config.projects_table)}/{record_id}"
        async with self._client_factory(self._resilience) as client:
            await self._request(client, "PATCH", path, json={"fields": fields})
        log.info("Wrote %d link field(s) to Airtable record %s", len(fields), record_id)

    async def _create_batched(self, table: str, records: Sequence[dict[str, object]]) -> int:
        if not records:
            return 0
        created = 0
        async with self._client_factory(self._resilience) as client:
            for batch in batched(records, BATCH_SIZE):
                payload = await self._request(
                    client, "POST", self._table_path(table), json={"records": list(batch)}
                )
                created += len(self._validate(RecordListResponse, payload).records)
        log.info("Created %d record(s) in Airtable table %s", created, table)
        return created

    def _project_fields(
        self,
        form: ProjectForm,
        *,
        only: Collection[str] | None = None,
    ) -> dict[str, object]:
        values: dict[str, object] = {
            "name": form.project_name,
            "acronym": form.acronym,
            "description": form.description,
            "objectives": form.objectives,
            "start_date": form.start_date.isoformat() if form.start_date else None,
            "end_date": form.end_date.isoformat() if form.end_date else None,
        }
        # Linked record fields take arrays of record ids.
        if form.funder_id:
            values["funder"] = [form.funder_id]
        if form.parent_initiative_id:
            values["parent_initiative"] = [form.parent_initiative_id]
        if form.project_type:
            values["project_type"] = form.project_type

        names = self._config.project_fields
        return {
            getattr(names, key): value
            for key, value in values.items()
            if only is None or key in only
        }

    def _summary(self, record: RecordPayload) -> RecordSummary:
        return RecordSummary(
            record_id=record.id,
            name=record.text_field(self._config.project_fields.name),
            url=self.record_url(record.id),
            created_at=record.created_time,
        )

    def _table_path(self, table: str) -> str:
        return f"{self._config.base_id}/{quote(table, safe='')}"

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
    ) -> object:
        return await request_json(
            client,
            method,
            path,
            platform=PlatformId.RECORD_STORE,
            token_provider=self._token_provider,
            error_type=AirtableAPIError,
            describe_error=describe_error,
            params=params,
            json=json,
        )

    @staticmethod
    def _validate[M: (RecordPayload, RecordListResponse)](model: type[M], payload: object) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise AirtableAPIError(
                PlatformId.RECORD_STORE, f"Unexpected Airtable response payload: {exc}"
            ) from exc

