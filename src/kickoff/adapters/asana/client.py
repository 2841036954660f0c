"""HTTP client for the Asana REST API."""

from __future__ import annotations

from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from kickoff.adapters.platform_http import default_client_factory, request_json
from kickoff.domain.errors import TransportError
from kickoff.domain.platforms import PlatformId
from kickoff.domain.ports.boards import BoardRef, BoardSummary

from .roles import build_requested_roles, find_best_user_match
from .schema import (
    InstantiateResponse,
    TaskResponse,
    TemplateResponse,
    TypeaheadResponse,
    UsersResponse,
    WorkspaceUser,
    describe_error,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from httpx._types import QueryParamTypes

    from kickoff.adapters.http_resilience import ResilientClient
    from kickoff.adapters.platform_http import ClientFactory, TokenProvider
    from kickoff.config.asana import AsanaConfig
    from kickoff.domain.form import ProjectForm
    from kickoff.domain.ports.boards import BoardItem

log = getLogger(__name__)

ASANA_APP_URL = "https://app.asana.com/0"
TYPEAHEAD_COUNT = 10
USERS_PAGE_SIZE = 100


class AsanaAPIError(TransportError):
    """Raised when the Asana API returns an error or an unexpected payload."""


def project_url(project_gid: str) -> str:
    return f"{ASANA_APP_URL}/{project_gid}/list"


class AsanaClient:
    """Task board backed by an Asana workspace."""

    def __init__(
        self,
        *,
        config: AsanaConfig,
        token_provider: TokenProvider,
        client_factory: ClientFactory | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._token_provider = token_provider
        self._client_factory = client_factory or default_client_factory
        self._today = today

    async def typeahead_search(self, name: str) -> list[BoardSummary]:
        params = {
            "resource_type": "project",
            "query": name.strip(),
            "count": str(TYPEAHEAD_COUNT),
            "opt_fields": "name,permalink_url",
        }
        async with self._client_factory(self._resilience) as client:
            payload = await self._request(
                client, "GET", f"workspaces/{self._config.workspace_gid}/typeahead", params=params
            )
        response = self._validate(TypeaheadResponse, payload)
        log.debug("Asana typeahead for %r returned %d project(s)", name, len(response.data))
        return [
            BoardSummary(
                board_id=project.gid,
                name=project.name,
                url=project.permalink_url or project_url(project.gid),
            )
            for project in response.data
        ]

    async def create_from_template(self, template_id: str, form: ProjectForm) -> BoardRef:
        async with self._client_factory(self._resilience) as client:
            template_payload = await self._request(
                client,
                "GET",
                f"project_templates/{template_id}",
                params={"opt_fields": "name,requested_dates,requested_roles"},
            )
            template = self._validate(TemplateResponse, template_payload).data

            requested_roles: list[dict[str, str]] = []
            if template.requested_roles and form.roles:
                users = await self._workspace_users(client)
                role_users = [
                    (assignment.role, match.user.gid)
                    for assignment in form.roles
                    if (match := find_best_user_match(assignment.member_name, users)) is not None
                ]
                requested_roles = build_requested_roles(template.requested_roles, role_users)

            start = (form.start_date or self._today()).isoformat()
            body = {
                "data": {
                    "name": form.project_name,
                    "team": self._config.team_gid,
                    "public": False,
                    "requested_dates": [
                        {"gid": requested.gid, "value": start}
                        for requested in template.requested_dates
                    ],
                    "requested_roles": requested_roles,
                }
            }
            payload = await self._request(
                client, "POST", f"project_templates/{template_id}/instantiateProject", json=body
            )

        job = self._validate(InstantiateResponse, payload).data
        if job.new_project is None:
            raise AsanaAPIError(
                PlatformId.TASK_BOARD,
                f"Asana did not return the project created from template {template_id}",
            )
        gid = job.new_project.gid
        log.info(
            "Instantiated Asana project %s from template %r (%d role(s) filled)",
            gid,
            template.name,
            len(requested_roles),
        )
        return BoardRef(board_id=gid, url=project_url(gid))

    async def add_items(self, board_id: str, items: Sequence[BoardItem]) -> int:
        if not items:
            return 0
        created = 0
        async with self._client_factory(self._resilience) as client:
            users: list[WorkspaceUser] = []
            if any(item.assignee_name for item in items):
                users = await self._workspace_users(client)
            for item in items:
                data: dict[str, object] = {
                    "name": item.name.strip(),
                    "notes": item.notes,
                    "due_on": item.due_date.isoformat() if item.due_date else None,
                    "projects": [board_id],
                }
                if item.assignee_name:
                    match = find_best_user_match(item.assignee_name, users)
                    if match is not None:
                        data["assignee"] = match.user.gid
                    else:
                        log.warning(
                            "No Asana user matches %r; task left unassigned", item.assignee_name
                        )
                payload = await self._request(client, "POST", "tasks", json={"data": data})
                self._validate(TaskResponse, payload)
                created += 1
        log.info("Added %d task(s) to Asana project %s", created, board_id)
        return created

    async def _workspace_users(self, client: ResilientClient) -> list[WorkspaceUser]:
        users: list[WorkspaceUser] = []
        offset: str | None = None
        while True:
            params = {"opt_fields": "name,email", "limit": str(USERS_PAGE_SIZE)}
            if offset:
                params["offset"] = offset
            payload = await self._request(
                client, "GET", f"workspaces/{self._config.workspace_gid}/users", params=params
            )
            page = self._validate(UsersResponse, payload)
            users.extend(page.data)
            if page.next_page is None:
                return users
            offset = page.next_page.offset

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: QueryParamTypes | None = None,
        json: object = None,
    ) -> object:
        return await request_json(
            client,
            method,
            path,
            platform=PlatformId.TASK_BOARD,
            token_provider=self._token_provider,
            error_type=AsanaAPIError,
            describe_error=describe_error,
            params=params,
            json=json,
        )

    @staticmethod
    def _validate[M: BaseModel](model: type[M], payload: object) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise AsanaAPIError(
                PlatformId.TASK_BOARD, f"Unexpected Asana response payload: {exc}"
            ) from exc
