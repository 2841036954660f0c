from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from kickoff.adapters.google import (
    GoogleAPIError,
    GoogleDriveClient,
    build_folder_query,
    document_url,
    folder_url,
)
from kickoff.config.google import GoogleConfig
from kickoff.config.http_resilience import ResilienceConfig
from kickoff.domain.ports.documents import DocumentKind
from tests.helpers.http import make_client_factory, request_json, static_token

RESILIENCE = ResilienceConfig(name="google-test")


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    shared_drive_id: str | None = "drive1",
    projects_folder_id: str | None = "parent1",
) -> GoogleDriveClient:
    config = GoogleConfig(
        resilience=RESILIENCE,
        shared_drive_id=shared_drive_id,
        projects_folder_id=projects_folder_id,
    )
    return GoogleDriveClient(
        config=config,
        token_provider=static_token,
        client_factory=make_client_factory(handler),
    )


def test_build_folder_query_escapes_quotes() -> None:
    query = build_folder_query("Bob's \\ Project", "parent1")

    assert query == (
        "name='Bob\\'s \\\\ Project' and "
        "mimeType='application/vnd.google-apps.folder' and "
        "trashed=false and 'parent1' in parents"
    )


def test_urls_depend_on_document_kind() -> None:
    assert folder_url("f1") == "https://drive.google.com/drive/folders/f1"
    assert document_url("d1", DocumentKind.DOCUMENT) == "https://docs.google.com/document/d/d1/edit"
    assert (
        document_url("d1", DocumentKind.PRESENTATION)
        == "https://docs.google.com/presentation/d/d1/edit"
    )


def test_find_folders_searches_the_shared_drive() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={
                "files": [
                    {
                        "id": "f1",
                        "name": "Water Quality Dashboard",
                        "webViewLink": "https://drive.google.com/drive/folders/f1?usp=drive",
                    },
                    {"id": "f2", "name": "Water Quality Dashboard"},
                ]
            },
        )

    folders = asyncio.run(_client(handler).find_folders_named(" Water Quality Dashboard "))

    [request] = captured
    params = request.url.params
    assert request.url.path == "/drive/v3/files"
    assert params["q"] == build_folder_query("Water Quality Dashboard", "parent1")
    assert params["corpora"] == "drive"
    assert params["driveId"] == "drive1"
    assert params["supportsAllDrives"] == "true"
    assert request.headers["Authorization"] == "Bearer test-token"
    assert [folder.url for folder in folders] == [
        "https://drive.google.com/drive/folders/f1?usp=drive",
        "https://drive.google.com/drive/folders/f2",
    ]


def test_find_folders_without_shared_drive_uses_default_corpus() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"files": []})

    client = _client(handler, shared_drive_id=None, projects_folder_id=None)
    assert asyncio.run(client.find_folders_named("Dashboard")) == []

    params = captured[0].url.params
    assert "corpora" not in params
    assert "in parents" not in params["q"]


@pytest.mark.parametrize(
    ("projects_folder_id", "expected_parents"),
    [("parent1", ["parent1"]), (None, ["drive1"])],
)
def test_create_folder_places_folder_under_parent(
    projects_folder_id: str | None, expected_parents: list[str]
) -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request_json(request))
        return httpx.Response(200, json={"id": "fldNew", "name": "Dashboard"})

    folder = asyncio.run(
        _client(handler, projects_folder_id=projects_folder_id).create_folder(" Dashboard ")
    )

    assert folder.folder_id == "fldNew"
    assert folder.url == "https://drive.google.com/drive/folders/fldNew"
    assert bodies == [
        {
            "name": "Dashboard",
            "mimeType": "application/vnd.google-apps.folder",
            "parents": expected_parents,
        }
    ]


@pytest.mark.parametrize(
    ("kind", "batch_url"),
    [
        (
            DocumentKind.DOCUMENT,
            "https://docs.googleapis.com/v1/documents/copy1:batchUpdate",
        ),
        (
            DocumentKind.PRESENTATION,
            "https://slides.googleapis.com/v1/presentations/copy1:batchUpdate",
        ),
    ],
)
def test_create_from_template_copies_and_replaces_placeholders(
    kind: DocumentKind, batch_url: str
) -> None:
    captured: list[tuple[str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = request.url
        captured.append((f"{url.scheme}://{url.host}{url.path}", request_json(request)))
        if request.url.path.endswith("/copy"):
            return httpx.Response(200, json={"id": "copy1", "name": "Scoping"})
        return httpx.Response(200, json={"replies": []})

    ref = asyncio.run(
        _client(handler).create_from_template(
            "tmpl1",
            "fld1",
            title="Dashboard - Scoping",
            kind=kind,
            placeholders={"{{PROJECT_NAME}}": "Dashboard"},
        )
    )

    assert ref.document_id == "copy1"
    assert ref.url == document_url("copy1", kind)
    assert captured == [
        (
            "https://www.googleapis.com/drive/v3/files/tmpl1/copy",
            {"name": "Dashboard - Scoping", "parents": ["fld1"]},
        ),
        (
            batch_url,
            {
                "requests": [
                    {
                        "replaceAllText": {
                            "containsText": {"text": "{{PROJECT_NAME}}", "matchCase": True},
                            "replaceText": "Dashboard",
                        }
                    }
                ]
            },
        ),
    ]


def test_create_from_template_without_placeholders_only_copies() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"id": "copy1"})

    asyncio.run(
        _client(handler).create_from_template(
            "tmpl1", "fld1", title="Deck", kind=DocumentKind.PRESENTATION, placeholders={}
        )
    )

    assert calls == ["/drive/v3/files/tmpl1/copy"]


def test_trash_folder_patches_trashed_flag() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "fld1", "trashed": True})

    asyncio.run(_client(handler).trash_folder("fld1"))

    [request] = captured
    assert request.method == "PATCH"
    assert request.url.path == "/drive/v3/files/fld1"
    assert request_json(request) == {"trashed": True}


def test_error_message_comes_from_error_body() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={
                "error": {"code": 404, "message": "File not found: tmpl1.", "status": "NOT_FOUND"}
            },
        )

    with pytest.raises(GoogleAPIError) as exc:
        asyncio.run(
            _client(handler).create_from_template(
                "tmpl1", "fld1", title="Doc", kind=DocumentKind.DOCUMENT, placeholders={}
            )
        )

    assert str(exc.value) == "File not found: tmpl1."
    assert exc.value.status_code == 404
