"""Uploads committed to GitHub through the contents API."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterator

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from services.uploader.app.config import Settings
from services.uploader.app.main import create_app

API = "https://github.test"


@pytest.fixture()
def client() -> Iterator[TestClient]:
    settings = Settings(
        repo_owner="octo",
        repo_name="gifts",
        github_token="ghp_test",
        github_api_base=API,
    )
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@respx.mock
def test_upload_commits_files_and_share_descriptor(client: TestClient) -> None:
    respx.get(f"{API}/repos/octo/gifts").mock(
        return_value=httpx.Response(200, json={"default_branch": "trunk"})
    )
    put_route = respx.put(url__startswith=f"{API}/repos/octo/gifts/contents/").mock(
        return_value=httpx.Response(201, json={"content": {}})
    )

    response = client.post(
        "/upload",
        files=[
            ("files", ("photo.jpg", b"\xff\xd8jpeg", "image/jpeg")),
            ("files", ("note.txt", b"hello", "text/plain")),
        ],
    )

    assert response.status_code == 200
    body = response.json()
    share_id = body["id"]
    assert body["pagesURL"] == f"https://octo.github.io/gifts/view.html?share={share_id}"
    files = body["share"]["files"]
    assert [f["name"] for f in files] == ["photo.jpg", "note.txt"]
    assert files[0]["path"] == f"uploads/{share_id}/photo.jpg"
    assert files[0]["url"] == (
        f"https://raw.githubusercontent.com/octo/gifts/trunk/uploads/{share_id}/photo.jpg"
    )

    assert put_route.call_count == 3
    first = json.loads(put_route.calls[0].request.content)
    assert base64.b64decode(first["content"]) == b"\xff\xd8jpeg"
    assert first["branch"] == "trunk"
    descriptor_call = put_route.calls[2].request
    assert descriptor_call.url.path.endswith(f"/shares/{share_id}.json")
    descriptor = json.loads(base64.b64decode(json.loads(descriptor_call.content)["content"]))
    assert descriptor["id"] == share_id
    assert len(descriptor["files"]) == 2


@respx.mock
def test_reserved_url_characters_in_names_are_encoded(client: TestClient) -> None:
    respx.get(f"{API}/repos/octo/gifts").mock(
        return_value=httpx.Response(200, json={"default_branch": "main"})
    )
    put_route = respx.put(url__startswith=f"{API}/repos/octo/gifts/contents/").mock(
        return_value=httpx.Response(201, json={"content": {}})
    )

    response = client.post(
        "/upload",
        files=[
            ("files", ("a#b.png", b"one", "image/png")),
            ("files", ("c?d.png", b"two", "image/png")),
        ],
    )

    assert response.status_code == 200
    share_id = response.json()["id"]
    first, second = (call.request.url for call in put_route.calls[:2])
    assert first.raw_path == f"/repos/octo/gifts/contents/uploads/{share_id}/a%23b.png".encode()
    assert second.raw_path == f"/repos/octo/gifts/contents/uploads/{share_id}/c%3Fd.png".encode()
    assert first.path.endswith("/a#b.png")
    assert second.query == b""
    assert [f["path"] for f in response.json()["share"]["files"]] == [
        f"uploads/{share_id}/a#b.png",
        f"uploads/{share_id}/c?d.png",
    ]


def test_upload_without_files_is_rejected(client: TestClient) -> None:
    response = client.post("/upload", data={"note": "nothing attached"})

    assert response.status_code == 400
    assert response.json() == {"error": "no_files"}


@respx.mock
def test_github_failure_returns_bad_gateway(client: TestClient) -> None:
    respx.get(f"{API}/repos/octo/gifts").mock(return_value=httpx.Response(404))

    response = client.post("/upload", files={"files": ("a.txt", b"a", "text/plain")})

    assert response.status_code == 502
    assert response.json() == {"error": "upload_failed"}


def test_unconfigured_uploader_refuses_uploads() -> None:
    settings = Settings(repo_owner="", repo_name="", github_token="")
    with TestClient(create_app(settings)) as client:
        response = client.post("/upload", files={"files": ("a.txt", b"a", "text/plain")})

    assert response.status_code == 500
    assert response.json() == {"error": "uploader_not_configured"}


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("/etc/photo.jpg", "etc/photo.jpg"), ("//x.png", "x.png"), (None, "file"), ("/", "file")],
)
def test_file_names_lose_leading_slashes(filename: str | None, expected: str) -> None:
    from services.uploader.app.main import _clean_name

    assert _clean_name(filename) == expected
