"""Client for writing files through the GitHub contents API."""

from __future__ import annotations

import base64
from typing import Any
from urllib.parse import quote

import httpx


class GitHubContentsClient:
    """Minimal GitHub REST client committing files to one repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "token-uploader",
            },
            timeout=timeout,
        )
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def default_branch(self) -> str:
        response = await self._client.get(f"/repos/{self.owner}/{self.repo}")
        response.raise_for_status()
        return response.json().get("default_branch") or "main"

    async def put_file(self, path: str, content: bytes, *, message: str, branch: str) -> dict[str, Any]:
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        response = await self._client.put(
            f"/repos/{self.owner}/{self.repo}/contents/{quote(path, safe='/')}", json=payload
        )
        response.raise_for_status()
        return response.json()

    def raw_base(self, branch: str) -> str:
        return f"https://raw.githubusercontent.com/{self.owner}/{self.repo}/{branch}/"
