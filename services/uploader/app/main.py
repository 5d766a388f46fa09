"""FastAPI application storing uploaded files in a GitHub repository."""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import Depends, FastAPI, File, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware

from libs.errors import ServiceError, install_service_error_handler
from libs.observability.logging import RequestContextMiddleware, configure_logging
from libs.observability.metrics import setup_metrics

from .config import Settings, get_settings
from .github import GitHubContentsClient

configure_logging("uploader")

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        if app.state.github is not None:
            await app.state.github.close()


def get_github(request: Request) -> GitHubContentsClient:
    github: GitHubContentsClient | None = request.app.state.github
    if github is None:
        raise ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, "uploader_not_configured")
    return github


def _clean_name(filename: str | None) -> str:
    return (filename or "file").lstrip("/") or "file"


def create_app(
    settings: Settings | None = None, *, github: GitHubContentsClient | None = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Uploader", version="0.1.0", lifespan=lifespan)
    if github is None and settings.configured:
        github = GitHubContentsClient(
            settings.github_token,
            settings.repo_owner,
            settings.repo_name,
            base_url=settings.github_api_base,
            timeout=settings.http_timeout_seconds,
        )
    elif github is None:
        logger.warning("uploader missing REPO_OWNER, REPO_NAME or GITHUB_TOKEN")
    app.state.settings = settings
    app.state.github = github

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware, service_name=settings.service_name)
    setup_metrics(app, service_name=settings.service_name)
    install_service_error_handler(app)

    @app.post("/upload")
    async def upload(
        files: list[UploadFile] | None = File(None),
        github: GitHubContentsClient = Depends(get_github),
    ) -> dict[str, Any]:
        if not files:
            raise ServiceError(status.HTTP_400_BAD_REQUEST, "no_files")

        share_id = uuid.uuid4().hex
        try:
            branch = await github.default_branch()
            raw_base = github.raw_base(branch)
            uploaded = []
            for upload_file in files:
                name = _clean_name(upload_file.filename)
                path = f"uploads/{share_id}/{name}"
                await github.put_file(
                    path, await upload_file.read(), message=f"Add uploaded file {path}", branch=branch
                )
                uploaded.append(
                    {"name": name, "path": path, "url": f"{raw_base}uploads/{share_id}/{quote(name)}"}
                )

            share = {
                "id": share_id,
                "created_at": datetime.now(tz=timezone.utc).isoformat(),
                "files": uploaded,
            }
            share_path = f"shares/{share_id}.json"
            await github.put_file(
                share_path,
                json.dumps(share, indent=2).encode("utf-8"),
                message=f"Add share descriptor {share_path}",
                branch=branch,
            )
        except httpx.HTTPError as exc:
            logger.error("github upload failed", extra={"share_id": share_id, "error": repr(exc)})
            raise ServiceError(status.HTTP_502_BAD_GATEWAY, "upload_failed") from exc

        logger.info("upload stored", extra={"share_id": share_id, "files": len(uploaded)})
        return {
            "id": share_id,
            "pagesURL": f"{settings.pages_base}/view.html?share={share_id}",
            "share": share,
        }

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


__all__ = ["app", "create_app"]
