"""Settings for the uploader service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    repo_owner: str = Field("", description="Owner of the repository receiving uploads")
    repo_name: str = Field("", description="Repository receiving uploads")
    github_token: str = Field("", description="Token with contents write access", repr=False)
    github_api_base: str = Field("https://api.github.com", description="GitHub REST API root")
    http_timeout_seconds: float = Field(10.0, gt=0, description="Timeout for GitHub calls")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    service_name: str = Field("uploader", description="Service identifier used for logging")

    class Config:
        case_sensitive = False
        frozen = True

    @property
    def configured(self) -> bool:
        return bool(self.repo_owner and self.repo_name and self.github_token)

    @property
    def pages_base(self) -> str:
        return f"https://{self.repo_owner}.github.io/{self.repo_name}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
