"""Configuration schema for git-drive using Pydantic.

One flat settings model covering:
- the git remote (owner/repo or explicit url, remote name, ssh key)
- the local working copy and commit identity
- pipeline timing and queue sizes
- the HTTP server
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_HOME = Path.home() / ".gitdrive"


class DriveSettings(BaseModel):
    """git-drive configuration.

    Configuration priority (highest to lowest):
    1. CLI overrides
    2. Environment variables (GITDRIVE_*)
    3. User config (~/.gitdrive/config.json)
    4. Field defaults
    """

    # Remote
    owner: str | None = Field(None, description="Repository owner on GitHub")
    repo: str | None = Field(None, description="Repository name on GitHub")
    url: str | None = Field(None, description="Explicit remote URL (overrides owner/repo)")
    remote: str = Field("origin", description="Remote name")
    ssh_key: str | None = Field(None, description="SSH private key path handed to git")

    # Working copy
    path: str | None = Field(None, description="Local working copy (default ~/.gitdrive/<repo>)")
    author_name: str | None = Field(None, description="Commit author name")
    author_email: str | None = Field(None, description="Commit author email")

    # Pipeline
    push_interval: float = Field(5.0, gt=0, description="Seconds between batched pushes")
    pull_interval: float = Field(1.0, gt=0, description="Minimum seconds between idle pulls")
    queue_size: int = Field(20, ge=1, description="Committed operations batched per push")
    inbound_size: int = Field(20, ge=1, description="Submitted commands waiting for the dispatcher")

    # Server
    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(8080, gt=0, lt=65536, description="Bind port")
    log_level: str = Field("info", description="Log level (debug/info/warning/error)")

    @field_validator("ssh_key", "path")
    @classmethod
    def expand_user(cls, v: str | None) -> str | None:
        if not v:
            return None
        return str(Path(v).expanduser())

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.lower()
        if level not in ("critical", "error", "warning", "info", "debug"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_remote(self) -> DriveSettings:
        """A remote URL must be derivable; the working copy defaults next to it."""
        if not self.url and not (self.owner and self.repo):
            raise ValueError("No remote configured. Set url, or both owner and repo.")
        if self.path is None:
            name = self.repo or Path(self.url.rstrip("/")).stem
            self.path = str(DEFAULT_HOME / name)
        return self

    @property
    def remote_url(self) -> str:
        """Explicit url, else GitHub ssh url when a key is set, else https."""
        if self.url:
            return self.url
        if self.ssh_key:
            return f"git@github.com:{self.owner}/{self.repo}.git"
        return f"https://github.com/{self.owner}/{self.repo}"
