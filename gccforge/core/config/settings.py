"""
Settings model — operator-specific paths and side-channel credentials.

Everything that used to be a hard-coded home directory or account
name lives here and comes from ``gccforge.yml`` and the environment.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from gccforge.core.data.constants import (
    DEFAULT_LOG_FILE,
    PATCHES_DIR,
    PREBUILTS_DIR,
    SOURCES_DIR,
)


class NotifySettings(BaseModel):
    """Telegram bot used to ship logs and release notes."""

    bot_token: str | None = None
    chat_id: str | None = None      # receives the run log
    channel_id: str | None = None   # receives release announcements
    api_base: str = "https://api.telegram.org"

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class PublishSettings(BaseModel):
    """Repository the finished toolchain is pushed to in release mode.

    ``repository`` and ``commit_url`` are format templates with the
    ``{target}``, ``{token}`` and ``{sha}`` placeholders.
    """

    repository: str | None = None
    commit_url: str | None = None
    token: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    keep: list[str] = Field(default_factory=lambda: ["README.md"])

    @property
    def enabled(self) -> bool:
        return bool(self.repository)


class Settings(BaseModel):
    """Resolved runtime settings."""

    workdir: Path = Field(default_factory=Path.cwd)
    sources_dir: Path | None = None
    prebuilts_dir: Path | None = None
    patches_dir: Path | None = None
    tool_cache_dir: Path = Path("/tmp/sources")
    bind_root: Path | None = None
    log_file: str = DEFAULT_LOG_FILE
    timezone: str | None = None
    notify: NotifySettings = Field(default_factory=NotifySettings)
    publish: PublishSettings = Field(default_factory=PublishSettings)

    @property
    def root(self) -> Path:
        return self.workdir.resolve()

    @property
    def sources_path(self) -> Path:
        return self._under_root(self.sources_dir, SOURCES_DIR)

    @property
    def prebuilts_path(self) -> Path:
        return self._under_root(self.prebuilts_dir, PREBUILTS_DIR)

    @property
    def patches_path(self) -> Path:
        return self._under_root(self.patches_dir, PATCHES_DIR)

    @property
    def log_path(self) -> Path:
        return self._under_root(Path(self.log_file), self.log_file)

    def _under_root(self, configured: Path | None, default: str) -> Path:
        path = configured if configured is not None else Path(default)
        return path if path.is_absolute() else self.root / path
