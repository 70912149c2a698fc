"""Shared fakes for the test suite."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from worktree_colors.exceptions import ConfigurationWriteError
from worktree_colors.models import RepoContext, WorktreeEntry
from worktree_colors.store import ConfigurationTarget, SettingInspection


class MemorySection:
    """In-memory SettingsSection with separate workspace and global values."""

    def __init__(self, workspace: dict[str, Any] | None = None, global_values: dict[str, Any] | None = None):
        self.workspace_values = copy.deepcopy(workspace or {})
        self.global_values = copy.deepcopy(global_values or {})
        self.writes: list[tuple[str, Any]] = []
        self.fail_writes = False

    def get(self, key: str, default: Any = None) -> Any:
        inspection = self.inspect(key)
        if inspection.workspace_value is not None:
            return inspection.workspace_value
        if inspection.global_value is not None:
            return inspection.global_value
        return default

    def inspect(self, key: str) -> SettingInspection:
        return SettingInspection(
            key=key,
            global_value=copy.deepcopy(self.global_values.get(key)),
            workspace_value=copy.deepcopy(self.workspace_values.get(key)),
        )

    async def update(
        self,
        key: str,
        value: Any,
        target: ConfigurationTarget = ConfigurationTarget.WORKSPACE,
    ) -> None:
        if self.fail_writes:
            raise ConfigurationWriteError("store rejected the update")
        self.writes.append((key, copy.deepcopy(value)))
        if value is None:
            self.workspace_values.pop(key, None)
        else:
            self.workspace_values[key] = copy.deepcopy(value)


class FakeProvider:
    """RepoMetadataProvider returning canned answers."""

    def __init__(
        self,
        remote: str | None = None,
        top_level: Path | None = None,
        worktrees: list[Path] | None = None,
    ):
        self.remote = remote
        self.top = top_level
        self.worktrees = worktrees or []
        self.calls: list[tuple[str, Path]] = []

    async def remote_url(self, path: Path) -> str | None:
        self.calls.append(("remote_url", path))
        return self.remote

    async def top_level(self, path: Path) -> Path | None:
        self.calls.append(("top_level", path))
        return self.top

    async def worktree_list(self, path: Path) -> list[WorktreeEntry]:
        self.calls.append(("worktree_list", path))
        return [WorktreeEntry(path=item) for item in self.worktrees]


class FakeResolver:
    """GitContextResolver stand-in keyed by path."""

    def __init__(
        self,
        folders: dict[Path, RepoContext] | None = None,
        files: dict[Path, RepoContext] | None = None,
    ):
        self.folders = folders or {}
        self.files = files or {}

    async def resolve(self, path: Path) -> RepoContext | None:
        return self.folders.get(Path(path))

    async def resolve_for_file(self, path: Path) -> RepoContext | None:
        return self.files.get(Path(path))


def worktree_context(index: int = 1, identifier: str = "github.com/acme/widgets") -> RepoContext:
    return RepoContext(
        repo_identifier=identifier,
        is_worktree=index > 0,
        main_repo_path=Path("/repos/widgets") if index > 0 else None,
        git_metadata_path=Path(f"/repos/widgets/.git/worktrees/wt{index}") if index > 0 else Path("/repos/widgets/.git"),
        worktree_index=index,
    )
