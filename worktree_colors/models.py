"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class RepoContext:
    """Metadata resolved from a git working tree."""

    repo_identifier: str
    is_worktree: bool
    main_repo_path: Path | None
    git_metadata_path: Path
    worktree_index: int = 0


@dataclass(frozen=True)
class WorktreeEntry:
    """Represents a single worktree reported by `git worktree list`."""

    path: Path
    branch: str | None = None
    head: str | None = None
    is_bare: bool = False
    is_locked: bool = False
    is_prunable: bool = False


@dataclass(frozen=True)
class ColorSettings:
    """Knobs that shape the derived color."""

    saturation: float = 30
    base_lightness: float = 25
    lightness_step: float = 5
    affect_title_bar: bool = True
    affect_activity_bar: bool = True
    affect_status_bar: bool = True


@dataclass(frozen=True)
class DerivedColor:
    base: str
    foreground: str
    customizations: dict[str, str] = field(default_factory=dict)


class DetectionMode(str, Enum):
    AUTO = "auto"
    WORKSPACE_DESCRIPTOR_ONLY = "workspaceDescriptorOnly"
    FIRST_FOLDER_ONLY = "firstFolderOnly"


@dataclass(frozen=True)
class WorkspaceSettings:
    """Host-integration settings that decide when and where to color."""

    enabled: bool = True
    detection_mode: DetectionMode = DetectionMode.AUTO
    respect_existing_colors: bool = True


@dataclass(frozen=True)
class Workspace:
    """An opened workspace: its folders and optional `.code-workspace` file."""

    folders: tuple[Path, ...]
    descriptor: Path | None = None

    @property
    def first_folder(self) -> Path | None:
        return self.folders[0] if self.folders else None

    @property
    def settings_file(self) -> Path | None:
        if self.descriptor is not None:
            return self.descriptor
        if self.first_folder is None:
            return None
        return self.first_folder / ".vscode" / "settings.json"
