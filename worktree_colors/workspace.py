"""Workspace discovery and the color session lifecycle."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .colors import MANAGED_COLOR_KEYS, derive_color
from .config import NAMESPACE, load_color_settings, load_workspace_settings
from .exceptions import SettingsFileError, ValidationError
from .models import ColorSettings, DerivedColor, DetectionMode, RepoContext, Workspace, WorkspaceSettings
from .overlay import COLOR_CUSTOMIZATIONS, ColorOverlay, merge_managed
from .resolver import GitContextResolver
from .store import ConfigurationTarget, SettingsStore

logger = logging.getLogger(__name__)

WORKSPACE_SUFFIX = ".code-workspace"


def load_workspace(path: Path) -> Workspace:
    """Build a Workspace from a folder or a `.code-workspace` descriptor."""

    path = path.expanduser().absolute()
    if path.is_dir():
        return Workspace(folders=(path,))
    if not path.is_file():
        raise ValidationError(f"Workspace path does not exist: {path}")
    if path.suffix != WORKSPACE_SUFFIX:
        raise ValidationError(f"Expected a folder or a {WORKSPACE_SUFFIX} file, got {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SettingsFileError(f"Unable to read workspace file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise SettingsFileError(f"Workspace file {path} must contain a JSON object.")
    folders: list[Path] = []
    for entry in document.get("folders") or []:
        raw = entry.get("path") if isinstance(entry, dict) else None
        if not isinstance(raw, str) or not raw:
            continue
        folder = Path(raw).expanduser()
        if not folder.is_absolute():
            folder = path.parent / folder
        folders.append(folder.resolve())
    return Workspace(folders=tuple(folders), descriptor=path)


@dataclass(frozen=True)
class ApplyOutcome:
    applied: bool
    message: str
    color: str | None = None
    blocked_by_existing: bool = False


@dataclass(frozen=True)
class WorktreeInfo:
    """Snapshot of what a session would do for the current workspace."""

    context: RepoContext | None
    color: DerivedColor | None
    has_existing_colors: bool
    workspace_keys: list[str] = field(default_factory=list)
    global_keys: list[str] = field(default_factory=list)
    verdict: str = ""


class ColorSession:
    """Owns the overlay for one workspace and reacts to lifecycle triggers."""

    def __init__(
        self,
        workspace: Workspace,
        store: SettingsStore,
        resolver: GitContextResolver | None = None,
    ):
        self.workspace = workspace
        self.store = store
        self.resolver = resolver or GitContextResolver()
        self.workbench = store.section("workbench")
        self.settings_section = store.section(NAMESPACE)
        self.overlay = ColorOverlay(self.workbench)

    def color_settings(self) -> ColorSettings:
        return load_color_settings(self.settings_section)

    def workspace_settings(self) -> WorkspaceSettings:
        return load_workspace_settings(self.settings_section)

    async def detect(self, settings: WorkspaceSettings | None = None) -> RepoContext | None:
        """Pick the git context according to the configured detection mode."""

        settings = settings or self.workspace_settings()
        first_folder = self.workspace.first_folder
        logger.debug("Detecting git context (%s) for %s", settings.detection_mode.value, self.workspace)
        if settings.detection_mode is DetectionMode.FIRST_FOLDER_ONLY:
            return await self.resolver.resolve(first_folder) if first_folder else None

        if self.workspace.descriptor is not None:
            context = await self.resolver.resolve_for_file(self.workspace.descriptor)
            if context is not None:
                return context

        if settings.detection_mode is DetectionMode.WORKSPACE_DESCRIPTOR_ONLY:
            return None
        return await self.resolver.resolve(first_folder) if first_folder else None

    async def apply_worktree_colors(self, *, force: bool = False) -> ApplyOutcome:
        if self.workspace.first_folder is None:
            return ApplyOutcome(False, "No workspace folder open")

        settings = self.workspace_settings()
        if not force and settings.respect_existing_colors and self.overlay.has_existing_managed_color():
            return ApplyOutcome(
                False,
                "Existing color customizations found (not overriding)",
                blocked_by_existing=True,
            )

        context = await self.detect(settings)
        if context is None:
            return ApplyOutcome(False, "Not a git repository or workspace file not in worktree")
        if not context.is_worktree:
            return ApplyOutcome(False, "Skipping main repository (no color applied)")

        color_settings = self.color_settings()
        color = derive_color(context.repo_identifier, context.worktree_index, color_settings)
        await self.overlay.apply(color.base, color_settings)
        return ApplyOutcome(
            True,
            f"Applied color {color.base} for worktree (index {context.worktree_index})",
            color=color.base,
        )

    async def settings_changed(self) -> ApplyOutcome:
        """Re-apply when still enabled, otherwise restore what was there before."""

        if self.workspace_settings().enabled:
            return await self.apply_worktree_colors()
        await self.overlay.restore()
        return ApplyOutcome(False, "Worktree colors disabled; previous colors restored")

    async def shutdown(self) -> None:
        await self.overlay.restore()

    async def reset_colors(self) -> None:
        """Strip every managed key from the workspace value, snapshot or not."""

        current = self.workbench.inspect(COLOR_CUSTOMIZATIONS).workspace_value
        current = current if isinstance(current, dict) else {}
        await self.workbench.update(
            COLOR_CUSTOMIZATIONS,
            merge_managed(current, MANAGED_COLOR_KEYS, {}),
            ConfigurationTarget.WORKSPACE,
        )
        self.overlay.state.clear()

    async def describe(self) -> WorktreeInfo:
        settings = self.workspace_settings()
        context = await self.detect(settings)
        inspection = self.workbench.inspect(COLOR_CUSTOMIZATIONS)
        has_existing = self.overlay.has_existing_managed_color()
        color = None
        if context is not None:
            color = derive_color(context.repo_identifier, context.worktree_index, self.color_settings())

        if context is None:
            verdict = "[SKIP] Not a git repository"
        elif not context.is_worktree:
            verdict = "[SKIP] Main repo, not a worktree"
        elif has_existing and settings.respect_existing_colors:
            verdict = "[SKIP] Existing colors found"
        else:
            verdict = "[OK] Should be colored"

        return WorktreeInfo(
            context=context,
            color=color,
            has_existing_colors=has_existing,
            workspace_keys=_keys(inspection.workspace_value),
            global_keys=_keys(inspection.global_value),
            verdict=verdict,
        )


def _keys(value: object) -> list[str]:
    return sorted(value) if isinstance(value, dict) else []


__all__ = ["load_workspace", "ApplyOutcome", "WorktreeInfo", "ColorSession", "WORKSPACE_SUFFIX"]
