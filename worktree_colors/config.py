"""Load environment variables and worktreeColors settings for runtime."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .exceptions import SettingsValidationError
from .git import DEFAULT_TIMEOUT
from .models import ColorSettings, DetectionMode, Workspace, WorkspaceSettings
from .store import JsonSettingsStore, SettingsSection

NAMESPACE = "worktreeColors"

ENV_USER_SETTINGS = "WORKTREE_COLORS_USER_SETTINGS"
ENV_GIT_TIMEOUT = "WORKTREE_COLORS_GIT_TIMEOUT"
ENV_POLL_INTERVAL = "WORKTREE_COLORS_POLL_INTERVAL"

DEFAULT_POLL_INTERVAL = 1.0

_NUMBER_RANGES: dict[str, tuple[int, int]] = {
    "saturation": (10, 100),
    "baseLightness": (15, 60),
    "worktreeLightnessStep": (3, 15),
}

_DEFAULT_COLORS = ColorSettings()
_DEFAULT_WORKSPACE = WorkspaceSettings()


def load_color_settings(section: SettingsSection) -> ColorSettings:
    return ColorSettings(
        saturation=_number(section, "saturation", _DEFAULT_COLORS.saturation),
        base_lightness=_number(section, "baseLightness", _DEFAULT_COLORS.base_lightness),
        lightness_step=_number(section, "worktreeLightnessStep", _DEFAULT_COLORS.lightness_step),
        affect_title_bar=_flag(section, "affectTitleBar", _DEFAULT_COLORS.affect_title_bar),
        affect_activity_bar=_flag(section, "affectActivityBar", _DEFAULT_COLORS.affect_activity_bar),
        affect_status_bar=_flag(section, "affectStatusBar", _DEFAULT_COLORS.affect_status_bar),
    )


def load_workspace_settings(section: SettingsSection) -> WorkspaceSettings:
    raw_mode = section.get("detectionMode", _DEFAULT_WORKSPACE.detection_mode.value)
    try:
        mode = DetectionMode(raw_mode)
    except ValueError as exc:
        allowed = ", ".join(mode.value for mode in DetectionMode)
        raise SettingsValidationError(
            f"{NAMESPACE}.detectionMode must be one of {allowed}; got {raw_mode!r}."
        ) from exc
    return WorkspaceSettings(
        enabled=_flag(section, "enabled", _DEFAULT_WORKSPACE.enabled),
        detection_mode=mode,
        respect_existing_colors=_flag(
            section, "respectExistingColors", _DEFAULT_WORKSPACE.respect_existing_colors
        ),
    )


def build_store(workspace: Workspace, user_settings: Path | None = None) -> JsonSettingsStore:
    settings_file = workspace.settings_file
    if settings_file is None:
        raise SettingsValidationError("Workspace has no folder to hold settings.")
    return JsonSettingsStore(
        settings_file,
        settings_key="settings" if workspace.descriptor is not None else None,
        user_file=user_settings if user_settings is not None else user_settings_path(),
    )


def user_settings_path() -> Path | None:
    raw = os.environ.get(ENV_USER_SETTINGS)
    if not raw:
        return None
    return Path(raw).expanduser()


def git_timeout() -> float:
    return _positive_env_float(ENV_GIT_TIMEOUT, DEFAULT_TIMEOUT)


def poll_interval() -> float:
    return _positive_env_float(ENV_POLL_INTERVAL, DEFAULT_POLL_INTERVAL)


def _positive_env_float(var: str, default: float) -> float:
    raw = os.environ.get(var)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SettingsValidationError(f"Environment variable {var} must be a number, got {raw!r}.") from exc
    if value <= 0:
        raise SettingsValidationError(f"Environment variable {var} must be positive, got {raw!r}.")
    return value


def _number(section: SettingsSection, key: str, default: float) -> float:
    value: Any = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsValidationError(f"{NAMESPACE}.{key} must be a number, got {value!r}.")
    low, high = _NUMBER_RANGES[key]
    if not low <= value <= high:
        raise SettingsValidationError(f"{NAMESPACE}.{key} must be between {low} and {high}, got {value}.")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _flag(section: SettingsSection, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise SettingsValidationError(f"{NAMESPACE}.{key} must be true or false, got {value!r}.")
    return value


__all__ = [
    "NAMESPACE",
    "load_color_settings",
    "load_workspace_settings",
    "build_store",
    "user_settings_path",
    "git_timeout",
    "poll_interval",
]
