"""JSON-backed settings store with workspace and global scopes.

The store mirrors the shape of an editor settings file: flat dotted keys
(`workbench.colorCustomizations`) whose values are arbitrary JSON. Only whole
values can be read or replaced; there is no way to edit a single entry of an
object value in place.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Mapping, Protocol

from .exceptions import ConfigurationWriteError, SettingsFileError


class ConfigurationTarget(str, Enum):
    GLOBAL = "global"
    WORKSPACE = "workspace"


@dataclass(frozen=True)
class SettingInspection:
    key: str
    default_value: Any = None
    global_value: Any = None
    workspace_value: Any = None


class SettingsSection(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def inspect(self, key: str) -> SettingInspection: ...

    async def update(
        self,
        key: str,
        value: Any,
        target: ConfigurationTarget = ConfigurationTarget.WORKSPACE,
    ) -> None: ...


class SettingsStore(Protocol):
    def section(self, namespace: str) -> SettingsSection: ...


class JsonSettingsFile:
    """One JSON document holding settings, optionally nested under a key.

    `.code-workspace` descriptors keep their settings in a `"settings"` object,
    plain settings files keep them at the top level.
    """

    def __init__(self, path: Path, settings_key: str | None = None):
        self.path = path
        self.settings_key = settings_key

    def _read_document(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise SettingsFileError(f"Unable to read {self.path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SettingsFileError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise SettingsFileError(f"{self.path} must contain a JSON object.")
        return document

    def read(self) -> dict[str, Any]:
        document = self._read_document()
        if self.settings_key is None:
            return document
        settings = document.get(self.settings_key, {})
        if not isinstance(settings, dict):
            raise SettingsFileError(f"'{self.settings_key}' in {self.path} must be a JSON object.")
        return settings

    def set_value(self, key: str, value: Any) -> None:
        """Replace (or remove, when value is None) a single top-level setting."""

        document = self._read_document()
        if self.settings_key is None:
            settings = document
        else:
            settings = document.setdefault(self.settings_key, {})
            if not isinstance(settings, dict):
                raise SettingsFileError(f"'{self.settings_key}' in {self.path} must be a JSON object.")
        if value is None:
            if key not in settings:
                return
            del settings[key]
        else:
            settings[key] = value
        self._write_document(document)

    def _write_document(self, document: dict[str, Any]) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(document, handle, indent=4)
                handle.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ConfigurationWriteError(f"Unable to write {self.path}: {exc}") from exc


class JsonSettingsStore:
    """SettingsStore over a workspace file and an optional user (global) file."""

    def __init__(
        self,
        workspace_file: Path,
        *,
        settings_key: str | None = None,
        user_file: Path | None = None,
        defaults: Mapping[str, Any] | None = None,
    ):
        self.workspace = JsonSettingsFile(workspace_file, settings_key)
        self.user = JsonSettingsFile(user_file) if user_file is not None else None
        self.defaults = dict(defaults or {})

    def section(self, namespace: str) -> JsonSettingsSection:
        return JsonSettingsSection(self, namespace)

    def inspect(self, full_key: str) -> SettingInspection:
        global_values = self.user.read() if self.user is not None else {}
        return SettingInspection(
            key=full_key,
            default_value=self.defaults.get(full_key),
            global_value=global_values.get(full_key),
            workspace_value=self.workspace.read().get(full_key),
        )

    def update(self, full_key: str, value: Any, target: ConfigurationTarget) -> None:
        if target is ConfigurationTarget.WORKSPACE:
            self.workspace.set_value(full_key, value)
        elif self.user is not None:
            self.user.set_value(full_key, value)
        else:
            raise ConfigurationWriteError("No user settings file is configured for global updates.")


class JsonSettingsSection:
    """Settings under one namespace, e.g. `workbench` or `worktreeColors`."""

    def __init__(self, store: JsonSettingsStore, namespace: str):
        self.store = store
        self.namespace = namespace

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}.{key}" if self.namespace else key

    def get(self, key: str, default: Any = None) -> Any:
        inspection = self.inspect(key)
        for value in (inspection.workspace_value, inspection.global_value, inspection.default_value):
            if value is not None:
                return value
        return default

    def inspect(self, key: str) -> SettingInspection:
        return self.store.inspect(self._full_key(key))

    async def update(
        self,
        key: str,
        value: Any,
        target: ConfigurationTarget = ConfigurationTarget.WORKSPACE,
    ) -> None:
        self.store.update(self._full_key(key), value, target)


__all__ = [
    "ConfigurationTarget",
    "SettingInspection",
    "SettingsSection",
    "SettingsStore",
    "JsonSettingsFile",
    "JsonSettingsStore",
    "JsonSettingsSection",
]
