"""Apply derived colors over workspace settings and restore them exactly.

The color customizations live in a single object-valued setting
(`workbench.colorCustomizations`) that the user and other tools share. The
overlay owns only `MANAGED_COLOR_KEYS` inside that object: before its first
write it records which of those keys were present and with which values, and
`restore()` puts exactly those back while leaving every other entry alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .colors import MANAGED_COLOR_KEYS, build_customization_map
from .exceptions import ConfigurationWriteError
from .models import ColorSettings
from .store import ConfigurationTarget, SettingsSection

logger = logging.getLogger(__name__)

COLOR_CUSTOMIZATIONS = "colorCustomizations"


def merge_managed(
    existing: Mapping[str, Any] | None,
    managed_keys: Iterable[str],
    new_values: Mapping[str, Any],
) -> dict[str, Any] | None:
    """Replace every managed entry of `existing` with the ones in `new_values`.

    Managed keys missing from `new_values` are removed; keys outside
    `managed_keys` are never touched, in either mapping. Returns None when
    nothing is left so the caller can clear the setting.

    >>> merge_managed({"editor.background": "#000"}, ["a"], {"a": "#fff"})
    {'editor.background': '#000', 'a': '#fff'}
    >>> merge_managed({"a": "#fff"}, ["a"], {}) is None
    True
    """

    managed = set(managed_keys)
    merged = {key: value for key, value in (existing or {}).items() if key not in managed}
    merged.update((key, value) for key, value in new_values.items() if key in managed)
    return merged or None


@dataclass
class OverlayState:
    original_values: dict[str, Any] = field(default_factory=dict)
    captured: bool = False
    applied: bool = False

    def clear(self) -> None:
        self.original_values = {}
        self.captured = False
        self.applied = False


class ColorOverlay:
    """Idle/Applied state machine over the `colorCustomizations` setting."""

    def __init__(self, section: SettingsSection, managed_keys: Iterable[str] = MANAGED_COLOR_KEYS):
        self.section = section
        self.managed_keys = tuple(managed_keys)
        self.state = OverlayState()

    @property
    def applied(self) -> bool:
        return self.state.applied

    def _current(self) -> dict[str, Any]:
        value = self.section.inspect(COLOR_CUSTOMIZATIONS).workspace_value
        return dict(value) if isinstance(value, Mapping) else {}

    def _capture(self) -> bool:
        if self.state.captured:
            return False
        current = self._current()
        self.state.original_values = {key: current[key] for key in self.managed_keys if key in current}
        self.state.captured = True
        logger.debug("Captured %d pre-existing managed colors", len(self.state.original_values))
        return True

    async def _write(self, value: dict[str, Any] | None) -> None:
        await self.section.update(COLOR_CUSTOMIZATIONS, value, ConfigurationTarget.WORKSPACE)

    async def apply(self, color: str, settings: ColorSettings) -> None:
        """Overlay `color` onto the workspace; repeated calls keep the first baseline."""

        fresh = self._capture()
        customizations = build_customization_map(color, settings)
        merged = merge_managed(
            self._current(),
            self.managed_keys,
            {**self.state.original_values, **customizations},
        )
        try:
            await self._write(merged)
        except ConfigurationWriteError:
            # nothing was written, so the baseline must be taken again next time
            if fresh:
                self.state.clear()
            raise
        self.state.applied = True
        logger.debug("Applied %s to %d keys", color, len(customizations))

    async def restore(self) -> None:
        """Put back exactly the managed values present before the first apply."""

        if not self.state.applied:
            return
        merged = merge_managed(self._current(), self.managed_keys, self.state.original_values)
        await self._write(merged)
        self.state.clear()
        logger.debug("Restored workspace colors")

    def has_existing_managed_color(self) -> bool:
        if self.state.applied:
            return False
        current = self._current()
        return any(key in current for key in self.managed_keys)


__all__ = ["COLOR_CUSTOMIZATIONS", "OverlayState", "ColorOverlay", "merge_managed"]
