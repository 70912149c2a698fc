"""Deterministic color derivation from repository identity."""

from __future__ import annotations

import math
from typing import Iterator

from .models import ColorSettings, DerivedColor

MAX_LIGHTNESS = 65
INACTIVE_ALPHA = 0.6

DARK_FOREGROUND = "#15202b"
LIGHT_FOREGROUND = "#e0e0e0"

# Relative luminance at which contrast against black equals contrast against white.
LUMINANCE_THRESHOLD = 0.179

TITLE_BAR_KEYS = (
    "titleBar.activeBackground",
    "titleBar.activeForeground",
    "titleBar.inactiveBackground",
    "titleBar.inactiveForeground",
)
ACTIVITY_BAR_KEYS = (
    "activityBar.background",
    "activityBar.foreground",
    "activityBar.inactiveForeground",
)
STATUS_BAR_KEYS = (
    "statusBar.background",
    "statusBar.foreground",
)
MANAGED_COLOR_KEYS: tuple[str, ...] = TITLE_BAR_KEYS + ACTIVITY_BAR_KEYS + STATUS_BAR_KEYS


def _utf16_code_units(value: str) -> Iterator[int]:
    data = value.encode("utf-16-le", errors="surrogatepass")
    for offset in range(0, len(data), 2):
        yield data[offset] | (data[offset + 1] << 8)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _parse_hex(hex_color: str) -> tuple[int, int, int]:
    digits = hex_color.lstrip("#")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def string_to_hue(value: str) -> int:
    """Hash a string to a hue in [0, 360) with 32-bit integer arithmetic only.

    >>> string_to_hue("")
    0
    >>> string_to_hue("a")
    97
    """

    hash_value = 0
    for unit in _utf16_code_units(value):
        hash_value = _to_int32(hash_value * 31 + unit)
    return abs(hash_value) % 360


def hsl_to_hex(h: float, s: float, l: float) -> str:
    """Convert hue (degrees), saturation and lightness (percent) to `#rrggbb`.

    >>> hsl_to_hex(0, 100, 50)
    '#ff0000'
    >>> hsl_to_hex(0, 0, 50)
    '#808080'
    """

    h = h % 360
    s_norm = s / 100
    l_norm = l / 100

    c = (1 - abs(2 * l_norm - 1)) * s_norm
    x = c * (1 - abs((h / 60) % 2 - 1))
    m = l_norm - c / 2

    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x

    return "#" + "".join(f"{_round_half_up((channel + m) * 255):02x}" for channel in (r, g, b))


def _linearize(channel: int) -> float:
    srgb = channel / 255
    return srgb / 12.92 if srgb <= 0.03928 else ((srgb + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    r, g, b = _parse_hex(hex_color)
    return 0.2126 * _linearize(r) + 0.7152 * _linearize(g) + 0.0722 * _linearize(b)


def contrasting_foreground(hex_color: str) -> str:
    """Pick the fixed light or dark foreground that reads best on `hex_color`."""

    if relative_luminance(hex_color) > LUMINANCE_THRESHOLD:
        return DARK_FOREGROUND
    return LIGHT_FOREGROUND


def add_alpha(hex_color: str, alpha: float) -> str:
    """Append an alpha channel, e.g. `add_alpha("#ff0000", 0.6) == "#ff000099"`."""

    if not 0 <= alpha <= 1:
        raise ValueError(f"alpha must be within [0, 1], got {alpha}")
    return f"#{hex_color.lstrip('#')}{_round_half_up(alpha * 255):02x}"


def derive_lightness(worktree_index: int, settings: ColorSettings) -> float:
    return min(settings.base_lightness + worktree_index * settings.lightness_step, MAX_LIGHTNESS)


def derive_base_color(repo_identifier: str, worktree_index: int, settings: ColorSettings) -> str:
    """Same identifier keeps its hue; later worktrees get lighter up to the cap."""

    hue = string_to_hue(repo_identifier)
    return hsl_to_hex(hue, settings.saturation, derive_lightness(worktree_index, settings))


def build_customization_map(base_color: str, settings: ColorSettings) -> dict[str, str]:
    foreground = contrasting_foreground(base_color)
    colors: dict[str, str] = {}

    if settings.affect_title_bar:
        colors["titleBar.activeBackground"] = base_color
        colors["titleBar.activeForeground"] = foreground
        colors["titleBar.inactiveBackground"] = add_alpha(base_color, INACTIVE_ALPHA)
        colors["titleBar.inactiveForeground"] = add_alpha(foreground, INACTIVE_ALPHA)

    if settings.affect_activity_bar:
        colors["activityBar.background"] = base_color
        colors["activityBar.foreground"] = foreground
        colors["activityBar.inactiveForeground"] = add_alpha(foreground, INACTIVE_ALPHA)

    if settings.affect_status_bar:
        colors["statusBar.background"] = base_color
        colors["statusBar.foreground"] = foreground

    return colors


def derive_color(repo_identifier: str, worktree_index: int, settings: ColorSettings) -> DerivedColor:
    base = derive_base_color(repo_identifier, worktree_index, settings)
    return DerivedColor(
        base=base,
        foreground=contrasting_foreground(base),
        customizations=build_customization_map(base, settings),
    )


__all__ = [
    "MANAGED_COLOR_KEYS",
    "DARK_FOREGROUND",
    "LIGHT_FOREGROUND",
    "string_to_hue",
    "hsl_to_hex",
    "contrasting_foreground",
    "add_alpha",
    "derive_base_color",
    "build_customization_map",
    "derive_color",
]
