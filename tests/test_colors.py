"""Tests for the color engine."""

from __future__ import annotations

import unittest

from worktree_colors.colors import (
    DARK_FOREGROUND,
    LIGHT_FOREGROUND,
    MANAGED_COLOR_KEYS,
    add_alpha,
    build_customization_map,
    contrasting_foreground,
    derive_base_color,
    derive_color,
    hsl_to_hex,
    string_to_hue,
)
from worktree_colors.models import ColorSettings


class StringToHueTests(unittest.TestCase):
    def test_known_values(self) -> None:
        self.assertEqual(string_to_hue(""), 0)
        self.assertEqual(string_to_hue("a"), 97)
        self.assertEqual(string_to_hue("ab"), (97 * 31 + 98) % 360)

    def test_range_and_determinism(self) -> None:
        samples = ["github.com/acme/widgets", "x" * 500, "ünïcødé", "gitlab.com/a/b", "🎨 palette"]
        for sample in samples:
            hue = string_to_hue(sample)
            self.assertGreaterEqual(hue, 0)
            self.assertLess(hue, 360)
            self.assertEqual(hue, string_to_hue(sample))

    def test_hashes_utf16_code_units(self) -> None:
        # U+1F600 is the surrogate pair D83D DE00
        self.assertEqual(string_to_hue("\U0001F600"), (0xD83D * 31 + 0xDE00) % 360)

    def test_different_inputs_spread(self) -> None:
        hues = {string_to_hue(f"github.com/user/repo-{i}") for i in range(20)}
        self.assertGreater(len(hues), 1)


class HslToHexTests(unittest.TestCase):
    def test_primaries_and_gray(self) -> None:
        self.assertEqual(hsl_to_hex(0, 100, 50), "#ff0000")
        self.assertEqual(hsl_to_hex(120, 100, 50), "#00ff00")
        self.assertEqual(hsl_to_hex(240, 100, 50), "#0000ff")
        self.assertEqual(hsl_to_hex(0, 0, 50), "#808080")

    def test_black_and_white(self) -> None:
        self.assertEqual(hsl_to_hex(0, 0, 0), "#000000")
        self.assertEqual(hsl_to_hex(0, 0, 100), "#ffffff")

    def test_hue_360_matches_zero(self) -> None:
        self.assertEqual(hsl_to_hex(360, 100, 50), hsl_to_hex(0, 100, 50))
        self.assertEqual(hsl_to_hex(360, 30, 25), hsl_to_hex(0, 30, 25))


class ForegroundAndAlphaTests(unittest.TestCase):
    def test_extremes(self) -> None:
        self.assertEqual(contrasting_foreground("#ffffff"), DARK_FOREGROUND)
        self.assertEqual(contrasting_foreground("#000000"), LIGHT_FOREGROUND)

    def test_accepts_missing_hash(self) -> None:
        self.assertEqual(contrasting_foreground("ffffff"), DARK_FOREGROUND)

    def test_luminance_rather_than_channel_average(self) -> None:
        self.assertEqual(contrasting_foreground("#ffff00"), DARK_FOREGROUND)
        self.assertEqual(contrasting_foreground("#000080"), LIGHT_FOREGROUND)

    def test_add_alpha(self) -> None:
        self.assertEqual(add_alpha("#123456", 1.0), "#123456ff")
        self.assertEqual(add_alpha("#123456", 0.0), "#12345600")
        self.assertEqual(add_alpha("#123456", 0.5), "#12345680")
        self.assertEqual(add_alpha("#123456", 0.6), "#12345699")
        self.assertEqual(add_alpha("123456", 0.6), "#12345699")

    def test_add_alpha_rejects_out_of_range(self) -> None:
        with self.assertRaises(ValueError):
            add_alpha("#123456", 1.5)


class DeriveBaseColorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = ColorSettings(saturation=30, base_lightness=25, lightness_step=5)

    def test_same_hue_lighter_per_index(self) -> None:
        identifier = "github.com/acme/widgets"
        hue = string_to_hue(identifier)
        for index, lightness in ((0, 25), (1, 30), (2, 35)):
            self.assertEqual(
                derive_base_color(identifier, index, self.settings),
                hsl_to_hex(hue, 30, lightness),
            )

    def test_lightness_capped(self) -> None:
        settings = ColorSettings(saturation=50, base_lightness=60, lightness_step=15)
        hue = string_to_hue("repo")
        for index in (1, 5, 50):
            self.assertEqual(derive_base_color("repo", index, settings), hsl_to_hex(hue, 50, 65))

    def test_is_hex(self) -> None:
        value = derive_base_color("github.com/user/repo", 3, self.settings)
        self.assertRegex(value, r"^#[0-9a-f]{6}$")


class CustomizationMapTests(unittest.TestCase):
    def test_all_targets(self) -> None:
        colors = build_customization_map("#1e3a5f", ColorSettings())

        self.assertEqual(set(colors), set(MANAGED_COLOR_KEYS))
        self.assertEqual(colors["titleBar.activeBackground"], "#1e3a5f")
        self.assertEqual(colors["titleBar.activeForeground"], LIGHT_FOREGROUND)
        self.assertEqual(colors["titleBar.inactiveBackground"], "#1e3a5f99")
        self.assertEqual(colors["titleBar.inactiveForeground"], LIGHT_FOREGROUND + "99")
        self.assertEqual(colors["activityBar.inactiveForeground"], LIGHT_FOREGROUND + "99")
        self.assertEqual(colors["statusBar.background"], "#1e3a5f")

    def test_disabled_targets_are_left_out(self) -> None:
        colors = build_customization_map(
            "#1e3a5f",
            ColorSettings(affect_title_bar=False, affect_status_bar=False),
        )
        self.assertEqual(
            set(colors),
            {"activityBar.background", "activityBar.foreground", "activityBar.inactiveForeground"},
        )

    def test_only_managed_keys(self) -> None:
        colors = build_customization_map("#eeeeee", ColorSettings())
        self.assertTrue(set(colors) <= set(MANAGED_COLOR_KEYS))
        self.assertEqual(colors["statusBar.foreground"], DARK_FOREGROUND)

    def test_derive_color_bundles_everything(self) -> None:
        derived = derive_color("github.com/acme/widgets", 1, ColorSettings())
        self.assertEqual(derived.base, derive_base_color("github.com/acme/widgets", 1, ColorSettings()))
        self.assertEqual(derived.foreground, contrasting_foreground(derived.base))
        self.assertEqual(derived.customizations, build_customization_map(derived.base, ColorSettings()))


if __name__ == "__main__":
    unittest.main()
