from __future__ import annotations

import colorsys
import logging

from ..errors import IndexOutOfRangeError
from ..parser.raw import RawColor

logger = logging.getLogger(__name__)

# Legacy palette; 64 and 65 are the system foreground and background.
DEFAULT_INDEXED_COLORS: tuple[str, ...] = (
    "000000", "FFFFFF", "FF0000", "00FF00", "0000FF", "FFFF00", "FF00FF", "00FFFF",
    "000000", "FFFFFF", "FF0000", "00FF00", "0000FF", "FFFF00", "FF00FF", "00FFFF",
    "800000", "008000", "000080", "808000", "800080", "008080", "C0C0C0", "808080",
    "9999FF", "993366", "FFFFCC", "CCFFFF", "660066", "FF8080", "0066CC", "CCCCFF",
    "000080", "FF00FF", "FFFF00", "00FFFF", "800080", "800000", "008080", "0000FF",
    "00CCFF", "CCFFFF", "CCFFCC", "FFFF99", "99CCFF", "FF99CC", "CC99FF", "FFCC99",
    "3366FF", "33CCCC", "99CC00", "FFCC00", "FF9900", "FF6600", "666699", "969696",
    "003366", "339966", "003300", "333300", "993300", "993366", "333399", "333333",
    "000000", "FFFFFF",
)

# Stock Office color scheme, used when the package carries no theme part.
DEFAULT_THEME_COLORS: dict[str, str] = {
    "dk1": "#000000",
    "lt1": "#FFFFFF",
    "dk2": "#1F497D",
    "lt2": "#EEECE1",
    "accent1": "#4F81BD",
    "accent2": "#C0504D",
    "accent3": "#9BBB59",
    "accent4": "#8064A2",
    "accent5": "#4BACC6",
    "accent6": "#F79646",
    "hlink": "#0000FF",
    "folHlink": "#800080",
}

# Excel swaps the light and dark entries when a cell color names a theme index.
THEME_INDEX_SLOTS: tuple[str, ...] = (
    "lt1",
    "dk1",
    "lt2",
    "dk2",
    "accent1",
    "accent2",
    "accent3",
    "accent4",
    "accent5",
    "accent6",
    "hlink",
    "folHlink",
)

SCHEME_ALIASES = {"tx1": "dk1", "bg1": "lt1", "tx2": "dk2", "bg2": "lt2"}

PRESET_COLORS: dict[str, str] = {
    "black": "#000000",
    "white": "#FFFFFF",
    "red": "#FF0000",
    "green": "#008000",
    "lime": "#00FF00",
    "blue": "#0000FF",
    "yellow": "#FFFF00",
    "cyan": "#00FFFF",
    "magenta": "#FF00FF",
    "gray": "#808080",
    "grey": "#808080",
    "lightGray": "#D3D3D3",
    "darkGray": "#A9A9A9",
    "orange": "#FFA500",
    "purple": "#800080",
    "brown": "#A52A2A",
    "navy": "#000080",
    "darkBlue": "#00008B",
    "darkRed": "#8B0000",
    "darkGreen": "#006400",
}


def normalize_rgb(value: str | None) -> str | None:
    if not value:
        return None
    hex_value = value.strip().lstrip("#")
    if len(hex_value) == 8:
        hex_value = hex_value[2:]
    if len(hex_value) != 6:
        return None
    try:
        int(hex_value, 16)
    except ValueError:
        return None
    return f"#{hex_value.upper()}"


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    hex_value = hex_color.lstrip("#")
    return int(hex_value[0:2], 16), int(hex_value[2:4], 16), int(hex_value[4:6], 16)


def rgb_to_hex(r: float, g: float, b: float) -> str:
    channels = [min(255, max(0, int(round(c)))) for c in (r, g, b)]
    return "#{:02X}{:02X}{:02X}".format(*channels)


def apply_tint(hex_color: str, tint: float) -> str:
    """Lighten (tint > 0) or darken (tint < 0) a color through its HSL luminance."""
    if tint == 0:
        return hex_color
    r, g, b = hex_to_rgb(hex_color)
    hue, lum, sat = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    if tint < 0:
        lum = lum * (1.0 + tint)
    else:
        lum = lum * (1.0 - tint) + tint
    lum = min(1.0, max(0.0, lum))
    r2, g2, b2 = colorsys.hls_to_rgb(hue, lum, sat)
    return rgb_to_hex(r2 * 255, g2 * 255, b2 * 255)


def modulate_luminance(hex_color: str, lum_mod: float = 1.0, lum_off: float = 0.0) -> str:
    r, g, b = hex_to_rgb(hex_color)
    hue, lum, sat = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    lum = min(1.0, max(0.0, lum * lum_mod + lum_off))
    r2, g2, b2 = colorsys.hls_to_rgb(hue, lum, sat)
    return rgb_to_hex(r2 * 255, g2 * 255, b2 * 255)


def apply_drawing_transforms(hex_color: str, transforms: list[tuple[str, float]]) -> str:
    """Apply DrawingML color transforms (values already scaled to fractions)."""
    color = hex_color
    lum_mod = 1.0
    lum_off = 0.0
    for name, value in transforms:
        if name == "lumMod":
            lum_mod = value
        elif name == "lumOff":
            lum_off = value
        elif name == "tint":
            r, g, b = hex_to_rgb(color)
            color = rgb_to_hex(*(c * value + 255 * (1.0 - value) for c in (r, g, b)))
        elif name == "shade":
            r, g, b = hex_to_rgb(color)
            color = rgb_to_hex(*(c * value for c in (r, g, b)))
    if lum_mod != 1.0 or lum_off != 0.0:
        color = modulate_luminance(color, lum_mod, lum_off)
    return color


def hsl_to_hex(hue_degrees: float, sat: float, lum: float) -> str:
    r, g, b = colorsys.hls_to_rgb((hue_degrees % 360.0) / 360.0, lum, sat)
    return rgb_to_hex(r * 255, g * 255, b * 255)


class ColorResolver:
    """Turns stylesheet color references into ``#RRGGBB`` strings."""

    def __init__(
        self,
        theme_colors: dict[str, str] | None = None,
        indexed_colors: list[str] | None = None,
    ) -> None:
        self.theme_colors = dict(DEFAULT_THEME_COLORS)
        if theme_colors:
            self.theme_colors.update(theme_colors)
        palette = [normalize_rgb(value) for value in (indexed_colors or [])]
        self.indexed_colors: list[str] = [c for c in palette if c] or ["#" + c for c in DEFAULT_INDEXED_COLORS]
        if len(self.indexed_colors) < len(DEFAULT_INDEXED_COLORS):
            self.indexed_colors += ["#" + c for c in DEFAULT_INDEXED_COLORS[len(self.indexed_colors) :]]

    def theme_slot(self, index: int) -> str:
        if not 0 <= index < len(THEME_INDEX_SLOTS):
            raise IndexOutOfRangeError("theme color", index, len(THEME_INDEX_SLOTS))
        return self.theme_colors[THEME_INDEX_SLOTS[index]]

    def scheme_color(self, name: str) -> str | None:
        slot = SCHEME_ALIASES.get(name, name)
        color = self.theme_colors.get(slot)
        if color is None:
            logger.warning("Unknown scheme color %r", name)
        return color

    def indexed(self, index: int) -> str | None:
        if 0 <= index < len(self.indexed_colors):
            return self.indexed_colors[index]
        logger.warning("Indexed color %d outside the palette", index)
        return None

    def resolve(self, color: RawColor | None) -> str | None:
        if color is None:
            return None
        base: str | None = None
        if color.rgb:
            base = normalize_rgb(color.rgb)
        elif color.theme is not None:
            base = self.theme_slot(color.theme)
        elif color.indexed is not None:
            base = self.indexed(color.indexed)
        elif color.auto:
            return None
        if base is None:
            return None
        return apply_tint(base, color.tint)
