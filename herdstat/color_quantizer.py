"""
Color quantization for contribution graph cells.

Maps daily contribution counts to one of a fixed number of color levels and
levels to concrete colors on a light or dark spectrum.
"""

import math
import re
from dataclasses import dataclass
from typing import NamedTuple

from herdstat.contribution_calendar import DayRecord

MIN_LEVELS = 5
MAX_LEVELS = 255

# Number of swatches shown in the legend
LEGEND_SWATCHES = 5

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{6})$")


class Color(NamedTuple):
    """An RGB color."""

    red: int
    green: int
    blue: int


# Neutral backgrounds the primary color is blended against
LIGHT_BACKGROUND = Color(0xEB, 0xED, 0xF0)
DARK_BACKGROUND = Color(0x2D, 0x33, 0x3B)


@dataclass(frozen=True)
class ColorSpectrum:
    """Two colors marking the low and high ends of a linear spectrum."""

    min: Color
    max: Color


@dataclass(frozen=True)
class ColorScheme:
    """Spectra for light and dark presentation."""

    light: ColorSpectrum
    dark: ColorSpectrum

    def spectrum(self, dark: bool) -> ColorSpectrum:
        return self.dark if dark else self.light


def parse_hex_color(value: str) -> Color:
    """
    Parse a hex-encoded RGB color like "39D352" or "#39d352".

    Raises:
        ValueError: If the value is not a six digit hex color
    """
    match = HEX_COLOR_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"'{value}' is not a hex-encoded RGB color")
    digits = match.group(1)
    return Color(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def to_hex(color: Color) -> str:
    return f"#{color.red:02x}{color.green:02x}{color.blue:02x}"


def scheme_from_primary(primary: Color) -> ColorScheme:
    """Build a color scheme fading from the neutral backgrounds to `primary`."""
    return ColorScheme(
        light=ColorSpectrum(LIGHT_BACKGROUND, primary),
        dark=ColorSpectrum(DARK_BACKGROUND, primary),
    )


def validate_levels(levels: int) -> int:
    """
    Check the number of color levels.

    Raises:
        ValueError: If levels is not an integer in [5, 255]
    """
    if isinstance(levels, bool) or not isinstance(levels, int):
        raise ValueError(f"Number of levels must be an integer, was {levels!r}")
    if not MIN_LEVELS <= levels <= MAX_LEVELS:
        raise ValueError(
            f"Number of levels must be between {MIN_LEVELS} and {MAX_LEVELS}, was {levels}"
        )
    return levels


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def intensity(record: DayRecord, max_count: int) -> int:
    """
    Activity of a day relative to the busiest day, in [0, 255].

    Args:
        record: The day to rate
        max_count: Highest count in the whole calendar
    """
    if max_count == 0:
        return 0
    return max(0, min(255, round_half_up(255 * record.count / max_count)))


def level(intensity: int, levels: int) -> int:
    """
    Quantize an intensity into a color level in [0, levels - 1].

    Divides by 256 (not 255) and rounds up: intensity 0 is the only value
    mapped to level 0, and 255 lands on the top level.
    """
    return min(math.ceil(intensity / 256 * levels), levels - 1)


def level_intensity(level: int, levels: int) -> int:
    """The discretized intensity a level stands for."""
    return level * 255 // (levels - 1)


def color_for_intensity(intensity: int, spectrum: ColorSpectrum) -> Color:
    """Interpolate linearly between the ends of the spectrum, per channel."""

    def channel(low: int, high: int) -> int:
        return low + round_half_up((high - low) / 256 * intensity)

    return Color(
        channel(spectrum.min.red, spectrum.max.red),
        channel(spectrum.min.green, spectrum.max.green),
        channel(spectrum.min.blue, spectrum.max.blue),
    )


def color_for_level(level: int, levels: int, spectrum: ColorSpectrum) -> Color:
    return color_for_intensity(level_intensity(level, levels), spectrum)


def legend_levels(levels: int) -> list[int]:
    """Levels of the legend swatches, evenly sampled from lowest to highest."""
    step = (levels - 1) / (LEGEND_SWATCHES - 1)
    return [round_half_up(step * i) for i in range(LEGEND_SWATCHES)]


class ColorQuantizer:
    """
    Assigns color levels to day records and colors to levels.

    Holds no presentation mode: light or dark is chosen per call.
    """

    def __init__(self, scheme: ColorScheme, levels: int = MIN_LEVELS):
        """
        Args:
            scheme: Light and dark spectra
            levels: Number of color levels (5-255)

        Raises:
            ValueError: If levels is out of range
        """
        self.scheme = scheme
        self.levels = validate_levels(levels)

    def level_of(self, record: DayRecord, max_count: int) -> int:
        return level(intensity(record, max_count), self.levels)

    def color(self, level: int, dark: bool = False) -> Color:
        return color_for_level(level, self.levels, self.scheme.spectrum(dark))

    def palette(self, dark: bool = False) -> list[str]:
        """Hex colors for every level, lowest first."""
        return [to_hex(self.color(i, dark)) for i in range(self.levels)]

    def legend_levels(self) -> list[int]:
        return legend_levels(self.levels)
