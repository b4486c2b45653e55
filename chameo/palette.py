"""
Palette

A Palette is the ordered set of 16 colors chameo derives from the current wallpaper. It is a
plain value: image_handler.extract_palette builds one and the theme writers receive it as an
argument. Colors are always '#RRGGBB' (upper case, alpha stripped) and there are always 16 of
them, padded with black if the image didn't give us enough.
"""

import re
from dataclasses import dataclass
from collections.abc import Iterable

PALETTE_SIZE = 16
PAD_COLOR = "#000000"
ORDERS = ("raw", "sorted")

HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})([0-9a-fA-F]{2})?$")


def normalize_hex(value: str) -> str:
    """
    Normalize '#RRGGBB' or '#RRGGBBAA' (leading '#' optional) to upper case '#RRGGBB'.
    """

    match = HEX_COLOR.match(value.strip())
    if match is None:
        raise ValueError(f"'{value}' is not a hex color.")

    return f"#{match.group(1).upper()}"


def rgb_to_hex(rgb: Iterable[int]) -> str:
    r, g, b = list(rgb)[:3]
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    digits = normalize_hex(value)[1:]
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def luminance(value: str) -> float:
    """Relative luminance (ITU-R BT.709 weights) on the 0-255 scale."""

    r, g, b = hex_to_rgb(value)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


@dataclass(frozen=True)
class Palette:

    colors: tuple[str, ...]

    def __post_init__(self):
        if len(self.colors) != PALETTE_SIZE:
            raise ValueError(
                f"A palette holds exactly {PALETTE_SIZE} colors, got {len(self.colors)}."
            )

    @classmethod
    def from_swatches(cls, swatches: Iterable[str], order: str = "raw") -> "Palette":
        """
        Build a palette from the quantizer's swatches. Extra swatches beyond 16 are dropped,
        missing ones are padded with black.

        order='raw' keeps the quantizer's order. order='sorted' sorts dark to light after
        padding, so index 0 is the darkest color and index 15 the lightest.
        """

        if order not in ORDERS:
            raise ValueError(f"Unknown palette order '{order}', expected one of {ORDERS}.")

        colors = [normalize_hex(swatch) for swatch in swatches][:PALETTE_SIZE]
        colors += [PAD_COLOR] * (PALETTE_SIZE - len(colors))

        if order == "sorted":
            colors.sort(key=luminance)

        return cls(colors=tuple(colors))

    def __getitem__(self, index: int) -> str:
        return self.colors[index]

    def __iter__(self):
        return iter(self.colors)

    def __len__(self) -> int:
        return len(self.colors)
