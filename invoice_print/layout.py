"""Page presets and layout constants for the direct PDF renderer.

All values are points with a top-left origin (1 mm = 72 / 25.4 pt).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

MM = 72.0 / 25.4


@dataclass(frozen=True)
class PagePreset:
    name: str
    width: float
    # None means the page height grows with the content (roll paper).
    height: Optional[float]
    margin: float
    font_size: float
    font_size_small: float
    font_size_title: float
    line_h: float
    row_h: float
    header_h: float
    footer_h: float
    css_width: str
    # Rows per page when the preset paginates: (first, middle, last).
    capacities: Optional[Tuple[int, int, int]] = None

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin


LETTER = PagePreset(
    name="letter",
    width=612.0,
    height=792.0,
    margin=42.0,
    font_size=10.0,
    font_size_small=8.5,
    font_size_title=26.0,
    line_h=13.0,
    row_h=17.2,
    header_h=170.0,
    footer_h=70.0,
    css_width="8.5in",
    capacities=(28, 40, 34),
)

RECEIPT = PagePreset(
    name="receipt",
    width=80 * MM,
    height=None,
    margin=5 * MM,
    font_size=7.5,
    font_size_small=6.5,
    font_size_title=13.0,
    line_h=9.5,
    row_h=11.0,
    header_h=92.0,
    footer_h=48.0,
    css_width="80mm",
)

PRESETS: Dict[str, PagePreset] = {LETTER.name: LETTER, RECEIPT.name: RECEIPT}

COLOR_TITLE = (94, 94, 94)
COLOR_LABEL = (105, 105, 105)
COLOR_TEXT = (60, 60, 60)
COLOR_MUTED = (130, 130, 130)
COLOR_BAR = (58, 58, 58)
COLOR_BAR_TEXT = (234, 234, 234)
COLOR_RULE = (200, 200, 200)


def get_preset(name: str) -> PagePreset:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown page preset: {name!r}") from None
