"""Font discovery and text drawing helpers for the direct renderer."""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

from fpdf import FPDF

logger = logging.getLogger(__name__)

CORE_FAMILY = "Helvetica"


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


class FontManager:
    FAMILY = "InvoiceFont"
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
        "C:\\Windows\\Fonts\\DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
        "C:\\Windows\\Fonts\\DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF) -> None:
        self.pdf = pdf
        self.family = self.FAMILY
        self.has_bold = False

        regular_path = find_font_path("INVOICE_FONT_PATH", self.SYSTEM_REGULAR_CANDIDATES)
        if not regular_path:
            # Core fonts only cover Latin-1; other characters are drawn as '?'.
            logger.warning("No Unicode TTF found, using core font %s", CORE_FAMILY)
            self.family = CORE_FAMILY
            self.has_bold = True
            return

        self.pdf.add_font(self.FAMILY, "", regular_path)
        bold_path = find_font_path("INVOICE_FONT_BOLD_PATH", self.SYSTEM_BOLD_CANDIDATES)
        if bold_path:
            self.pdf.add_font(self.FAMILY, "B", bold_path)
            self.has_bold = True

    @property
    def core_only(self) -> bool:
        return self.family == CORE_FAMILY

    def _style(self, bold: bool) -> str:
        return "B" if bold and self.has_bold else ""

    def encodable(self, text: str) -> str:
        """Replace characters the active font cannot encode with '?'."""
        if not self.core_only:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        self.pdf.set_font(self.family, self._style(bold), size)
        return self.pdf.get_string_width(self.encodable(text))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        text = self.encodable(text)
        self.pdf.set_text_color(*color)
        self.pdf.set_font(self.family, self._style(bold), size)
        self.pdf.text(x, y, text)
        if bold and not self.has_bold:
            self.pdf.text(x + 0.4, y, text)

    def draw_right(
        self,
        right: float,
        y: float,
        text: str,
        size: float,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        self.draw_text(right - self.text_width(text, size, bold), y, text, size, color, bold)
