"""Direct PDF composition with fpdf."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from fpdf import FPDF

from ..config import Settings
from ..errors import RenderError
from ..fonts import FontManager
from ..formatting import fmt_money, wrap_text
from ..layout import (
    COLOR_BAR,
    COLOR_BAR_TEXT,
    COLOR_LABEL,
    COLOR_MUTED,
    COLOR_RULE,
    COLOR_TEXT,
    COLOR_TITLE,
    PagePreset,
    get_preset,
)
from ..models import InvoiceDocument, LineItem

logger = logging.getLogger(__name__)

# Document default for roll paper; each page is added with its measured height.
ROLL_DEFAULT_H = 1000.0

DETAIL_LABELS = ("Invoice #:", "Customer:", "Date:")


@dataclass(frozen=True)
class Columns:
    name_x: float
    name_width: float
    qty_right: float
    price_right: float
    amount_right: float


class InvoiceComposer:
    """Draws one invoice onto a fresh FPDF document."""

    def __init__(self, document: InvoiceDocument, preset: PagePreset) -> None:
        self.document = document
        self.preset = preset
        page_h = preset.height if preset.height is not None else ROLL_DEFAULT_H
        self.pdf = FPDF(unit="pt", format=(preset.width, page_h))
        self.pdf.set_auto_page_break(False)
        self.pdf.set_margins(preset.margin, preset.margin, preset.margin)
        self.pdf.set_title(f"Invoice {document.invoice_id}")
        self.fonts = FontManager(self.pdf)
        self.label_w = max(self.fonts.text_width(label, preset.font_size) for label in DETAIL_LABELS) + 6

        left = preset.margin
        width = preset.content_width
        self.cols = Columns(
            name_x=left + 3,
            name_width=width * 0.46 - 6,
            qty_right=left + width * 0.58,
            price_right=left + width * 0.79,
            amount_right=left + width - 3,
        )

    def _name_lines(self, item: LineItem) -> List[str]:
        if not item.name:
            return [""]
        return wrap_text(self.fonts, item.name, self.cols.name_width, self.preset.font_size)

    def _row_height(self, lines: List[str]) -> float:
        return (len(lines) - 1) * self.preset.line_h + self.preset.row_h

    def _measure_rows(self) -> List[Tuple[LineItem, List[str], float]]:
        rows = []
        for item in self.document.items:
            lines = self._name_lines(item)
            rows.append((item, lines, self._row_height(lines)))
        return rows

    def _new_page(self, height: float) -> None:
        self.pdf.add_page(format=(self.preset.width, height))

    def _measure_details(self) -> List[Tuple[str, List[str]]]:
        p = self.preset
        values = (self.document.invoice_id, self.document.customer_name, self.document.date)
        value_w = p.content_width - self.label_w
        return [
            (label, wrap_text(self.fonts, value, value_w, p.font_size, bold=True))
            for label, value in zip(DETAIL_LABELS, values)
        ]

    def _header_height(self, details: List[Tuple[str, List[str]]]) -> float:
        p = self.preset
        y = p.margin + p.font_size_title + p.line_h * 1.8
        for _, lines in details:
            y += (len(lines) - 1) * p.line_h + p.line_h * 1.3
        return max(y, p.margin + p.header_h)

    def _draw_header(self, details: List[Tuple[str, List[str]]]) -> float:
        p = self.preset
        y = p.margin + p.font_size_title
        self.fonts.draw_text(p.margin, y, "INVOICE", p.font_size_title, COLOR_TITLE, bold=True)

        y += p.line_h * 1.8
        for label, lines in details:
            self.fonts.draw_text(p.margin, y, label, p.font_size, COLOR_LABEL)
            for i, line in enumerate(lines):
                self.fonts.draw_text(p.margin + self.label_w, y + i * p.line_h, line, p.font_size, COLOR_TEXT, bold=True)
            y += (len(lines) - 1) * p.line_h + p.line_h * 1.3

        return self._header_height(details)

    def _draw_table_header(self, y: float) -> float:
        p = self.preset
        self.pdf.set_fill_color(*COLOR_BAR)
        self.pdf.rect(p.margin, y, p.content_width, p.row_h, style="F")

        text_y = y + p.row_h * 0.68
        size = p.font_size_small
        self.fonts.draw_text(self.cols.name_x, text_y, "Item", size, COLOR_BAR_TEXT, bold=True)
        self.fonts.draw_right(self.cols.qty_right, text_y, "Qty", size, COLOR_BAR_TEXT, bold=True)
        self.fonts.draw_right(self.cols.price_right, text_y, "Price", size, COLOR_BAR_TEXT, bold=True)
        self.fonts.draw_right(self.cols.amount_right, text_y, "Amount", size, COLOR_BAR_TEXT, bold=True)
        return y + p.row_h * 1.6

    def _draw_row(self, y: float, item: LineItem, lines: List[str]) -> None:
        p = self.preset
        for i, line in enumerate(lines):
            if line:
                self.fonts.draw_text(self.cols.name_x, y + i * p.line_h, line, p.font_size, COLOR_TEXT, bold=i == 0)
        self.fonts.draw_right(self.cols.qty_right, y, str(item.quantity), p.font_size, COLOR_TEXT)
        self.fonts.draw_right(self.cols.price_right, y, fmt_money(item.price), p.font_size, COLOR_TEXT)
        self.fonts.draw_right(self.cols.amount_right, y, fmt_money(item.subtotal), p.font_size, COLOR_TEXT)

    def _draw_empty_notice(self, y: float) -> float:
        p = self.preset
        self.fonts.draw_text(self.cols.name_x, y, "No items", p.font_size, COLOR_MUTED)
        return y + p.row_h

    def _draw_totals(self, y: float) -> float:
        p = self.preset
        self.pdf.set_draw_color(*COLOR_RULE)
        self.pdf.line(p.margin, y - p.row_h * 0.6, p.margin + p.content_width, y - p.row_h * 0.6)

        y += p.line_h * 0.4
        self.fonts.draw_right(self.cols.price_right, y, "Total:", p.font_size, COLOR_LABEL, bold=True)
        self.fonts.draw_right(
            self.cols.amount_right,
            y,
            fmt_money(self.document.total),
            p.font_size,
            COLOR_TITLE,
            bold=True,
        )
        y += p.line_h * 2.5
        self.fonts.draw_text(p.margin, y, "Thank you for your business!", p.font_size_small, COLOR_MUTED)
        return y

    def _compose_roll(self, rows: List[Tuple[LineItem, List[str], float]]) -> None:
        p = self.preset
        details = self._measure_details()
        rows_h = sum(height for _, _, height in rows) if rows else p.row_h
        page_h = self._header_height(details) + p.row_h * 1.6 + rows_h + p.footer_h + p.margin
        self._new_page(page_h)

        y = self._draw_table_header(self._draw_header(details))
        if not rows:
            y = self._draw_empty_notice(y)
        for item, lines, height in rows:
            self._draw_row(y, item, lines)
            y += height
        self._draw_totals(y)

    def _compose_pages(self, rows: List[Tuple[LineItem, List[str], float]], page_h: float) -> None:
        p = self.preset
        bottom = page_h - p.margin

        self._new_page(page_h)
        y = self._draw_table_header(self._draw_header(self._measure_details()))
        if not rows:
            y = self._draw_empty_notice(y)
        for item, lines, height in rows:
            if y + height > bottom:
                self._new_page(page_h)
                y = self._draw_table_header(p.margin)
            self._draw_row(y, item, lines)
            y += height

        if y + p.footer_h > bottom:
            self._new_page(page_h)
            y = p.margin + p.row_h
        self._draw_totals(y)

    def compose(self) -> bytes:
        rows = self._measure_rows()
        if self.preset.height is not None:
            self._compose_pages(rows, self.preset.height)
        else:
            self._compose_roll(rows)

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        raise RenderError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


class DirectRenderer:
    name = "direct"

    def __init__(self, preset: PagePreset) -> None:
        self.preset = preset

    @classmethod
    def from_settings(cls, settings: Settings) -> "DirectRenderer":
        return cls(get_preset(settings.page_preset))

    def render(self, document: InvoiceDocument) -> bytes:
        try:
            pdf_bytes = InvoiceComposer(document, self.preset).compose()
        except RenderError:
            raise
        except Exception as exc:
            logger.error("Direct render of invoice %s failed: %s", document.invoice_id, exc)
            raise RenderError(f"PDF composition failed: {exc}") from exc
        logger.info(
            "Rendered invoice %s (%d items, %s preset, %d bytes)",
            document.invoice_id,
            len(document.items),
            self.preset.name,
            len(pdf_bytes),
        )
        return pdf_bytes
