"""Formatting and text layout helpers."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Protocol, Union

from dateutil import parser as dateutil_parser

DATE_FORMAT = "%b %d, %Y"


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        ...


def fmt_money(amount: str, symbol: str = "$") -> str:
    """Prefix an already fixed-point amount string, moving the sign in front."""
    if amount.startswith("-"):
        return f"-{symbol}{amount[1:]}"
    return f"{symbol}{amount}"


def fmt_date(raw: Union[str, date, datetime, None], today: Optional[date] = None) -> str:
    """Format a date as 'Mar 14, 2025'; blank input means today, unparseable text is kept."""
    if isinstance(raw, (date, datetime)):
        return raw.strftime(DATE_FORMAT)

    text = str(raw).strip() if raw is not None else ""
    if not text:
        return (today or date.today()).strftime(DATE_FORMAT)
    try:
        return dateutil_parser.parse(text).strftime(DATE_FORMAT)
    except (ValueError, OverflowError):
        return text


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: float,
    bold: bool = False,
) -> List[str]:
    """Greedy word wrap; words wider than a line are split by character."""

    def fits(value: str) -> bool:
        return fonts_obj.text_width(value, font_size, bold=bold) <= max_width

    lines: List[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if fits(candidate):
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ""

            chunk = ""
            for char in word:
                if chunk and not fits(chunk + char):
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk += char
            current = chunk

        if current:
            lines.append(current)

    return lines or [text.strip()]
