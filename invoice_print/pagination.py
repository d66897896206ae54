"""Helpers for estimating invoice pagination constraints."""

from __future__ import annotations

from typing import Optional

from .layout import PagePreset


def estimate_page_count(item_count: int, preset: PagePreset) -> int:
    if preset.capacities is None:
        return 1
    first, middle, last = preset.capacities
    if item_count <= first:
        return 1
    remaining = item_count - first
    if remaining <= last:
        return 2
    mid_items = remaining - last
    return 2 + (mid_items + middle - 1) // middle


def max_items_for_pages(page_count: int, preset: PagePreset) -> Optional[int]:
    if preset.capacities is None:
        return None
    first, middle, last = preset.capacities
    if page_count <= 1:
        return first
    return first + last + middle * (page_count - 2)
