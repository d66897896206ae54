"""Invoice rendering and print dispatch service."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .config import Settings, load_settings

__version__ = "1.0.0"


def render_invoice(data: Dict[str, Any], settings: Optional[Settings] = None) -> bytes:
    from .money import build_document
    from .rendering import build_renderer

    settings = settings or load_settings()
    return build_renderer(settings).render(build_document(data))


def run(settings: Optional[Settings] = None) -> None:
    from .server import run as _run

    _run(settings)


__all__ = ["Settings", "load_settings", "render_invoice", "run"]
