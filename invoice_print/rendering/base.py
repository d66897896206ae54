"""Renderer interface and strategy selection."""

from __future__ import annotations

from typing import Protocol

from ..config import Settings
from ..errors import DependencyError
from ..models import InvoiceDocument

STRATEGY_DEPENDENCIES = {
    "direct": ("fpdf",),
    "template": ("jinja2", "playwright"),
}


class Renderer(Protocol):
    name: str

    def render(self, document: InvoiceDocument) -> bytes:
        ...


def build_renderer(settings: Settings) -> Renderer:
    """Pick the rendering strategy configured for this deployment."""
    try:
        if settings.renderer == "template":
            from .template import TemplateRenderer

            return TemplateRenderer.from_settings(settings)

        from .direct import DirectRenderer

        return DirectRenderer.from_settings(settings)
    except ModuleNotFoundError as exc:
        root = (exc.name or "").split(".")[0]
        if root in STRATEGY_DEPENDENCIES.get(settings.renderer, ()):
            raise DependencyError(
                f"Missing dependency '{root}' for the {settings.renderer!r} renderer. "
                "Install project dependencies with 'pip install -e .'."
            ) from exc
        raise
