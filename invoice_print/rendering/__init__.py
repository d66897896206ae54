"""Interchangeable invoice rendering strategies."""

from .base import Renderer, build_renderer

__all__ = ["Renderer", "build_renderer"]
