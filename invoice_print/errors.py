"""Exception types shared across the render and dispatch pipeline."""

from __future__ import annotations


class InvoicePrintError(Exception):
    """Base class for service errors."""

    status = 500


class InputError(InvoicePrintError):
    """Raised when the invoice payload is missing or malformed."""

    status = 400


class InvoiceTooLargeError(InputError):
    """Raised when an invoice would exceed the configured page limit."""

    status = 413


class RenderError(InvoicePrintError):
    """Raised when a rendering backend fails or exhausts its retries."""

    def __init__(self, message: str, attempts: int = 1) -> None:
        super().__init__(message)
        self.attempts = attempts


class DispatchError(InvoicePrintError):
    """Raised inside a print path; converted to a failed PrintResult by the dispatcher."""


class ConfigError(InvoicePrintError):
    """Raised when a required setting such as the print API key is missing."""


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""
