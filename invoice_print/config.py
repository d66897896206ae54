"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

RENDERER_CHOICES: Tuple[str, ...] = ("direct", "template")
PAGE_PRESET_CHOICES: Tuple[str, ...] = ("letter", "receipt")

DEFAULT_TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")


def env_int(name: str, default: int, minimum: int = 1, environ: Optional[Mapping[str, str]] = None) -> int:
    raw = (os.environ if environ is None else environ).get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str, environ: Optional[Mapping[str, str]] = None) -> str:
    raw = (os.environ if environ is None else environ).get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def env_choice(
    name: str,
    default: str,
    choices: Tuple[str, ...],
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    value = env_str(name, default, environ).lower()
    return value if value in choices else default


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    renderer: str = "direct"
    page_preset: str = "receipt"
    template_dir: str = DEFAULT_TEMPLATE_DIR
    render_max_retries: int = 3
    render_retry_delay_ms: int = 2000
    page_load_timeout_ms: int = 60000

    print_api_key: Optional[str] = None
    print_api_url: str = "https://api.printnode.com"
    print_api_timeout_ms: int = 30000
    print_paper: str = "80mm x 297mm"
    print_tmpdir: Optional[str] = None
    print_command_timeout_ms: int = 30000

    max_concurrent_renders: int = 4
    max_inflight_renders: int = 100
    render_queue_timeout_ms: int = 120000
    render_timeout_ms: int = 300000
    max_body_bytes: int = 16 * 1024 * 1024
    max_pages: int = 500
    listen_backlog: int = 512


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read every setting once; the result is passed to components explicitly."""
    env = os.environ if environ is None else environ

    max_concurrent = env_int(
        "INVOICE_MAX_CONCURRENT_RENDERS",
        max(2, min(8, os.cpu_count() or 2)),
        minimum=1,
        environ=env,
    )
    api_key = env.get("PRINTNODE_API_KEY", "").strip() or None
    tmpdir = env.get("INVOICE_PRINT_TMPDIR", "").strip() or None

    return Settings(
        host=env_str("INVOICE_HOST", "0.0.0.0", env),
        port=env_int("PORT", 3000, minimum=1, environ=env),
        log_level=env_str("INVOICE_LOG_LEVEL", "INFO", env).upper(),
        renderer=env_choice("INVOICE_RENDERER", "direct", RENDERER_CHOICES, env),
        page_preset=env_choice("INVOICE_PAGE_PRESET", "receipt", PAGE_PRESET_CHOICES, env),
        template_dir=env_str("INVOICE_TEMPLATE_DIR", DEFAULT_TEMPLATE_DIR, env),
        render_max_retries=env_int("INVOICE_RENDER_MAX_RETRIES", 3, minimum=1, environ=env),
        render_retry_delay_ms=env_int("INVOICE_RENDER_RETRY_DELAY_MS", 2000, minimum=0, environ=env),
        page_load_timeout_ms=env_int("INVOICE_PAGE_LOAD_TIMEOUT_MS", 60000, minimum=1000, environ=env),
        print_api_key=api_key,
        print_api_url=env_str("INVOICE_PRINT_API_URL", "https://api.printnode.com", env).rstrip("/"),
        print_api_timeout_ms=env_int("INVOICE_PRINT_API_TIMEOUT_MS", 30000, minimum=1000, environ=env),
        print_paper=env_str("INVOICE_PRINT_PAPER", "80mm x 297mm", env),
        print_tmpdir=tmpdir,
        print_command_timeout_ms=env_int("INVOICE_PRINT_COMMAND_TIMEOUT_MS", 30000, minimum=1000, environ=env),
        max_concurrent_renders=max_concurrent,
        max_inflight_renders=env_int(
            "INVOICE_MAX_INFLIGHT_RENDERS",
            max(100, max_concurrent * 4),
            minimum=1,
            environ=env,
        ),
        render_queue_timeout_ms=env_int("INVOICE_RENDER_QUEUE_TIMEOUT_MS", 120000, minimum=0, environ=env),
        render_timeout_ms=env_int("INVOICE_RENDER_TIMEOUT_MS", 300000, minimum=1000, environ=env),
        max_body_bytes=env_int("INVOICE_MAX_BODY_BYTES", 16 * 1024 * 1024, minimum=1024, environ=env),
        max_pages=env_int("INVOICE_MAX_PAGES", 500, minimum=1, environ=env),
        listen_backlog=env_int("INVOICE_LISTEN_BACKLOG", 512, minimum=1, environ=env),
    )
