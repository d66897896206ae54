"""Printing through the host's OS print system.

The PDF is bridged through a temporary file because ``lp`` and the Windows
shell print verb both want a path. Commands are always argument lists, so
printer names and paths never pass through a shell.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
import tempfile
from typing import Callable, List, Optional

from ..errors import DispatchError
from ..models import PrintResult

logger = logging.getLogger(__name__)

POSIX_PLATFORMS = ("linux", "darwin")
UNSUPPORTED_ENVIRONMENT_MESSAGE = (
    "Printing is not supported in this environment. Please download the PDF and print locally."
)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_LP_REQUEST_ID = re.compile(r"request id is (\S+)")

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


def platform_family(platform: str) -> str:
    if platform.startswith("linux"):
        return "linux"
    if platform == "darwin":
        return "darwin"
    if platform == "win32":
        return "win32"
    return platform


def validate_printer_name(printer_name: Optional[str]) -> Optional[str]:
    if printer_name is None:
        return None
    name = printer_name.strip()
    if not name:
        return None
    if _CONTROL_CHARS.search(name):
        raise DispatchError("Invalid printer name: control characters are not allowed.")
    if name.startswith("-"):
        raise DispatchError("Invalid printer name: may not start with '-'.")
    return name


def powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_print_command(platform: str, file_path: str, printer_name: Optional[str]) -> List[str]:
    family = platform_family(platform)
    if family in POSIX_PLATFORMS:
        if printer_name:
            return ["lp", "-d", printer_name, "--", file_path]
        return ["lp", "--", file_path]
    if family == "win32":
        script = f"Start-Process -FilePath {powershell_quote(file_path)} -Verb Print -PassThru | Out-Null"
        return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]
    raise DispatchError(f"Unsupported platform: {platform}")


def build_queue_command(printer_name: Optional[str]) -> List[str]:
    if printer_name:
        return ["lpq", "-P", printer_name]
    return ["lpq"]


def parse_job_id(stdout: str) -> Optional[str]:
    match = _LP_REQUEST_ID.search(stdout or "")
    return match.group(1) if match else None


class LocalPrinter:
    def __init__(
        self,
        tmpdir: Optional[str] = None,
        platform: Optional[str] = None,
        runner: Runner = subprocess.run,
        timeout_ms: int = 30000,
    ) -> None:
        self.tmpdir = tmpdir
        self.platform = platform or sys.platform
        self.runner = runner
        self.timeout = timeout_ms / 1000.0

    def temp_directory(self) -> str:
        return self.tmpdir or tempfile.gettempdir()

    def is_supported(self) -> bool:
        """Serverless sandboxes typically lack a writable temp directory."""
        directory = self.temp_directory()
        return os.path.isdir(directory) and os.access(directory, os.W_OK)

    def _run(self, command: List[str]) -> "subprocess.CompletedProcess[str]":
        return self.runner(
            command,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )

    def _log_queue(self, printer_name: Optional[str]) -> None:
        command = build_queue_command(printer_name)
        try:
            completed = self._run(command)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Queue query %s failed: %s", command, exc)
            return
        logger.info("Current print queue:\n%s", (completed.stdout or "").strip())

    def _remove(self, path: str) -> None:
        try:
            os.unlink(path)
        except OSError as exc:
            logger.error("Error cleaning up temporary file %s: %s", path, exc)

    def print_pdf(self, pdf_bytes: bytes, printer_name: Optional[str] = None) -> PrintResult:
        if not self.is_supported():
            logger.warning(
                "Temp directory %s is not writable; local printing unavailable",
                self.temp_directory(),
            )
            raise DispatchError(UNSUPPORTED_ENVIRONMENT_MESSAGE)

        printer_name = validate_printer_name(printer_name)
        family = platform_family(self.platform)
        if family not in POSIX_PLATFORMS and family != "win32":
            logger.error("Unsupported platform: %s", self.platform)
            raise DispatchError(f"Unsupported platform: {self.platform}")

        fd, path = tempfile.mkstemp(prefix="invoice-print-", suffix=".pdf", dir=self.temp_directory())
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(pdf_bytes)

            command = build_print_command(self.platform, path, printer_name)
            logger.info("Executing print command on %s: %s", self.platform, command)
            try:
                completed = self._run(command)
            except subprocess.TimeoutExpired as exc:
                raise DispatchError(f"Printing error: command timed out after {exc.timeout}s") from exc
            except OSError as exc:
                raise DispatchError(f"Printing error: {exc}") from exc

            stderr = (completed.stderr or "").strip()
            if stderr:
                logger.error("Print command %s wrote to stderr: %s", command, stderr)
                raise DispatchError(f"Printing error: {stderr}")
            if completed.returncode != 0:
                logger.error("Print command %s exited with %d", command, completed.returncode)
                raise DispatchError(f"Printing error: command exited with status {completed.returncode}")

            stdout = (completed.stdout or "").strip()
            logger.info("Print job submitted successfully: %s", stdout)
            if family in POSIX_PLATFORMS:
                self._log_queue(printer_name)

            return PrintResult(True, "Print job submitted successfully", parse_job_id(stdout))
        finally:
            self._remove(path)
