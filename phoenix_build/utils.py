"""
Utility functions for phoenix.

Includes logging, console output, platform detection and file helpers.
"""

import hashlib
import json
import logging
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape


# Global console for pretty output
console = Console()

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# LogRecord attributes copied into structured output when a caller passes them via extra=
EXTRA_FIELDS = ("stage", "event", "metadata")


def setup_logging(log_file: Path, log_level: str = "INFO", log_format: str = "structured", console_output: bool = True) -> logging.Logger:
    """
    Configure the "phoenix" logger for one release run.

    The log file always receives every record at ``log_level``; with
    ``console_output`` the same records are mirrored to stderr, through
    rich when ``log_format`` is "pretty".

    Returns:
        Configured logger
    """
    logger = logging.getLogger("phoenix")
    logger.setLevel(log_level.upper())

    # Handlers from an earlier run in the same process would keep the old file open
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        StructuredFormatter() if log_format == "structured" else logging.Formatter(PLAIN_FORMAT)
    )
    logger.addHandler(file_handler)

    if console_output:
        if log_format == "pretty":
            stream_handler: logging.Handler = RichHandler(
                console=Console(stderr=True), rich_tracebacks=True, show_time=False
            )
        else:
            stream_handler = logging.StreamHandler(sys.stderr)
            stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(stream_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with stage/event/metadata extras when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def detect_platform_tag(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """
    Build the platform tag used in archive names.

    Args:
        system: Override for platform.system()
        machine: Override for platform.machine()

    Returns:
        Tag such as "windows-x64", "linux-x64" or "macos-arm64"
    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()

    os_name = {"darwin": "macos"}.get(system, system)

    if machine in ("amd64", "x86_64", "x64"):
        arch = "x64"
    elif machine in ("arm64", "aarch64"):
        arch = "arm64"
    elif machine in ("i386", "i686", "x86"):
        arch = "x86"
    else:
        arch = machine or "unknown"

    return f"{os_name}-{arch}"


def executable_name(name: str, platform_tag: str) -> str:
    """Append the platform executable suffix when the name has none."""
    if Path(name).suffix or not platform_tag.startswith("windows"):
        return name
    return f"{name}.exe"


def library_name(name: str, platform_tag: str) -> str:
    """Append the platform shared-library suffix when the name has none."""
    if Path(name).suffix:
        return name
    if platform_tag.startswith("windows"):
        return f"{name}.dll"
    if platform_tag.startswith("macos"):
        return f"{name}.dylib"
    return f"{name}.so"


def file_sha256(file_path: Path, chunk_size: int = 1 << 16) -> str:
    """Hex SHA-256 digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def format_duration(seconds: float) -> str:
    """
    Format a duration as e.g. "45s", "1m 23s" or "2h 0m 5s".
    """
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)

    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def print_banner(title: str) -> None:
    """Print a horizontal rule with the title centered."""
    console.rule(f"[bold blue]{escape(title)}[/bold blue]")


def _print_status(symbol: str, style: str, message: str) -> None:
    # Messages carry paths and tool output, which may contain [brackets]
    console.print(f"[{style}]{symbol}[/{style}] {escape(message)}")


def print_success(message: str) -> None:
    _print_status("✓", "bold green", message)


def print_error(message: str) -> None:
    _print_status("✗", "bold red", message)


def print_warning(message: str) -> None:
    _print_status("⚠", "bold yellow", message)


def print_info(message: str) -> None:
    _print_status("ℹ", "bold cyan", message)
