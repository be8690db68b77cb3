"""Text and JSON rendering of extraction results for the CLI.

Text output is coloured with ANSI escapes unless ``NO_COLOR`` is set.
"""

from __future__ import annotations

import json
import os
from typing import Any

# ── ANSI color constants ────────────────────────────────────────────
_BOLD = "\033[1m"
_RED = "\033[31m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_BLUE = "\033[34m"
_RESET = "\033[0m"

_BATCH_SEPARATOR = "---"


def _no_color() -> bool:
    """Respect the NO_COLOR convention (https://no-color.org/)."""
    return bool(os.environ.get("NO_COLOR"))


def style(text: str, *codes: str) -> str:
    if _no_color() or not codes:
        return text
    return f"{''.join(codes)}{text}{_RESET}"


def bold(text: str) -> str:
    return style(text, _BOLD)


def info(text: str) -> str:
    return style(text, _BLUE)


def success(text: str) -> str:
    return style(text, _GREEN)


def warning(text: str) -> str:
    return style(text, _YELLOW)


def _yes_no(flag: bool) -> str:
    return style("Yes", _RED) if flag else style("No", _GREEN)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_report(report: dict[str, Any], output_format: str = "text") -> str:
    """
    Render one extraction report.

    Encrypted notes are shown as ``[ENCRYPTED]`` in text output unless
    the report was decrypted (``"decrypted": True``).
    """
    if output_format == "json":
        return to_json(report)

    lines = [f"{bold('File:')} {report['file']}"]
    note = report.get("note")
    if report.get("error"):
        lines.append(f"{bold('Error:')} {report['error']}")
    elif note is not None:
        encrypted = report.get("isEncrypted", False)
        shown = warning("[ENCRYPTED]") if encrypted and not report.get("decrypted") else note
        lines.append(f"{bold('Note:')} {shown}")
        lines.append(f"{bold('Encrypted:')} {_yes_no(encrypted)}")
        if report.get("version"):
            lines.append(f"{bold('Version:')} {report['version']}")
        metadata = report.get("metadata") or {}
        if metadata:
            lines.append(bold("Metadata:"))
            lines.extend(f"  {key}: {value}" for key, value in metadata.items() if value)
    else:
        lines.append(warning("No MemoryInk note found"))
    return "\n".join(lines) + "\n"


def format_batch(reports: list[dict[str, Any]], output_format: str = "text") -> str:
    """Render a batch: one JSON array, or text blocks split by ``---``."""
    if output_format == "json":
        return to_json(reports)
    return "".join(f"{format_report(report)}{_BATCH_SEPARATOR}\n" for report in reports)


def format_summary(
    summary: dict[str, Any],
    output_format: str = "text",
    image_info: dict[str, Any] | None = None,
) -> str:
    """Render the result of ``verify``."""
    if output_format == "json":
        data = dict(summary)
        if image_info is not None:
            data["image"] = image_info
        return to_json(data)

    if summary["found"]:
        lines = [
            success("✓ MemoryInk metadata found"),
            f"  Note length: {summary['noteLength']} characters",
            f"  Encrypted: {_yes_no(summary['isEncrypted'])}",
        ]
        if summary.get("version"):
            lines.append(f"  Version: {summary['version']}")
    else:
        lines = [warning("✗ No MemoryInk metadata found")]

    if image_info is not None:
        lines.append(
            f"  Image: {image_info['format']} {image_info['width']}x{image_info['height']}, "
            f"{image_info['size']} bytes"
        )
    return "\n".join(lines) + "\n"
