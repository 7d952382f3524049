"""Terminal formatting helpers.

Rendering goes through the shared rich consoles; the badge helpers return
console markup with any user text escaped.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.markup import escape

from .flextime import is_zero

console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)

STATUS_ICONS = {
    "success": "✓",
    "passed": "✓",
    "failed": "✗",
    "running": "⧖",
    "pending": "◯",
    "canceled": "⊘",
    "skipped": "↷",
}

STATE_ICONS = {"open": "●", "merged": "✓", "closed": "✗"}

_STATUS_COLORS = {
    "success": "green",
    "passed": "green",
    "failed": "red",
    "running": "yellow",
    "pending": "bright_black",
    "canceled": "bright_black",
    "skipped": "bright_black",
}

_STATE_COLORS = {"open": "green", "merged": "magenta", "closed": "red"}


def styled(text: str, style: str | None) -> str:
    """Escape *text* and wrap it in markup for *style*."""
    text = escape(text)
    if not style:
        return text
    return f"[{style}]{text}[/{style}]"


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status.lower(), "?")


def status_color(status: str) -> str | None:
    return _STATUS_COLORS.get(status.lower())


def state_color(state: str) -> str | None:
    return _STATE_COLORS.get(state.lower())


def status_badge(status: str) -> str:
    """Pipeline or job status as a colored ``icon status`` badge."""
    return styled(f"{status_icon(status)} {status}", status_color(status))


def state_badge(state: str, icon: bool = False) -> str:
    """Merge request or issue state, optionally as its icon alone."""
    text = STATE_ICONS.get(state.lower(), "?") if icon else state
    return styled(text, state_color(state))


def format_duration(seconds: int) -> str:
    """``0`` -> ``-``, ``45`` -> ``45s``, ``120`` -> ``2m``, ``125`` -> ``2m 5s``."""
    if seconds <= 0:
        return "-"
    if seconds < 60:
        return f"{seconds}s"
    mins, secs = divmod(seconds, 60)
    if secs == 0:
        return f"{mins}m"
    return f"{mins}m {secs}s"


def format_relative_time(value: datetime | None, now: datetime | None = None) -> str:
    if value is None or is_zero(value):
        return "-"
    now = now or datetime.now(timezone.utc)
    seconds = (now - value).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    if seconds < 7 * 86400:
        return f"{int(seconds // 86400)}d ago"
    return f"{value:%b} {value.day}"


def format_size(size: int) -> str:
    """``512`` -> ``512 B``, ``2048`` -> ``2.0 KB``."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 3, 0)] + "..."


def _plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def to_json(value: Any) -> str:
    value = _plain(value)
    return json.dumps(value, indent=2, ensure_ascii=False)


_INDEX_RE = re.compile(r"^([^\[\]]*)\[(-?\d+)\]$")


def apply_path_filter(data: Any, expr: str) -> Any:
    """Evaluate a minimal jq path: ``.``, ``.a.b``, ``.[0]``, ``.items[2].name``."""
    expr = expr.strip()
    if expr in ("", "."):
        return data
    current = data
    for part in expr.removeprefix(".").split("."):
        if not part:
            continue
        m = _INDEX_RE.match(part)
        field, index = (m.group(1), int(m.group(2))) if m else (part, None)
        if field:
            if not isinstance(current, dict):
                msg = f"cannot access field {field} on non-object"
                raise ValueError(msg)
            current = current.get(field)
        if index is not None:
            if not isinstance(current, list):
                msg = "cannot index non-array"
                raise ValueError(msg)
            if not 0 <= index < len(current):
                msg = f"array index out of bounds: {index}"
                raise ValueError(msg)
            current = current[index]
    return current
