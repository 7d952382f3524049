"""Multi-format timestamp decoding for Forge payloads.

The Forge mixes RFC 3339 timestamps with zone-less ones (with or without
microseconds). Zone-less values are taken as UTC. Empty strings and the
literal ``"null"`` decode to :data:`ZERO_TIME`.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_DATE_TIME = r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"

_RFC3339_RE = re.compile(rf"^{_DATE_TIME}(?:\.(\d+))?([Zz]|[+-]\d{{2}}:\d{{2}})$")
_LOCAL_MICROS_RE = re.compile(rf"^{_DATE_TIME}\.(\d{{1,6}})$")
_LOCAL_SECONDS_RE = re.compile(rf"^{_DATE_TIME}$")


class TimeFormat(str, Enum):
    EMPTY = "empty"
    RFC3339 = "rfc3339"
    LOCAL_MICROS = "local_micros"
    LOCAL_SECONDS = "local_seconds"


def _micros(fraction: str | None) -> int:
    if not fraction:
        return 0
    return int(fraction[:6].ljust(6, "0"))


def _zone(suffix: str) -> timezone:
    if suffix in ("Z", "z"):
        return timezone.utc
    sign = 1 if suffix[0] == "+" else -1
    hours, minutes = int(suffix[1:3]), int(suffix[4:6])
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _build(groups: tuple[str, ...], fraction: str | None, tz: timezone) -> datetime:
    year, month, day, hour, minute, second = (int(g) for g in groups[:6])
    return datetime(year, month, day, hour, minute, second, _micros(fraction), tzinfo=tz)


def parse_with_format(value: str) -> tuple[datetime, TimeFormat]:
    """Decode *value* and report which format matched.

    Raises ValueError for anything that is not one of the supported forms.
    """
    s = value.strip().strip('"')
    if s in ("", "null"):
        return ZERO_TIME, TimeFormat.EMPTY

    m = _RFC3339_RE.match(s)
    if m:
        return _build(m.groups(), m.group(7), _zone(m.group(8))), TimeFormat.RFC3339

    m = _LOCAL_MICROS_RE.match(s)
    if m:
        return _build(m.groups(), m.group(7), timezone.utc), TimeFormat.LOCAL_MICROS

    m = _LOCAL_SECONDS_RE.match(s)
    if m:
        return _build(m.groups(), None, timezone.utc), TimeFormat.LOCAL_SECONDS

    msg = f"cannot parse time: {value!r}"
    raise ValueError(msg)


def parse_flex_time(value: str) -> datetime:
    return parse_with_format(value)[0]


def is_zero(value: datetime | None) -> bool:
    return value is None or value == ZERO_TIME


def format_rfc3339(value: datetime) -> str:
    """Re-emit an instant as RFC 3339, keeping microseconds when present."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec="microseconds" if value.microsecond else "seconds")
    return text.replace("+00:00", "Z")


def _validate(value: Any) -> Any:
    if value is None:
        return ZERO_TIME
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_flex_time(value)
    return value


FlexTime = Annotated[
    datetime,
    BeforeValidator(_validate),
    PlainSerializer(format_rfc3339, return_type=str, when_used="json"),
]
"""Pydantic field type accepting every timestamp dialect the Forge emits."""
