"""Tests for terminal formatting helpers and filename hygiene."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
from rich.console import Console

from gf_cli.flextime import ZERO_TIME
from gf_cli.models.issues import Issue
from gf_cli.output import (
    apply_path_filter,
    format_duration,
    format_relative_time,
    format_size,
    state_badge,
    status_badge,
    status_icon,
    styled,
    to_json,
    truncate,
)
from gf_cli.transfer import filename_from_disposition, safe_filename

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("status", "icon"),
    [("success", "✓"), ("passed", "✓"), ("failed", "✗"), ("running", "⧖"), ("pending", "◯"), ("canceled", "⊘"), ("skipped", "↷"), ("manual", "?")],
)
def test_status_icon(status: str, icon: str):
    assert status_icon(status) == icon


@pytest.mark.parametrize(("seconds", "text"), [(0, "-"), (-3, "-"), (45, "45s"), (120, "2m"), (125, "2m 5s")])
def test_format_duration(seconds: int, text: str):
    assert format_duration(seconds) == text


@pytest.mark.parametrize(
    ("delta", "text"),
    [
        (timedelta(seconds=10), "just now"),
        (timedelta(minutes=5), "5m ago"),
        (timedelta(hours=2), "2h ago"),
        (timedelta(days=3), "3d ago"),
    ],
)
def test_format_relative_time(delta: timedelta, text: str):
    assert format_relative_time(NOW - delta, now=NOW) == text


def test_format_relative_time_old_dates():
    assert format_relative_time(datetime(2024, 1, 2, tzinfo=timezone.utc), now=NOW) == "Jan 2"


def test_format_relative_time_zero():
    assert format_relative_time(ZERO_TIME, now=NOW) == "-"
    assert format_relative_time(None, now=NOW) == "-"


@pytest.mark.parametrize(("size", "text"), [(512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB"), (3 * 1024**3, "3.0 GB")])
def test_format_size(size: int, text: str):
    assert format_size(size) == text


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("a very long title", 10) == "a very ..."


def test_styled_escapes_markup():
    assert styled("ok", "green") == "[green]ok[/green]"
    assert styled("[bold]x[/bold]", None) == "\\[bold]x\\[/bold]"


@pytest.mark.parametrize(
    ("status", "badge"),
    [("success", "[green]✓ success[/green]"), ("failed", "[red]✗ failed[/red]"), ("manual", "? manual")],
)
def test_status_badge(status: str, badge: str):
    assert status_badge(status) == badge


def test_state_badge():
    assert state_badge("merged") == "[magenta]merged[/magenta]"
    assert state_badge("open", icon=True) == "[green]●[/green]"
    assert state_badge("draft", icon=True) == "?"


def test_badges_render_plain_without_terminal():
    out = io.StringIO()
    Console(file=out, highlight=False).print(f"Overall: {status_badge('running')} [dim]#3[/dim]")
    assert out.getvalue() == "Overall: ⧖ running #3\n"


def test_to_json_models():
    issue = Issue.model_validate({"localId": 3, "title": "Bug", "createdAt": "2024-01-15T10:30:00"})
    text = to_json([issue])
    assert '"local_id": 3' in text
    assert '"created_at": "2024-01-15T10:30:00Z"' in text


class TestPathFilter:
    DATA = {"user": {"name": "alice"}, "items": [{"id": 1}, {"id": 2}]}

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            (".", DATA),
            ("", DATA),
            (".user.name", "alice"),
            (".items[1].id", 2),
            (".items[0]", {"id": 1}),
            (".missing", None),
        ],
    )
    def test_paths(self, expr: str, expected):
        assert apply_path_filter(self.DATA, expr) == expected

    def test_array_root(self):
        assert apply_path_filter([10, 20], ".[1]") == 20

    @pytest.mark.parametrize(
        ("expr", "message"),
        [(".user.name.first", "non-object"), (".user[0]", "non-array"), (".items[5]", "out of bounds")],
    )
    def test_errors(self, expr: str, message: str):
        with pytest.raises(ValueError, match=message):
            apply_path_filter(self.DATA, expr)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("app.zip", "app.zip"), ("../../etc/passwd", "passwd"), ("dir\\evil.exe", "evil.exe"), ("..", ""), ("", ""), ("a/", "a")],
)
def test_safe_filename(name: str, expected: str):
    assert safe_filename(name) == expected


def test_filename_from_disposition():
    assert filename_from_disposition('attachment; filename="report.pdf"') == "report.pdf"
    assert filename_from_disposition("attachment; filename*=UTF-8''%D0%BE%D1%82%D1%87%D0%B5%D1%82.txt") == "отчет.txt"
    assert filename_from_disposition('attachment; filename="../x.sh"') == "x.sh"
    assert filename_from_disposition(None) == ""
    assert filename_from_disposition("inline") == ""
