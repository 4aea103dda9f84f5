"""
Styled terminal output for the sysdef CLI.

Message helpers echo immediately; ``bold`` only returns styled text.
Layout helpers:

    section("demo")                 ── demo ───────────────
    kv("Version", "1.0.0")            Version:        1.0.0
    tree_item("a.py", last=True)    └── a.py
    table(headers, rows)            aligned columns under a rule

Click drops the colour codes when output is not a terminal.
"""

from __future__ import annotations

import functools
import shutil
from typing import Any, Optional, Sequence

import click

_L_H   = "\u2500"   # ─
_L_BL  = "\u2514"   # └
_L_LT  = "\u251c"   # ├
_ARROW = "\u2192"   # →
_CHECK = "\u2713"   # ✓
_CROSS = "\u2717"   # ✗

_PALETTE = {
    "success": {"fg": "green"},
    "error": {"fg": "red"},
    "warning": {"fg": "yellow"},
    "info": {"fg": "cyan"},
    "dim": {"dim": True},
}


@functools.lru_cache(maxsize=None)
def _width() -> int:
    """Terminal columns, clamped to 40..120."""
    columns = shutil.get_terminal_size((80, 24)).columns
    return max(40, min(columns, 120))


def _echo(message: str, role: str, *, err: bool = False) -> None:
    click.echo(click.style(message, **_PALETTE[role]), err=err)


def success(message: str) -> None:
    _echo(message, "success")


def error(message: str) -> None:
    """Red, on stderr."""
    _echo(message, "error", err=True)


def warning(message: str) -> None:
    _echo(message, "warning")


def info(message: str) -> None:
    _echo(message, "info")


def dim(message: str) -> None:
    _echo(message, "dim")


def bold(message: str) -> str:
    return click.style(message, bold=True)


def section(title: str, *, width: Optional[int] = None) -> None:
    """Title between horizontal rules, spanning the terminal."""
    rule = _L_H * max(4, (width or _width()) - len(title) - 6)
    click.echo(click.style(f"{_L_H * 2} {title} {rule}", fg="cyan", bold=True))


def kv(key: str, value: Any, *, key_width: int = 16, indent: int = 2) -> None:
    """``key:`` padded to *key_width*, then the value in cyan."""
    label = f"{key}:".ljust(key_width)
    click.echo(" " * indent + label + click.style(str(value), fg="cyan"))


def tree_item(text: str, *, last: bool = False, depth: int = 0) -> None:
    """One node of an indented tree; *last* picks the closing connector."""
    branch = _L_BL if last else _L_LT
    prefix = "    " * depth + f"{branch}{_L_H * 2} "
    click.echo(click.style(prefix, dim=True) + text)


def table(headers: Sequence[str], rows: Sequence[Sequence[Any]], *, indent: int = 2) -> None:
    """Left-aligned columns sized to their widest cell."""
    cells = [[str(cell) for cell in row[:len(headers)]] for row in rows]
    widths = [
        max([len(header)] + [len(row[i]) for row in cells if i < len(row)]) + 2
        for i, header in enumerate(headers)
    ]
    pad = " " * indent

    def line(values: Sequence[str]) -> str:
        return "".join(value.ljust(widths[i]) for i, value in enumerate(values))

    click.echo(pad + click.style(line(headers), fg="cyan", bold=True))
    click.echo(pad + click.style(" ".join(_L_H * (w - 1) for w in widths), dim=True))
    for row in cells:
        click.echo(pad + line(row))
