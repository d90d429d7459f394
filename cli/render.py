from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_COLUMNS = (
    ("node", "node"),
    ("minute", "minutely_temperature"),
    ("hour", "hourly_temperature"),
    ("day", "daily_temperature"),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def _format_cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _echo_table(rows: Iterable[List[str]]) -> None:
    header = [title for title, _ in _COLUMNS]
    body = list(rows)
    widths = [
        max(len(cell) for cell in column) for column in zip(header, *body)
    ]
    for row in [header, *body]:
        typer.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())


def render_report(payload: Dict[str, Any]) -> None:
    echo_heading("Node Temperatures (°C)")
    measurements = payload.get("measurements") or []
    if not measurements:
        typer.echo("No measurements reported.")
        return
    _echo_table(
        [_format_cell(item.get(key)) for _, key in _COLUMNS] for item in measurements
    )
