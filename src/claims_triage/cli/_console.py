"""Rich consoles and output helpers for claims-triage commands.

Messages and tables go to stderr; ``--json`` data goes to stdout so it can be
piped to jq. Pydantic models are accepted anywhere data is printed.
"""

import json as json_mod
from typing import Any, NoReturn, Optional, Sequence, Union

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console(stderr=True)
stdout_console = Console()

Record = Union[dict, BaseModel]


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {escape(msg)}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {escape(msg)}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {escape(msg)}")


def fail(msg: str) -> NoReturn:
    """Print an error and exit the command with status 1."""
    print_err(msg)
    raise SystemExit(1)


def to_jsonable(data: Any) -> Any:
    """Dump pydantic models (also inside lists and dicts) to JSON-ready values."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {key: to_jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else ""
    return str(value)


def output_result(data: Record, *, ctx: typer.Context, title: str = "") -> None:
    """Print one record as JSON (stdout) or a Rich panel (stderr)."""
    data = to_jsonable(data)
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data, default=str)
        return

    formatted = escape(json_mod.dumps(data, indent=2, ensure_ascii=False, default=str))
    if title:
        console.print(Panel(formatted, title=escape(title), border_style="blue"))
    else:
        console.print(formatted)


def output_table(
    rows: Sequence[Record],
    *,
    ctx: typer.Context,
    title: str = "",
    columns: Optional[list[str]] = None,
) -> None:
    """Print records as a JSON array or a Rich table.

    Columns whose values are all numbers are right-aligned; booleans show as
    "yes" or blank.
    """
    dumped = [to_jsonable(row) for row in rows]
    if ctx.obj.get("json"):
        stdout_console.print_json(data=dumped, default=str)
        return

    if not dumped:
        console.print(f"[dim]No {escape(title.lower()) if title else 'data'}[/dim]")
        return

    cols = columns or list(dumped[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        values = [row.get(col) for row in dumped if row.get(col) is not None]
        numeric = bool(values) and all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in values
        )
        table.add_column(col, justify="right" if numeric else "left")
    for row in dumped:
        table.add_row(*[escape(_cell(row.get(c))) for c in cols])
    console.print(table)
