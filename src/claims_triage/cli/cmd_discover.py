"""Discover command: find edit codes and notes not covered by any rule."""

from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.markup import escape

from claims_triage.cli._app import app
from claims_triage.cli._common import init_command, open_repository
from claims_triage.cli._console import console, fail, output_result, print_ok, print_warn
from claims_triage.schemas.catalog import RuleKind


def parse_assignment(value: str) -> Tuple[RuleKind, str, int]:
    """Parse ``KIND:TEXT=CATEGORY_ID`` (the last ``=`` separates the ID).

    Raises:
        ValueError: If the value is malformed
    """
    kind_part, sep, rest = value.partition(":")
    if not sep:
        raise ValueError(f"Expected KIND:TEXT=CATEGORY_ID, got '{value}'")
    try:
        kind = RuleKind(kind_part.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown rule kind '{kind_part}'. Use 'edit' or 'note'")

    text, sep, category = rest.rpartition("=")
    if not sep or not text:
        raise ValueError(f"Expected KIND:TEXT=CATEGORY_ID, got '{value}'")
    try:
        category_id = int(category)
    except ValueError:
        raise ValueError(f"Category ID must be an integer, got '{category}'")
    return kind, text, category_id


@app.command("discover", help="List edit codes and notes that no rule covers yet.")
def discover_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Claims report (.xlsx or .csv)"),
    config_id: int = typer.Option(..., "--config", "-c", help="Client configuration ID"),
    assignments: Optional[List[str]] = typer.Option(
        None,
        "--assign",
        "-a",
        help="Save a rule: KIND:TEXT=CATEGORY_ID (repeatable)",
    ),
):
    """Run discovery, optionally saving category assignments as new rules."""
    state = init_command(ctx)

    from claims_triage.ingestion import TabularDecodeError
    from claims_triage.services import DiscoverySession, TriageServiceError
    from claims_triage.storage import RepositoryError

    try:
        parsed = [parse_assignment(a) for a in assignments or []]
    except ValueError as e:
        fail(str(e))

    repository = open_repository(state)

    try:
        data = file.read_bytes()
    except OSError as e:
        fail(f"Could not read {file}: {e}")

    try:
        session = DiscoverySession(repository, config_id=config_id)
        result = session.process_upload(data, file.name)
    except (TabularDecodeError, RepositoryError) as e:
        fail(str(e))

    saved = 0
    if parsed:
        try:
            for kind, text, category_id in parsed:
                repository.get_category(category_id)
                session.assign(kind, text, category_id)
            saved = session.save()
        except (TriageServiceError, RepositoryError) as e:
            fail(str(e))

    if ctx.obj["json"]:
        output_result(
            {**result.model_dump(mode="json"), "saved_rules": saved},
            ctx=ctx,
        )
        return

    if result.is_empty:
        print_ok("No new edit codes or notes found. All items are already categorized.")
        return

    for label, items in (
        ("Edits", result.uncategorized_edits),
        ("Notes", result.uncategorized_notes),
    ):
        console.print(f"\n[bold]Uncategorized {label}[/bold] ({len(items)})")
        for item in items:
            marker = f" -> category {item.category_id}" if item.category_id is not None else ""
            console.print(f"  {escape(item.text)}{marker}")

    if saved:
        print_ok(f"Saved {saved} new rules.")
    elif not parsed:
        print_warn("Use --assign KIND:TEXT=CATEGORY_ID to save rules.")
