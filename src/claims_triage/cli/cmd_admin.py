"""Catalog commands: teams, categories, client configurations and rules."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer

from claims_triage.cli._app import app
from claims_triage.cli._common import init_command, open_repository
from claims_triage.cli._console import Record, console, fail, output_result, output_table, print_ok
from claims_triage.schemas.catalog import NewRule, RuleKind
from claims_triage.storage import FileRepository, RepositoryError

teams_app = typer.Typer(no_args_is_help=True, help="Manage teams.")
categories_app = typer.Typer(no_args_is_help=True, help="Manage categories.")
configs_app = typer.Typer(no_args_is_help=True, help="Manage client configurations.")
rules_app = typer.Typer(no_args_is_help=True, help="Manage edit and note rules.")

app.add_typer(teams_app, name="teams")
app.add_typer(categories_app, name="categories")
app.add_typer(configs_app, name="configs")
app.add_typer(rules_app, name="rules")


def _repository(ctx: typer.Context) -> FileRepository:
    return open_repository(init_command(ctx))


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn repository and validation failures into a red line and exit 1."""
    try:
        yield
    except (RepositoryError, ValueError) as e:
        fail(str(e))


def _done(ctx: typer.Context, msg: str, data: Record) -> None:
    if ctx.obj["json"]:
        output_result(data, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(msg)


# -----------------------------------------------------------------------------
# Teams
# -----------------------------------------------------------------------------


@teams_app.command("list", help="List teams.")
def teams_list(ctx: typer.Context):
    repository = _repository(ctx)
    output_table(repository.get_teams(), ctx=ctx, title="Teams", columns=["id", "name"])


@teams_app.command("add", help="Create a team.")
def teams_add(ctx: typer.Context, name: str = typer.Argument(..., help="Team name")):
    repository = _repository(ctx)
    with _handle_errors():
        team = repository.create_team(name)
    _done(ctx, f"Created team {team.id}: {team.name}", team)


@teams_app.command("rename", help="Rename a team.")
def teams_rename(
    ctx: typer.Context,
    team_id: int = typer.Argument(..., help="Team ID"),
    name: str = typer.Argument(..., help="New team name"),
):
    repository = _repository(ctx)
    with _handle_errors():
        team = repository.update_team(team_id, name)
    _done(ctx, f"Renamed team {team.id} to {team.name}", team)


@teams_app.command("delete", help="Delete a team (its categories become unassigned).")
def teams_delete(ctx: typer.Context, team_id: int = typer.Argument(..., help="Team ID")):
    repository = _repository(ctx)
    with _handle_errors():
        repository.delete_team(team_id)
    _done(ctx, f"Deleted team {team_id}", {"deleted": team_id})


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------


@categories_app.command("list", help="List categories with their teams.")
def categories_list(ctx: typer.Context):
    repository = _repository(ctx)
    output_table(
        repository.get_categories(),
        ctx=ctx,
        title="Categories",
        columns=["id", "name", "team_name", "send_to_l1_monitor"],
    )


@categories_app.command("add", help="Create a category.")
def categories_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Category name"),
    team_id: Optional[int] = typer.Option(None, "--team", "-t", help="Owning team ID"),
    l1_monitor: bool = typer.Option(False, "--l1-monitor", help="Include in the L1 monitoring report"),
):
    repository = _repository(ctx)
    with _handle_errors():
        category = repository.create_category(name, team_id=team_id, send_to_l1_monitor=l1_monitor)
    _done(
        ctx,
        f"Created category {category.id}: {category.name} ({category.team_name})",
        category,
    )


@categories_app.command("set-team", help="Assign a category to a team (omit --team to unassign).")
def categories_set_team(
    ctx: typer.Context,
    category_id: int = typer.Argument(..., help="Category ID"),
    team_id: Optional[int] = typer.Option(None, "--team", "-t", help="Team ID"),
):
    repository = _repository(ctx)
    with _handle_errors():
        category = repository.update_category(category_id, {"team_id": team_id})
    _done(ctx, f"Category {category.name} -> {category.team_name}", category)


@categories_app.command("set-monitor", help="Turn the L1 monitor flag of a category on or off.")
def categories_set_monitor(
    ctx: typer.Context,
    category_id: int = typer.Argument(..., help="Category ID"),
    enabled: bool = typer.Option(True, "--on/--off", help="Monitor flag value"),
):
    repository = _repository(ctx)
    with _handle_errors():
        category = repository.update_category(category_id, {"send_to_l1_monitor": enabled})
    state = "on" if category.send_to_l1_monitor else "off"
    _done(ctx, f"L1 monitor {state} for {category.name}", category)


@categories_app.command("delete", help="Delete a category and every rule that targets it.")
def categories_delete(ctx: typer.Context, category_id: int = typer.Argument(..., help="Category ID")):
    repository = _repository(ctx)
    with _handle_errors():
        repository.delete_category(category_id)
    _done(ctx, f"Deleted category {category_id}", {"deleted": category_id})


# -----------------------------------------------------------------------------
# Client configurations
# -----------------------------------------------------------------------------


@configs_app.command("list", help="List client configurations.")
def configs_list(ctx: typer.Context):
    repository = _repository(ctx)
    rows = [
        {"id": config.id, "name": config.name, "mapped_fields": len(config.column_mapping)}
        for config in repository.get_configs()
    ]
    output_table(rows, ctx=ctx, title="Client configurations", columns=["id", "name", "mapped_fields"])


@configs_app.command("show", help="Show a configuration with its mapping and teams.")
def configs_show(ctx: typer.Context, config_id: int = typer.Argument(..., help="Configuration ID")):
    repository = _repository(ctx)
    with _handle_errors():
        config = repository.get_config(config_id)
        team_ids = repository.get_client_team_associations(config_id)
    data = {**config.model_dump(mode="json"), "team_ids": team_ids}
    output_result(data, ctx=ctx, title=config.name)


@configs_app.command("add", help="Create a client configuration.")
def configs_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Client/payer name"),
    mapping_file: Optional[Path] = typer.Option(
        None, "--mapping", "-m", help="YAML file of standard field -> client header"
    ),
):
    repository = _repository(ctx)

    from claims_triage.config.settings import SettingsError, load_column_mapping

    mapping = {}
    if mapping_file is not None:
        try:
            mapping = load_column_mapping(mapping_file)
        except SettingsError as e:
            fail(str(e))

    with _handle_errors():
        config = repository.create_config(name, mapping)
    _done(
        ctx,
        f"Created config {config.id}: {config.name} ({len(config.column_mapping)} mapped fields)",
        config,
    )


@configs_app.command("set-teams", help="Replace the teams associated with a configuration.")
def configs_set_teams(
    ctx: typer.Context,
    config_id: int = typer.Argument(..., help="Configuration ID"),
    team_ids: Optional[List[int]] = typer.Argument(None, help="Team IDs (none clears)"),
):
    repository = _repository(ctx)
    with _handle_errors():
        repository.save_client_team_associations(config_id, team_ids or [])
    _done(
        ctx,
        f"Config {config_id} teams: {team_ids or 'none'}",
        {"config_id": config_id, "team_ids": team_ids or []},
    )


@configs_app.command("delete", help="Delete a configuration with its rules.")
def configs_delete(ctx: typer.Context, config_id: int = typer.Argument(..., help="Configuration ID")):
    repository = _repository(ctx)
    with _handle_errors():
        repository.delete_config(config_id)
    _done(ctx, f"Deleted config {config_id}", {"deleted": config_id})


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------


@rules_app.command("list", help="List rules of one kind for a configuration.")
def rules_list(
    ctx: typer.Context,
    kind: RuleKind = typer.Argument(..., help="edit or note"),
    config_id: int = typer.Option(..., "--config", "-c", help="Configuration ID"),
):
    repository = _repository(ctx)
    with _handle_errors():
        repository.get_config(config_id)
        rules = repository.get_rules(kind, config_id)
    output_table(
        rules,
        ctx=ctx,
        title=f"{kind.value.capitalize()} rules",
        columns=["text", "category_name", "team_name", "send_to_l1_monitor"],
    )


@rules_app.command("add", help="Add or re-target a rule.")
def rules_add(
    ctx: typer.Context,
    kind: RuleKind = typer.Argument(..., help="edit or note"),
    text: str = typer.Argument(..., help="Edit code or note keyword"),
    category_id: int = typer.Argument(..., help="Target category ID"),
    config_id: int = typer.Option(..., "--config", "-c", help="Configuration ID"),
):
    repository = _repository(ctx)
    with _handle_errors():
        repository.save_rules(kind, config_id, [NewRule(text=text, category_id=category_id)])
    _done(
        ctx,
        f"Saved {kind.value} rule '{text}' -> category {category_id}",
        {"kind": kind.value, "config_id": config_id, "text": text, "category_id": category_id},
    )


@rules_app.command("delete", help="Delete a rule by text.")
def rules_delete(
    ctx: typer.Context,
    kind: RuleKind = typer.Argument(..., help="edit or note"),
    text: str = typer.Argument(..., help="Edit code or note keyword"),
    config_id: int = typer.Option(..., "--config", "-c", help="Configuration ID"),
):
    repository = _repository(ctx)
    with _handle_errors():
        repository.delete_rule(kind, config_id, text)
    _done(ctx, f"Deleted {kind.value} rule '{text}'", {"deleted": text})


# -----------------------------------------------------------------------------
# Field catalog
# -----------------------------------------------------------------------------


@app.command("fields", help="Print the standardized field catalog.")
def fields_cmd(ctx: typer.Context):
    from claims_triage.triage.fields import STANDARD_FIELDS

    if ctx.obj["json"]:
        output_result({"fields": list(STANDARD_FIELDS)}, ctx=ctx)
        return
    for name in STANDARD_FIELDS:
        console.print(name, markup=False)
