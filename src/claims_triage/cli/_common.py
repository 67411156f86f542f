"""Shared CLI utilities: initialization, logging and repository access."""

import logging

import typer
from rich.logging import RichHandler

from claims_triage.config.settings import SettingsError
from claims_triage.startup import AppState, ensure_initialized as _ensure_initialized
from claims_triage.storage import FileRepository, RepositoryError

logger = logging.getLogger(__name__)


def ensure_initialized(ctx: typer.Context) -> AppState:
    """Initialize environment and settings, honoring --data-file."""
    from claims_triage.cli._console import fail

    try:
        return _ensure_initialized(data_file=ctx.obj.get("data_file"))
    except SettingsError as e:
        fail(str(e))


def setup_logging(*, verbose: bool = False, quiet: bool = False, default_level: str = "INFO") -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.getLevelName(default_level)

    from claims_triage.cli._console import console

    handler = RichHandler(
        console=console,  # stderr, keeps --json output clean
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def init_command(ctx: typer.Context) -> AppState:
    """Common prologue of every command: initialize, then configure logging."""
    state = ensure_initialized(ctx)
    setup_logging(
        verbose=ctx.obj["verbose"],
        quiet=ctx.obj["quiet"],
        default_level=state.settings.log_level,
    )
    return state


def open_repository(state: AppState) -> FileRepository:
    """Open the repository file, exiting with an error if it is unreadable."""
    from claims_triage.cli._console import fail

    try:
        return FileRepository(state.data_file)
    except RepositoryError as e:
        fail(str(e))
