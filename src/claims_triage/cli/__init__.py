"""CLI package: Typer-based command-line interface.

Usage:
    python -m claims_triage.cli --help
    python -m claims_triage.cli analyze --help
"""

from claims_triage.cli._app import app

# Register command modules (side-effect imports)
import claims_triage.cli.cmd_analyze  # noqa: F401
import claims_triage.cli.cmd_discover  # noqa: F401
import claims_triage.cli.cmd_admin  # noqa: F401

__all__ = ["app"]
