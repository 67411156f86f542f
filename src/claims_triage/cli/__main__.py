"""Allow running as ``python -m claims_triage.cli``."""

from claims_triage.cli import app

app()
