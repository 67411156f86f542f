"""Analyze command: build the prioritized work queue for an upload."""

from pathlib import Path
from typing import Optional

import typer

from claims_triage.cli._app import app
from claims_triage.cli._common import init_command, open_repository
from claims_triage.cli._console import console, fail, output_result, output_table

QUEUE_COLUMNS = [
    "claim_id",
    "state",
    "status",
    "age",
    "category",
    "team",
    "source",
    "priority_score",
    "provider_name",
]


def _claim_row(claim) -> dict:
    row = claim.model_dump(mode="json", exclude={"classification"})
    row["source"] = claim.source.value if claim.source else ""
    row["send_to_l1_monitor"] = claim.send_to_l1_monitor
    return row


@app.command("analyze", help="Classify and score the claims in an XLSX/CSV upload.")
def analyze_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Claims report (.xlsx or .csv)"),
    config_id: int = typer.Option(..., "--config", "-c", help="Client configuration ID"),
    all_claims: bool = typer.Option(False, "--all", help="List every claim, not only the work queue"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show at most N claims"),
):
    """Run classification and scoring for one upload."""
    state = init_command(ctx)

    from claims_triage.ingestion import TabularDecodeError
    from claims_triage.services import ClaimsTriageService
    from claims_triage.storage import RepositoryError

    repository = open_repository(state)
    service = ClaimsTriageService(repository, scoring=state.settings.scoring.to_config())

    try:
        data = file.read_bytes()
    except OSError as e:
        fail(f"Could not read {file}: {e}")

    try:
        result = service.analyze_upload(config_id, data, file.name)
    except (TabularDecodeError, RepositoryError) as e:
        fail(str(e))

    claims = result.claims if all_claims else result.work_queue()
    if limit is not None:
        claims = claims[:limit]
    rows = [_claim_row(claim) for claim in claims]

    if ctx.obj["json"]:
        output_result(
            {
                "config_id": result.config_id,
                "metrics": result.metrics.model_dump(mode="json"),
                "actionable_claims": result.actionable_count,
                "claims": rows,
            },
            ctx=ctx,
        )
        return

    metrics = result.metrics
    if not ctx.obj["quiet"]:
        console.print(
            f"\n[bold]{metrics.total_claims}[/bold] claims, "
            f"[bold]{result.actionable_count}[/bold] actionable, "
            f"net payment [bold]${metrics.total_net_payment:,.2f}[/bold]"
        )
        for status, count in sorted(metrics.claims_by_status.items()):
            console.print(f"  {status}: {count}")

    output_table(
        rows,
        ctx=ctx,
        title="All claims" if all_claims else "Work queue",
        columns=QUEUE_COLUMNS,
    )
