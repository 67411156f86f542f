"""Shared fixtures for claims_triage tests."""

from typing import Any, List

import pytest

from claims_triage.schemas.catalog import ClientConfig, ClientRuleSet, NewRule, RuleKind
from claims_triage.storage import FileRepository

from factories import SAMPLE_HEADERS, SAMPLE_MAPPING, make_rule


@pytest.fixture
def sample_config() -> ClientConfig:
    return ClientConfig(id=1, name="Acme Health", column_mapping=SAMPLE_MAPPING)


@pytest.fixture
def sample_rule_set(sample_config) -> ClientRuleSet:
    """Config with one edit rule and two overlapping note rules."""
    return ClientRuleSet(
        config=sample_config,
        edit_rules=(make_rule("CO-45", 1, "Contractual", "Billing", monitor=True),),
        note_rules=(
            make_rule("filing", 3, "General Filing", "Intake"),
            make_rule("timely filing", 2, "Timely Filing", "Appeals"),
        ),
    )


@pytest.fixture
def repository(tmp_path) -> FileRepository:
    """Empty repository backed by a file under tmp_path."""
    return FileRepository(tmp_path / "data.json")


@pytest.fixture
def seeded_repository(repository) -> FileRepository:
    """Repository with two teams, three categories, one config and rules.

    IDs: teams Billing=1, Appeals=2; categories Contractual=1,
    Timely Filing=2, General Filing=3 (no team); config Acme Health=1.
    """
    billing = repository.create_team("Billing")
    appeals = repository.create_team("Appeals")
    contractual = repository.create_category("Contractual", team_id=billing.id, send_to_l1_monitor=True)
    timely = repository.create_category("Timely Filing", team_id=appeals.id)
    repository.create_category("General Filing")
    config = repository.create_config("Acme Health", SAMPLE_MAPPING)

    repository.save_rules(RuleKind.EDIT, config.id, [NewRule(text="CO-45", category_id=contractual.id)])
    repository.save_rules(RuleKind.NOTE, config.id, [NewRule(text="timely filing", category_id=timely.id)])
    return repository


@pytest.fixture
def sample_upload_rows() -> List[List[Any]]:
    """Header plus four claims: edit match, note match, default, non-actionable."""
    return [
        SAMPLE_HEADERS,
        ["C-1", "PEND", "APPROVE", "Dr. Adams", 10, 1000, "250.00", "CO-45", "pending review"],
        ["C-2", "onhold", "deny", "Bay Clinic", 20, 500, "100", "XYZ", "Denied for TIMELY FILING issue"],
        ["C-3", "ManagementReview", "APPROVE", None, 2, 0, None, None, "no keywords here"],
        ["C-4", "CLOSED", "PAID", "Dr. Adams", 90, 99999, "1,000.50", "CO-45", "timely filing"],
    ]
