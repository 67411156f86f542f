"""Tests for the JSON-file rule/config repository."""

import json
from unittest.mock import patch

import pytest

from claims_triage.schemas.catalog import NewRule, RuleKind
from claims_triage.storage import FileRepository, RecordNotFoundError, RepositoryError, RuleRepository


class TestPersistence:
    """Tests for loading and saving the repository file."""

    def test_missing_file_is_empty(self, tmp_path):
        repo = FileRepository(tmp_path / "nested" / "data.json")
        assert repo.get_teams() == []
        assert repo.get_configs() == []

    def test_implements_protocol(self, repository):
        assert isinstance(repository, RuleRepository)

    def test_changes_survive_reload(self, seeded_repository):
        reloaded = FileRepository(seeded_repository.path)
        assert [t.name for t in reloaded.get_teams()] == ["Billing", "Appeals"]
        assert [r.text for r in reloaded.get_rules(RuleKind.EDIT, 1)] == ["CO-45"]

    def test_ids_continue_after_reload(self, seeded_repository):
        reloaded = FileRepository(seeded_repository.path)
        assert reloaded.create_team("Intake").id == 3

    def test_ids_not_reused_after_delete(self, repository):
        first = repository.create_team("A")
        repository.delete_team(first.id)
        assert repository.create_team("B").id == first.id + 1

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RepositoryError):
            FileRepository(path)

    def test_failed_write_leaves_state_unchanged(self, seeded_repository):
        before = seeded_repository.path.read_text(encoding="utf-8")
        with patch.object(FileRepository, "_write", side_effect=RepositoryError("disk full")):
            with pytest.raises(RepositoryError):
                seeded_repository.delete_category(1)
        assert [c.id for c in seeded_repository.get_categories()] == [1, 3, 2]
        assert seeded_repository.path.read_text(encoding="utf-8") == before

    def test_no_temp_file_left(self, seeded_repository):
        assert not list(seeded_repository.path.parent.glob("*.tmp"))


class TestTeams:
    """Tests for team operations."""

    def test_create_and_rename(self, repository):
        team = repository.create_team("Billing")
        renamed = repository.update_team(team.id, "Billing Ops")
        assert renamed.name == "Billing Ops"
        assert [t.name for t in repository.get_teams()] == ["Billing Ops"]

    def test_rename_visible_in_joins(self, seeded_repository):
        seeded_repository.update_team(1, "Revenue")
        assert seeded_repository.get_category(1).team_name == "Revenue"
        assert seeded_repository.get_rules(RuleKind.EDIT, 1)[0].team_name == "Revenue"

    def test_blank_name_rejected(self, repository):
        with pytest.raises(ValueError):
            repository.create_team("")

    def test_delete_unassigns_categories_and_associations(self, seeded_repository):
        seeded_repository.save_client_team_associations(1, [1, 2])
        seeded_repository.delete_team(1)

        category = seeded_repository.get_category(1)
        assert category.team_id is None
        assert category.team_name == "Unassigned"
        assert seeded_repository.get_client_team_associations(1) == [2]
        # Rules keep targeting the category
        assert seeded_repository.get_rules(RuleKind.EDIT, 1)[0].category_name == "Contractual"

    def test_delete_missing(self, repository):
        with pytest.raises(RecordNotFoundError):
            repository.delete_team(99)


class TestCategories:
    """Tests for category operations."""

    def test_sorted_by_name_with_team_names(self, seeded_repository):
        categories = seeded_repository.get_categories()
        assert [c.name for c in categories] == ["Contractual", "General Filing", "Timely Filing"]
        assert [c.team_name for c in categories] == ["Billing", "Unassigned", "Appeals"]

    def test_create_with_unknown_team(self, repository):
        with pytest.raises(RecordNotFoundError):
            repository.create_category("Orphan", team_id=42)

    def test_update_team_and_flag(self, seeded_repository):
        updated = seeded_repository.update_category(3, {"team_id": 2, "send_to_l1_monitor": True})
        assert updated.team_name == "Appeals"
        assert updated.send_to_l1_monitor is True

    def test_update_to_unassigned(self, seeded_repository):
        assert seeded_repository.update_category(1, {"team_id": None}).team_name == "Unassigned"

    def test_update_unknown_field_rejected(self, seeded_repository):
        with pytest.raises(ValueError):
            seeded_repository.update_category(1, {"color": "red"})

    def test_delete_removes_rules(self, seeded_repository):
        seeded_repository.delete_category(2)
        assert seeded_repository.get_rules(RuleKind.NOTE, 1) == []
        assert [r.text for r in seeded_repository.get_rules(RuleKind.EDIT, 1)] == ["CO-45"]


class TestConfigs:
    """Tests for client configuration operations."""

    def test_blank_headers_dropped(self, repository):
        config = repository.create_config("Acme", {"Claim Number": "ClaimNo", "Claim Edits": "  "})
        assert config.column_mapping == {"Claim Number": "ClaimNo"}

    def test_update_mapping(self, seeded_repository):
        updated = seeded_repository.update_config(1, {"column_mapping": {"Claim Edits": "Edits"}})
        assert seeded_repository.get_config(1).column_mapping == {"Claim Edits": "Edits"}
        assert updated.name == "Acme Health"

    def test_get_missing(self, repository):
        with pytest.raises(RecordNotFoundError):
            repository.get_config(1)

    def test_delete_cascades(self, seeded_repository):
        seeded_repository.save_client_team_associations(1, [1])
        seeded_repository.delete_config(1)

        data = json.loads(seeded_repository.path.read_text(encoding="utf-8"))
        assert data["configs"] == []
        assert data["edit_rules"] == []
        assert data["note_rules"] == []
        assert data["client_team_associations"] == []
        # Categories and teams are shared and survive
        assert len(data["categories"]) == 3
        assert len(data["teams"]) == 2


class TestRules:
    """Tests for rule operations."""

    def test_joined_view(self, seeded_repository):
        rule = seeded_repository.get_rules(RuleKind.EDIT, 1)[0]
        assert rule.category_name == "Contractual"
        assert rule.team_name == "Billing"
        assert rule.send_to_l1_monitor is True

    def test_rule_for_unassigned_category_has_unknown_team(self, seeded_repository):
        seeded_repository.save_rules(RuleKind.NOTE, 1, [NewRule(text="misc", category_id=3)])
        rule = [r for r in seeded_repository.get_rules(RuleKind.NOTE, 1) if r.text == "misc"][0]
        assert rule.team_name == "Unknown"

    def test_upsert_by_text(self, seeded_repository):
        seeded_repository.save_rules(
            RuleKind.EDIT,
            1,
            [NewRule(text="CO-45", category_id=3), NewRule(text="CO-97", category_id=1)],
        )
        rules = seeded_repository.get_rules(RuleKind.EDIT, 1)
        assert [(r.text, r.category_id) for r in rules] == [("CO-45", 3), ("CO-97", 1)]

    def test_rules_scoped_to_config(self, seeded_repository):
        other = seeded_repository.create_config("Other", {})
        assert seeded_repository.get_rules(RuleKind.EDIT, other.id) == []

    def test_batch_is_all_or_nothing(self, seeded_repository):
        with pytest.raises(RecordNotFoundError):
            seeded_repository.save_rules(
                RuleKind.EDIT,
                1,
                [NewRule(text="CO-97", category_id=1), NewRule(text="CO-16", category_id=99)],
            )
        assert [r.text for r in seeded_repository.get_rules(RuleKind.EDIT, 1)] == ["CO-45"]

    def test_save_for_missing_config(self, seeded_repository):
        with pytest.raises(RecordNotFoundError):
            seeded_repository.save_rules(RuleKind.EDIT, 9, [NewRule(text="X", category_id=1)])

    def test_delete_rule(self, seeded_repository):
        seeded_repository.delete_rule(RuleKind.NOTE, 1, "timely filing")
        assert seeded_repository.get_rules(RuleKind.NOTE, 1) == []

    def test_delete_missing_rule(self, seeded_repository):
        with pytest.raises(RecordNotFoundError):
            seeded_repository.delete_rule(RuleKind.NOTE, 1, "nope")


class TestClientTeamAssociations:
    """Tests for client-team associations."""

    def test_replace_set(self, seeded_repository):
        seeded_repository.save_client_team_associations(1, [1, 2, 2])
        assert seeded_repository.get_client_team_associations(1) == [1, 2]
        seeded_repository.save_client_team_associations(1, [2])
        assert seeded_repository.get_client_team_associations(1) == [2]
        seeded_repository.save_client_team_associations(1, [])
        assert seeded_repository.get_client_team_associations(1) == []

    def test_unknown_team_rejected(self, seeded_repository):
        with pytest.raises(RecordNotFoundError):
            seeded_repository.save_client_team_associations(1, [7])
