"""Tests for the triage service and the discovery session workflow."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from claims_triage.ingestion import TabularDecodeError
from claims_triage.schemas.catalog import RuleKind
from claims_triage.schemas.claims import ClassificationSource
from claims_triage.services import (
    ClaimsTriageService,
    DiscoverySession,
    NothingToSaveError,
    StaleSelectionError,
    TriageServiceError,
)
from claims_triage.storage import RecordNotFoundError, RepositoryError

from factories import SAMPLE_HEADERS, build_csv, build_xlsx


class TestLoadRuleSet:
    """Tests for configuration snapshots."""

    def test_snapshot_contents(self, seeded_repository):
        rule_set = ClaimsTriageService(seeded_repository).load_rule_set(1)
        assert rule_set.config_id == 1
        assert rule_set.column_mapping["Claim Edits"] == "EditCol"
        assert rule_set.known_texts(RuleKind.EDIT) == ["CO-45"]
        assert rule_set.known_texts(RuleKind.NOTE) == ["timely filing"]
        assert rule_set.edit_rules[0].send_to_l1_monitor is True

    def test_snapshot_is_frozen(self, seeded_repository):
        rule_set = ClaimsTriageService(seeded_repository).load_rule_set(1)
        with pytest.raises(Exception):
            rule_set.edit_rules = ()

    def test_missing_config(self, seeded_repository):
        with pytest.raises(RecordNotFoundError):
            ClaimsTriageService(seeded_repository).load_rule_set(42)


class TestAnalyzeUpload:
    """Tests for end-to-end upload analysis."""

    def test_xlsx_upload(self, seeded_repository, sample_upload_rows):
        service = ClaimsTriageService(seeded_repository)
        result = service.analyze_upload(1, build_xlsx(sample_upload_rows), "claims.xlsx")

        by_id = {claim.claim_id: claim for claim in result.claims}
        assert by_id["C-1"].source == ClassificationSource.EDIT_RULE
        assert by_id["C-1"].category == "Contractual"
        assert by_id["C-1"].priority_score == 17
        assert by_id["C-2"].source == ClassificationSource.NOTE_RULE
        assert by_id["C-2"].team == "Appeals"
        assert by_id["C-2"].priority_score == 131
        assert by_id["C-3"].category == "Needs Triage"
        assert by_id["C-3"].provider_name == "Unknown"
        assert by_id["C-4"].priority_score == -1

        assert [c.claim_id for c in result.work_queue()] == ["C-2", "C-1", "C-3"]
        assert result.metrics.total_claims == 4
        assert result.metrics.total_net_payment == Decimal("1350.50")
        assert result.metrics.claims_by_status == {"APPROVE": 2, "DENY": 1, "PAID": 1}

    def test_csv_upload(self, seeded_repository, sample_upload_rows):
        service = ClaimsTriageService(seeded_repository)
        result = service.analyze_upload(1, build_csv(sample_upload_rows), "claims.csv")
        assert result.metrics.total_claims == 4
        assert result.work_queue()[0].claim_id == "C-2"

    def test_rules_read_fresh_each_call(self, seeded_repository):
        service = ClaimsTriageService(seeded_repository)
        rows = [SAMPLE_HEADERS, ["C-1", "PEND", "APPROVE", "", 1, 0, 0, "CO-97", ""]]
        data = build_xlsx(rows)
        assert service.analyze_upload(1, data, "c.xlsx").claims[0].category == "Needs Triage"

        from claims_triage.schemas.catalog import NewRule

        seeded_repository.save_rules(RuleKind.EDIT, 1, [NewRule(text="CO-97", category_id=1)])
        assert service.analyze_upload(1, data, "c.xlsx").claims[0].category == "Contractual"

    def test_decode_failure(self, seeded_repository):
        with pytest.raises(TabularDecodeError):
            ClaimsTriageService(seeded_repository).analyze_upload(1, b"garbage", "claims.xlsx")


class TestDiscoverySession:
    """Tests for the discovery -> assign -> save workflow."""

    def _upload(self):
        return build_xlsx([
            SAMPLE_HEADERS,
            ["C-1", "PEND", "", "", "", "", "", "CO-45", "timely filing"],
            ["C-2", "PEND", "", "", "", "", "", "CO-97", "call payer"],
            ["C-3", "PEND", "", "", "", "", "", "CO-16", "call payer"],
        ])

    def test_process_upload(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        result = session.process_upload(self._upload(), "claims.xlsx")
        assert [i.text for i in result.uncategorized_edits] == ["CO-16", "CO-97"]
        assert [i.text for i in result.uncategorized_notes] == ["call payer"]
        assert result.config_id == 1

    def test_assign_and_save(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        session.process_upload(self._upload(), "claims.xlsx")
        session.assign(RuleKind.EDIT, "CO-97", 1)
        session.assign(RuleKind.NOTE, "call payer", 3)

        assert session.save() == 2
        edit_texts = [r.text for r in seeded_repository.get_rules(RuleKind.EDIT, 1)]
        assert edit_texts == ["CO-45", "CO-97"]
        assert "call payer" in session.known_texts(RuleKind.NOTE)
        assert session.result is None

        # Rediscovery no longer reports saved items
        result = session.process_upload(self._upload(), "claims.xlsx")
        assert [i.text for i in result.uncategorized_edits] == ["CO-16"]
        assert result.uncategorized_notes == []

    def test_save_with_nothing_assigned(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        session.process_upload(self._upload(), "claims.xlsx")
        with pytest.raises(NothingToSaveError):
            session.save()

    def test_save_without_results(self, seeded_repository):
        with pytest.raises(NothingToSaveError):
            DiscoverySession(seeded_repository, config_id=1).save()

    def test_stale_results_rejected(self, seeded_repository):
        other = seeded_repository.create_config("Other", {"Claim Edits": "EditCol"})
        session = DiscoverySession(seeded_repository, config_id=1)
        result = session.process_upload(self._upload(), "claims.xlsx")
        session.assign(RuleKind.EDIT, "CO-97", 1)

        # Simulate a selection change that kept old results around
        session.config_id = other.id
        session.result = result
        with pytest.raises(StaleSelectionError):
            session.save()
        assert seeded_repository.get_rules(RuleKind.EDIT, other.id) == []

    def test_select_clears_results(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        session.process_upload(self._upload(), "claims.xlsx")
        other = seeded_repository.create_config("Other", {})
        session.select(other.id)
        assert session.result is None
        assert session.known_texts(RuleKind.EDIT) == set()

    def test_repository_failure_keeps_session(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        result = session.process_upload(self._upload(), "claims.xlsx")
        session.assign(RuleKind.EDIT, "CO-97", 1)

        with patch.object(seeded_repository, "save_rules", side_effect=RepositoryError("locked")):
            with pytest.raises(RepositoryError):
                session.save()

        assert session.result is result
        assert result.uncategorized_edits[1].category_id == 1
        assert "CO-97" not in session.known_texts(RuleKind.EDIT)

    def test_note_batch_failure_reloads_known_edits(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        result = session.process_upload(self._upload(), "claims.xlsx")
        session.assign(RuleKind.EDIT, "CO-97", 1)
        session.assign(RuleKind.NOTE, "call payer", 3)
        save_rules = seeded_repository.save_rules

        def fail_notes(kind, config_id, rules):
            if kind == RuleKind.NOTE:
                raise RepositoryError("disk full")
            return save_rules(kind, config_id, rules)

        with patch.object(seeded_repository, "save_rules", side_effect=fail_notes):
            with pytest.raises(RepositoryError):
                session.save()

        assert [r.text for r in seeded_repository.get_rules(RuleKind.EDIT, 1)] == ["CO-45", "CO-97"]
        assert "CO-97" in session.known_texts(RuleKind.EDIT)
        assert "call payer" not in session.known_texts(RuleKind.NOTE)
        assert session.result is result
        assert result.uncategorized_notes[0].category_id == 3

        rediscovered = session.process_upload(self._upload(), "claims.xlsx")
        assert [i.text for i in rediscovered.uncategorized_edits] == ["CO-16"]

    def test_assign_unknown_item(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        session.process_upload(self._upload(), "claims.xlsx")
        with pytest.raises(TriageServiceError):
            session.assign(RuleKind.EDIT, "CO-45", 1)

    def test_no_selection(self, seeded_repository):
        with pytest.raises(TriageServiceError):
            DiscoverySession(seeded_repository).process_rows([])

    def test_decode_failure_keeps_previous_results(self, seeded_repository):
        session = DiscoverySession(seeded_repository, config_id=1)
        result = session.process_upload(self._upload(), "claims.xlsx")
        with pytest.raises(TabularDecodeError):
            session.process_upload(b"", "claims.xlsx")
        assert session.result is result
