"""Triage service: the integration layer between the repository and the engine.

Loads a configuration snapshot from the repository, decodes uploads, runs the
claim analyzer, and drives the discovery -> assign -> save workflow.
"""

import logging
from typing import Dict, List, Optional, Set

from claims_triage.ingestion import RawRow, decode_rows
from claims_triage.schemas.catalog import ClientRuleSet, RuleKind
from claims_triage.schemas.claims import AnalysisResult
from claims_triage.schemas.discovery import DiscoveredItem, DiscoveryResult
from claims_triage.storage.protocol import RepositoryError, RuleRepository
from claims_triage.triage.analyzer import ClaimAnalyzer
from claims_triage.triage.discovery import discover_uncategorized, to_rule_batches
from claims_triage.triage.priority_scorer import ScoringConfig

logger = logging.getLogger(__name__)


class TriageServiceError(Exception):
    """Raised when a triage workflow step cannot be carried out."""

    pass


class NothingToSaveError(TriageServiceError):
    """Raised when saving discovery results with no item assigned a category."""

    pass


class StaleSelectionError(TriageServiceError):
    """Raised when discovery results belong to a different configuration."""

    pass


class ClaimsTriageService:
    """Service for analyzing claim uploads against a client configuration.

    Usage:
        service = ClaimsTriageService(repository)
        result = service.analyze_upload(config_id=1, data=raw, filename="claims.xlsx")
        for claim in result.work_queue():
            ...
    """

    def __init__(self, repository: RuleRepository, scoring: Optional[ScoringConfig] = None):
        self.repository = repository
        self.analyzer = ClaimAnalyzer(scoring=scoring)

    def load_rule_set(self, config_id: int) -> ClientRuleSet:
        """Snapshot a configuration with its edit and note rules.

        Raises:
            RecordNotFoundError: If the configuration does not exist
        """
        config = self.repository.get_config(config_id)
        rule_set = ClientRuleSet(
            config=config,
            edit_rules=tuple(self.repository.get_rules(RuleKind.EDIT, config_id)),
            note_rules=tuple(self.repository.get_rules(RuleKind.NOTE, config_id)),
        )
        logger.debug(
            f"Loaded config {config_id} ({config.name}): "
            f"{len(rule_set.edit_rules)} edit rules, {len(rule_set.note_rules)} note rules"
        )
        return rule_set

    def analyze_rows(self, config_id: int, rows: List[RawRow]) -> AnalysisResult:
        """Analyze already-decoded rows against a fresh snapshot."""
        return self.analyzer.analyze(rows, self.load_rule_set(config_id))

    def analyze_upload(self, config_id: int, data: bytes, filename: str) -> AnalysisResult:
        """Decode an upload and analyze it.

        The whole file is decoded before any row is analyzed, so a decoding
        failure produces no partial result.

        Raises:
            TabularDecodeError: If the upload cannot be decoded
            RecordNotFoundError: If the configuration does not exist
        """
        rule_set = self.load_rule_set(config_id)
        rows = decode_rows(data, filename)
        return self.analyzer.analyze(rows, rule_set)


class DiscoverySession:
    """Discovery workflow for one selected configuration.

    The known rule texts are derived from the repository when a configuration
    is selected and after every save that wrote rules; they are never edited
    in place.

    Usage:
        session = DiscoverySession(repository, config_id=1)
        result = session.process_upload(data, "claims.xlsx")
        session.assign(RuleKind.EDIT, "CO-45", category_id=3)
        session.save()
    """

    def __init__(self, repository: RuleRepository, config_id: Optional[int] = None):
        self.repository = repository
        self.config_id: Optional[int] = None
        self.result: Optional[DiscoveryResult] = None
        self._known: Dict[RuleKind, Set[str]] = {RuleKind.EDIT: set(), RuleKind.NOTE: set()}
        self._mapping: Dict[str, str] = {}
        if config_id is not None:
            self.select(config_id)

    def select(self, config_id: int) -> None:
        """Select a configuration, rebuilding known texts and clearing results."""
        config = self.repository.get_config(config_id)
        self._refresh_known(config_id)
        self._mapping = dict(config.column_mapping)
        self.config_id = config_id
        self.result = None
        logger.info(
            f"Selected config {config_id} ({config.name}): "
            f"{len(self._known[RuleKind.EDIT])} edit rules, "
            f"{len(self._known[RuleKind.NOTE])} note rules known"
        )

    def _refresh_known(self, config_id: int) -> None:
        self._known = {
            kind: {rule.text for rule in self.repository.get_rules(kind, config_id)}
            for kind in RuleKind
        }

    def known_texts(self, kind: RuleKind) -> Set[str]:
        return set(self._known[RuleKind(kind)])

    def _require_selection(self) -> int:
        if self.config_id is None:
            raise TriageServiceError("No configuration selected")
        return self.config_id

    def process_rows(self, rows: List[RawRow]) -> DiscoveryResult:
        """Run discovery over decoded rows for the selected configuration."""
        config_id = self._require_selection()
        self.result = discover_uncategorized(
            rows,
            self._mapping,
            self._known[RuleKind.EDIT],
            self._known[RuleKind.NOTE],
            config_id=config_id,
        )
        return self.result

    def process_upload(self, data: bytes, filename: str) -> DiscoveryResult:
        """Decode an upload and run discovery on it.

        Raises:
            TabularDecodeError: If the upload cannot be decoded (previous
                results are kept)
        """
        self._require_selection()
        rows = decode_rows(data, filename)
        return self.process_rows(rows)

    def _find_item(self, kind: RuleKind, text: str) -> DiscoveredItem:
        if self.result is None:
            raise TriageServiceError("No discovery results to assign")
        items = (
            self.result.uncategorized_edits
            if RuleKind(kind) == RuleKind.EDIT
            else self.result.uncategorized_notes
        )
        for item in items:
            if item.text == text:
                return item
        raise TriageServiceError(f"No uncategorized {RuleKind(kind).value} item: {text!r}")

    def assign(self, kind: RuleKind, text: str, category_id: Optional[int]) -> DiscoveredItem:
        """Assign (or with None, unassign) a category to a discovered item."""
        item = self._find_item(kind, text)
        item.category_id = category_id
        return item

    def save(self) -> int:
        """Persist every assigned item as a rule for the selected configuration.

        Returns:
            Number of rules saved

        Raises:
            NothingToSaveError: If no item has a category
            StaleSelectionError: If the results were computed for another config
            RepositoryError: If a repository write fails. Results and
                assignments are kept. If the edit batch was already written,
                the known texts are reloaded so a later discovery run does not
                offer those edits again.
        """
        config_id = self._require_selection()
        if self.result is None:
            raise NothingToSaveError("No discovery results to save")
        if self.result.config_id != config_id:
            raise StaleSelectionError(
                f"Discovery results belong to config {self.result.config_id}, "
                f"but config {config_id} is selected"
            )

        edit_rules, note_rules = to_rule_batches(self.result)
        if not edit_rules and not note_rules:
            raise NothingToSaveError("No new rules have been assigned to a category.")

        if edit_rules:
            self.repository.save_rules(RuleKind.EDIT, config_id, edit_rules)
        if note_rules:
            try:
                self.repository.save_rules(RuleKind.NOTE, config_id, note_rules)
            except RepositoryError:
                if edit_rules:
                    logger.warning(
                        f"Saved {len(edit_rules)} edit rules for config {config_id}, "
                        f"but the note rules failed"
                    )
                    self._refresh_known(config_id)
                raise

        saved = len(edit_rules) + len(note_rules)
        logger.info(f"Saved {saved} new rules for config {config_id}")
        self.select(config_id)
        return saved
