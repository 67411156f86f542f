"""Claim analyzer: raw upload rows -> normalized work-queue records + metrics.

Each row is read through the client's column mapping. Metrics are updated
for every row; only rows in an actionable state are classified and scored.

Architecture:
    raw rows -> ColumnMapper -> NormalizedClaim
                                   | (actionable only)
                                   v
                      RuleResolver + score_priority
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Tuple

from claims_triage.schemas.catalog import ClientRuleSet
from claims_triage.schemas.claims import (
    NOT_APPLICABLE,
    UNKNOWN,
    AnalysisResult,
    ClaimMetrics,
    NormalizedClaim,
)
from claims_triage.triage import fields
from claims_triage.triage.column_mapper import ColumnMapper
from claims_triage.triage.priority_scorer import ScoringConfig, score_priority
from claims_triage.triage.rule_resolver import RuleResolver
from claims_triage.utils.number_parsing import parse_decimal, parse_int

logger = logging.getLogger(__name__)

ACTIONABLE_STATES = frozenset({"PEND", "ONHOLD", "MANAGEMENTREVIEW"})


def is_actionable_state(state: str) -> bool:
    """Whether a normalized claim state puts the claim in the work queue."""
    return state in ACTIONABLE_STATES


class ClaimAnalyzer:
    """Turns one upload into normalized claims and portfolio metrics.

    The analyzer holds no configuration state between calls: the column
    mapping and rules come from the ``ClientRuleSet`` passed to ``analyze``.

    Usage:
        analyzer = ClaimAnalyzer()
        result = analyzer.analyze(rows, rule_set)
        queue = result.work_queue()
    """

    def __init__(self, scoring: Optional[ScoringConfig] = None):
        self.scoring = scoring or ScoringConfig()

    def analyze(
        self,
        raw_rows: Iterable[Mapping[str, Any]],
        rule_set: ClientRuleSet,
    ) -> AnalysisResult:
        """Analyze rows against one configuration snapshot.

        Args:
            raw_rows: Decoded rows keyed by source header, in upload order
            rule_set: Configuration (column mapping) plus edit/note rules

        Returns:
            AnalysisResult with claims in input order and metrics over all rows
        """
        mapper = ColumnMapper(rule_set.column_mapping)
        resolver = RuleResolver.from_rule_set(rule_set)
        metrics = ClaimMetrics()
        claims = []

        for row in raw_rows:
            claim, net_payment = self._normalize(row, mapper)
            metrics.record(claim.status, net_payment)

            if claim.is_actionable:
                self._classify_and_score(claim, row, mapper, resolver)

            claims.append(claim)

        result = AnalysisResult(config_id=rule_set.config_id, claims=claims, metrics=metrics)
        logger.info(
            f"Analyzed {metrics.total_claims} rows for config {rule_set.config_id}: "
            f"{result.actionable_count} actionable"
        )
        return result

    def _normalize(
        self, row: Mapping[str, Any], mapper: ColumnMapper
    ) -> Tuple[NormalizedClaim, Optional[Decimal]]:
        """Read the identity/state fields of a row.

        Returns the claim and the parsed net payment (None when the cell did
        not parse, so metrics can skip it).
        """
        state = (mapper.text(row, fields.CLAIM_STATE).strip() or UNKNOWN).upper()
        status = (mapper.text(row, fields.CLAIM_STATUS).strip() or UNKNOWN).upper()
        age = parse_int(mapper.get(row, fields.AGE)) or 0

        net_payment = parse_decimal(mapper.get(row, fields.TOTAL_NET_PAYMENT))

        claim = NormalizedClaim(
            claim_id=mapper.text(row, fields.CLAIM_NUMBER) or NOT_APPLICABLE,
            state=state,
            status=status,
            age=max(age, 0),
            net_payment=net_payment if net_payment is not None else Decimal("0"),
            provider_name=mapper.text(row, fields.BILLING_PROVIDER_NAME) or "Unknown",
            is_actionable=is_actionable_state(state),
            raw=dict(row),
        )
        return claim, net_payment

    def _classify_and_score(
        self,
        claim: NormalizedClaim,
        row: Mapping[str, Any],
        mapper: ColumnMapper,
        resolver: RuleResolver,
    ) -> None:
        classification = resolver.classify(
            mapper.get(row, fields.CLAIM_EDITS),
            mapper.get(row, fields.CLAIM_NOTES),
        )
        claim.classification = classification
        claim.category = classification.category
        claim.team = classification.team
        claim.priority_score = score_priority(
            mapper.get(row, fields.TOTAL_CHARGES),
            claim.age,
            claim.status,
            self.scoring,
        )
        logger.debug(
            f"Claim {claim.claim_id}: {classification.source.value} -> "
            f"{claim.category} / {claim.team} (score {claim.priority_score})"
        )

