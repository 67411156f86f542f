"""Classification, scoring and rule-discovery engine.

Architecture:
    Repository snapshot (ClientRuleSet) + decoded rows
        |
        v
    ColumnMapper -> RuleResolver + score_priority -> ClaimAnalyzer
        |
        +--> discover_uncategorized -> DiscoveryResult
"""

from claims_triage.triage.analyzer import ACTIONABLE_STATES, ClaimAnalyzer, is_actionable_state
from claims_triage.triage.column_mapper import ColumnMapper, cell_text, resolve_field
from claims_triage.triage.discovery import discover_uncategorized, to_rule_batches
from claims_triage.triage.fields import STANDARD_FIELDS
from claims_triage.triage.priority_scorer import ScoringConfig, score_priority
from claims_triage.triage.rule_resolver import RuleResolver, classify

__all__ = [
    "ACTIONABLE_STATES",
    "ClaimAnalyzer",
    "ColumnMapper",
    "RuleResolver",
    "STANDARD_FIELDS",
    "ScoringConfig",
    "cell_text",
    "classify",
    "discover_uncategorized",
    "is_actionable_state",
    "resolve_field",
    "score_priority",
    "to_rule_batches",
]
