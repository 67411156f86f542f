"""Pydantic schemas for claims triage."""

from claims_triage.schemas.catalog import (
    Category,
    ClientConfig,
    ClientRuleSet,
    NewRule,
    RuleKind,
    RuleView,
    Team,
)
from claims_triage.schemas.claims import (
    AnalysisResult,
    ClaimMetrics,
    Classification,
    ClassificationSource,
    DefaultClassification,
    EditRuleMatch,
    NormalizedClaim,
    NoteRuleMatch,
)
from claims_triage.schemas.discovery import DiscoveredItem, DiscoveryResult

__all__ = [
    "AnalysisResult",
    "Category",
    "ClaimMetrics",
    "Classification",
    "ClassificationSource",
    "ClientConfig",
    "ClientRuleSet",
    "DefaultClassification",
    "DiscoveredItem",
    "DiscoveryResult",
    "EditRuleMatch",
    "NewRule",
    "NormalizedClaim",
    "NoteRuleMatch",
    "RuleKind",
    "RuleView",
    "Team",
]
