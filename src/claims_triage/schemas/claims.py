"""Pydantic schemas for normalized claims, classifications and metrics."""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

NOT_APPLICABLE = "N/A"
UNKNOWN = "UNKNOWN"
NON_ACTIONABLE_SCORE = -1

DEFAULT_CATEGORY = "Needs Triage"
DEFAULT_TEAM = "Needs Assignment"


class ClassificationSource(str, Enum):
    """Which precedence step produced a classification."""

    EDIT_RULE = "Edit Rule"
    NOTE_RULE = "Note Rule"
    DEFAULT = "Default"


class _ClassificationBase(BaseModel):
    category: str = Field(..., description="Category display name")
    team: str = Field(..., description="Responsible team display name")
    category_id: Optional[int] = Field(None, description="Category identifier")
    send_to_l1_monitor: bool = Field(False, description="Category monitor flag")


class EditRuleMatch(_ClassificationBase):
    """Classification decided by an exact claim-edit code match."""

    source: Literal[ClassificationSource.EDIT_RULE] = ClassificationSource.EDIT_RULE
    edit_code: str = Field(..., description="Edit code that matched")


class NoteRuleMatch(_ClassificationBase):
    """Classification decided by a note keyword match."""

    source: Literal[ClassificationSource.NOTE_RULE] = ClassificationSource.NOTE_RULE
    keyword: str = Field(..., description="Note keyword that matched (lower-cased)")


class DefaultClassification(_ClassificationBase):
    """Fallback when no rule matched."""

    source: Literal[ClassificationSource.DEFAULT] = ClassificationSource.DEFAULT
    category: str = DEFAULT_CATEGORY
    team: str = DEFAULT_TEAM


Classification = Annotated[
    Union[EditRuleMatch, NoteRuleMatch, DefaultClassification],
    Field(discriminator="source"),
]


class NormalizedClaim(BaseModel):
    """A raw row read through a client's column mapping.

    Never persisted; recomputed on every analysis run.
    """

    claim_id: str = Field(NOT_APPLICABLE, description="Claim number")
    state: str = Field(UNKNOWN, description="Upper-cased, trimmed claim state")
    status: str = Field(UNKNOWN, description="Upper-cased, trimmed claim status")
    age: int = Field(0, ge=0, description="Claim age in days")
    net_payment: Decimal = Field(Decimal("0"), description="Total net payment amount")
    provider_name: str = Field("Unknown", description="Billing provider name")
    is_actionable: bool = Field(False, description="State is in the actionable set")

    category: str = Field(NOT_APPLICABLE, description="Assigned category")
    team: str = Field(NOT_APPLICABLE, description="Responsible team")
    classification: Optional[Classification] = Field(
        None, description="Rule resolution result (actionable claims only)"
    )
    priority_score: int = Field(NON_ACTIONABLE_SCORE, description="Urgency score, -1 if not actionable")

    raw: Dict[str, Any] = Field(
        default_factory=dict, exclude=True, description="Original source row"
    )

    @property
    def source(self) -> Optional[ClassificationSource]:
        return self.classification.source if self.classification else None

    @property
    def send_to_l1_monitor(self) -> bool:
        return bool(self.classification and self.classification.send_to_l1_monitor)


class ClaimMetrics(BaseModel):
    """Portfolio-level counters over every row of an upload."""

    total_claims: int = Field(0, description="Number of input rows")
    total_net_payment: Decimal = Field(
        Decimal("0"), description="Sum of net payments that parsed as numbers"
    )
    claims_by_status: Dict[str, int] = Field(
        default_factory=dict, description="Row count per normalized status"
    )

    def record(self, status: str, net_payment: Optional[Decimal]) -> None:
        """Count one row."""
        self.total_claims += 1
        if net_payment is not None:
            self.total_net_payment += net_payment
        self.claims_by_status[status] = self.claims_by_status.get(status, 0) + 1


class AnalysisResult(BaseModel):
    """Output of one analysis run."""

    config_id: Optional[int] = Field(None, description="Configuration the run used")
    claims: List[NormalizedClaim] = Field(default_factory=list)
    metrics: ClaimMetrics = Field(default_factory=ClaimMetrics)

    @property
    def actionable_count(self) -> int:
        return sum(1 for claim in self.claims if claim.is_actionable)

    def work_queue(self) -> List[NormalizedClaim]:
        """Actionable claims, highest priority first (stable for ties)."""
        actionable = [claim for claim in self.claims if claim.is_actionable]
        return sorted(actionable, key=lambda claim: claim.priority_score, reverse=True)
