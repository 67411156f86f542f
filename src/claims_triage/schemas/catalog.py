"""Pydantic schemas for the rule/config catalog.

Teams own categories, categories are the targets of edit and note rules, and
client configurations hold the per-payer column mapping that every upload is
read through.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNASSIGNED_TEAM = "Unassigned"
UNKNOWN_NAME = "Unknown"


class RuleKind(str, Enum):
    """Kind of classification rule."""

    EDIT = "edit"  # Exact match on the claim-edit code
    NOTE = "note"  # Case-insensitive substring match on claim notes


class Team(BaseModel):
    """Operational team that works claims."""

    id: int = Field(..., description="Team identifier")
    name: str = Field(..., min_length=1, description="Team display name")


class Category(BaseModel):
    """Work-queue category with its owning team.

    ``team_name`` is joined from the team list at read time and is never
    persisted, so a team rename is visible immediately.
    """

    id: int = Field(..., description="Category identifier")
    name: str = Field(..., min_length=1, description="Category display name")
    team_id: Optional[int] = Field(None, description="Owning team, if assigned")
    team_name: str = Field(UNASSIGNED_TEAM, description="Joined team display name")
    send_to_l1_monitor: bool = Field(
        False, description="Include claims in this category in the L1 monitoring report"
    )


class ClientConfig(BaseModel):
    """Per-client configuration with its column mapping."""

    id: int = Field(..., description="Configuration identifier")
    name: str = Field(..., min_length=1, description="Client/payer display name")
    column_mapping: Dict[str, str] = Field(
        default_factory=dict,
        description="Standardized field name -> client report header",
    )

    @field_validator("column_mapping", mode="before")
    @classmethod
    def drop_blank_headers(cls, v: Any) -> Any:
        """Blank header strings mean the field is not mapped."""
        if not isinstance(v, dict):
            return v
        return {
            field: str(header).strip()
            for field, header in v.items()
            if header is not None and str(header).strip()
        }


class RuleView(BaseModel):
    """A rule joined with its category and team for display and matching."""

    text: str = Field(..., description="Edit code or note keyword")
    category_id: int = Field(..., description="Target category")
    category_name: str = Field(UNKNOWN_NAME, description="Joined category name")
    team_name: str = Field(UNKNOWN_NAME, description="Joined team name")
    send_to_l1_monitor: bool = Field(False, description="Joined category monitor flag")


class NewRule(BaseModel):
    """Rule payload accepted by ``save_rules`` (upsert by text)."""

    text: str = Field(..., min_length=1)
    category_id: int


class ClientRuleSet(BaseModel):
    """Immutable snapshot of one configuration and its rules.

    Every analysis or discovery call receives one of these explicitly; nothing
    in the engine reads a "currently selected" configuration.
    """

    model_config = ConfigDict(frozen=True)

    config: ClientConfig
    edit_rules: Tuple[RuleView, ...] = ()
    note_rules: Tuple[RuleView, ...] = ()

    @property
    def config_id(self) -> int:
        return self.config.id

    @property
    def column_mapping(self) -> Dict[str, str]:
        return self.config.column_mapping

    def known_texts(self, kind: RuleKind) -> List[str]:
        """Rule texts already covered for a rule kind."""
        rules = self.edit_rules if kind == RuleKind.EDIT else self.note_rules
        return [rule.text for rule in rules]
