"""Schemas for rule discovery results."""

from typing import List, Optional

from pydantic import BaseModel, Field


class DiscoveredItem(BaseModel):
    """An edit code or note text not covered by any rule yet."""

    text: str = Field(..., description="Trimmed value found in the upload")
    category_id: Optional[int] = Field(
        None, description="Category chosen by the operator; None until assigned"
    )


class DiscoveryResult(BaseModel):
    """Uncategorized values found in one upload for one configuration."""

    config_id: Optional[int] = Field(None, description="Configuration the diff ran against")
    uncategorized_edits: List[DiscoveredItem] = Field(default_factory=list)
    uncategorized_notes: List[DiscoveredItem] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.uncategorized_edits and not self.uncategorized_notes
