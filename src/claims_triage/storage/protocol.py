"""Repository protocol for teams, categories, client configurations and rules.

The primary implementation is FileRepository (one JSON document on disk);
this protocol keeps the service layer independent of the storage backend.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from claims_triage.schemas.catalog import (
    Category,
    ClientConfig,
    NewRule,
    RuleKind,
    RuleView,
    Team,
)


class RepositoryError(Exception):
    """Raised when the repository cannot be read or written."""
    pass


class RecordNotFoundError(RepositoryError):
    """Raised when a referenced team, category, config or rule does not exist."""
    pass


@runtime_checkable
class RuleRepository(Protocol):
    """Abstract rule/config repository.

    All methods operate on IDs. Read methods return joined views (team and
    category names are resolved at read time, never stored twice).
    """

    # -------------------------------------------------------------------------
    # Teams
    # -------------------------------------------------------------------------

    def get_teams(self) -> List[Team]:
        """List all teams."""
        ...

    def create_team(self, name: str) -> Team:
        """Create a team."""
        ...

    def update_team(self, team_id: int, name: str) -> Team:
        """Rename a team."""
        ...

    def delete_team(self, team_id: int) -> None:
        """Delete a team.

        Categories owned by the team become unassigned and client-team
        associations referencing it are removed.
        """
        ...

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        """List categories sorted by name, with team names joined."""
        ...

    def get_category(self, category_id: int) -> Category:
        """Get one category (raises RecordNotFoundError)."""
        ...

    def create_category(
        self, name: str, team_id: Optional[int] = None, send_to_l1_monitor: bool = False
    ) -> Category:
        """Create a category."""
        ...

    def update_category(self, category_id: int, changes: Dict[str, Any]) -> Category:
        """Update name, team_id and/or send_to_l1_monitor of a category."""
        ...

    def delete_category(self, category_id: int) -> None:
        """Delete a category and every rule that targets it."""
        ...

    # -------------------------------------------------------------------------
    # Client configurations
    # -------------------------------------------------------------------------

    def get_configs(self) -> List[ClientConfig]:
        """List client configurations."""
        ...

    def get_config(self, config_id: int) -> ClientConfig:
        """Get one configuration (raises RecordNotFoundError)."""
        ...

    def create_config(self, name: str, column_mapping: Dict[str, str]) -> ClientConfig:
        """Create a client configuration."""
        ...

    def update_config(self, config_id: int, changes: Dict[str, Any]) -> ClientConfig:
        """Update name and/or column_mapping of a configuration."""
        ...

    def delete_config(self, config_id: int) -> None:
        """Delete a configuration with its rules and team associations."""
        ...

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def get_rules(self, kind: RuleKind, config_id: int) -> List[RuleView]:
        """List rules of one kind for a configuration, in insertion order."""
        ...

    def save_rules(self, kind: RuleKind, config_id: int, rules: Sequence[NewRule]) -> None:
        """Upsert rules by (config_id, text).

        An existing text gets its category replaced; a new text is inserted.
        Either every rule in the batch is saved or none is.
        """
        ...

    def delete_rule(self, kind: RuleKind, config_id: int, text: str) -> None:
        """Delete one rule by text."""
        ...

    # -------------------------------------------------------------------------
    # Client-team associations
    # -------------------------------------------------------------------------

    def get_client_team_associations(self, config_id: int) -> List[int]:
        """Team IDs associated with a configuration."""
        ...

    def save_client_team_associations(self, config_id: int, team_ids: Sequence[int]) -> None:
        """Replace the team associations of a configuration."""
        ...
