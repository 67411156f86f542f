"""Storage layer for the rule/config catalog.

Usage:
    from claims_triage.storage import FileRepository

    repo = FileRepository(Path(".claims_triage/data.json"))
    edit_rules = repo.get_rules(RuleKind.EDIT, config_id)
"""

from .protocol import RecordNotFoundError, RepositoryError, RuleRepository
from .filesystem import FileRepository

__all__ = [
    "FileRepository",
    "RecordNotFoundError",
    "RepositoryError",
    "RuleRepository",
]
