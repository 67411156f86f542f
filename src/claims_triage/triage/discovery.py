"""Discovery of edit codes and note texts not covered by any rule.

Reads only the "Claim Edits" and "Claim Notes" columns of an upload and
diffs the trimmed values against the rule texts a configuration already has.
The diff is pure: the known sets are never mutated, and running it twice on
the same upload gives the same, alphabetically ordered result.
"""

import logging
from typing import AbstractSet, Any, Iterable, List, Mapping, Optional, Set, Tuple

from claims_triage.schemas.catalog import NewRule
from claims_triage.schemas.discovery import DiscoveredItem, DiscoveryResult
from claims_triage.triage import fields
from claims_triage.triage.column_mapper import ColumnMapper

logger = logging.getLogger(__name__)


def discover_uncategorized(
    raw_rows: Iterable[Mapping[str, Any]],
    mapping: Mapping[str, str],
    existing_edit_texts: AbstractSet[str],
    existing_note_texts: AbstractSet[str],
    config_id: Optional[int] = None,
) -> DiscoveryResult:
    """Find edit codes and note texts that no rule covers yet.

    Args:
        raw_rows: Decoded upload rows keyed by source header
        mapping: Client column mapping
        existing_edit_texts: Edit rule texts already defined (exact match)
        existing_note_texts: Note rule texts already defined (exact match)
        config_id: Configuration the known sets belong to (carried on the result)

    Returns:
        DiscoveryResult with deduplicated, sorted, unassigned items
    """
    mapper = ColumnMapper(mapping)
    new_edits: Set[str] = set()
    new_notes: Set[str] = set()
    row_count = 0

    for row in raw_rows:
        row_count += 1
        edit_value = mapper.text(row, fields.CLAIM_EDITS).strip()
        if edit_value and edit_value not in existing_edit_texts:
            new_edits.add(edit_value)

        note_value = mapper.text(row, fields.CLAIM_NOTES).strip()
        if note_value and note_value not in existing_note_texts:
            new_notes.add(note_value)

    logger.info(
        f"Discovery over {row_count} rows: {len(new_edits)} new edits, "
        f"{len(new_notes)} new notes"
    )
    return DiscoveryResult(
        config_id=config_id,
        uncategorized_edits=[DiscoveredItem(text=text) for text in sorted(new_edits)],
        uncategorized_notes=[DiscoveredItem(text=text) for text in sorted(new_notes)],
    )


def _assigned(items: Iterable[DiscoveredItem]) -> List[NewRule]:
    return [
        NewRule(text=item.text, category_id=item.category_id)
        for item in items
        if item.category_id is not None
    ]


def to_rule_batches(result: DiscoveryResult) -> Tuple[List[NewRule], List[NewRule]]:
    """Split a discovery result into edit and note rules ready to save.

    Items the operator has not assigned to a category are left out; they
    are never sent to the repository.
    """
    return _assigned(result.uncategorized_edits), _assigned(result.uncategorized_notes)
