"""Rule resolver for claim categorization.

Given a claim's edit code and note text, picks the category and team that
should work the claim. Rules are applied in order:

1. Edit rules: exact, case-sensitive match on the edit code -> EditRuleMatch
2. Note rules: case-insensitive substring match on the notes, longest keyword
   first (ties keep their original order) -> NoteRuleMatch
3. Nothing matched -> DefaultClassification ("Needs Triage" / "Needs Assignment")

An edit match always short-circuits note evaluation, so a claim is never
classified by both.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from claims_triage.schemas.catalog import ClientRuleSet, RuleView
from claims_triage.schemas.claims import (
    Classification,
    DefaultClassification,
    EditRuleMatch,
    NoteRuleMatch,
)
from claims_triage.triage.column_mapper import cell_text

logger = logging.getLogger(__name__)


class RuleResolver:
    """Deterministic edit/note rule matching for one configuration.

    Lookup structures are built once per rule set so that classifying many
    rows costs one dict lookup plus a scan of the note keywords.
    """

    def __init__(
        self,
        edit_rules: Optional[Sequence[RuleView]] = None,
        note_rules: Optional[Sequence[RuleView]] = None,
    ):
        """Initialize the resolver.

        Args:
            edit_rules: Rules keyed on exact edit code text
            note_rules: Rules keyed on note keywords
        """
        self._edit_rules: Dict[str, RuleView] = {}
        for rule in edit_rules or ():
            self._edit_rules[rule.text] = rule

        keywords: List[Tuple[str, RuleView]] = []
        for rule in note_rules or ():
            keyword = rule.text.lower()
            if not keyword.strip():
                logger.debug(f"Skipping blank note keyword for category {rule.category_id}")
                continue
            keywords.append((keyword, rule))
        # sorted() is stable, so equal lengths keep repository order
        self._note_rules = sorted(keywords, key=lambda kw: len(kw[0]), reverse=True)

    @classmethod
    def from_rule_set(cls, rule_set: ClientRuleSet) -> "RuleResolver":
        """Create a resolver from a configuration snapshot."""
        return cls(rule_set.edit_rules, rule_set.note_rules)

    @property
    def note_keywords(self) -> List[str]:
        """Note keywords in evaluation order."""
        return [keyword for keyword, _ in self._note_rules]

    def classify(self, edit_code: Any, note_text: Any) -> Classification:
        """Classify a claim from its edit code and note text.

        Args:
            edit_code: Claim-edit cell value (compared as-is, case-sensitive)
            note_text: Claim-notes cell value (compared lower-cased)

        Returns:
            EditRuleMatch, NoteRuleMatch or DefaultClassification
        """
        notes = cell_text(note_text).lower()
        edit = cell_text(edit_code)

        if edit and edit in self._edit_rules:
            rule = self._edit_rules[edit]
            return EditRuleMatch(
                category=rule.category_name,
                team=rule.team_name,
                category_id=rule.category_id,
                send_to_l1_monitor=rule.send_to_l1_monitor,
                edit_code=edit,
            )

        if notes:
            for keyword, rule in self._note_rules:
                if keyword in notes:
                    return NoteRuleMatch(
                        category=rule.category_name,
                        team=rule.team_name,
                        category_id=rule.category_id,
                        send_to_l1_monitor=rule.send_to_l1_monitor,
                        keyword=keyword,
                    )

        return DefaultClassification()


def classify(
    edit_code: Any,
    note_text: Any,
    edit_rules: Sequence[RuleView],
    note_rules: Sequence[RuleView],
) -> Classification:
    """One-off classification without keeping a resolver around."""
    return RuleResolver(edit_rules, note_rules).classify(edit_code, note_text)
