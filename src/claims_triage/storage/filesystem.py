"""Filesystem-backed rule/config repository.

All records live in a single JSON document:

    {
      "teams": [{"id": 1, "name": "Billing"}],
      "categories": [{"id": 1, "name": "COB", "team_id": 1, "send_to_l1_monitor": false}],
      "configs": [{"id": 1, "name": "Acme Health", "column_mapping": {...}}],
      "edit_rules": [{"config_id": 1, "category_id": 1, "text": "CO-45"}],
      "note_rules": [{"config_id": 1, "category_id": 1, "text": "timely filing"}],
      "client_team_associations": [{"config_id": 1, "team_id": 1}],
      "next_ids": {"teams": 2, "categories": 2, "configs": 2}
    }

Every write is applied to a copy of the document, written atomically
(temp file + replace) and only then becomes the in-memory state, so a failed
write leaves both the file and the repository unchanged.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from claims_triage.schemas.catalog import (
    UNASSIGNED_TEAM,
    UNKNOWN_NAME,
    Category,
    ClientConfig,
    NewRule,
    RuleKind,
    RuleView,
    Team,
)
from claims_triage.storage.protocol import RecordNotFoundError, RepositoryError

logger = logging.getLogger(__name__)

_COLLECTIONS = (
    "teams",
    "categories",
    "configs",
    "edit_rules",
    "note_rules",
    "client_team_associations",
)
_ID_SEQUENCES = ("teams", "categories", "configs")

_CATEGORY_FIELDS = {"name", "team_id", "send_to_l1_monitor"}
_CONFIG_FIELDS = {"name", "column_mapping"}

Document = Dict[str, Any]


def _empty_document() -> Document:
    doc: Document = {key: [] for key in _COLLECTIONS}
    doc["next_ids"] = {key: 1 for key in _ID_SEQUENCES}
    return doc


def _rules_key(kind: RuleKind) -> str:
    return "edit_rules" if RuleKind(kind) == RuleKind.EDIT else "note_rules"


def _find(records: List[dict], record_id: int, label: str) -> dict:
    for record in records:
        if record["id"] == record_id:
            return record
    raise RecordNotFoundError(f"{label} not found: {record_id}")


class FileRepository:
    """JSON-file repository implementing ``RuleRepository``.

    Usage:
        repo = FileRepository(Path(".claims_triage/data.json"))
        team = repo.create_team("Billing")
        cat = repo.create_category("Coordination of Benefits", team_id=team.id)
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._doc = self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> Document:
        if not self.path.exists():
            logger.debug(f"No repository file at {self.path}, starting empty")
            return _empty_document()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (json.JSONDecodeError, IOError) as exc:
            raise RepositoryError(f"Failed to load repository {self.path}: {exc}") from exc

        if not isinstance(doc, dict):
            raise RepositoryError(f"Repository {self.path} is not a JSON object")

        # Older files may predate a collection; fill it in
        for key in _COLLECTIONS:
            doc.setdefault(key, [])
        next_ids = doc.setdefault("next_ids", {})
        for key in _ID_SEQUENCES:
            existing = [record["id"] for record in doc[key]]
            next_ids[key] = max([next_ids.get(key, 1)] + [i + 1 for i in existing])
        return doc

    def _write(self, doc: Document) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except (IOError, TypeError) as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise RepositoryError(f"Failed to save repository: {exc}") from exc

    def _mutate(self, change: Callable[[Document], Any]) -> Any:
        """Apply a change to a copy, persist it, then swap it in."""
        doc = copy.deepcopy(self._doc)
        result = change(doc)
        self._write(doc)
        self._doc = doc
        return result

    @staticmethod
    def _next_id(doc: Document, key: str) -> int:
        new_id = doc["next_ids"][key]
        doc["next_ids"][key] = new_id + 1
        return new_id

    # -------------------------------------------------------------------------
    # Joins (derived at read time)
    # -------------------------------------------------------------------------

    def _team_names(self) -> Dict[int, str]:
        return {team["id"]: team["name"] for team in self._doc["teams"]}

    def _category_view(self, record: dict, team_names: Dict[int, str]) -> Category:
        team_id = record.get("team_id")
        return Category(
            id=record["id"],
            name=record["name"],
            team_id=team_id,
            team_name=team_names.get(team_id, UNASSIGNED_TEAM) if team_id is not None else UNASSIGNED_TEAM,
            send_to_l1_monitor=bool(record.get("send_to_l1_monitor", False)),
        )

    # -------------------------------------------------------------------------
    # Teams
    # -------------------------------------------------------------------------

    def get_teams(self) -> List[Team]:
        return [Team(**team) for team in self._doc["teams"]]

    def create_team(self, name: str) -> Team:
        team = Team(id=0, name=name)  # validate before touching the document

        def change(doc: Document) -> Team:
            record = {"id": self._next_id(doc, "teams"), "name": team.name}
            doc["teams"].append(record)
            return Team(**record)

        created = self._mutate(change)
        logger.info(f"Created team {created.id}: {created.name}")
        return created

    def update_team(self, team_id: int, name: str) -> Team:
        Team(id=team_id, name=name)

        def change(doc: Document) -> Team:
            record = _find(doc["teams"], team_id, "Team")
            record["name"] = name
            return Team(**record)

        return self._mutate(change)

    def delete_team(self, team_id: int) -> None:
        def change(doc: Document) -> None:
            _find(doc["teams"], team_id, "Team")
            doc["teams"] = [t for t in doc["teams"] if t["id"] != team_id]
            for category in doc["categories"]:
                if category.get("team_id") == team_id:
                    category["team_id"] = None
            doc["client_team_associations"] = [
                a for a in doc["client_team_associations"] if a["team_id"] != team_id
            ]

        self._mutate(change)
        logger.info(f"Deleted team {team_id}")

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        team_names = self._team_names()
        categories = [self._category_view(c, team_names) for c in self._doc["categories"]]
        return sorted(categories, key=lambda c: c.name)

    def get_category(self, category_id: int) -> Category:
        record = _find(self._doc["categories"], category_id, "Category")
        return self._category_view(record, self._team_names())

    def create_category(
        self, name: str, team_id: Optional[int] = None, send_to_l1_monitor: bool = False
    ) -> Category:
        Category(id=0, name=name, team_id=team_id, send_to_l1_monitor=send_to_l1_monitor)

        def change(doc: Document) -> int:
            if team_id is not None:
                _find(doc["teams"], team_id, "Team")
            record = {
                "id": self._next_id(doc, "categories"),
                "name": name,
                "team_id": team_id,
                "send_to_l1_monitor": bool(send_to_l1_monitor),
            }
            doc["categories"].append(record)
            return record["id"]

        category_id = self._mutate(change)
        logger.info(f"Created category {category_id}: {name}")
        return self.get_category(category_id)

    def update_category(self, category_id: int, changes: Dict[str, Any]) -> Category:
        unknown = set(changes) - _CATEGORY_FIELDS
        if unknown:
            raise ValueError(f"Unknown category fields: {sorted(unknown)}")

        def change(doc: Document) -> None:
            record = _find(doc["categories"], category_id, "Category")
            if changes.get("team_id") is not None:
                _find(doc["teams"], changes["team_id"], "Team")
            updated = {**record, **changes}
            Category(**updated)
            record.update(changes)

        self._mutate(change)
        return self.get_category(category_id)

    def delete_category(self, category_id: int) -> None:
        def change(doc: Document) -> None:
            _find(doc["categories"], category_id, "Category")
            doc["categories"] = [c for c in doc["categories"] if c["id"] != category_id]
            for key in ("edit_rules", "note_rules"):
                doc[key] = [r for r in doc[key] if r["category_id"] != category_id]

        self._mutate(change)
        logger.info(f"Deleted category {category_id} and its rules")

    # -------------------------------------------------------------------------
    # Client configurations
    # -------------------------------------------------------------------------

    def get_configs(self) -> List[ClientConfig]:
        return [ClientConfig(**config) for config in self._doc["configs"]]

    def get_config(self, config_id: int) -> ClientConfig:
        return ClientConfig(**_find(self._doc["configs"], config_id, "Config"))

    def create_config(self, name: str, column_mapping: Dict[str, str]) -> ClientConfig:
        validated = ClientConfig(id=0, name=name, column_mapping=column_mapping)

        def change(doc: Document) -> ClientConfig:
            record = {
                "id": self._next_id(doc, "configs"),
                "name": validated.name,
                "column_mapping": validated.column_mapping,
            }
            doc["configs"].append(record)
            return ClientConfig(**record)

        created = self._mutate(change)
        logger.info(f"Created config {created.id}: {created.name}")
        return created

    def update_config(self, config_id: int, changes: Dict[str, Any]) -> ClientConfig:
        unknown = set(changes) - _CONFIG_FIELDS
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")

        def change(doc: Document) -> ClientConfig:
            record = _find(doc["configs"], config_id, "Config")
            validated = ClientConfig(**{**record, **changes})
            record.update(validated.model_dump())
            return validated

        return self._mutate(change)

    def delete_config(self, config_id: int) -> None:
        def change(doc: Document) -> None:
            _find(doc["configs"], config_id, "Config")
            doc["configs"] = [c for c in doc["configs"] if c["id"] != config_id]
            for key in ("edit_rules", "note_rules", "client_team_associations"):
                doc[key] = [r for r in doc[key] if r["config_id"] != config_id]

        self._mutate(change)
        logger.info(f"Deleted config {config_id} with its rules and associations")

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def get_rules(self, kind: RuleKind, config_id: int) -> List[RuleView]:
        team_names = self._team_names()
        categories = {c["id"]: c for c in self._doc["categories"]}
        views = []
        for rule in self._doc[_rules_key(kind)]:
            if rule["config_id"] != config_id:
                continue
            category = categories.get(rule["category_id"])
            team_name = UNKNOWN_NAME
            if category and category.get("team_id") is not None:
                team_name = team_names.get(category["team_id"], UNKNOWN_NAME)
            views.append(
                RuleView(
                    text=rule["text"],
                    category_id=rule["category_id"],
                    category_name=category["name"] if category else UNKNOWN_NAME,
                    team_name=team_name,
                    send_to_l1_monitor=bool(category and category.get("send_to_l1_monitor")),
                )
            )
        return views

    def save_rules(self, kind: RuleKind, config_id: int, rules: Sequence[NewRule]) -> None:
        key = _rules_key(kind)

        def change(doc: Document) -> None:
            _find(doc["configs"], config_id, "Config")
            existing = {
                r["text"]: r for r in doc[key] if r["config_id"] == config_id
            }
            for rule in rules:
                _find(doc["categories"], rule.category_id, "Category")
                if rule.text in existing:
                    existing[rule.text]["category_id"] = rule.category_id
                else:
                    record = {
                        "config_id": config_id,
                        "category_id": rule.category_id,
                        "text": rule.text,
                    }
                    doc[key].append(record)
                    existing[rule.text] = record

        self._mutate(change)
        logger.info(f"Saved {len(rules)} {RuleKind(kind).value} rules for config {config_id}")

    def delete_rule(self, kind: RuleKind, config_id: int, text: str) -> None:
        key = _rules_key(kind)

        def change(doc: Document) -> None:
            remaining = [
                r for r in doc[key] if not (r["config_id"] == config_id and r["text"] == text)
            ]
            if len(remaining) == len(doc[key]):
                raise RecordNotFoundError(
                    f"{RuleKind(kind).value} rule not found for config {config_id}: {text!r}"
                )
            doc[key] = remaining

        self._mutate(change)

    # -------------------------------------------------------------------------
    # Client-team associations
    # -------------------------------------------------------------------------

    def get_client_team_associations(self, config_id: int) -> List[int]:
        return [
            a["team_id"]
            for a in self._doc["client_team_associations"]
            if a["config_id"] == config_id
        ]

    def save_client_team_associations(self, config_id: int, team_ids: Sequence[int]) -> None:
        def change(doc: Document) -> None:
            _find(doc["configs"], config_id, "Config")
            for team_id in team_ids:
                _find(doc["teams"], team_id, "Team")
            doc["client_team_associations"] = [
                a for a in doc["client_team_associations"] if a["config_id"] != config_id
            ]
            for team_id in dict.fromkeys(team_ids):
                doc["client_team_associations"].append(
                    {"config_id": config_id, "team_id": team_id}
                )

        self._mutate(change)
