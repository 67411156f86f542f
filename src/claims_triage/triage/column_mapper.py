"""Column mapping resolution.

Each client report uses its own headers. A client configuration maps the
standardized field names (see ``fields.STANDARD_FIELDS``) to those headers,
and every read of a row goes through ``resolve_field``.
"""

from typing import Any, Mapping, Optional


def resolve_field(
    row: Mapping[str, Any],
    standard_field: str,
    mapping: Optional[Mapping[str, str]],
) -> Optional[Any]:
    """Resolve a standardized field to its cell value in a raw row.

    Args:
        row: Raw row keyed by source header
        standard_field: Standardized field name (e.g. "Claim Number")
        mapping: Client column mapping (standard field -> source header)

    Returns:
        The cell value, or None when the field is unmapped or the row has no
        such header. Never raises.
    """
    if not mapping:
        return None
    header = mapping.get(standard_field)
    if not header:
        return None
    return row.get(header)


def cell_text(value: Any) -> str:
    """Render a cell value as text the way a report shows it.

    None becomes "", integral floats lose their ".0" (spreadsheets store
    codes like 45 as 45.0), everything else goes through ``str``. Whitespace
    is preserved; callers decide whether to trim.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ColumnMapper:
    """Column mapping bound to one client configuration."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self.mapping = dict(mapping or {})

    def get(self, row: Mapping[str, Any], standard_field: str) -> Optional[Any]:
        """Resolve a field for a row (see ``resolve_field``)."""
        return resolve_field(row, standard_field, self.mapping)

    def text(self, row: Mapping[str, Any], standard_field: str) -> str:
        """Resolve a field and render it as text ("" when absent)."""
        return cell_text(self.get(row, standard_field))
