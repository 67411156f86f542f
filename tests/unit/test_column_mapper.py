"""Tests for column mapping resolution."""

from claims_triage.triage.column_mapper import ColumnMapper, cell_text, resolve_field


class TestResolveField:
    """Tests for resolve_field."""

    def test_mapped_field_returns_cell(self):
        row = {"EditCol": "CO-45"}
        assert resolve_field(row, "Claim Edits", {"Claim Edits": "EditCol"}) == "CO-45"

    def test_unmapped_field_is_absent(self):
        assert resolve_field({"EditCol": "CO-45"}, "Claim Notes", {"Claim Edits": "EditCol"}) is None

    def test_blank_header_is_absent(self):
        assert resolve_field({"": "x"}, "Claim Edits", {"Claim Edits": ""}) is None

    def test_missing_header_in_row_is_absent(self):
        assert resolve_field({"Other": 1}, "Claim Edits", {"Claim Edits": "EditCol"}) is None

    def test_no_mapping_is_absent(self):
        assert resolve_field({"EditCol": "CO-45"}, "Claim Edits", None) is None
        assert resolve_field({"EditCol": "CO-45"}, "Claim Edits", {}) is None


class TestCellText:
    """Tests for cell_text rendering."""

    def test_none_is_empty(self):
        assert cell_text(None) == ""

    def test_integral_float_drops_fraction(self):
        assert cell_text(45.0) == "45"

    def test_other_values_use_str(self):
        assert cell_text(12.5) == "12.5"
        assert cell_text(7) == "7"

    def test_whitespace_preserved(self):
        assert cell_text(" CO-45 ") == " CO-45 "


class TestColumnMapper:
    """Tests for the ColumnMapper wrapper."""

    def test_text_of_absent_field_is_empty(self):
        mapper = ColumnMapper({"Claim Edits": "EditCol"})
        assert mapper.text({}, "Claim Edits") == ""

    def test_get_returns_native_value(self):
        mapper = ColumnMapper({"Age": "DaysOld"})
        assert mapper.get({"DaysOld": 12}, "Age") == 12
