"""Tests for the fixed-width Record type."""

import pytest

from recpipe.record import RECORD_WIDTH, Record, records_from_text, records_to_text
from recpipe.recpipe_exceptions import FieldRangeError, RecordFormatError


class TestConstruction:
    def test_short_text_is_padded(self):
        rec = Record("HELLO")
        assert len(rec) == RECORD_WIDTH
        assert rec.text == "HELLO" + " " * 75

    def test_blank(self):
        assert Record.blank().text == " " * 80
        assert Record.blank().is_blank()

    def test_exactly_80_is_accepted(self):
        assert Record("X" * 80).text == "X" * 80

    def test_too_long_is_rejected(self):
        with pytest.raises(RecordFormatError, match="81 characters"):
            Record("X" * 81)

    def test_non_ascii_is_rejected(self):
        with pytest.raises(RecordFormatError, match="non-ASCII"):
            Record("café")

    def test_from_line_strips_newline(self):
        assert Record.from_line("ABC\r\n").rstrip() == "ABC"

    def test_from_line_reports_line_number(self):
        with pytest.raises(RecordFormatError, match="input line 7"):
            Record.from_line("Y" * 90, 7)

    def test_fitted_truncates(self):
        rec = Record.fitted("Z" * 100)
        assert rec.text == "Z" * 80

    def test_equality_and_hash(self):
        assert Record("A") == Record("A" + " " * 10)
        assert len({Record("A"), Record("A "), Record("B")}) == 2

    def test_repr_trims(self):
        assert repr(Record("ABC")) == "Record('ABC')"


class TestFields:
    def test_field_slice(self, employees):
        assert employees[0].field(0, 8) == "SMITH   "
        assert employees[0].field(18, 10).strip() == "SALES"

    def test_field_eq_trims_both_sides(self, employees):
        assert employees[0].field_eq(18, 10, "SALES")
        assert employees[0].field_eq(18, 10, "  SALES  ")
        assert not employees[1].field_eq(18, 10, "SALES")

    @pytest.mark.parametrize("offset,length", [(-1, 5), (75, 6), (80, 1), (0, 81)])
    def test_out_of_range(self, offset, length):
        with pytest.raises(FieldRangeError, match="exceeds record length 80"):
            Record("X").field(offset, length)

    def test_with_field_returns_new_record(self):
        original = Record("AAAAAAAAAA")
        changed = original.with_field(2, 3, "BC")
        assert changed.rstrip() == "AABC AAAAA"
        assert original.rstrip() == "AAAAAAAAAA"

    def test_with_field_truncates_value(self):
        assert Record("").with_field(0, 2, "XYZ").rstrip() == "XY"

    def test_reformat(self, employees):
        out = employees[0].reformat([(18, 10, 0), (0, 8, 10)])
        assert out.field(0, 10).strip() == "SALES"
        assert out.field(10, 8).strip() == "SMITH"
        assert out.field(18, 62).strip() == ""


class TestText:
    def test_records_from_text_skips_empty_lines(self):
        records = records_from_text("A\n\nB\n")
        assert [r.rstrip() for r in records] == ["A", "B"]

    def test_records_from_text_reports_line(self):
        with pytest.raises(RecordFormatError, match="input line 2"):
            records_from_text("ok\n" + "x" * 81)

    def test_records_to_text(self):
        assert records_to_text([Record("A"), Record("B  ")]) == "A\nB"
