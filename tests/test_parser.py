"""Tests for transcript row parsing (text and table strategies)."""

import pytest

from flowaudit.data.document import parse_markup
from flowaudit.data.parser import clean_cell_text, parse_units
from flowaudit.exceptions import DocumentParseError
from flowaudit.models import TranscriptRow

from tests.helpers.audit_builders import html_document, transcript_table


def _codes(rows):
    return [r.code for r in rows]


class TestParseText:
    def test_basic_row(self, row_parser):
        rows = row_parser.parse_text("FA22 CPSC 120A 2.0 A")
        assert rows == [TranscriptRow(term="FA22", code="CPSC 120A", units=2.0, grade="A")]

    @pytest.mark.parametrize(
        "text, code",
        [
            ("SP25 EGEC-401 3.0 B", "EGEC 401"),
            ("SP25 EGEC401 3.0 B", "EGEC 401"),
            ("SP25 EGEC   401 3.0 B", "EGEC 401"),
            ("SP25 POSC\n100 3.0 B", "POSC 100"),
            ("sp25 egec 401 3.0 b", "EGEC 401"),
        ],
    )
    def test_separator_robustness(self, row_parser, text, code):
        rows = row_parser.parse_text(text)
        assert _codes(rows) == [code]
        assert rows[0].term == "SP25"
        assert rows[0].grade == "B"

    def test_units_with_inner_whitespace(self, row_parser):
        rows = row_parser.parse_text("SP25 EGEC 401 3 . 0 IP")
        assert rows[0].units == 3.0
        assert rows[0].is_in_progress

    def test_unicode_dash_between_dept_and_number(self, row_parser):
        rows = row_parser.parse_text("FA24 CPSC–131 3.0 A")
        assert _codes(rows) == ["CPSC 131"]

    @pytest.mark.parametrize(
        "token, grade",
        [("+C", "C+"), ("B -", "B-"), ("CR", "CR"), ("P", "P"), ("IP", "IP"), ("D", "D")],
    )
    def test_grade_tokens(self, row_parser, token, grade):
        rows = row_parser.parse_text(f"SP25 MATH 150A 4.0 {token}")
        assert rows[0].grade == grade

    def test_grade_must_stand_alone(self, row_parser):
        assert row_parser.parse_text("FA24 CPSC 120 3.0 Awesome") == []

    def test_code_without_term_is_not_a_row(self, row_parser):
        assert row_parser.parse_text("CPSC 131 3.0 A") == []

    def test_advisory_fragment_ignored(self, row_parser):
        text = "TAKE ==> FA24 CPSC 131 3.0 A\nFA24 MATH 150A 4.0 B"
        assert _codes(row_parser.parse_text(text)) == ["MATH 150A"]

    def test_document_order_and_duplicates_kept(self, row_parser):
        text = "FA23 CPSC 131 3.0 D\nSP24 MATH 150A 4.0 A\nFA24 CPSC 131 3.0 B"
        rows = row_parser.parse_text(text)
        assert _codes(rows) == ["CPSC 131", "MATH 150A", "CPSC 131"]
        assert [r.grade for r in rows] == ["D", "A", "B"]

    def test_empty(self, row_parser):
        assert row_parser.parse_text("") == []
        assert row_parser.parse_text(None) == []


class TestParseTables:
    def _rows(self, row_parser, html):
        return row_parser.parse_tables(parse_markup(html))

    def test_basic_pass(self, row_parser):
        html = html_document(tables=[transcript_table([
            {"term": "FA24", "course": "CPSC 120", "units": "3.0", "grade": "A"},
        ])])
        assert self._rows(row_parser, html) == [
            TranscriptRow(term="FA24", code="CPSC 120", units=3.0, grade="A")
        ]

    def test_course_without_space_and_lowercase(self, row_parser):
        html = html_document(tables=[transcript_table([
            {"term": "FA24", "course": "CPSC120A", "units": "3.0", "grade": "B+"},
            {"term": "fa24", "course": "cpsc 121", "units": "3.0", "grade": "b+"},
        ])])
        rows = self._rows(row_parser, html)
        assert _codes(rows) == ["CPSC 120A", "CPSC 121"]
        assert [r.term for r in rows] == ["FA24", "FA24"]
        assert [r.grade for r in rows] == ["B+", "B+"]

    def test_nbsp_whitespace_noise(self, row_parser):
        html = """<!doctype html><html><body>
          <table class="completedCourses"><tbody>
            <tr><td>FA24</td><td>CPSC&nbsp;120</td><td>3.0</td><td> A </td><td></td></tr>
          </tbody></table>
        </body></html>"""
        rows = self._rows(row_parser, html)
        assert _codes(rows) == ["CPSC 120"]
        assert rows[0].grade == "A"

    def test_in_progress_via_grade_status_and_row_class(self, row_parser):
        html = html_document(tables=[transcript_table([
            {"term": "FA24", "course": "CPSC 240", "units": "3.0", "grade": "IP"},
            {"term": "SP25", "course": "CPSC 323", "units": "3.0", "grade": "", "status": "IP"},
            {"term": "SP25", "course": "MATH 338", "units": "3.0", "row_class": "takenCourse ip"},
            {"term": "SP25", "course": "MATH 270A", "units": "3.0", "row_class": "inprog"},
        ])])
        rows = self._rows(row_parser, html)
        assert all(r.is_in_progress for r in rows)
        assert _codes(rows) == ["CPSC 240", "CPSC 323", "MATH 338", "MATH 270A"]

    def test_header_and_option_rows_ignored(self, row_parser):
        html = html_document(tables=[transcript_table([
            {"term": "TERM", "course": "COURSE", "units": "UNITS", "grade": "GRADE"},
            {"term": "FA24", "course": "TAKE => CPSC 131", "units": "0.0", "grade": "A"},
            {"term": "FA24", "course": "CPSC 131", "units": "3.0", "grade": "B"},
        ])])
        assert _codes(self._rows(row_parser, html)) == ["CPSC 131"]

    def test_rows_with_too_few_cells_ignored(self, row_parser):
        html = """<table class="completedCourses">
          <tr><td>FA24</td><td>CPSC 131</td><td>3.0</td></tr>
        </table>"""
        assert self._rows(row_parser, html) == []

    def test_nested_table_rows_excluded(self, row_parser):
        html = """<!doctype html><html><body>
          <table class="completedCourses"><tbody>
            <tr><td>FA24</td><td>CPSC 120</td><td>3.0</td><td>A</td><td></td></tr>
            <tr>
              <td colspan="5">
                <table class="completedCourses"><tbody>
                  <tr><td>FA24</td><td>CPSC 999</td><td>3.0</td><td>A</td><td></td></tr>
                </tbody></table>
              </td>
            </tr>
          </tbody></table>
        </body></html>"""
        assert _codes(self._rows(row_parser, html)) == ["CPSC 120"]

    def test_multiple_tables_union_in_order(self, row_parser):
        html = html_document(tables=[
            transcript_table([{"term": "FA24", "course": "CPSC 120", "units": "3.0", "grade": "A"}]),
            transcript_table([{"term": "SP25", "course": "CPSC 121", "units": "3.0", "grade": "B"}]),
        ])
        assert _codes(self._rows(row_parser, html)) == ["CPSC 120", "CPSC 121"]

    def test_no_tbody(self, row_parser):
        html = html_document(tables=[transcript_table(
            [{"term": "FA24", "course": "MATH 150A", "units": "4.0", "grade": "A"}],
            with_tbody=False,
        )])
        assert _codes(self._rows(row_parser, html)) == ["MATH 150A"]

    def test_fallback_to_unclassed_top_level_tables(self, row_parser):
        html = """<html><body>
          <table>
            <tr><td>FA24</td><td>PHYS 225</td><td>4.0</td><td>B-</td></tr>
            <tr><td colspan="4"><table>
              <tr><td>FA24</td><td>PHYS 999</td><td>4.0</td><td>A</td></tr>
            </table></td></tr>
          </table>
        </body></html>"""
        assert _codes(self._rows(row_parser, html)) == ["PHYS 225"]

    def test_rows_need_four_populated_cells(self, row_parser):
        html = html_document(tables=[transcript_table([
            {"term": "FA24", "course": "CPSC 120", "units": "", "grade": "A"},
            {"term": "FA24", "course": "CPSC 121", "units": "3.0", "grade": ""},
            {"term": "FA24", "course": "CPSC 131", "units": "n/a", "grade": "B"},
        ])])
        rows = self._rows(row_parser, html)
        assert _codes(rows) == ["CPSC 131"]
        assert rows[0].units == 0.0

    def test_row_class_fills_blank_grade_cell(self, row_parser):
        html = """<table class="completedCourses">
          <tr class="ip"><td>SP25</td><td>CPSC 323</td><td>3.0</td><td></td></tr>
          <tr class="ip"><td>SP25</td><td>CPSC 332</td><td></td><td></td></tr>
        </table>"""
        rows = self._rows(row_parser, html)
        assert _codes(rows) == ["CPSC 323"]
        assert rows[0].is_in_progress


class TestHelpers:
    def test_clean_cell_text(self):
        assert clean_cell_text("  CPSC  120 \n") == "CPSC 120"

    @pytest.mark.parametrize("raw, units", [("3.0", 3.0), ("3 . 0", 3.0), ("", 0.0), ("n/a", 0.0), ("nan", 0.0)])
    def test_parse_units(self, raw, units):
        assert parse_units(raw) == units

    def test_parse_markup_rejects_plain_text(self):
        with pytest.raises(DocumentParseError):
            parse_markup("FA24 CPSC 120 3.0 A")
