"""
Transcript row parsing.

This module turns audit documents into TranscriptRow records. There is one
row contract and two ways of reading it: a regex scan over flat text and a
structural scan over the HTML export's transcript tables.
"""

import math
import re
from typing import List

from ..config import (
    IN_PROGRESS_GRADE,
    IN_PROGRESS_ROW_CLASSES,
    TRANSCRIPT_TABLE_CLASS,
)
from ..models import TranscriptRow
from ..normalize import normalize_code, normalize_dashes, normalize_grade
from .document import MarkupNode

# Advisory "TAKE ==> CPSC 131 OR ..." fragments list options, not history
ADVISORY_RX = re.compile(r"TAKE\s*={2,}[^.\n]+", re.IGNORECASE)

# TERM   DEPT  NUM    UNITS   GRADE/IP
# FA22   CPSC  120A   2.0     A
# SP25   EGEC-401     3 . 0   IP
ROW_RX = re.compile(
    r"\b(FA|SP|SS|WI)\s*(\d{2})\s+"
    r"([A-Z]{2,6})[-\s]*?(\d{3,4}[A-Z]?L?)\s+"
    r"(\d+(?:\s*\.\s*\d+)?)\s+"
    r"([+\-]?\s*[A-F]\s*[+\-]?|CR|P|IP)(?!\w)",
    re.IGNORECASE,
)

TERM_RX = re.compile(r"^(FA|SP|SS|WI)\d{2}$", re.IGNORECASE)
COURSE_RX = re.compile(r"^([A-Z]{2,6})\s*(\d{3,4}[A-Z]?L?)$", re.IGNORECASE)

NBSP = "\u00A0"
WHITESPACE_RX = re.compile(r"\s+")

ROW_CONTAINERS = ("thead", "tbody", "tfoot")


def clean_cell_text(s: str) -> str:
    return WHITESPACE_RX.sub(" ", str(s or "").replace(NBSP, " ")).strip()


def parse_units(raw: str) -> float:
    """Units as printed; 0.0 when the cell is empty or unreadable."""
    try:
        units = float(WHITESPACE_RX.sub("", raw or ""))
    except ValueError:
        return 0.0
    return units if math.isfinite(units) else 0.0


class TranscriptRowParser:
    """
    Extracts (term, course, units, grade) rows from audit documents.

    KEY RESPONSIBILITY: Only report things that really are transcript rows.
    A course code that merely appears in the audit (an option list, an
    articulation blurb, a "TAKE ==>" advisory) is never a row.

    TEXT STRATEGY:
    PDF/plain-text extraction scatters whitespace and newlines everywhere
    ("POSC\\n100", "CPSC   121A", "3 . 0"), so the row pattern is permissive
    about separators but strict about the shape: term, dept, number, units,
    grade, in that order.

    TABLE STRATEGY:
    The HTML export renders each transcript entry as a row of a
    completedCourses table. Option lists are nested tables inside those, so
    only direct rows of top-level transcript tables count.

    Both strategies keep document order and duplicates.
    """

    def parse_text(self, text: str) -> List[TranscriptRow]:
        """
        Scan flat audit text for transcript rows.

        Args:
            text: Raw or normalized audit text

        Returns:
            List of TranscriptRow in document order
        """
        if not text:
            return []

        s = normalize_dashes(str(text))
        s = ADVISORY_RX.sub(" ", s)

        rows = []
        for m in ROW_RX.finditer(s):
            term = f"{m.group(1)}{m.group(2)}".upper()
            rows.append(TranscriptRow(
                term=term,
                code=normalize_code(f"{m.group(3)} {m.group(4)}"),
                units=parse_units(m.group(5)),
                grade=normalize_grade(m.group(6)),
            ))
        return rows

    def transcript_tables(self, root: MarkupNode) -> List[MarkupNode]:
        """
        Top-level transcript tables of a document.

        Exports without the completedCourses class fall back to every table
        that is not nested in another table.
        """
        tables = [
            t for t in root.find_all("table", TRANSCRIPT_TABLE_CLASS)
            if not t.has_ancestor("table", TRANSCRIPT_TABLE_CLASS)
        ]
        if tables:
            return tables
        return [t for t in root.find_all("table") if not t.has_ancestor("table")]

    def parse_tables(self, root: MarkupNode) -> List[TranscriptRow]:
        """Rows from every top-level transcript table under root."""
        rows = []
        for table in self.transcript_tables(root):
            rows.extend(self.parse_table_rows(table))
        return rows

    def parse_table_rows(self, table: MarkupNode, require_term: bool = True) -> List[TranscriptRow]:
        """
        Rows of one table, ignoring rows of any table nested inside it.

        Requirement panels may list a course without its term; pass
        require_term=False to accept those rows.

        Expected layout: [0]=TERM, [1]=COURSE, [2]=UNITS, [3]=GRADE,
        [4]=STATUS (optional). A status of IP, or a row class of ip/inprog,
        marks the row in progress even when the grade cell is blank.
        """
        rows = []
        for tr in self.direct_rows(table):
            cells = [clean_cell_text(c.text()) for c in tr.children("td", "th")]
            if len(cells) < 4:
                continue

            term = cells[0]
            if require_term and not TERM_RX.match(term):
                continue
            course = COURSE_RX.match(cells[1])
            if not course:
                continue

            grade = cells[3]
            status = normalize_grade(cells[4]) if len(cells) > 4 else ""
            if status == IN_PROGRESS_GRADE or any(tr.has_class(c) for c in IN_PROGRESS_ROW_CLASSES):
                grade = IN_PROGRESS_GRADE

            # Four populated cells, the term slot always counting once checked
            # or waived; a forced IP fills the grade cell
            if 1 + sum(1 for c in cells[1:3] + [grade] + cells[4:] if c) < 4:
                continue

            rows.append(TranscriptRow(
                term=term.upper(),
                code=normalize_code(f"{course.group(1)} {course.group(2)}"),
                units=parse_units(cells[2]),
                grade=normalize_grade(grade),
            ))
        return rows

    def direct_rows(self, table: MarkupNode) -> List[MarkupNode]:
        """Rows that belong to this table itself, not to a nested one."""
        trs = []
        for child in table.children():
            if child.name == "tr":
                trs.append(child)
            elif child.name in ROW_CONTAINERS:
                trs.extend(child.children("tr"))
        return trs
