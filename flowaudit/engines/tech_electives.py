"""
Technical elective matching.

Reads the TECHNICAL ELECTIVES section of an audit and reports which
elective courses are completed and which are in progress.
"""

import re
from typing import Iterable, Optional, Sequence

from ..config import TECH_NOISE_INSTITUTIONS, TECH_SECTION_END, TECH_SECTION_START
from ..models import TechElectiveEvidence
from ..normalize import normalize_code, normalize_grade

SECTION_NOTE_RX = re.compile(r"\*{1,3}[^\n*]{0,250}\*{1,3}")
CODE_RX = re.compile(r"\b([A-Z]{2,6})\s?(\d{3,4}[A-Z]?L?)\b", re.IGNORECASE)

# Articulation cross-reference ("CPSC 481 = CSUN COMP 482") right after a code.
# A hyphen there is a course title separator, not a cross-reference.
CROSS_REFERENCE_RX = re.compile(r"^\s*=")
IP_RX = re.compile(r"\bIP\b")
UNITS_RX = re.compile(r"\b\d(?:\s*\.\s*\d)?\b")
GRADE_RX = re.compile(r"\b([ABC]\s*[+\-]?|CR)\b", re.IGNORECASE)
PASSING_TOKEN_RX = re.compile(r"^(?:[ABC][+\-]?|CR)$")


def _blurb_rx(institution: str):
    # "CSUN: COMP 482 ..." runs until the next real code, an IP token or the end
    return re.compile(
        re.escape(institution) + r":\s.*?(?=(?:\b[A-Z]{2,6}\s?\d{3,4}[A-Z]?L?\b)|\bIP\b|$)",
        re.IGNORECASE,
    )


def slice_section(text: str, start: str, ends: Iterable[str] = ()) -> str:
    """
    Text from the start marker up to the first end marker after it.

    Returns "" when the start marker is absent.
    """
    s = text.find(start)
    if s < 0:
        return ""
    e = len(text)
    for marker in ends:
        k = text.find(marker, s + len(start))
        if k >= 0:
            e = min(e, k)
    return text[s:e]


class TechnicalElectiveMatcher:
    """
    Classifies technical-elective codes found in the elective section.

    Each code owns the text between the end of its own occurrence and the
    start of the next code (the "window"). A window that carries an IP
    token is in progress; a window with a units figure and a passing grade
    is completed; anything else is ignored.
    """

    def __init__(
        self,
        start_marker: str = TECH_SECTION_START,
        end_markers: Sequence[str] = TECH_SECTION_END,
        noise_institutions: Optional[Sequence[str]] = None,
    ):
        self.start_marker = start_marker
        self.end_markers = tuple(end_markers)
        institutions = TECH_NOISE_INSTITUTIONS if noise_institutions is None else noise_institutions
        self.blurbs = [_blurb_rx(name) for name in institutions]

    def slice_section(self, text: str) -> str:
        return slice_section(text or "", self.start_marker, self.end_markers)

    def clean(self, section: str) -> str:
        """Drop *...* notes and other institutions' articulation blurbs."""
        cleaned = SECTION_NOTE_RX.sub(" ", section)
        for rx in self.blurbs:
            cleaned = rx.sub(" ", cleaned)
        return cleaned

    def match_section(self, section: str) -> TechElectiveEvidence:
        """Classify codes in an already sliced and cleaned section."""
        completed, ip = [], []
        if not section:
            return TechElectiveEvidence()

        matches = list(CODE_RX.finditer(section))
        for i, m in enumerate(matches):
            code = normalize_code(f"{m.group(1)} {m.group(2)}")
            end = matches[i + 1].start() if i + 1 < len(matches) else len(section)
            window = section[m.end():end]

            if CROSS_REFERENCE_RX.match(window):
                continue

            if IP_RX.search(window):
                if code not in ip:
                    ip.append(code)
                continue

            grade = GRADE_RX.search(window)
            token = normalize_grade(grade.group(1)) if grade else ""
            if UNITS_RX.search(window) and PASSING_TOKEN_RX.match(token):
                if code not in completed:
                    completed.append(code)

        return TechElectiveEvidence(completed=tuple(completed), ip=tuple(ip))

    def match(self, text: str) -> TechElectiveEvidence:
        """
        Slice, clean and classify the technical electives of an audit.

        Args:
            text: Normalized visible audit text
        """
        return self.match_section(self.clean(self.slice_section(text)))
