"""
Course data models.

Contains the TranscriptRow record extracted from an audit and the
EquivalencyGroup that ties a combined course to its lecture/lab parts.
"""

from dataclasses import dataclass
from typing import Tuple

from ..config import IN_PROGRESS_GRADE
from ..normalize import is_passing_grade


@dataclass(frozen=True)
class TranscriptRow:
    """
    A single (term, course, units, grade) record from the audit.

    Rows are produced per parse call and never mutated. Duplicates (retakes,
    the same row repeated in several requirement panels) are kept; the
    EvidenceAggregator decides how to fold them.

    Attributes:
        term: Term token such as "FA24" or "SP25"
        code: Canonical course code (e.g., "CPSC 120A")
        units: Units as printed (0.0 when the cell is empty or unreadable)
        grade: Normalized grade token ("A", "C+", "CR", "IP", ...), may be ""
    """
    term: str
    code: str
    units: float
    grade: str

    @property
    def is_in_progress(self) -> bool:
        return self.grade == IN_PROGRESS_GRADE

    @property
    def is_passing(self) -> bool:
        return not self.is_in_progress and is_passing_grade(self.grade)


@dataclass(frozen=True)
class CourseParts:
    """A course code split into department, number and optional part letter."""
    dept: str
    num: str
    part: str = ""

    @property
    def base(self) -> str:
        """Department and number without the part letter ("CPSC 120")."""
        return f"{self.dept} {self.num}"

    @property
    def code(self) -> str:
        return f"{self.base}{self.part}"


@dataclass(frozen=True)
class EquivalencyGroup:
    """
    A combined course and the two parts that together equal it.

    Example:
        combined: "CPSC 120"
        parts: ("CPSC 120A", "CPSC 120L")

    Flowcharts sometimes show the placeholder "CPSC 120A/L", which means the
    same thing as the combined code.
    """
    combined: str
    parts: Tuple[str, str]

    def __post_init__(self):
        if len(self.parts) != 2:
            raise ValueError(f"{self.combined}: expected exactly two parts, got {self.parts!r}")
        for part in self.parts:
            suffix = part[len(self.combined):]
            if not part.startswith(self.combined) or len(suffix) != 1 or not suffix.isalpha():
                raise ValueError(f"{part!r} is not a lettered part of {self.combined!r}")
        if self.parts[0] == self.parts[1]:
            raise ValueError(f"{self.combined}: parts must differ")

    @property
    def suffixes(self) -> Tuple[str, str]:
        return tuple(p[len(self.combined):] for p in self.parts)

    @property
    def placeholder(self) -> str:
        """Flowchart placeholder notation, e.g. "CPSC 120A/L"."""
        first, second = self.suffixes
        return f"{self.combined}{first}/{second}"
