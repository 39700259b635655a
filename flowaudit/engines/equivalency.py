"""
Course equivalency resolution.

Matches a flowchart course code against sets of audit codes while
accounting for combined-vs-parts courses and sibling department prefixes.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import ALTERNATE_DEPARTMENTS, EQUIVALENCIES
from ..models import CourseParts, EquivalencyGroup
from ..normalize import normalize_code

PARTS_RX = re.compile(r"^([A-Z]{2,6})\s+(\d{3,4})([A-Z]?)(?:/L)?$")
DEPT_NUM_RX = re.compile(r"^([A-Z]{2,6})\s+(\d{3,4}[A-Z]?L?)$")


class EquivalencyResolver:
    """
    Resolves whether a flowchart code is satisfied / in progress.

    COMBINED VS PARTS:
    ------------------
    Some courses exist both as one combined course and as a lecture + lab
    pair. "CPSC 120" on the flowchart is the same requirement as
    "CPSC 120A" + "CPSC 120L" on the audit, and charts sometimes write it
    as the placeholder "CPSC 120A/L".

    - In progress: any piece of the group being in progress counts.
    - Satisfied: the combined course, or BOTH parts. One passed part is
      not completion of the whole.
    - A part on the chart ("CPSC 120A") is satisfied by that part or by the
      combined course.

    ALTERNATE DEPARTMENTS:
    ----------------------
    A generic department on the chart ("EGEC 280") may appear on the audit
    under a program-specific prefix ("EGCP 280"). These alternates are only
    a fallback when direct and equivalency matching both fail.
    """

    def __init__(
        self,
        equivalencies: Optional[Mapping[str, Tuple[str, Tuple[str, str]]]] = None,
        alternates: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        table = EQUIVALENCIES if equivalencies is None else equivalencies
        self.groups: Dict[str, EquivalencyGroup] = {
            normalize_code(base): EquivalencyGroup(
                combined=normalize_code(combined),
                parts=tuple(normalize_code(p) for p in parts),
            )
            for base, (combined, parts) in table.items()
        }
        self.alternates = {
            dept: tuple(siblings)
            for dept, siblings in (ALTERNATE_DEPARTMENTS if alternates is None else alternates).items()
        }

    def parse(self, code: str) -> Optional[CourseParts]:
        """Split a code into dept/num/part, or None if it is not course-shaped."""
        m = PARTS_RX.match(normalize_code(code))
        if not m:
            return None
        return CourseParts(dept=m.group(1), num=m.group(2), part=m.group(3))

    def group_for(self, code: str) -> Optional[EquivalencyGroup]:
        parts = self.parse(code)
        if parts is None:
            return None
        return self.groups.get(parts.base)

    def is_placeholder(self, code: str) -> bool:
        """True for lecture/lab placeholder notation such as "CPSC 120A/L"."""
        group = self.group_for(code)
        return group is not None and normalize_code(code) == group.placeholder

    def is_in_progress_match(self, code: str, ip: Iterable[str]) -> bool:
        ip = set(ip)
        n = normalize_code(code)
        parts = self.parse(n)
        group = self.groups.get(parts.base) if parts else None

        if group is None:
            return n in ip

        if parts.part == "" or n == group.placeholder:
            return group.combined in ip or any(p in ip for p in group.parts)

        return parts.code in ip or group.combined in ip

    def is_satisfied_match(self, code: str, passed: Iterable[str]) -> bool:
        passed = set(passed)
        n = normalize_code(code)
        parts = self.parse(n)
        group = self.groups.get(parts.base) if parts else None

        if group is None:
            return n in passed

        # Placeholder is checked first: "CPSC 120A/L" parses with part "A"
        if n == group.placeholder or parts.part == "":
            return group.combined in passed or all(p in passed for p in group.parts)

        return parts.code in passed or group.combined in passed

    def cross_department_alternates(self, code: str) -> List[str]:
        """Same course number under sibling departments ("EGEC 280" -> "EGCP 280", ...)."""
        m = DEPT_NUM_RX.match(normalize_code(code))
        if not m:
            return []
        siblings = self.alternates.get(m.group(1), ())
        return [normalize_code(f"{dept} {m.group(2)}") for dept in siblings]
