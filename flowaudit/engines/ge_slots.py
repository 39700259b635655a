"""
General Education slot matching.

This module reads the GE portion of an audit: it detects which GE schema
the audit follows, slices the text for each slot between its header and
the next header, and infers a status for each slot.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Pattern, Sequence, Tuple

from ..config import (
    CERT_COURSE_NOTE,
    UNFULFILLED_HEAD_CHARS,
    WAIVED_NOTE,
)
from ..data.parser import TranscriptRowParser
from ..logging import get_logger
from ..models import GeParseResult, GeSlotRecord, SlotStatus
from ..normalize import normalize_text

logger = get_logger(__name__, component="ge_slots")


def _rx(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class SlotSpec:
    """
    One GE slot: its key, the header that opens its section and a
    human-readable title.

    raw_row_fallback: when the slot comes out missing, retry with the first
    transcript row of the unstripped section (rows sometimes sit inside
    *...* notes after text extraction).
    """
    key: str
    header: Pattern
    note: str = ""
    raw_row_fallback: bool = False


@dataclass(frozen=True)
class MergedSlot:
    """
    A flowchart requirement satisfied jointly by two schema slots.

    sources: the two slot keys, in the order they appear in the merge note
    code_order: which source's code is preferred when both carry one
    """
    key: str
    sources: Tuple[str, str]
    code_order: Tuple[str, str]


@dataclass(frozen=True)
class RequirementSchema:
    """
    A GE requirement schema as data.

    slots: every slot with a header, merge sources included
    boundaries: headers that only end other slots' sections
    detectors: phrases whose presence anywhere selects this schema
    merged: dual-source requirements
    target_keys: result keys in output order
    """
    name: str
    slots: Tuple[SlotSpec, ...]
    boundaries: Tuple[Pattern, ...]
    detectors: Tuple[Pattern, ...]
    merged: Tuple[MergedSlot, ...]
    target_keys: Tuple[str, ...]

    def slot(self, key: str) -> SlotSpec:
        for spec in self.slots:
            if spec.key == key:
                return spec
        raise KeyError(key)

    @property
    def headers(self) -> Tuple[Pattern, ...]:
        return tuple(s.header for s in self.slots) + self.boundaries


UDGE_BOUNDARY = _rx(r"GENERAL EDUCATION UPPER DIVISION/RESIDENCE UNITS")

MODERN_SCHEMA = RequirementSchema(
    name="modern",
    slots=(
        SlotSpec("1C", _rx(r"GE\s+1C\s+ORAL COMMUNICATION"), "Oral Communication"),
        SlotSpec("3A", _rx(r"GE\s+3A\s+INTRODUCTION TO ARTS"), "Introduction to Arts"),
        SlotSpec("3B", _rx(r"GE\s+3B\s+INTRODUCTION TO HUMANITIES"), "Introduction to Humanities"),
        SlotSpec("4B", _rx(r"GE\s+4B\s+AMERICAN HISTORY.*VALUES"), "American History and Values"),
        SlotSpec(
            "6",
            _rx(r"\bGE\s+(?:AREA\s+)?6\b.*ETHNIC\s+STUDIES\b"),
            "Ethnic Studies",
            raw_row_fallback=True,
        ),
        SlotSpec("3U", _rx(r"GE\s+3U\s+EXPLORATIONS IN ARTS/HUMANITIES"), "Explorations in Arts/Humanities"),
        SlotSpec(
            "Z",
            _rx(r"\bGE\s+AREA\s+Z:?\s+CULTURAL DIVERSITY\b|\bGE\s+Z\.?\s+CULTURAL DIVERSITY\b"),
            "Cultural Diversity",
        ),
    ),
    boundaries=(
        _rx(r"\bGE\s+5A\b|\bGE\s+AREA\s+5\b"),
        _rx(r"\bGE\s+5B\b"),
        _rx(r"\bGE\s+5C\b"),
        _rx(r"\bGE\s+(?:AREA\s+)?2U5U\b"),
        _rx(r"\bGE\s+4A\s+INTRO TO SOCIAL & BEHAVIORAL SCI"),
        _rx(r"\bGE\s+(?:AREA\s+)?4U\b"),
        UDGE_BOUNDARY,
    ),
    detectors=(
        _rx(r"\bGE\s+1C\b"),
        _rx(r"\bGE\s+3A\b"),
        _rx(r"\bGE\s+3B\b"),
        _rx(r"\bGE\s+4B\b"),
        _rx(r"\bGE\s+(?:AREA\s+)?6\b"),
        _rx(r"\bGE\s+3U\b"),
        _rx(r"\bGE\s+(?:AREA\s+)?Z\b"),
        _rx(r"CATALOG YEAR\s*Fall\s*2025"),
    ),
    merged=(MergedSlot("3U/Z", sources=("3U", "Z"), code_order=("3U", "Z")),),
    target_keys=("1C", "3A", "3B", "4B", "6", "3U/Z"),
)

LEGACY_SCHEMA = RequirementSchema(
    name="legacy",
    slots=(
        SlotSpec("A.1", _rx(r"GE\s+A\.1\s+ORAL COMMUNICATION"), "Oral Communication"),
        SlotSpec("C.1", _rx(r"GE\s+C\.1\s+INTRODUCTION TO ARTS"), "Introduction to Arts"),
        SlotSpec("C.2", _rx(r"GE\s+C\.2\s+INTRODUCTION TO HUMANITIES"), "Introduction to Humanities"),
        SlotSpec("C.3", _rx(r"GE\s+C\.3\s+EXPLORATIONS IN THE ARTS/HUMANITIES"), "Explorations in the Arts/Humanities"),
        SlotSpec(
            "D.2",
            _rx(r"GE\s+D\.2\s+AMERICAN HISTORY, INSTITUTIONS AND VALUES"),
            "American History, Institutions and Values",
        ),
        SlotSpec("F", _rx(r"\bF\.\s+ETHNIC STUDIES\b"), "Ethnic Studies"),
        SlotSpec("Z", _rx(r"\bZ\.\s+CULTURAL DIVERSITY\b"), "Cultural Diversity"),
    ),
    boundaries=(
        _rx(r"GE\s+D\.1\s+INTRODUCTION TO THE SOCIAL SCIENCES"),
        UDGE_BOUNDARY,
    ),
    detectors=(),
    merged=(MergedSlot("C.3/Z", sources=("C.3", "Z"), code_order=("Z", "C.3")),),
    target_keys=("A.1", "C.1", "C.2", "D.2", "F", "C.3/Z"),
)

SCHEMAS = (MODERN_SCHEMA, LEGACY_SCHEMA)

# Completion signals that never come with a course row
MET_WITH_CERT_RX = _rx(r"M\s*E\s*T\s*with\s*a\s+CSU\s+cert")
UNFULFILLED_RX = _rx(r"Requirement\s+Unfulfilled")
FULFILLED_RX = _rx(r"Requirement\s+Fulfilled")
AREA_CERT_RX = _rx(r"\b(?:FA|SP|SU|WI|SS)?\s*\d{0,2}\s*([ABC]\d|F)\s*CSU\s*CERT\b")
BARE_AREA_CERT_RX = _rx(r"\b([ABC]\d|F)\s*CSU\s*CERT\b")
WAIVED_RX = _rx(r"\bwaived\b")

# *...* notes never cross a line break; TAKE ==> runs to the end of the slice
INLINE_NOTE_RX = re.compile(r"\*{1,3}[^\n*]{0,200}\*{1,3}")
TAKE_TAIL_RX = re.compile(r"TAKE\s*={2,}.*$", re.IGNORECASE | re.DOTALL)


class GeneralEducationSlotMatcher:
    """
    Determines the status of each GE slot from normalized audit text.

    SCHEMA DETECTION:
    -----------------
    Audits follow one of two GE schemas. The modern one (1C/3A/3B/4B/6 and
    the 3U/Z pair) shows up across several catalog years and not every
    export carries the same header fragments, so detection is content
    based: any modern area phrase anywhere selects it. Otherwise the legacy
    schema (A.1/C.1/C.2/D.2/F and the C.3/Z pair) applies.

    SLICING:
    --------
    A slot's section runs from the first occurrence of its header to the
    nearest later occurrence of any other header (boundary-only headers
    included). Headers repeat in the summary and the detail views, so the
    end is searched strictly after the start.

    STATUS:
    -------
    Only real transcript rows count as courses. Requirement descriptions
    and TAKE ==> option lists are full of course codes that were never
    taken.
    """

    def __init__(self, row_parser: Optional[TranscriptRowParser] = None,
                 schemas: Sequence[RequirementSchema] = SCHEMAS):
        self.rows = row_parser or TranscriptRowParser()
        self.schemas = {s.name: s for s in schemas}

    def detect_schema(self, text: str) -> RequirementSchema:
        """Modern schema if any of its detector phrases occurs; legacy otherwise."""
        for schema in self.schemas.values():
            if any(rx.search(text) for rx in schema.detectors):
                return schema
        return self.schemas["legacy"]

    def slice_by_header(self, text: str, header: Pattern, others: Iterable[Pattern]) -> str:
        m = header.search(text)
        if not m:
            return ""
        start = m.start()
        end = len(text)
        for rx in others:
            nxt = rx.search(text, start + 1)
            if nxt and start < nxt.start() < end:
                end = nxt.start()
        return text[start:end]

    def infer_status(self, section: str) -> GeSlotRecord:
        """
        Status of one slot from its section text.

        Priority:
            1. "MET with a CSU cert..." -> complete (checked before notes are stripped)
            2. First real transcript row: IP -> IP, passing -> complete,
               anything else -> missing (code kept)
            3. No row: "<area> CSU CERT" -> complete, "waived" -> complete
            4. Otherwise missing
        """
        if not section:
            return GeSlotRecord.missing()

        raw = str(section)
        if MET_WITH_CERT_RX.search(normalize_text(raw)):
            return GeSlotRecord(code=None, status=SlotStatus.COMPLETE, note=CERT_COURSE_NOTE)

        # "Requirement Unfulfilled" also appears in collapsed neighbouring
        # panels; only the top of the section is trusted
        head = raw[:UNFULFILLED_HEAD_CHARS]
        unfulfilled = bool(UNFULFILLED_RX.search(head)) and not FULFILLED_RX.search(head)

        stripped = TAKE_TAIL_RX.sub(" ", INLINE_NOTE_RX.sub(" ", raw))
        rows = self.rows.parse_text(stripped)

        if rows:
            first = rows[0]
            if first.is_in_progress:
                return GeSlotRecord(code=first.code, status=SlotStatus.IN_PROGRESS)
            # A passing row beats an "Unfulfilled" banner
            if first.is_passing:
                return GeSlotRecord(code=first.code, status=SlotStatus.COMPLETE)
            return GeSlotRecord.missing(first.code)

        stripped_n = normalize_text(stripped)
        cert = AREA_CERT_RX.search(stripped_n) or BARE_AREA_CERT_RX.search(stripped_n)
        if cert:
            return GeSlotRecord(
                code=None,
                status=SlotStatus.COMPLETE,
                note=f"{cert.group(1).upper()} CSU CERT",
            )
        if WAIVED_RX.search(stripped):
            return GeSlotRecord(code=None, status=SlotStatus.COMPLETE, note=WAIVED_NOTE)

        if unfulfilled:
            logger.debug("GE section marked unfulfilled", extra={"event": "ge.slot.unfulfilled"})
        return GeSlotRecord.missing()

    def merge_dual_source(
        self,
        label_a: str,
        a: GeSlotRecord,
        label_b: str,
        b: GeSlotRecord,
        code_order: Optional[Sequence[str]] = None,
    ) -> GeSlotRecord:
        """
        Merge two slots that jointly satisfy one flowchart requirement.

        Both sides meaningful with different codes, or only one side
        meaningful: the advisor has to decide, so the result is tentative
        with a note like "3U=MUS 355; Z=Needed".
        """
        by_label = {label_a: a, label_b: b}
        order = tuple(code_order or (label_a, label_b))

        has_a = a.status.is_meaningful
        has_b = b.status.is_meaningful
        mismatch = has_a and has_b and bool(a.code) and bool(b.code) and a.code != b.code
        unilateral = has_a != has_b

        code = next(
            (by_label[k].code for k in order if by_label[k].status.is_meaningful and by_label[k].code),
            None,
        )
        if SlotStatus.IN_PROGRESS in (a.status, b.status):
            status = SlotStatus.IN_PROGRESS
        elif SlotStatus.COMPLETE in (a.status, b.status):
            status = SlotStatus.COMPLETE
        else:
            status = SlotStatus.MISSING
        note = a.note or b.note

        if mismatch or unilateral:
            status = SlotStatus.TENTATIVE
            code = code or a.code or b.code
            note = f"{label_a}={a.code or 'Needed'}; {label_b}={b.code or 'Needed'}"

        return GeSlotRecord(code=code, status=status, note=note)

    def match(self, text: str) -> GeParseResult:
        """
        Match every GE slot of the detected schema.

        Args:
            text: Normalized visible audit text

        Returns:
            GeParseResult with items ordered like the schema's target keys
        """
        text = text or ""
        schema = self.detect_schema(text)
        headers = schema.headers

        records: Dict[str, GeSlotRecord] = {}
        for spec in schema.slots:
            others = [h for h in headers if h is not spec.header]
            section = self.slice_by_header(text, spec.header, others)
            record = self.infer_status(section)
            if spec.raw_row_fallback and record.status is SlotStatus.MISSING:
                record = self._first_row_record(section) or record
            records[spec.key] = record

        for merged in schema.merged:
            first, second = merged.sources
            records[merged.key] = self.merge_dual_source(
                first, records[first], second, records[second], merged.code_order
            )

        items = {key: records[key] for key in schema.target_keys}
        logger.debug(
            "GE slots matched",
            extra={
                "event": "ge.slots.matched",
                "schema": schema.name,
                "statuses": {k: r.status.value for k, r in items.items()},
            },
        )
        return GeParseResult(schema=schema.name, items=items)

    def _first_row_record(self, section: str) -> Optional[GeSlotRecord]:
        rows = self.rows.parse_text(section)
        if not rows:
            return None
        first = rows[0]
        if first.is_in_progress:
            return GeSlotRecord(code=first.code, status=SlotStatus.IN_PROGRESS)
        if first.is_passing:
            return GeSlotRecord(code=first.code, status=SlotStatus.COMPLETE)
        return None
