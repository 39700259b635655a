"""
Evidence aggregation.

Parses an audit document once into high-confidence facts (Evidence),
keeping "what the file says" separate from "how the flowchart applies it":

- Transcript rows are the only source of passed / in-progress courses.
- GE slots come from sliced text sections plus a few completion phrases.
- Technical electives come only from the TECHNICAL ELECTIVES section.
- HTML exports get structural overlays for requirements that are met by
  certification rather than by a course row.
"""

import re
from typing import Dict, Iterable, Optional, Set, Tuple

from ..config import (
    ETHNIC_STUDIES_CERT_NOTE,
    GRADGOV_CODE,
    GRADGOV_NOTE,
    REQUIREMENT_CLASS,
    SUBREQUIREMENT_CLASS,
    TRANSCRIPT_TABLE_CLASS,
)
from ..data.document import MarkupNode, parse_markup
from ..data.parser import TranscriptRowParser, clean_cell_text
from ..logging import get_logger
from ..models import (
    Evidence,
    GeParseResult,
    GeSlotRecord,
    SlotStatus,
    TranscriptRow,
)
from ..normalize import normalize_code, normalize_text
from .ge_slots import GeneralEducationSlotMatcher
from .tech_electives import TechnicalElectiveMatcher

logger = get_logger(__name__, component="evidence")

# "*CIST 4B SUBS CPSC 131*": CIST 4B stands in for CPSC 131
SUBSTITUTION_RX = re.compile(
    r"\*([^*]*?)\s+SUBS\s+([A-Z]{2,6})\s?(\d{3}[A-Z]?L?)\*", re.IGNORECASE
)

# Requirement panel completion signals used by different exports
STATUS_OK_RX = re.compile(r"\bStatus_OK\b", re.IGNORECASE)
SUBREQ_COMPLETE_RX = re.compile(r"Sub-Requirement\s+Complete", re.IGNORECASE)
REQ_COMPLETE_RX = re.compile(r"Requirement\s+(?:Complete|Fulfilled)", re.IGNORECASE)

ETHNIC_STUDIES_RX = re.compile(r"ETHNIC\s+STUD", re.IGNORECASE)
AREA_6_RX = re.compile(r"\bGE\s+(?:AREA\s+)?6\b", re.IGNORECASE)
AREA_F_RX = re.compile(r"\bGE\s+(?:AREA\s+)?F\b|\bF\.\s+ETHNIC\s+STUDIES\b", re.IGNORECASE)
F_CERT_RX = re.compile(r"\bF\s*CSU\s*CERT\b", re.IGNORECASE)
F_CERT_ATTR_RX = re.compile(r"F\s*CSU\s*CERT", re.IGNORECASE)
F_CERT_CELL_RX = re.compile(r"^F\s*CSU\s*CERT$", re.IGNORECASE)

GRADGOV_TITLE_RX = re.compile(r"\[\s*GRADGOV\s*\]|\bGRADGOV\b", re.IGNORECASE)
MET_WITH_CERT_RX = re.compile(r"M\s*E\s*T\s*with\s*a\s+CSU\s+cert", re.IGNORECASE)
GRADGOV_CERT_RX = re.compile(r"\b(?:POLSC\s*1|POLSC1|F\s*CSU\s*CERT)\b", re.IGNORECASE)


class EvidenceAggregator:
    """
    Builds Evidence from text or HTML audits.

    SUBSTITUTIONS:
    --------------
    Audits note course substitutions inline ("*CIST 4B SUBS CPSC 131*").
    The two document paths treat them differently:

    - Text: the substitute label must also show up attributed to an
      institution elsewhere in the audit ("WValleyC: CIST 4B"). Only then is
      the substitution kept, and the target counts as passed.
    - HTML: substitutions are recorded as-is and only ever become notes.
      Passed courses on this path come from transcript tables alone.

    OVERLAYS:
    ---------
    GE Area 6 (ethnic studies) and the GRADGOV graduation requirement are
    often met by certification, which leaves no course row. On HTML audits
    the requirement panel itself is the source of truth for these. Overlays
    are best-effort: a failure is logged and the rest of the evidence is
    still returned.
    """

    def __init__(
        self,
        row_parser: Optional[TranscriptRowParser] = None,
        ge_matcher: Optional[GeneralEducationSlotMatcher] = None,
        tech_matcher: Optional[TechnicalElectiveMatcher] = None,
    ):
        self.rows = row_parser or TranscriptRowParser()
        self.ge = ge_matcher or GeneralEducationSlotMatcher(self.rows)
        self.tech = tech_matcher or TechnicalElectiveMatcher()

    # =========================================================================
    # SHARED RULES
    # =========================================================================

    def aggregate_rows(self, rows: Iterable[TranscriptRow]) -> Tuple[Set[str], Set[str]]:
        """
        Split rows into passed and in-progress code sets.

        IP rows never count as passed; non-passing grades land in neither.
        """
        passed, ip = set(), set()
        for row in rows:
            if not row.code:
                continue
            if row.is_in_progress:
                ip.add(row.code)
            elif row.is_passing:
                passed.add(row.code)
        return passed, ip

    def parse_substitutions(self, text: str) -> Dict[str, str]:
        """Map of target requirement code -> substitute label."""
        subs = {}
        for m in SUBSTITUTION_RX.finditer(text or ""):
            label = m.group(1).strip()
            if label:
                subs[normalize_code(f"{m.group(2)} {m.group(3)}")] = label
        return subs

    def corroborated_substitutions(self, text: str, subs: Dict[str, str]) -> Dict[str, str]:
        """Keep substitutions whose label also appears as "<institution>: <label>"."""
        kept = {}
        for target, label in subs.items():
            used_rx = re.compile(r":\s*" + re.escape(label) + r"\b", re.IGNORECASE)
            if used_rx.search(text or ""):
                kept[target] = label
        return kept

    # =========================================================================
    # TEXT PATH
    # =========================================================================

    def from_text(self, text: str) -> Evidence:
        """
        Extract evidence from a flat text audit.

        Args:
            text: Raw audit text (PDF extraction or copy/paste)

        Returns:
            Evidence with source_kind "text"
        """
        raw = str(text or "")
        norm = normalize_text(raw)

        rows = self.rows.parse_text(raw)
        passed, ip = self.aggregate_rows(rows)

        subs = self.corroborated_substitutions(norm, self.parse_substitutions(norm))
        passed.update(subs.keys())

        ge = self.ge.match(norm)
        tech = self.tech.match(norm)

        return self._build(
            rows=rows,
            passed=passed,
            ip=ip,
            subs=subs,
            ge=ge,
            ge_slots=dict(ge.items),
            tech=tech,
            requirement_notes={},
            source_kind="text",
            norm=norm,
        )

    # =========================================================================
    # HTML PATH
    # =========================================================================

    def from_html(self, html: str) -> Evidence:
        """
        Extract evidence from an HTML audit export.

        Transcript evidence comes from the transcript tables; GE and tech
        electives are sliced from the normalized visible text, same as the
        text path, then the structural overlays run.

        Raises:
            DocumentParseError: If the input contains no markup at all
        """
        root = parse_markup(html)
        norm = normalize_text(root.visible_text())

        rows = self.rows.parse_tables(root)
        passed, ip = self.aggregate_rows(rows)
        subs = self.parse_substitutions(norm)

        ge = self.ge.match(norm)
        ge_slots = dict(ge.items)
        tech = self.tech.match(norm)
        requirement_notes: Dict[str, str] = {}

        slot = self._run_overlay("ethnic_studies", self.ethnic_studies_overlay, root, ge)
        if slot is not None:
            key, record = slot
            ge_slots[key] = record

        gradgov = self._run_overlay("gradgov", self.gradgov_overlay, root, passed)
        if gradgov is not None:
            gov_passed, gov_ip, gov_notes = gradgov
            passed.update(gov_passed)
            ip.update(gov_ip)
            requirement_notes.update(gov_notes)

        return self._build(
            rows=rows,
            passed=passed,
            ip=ip,
            subs=subs,
            ge=ge,
            ge_slots=ge_slots,
            tech=tech,
            requirement_notes=requirement_notes,
            source_kind="html",
            norm=norm,
        )

    def ethnic_studies_overlay(
        self, root: MarkupNode, ge: GeParseResult
    ) -> Optional[Tuple[str, GeSlotRecord]]:
        """
        GE Area 6 / F from the requirement panel itself.

        Returns (slot key, record) when the panel is complete, or None.
        A slot already satisfied by a real course row is left alone.
        """
        key = "6" if ge.is_modern else "F"
        current = ge.items.get(key)
        if current is not None and current.code and current.status.is_meaningful:
            return None

        area_rx = AREA_6_RX if ge.is_modern else AREA_F_RX
        panel = self._find_requirement(
            root,
            lambda t: bool(area_rx.search(t)) and bool(ETHNIC_STUDIES_RX.search(t)),
        )
        if panel is None:
            return None

        text = normalize_text(panel.text())
        if not self._is_complete(panel, text, subrequirement=True):
            return None

        for table in panel.find_all("table", TRANSCRIPT_TABLE_CLASS):
            for row in self.rows.parse_table_rows(table):
                if row.is_in_progress:
                    return key, GeSlotRecord(code=row.code, status=SlotStatus.IN_PROGRESS)
                if row.is_passing:
                    return key, GeSlotRecord(code=row.code, status=SlotStatus.COMPLETE)

        # Some exports keep the certification only in subrequirement attributes
        if F_CERT_RX.search(text) or self._cert_in_attributes(panel) or self._cert_in_course_cell(panel):
            logger.info(
                "Ethnic studies met by certification",
                extra={"event": "evidence.overlay.applied", "overlay": "ethnic_studies", "slot": key},
            )
            return key, GeSlotRecord(code=None, status=SlotStatus.COMPLETE, note=ETHNIC_STUDIES_CERT_NOTE)
        return None

    def gradgov_overlay(
        self, root: MarkupNode, passed: Set[str]
    ) -> Optional[Tuple[Set[str], Set[str], Dict[str, str]]]:
        """
        POSC 100 from the [GRADGOV] graduation requirement panel.

        Generic tokens like "F CSU CERT" also appear under GE Area 6, so
        they only count inside a GRADGOV panel that is itself complete.

        Returns (passed additions, IP additions, requirement notes) or None.
        """
        if GRADGOV_CODE in passed:
            return None

        panel = None
        for req in root.find_all("div", REQUIREMENT_CLASS):
            title = req.find(None, "reqTitle")
            if title is not None and GRADGOV_TITLE_RX.search(title.text()):
                panel = req
                break
        if panel is None:
            return None

        text = normalize_text(panel.text())
        if not self._is_complete(panel, text, subrequirement=False):
            return None

        gov_passed, gov_ip = set(), set()
        found_row = False
        for table in panel.find_all("table", TRANSCRIPT_TABLE_CLASS):
            for row in self.rows.parse_table_rows(table, require_term=False):
                if row.code != GRADGOV_CODE:
                    continue
                found_row = True
                if row.is_in_progress:
                    gov_ip.add(GRADGOV_CODE)
                elif row.is_passing:
                    gov_passed.add(GRADGOV_CODE)
        if found_row:
            return gov_passed, gov_ip, {}

        if MET_WITH_CERT_RX.search(text) or GRADGOV_CERT_RX.search(text):
            logger.info(
                "GRADGOV met by certification",
                extra={"event": "evidence.overlay.applied", "overlay": "gradgov"},
            )
            return {GRADGOV_CODE}, set(), {GRADGOV_CODE: GRADGOV_NOTE}
        return None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _run_overlay(self, name, overlay, *args):
        try:
            return overlay(*args)
        except Exception:
            logger.warning(
                "Overlay %s failed; continuing without it",
                name,
                exc_info=True,
                extra={"event": "evidence.overlay.failed", "overlay": name},
            )
            return None

    def _find_requirement(self, root: MarkupNode, predicate) -> Optional[MarkupNode]:
        for req in root.find_all("div", REQUIREMENT_CLASS):
            if predicate(normalize_text(req.text())):
                return req
        return None

    def _is_complete(self, panel: MarkupNode, text: str, subrequirement: bool) -> bool:
        if STATUS_OK_RX.search(panel.attr("class")):
            return True
        if subrequirement and SUBREQ_COMPLETE_RX.search(text):
            return True
        return bool(REQ_COMPLETE_RX.search(text))

    def _cert_in_attributes(self, panel: MarkupNode) -> bool:
        for sub in panel.find_all("div", SUBREQUIREMENT_CLASS):
            if F_CERT_ATTR_RX.search(sub.attr("pseudo")) or F_CERT_ATTR_RX.search(sub.attr("pseudolist")):
                return True
        return False

    def _cert_in_course_cell(self, panel: MarkupNode) -> bool:
        for table in panel.find_all("table", TRANSCRIPT_TABLE_CLASS):
            for tr in self.rows.direct_rows(table):
                cell = tr.find("td", "course")
                if cell is not None and F_CERT_CELL_RX.match(clean_cell_text(cell.text())):
                    return True
        return False

    def _build(self, rows, passed, ip, subs, ge, ge_slots, tech, requirement_notes, source_kind, norm) -> Evidence:
        evidence = Evidence(
            rows=rows,
            passed=passed,
            ip=ip,
            substitutions=subs,
            ge_schema=ge.schema,
            ge_slots=ge_slots,
            tech=tech,
            requirement_notes=requirement_notes,
            source_kind=source_kind,
            normalized_text=norm,
        )
        logger.info(
            "Evidence extracted",
            extra={
                "event": "evidence.extracted",
                "source_kind": source_kind,
                "rows": len(evidence.rows),
                "passed": len(evidence.passed),
                "ip": len(evidence.ip),
                "substitutions": len(evidence.substitutions),
                "ge_schema": evidence.ge_schema,
                "tech_completed": len(tech.completed),
                "tech_ip": len(tech.ip),
            },
        )
        return evidence
