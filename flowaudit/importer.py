"""
Flowchart Importer - Main Orchestrator.

This module contains the FlowchartImporter class that connects the
extraction/reconciliation layer to the presentation layer.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from .data import DataLoader, NotesTemplateCache
from .engines import EvidenceAggregator, ReconciliationEngine
from .exceptions import DocumentParseError
from .logging import get_logger
from .models import CurriculumNode, Evidence, NoteBullet, ReconciliationResult
from .ui import TerminalDisplay

logger = get_logger(__name__, component="importer")


@dataclass(frozen=True)
class ImportOutcome:
    """Everything one import produced."""
    evidence: Evidence
    result: ReconciliationResult
    notes: Tuple[NoteBullet, ...] = ()


class FlowchartImporter:
    """
    Main interface for importing an audit onto a flowchart.

    ═══════════════════════════════════════════════════════════════════════════
    ROLE: ORCHESTRATOR
    ═══════════════════════════════════════════════════════════════════════════

    1. Acquires the audit document, curriculum and saved state (DataLoader)
    2. Extracts Evidence (EvidenceAggregator)
    3. Reconciles Evidence onto the flowchart (ReconciliationEngine)
    4. Passes the result to the presentation layer

    Acquisition happens strictly before the extraction/reconciliation
    computation, and the notes template is fetched strictly after it.
    Every import starts from the caller-supplied state only; nothing from
    a previous import is carried over.

    TO CHANGE THE UI:
    -----------------
    Replace `self.display = TerminalDisplay()` with your own display class,
    or call import_document() and use the returned data directly.

    ═══════════════════════════════════════════════════════════════════════════

    USAGE:
        importer = FlowchartImporter()
        outcome = importer.run_import("audit.html", "egcp.json", program="EGCP")
        outcome.result.to_dict()
    """

    def __init__(
        self,
        loader: Optional[DataLoader] = None,
        aggregator: Optional[EvidenceAggregator] = None,
        engine: Optional[ReconciliationEngine] = None,
        notes_cache: Optional[NotesTemplateCache] = None,
    ):
        self.loader = loader or DataLoader()
        self.aggregator = aggregator or EvidenceAggregator()
        self.engine = engine or ReconciliationEngine()
        self.notes_cache = notes_cache or NotesTemplateCache(loader=self.loader)
        self.display = TerminalDisplay()

    def extract(self, content: str, kind: str) -> Evidence:
        """
        Evidence from a loaded document.

        Raises:
            DocumentParseError: For an unknown kind or HTML without markup
        """
        if kind == "html":
            return self.aggregator.from_html(content)
        if kind == "text":
            return self.aggregator.from_text(content)
        raise DocumentParseError(f"Unsupported document kind: {kind!r}")

    def import_document(
        self,
        content: str,
        kind: str,
        nodes: Sequence[CurriculumNode],
        current: Optional[Tuple[Mapping[str, str], Mapping[str, str]]] = None,
        program: Optional[str] = None,
    ) -> ImportOutcome:
        """
        Extract and reconcile one document. No printing, no I/O beyond the
        optional notes template.

        Args:
            content: Document content
            kind: "html" or "text"
            nodes: Flowchart nodes in flowchart order
            current: (labels, notes) currently shown on the flowchart
            program: Program id for the advising-note template

        Returns:
            ImportOutcome with evidence, replacement maps and note bullets
        """
        labels, notes = current or ({}, {})
        evidence = self.extract(content, kind)
        result = self.engine.reconcile(evidence, nodes, labels, notes)

        bullets = self.notes_cache.bullets_for(program) if program else ()
        logger.bind(kind=kind, program=program).info(
            "Import finished",
            extra={
                "event": "import.completed",
                "struck": len(result.struck_ids),
            },
        )
        return ImportOutcome(evidence=evidence, result=result, notes=tuple(bullets))

    def run_import(
        self,
        document: str,
        curriculum: str,
        state: Optional[str] = None,
        program: Optional[str] = None,
    ) -> ImportOutcome:
        """
        Load everything from disk/URL, import, and print a summary.

        Args:
            document: Path or URL of the audit export
            curriculum: Path of the curriculum JSON
            state: Optional path of saved {labels, notes} state
            program: Optional program id for the advising-note template

        Returns:
            ImportOutcome (also printed to terminal)
        """
        content, kind = self.loader.load_document(document)
        nodes = self.loader.load_curriculum(curriculum)
        current = self.loader.load_state(state) if state else None

        outcome = self.import_document(content, kind, nodes, current, program)

        self.display.print_evidence_summary(outcome.evidence)
        self.display.print_ge_slots(outcome.evidence)
        self.display.print_tech_electives(outcome.evidence)
        self.display.print_reconciliation(outcome.result, nodes)
        if outcome.notes:
            self.display.print_note_bullets(program, outcome.notes)
        self.display.print_reminder()

        return outcome
