"""
Terminal Display Implementation.

This module handles all console/terminal output formatting.
It's the ONLY place where printing happens in the flowaudit package.

To create a different UI (web, desktop, etc.), create a new class with
the same method signatures but different output handling.
"""

from typing import Optional, Sequence

from ..models import (
    CurriculumNode,
    Evidence,
    GeSlotRecord,
    NoteBullet,
    ReconciliationResult,
    SlotStatus,
)


class TerminalDisplay:
    """
    Pretty terminal output for import results.

    ═══════════════════════════════════════════════════════════════════════════
    HOW TO REPLACE THIS UI
    ═══════════════════════════════════════════════════════════════════════════

    1. FOR A FLOWCHART VIEW:
       Apply ReconciliationResult.labels / .notes to the nodes directly;
       nothing here is needed.

    2. FOR API RESPONSE:
       Return ReconciliationResult.to_dict() as JSON.

    ═══════════════════════════════════════════════════════════════════════════
    """

    # ANSI color codes for terminal styling
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    CYAN = "\033[96m"
    MAGENTA = "\033[95m"
    WHITE = "\033[97m"

    BG_GREEN = "\033[42m"
    BG_YELLOW = "\033[43m"
    BG_RED = "\033[41m"

    @classmethod
    def print_header(cls, title: str):
        """Print a major section header with decorative borders."""
        width = 70
        print()
        print(f"{cls.BOLD}{cls.CYAN}{'═' * width}{cls.RESET}")
        print(f"{cls.BOLD}{cls.CYAN}  {title}{cls.RESET}")
        print(f"{cls.BOLD}{cls.CYAN}{'═' * width}{cls.RESET}")

    @classmethod
    def print_subheader(cls, title: str):
        """Print a subsection header."""
        print()
        print(f"{cls.BOLD}{cls.WHITE}  ── {title} ──{cls.RESET}")

    @classmethod
    def slot_badge(cls, status: SlotStatus) -> str:
        """Return a colored status badge for a GE slot."""
        if status is SlotStatus.COMPLETE:
            return f"{cls.BG_GREEN}{cls.WHITE} ✓ COMPLETE {cls.RESET}"
        if status is SlotStatus.IN_PROGRESS:
            return f"{cls.BG_YELLOW}{cls.WHITE} ⏳ IN PROG  {cls.RESET}"
        if status is SlotStatus.TENTATIVE:
            return f"{cls.BG_YELLOW}{cls.WHITE} ? REVIEW   {cls.RESET}"
        return f"{cls.BG_RED}{cls.WHITE} ✗ MISSING  {cls.RESET}"

    @classmethod
    def print_evidence_summary(cls, evidence: Evidence):
        """Print what was read from the audit."""
        cls.print_header(f"AUDIT EVIDENCE ({evidence.source_kind.upper()})")
        print(f"  {cls.BOLD}Transcript rows:{cls.RESET} {len(evidence.rows)}")
        print(f"  {cls.BOLD}Passed courses:{cls.RESET}  {len(evidence.passed)}")
        print(f"  {cls.BOLD}In progress:{cls.RESET}     {cls._code_list(sorted(evidence.ip))}")
        if evidence.substitutions:
            subs = ", ".join(f"{label} → {target}" for target, label in sorted(evidence.substitutions.items()))
            print(f"  {cls.BOLD}Substitutions:{cls.RESET}   {subs}")

    @classmethod
    def print_ge_slots(cls, evidence: Evidence):
        """Print GE slots in tabular format."""
        cls.print_subheader(f"GE Slots ({evidence.ge_schema} schema)")
        print(f"\n  {cls.BOLD}{'SLOT':<8} {'STATUS':<15} {'COURSE / NOTE'}{cls.RESET}")
        print(f"  {cls.DIM}{'-' * 66}{cls.RESET}")
        for key, record in evidence.ge_slots.items():
            print(f"  {key:<8} {cls.slot_badge(record.status)}  {cls._slot_detail(record)}")

    @classmethod
    def _slot_detail(cls, record: GeSlotRecord) -> str:
        parts = []
        if record.code:
            parts.append(record.code)
        if record.note:
            parts.append(f"{cls.DIM}{record.note}{cls.RESET}")
        return " ".join(parts) if parts else f"{cls.DIM}(none){cls.RESET}"

    @classmethod
    def print_tech_electives(cls, evidence: Evidence):
        """Print technical elective evidence."""
        cls.print_subheader("Technical Electives")
        print(f"  {cls.GREEN}Completed:{cls.RESET}   {cls._code_list(evidence.tech.completed)}")
        print(f"  {cls.YELLOW}In progress:{cls.RESET} {cls._code_list(evidence.tech.ip)}")

    @classmethod
    def print_reconciliation(cls, result: ReconciliationResult, nodes: Sequence[CurriculumNode]):
        """Print the flowchart changes, node by node."""
        cls.print_header("FLOWCHART UPDATE")
        print(f"  {cls.BOLD}Struck:{cls.RESET}      {len(result.struck_ids)}")
        print(f"  {cls.BOLD}In progress:{cls.RESET} {len(result.in_progress_ids)}")
        print(f"  {cls.BOLD}Review:{cls.RESET}      {len(result.review_ids)}")

        cls.print_subheader("Nodes")
        for node in nodes:
            assignment = result.for_node(node.id)
            if not assignment.label and not assignment.note:
                continue
            if assignment.is_struck:
                mark = f"{cls.GREEN}✓{cls.RESET}"
            elif assignment.label:
                mark = f"{cls.YELLOW}{assignment.label}{cls.RESET}"
            else:
                mark = f"{cls.DIM}·{cls.RESET}"
            note = f"  {cls.DIM}{assignment.note}{cls.RESET}" if assignment.note else ""
            print(f"  {mark} {node.display_label:<24} {cls.DIM}[{node.category}]{cls.RESET}{note}")

        cls.print_stage_reports(result)

    @classmethod
    def print_stage_reports(cls, result: ReconciliationResult):
        dropped = [r for r in result.stages if r.dropped]
        if not dropped:
            return
        cls.print_subheader("No Placeholder Left")
        for report in dropped:
            print(f"  {cls.MAGENTA}{report.stage}:{cls.RESET} {', '.join(report.dropped)}")

    @classmethod
    def print_note_bullets(cls, program: Optional[str], bullets: Sequence[NoteBullet]):
        cls.print_subheader(f"Advising Notes{f' ({program})' if program else ''}")
        for bullet in bullets:
            print(f"  {'  ' * bullet.level}• {bullet.text}")

    @classmethod
    def print_reminder(cls):
        """Imports are heuristic; always ask for a manual check."""
        print()
        print(f"  {cls.YELLOW}{cls.BOLD}NOTE:{cls.RESET}{cls.YELLOW} Import doesn't always work reliably.{cls.RESET}")
        print(f"  {cls.YELLOW}Please double-check that the import is correct.{cls.RESET}")
        print()

    @classmethod
    def print_error(cls, message: str):
        print(f"\n  {cls.RED}Error: {message}{cls.RESET}")

    @classmethod
    def _code_list(cls, codes) -> str:
        codes = list(codes)
        return ", ".join(codes) if codes else f"{cls.DIM}(none){cls.RESET}"
