"""
Flowchart reconciliation.

Applies one Evidence to the curriculum flowchart and produces the full
label/note maps the flowchart should show afterwards.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import (
    ALLOW_GE,
    GE_CATEGORY,
    IN_PROGRESS_LABEL,
    REVIEW_LABEL,
    STRIKE_LABEL,
    TECH_ELECTIVE_CATEGORY,
    WAIVED_NOTE,
)
from ..logging import get_logger
from ..models import (
    CurriculumNode,
    Evidence,
    ReconciliationResult,
    SlotStatus,
    StageReport,
)
from .equivalency import EquivalencyResolver

logger = get_logger(__name__, component="reconcile")

COURSE_CODE_RX = re.compile(r"\b([A-Z]{2,6})[-\s]?(\d{3,4}[A-Z]?L?)\b")
GE_WORD_RX = re.compile(r"\bGE\b|General\s*Ed", re.IGNORECASE)
LOOSE_RX = re.compile(r"[\s-]+")


def _loose(s: str) -> str:
    return LOOSE_RX.sub("", s or "").upper()


EXCEPTION_NODE_CODES = tuple(_loose(code) for code in sorted(ALLOW_GE))


@dataclass
class StagingMap:
    """
    Working copy of the flowchart state during one reconciliation.

    Starts as a copy of the caller's current (manual) state; stages write
    into it in order and the final maps replace the caller's state wholesale.
    """
    labels: Dict[str, str] = field(default_factory=dict)
    notes: Dict[str, str] = field(default_factory=dict)
    manual_labels: Mapping[str, str] = field(default_factory=dict)

    def is_unused(self, node_id: str) -> bool:
        return not self.labels.get(node_id) and not self.notes.get(node_id)

    def has_label(self, node_id: str) -> bool:
        return bool(self.labels.get(node_id))

    def has_note(self, node_id: str) -> bool:
        return bool(self.notes.get(node_id))


@dataclass
class GeWant:
    key: str
    code: Optional[str] = None
    note: Optional[str] = None


class ReconciliationEngine:
    """
    Reconciles audit evidence onto flowchart nodes.

    PIPELINE ORDER MATTERS:
    -----------------------
    Later stages consume whatever placeholder capacity earlier stages left:

    1. in_progress   - nodes whose course is in progress -> "In Prog."
    2. tech_electives - fill unused Tech Elective boxes: completed first
                        (struck, note = code), then in progress
    3. general_education - fill GE boxes per slot key: a box labelled with
                        the key first, else the next generic GE box
    4. completion    - strike passed courses on non-GE / non-elective boxes
    5. substitutions - note the substitute course on boxes struck in step 4

    MANUAL STATE:
    -------------
    Labels and notes the caller already shows are never overwritten. Only
    the "In Prog." marks made earlier in the same run may be upgraded to a
    strike by the completion stage.

    Evidence that finds no placeholder is dropped, not an error.
    """

    def __init__(self, resolver: Optional[EquivalencyResolver] = None):
        self.resolver = resolver or EquivalencyResolver()
        self.stages = (
            ("in_progress", self._stage_in_progress),
            ("tech_electives", self._stage_tech_electives),
            ("general_education", self._stage_general_education),
            ("completion", self._stage_completion),
            ("substitutions", self._stage_substitutions),
        )

    def reconcile(
        self,
        evidence: Evidence,
        nodes: Sequence[CurriculumNode],
        current_labels: Optional[Mapping[str, str]] = None,
        current_notes: Optional[Mapping[str, str]] = None,
    ) -> ReconciliationResult:
        """
        Run every stage in order and return the replacement maps.

        Args:
            evidence: Facts extracted from one audit
            nodes: Flowchart nodes in flowchart order
            current_labels / current_notes: State currently shown (manual edits)

        Returns:
            ReconciliationResult holding the full label/note maps
        """
        current_labels = dict(current_labels or {})
        staging = StagingMap(
            labels=dict(current_labels),
            notes=dict(current_notes or {}),
            manual_labels=current_labels,
        )

        reports: List[StageReport] = []
        context: Dict[str, List[str]] = {}
        for name, stage in self.stages:
            report = stage(evidence, nodes, staging, context)
            reports.append(report)
            logger.bind(stage=name).debug(
                "Stage %s assigned %d node(s)",
                name,
                len(report.assigned),
                extra={
                    "event": "reconcile.stage.completed",
                    "assigned": len(report.assigned),
                    "dropped": len(report.dropped),
                },
            )

        result = ReconciliationResult(
            labels=staging.labels,
            notes=staging.notes,
            stages=reports,
        )
        logger.info(
            "Reconciliation completed",
            extra={
                "event": "reconcile.completed",
                "nodes": len(nodes),
                "struck": len(result.struck_ids),
                "in_progress": len(result.in_progress_ids),
                "review": len(result.review_ids),
            },
        )
        return result

    # =========================================================================
    # MATCHING HELPERS
    # =========================================================================

    def _in_progress(self, node: CurriculumNode, ip) -> bool:
        code = node.flow_code
        if self.resolver.is_in_progress_match(code, ip):
            return True
        return any(alt in ip for alt in self.resolver.cross_department_alternates(code))

    def _satisfied(self, node: CurriculumNode, passed) -> bool:
        code = node.flow_code
        if self.resolver.is_satisfied_match(code, passed):
            return True
        if code in passed:
            return True
        return any(alt in passed for alt in self.resolver.cross_department_alternates(code))

    def is_exception_node(self, node: CurriculumNode) -> bool:
        """Dedicated ENGL 101 / POSC 100 boxes are never generic GE placeholders."""
        label = _loose(node.display_label)
        code = _loose(node.code)
        return any(exc in label or exc in code for exc in EXCEPTION_NODE_CODES)

    def is_generic_ge_node(self, node: CurriculumNode) -> bool:
        if node.category != GE_CATEGORY or self.is_exception_node(node):
            return False
        label = node.display_label
        if GE_WORD_RX.search(label):
            return True
        return not COURSE_CODE_RX.search(label)

    def is_eligible_for_strike(self, node: CurriculumNode) -> bool:
        if node.flow_code in ALLOW_GE:
            return True
        return node.category not in (GE_CATEGORY, TECH_ELECTIVE_CATEGORY)

    # =========================================================================
    # STAGES
    # =========================================================================

    def _stage_in_progress(self, evidence, nodes, staging, context) -> StageReport:
        assigned = []
        for node in nodes:
            if staging.has_label(node.id):
                continue
            if self._in_progress(node, evidence.ip):
                staging.labels[node.id] = IN_PROGRESS_LABEL
                assigned.append(node.id)
        context["in_progress"] = assigned
        return StageReport("in_progress", tuple(assigned))

    def _stage_tech_electives(self, evidence, nodes, staging, context) -> StageReport:
        open_ids = [
            n.id for n in nodes
            if n.category == TECH_ELECTIVE_CATEGORY and staging.is_unused(n.id)
        ]
        queue = [(code, STRIKE_LABEL) for code in evidence.tech.completed]
        queue += [(code, IN_PROGRESS_LABEL) for code in evidence.tech.ip]

        assigned, dropped = [], []
        for code, label in queue:
            if not open_ids:
                dropped.append(code)
                continue
            node_id = open_ids.pop(0)
            staging.notes[node_id] = code
            staging.labels[node_id] = label
            assigned.append(node_id)
        return StageReport("tech_electives", tuple(assigned), tuple(dropped))

    def _stage_general_education(self, evidence, nodes, staging, context) -> StageReport:
        keys = list(evidence.ge_slots.keys())
        ge_nodes = [n for n in nodes if n.category == GE_CATEGORY]

        buckets: Dict[str, List[str]] = {key: [] for key in keys}
        labelled = set()
        key_rx = {
            key: re.compile(r"\bGE\b\W?\s*(?:AREA\s*)?" + re.escape(key) + r"(?!\w)", re.IGNORECASE)
            for key in keys
        }
        for node in ge_nodes:
            if self.is_exception_node(node):
                continue
            for key in keys:
                if key_rx[key].search(node.display_label):
                    buckets[key].append(node.id)
                    labelled.add(node.id)
                    break

        generic = [
            n.id for n in ge_nodes
            if self.is_generic_ge_node(n) and n.id not in labelled
        ]

        def take(key: str) -> Optional[str]:
            for pool in (buckets[key], generic):
                while pool:
                    node_id = pool.pop(0)
                    if staging.is_unused(node_id):
                        return node_id
            return None

        wants = {status: [] for status in SlotStatus}
        for key in keys:
            record = evidence.ge_slots[key]
            if record.status is SlotStatus.IN_PROGRESS and not record.code:
                wants[SlotStatus.MISSING].append(GeWant(key))
            else:
                wants[record.status].append(GeWant(key, record.code, record.note))

        assigned, dropped = [], []
        for status in (SlotStatus.COMPLETE, SlotStatus.IN_PROGRESS, SlotStatus.TENTATIVE, SlotStatus.MISSING):
            queue = wants[status]
            for i, want in enumerate(queue):
                node_id = take(want.key)
                if node_id is None:
                    dropped.extend(w.key for w in queue[i:])
                    break
                label, note = self._ge_assignment(status, want)
                if label:
                    staging.labels[node_id] = label
                staging.notes[node_id] = note
                assigned.append(node_id)
        return StageReport("general_education", tuple(assigned), tuple(dropped))

    def _ge_assignment(self, status: SlotStatus, want: GeWant):
        if status is SlotStatus.COMPLETE:
            if want.code:
                return STRIKE_LABEL, f"{want.code} ({want.key})"
            if want.note and want.note != WAIVED_NOTE:
                return STRIKE_LABEL, f"{want.note} ({want.key})"
            return STRIKE_LABEL, f"{want.key} ({WAIVED_NOTE})"
        if status is SlotStatus.IN_PROGRESS:
            return IN_PROGRESS_LABEL, f"{want.code} ({want.key})"
        if status is SlotStatus.TENTATIVE:
            return REVIEW_LABEL, want.note or ""
        return None, want.key

    def _stage_completion(self, evidence, nodes, staging, context) -> StageReport:
        assigned = []
        for node in nodes:
            if not self.is_eligible_for_strike(node):
                continue
            if staging.manual_labels.get(node.id):
                continue
            if self._satisfied(node, evidence.passed):
                staging.labels[node.id] = STRIKE_LABEL
                assigned.append(node.id)
        context["completion"] = assigned
        return StageReport("completion", tuple(assigned))

    def _stage_substitutions(self, evidence, nodes, staging, context) -> StageReport:
        struck = set(context.get("completion", ()))
        assigned = []
        for node in nodes:
            if node.id not in struck or staging.has_note(node.id):
                continue
            code = node.flow_code
            note = evidence.substitutions.get(code) or evidence.requirement_notes.get(code)
            if note:
                staging.notes[node.id] = note
                assigned.append(node.id)
        return StageReport("substitutions", tuple(assigned))
