"""
Curriculum flowchart models.

CurriculumNode is owned by the external flowchart and only read here.
ReconciliationResult is what one import hands back to the UI layer.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..config import IN_PROGRESS_LABEL, REVIEW_LABEL, STRIKE_LABEL
from ..normalize import normalize_code


@dataclass(frozen=True)
class CurriculumNode:
    """
    A single box on the curriculum flowchart.

    Attributes:
        id: Node identifier, unique within the flowchart
        code: Course code or placeholder text ("CPSC 120", "GE", "Tech Elective")
        category: Flowchart category ("CS", "GE", "Tech Elective", ...)
        label: Optional display label ("GE 6", "GE Area 3A")
        prereqs / coreqs: Ids of other nodes; carried through, never checked here
    """
    id: str
    code: str = ""
    category: str = ""
    label: Optional[str] = None
    prereqs: Tuple[str, ...] = ()
    coreqs: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "CurriculumNode":
        node_id = data.get("id") or data.get("code")
        if not node_id:
            raise ValueError(f"Curriculum node without id or code: {data!r}")
        return cls(
            id=str(node_id),
            code=str(data.get("code") or ""),
            category=str(data.get("category") or ""),
            label=data.get("label") or data.get("title") or data.get("name"),
            prereqs=tuple(data.get("prereqs") or ()),
            coreqs=tuple(data.get("coreqs") or ()),
        )

    @property
    def display_label(self) -> str:
        return self.label or self.code or self.id

    @property
    def flow_code(self) -> str:
        """Normalized course code used for matching against evidence."""
        return normalize_code(self.code or self.id)


@dataclass(frozen=True)
class NodeAssignment:
    """Label and note assigned to one node."""
    label: Optional[str] = None
    note: Optional[str] = None

    @property
    def is_struck(self) -> bool:
        return self.label == STRIKE_LABEL


@dataclass(frozen=True)
class StageReport:
    """What one reconciliation stage assigned (node ids in assignment order)."""
    stage: str
    assigned: Tuple[str, ...] = ()
    dropped: Tuple[str, ...] = ()


@dataclass
class ReconciliationResult:
    """
    Full replacement label/note maps produced by one import.

    The maps already contain any manual entries that were passed in as the
    current state, so the caller replaces its view state with them wholesale.
    """
    labels: Dict[str, str] = field(default_factory=dict)
    notes: Dict[str, str] = field(default_factory=dict)
    stages: List[StageReport] = field(default_factory=list)

    def for_node(self, node_id: str) -> NodeAssignment:
        return NodeAssignment(label=self.labels.get(node_id), note=self.notes.get(node_id))

    @property
    def struck_ids(self) -> List[str]:
        return [node_id for node_id, label in self.labels.items() if label == STRIKE_LABEL]

    @property
    def in_progress_ids(self) -> List[str]:
        return [node_id for node_id, label in self.labels.items() if label == IN_PROGRESS_LABEL]

    @property
    def review_ids(self) -> List[str]:
        return [node_id for node_id, label in self.labels.items() if label == REVIEW_LABEL]

    def to_dict(self) -> dict:
        return {"labels": dict(self.labels), "notes": dict(self.notes)}
