"""
Evidence data models.

Evidence is everything one extraction run learned from an audit document,
kept separate from how the flowchart applies it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .course import TranscriptRow


class SlotStatus(Enum):
    """
    State of a general-education slot.

    COMPLETE: Satisfied by a passing row, a certification or a waiver
    IN_PROGRESS: Satisfied by a course the student is taking now
    TENTATIVE: Two sources disagree (or only one applies); advisor must review
    MISSING: Nothing on the audit satisfies the slot
    """
    COMPLETE = "complete"
    IN_PROGRESS = "IP"
    TENTATIVE = "tentative"
    MISSING = "missing"

    @property
    def is_meaningful(self) -> bool:
        """True for statuses that actually put a course in play."""
        return self in (SlotStatus.COMPLETE, SlotStatus.IN_PROGRESS)


@dataclass(frozen=True)
class GeSlotRecord:
    """
    Result of matching one GE slot.

    code is None when the slot was met without a course (certification,
    waiver) or when nothing was found.
    """
    code: Optional[str]
    status: SlotStatus
    note: Optional[str] = None

    @classmethod
    def missing(cls, code: Optional[str] = None) -> "GeSlotRecord":
        return cls(code=code, status=SlotStatus.MISSING)


@dataclass(frozen=True)
class GeParseResult:
    """GE slots for the detected requirement schema, ordered by target key."""
    schema: str
    items: Mapping[str, GeSlotRecord]

    @property
    def is_modern(self) -> bool:
        return self.schema == "modern"


@dataclass(frozen=True)
class TechElectiveEvidence:
    """Technical-elective codes in document order (de-duplicated)."""
    completed: Tuple[str, ...] = ()
    ip: Tuple[str, ...] = ()


def _frozen_mapping(value) -> Mapping:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class Evidence:
    """
    High-confidence facts extracted from one audit document.

    Attributes:
        rows: Transcript rows in document order
        passed: Codes with a passing grade (C- or better, CR, P)
        ip: Codes currently in progress
        substitutions: Requirement code -> substitute label ("CPSC 131" -> "CIST 4B")
        ge_schema: "modern" or "legacy"
        ge_slots: Slot key -> GeSlotRecord, ordered like the schema's target keys
        tech: Technical-elective evidence
        requirement_notes: Code -> note for requirements met without a row
        source_kind: "html" or "text"
        normalized_text: Normalized visible text the slicers ran on
    """
    rows: Tuple[TranscriptRow, ...]
    passed: frozenset
    ip: frozenset
    substitutions: Mapping[str, str] = field(default_factory=dict)
    ge_schema: str = "legacy"
    ge_slots: Mapping[str, GeSlotRecord] = field(default_factory=dict)
    tech: TechElectiveEvidence = field(default_factory=TechElectiveEvidence)
    requirement_notes: Mapping[str, str] = field(default_factory=dict)
    source_kind: str = "text"
    normalized_text: str = ""

    def __post_init__(self):
        # Frozen dataclass: bypass __setattr__ to lock the mappings down
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "passed", frozenset(self.passed))
        object.__setattr__(self, "ip", frozenset(self.ip))
        object.__setattr__(self, "substitutions", _frozen_mapping(self.substitutions))
        object.__setattr__(self, "ge_slots", _frozen_mapping(self.ge_slots))
        object.__setattr__(self, "requirement_notes", _frozen_mapping(self.requirement_notes))

    @property
    def ge_keys(self) -> Tuple[str, ...]:
        return tuple(self.ge_slots.keys())
