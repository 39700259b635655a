"""
Data models for the import system.

This package contains all dataclasses and enums used throughout the system.
These serve as "contracts" between the parsers, the engines and the UI.
"""

from .course import TranscriptRow, CourseParts, EquivalencyGroup
from .evidence import (
    SlotStatus,
    GeSlotRecord,
    GeParseResult,
    TechElectiveEvidence,
    Evidence,
)
from .curriculum import (
    CurriculumNode,
    NodeAssignment,
    StageReport,
    ReconciliationResult,
)
from .notes import NoteBullet

__all__ = [
    # Course models
    "TranscriptRow",
    "CourseParts",
    "EquivalencyGroup",
    # Evidence models
    "SlotStatus",
    "GeSlotRecord",
    "GeParseResult",
    "TechElectiveEvidence",
    "Evidence",
    # Flowchart models
    "CurriculumNode",
    "NodeAssignment",
    "StageReport",
    "ReconciliationResult",
    # Advising notes
    "NoteBullet",
]
