"""
Flowchart Audit Import Package
==============================

Imports a student's degree audit (TDA) onto a curriculum flowchart: strikes
completed courses, marks in-progress ones, fills technical-elective and GE
placeholder boxes and notes substitutions.

ARCHITECTURE OVERVIEW
---------------------

┌─────────────────────────────────────────────────────────────────────────┐
│                         EXTRACTION LAYER                                │
│        (Pure logic - returns Evidence, NO flowchart knowledge)          │
│                                                                         │
│  ┌──────────────────┐  ┌─────────────────────┐  ┌────────────────────┐  │
│  │ normalize        │  │ TranscriptRowParser │  │ EvidenceAggregator │  │
│  │ (text, codes)    │  │ (text + tables)     │  │ (facts + overlays) │  │
│  └──────────────────┘  └─────────────────────┘  └────────────────────┘  │
│                                                                         │
│  ┌──────────────────────────────┐  ┌─────────────────────────────────┐  │
│  │ GeneralEducationSlotMatcher  │  │   TechnicalElectiveMatcher      │  │
│  │ (GE schemas, slot status)    │  │   (elective section windows)    │  │
│  └──────────────────────────────┘  └─────────────────────────────────┘  │
└─────────────────────────────────────────────────────────────────────────┘
                                   │
                                   │ Evidence
                                   ▼
┌─────────────────────────────────────────────────────────────────────────┐
│                       RECONCILIATION LAYER                              │
│                                                                         │
│  ┌─────────────────────────┐  ┌─────────────────────────────────────┐   │
│  │  EquivalencyResolver    │  │       ReconciliationEngine          │   │
│  │ (combined vs parts)     │  │  (ordered stages -> labels/notes)   │   │
│  └─────────────────────────┘  └─────────────────────────────────────┘   │
└─────────────────────────────────────────────────────────────────────────┘
                                   │
                                   ▼
┌─────────────────────────────────────────────────────────────────────────┐
│                      FlowchartImporter                                  │
│     (Orchestrator - DataLoader in, TerminalDisplay out)                 │
└─────────────────────────────────────────────────────────────────────────┘

PACKAGE STRUCTURE
-----------------

flowaudit/
├── __init__.py          # This file - main exports
├── config.py            # Configuration constants
├── exceptions.py        # FlowAuditError hierarchy
├── normalize.py         # Text, course-code and grade normalization
├── importer.py          # FlowchartImporter orchestrator
├── cli.py               # Command-line interface
│
├── logging/             # get_logger, configure_logging
│
├── models/              # Data classes and enums
│   ├── course.py        # TranscriptRow, CourseParts, EquivalencyGroup
│   ├── evidence.py      # Evidence, GeSlotRecord, SlotStatus, ...
│   ├── curriculum.py    # CurriculumNode, ReconciliationResult, ...
│   └── notes.py         # NoteBullet
│
├── data/                # Document I/O and row parsing
│   ├── document.py      # MarkupNode, SoupNode (BeautifulSoup)
│   ├── loader.py        # DataLoader, NotesTemplateCache
│   └── parser.py        # TranscriptRowParser
│
├── engines/             # Matching and reconciliation
│   ├── equivalency.py   # EquivalencyResolver
│   ├── ge_slots.py      # GeneralEducationSlotMatcher
│   ├── tech_electives.py # TechnicalElectiveMatcher
│   ├── evidence.py      # EvidenceAggregator
│   └── reconciliation.py # ReconciliationEngine
│
└── ui/
    └── terminal.py      # TerminalDisplay

USAGE
-----

    from flowaudit import EvidenceAggregator, ReconciliationEngine, CurriculumNode

    evidence = EvidenceAggregator().from_html(html)
    result = ReconciliationEngine().reconcile(evidence, nodes, labels, notes)
    result.to_dict()   # {"labels": {...}, "notes": {...}}

Running from command line:

    python -m flowaudit audit.html --curriculum egcp.json --program EGCP

"""

# Version
__version__ = "1.0.0"

# Main exports
from .importer import FlowchartImporter, ImportOutcome
from .cli import main

# Model exports (for programmatic use)
from .models import (
    TranscriptRow,
    CourseParts,
    EquivalencyGroup,
    SlotStatus,
    GeSlotRecord,
    GeParseResult,
    TechElectiveEvidence,
    Evidence,
    CurriculumNode,
    NodeAssignment,
    StageReport,
    ReconciliationResult,
    NoteBullet,
)

# Engine exports
from .engines import (
    EquivalencyResolver,
    GeneralEducationSlotMatcher,
    TechnicalElectiveMatcher,
    EvidenceAggregator,
    ReconciliationEngine,
)

# Data exports
from .data import DataLoader, NotesTemplateCache, TranscriptRowParser

# Normalization exports
from .normalize import normalize_code, normalize_grade, normalize_text, is_passing_grade

# UI exports
from .ui import TerminalDisplay

# Error exports
from .exceptions import (
    FlowAuditError,
    DocumentParseError,
    DocumentFetchError,
    CurriculumFormatError,
)

__all__ = [
    # Version
    "__version__",
    # Main entry points
    "FlowchartImporter",
    "ImportOutcome",
    "main",
    # Models
    "TranscriptRow",
    "CourseParts",
    "EquivalencyGroup",
    "SlotStatus",
    "GeSlotRecord",
    "GeParseResult",
    "TechElectiveEvidence",
    "Evidence",
    "CurriculumNode",
    "NodeAssignment",
    "StageReport",
    "ReconciliationResult",
    "NoteBullet",
    # Engines
    "EquivalencyResolver",
    "GeneralEducationSlotMatcher",
    "TechnicalElectiveMatcher",
    "EvidenceAggregator",
    "ReconciliationEngine",
    # Data
    "DataLoader",
    "NotesTemplateCache",
    "TranscriptRowParser",
    # Normalization
    "normalize_code",
    "normalize_grade",
    "normalize_text",
    "is_passing_grade",
    # UI
    "TerminalDisplay",
    # Errors
    "FlowAuditError",
    "DocumentParseError",
    "DocumentFetchError",
    "CurriculumFormatError",
]
