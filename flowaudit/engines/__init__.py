"""
Matching and reconciliation engines.

This package contains the engines that turn an audit into Evidence and
apply that Evidence to a curriculum flowchart.
"""

from .equivalency import EquivalencyResolver
from .ge_slots import GeneralEducationSlotMatcher
from .tech_electives import TechnicalElectiveMatcher
from .evidence import EvidenceAggregator
from .reconciliation import ReconciliationEngine

__all__ = [
    "EquivalencyResolver",
    "GeneralEducationSlotMatcher",
    "TechnicalElectiveMatcher",
    "EvidenceAggregator",
    "ReconciliationEngine",
]
