"""Shared pytest fixtures."""

import json
import logging

import pytest

from flowaudit.data import TranscriptRowParser
from flowaudit.engines import (
    EquivalencyResolver,
    EvidenceAggregator,
    GeneralEducationSlotMatcher,
    ReconciliationEngine,
    TechnicalElectiveMatcher,
)
from flowaudit.models import CurriculumNode


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def row_parser():
    return TranscriptRowParser()


@pytest.fixture
def resolver():
    return EquivalencyResolver()


@pytest.fixture
def ge_matcher(row_parser):
    return GeneralEducationSlotMatcher(row_parser)


@pytest.fixture
def tech_matcher():
    return TechnicalElectiveMatcher()


@pytest.fixture
def aggregator(row_parser):
    return EvidenceAggregator(row_parser=row_parser)


@pytest.fixture
def engine(resolver):
    return ReconciliationEngine(resolver)


@pytest.fixture
def egcp_nodes():
    """A small slice of a computer engineering flowchart."""
    return [
        CurriculumNode(id="cpsc120", code="CPSC 120", category="CS"),
        CurriculumNode(id="cpsc121", code="CPSC 121A/L", category="CS"),
        CurriculumNode(id="cpsc131", code="CPSC 131", category="CS"),
        CurriculumNode(id="egec280", code="EGEC 280", category="EGEC"),
        CurriculumNode(id="math150a", code="MATH 150A", category="Math"),
        CurriculumNode(id="engl101", code="ENGL 101", category="GE"),
        CurriculumNode(id="posc100", code="POSC 100", category="GE"),
        CurriculumNode(id="ge1c", code="GE", category="GE", label="GE 1C"),
        CurriculumNode(id="ge3a", code="GE", category="GE", label="GE Area 3A"),
        CurriculumNode(id="ge_a", code="GE", category="GE", label="GE"),
        CurriculumNode(id="ge_b", code="GE", category="GE", label="GE"),
        CurriculumNode(id="te1", code="Tech Elective", category="Tech Elective"),
        CurriculumNode(id="te2", code="Tech Elective", category="Tech Elective"),
    ]


@pytest.fixture
def curriculum_path(tmp_path, egcp_nodes):
    """The egcp_nodes flowchart written as a curriculum JSON file."""
    path = tmp_path / "egcp.json"
    data = [
        {"id": n.id, "code": n.code, "category": n.category, "label": n.label}
        for n in egcp_nodes
    ]
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def text_audit_path(tmp_path):
    path = tmp_path / "audit.txt"
    path.write_text(
        "\n".join([
            "FA22 CPSC 120A 2.0 A",
            "FA22 CPSC 120L 1.0 A",
            "SP25 CPSC 131 3.0 IP",
            "FA23 ENGL 101 3.0 B+",
        ]),
        encoding="utf-8",
    )
    return path
