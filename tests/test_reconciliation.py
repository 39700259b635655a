"""Tests for applying evidence to flowchart nodes."""

import pytest

from flowaudit.config import GRADGOV_NOTE, IN_PROGRESS_LABEL, REVIEW_LABEL, STRIKE_LABEL
from flowaudit.models import (
    CurriculumNode,
    Evidence,
    GeSlotRecord,
    SlotStatus,
    TechElectiveEvidence,
)


def _evidence(passed=(), ip=(), ge_slots=None, tech=None, substitutions=None, requirement_notes=None):
    return Evidence(
        rows=(),
        passed=frozenset(passed),
        ip=frozenset(ip),
        substitutions=substitutions or {},
        ge_schema="modern",
        ge_slots=ge_slots or {},
        tech=tech or TechElectiveEvidence(),
        requirement_notes=requirement_notes or {},
    )


def _stage(result, name):
    return next(r for r in result.stages if r.stage == name)


def _complete(code):
    return GeSlotRecord(code, SlotStatus.COMPLETE)


class TestEndToEnd:
    def test_lecture_and_lab_strike_combined_and_placeholder(self, aggregator, engine):
        nodes = [
            CurriculumNode(id="combined", code="CPSC 120", category="CS"),
            CurriculumNode(id="placeholder", code="CPSC 120A/L", category="CS"),
            CurriculumNode(id="next", code="CPSC 121", category="CS"),
        ]
        evidence = aggregator.from_text("FA22 CPSC 120A 2.0 A\nFA22 CPSC 120L 1.0 A")
        result = engine.reconcile(evidence, nodes)
        assert result.labels == {"combined": STRIKE_LABEL, "placeholder": STRIKE_LABEL}

    def test_lecture_only_leaves_combined_open(self, aggregator, engine):
        nodes = [
            CurriculumNode(id="combined", code="CPSC 120", category="CS"),
            CurriculumNode(id="part", code="CPSC 120A", category="CS"),
        ]
        evidence = aggregator.from_text("FA24 CPSC 120A 2.0 A")

        assert engine.resolver.is_in_progress_match("CPSC 120A", evidence.passed)
        assert not engine.resolver.is_satisfied_match("CPSC 120", evidence.passed)

        result = engine.reconcile(evidence, nodes)
        # a passed part is struck on its own box; the combined box stays open
        assert result.labels == {"part": STRIKE_LABEL}
        assert _stage(result, "in_progress").assigned == ()
        assert _stage(result, "completion").assigned == ("part",)

    def test_lecture_in_progress_marks_part_and_combined(self, aggregator, engine):
        nodes = [
            CurriculumNode(id="combined", code="CPSC 120", category="CS"),
            CurriculumNode(id="part", code="CPSC 120A", category="CS"),
        ]
        result = engine.reconcile(aggregator.from_text("SP25 CPSC 120A 2.0 IP"), nodes)
        assert result.labels == {"combined": IN_PROGRESS_LABEL, "part": IN_PROGRESS_LABEL}

    def test_stage_order(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(), egcp_nodes)
        assert [r.stage for r in result.stages] == [
            "in_progress", "tech_electives", "general_education", "completion", "substitutions",
        ]

    def test_manual_state_carried_through(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"CPSC 120"}),
            egcp_nodes,
            current_labels={"math150a": "Fall"},
            current_notes={"math150a": "Summer at OCC"},
        )
        assert result.to_dict() == {
            "labels": {"math150a": "Fall", "cpsc120": STRIKE_LABEL},
            "notes": {"math150a": "Summer at OCC"},
        }


class TestInProgress:
    def test_any_piece_marks_combined(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(ip={"CPSC 120L"}), egcp_nodes)
        assert result.labels["cpsc120"] == IN_PROGRESS_LABEL

    def test_one_part_passed_other_in_progress(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(passed={"CPSC 121A"}, ip={"CPSC 121L"}), egcp_nodes)
        assert result.labels["cpsc121"] == IN_PROGRESS_LABEL

    def test_alternate_department(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(ip={"EGCP 280"}), egcp_nodes)
        assert result.labels["egec280"] == IN_PROGRESS_LABEL

    def test_manual_label_kept(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(ip={"CPSC 131"}), egcp_nodes, current_labels={"cpsc131": "Spr"})
        assert result.labels["cpsc131"] == "Spr"
        assert _stage(result, "in_progress").assigned == ()


class TestCompletion:
    def test_upgrades_in_progress_from_same_run(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"CPSC 120A", "CPSC 120L"}, ip={"CPSC 120"}),
            egcp_nodes,
        )
        assert result.labels["cpsc120"] == STRIKE_LABEL
        assert _stage(result, "in_progress").assigned == ("cpsc120",)
        assert _stage(result, "completion").assigned == ("cpsc120",)

    def test_manual_label_and_note_preserved(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"CPSC 131"}),
            egcp_nodes,
            current_labels={"cpsc131": "In Prog."},
            current_notes={"cpsc131": "petition filed"},
        )
        assert result.labels["cpsc131"] == IN_PROGRESS_LABEL
        assert result.notes["cpsc131"] == "petition filed"

    def test_alternate_department(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(passed={"EGCP 280"}), egcp_nodes)
        assert result.labels["egec280"] == STRIKE_LABEL

    def test_single_part_does_not_strike_combined(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(passed={"CPSC 121A"}), egcp_nodes)
        assert "cpsc121" not in result.labels

    def test_dedicated_ge_boxes_can_be_struck(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(passed={"ENGL 101", "POSC 100"}), egcp_nodes)
        assert result.labels["engl101"] == STRIKE_LABEL
        assert result.labels["posc100"] == STRIKE_LABEL

    def test_placeholder_categories_never_struck(self, engine):
        nodes = [
            CurriculumNode(id="ge", code="COMM 100", category="GE"),
            CurriculumNode(id="te", code="CPSC 481", category="Tech Elective"),
        ]
        result = engine.reconcile(_evidence(passed={"COMM 100", "CPSC 481"}), nodes)
        assert result.labels == {}


class TestTechElectives:
    def test_completed_then_in_progress(self, engine, egcp_nodes):
        tech = TechElectiveEvidence(completed=("CPSC 481",), ip=("CPSC 485",))
        result = engine.reconcile(_evidence(tech=tech), egcp_nodes)
        assert result.for_node("te1").label == STRIKE_LABEL
        assert result.for_node("te1").note == "CPSC 481"
        assert result.for_node("te2").label == IN_PROGRESS_LABEL
        assert result.for_node("te2").note == "CPSC 485"

    def test_extra_evidence_dropped(self, engine, egcp_nodes):
        tech = TechElectiveEvidence(completed=("CPSC 481", "CPSC 483"), ip=("CPSC 485",))
        result = engine.reconcile(_evidence(tech=tech), egcp_nodes)
        report = _stage(result, "tech_electives")
        assert report.assigned == ("te1", "te2")
        assert report.dropped == ("CPSC 485",)
        assert IN_PROGRESS_LABEL not in (result.labels["te1"], result.labels["te2"])

    def test_used_boxes_skipped(self, engine, egcp_nodes):
        tech = TechElectiveEvidence(completed=("CPSC 481",))
        result = engine.reconcile(_evidence(tech=tech), egcp_nodes, current_notes={"te1": "CPSC 490"})
        assert result.notes["te1"] == "CPSC 490"
        assert "te1" not in result.labels
        assert result.notes["te2"] == "CPSC 481"


class TestGeneralEducation:
    def test_buckets_generic_pool_and_note_shapes(self, engine, egcp_nodes):
        slots = {
            "1C": GeSlotRecord("COMM 100", SlotStatus.COMPLETE),
            "3A": GeSlotRecord("ART 101", SlotStatus.IN_PROGRESS),
            "3B": GeSlotRecord.missing(),
            "4B": GeSlotRecord(None, SlotStatus.COMPLETE, "CSU Cert. Course"),
            "6": GeSlotRecord(None, SlotStatus.COMPLETE, "Waived"),
            "3U/Z": GeSlotRecord("MUS 355", SlotStatus.TENTATIVE, "3U=MUS 355; Z=Needed"),
        }
        result = engine.reconcile(_evidence(ge_slots=slots), egcp_nodes)

        assert result.for_node("ge1c").label == STRIKE_LABEL
        assert result.for_node("ge1c").note == "COMM 100 (1C)"
        assert result.for_node("ge3a").label == IN_PROGRESS_LABEL
        assert result.for_node("ge3a").note == "ART 101 (3A)"
        assert result.for_node("ge_a").note == "CSU Cert. Course (4B)"
        assert result.for_node("ge_b").note == "6 (Waived)"
        assert result.for_node("ge_b").label == STRIKE_LABEL
        assert "engl101" not in result.notes
        assert "posc100" not in result.notes
        assert _stage(result, "general_education").dropped == ("3U/Z", "3B")

    def test_tentative_marked_for_review(self, engine, egcp_nodes):
        slots = {"3U/Z": GeSlotRecord("MUS 355", SlotStatus.TENTATIVE, "3U=MUS 355; Z=Needed")}
        result = engine.reconcile(_evidence(ge_slots=slots), egcp_nodes)
        assert result.for_node("ge1c").label == REVIEW_LABEL
        assert result.for_node("ge1c").note == "3U=MUS 355; Z=Needed"
        assert result.review_ids == ["ge1c"]

    def test_missing_slot_notes_key_without_label(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(ge_slots={"3B": GeSlotRecord.missing()}), egcp_nodes)
        assert result.notes["ge1c"] == "3B"
        assert "ge1c" not in result.labels

    def test_in_progress_without_code_treated_as_missing(self, engine, egcp_nodes):
        slots = {"3A": GeSlotRecord(None, SlotStatus.IN_PROGRESS)}
        result = engine.reconcile(_evidence(ge_slots=slots), egcp_nodes)
        assert result.notes["ge3a"] == "3A"
        assert "ge3a" not in result.labels

    def test_used_box_falls_back_to_generic_pool(self, engine, egcp_nodes):
        slots = {"1C": GeSlotRecord("COMM 100", SlotStatus.COMPLETE)}
        result = engine.reconcile(
            _evidence(ge_slots=slots), egcp_nodes, current_notes={"ge1c": "advisor note"}
        )
        assert result.notes["ge1c"] == "advisor note"
        assert result.notes["ge3a"] == "COMM 100 (1C)"

    @pytest.mark.parametrize(
        "key, decoy_label, box_label",
        [("6", "6 units", "GE 6"), ("F", "Area F", "GE Area F"), ("1C", "Block 1C", "GE: 1C")],
    )
    def test_bucket_needs_ge_prefix(self, engine, key, decoy_label, box_label):
        nodes = [
            CurriculumNode(id="decoy", code="", category="GE", label=decoy_label),
            CurriculumNode(id="box", code="GE", category="GE", label=box_label),
        ]
        result = engine.reconcile(_evidence(ge_slots={key: _complete("ETHS 101")}), nodes)
        assert result.notes == {"box": f"ETHS 101 ({key})"}

    def test_first_unplaced_slot_drops_rest_of_status_group(self, engine, egcp_nodes):
        slots = {
            "3B": _complete("PHIL 100"),
            "4B": _complete("HIST 180"),
            "6": _complete("ETHS 101"),
            "3U/Z": _complete("MUS 355"),
            "1C": _complete("COMM 100"),
        }
        result = engine.reconcile(_evidence(ge_slots=slots), egcp_nodes)
        assert [result.notes[i] for i in ("ge3a", "ge_a", "ge_b")] == [
            "PHIL 100 (3B)", "HIST 180 (4B)", "ETHS 101 (6)",
        ]
        assert "ge1c" not in result.notes
        assert _stage(result, "general_education").dropped == ("3U/Z", "1C")


class TestGeNodeClassification:
    @pytest.mark.parametrize(
        "node, generic",
        [
            (CurriculumNode(id="a", code="GE", category="GE", label="GE Area 3A"), True),
            (CurriculumNode(id="b", code="", category="GE", label="Arts"), True),
            (CurriculumNode(id="c", code="HIST 110B", category="GE"), False),
            (CurriculumNode(id="d", code="ENGL 101", category="GE"), False),
            (CurriculumNode(id="e", code="GE", category="GE", label="POSC 100 or GE"), False),
            (CurriculumNode(id="f", code="GE", category="CS"), False),
        ],
    )
    def test_generic(self, engine, node, generic):
        assert engine.is_generic_ge_node(node) is generic

    def test_exception_node_tolerates_spacing(self, engine):
        assert engine.is_exception_node(CurriculumNode(id="x", code="ENGL-101", category="GE"))
        assert engine.is_exception_node(CurriculumNode(id="y", code="GE", category="GE", label="posc100"))


class TestSubstitutions:
    def test_note_on_struck_target(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"CPSC 131"}, substitutions={"CPSC 131": "CIST 4B"}), egcp_nodes
        )
        assert result.for_node("cpsc131").label == STRIKE_LABEL
        assert result.for_node("cpsc131").note == "CIST 4B"
        assert _stage(result, "substitutions").assigned == ("cpsc131",)

    def test_unstruck_target_gets_no_note(self, engine, egcp_nodes):
        result = engine.reconcile(_evidence(substitutions={"CPSC 131": "CIST 4B"}), egcp_nodes)
        assert "cpsc131" not in result.notes

    def test_requirement_note(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"POSC 100"}, requirement_notes={"POSC 100": GRADGOV_NOTE}), egcp_nodes
        )
        assert result.for_node("posc100").note == GRADGOV_NOTE

    def test_existing_note_kept(self, engine, egcp_nodes):
        result = engine.reconcile(
            _evidence(passed={"CPSC 131"}, substitutions={"CPSC 131": "CIST 4B"}),
            egcp_nodes,
            current_notes={"cpsc131": "mine"},
        )
        assert result.notes["cpsc131"] == "mine"
