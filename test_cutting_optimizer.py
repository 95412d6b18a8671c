"""
End-to-end planning: spec grouping, packing, jumbo assembly and commit.
"""

import copy

import pytest

from conftest import GOLDEN, NATURAL, make_requirement, make_stock
from jumbo_planner.services.cutting_optimizer import (
    CuttingOptimizer,
    commit,
    generate_suggestions,
    target_width_from_wastage,
    validate_suggestion,
)
from jumbo_planner.services.exceptions import CapacityError, InputError, InvalidSpec, RequirementTooWide
from jumbo_planner.services.roll_types import Cut, PaperSpec, ProductionPlanReference
from jumbo_planner.services.suggestion_aggregator import to_spec_view


def mixed_requirements():
    return [
        make_requirement("G-1", 55.5, 3, order_id="ORD-1"),
        make_requirement("N-1", 42, 4, order_id="ORD-2", spec=NATURAL),
        make_requirement("G-2", 38.25, 5, order_id="ORD-3"),
        make_requirement("N-2", 29, 2, order_id="ORD-1", spec=NATURAL),
        make_requirement("G-3", 17.75, 6, order_id="ORD-2"),
        make_requirement("N-3", 63, 3, order_id="ORD-3", spec=NATURAL),
    ]


def test_one_suggestion_per_spec_in_first_seen_order():
    suggestions = generate_suggestions(mixed_requirements())

    assert [s.spec for s in suggestions] == [GOLDEN, NATURAL]
    assert suggestions[0].requirement_ids == ("G-1", "G-2", "G-3")
    assert suggestions[1].requirement_ids == ("N-1", "N-2", "N-3")
    for suggestion in suggestions:
        assert {c.requirement_id[0] for c in suggestion.all_cuts} == {suggestion.requirement_ids[0][0]}


def test_shades_are_normalised_before_grouping():
    requirements = [
        make_requirement("R1", 40, 1, spec=PaperSpec(gsm=120, bf=18, shade="golden ")),
        make_requirement("R2", 40, 1, spec=PaperSpec(gsm=120, bf=18.0, shade="Golden")),
    ]
    suggestions = generate_suggestions(requirements)

    assert len(suggestions) == 1
    assert suggestions[0].spec.shade == "Golden"
    assert suggestions[0].summary.total_sets == 1


def test_invalid_spec_is_rejected():
    with pytest.raises(InvalidSpec):
        PaperSpec(gsm=0, bf=18, shade="Golden")
    with pytest.raises(InvalidSpec):
        PaperSpec(gsm=120, bf=18, shade="  ")


def test_malformed_requirement_is_an_input_error():
    with pytest.raises(InputError):
        make_requirement("REQ-1", "forty", 1)
    with pytest.raises(InputError):
        make_requirement("REQ-1", None, 1)
    with pytest.raises(InputError):
        make_requirement("REQ-1", 40, 1, status="shipped")


def test_every_requirement_unit_is_placed_once():
    requirements = mixed_requirements()
    suggestions = generate_suggestions(requirements)

    placed = {}
    for suggestion in suggestions:
        for cut in suggestion.all_cuts:
            placed[cut.requirement_id] = placed.get(cut.requirement_id, 0) + 1
    assert placed == {r.requirement_id: r.quantity for r in requirements}


def test_physical_limits_hold():
    for suggestion in generate_suggestions(mixed_requirements()):
        for jumbo in suggestion.jumbos:
            assert 1 <= len(jumbo.sets) <= 3
            for roll_set in jumbo.sets:
                assert roll_set.used_width <= roll_set.target_width + 0.01
                assert 0 <= roll_set.waste <= roll_set.target_width
        validate_suggestion(suggestion)


def test_seven_sets_give_two_full_and_one_partial_jumbo():
    [suggestion] = generate_suggestions([make_requirement("R1", 100, 7)])

    assert [len(j.sets) for j in suggestion.jumbos] == [3, 3, 1]
    assert suggestion.summary.partial_jumbos == 1
    assert [j.jumbo_id for j in suggestion.partial_jumbos] == [suggestion.jumbos[2].jumbo_id]


def test_too_wide_requirement_fails_the_whole_call():
    requirements = [make_requirement("R1", 40, 1), make_requirement("R2", 130, 1, spec=NATURAL)]

    with pytest.raises(RequirementTooWide):
        generate_suggestions(requirements)


def test_no_requirements_no_suggestions():
    assert generate_suggestions([]) == []


def test_wide_stock_roll_serves_a_narrow_requirement():
    [suggestion] = generate_suggestions([make_requirement("R1", 40, 1)], existing_stock=[make_stock("STK-1", 70)])

    assert suggestion.summary.rolls_from_existing == 1
    assert suggestion.summary.total_sets == 0
    assert suggestion.stock_consumptions[0].remaining_width == 30.0


def test_existing_stock_is_used_only_for_its_spec():
    requirements = [make_requirement("G", 30, 1), make_requirement("N", 30, 1, spec=NATURAL)]
    golden, natural = generate_suggestions(requirements, existing_stock=[make_stock("STK-1", 35, spec=NATURAL)])

    assert golden.summary.rolls_from_existing == 0
    assert natural.summary.rolls_from_existing == 1
    assert natural.summary.total_sets == 0
    assert natural.stock_consumptions[0].roll_id == "STK-1"


def test_output_is_deterministic():
    first = [to_spec_view(s) for s in generate_suggestions(mixed_requirements())]
    second = [to_spec_view(s) for s in generate_suggestions(mixed_requirements())]

    assert first == second


def test_parallel_planning_matches_sequential():
    sequential = CuttingOptimizer(max_workers=1).generate_suggestions(mixed_requirements())
    parallel = CuttingOptimizer(max_workers=4).generate_suggestions(mixed_requirements())

    assert [to_spec_view(s) for s in parallel] == [to_spec_view(s) for s in sequential]


def test_target_width_changes_set_width():
    [suggestion] = generate_suggestions([make_requirement("R1", 40, 3)], target_width=100)

    assert suggestion.target_width == 100
    assert [len(s.cuts) for s in suggestion.sets] == [2, 1]


def test_target_width_from_wastage():
    assert target_width_from_wastage(1) == 118
    assert target_width_from_wastage(0) == 119
    assert target_width_from_wastage(2.5) == 116.5
    with pytest.raises(InputError):
        target_width_from_wastage(-1)
    with pytest.raises(InputError):
        target_width_from_wastage(119)


def test_optimizer_rejects_bad_configuration():
    with pytest.raises(InputError):
        CuttingOptimizer(strategy="first_fit")
    with pytest.raises(InputError):
        CuttingOptimizer(target_width=0)
    with pytest.raises(InputError):
        CuttingOptimizer(sets_per_jumbo=0)


# ============================================================================
# COMMIT
# ============================================================================

class RecordingPlanStore:
    def __init__(self):
        self.plans = []

    def create_plan(self, suggestion):
        self.plans.append(suggestion)
        return ProductionPlanReference(
            plan_id=f"plan-{len(self.plans)}",
            frontend_id=f"PLN-{len(self.plans):05d}",
            suggestion_id=suggestion.suggestion_id,
            status="planned",
        )


def test_commit_hands_suggestion_to_store(spec_example):
    [suggestion] = generate_suggestions(spec_example)
    store = RecordingPlanStore()

    references = commit(suggestion, store)

    assert store.plans == [suggestion]
    assert [r.suggestion_id for r in references] == [suggestion.suggestion_id]
    assert references[0].status == "planned"


def test_commit_rejects_overfull_set(spec_example):
    [suggestion] = generate_suggestions(spec_example)
    broken = copy.deepcopy(suggestion)
    broken.jumbos[0].sets[0].cuts.append(Cut(cut_id="CUT-X", width=5))
    store = RecordingPlanStore()

    with pytest.raises(CapacityError):
        commit(broken, store)
    assert store.plans == []
