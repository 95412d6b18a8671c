"""
Width packer: best-fit decreasing into 118" sets, existing stock first.
"""

import pytest

from conftest import GOLDEN, NATURAL, make_requirement, make_stock
from jumbo_planner.services.exceptions import RequirementTooWide
from jumbo_planner.services.id_generator import IdGenerator
from jumbo_planner.services.width_packer import WidthPacker, pack_widths


def set_widths(result):
    return [[cut.width for cut in roll_set.cuts] for roll_set in result.sets]


def test_spec_example_packs_two_sets(spec_example):
    result = pack_widths(spec_example, target_width=118)

    assert set_widths(result) == [[40, 40, 38], [40, 38]]
    assert [s.waste for s in result.sets] == [0.0, 40.0]
    assert [s.set_number for s in result.sets] == [1, 2]
    assert result.existing_cuts == []


def test_width_equal_to_target_fills_one_set():
    result = pack_widths([make_requirement("R1", 118, 1)], target_width=118)

    assert set_widths(result) == [[118]]
    assert result.sets[0].waste == 0.0


def test_too_wide_requirement_is_rejected_not_truncated():
    requirements = [make_requirement("R1", 40, 1), make_requirement("R2", 120, 1)]

    with pytest.raises(RequirementTooWide) as excinfo:
        pack_widths(requirements, target_width=118)

    assert excinfo.value.requirement_id == "R2"
    assert excinfo.value.width == 120


def test_empty_input_gives_empty_result():
    result = pack_widths([], target_width=118)

    assert result.sets == []
    assert result.existing_cuts == []
    assert result.consumptions == []


def test_sets_never_exceed_target_and_every_unit_is_placed():
    requirements = [
        make_requirement("R1", 55.5, 3, order_id="ORD-1"),
        make_requirement("R2", 42, 4, order_id="ORD-2"),
        make_requirement("R3", 38.25, 5, order_id="ORD-1"),
        make_requirement("R4", 29, 2, order_id="ORD-3"),
        make_requirement("R5", 17.75, 6, order_id="ORD-2"),
        make_requirement("R6", 63, 1, order_id="ORD-3"),
    ]
    result = pack_widths(requirements, target_width=118)

    for roll_set in result.sets:
        assert roll_set.used_width <= 118.01
        assert roll_set.waste >= 0

    placed = {}
    for roll_set in result.sets:
        for cut in roll_set.cuts:
            placed[cut.requirement_id] = placed.get(cut.requirement_id, 0) + 1
    assert placed == {r.requirement_id: r.quantity for r in requirements}


def test_cuts_carry_order_back_references(spec_example):
    result = pack_widths(spec_example, target_width=118)
    cut = result.sets[0].cuts[0]

    assert cut.requirement_id == "REQ-40"
    assert cut.order_id == "ORD-A"
    assert cut.client_name == "Acme Papers"
    assert cut.uses_existing is False
    assert cut.is_manual is False


def test_same_input_gives_identical_output(spec_example):
    first = pack_widths(spec_example, id_generator=IdGenerator("run"))
    second = pack_widths(spec_example, id_generator=IdGenerator("run"))

    assert [s.set_id for s in first.sets] == [s.set_id for s in second.sets]
    assert [[c.cut_id for c in s.cuts] for s in first.sets] == [[c.cut_id for c in s.cuts] for s in second.sets]


# ============================================================================
# EXISTING STOCK
# ============================================================================

def test_existing_stock_roll_serves_a_cut_before_new_sets():
    result = pack_widths([make_requirement("R1", 30, 1)], existing_stock=[make_stock("STK-1", 35)])

    assert result.sets == []
    assert len(result.existing_cuts) == 1
    cut = result.existing_cuts[0]
    assert cut.uses_existing is True
    assert cut.stock_roll_id == "STK-1"

    consumption = result.consumptions[0]
    assert consumption.roll_id == "STK-1"
    assert consumption.width_used == 30
    assert consumption.remaining_width == 5.0
    assert consumption.requirement_id == "R1"


def test_tightest_existing_roll_is_chosen():
    result = pack_widths(
        [make_requirement("R1", 30, 1)],
        existing_stock=[make_stock("STK-WIDE", 45), make_stock("STK-TIGHT", 32)],
    )

    assert result.existing_cuts[0].stock_roll_id == "STK-TIGHT"


def test_each_stock_roll_is_used_once():
    result = pack_widths([make_requirement("R1", 30, 2)], existing_stock=[make_stock("STK-1", 32)])

    assert len(result.existing_cuts) == 1
    assert set_widths(result) == [[30]]


def test_any_wide_enough_stock_roll_is_used_by_default():
    result = pack_widths([make_requirement("R1", 40, 1)], existing_stock=[make_stock("STK-1", 70)])

    assert result.sets == []
    assert result.existing_cuts[0].stock_roll_id == "STK-1"
    assert result.consumptions[0].remaining_width == 30.0


def test_configured_overrun_cap_skips_wider_rolls():
    packer = WidthPacker(target_width=118, max_overrun=20)
    result = packer.pack([make_requirement("R1", 30, 1)], [make_stock("STK-1", 60)])

    assert result.existing_cuts == []
    assert set_widths(result) == [[30]]


def test_stock_roll_of_another_spec_is_skipped():
    result = pack_widths(
        [make_requirement("R1", 30, 1, spec=GOLDEN)],
        existing_stock=[make_stock("STK-1", 32, spec=NATURAL)],
    )

    assert result.existing_cuts == []


def test_roll_within_configured_overrun_cap_is_used():
    packer = WidthPacker(target_width=118, max_overrun=40)
    result = packer.pack([make_requirement("R1", 30, 1)], [make_stock("STK-1", 60)])

    assert result.existing_cuts[0].stock_roll_id == "STK-1"
    assert result.consumptions[0].remaining_width == 30.0
