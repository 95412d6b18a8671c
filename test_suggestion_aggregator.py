"""
Canonical suggestion summary plus the spec-level and legacy order-level views.
"""

from dataclasses import asdict

from conftest import NATURAL, make_requirement, make_stock
from jumbo_planner.services.cutting_optimizer import generate_suggestions
from jumbo_planner.services.manual_adjustment import add_cut
from jumbo_planner.services.roll_types import Summary
from jumbo_planner.services.suggestion_aggregator import (
    compute_summary,
    summarize_run,
    to_order_view,
    to_response,
    to_spec_view,
)


def test_summary_of_spec_example(spec_example):
    [suggestion] = generate_suggestions(spec_example)

    assert suggestion.summary == Summary(
        total_rolls=5,
        rolls_from_existing=0,
        new_rolls_needed=5,
        total_sets=2,
        total_jumbos=1,
        partial_jumbos=1,
        total_used_width=196.0,
        total_waste=40.0,
        avg_waste=20.0,
        efficiency=83.1,
    )


def test_summary_counts_existing_stock_cuts():
    requirements = [make_requirement("R30", 30, 1), make_requirement("R40", 40, 1)]
    [suggestion] = generate_suggestions(requirements, existing_stock=[make_stock("STK-1", 35)])

    summary = suggestion.summary
    assert summary.total_rolls == 2
    assert summary.rolls_from_existing == 1
    assert summary.new_rolls_needed == 1
    assert summary.total_sets == 1
    assert summary.efficiency == 33.9


def test_empty_summary_is_all_zero():
    assert compute_summary([], []) == Summary()


def test_spec_view_shape(spec_example):
    [suggestion] = generate_suggestions(spec_example)
    view = to_spec_view(suggestion)

    assert view["spec_id"] == "spec_120_Golden_18.0"
    assert view["paper_spec"] == {"gsm": 120, "bf": 18.0, "shade": "Golden"}
    assert view["version"] == 1
    assert view["pending_order_ids"] == ["REQ-40", "REQ-38"]
    assert view["order_ids"] == ["ORD-A", "ORD-B"]
    assert view["summary"] == asdict(suggestion.summary)

    [jumbo] = view["jumbo_rolls"]
    assert jumbo["is_partial"] is True
    assert [len(s["cuts"]) for s in jumbo["sets"]] == [3, 2]
    assert jumbo["sets"][0]["summary"]["total_waste"] == 0.0
    assert jumbo["sets"][1]["manual_addition_available"] is True
    assert jumbo["summary"]["efficiency"] == 83.1


def test_order_view_has_one_entry_per_order(spec_example):
    suggestions = generate_suggestions(spec_example)
    order_view = to_order_view(suggestions)

    assert [entry["order_info"]["order_id"] for entry in order_view] == ["ORD-A", "ORD-B"]

    order_a, order_b = order_view
    assert order_a["suggestion_id"] == f"{suggestions[0].suggestion_id}:ORD-A"
    assert order_a["order_info"]["client_name"] == "Acme Papers"
    assert order_a["summary"] == {
        "total_jumbo_rolls": 1,
        "total_118_sets": 2,
        "total_cuts": 3,
        "using_existing_cuts": 0,
    }
    assert order_b["summary"]["total_cuts"] == 2
    assert order_b["pending_order_ids"] == ["REQ-38"]

    # Only the order's own cuts are listed; the set summary stays physical
    first_set = order_b["jumbo_rolls"][0]["sets"][0]
    assert [cut["width_inches"] for cut in first_set["cuts"]] == [38]
    assert first_set["summary"]["total_cuts"] == 3


def test_manual_cut_without_order_only_in_spec_view(spec_example):
    [suggestion] = generate_suggestions(spec_example)
    jumbo = suggestion.jumbos[0]
    adjusted = add_cut(suggestion, jumbo.jumbo_id, jumbo.sets[1].set_id, 20)

    assert sum(entry["summary"]["total_cuts"] for entry in to_order_view([adjusted])) == 5
    spec_cuts = [cut for s in to_spec_view(adjusted)["jumbo_rolls"][0]["sets"] for cut in s["cuts"]]
    assert len(spec_cuts) == 6
    assert spec_cuts[-1]["is_manual_cut"] is True


def test_run_summary_across_specs(spec_example):
    requirements = spec_example + [make_requirement("REQ-N", 100, 1, order_id="ORD-C", spec=NATURAL)]
    suggestions = generate_suggestions(requirements)
    run = summarize_run(suggestions)

    assert run["specs_processed"] == 2
    assert run["total_jumbo_rolls"] == 2
    assert run["total_118_sets"] == 3
    assert run["total_cuts"] == 6
    assert run["total_waste"] == 58.0


def test_response_for_no_requirements():
    response = to_response([], target_width=118)

    assert response["status"] == "no_pending_orders"
    assert response["spec_suggestions"] == []
    assert response["summary"]["specs_processed"] == 0
    assert response["summary"]["efficiency"] == 0.0


def test_response_order_view(spec_example):
    response = to_response(generate_suggestions(spec_example), target_width=118, view="order", wastage=1)

    assert response["status"] == "success"
    assert response["wastage"] == 1
    assert "spec_suggestions" not in response
    assert len(response["order_suggestions"]) == 2
