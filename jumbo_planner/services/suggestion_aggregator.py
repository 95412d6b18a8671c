from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from .roll_types import (
    Cut,
    JumboRoll,
    PaperSpec,
    PendingRequirement,
    RollSet,
    Suggestion,
    Summary,
    round_width,
)
from .width_packer import PackingResult

logger = logging.getLogger(__name__)


# ============================================================================
# CANONICAL RESULT
# ============================================================================

def compute_summary(jumbos: Sequence[JumboRoll], existing_cuts: Sequence[Cut]) -> Summary:
    """Roll-up of every jumbo, set and cut. Empty input gives an all-zero summary."""
    sets = [roll_set for jumbo in jumbos for roll_set in jumbo.sets]
    new_rolls = sum(len(roll_set.cuts) for roll_set in sets)
    used_width = round_width(sum(roll_set.used_width for roll_set in sets))
    produced_width = sum(roll_set.target_width for roll_set in sets)
    total_waste = round_width(sum(roll_set.waste for roll_set in sets))

    return Summary(
        total_rolls=new_rolls + len(existing_cuts),
        rolls_from_existing=len(existing_cuts),
        new_rolls_needed=new_rolls,
        total_sets=len(sets),
        total_jumbos=len(jumbos),
        partial_jumbos=sum(1 for jumbo in jumbos if jumbo.is_partial),
        total_used_width=used_width,
        total_waste=total_waste,
        avg_waste=round_width(total_waste / len(sets)) if sets else 0.0,
        efficiency=round((used_width / produced_width) * 100, 1) if produced_width else 0.0,
    )


def build_suggestion(
    suggestion_id: str,
    spec: PaperSpec,
    requirements: Sequence[PendingRequirement],
    packing: PackingResult,
    jumbos: List[JumboRoll],
    target_width: float,
) -> Suggestion:
    order_ids: List[str] = []
    for requirement in requirements:
        if requirement.order_id not in order_ids:
            order_ids.append(requirement.order_id)

    return Suggestion(
        suggestion_id=suggestion_id,
        spec=spec,
        target_width=target_width,
        jumbos=jumbos,
        existing_stock_cuts=list(packing.existing_cuts),
        stock_consumptions=list(packing.consumptions),
        requirement_ids=tuple(requirement.requirement_id for requirement in requirements),
        order_ids=tuple(order_ids),
        summary=compute_summary(jumbos, packing.existing_cuts),
    )


# ============================================================================
# PRESENTATION ADAPTERS
# ============================================================================

def cut_to_dict(cut: Cut) -> Dict[str, Any]:
    return {
        'cut_id': cut.cut_id,
        'width_inches': cut.width,
        'uses_existing': cut.uses_existing,
        'used_widths': {str(cut.width): 1},
        'requirement_id': cut.requirement_id,
        'order_id': cut.order_id,
        'order_frontend_id': cut.order_frontend_id,
        'client_name': cut.client_name,
        'stock_roll_id': cut.stock_roll_id,
        'is_manual_cut': cut.is_manual,
        'description': cut.description,
    }


def set_to_dict(roll_set: RollSet, cuts: Optional[Iterable[Cut]] = None) -> Dict[str, Any]:
    cuts = list(roll_set.cuts if cuts is None else cuts)
    return {
        'set_id': roll_set.set_id,
        'set_number': roll_set.set_number,
        'target_width': roll_set.target_width,
        'cuts': [cut_to_dict(cut) for cut in cuts],
        'manual_addition_available': roll_set.manual_addition_available,
        'summary': {
            'total_cuts': len(roll_set.cuts),
            'using_existing_cuts': sum(1 for cut in roll_set.cuts if cut.uses_existing),
            'total_actual_width': roll_set.used_width,
            'total_waste': roll_set.waste,
            'efficiency': roll_set.efficiency,
        },
    }


def jumbo_to_dict(jumbo: JumboRoll, target_width: float, sets: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    used = round_width(sum(s.used_width for s in jumbo.sets))
    produced = target_width * len(jumbo.sets)
    return {
        'jumbo_id': jumbo.jumbo_id,
        'jumbo_number': jumbo.jumbo_number,
        'target_width': target_width,
        'is_partial': jumbo.is_partial,
        'sets': sets if sets is not None else [set_to_dict(s) for s in jumbo.sets],
        'summary': {
            'total_sets': len(jumbo.sets),
            'total_cuts': len(jumbo.cuts),
            'using_existing_cuts': sum(1 for cut in jumbo.cuts if cut.uses_existing),
            'total_actual_width': used,
            'total_waste': round_width(sum(s.waste for s in jumbo.sets)),
            'efficiency': round((used / produced) * 100, 1) if produced else 0.0,
        },
    }


def to_spec_view(suggestion: Suggestion) -> Dict[str, Any]:
    """Spec-level shape: one entry per paper spec with the full jumbo/set/cut nesting."""
    return {
        'suggestion_id': suggestion.suggestion_id,
        'spec_id': suggestion.spec.spec_id,
        'paper_spec': suggestion.spec.as_dict(),
        'target_width': suggestion.target_width,
        'version': suggestion.version,
        'jumbo_rolls': [jumbo_to_dict(jumbo, suggestion.target_width) for jumbo in suggestion.jumbos],
        'existing_stock_cuts': [cut_to_dict(cut) for cut in suggestion.existing_stock_cuts],
        'stock_consumptions': [asdict(consumption) for consumption in suggestion.stock_consumptions],
        'pending_order_ids': list(suggestion.requirement_ids),
        'order_ids': list(suggestion.order_ids),
        'summary': asdict(suggestion.summary),
    }


def to_order_view(suggestions: Iterable[Suggestion]) -> List[Dict[str, Any]]:
    """
    Legacy order-level shape: one entry per (order, paper spec), built from
    the cuts' order back-references. Jumbos and sets keep their physical
    summaries; only the cuts belonging to the order are listed. Manual cuts
    without an order appear in the spec view only.
    """
    order_suggestions: List[Dict[str, Any]] = []

    for suggestion in suggestions:
        for order_id in suggestion.order_ids:
            order_cuts = [cut for cut in suggestion.all_cuts if cut.order_id == order_id]
            if not order_cuts:
                continue

            jumbo_rolls = []
            for jumbo in suggestion.jumbos:
                set_dicts = []
                for roll_set in jumbo.sets:
                    cuts = [cut for cut in roll_set.cuts if cut.order_id == order_id]
                    if cuts:
                        set_dicts.append(set_to_dict(roll_set, cuts))
                if set_dicts:
                    jumbo_rolls.append(jumbo_to_dict(jumbo, suggestion.target_width, set_dicts))

            existing = [cut for cut in suggestion.existing_stock_cuts if cut.order_id == order_id]
            first = order_cuts[0]
            requirement_ids = []
            for cut in order_cuts:
                if cut.requirement_id and cut.requirement_id not in requirement_ids:
                    requirement_ids.append(cut.requirement_id)

            order_suggestions.append({
                'suggestion_id': f"{suggestion.suggestion_id}:{order_id}",
                'order_info': {
                    'order_id': order_id,
                    'order_frontend_id': first.order_frontend_id or order_id,
                    'client_name': first.client_name or 'Unknown',
                },
                'paper_spec': suggestion.spec.as_dict(),
                'target_width': suggestion.target_width,
                'jumbo_rolls': jumbo_rolls,
                'existing_stock_cuts': [cut_to_dict(cut) for cut in existing],
                'pending_order_ids': requirement_ids,
                'summary': {
                    'total_jumbo_rolls': len(jumbo_rolls),
                    'total_118_sets': sum(len(j['sets']) for j in jumbo_rolls),
                    'total_cuts': len(order_cuts),
                    'using_existing_cuts': len(existing),
                },
            })

    return order_suggestions


def summarize_run(suggestions: Sequence[Suggestion]) -> Dict[str, Any]:
    """Totals across every spec of one planning call."""
    total_sets = sum(s.summary.total_sets for s in suggestions)
    total_waste = round_width(sum(s.summary.total_waste for s in suggestions))
    used_width = round_width(sum(s.summary.total_used_width for s in suggestions))
    produced_width = sum(s.target_width * s.summary.total_sets for s in suggestions)
    return {
        'specs_processed': len(suggestions),
        'total_jumbo_rolls': sum(s.summary.total_jumbos for s in suggestions),
        'partial_jumbo_rolls': sum(s.summary.partial_jumbos for s in suggestions),
        'total_118_sets': total_sets,
        'total_cuts': sum(s.summary.total_rolls for s in suggestions),
        'rolls_from_existing': sum(s.summary.rolls_from_existing for s in suggestions),
        'new_rolls_needed': sum(s.summary.new_rolls_needed for s in suggestions),
        'total_waste': total_waste,
        'avg_waste': round_width(total_waste / total_sets) if total_sets else 0.0,
        'efficiency': round((used_width / produced_width) * 100, 1) if produced_width else 0.0,
    }


def to_response(
    suggestions: Sequence[Suggestion],
    target_width: float,
    view: str = "spec",
    wastage: Optional[float] = None,
) -> Dict[str, Any]:
    """Full API payload in either the spec-level or the legacy order-level shape."""
    response: Dict[str, Any] = {
        'status': 'success' if suggestions else 'no_pending_orders',
        'target_width': target_width,
        'wastage': wastage,
        'summary': summarize_run(suggestions),
    }
    if view == "order":
        response['order_suggestions'] = to_order_view(suggestions)
    else:
        response['spec_suggestions'] = [to_spec_view(s) for s in suggestions]
    return response
