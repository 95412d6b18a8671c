from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Dict, Any, Iterable, Optional, Sequence
import logging
import uuid

from .base import get_db, get_registry
from .. import schemas
from ..config import settings
from ..crud.plans import SqlPlanStore
from ..services.cutting_optimizer import CuttingOptimizer, commit, target_width_from_wastage
from ..services.exceptions import InputError, PlannerError
from ..services.id_generator import IdGenerator
from ..services.manual_adjustment import AddCutOperation, RemoveCutOperation, SuggestionRegistry
from ..services.roll_types import ExistingStockRoll, PaperSpec, PendingRequirement
from ..services.suggestion_aggregator import to_response, to_spec_view

router = APIRouter()
logger = logging.getLogger(__name__)


def resolve_target_width(target_width: Optional[float], wastage: Optional[float]) -> float:
    if target_width is not None and wastage is not None:
        raise InputError("Give either target_width or wastage, not both")
    if wastage is not None:
        return target_width_from_wastage(wastage)
    return target_width if target_width is not None else settings.SET_WIDTH


def run_planner(
    requirements: Sequence[PendingRequirement],
    existing_stock: Iterable[ExistingStockRoll],
    target_width: float,
    strategy: str,
    view: str,
    registry: SuggestionRegistry,
    wastage: Optional[float] = None,
) -> Dict[str, Any]:
    """Plan, keep the suggestions for later adjustment and render the response."""
    # Ids are namespaced per call so suggestions from different calls never collide
    run_ids = IdGenerator(namespace=uuid.uuid4().hex[:8])
    optimizer = CuttingOptimizer(
        target_width=target_width,
        strategy=strategy,
        id_generator_factory=run_ids.scoped,
    )
    suggestions = optimizer.generate_suggestions(requirements, existing_stock)
    for suggestion in suggestions:
        registry.register(suggestion)
    return to_response(suggestions, target_width, view=view, wastage=wastage)


# ============================================================================
# CUTTING SUGGESTION ENDPOINTS
# ============================================================================

@router.post("/cutting/suggestions", response_model=Dict[str, Any], tags=["Cutting Algorithm"])
def generate_cutting_suggestions(
    request: schemas.SuggestionRequest,
    registry: SuggestionRegistry = Depends(get_registry),
):
    """
    Generate spec-grouped jumbo suggestions for the given requirements.
    Existing stock rolls of the same spec are used before new sets are opened.
    """
    try:
        target_width = resolve_target_width(request.target_width, request.wastage)
        requirements = [
            PendingRequirement(
                requirement_id=item.requirement_id,
                width=item.width,
                spec=PaperSpec(gsm=item.gsm, bf=item.bf, shade=item.shade),
                quantity=item.quantity,
                order_id=item.order_id,
                reason=item.reason,
                order_frontend_id=item.order_frontend_id,
                client_name=item.client_name,
            )
            for item in request.requirements
        ]
        existing_stock = [
            ExistingStockRoll(
                roll_id=roll.roll_id,
                width=roll.width,
                spec=PaperSpec(gsm=roll.gsm, bf=roll.bf, shade=roll.shade),
                source=roll.source,
            )
            for roll in request.existing_stock
        ]
        return run_planner(
            requirements,
            existing_stock,
            target_width,
            request.strategy.value,
            request.view.value,
            registry,
            wastage=request.wastage,
        )
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error generating cutting suggestions: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/suggestions/{suggestion_id:path}", response_model=Dict[str, Any], tags=["Cutting Algorithm"])
def get_suggestion(suggestion_id: str, registry: SuggestionRegistry = Depends(get_registry)):
    """Current version of a live suggestion"""
    return to_spec_view(registry.get(suggestion_id))


@router.delete("/suggestions/{suggestion_id:path}", response_model=Dict[str, Any], tags=["Cutting Algorithm"])
def discard_suggestion(suggestion_id: str, registry: SuggestionRegistry = Depends(get_registry)):
    """Drop a suggestion that will not be committed"""
    discarded = registry.pop(suggestion_id)
    logger.info(f"🗑️ Discarded {suggestion_id} at v{discarded.version}")
    return {"status": "discarded", "suggestion_id": suggestion_id, "version": discarded.version}


def _to_operation(request: schemas.AdjustRequest):
    if request.operation == "remove_cut":
        if not request.cut_id:
            raise InputError("remove_cut needs cut_id")
        return RemoveCutOperation(cut_id=request.cut_id)

    if not request.jumbo_id or not request.set_id or request.width is None:
        raise InputError("add_cut needs jumbo_id, set_id and width")
    spec_fields = (request.gsm, request.bf, request.shade)
    if all(value is None for value in spec_fields):
        spec = None
    elif any(value is None for value in spec_fields):
        raise InputError("Give gsm, bf and shade together, or none of them")
    else:
        spec = PaperSpec(gsm=request.gsm, bf=request.bf, shade=request.shade)
    return AddCutOperation(
        jumbo_id=request.jumbo_id,
        set_id=request.set_id,
        width=request.width,
        spec=spec,
        description=request.description,
        order_id=request.order_id,
        client_name=request.client_name,
    )


@router.post("/suggestions/{suggestion_id:path}/adjust", response_model=Dict[str, Any], tags=["Cutting Algorithm"])
def adjust_suggestion(
    suggestion_id: str,
    request: schemas.AdjustRequest,
    registry: SuggestionRegistry = Depends(get_registry),
):
    """Add or remove one cut; returns the new version of the suggestion"""
    try:
        operation = _to_operation(request)
        updated = registry.apply(suggestion_id, operation, expected_version=request.expected_version)
        return to_spec_view(updated)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error adjusting suggestion {suggestion_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/suggestions/{suggestion_id:path}/commit", response_model=Dict[str, Any], tags=["Cutting Algorithm"])
def commit_suggestion(
    suggestion_id: str,
    request: schemas.CommitRequest,
    db: Session = Depends(get_db),
    registry: SuggestionRegistry = Depends(get_registry),
):
    """Turn an accepted suggestion into a production plan"""
    try:
        suggestion = registry.pop(suggestion_id, expected_version=request.expected_version)
        try:
            references = commit(
                suggestion,
                SqlPlanStore(db, schemas.PlanMasterCreate(name=request.name, created_by=request.created_by)),
            )
        except Exception:
            # Still editable when the plan could not be stored
            registry.register(suggestion)
            raise

        return {
            "status": "committed",
            "suggestion_id": suggestion.suggestion_id,
            "version": suggestion.version,
            "plans": [
                {
                    "plan_id": reference.plan_id,
                    "frontend_id": reference.frontend_id,
                    "status": reference.status,
                }
                for reference in references
            ],
        }
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error committing suggestion {suggestion_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
