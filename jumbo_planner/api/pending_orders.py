from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Dict, Any, Optional
from uuid import UUID
import logging

from .base import get_db, get_registry
from .cutting import run_planner
from .. import schemas
from ..crud.inventory import stock_roll
from ..crud.pending_orders import pending_order
from ..services.cutting_optimizer import target_width_from_wastage
from ..services.exceptions import PlannerError
from ..services.manual_adjustment import SuggestionRegistry
from ..services.roll_types import PaperSpec

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# PENDING ORDER ITEMS ENDPOINTS
# ============================================================================

@router.post("/pending-order-items", response_model=schemas.PendingOrderItem, tags=["Pending Order Items"])
def create_pending_order_item(pending: schemas.PendingOrderItemCreate, db: Session = Depends(get_db)):
    """Create a new pending order item"""
    try:
        return pending_order.create_pending_item(db=db, pending=pending)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error creating pending order item: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/pending-order-items", response_model=List[schemas.PendingOrderItem], tags=["Pending Order Items"])
def get_pending_order_items(
    skip: int = 0,
    limit: int = 100,
    status: str = "pending",
    order_id: Optional[List[str]] = Query(None),
    gsm: Optional[int] = None,
    bf: Optional[float] = None,
    shade: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get pending order items with pagination, status, order and paper spec filters"""
    try:
        spec = PaperSpec(gsm=gsm, bf=bf, shade=shade) if gsm is not None else None
        return pending_order.get_pending_items(
            db=db, skip=skip, limit=limit, status=status, spec=spec, order_ids=order_id
        )
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error getting pending order items: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/pending-order-items/roll-suggestions", response_model=Dict[str, Any], tags=["Pending Order Items"])
def get_roll_suggestions(
    request: schemas.RollSuggestionRequest,
    db: Session = Depends(get_db),
    registry: SuggestionRegistry = Depends(get_registry),
):
    """
    Generate roll suggestions for the stored pending items.
    Takes wastage parameter to calculate dynamic target width (119 - wastage)
    and uses available stock rolls of the same paper spec first.
    """
    try:
        target_width = target_width_from_wastage(request.wastage)
        requirements = pending_order.list_pending(db, order_ids=request.order_ids)

        existing_stock = []
        if request.use_existing_stock and requirements:
            specs = {requirement.spec for requirement in requirements}
            existing_stock = stock_roll.list_existing_stock(db, specs=specs)

        logger.info(f"🎯 Roll suggestions: {len(requirements)} pending items, {len(existing_stock)} stock rolls, target {target_width}\"")
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
        logger.error(f"Error generating roll suggestions: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/pending-order-items/{item_id}/cancel", response_model=schemas.PendingOrderItem, tags=["Pending Order Items"])
def cancel_pending_order_item(item_id: UUID, db: Session = Depends(get_db)):
    """Cancel a pending item that has not gone into production"""
    try:
        return pending_order.cancel(db=db, item_id=item_id)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error cancelling pending order item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
