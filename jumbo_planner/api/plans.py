from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from .base import get_db
from .. import schemas
from ..crud.plans import plan
from ..services.exceptions import PlannerError

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# PLAN ENDPOINTS
# ============================================================================

@router.get("/plans", response_model=List[schemas.PlanMaster], tags=["Plans"])
def get_plans(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get committed plans, newest first"""
    try:
        return plan.get_plans(db=db, skip=skip, limit=limit, status=status)
    except Exception as e:
        logger.error(f"Error getting plans: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/plans/{plan_id}", response_model=schemas.PlanMaster, tags=["Plans"])
def get_plan(plan_id: UUID, db: Session = Depends(get_db)):
    try:
        return plan.get_plan(db=db, plan_id=plan_id)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error getting plan {plan_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/plans/{plan_id}/start", response_model=schemas.PlanMaster, tags=["Plans"])
def start_plan(plan_id: UUID, db: Session = Depends(get_db)):
    """Mark a planned plan as in progress on the slitter"""
    try:
        return plan.start_plan(db=db, plan_id=plan_id)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error starting plan {plan_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/plans/{plan_id}/complete", response_model=schemas.PlanMaster, tags=["Plans"])
def complete_plan(plan_id: UUID, db: Session = Depends(get_db)):
    """Complete a plan and resolve the pending items it covered"""
    try:
        return plan.complete_plan(db=db, plan_id=plan_id)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error completing plan {plan_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
