from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .base import get_db
from .. import schemas
from ..crud.inventory import stock_roll
from ..services.exceptions import PlannerError

router = APIRouter()
logger = logging.getLogger(__name__)

# ============================================================================
# STOCK ROLL ENDPOINTS
# ============================================================================

@router.post("/stock-rolls", response_model=schemas.StockRoll, tags=["Stock Rolls"])
def create_stock_roll(roll: schemas.StockRollCreate, db: Session = Depends(get_db)):
    """Register a partially used roll as existing stock"""
    try:
        return stock_roll.create_stock_roll(db=db, roll=roll)
    except (HTTPException, PlannerError):
        raise
    except Exception as e:
        logger.error(f"Error creating stock roll: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/stock-rolls", response_model=List[schemas.StockRoll], tags=["Stock Rolls"])
def get_stock_rolls(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = "available",
    db: Session = Depends(get_db)
):
    """Get stock rolls with pagination and status filter"""
    try:
        return stock_roll.get_stock_rolls(db=db, skip=skip, limit=limit, status=status)
    except Exception as e:
        logger.error(f"Error getting stock rolls: {e}")
        raise HTTPException(status_code=500, detail=str(e))
