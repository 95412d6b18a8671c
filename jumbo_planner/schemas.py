from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from enum import Enum
from uuid import UUID
import json

# ============================================================================
# STATUS ENUMS - Validation for status fields
# ============================================================================

class PendingOrderStatus(str, Enum):
    PENDING = "pending"
    IN_PRODUCTION = "in_production"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

class StockRollStatus(str, Enum):
    AVAILABLE = "available"
    USED = "used"
    DAMAGED = "damaged"

class PlanStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

class PackingStrategy(str, Enum):
    BEST_FIT = "best_fit"
    CP_SAT = "cp_sat"

class SuggestionView(str, Enum):
    SPEC = "spec"
    ORDER = "order"


# ============================================================================
# PENDING ORDER ITEM SCHEMAS
# ============================================================================

class PendingOrderItemBase(BaseModel):
    original_order_id: str = Field(..., min_length=1, max_length=64)
    order_frontend_id: Optional[str] = Field(None, max_length=50)
    client_name: Optional[str] = Field(None, max_length=255)
    width_inches: float = Field(..., gt=0)
    gsm: int = Field(..., gt=0)
    bf: float = Field(..., gt=0)
    shade: str = Field(..., min_length=1, max_length=50)
    quantity_pending: int = Field(..., gt=0)
    reason: str = Field(default="no_suitable_jumbo", max_length=100)

class PendingOrderItemCreate(PendingOrderItemBase):
    pass

class PendingOrderItem(PendingOrderItemBase):
    id: UUID
    frontend_id: Optional[str] = Field(None, description="Human-readable pending order item ID (e.g., POI-00001)")
    status: PendingOrderStatus
    quantity_fulfilled: Optional[int] = Field(default=0, description="Number of rolls fulfilled")
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# STOCK ROLL SCHEMAS
# ============================================================================

class StockRollBase(BaseModel):
    width_inches: float = Field(..., gt=0)
    gsm: int = Field(..., gt=0)
    bf: float = Field(..., gt=0)
    shade: str = Field(..., min_length=1, max_length=50)
    source: Optional[str] = Field(None, max_length=255, description="Where the roll came from")
    location: Optional[str] = Field("WASTE_STORAGE", max_length=255)

class StockRollCreate(StockRollBase):
    pass

class StockRoll(StockRollBase):
    id: UUID
    frontend_id: Optional[str] = Field(None, description="Human-readable stock roll ID (e.g., STK-00001)")
    status: StockRollStatus
    parent_roll_id: Optional[UUID] = None
    consumed_by_plan_id: Optional[UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# PLAN SCHEMAS
# ============================================================================

class PlanMasterCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    created_by: Optional[str] = Field(None, max_length=255)

class PlanMaster(BaseModel):
    id: UUID
    frontend_id: Optional[str] = Field(None, description="Human-readable plan ID (e.g., PLN-00001)")
    name: Optional[str] = None
    suggestion_id: str
    suggestion_version: int
    gsm: int
    bf: float
    shade: str
    target_width: float
    cut_pattern: Dict[str, Any] = Field(..., description="Committed spec-level suggestion")
    expected_waste_percentage: float
    status: PlanStatus
    created_by: Optional[str] = None
    created_at: datetime
    executed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator('cut_pattern', mode='before')
    @classmethod
    def parse_cut_pattern(cls, v):
        """Parse cut_pattern from JSON string if needed"""
        if isinstance(v, str):
            return json.loads(v)
        return v

    class Config:
        from_attributes = True


# ============================================================================
# CUTTING SUGGESTION SCHEMAS
# ============================================================================

class RequirementInput(BaseModel):
    """One pending requirement sent directly to the planner."""
    requirement_id: str = Field(..., min_length=1)
    width: float = Field(..., gt=0)
    gsm: int = Field(..., gt=0)
    bf: float = Field(..., gt=0)
    shade: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    order_id: str = Field(..., min_length=1)
    order_frontend_id: Optional[str] = None
    client_name: Optional[str] = None
    reason: str = Field(default="no_suitable_jumbo")

class ExistingStockInput(BaseModel):
    roll_id: str = Field(..., min_length=1)
    width: float = Field(..., gt=0)
    gsm: int = Field(..., gt=0)
    bf: float = Field(..., gt=0)
    shade: str = Field(..., min_length=1)
    source: str = ""

class SuggestionRequest(BaseModel):
    requirements: List[RequirementInput] = Field(default_factory=list)
    existing_stock: List[ExistingStockInput] = Field(default_factory=list)
    target_width: Optional[float] = Field(None, gt=0, description="Set width; defaults to 118")
    wastage: Optional[float] = Field(None, description="Trim per set; target width becomes 119 - wastage")
    strategy: PackingStrategy = PackingStrategy.BEST_FIT
    view: SuggestionView = SuggestionView.SPEC

class RollSuggestionRequest(BaseModel):
    """Plan from stored pending items and available stock."""
    wastage: float = Field(default=1.0, description="Trim per set; target width becomes 119 - wastage")
    order_ids: Optional[List[str]] = None
    use_existing_stock: bool = True
    strategy: PackingStrategy = PackingStrategy.BEST_FIT
    view: SuggestionView = SuggestionView.SPEC

class AdjustRequest(BaseModel):
    operation: Literal["add_cut", "remove_cut"]
    expected_version: Optional[int] = Field(None, ge=1, description="Version the operator last saw")
    # add_cut
    jumbo_id: Optional[str] = None
    set_id: Optional[str] = Field(None, description="Existing set id or 'new'")
    width: Optional[float] = None
    gsm: Optional[int] = None
    bf: Optional[float] = None
    shade: Optional[str] = None
    description: Optional[str] = None
    order_id: Optional[str] = None
    client_name: Optional[str] = None
    # remove_cut
    cut_id: Optional[str] = None

class CommitRequest(BaseModel):
    expected_version: Optional[int] = Field(None, ge=1)
    name: Optional[str] = Field(None, max_length=255)
    created_by: Optional[str] = Field(None, max_length=255)

class ErrorResponse(BaseModel):
    detail: str
    code: str
