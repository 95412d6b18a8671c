from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Numeric, Uuid
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from .database import Base

# Status Enums
class PendingOrderStatus(str, PyEnum):
    PENDING = "pending"
    IN_PRODUCTION = "in_production"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

class StockRollStatus(str, PyEnum):
    AVAILABLE = "available"
    USED = "used"
    DAMAGED = "damaged"

class PlanStatus(str, PyEnum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Pending Order Item - unmet demand waiting for a cutting plan
class PendingOrderItem(Base):
    __tablename__ = "pending_order_item"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    frontend_id = Column(String(50), unique=True, nullable=True, index=True)  # POI-00001, POI-00002, etc.
    original_order_id = Column(String(64), nullable=False, index=True)  # Owned by order management
    order_frontend_id = Column(String(50), nullable=True)
    client_name = Column(String(255), nullable=True)
    width_inches = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    gsm = Column(Integer, nullable=False)
    bf = Column(Numeric(4, 2, asdecimal=False), nullable=False)
    shade = Column(String(50), nullable=False)
    quantity_pending = Column(Integer, nullable=False)
    quantity_fulfilled = Column(Integer, default=0, nullable=False)
    reason = Column(String(100), nullable=False, default="no_suitable_jumbo")
    status = Column(String(50), default=PendingOrderStatus.PENDING.value, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    # Relationships
    plan_links = relationship("PlanPendingLink", back_populates="pending_item")


class StockRoll(Base):
    """
    Existing stock: partially used rolls that can serve a cut before new
    jumbo material is opened. Remainders of consumed rolls come back here.
    """
    __tablename__ = "stock_roll"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    frontend_id = Column(String(50), unique=True, nullable=True, index=True)  # STK-00001, etc.
    width_inches = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    gsm = Column(Integer, nullable=False)
    bf = Column(Numeric(4, 2, asdecimal=False), nullable=False)
    shade = Column(String(50), nullable=False)
    source = Column(String(255), nullable=True)  # Where this roll came from (plan, manual entry)
    status = Column(String(50), default=StockRollStatus.AVAILABLE.value, nullable=False, index=True)
    parent_roll_id = Column(Uuid, ForeignKey("stock_roll.id"), nullable=True)  # Set on remainders
    consumed_by_plan_id = Column(Uuid, ForeignKey("plan_master.id"), nullable=True, index=True)
    location = Column(String(255), default="WASTE_STORAGE", nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# Plan Master - committed cutting suggestion
class PlanMaster(Base):
    __tablename__ = "plan_master"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    frontend_id = Column(String(50), unique=True, nullable=True, index=True)  # PLN-00001, etc.
    name = Column(String(255), nullable=True)  # Optional plan name
    suggestion_id = Column(String(255), nullable=False)
    suggestion_version = Column(Integer, nullable=False, default=1)
    gsm = Column(Integer, nullable=False)
    bf = Column(Numeric(4, 2, asdecimal=False), nullable=False)
    shade = Column(String(50), nullable=False)
    target_width = Column(Numeric(6, 2, asdecimal=False), nullable=False)
    cut_pattern = Column(Text, nullable=False)  # JSON of the spec-level suggestion
    expected_waste_percentage = Column(Numeric(5, 2, asdecimal=False), nullable=False)
    status = Column(String(50), default=PlanStatus.PLANNED.value, nullable=False, index=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    executed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    plan_pending = relationship("PlanPendingLink", back_populates="plan")


# Plan-Pending Link - requirements a plan was built for
class PlanPendingLink(Base):
    __tablename__ = "plan_pending_link"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    plan_id = Column(Uuid, ForeignKey("plan_master.id"), nullable=False, index=True)
    pending_order_id = Column(Uuid, ForeignKey("pending_order_item.id"), nullable=False, index=True)
    quantity_allocated = Column(Integer, nullable=False, default=1)  # Cuts of this requirement in the plan
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    plan = relationship("PlanMaster", back_populates="plan_pending")
    pending_item = relationship("PendingOrderItem", back_populates="plan_links")
