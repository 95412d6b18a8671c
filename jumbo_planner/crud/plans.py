from __future__ import annotations
from sqlalchemy.orm import Session, joinedload
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime
import json
import logging

from .base import CRUDBase, generate_frontend_id
from .inventory import stock_roll
from .pending_orders import pending_order
from .. import models, schemas
from ..services.exceptions import InputError, NotFoundError
from ..services.roll_types import ProductionPlanReference, Suggestion
from ..services.suggestion_aggregator import to_spec_view

logger = logging.getLogger(__name__)


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    """Row id behind a planner id, or None for ids that never came from the database"""
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class CRUDPlan(CRUDBase[models.PlanMaster, schemas.PlanMasterCreate]):
    def get_plans(
        self, db: Session, *, skip: int = 0, limit: int = 100, status: str = None
    ) -> List[models.PlanMaster]:
        """Get plans with filtering by status"""
        query = db.query(models.PlanMaster)
        if status:
            query = query.filter(models.PlanMaster.status == status)
        return query.order_by(models.PlanMaster.created_at.desc()).offset(skip).limit(limit).all()

    def get_plan(self, db: Session, plan_id: UUID) -> models.PlanMaster:
        """Get plan by ID with its pending item links"""
        db_plan = (
            db.query(models.PlanMaster)
            .options(joinedload(models.PlanMaster.plan_pending).joinedload(models.PlanPendingLink.pending_item))
            .filter(models.PlanMaster.id == plan_id)
            .first()
        )
        if db_plan is None:
            raise NotFoundError("Plan", str(plan_id))
        return db_plan

    def create_plan_from_suggestion(
        self,
        db: Session,
        *,
        suggestion: Suggestion,
        plan_in: Optional[schemas.PlanMasterCreate] = None,
    ) -> models.PlanMaster:
        """
        Persist an accepted suggestion as a plan in one transaction:
        store the spec-level JSON, link the stored requirements that still
        have cuts in it and move them into production, then apply the
        stock consumptions. Rolls of a requirement whose cuts were removed
        are split off into a new pending item.
        """
        plan_in = plan_in or schemas.PlanMasterCreate()
        summary = suggestion.summary

        try:
            db_plan = models.PlanMaster(
                frontend_id=generate_frontend_id(db, models.PlanMaster, "PLN"),
                name=plan_in.name,
                suggestion_id=suggestion.suggestion_id,
                suggestion_version=suggestion.version,
                gsm=suggestion.spec.gsm,
                bf=suggestion.spec.bf,
                shade=suggestion.spec.shade,
                target_width=suggestion.target_width,
                cut_pattern=json.dumps(to_spec_view(suggestion)),
                expected_waste_percentage=round(100 - summary.efficiency, 2) if summary.total_sets else 0.0,
                status=models.PlanStatus.PLANNED.value,
                created_by=plan_in.created_by,
            )
            db.add(db_plan)
            db.flush()  # Get the plan ID

            # Cuts per requirement; operators may have removed some
            cut_counts: Dict[str, int] = {}
            for cut in suggestion.all_cuts:
                if cut.requirement_id:
                    cut_counts[cut.requirement_id] = cut_counts.get(cut.requirement_id, 0) + 1

            linked_items = []
            for requirement_id in suggestion.requirement_ids:
                item_id = _as_uuid(requirement_id)
                if item_id is None or requirement_id not in cut_counts:
                    continue
                db_item = db.query(models.PendingOrderItem).filter(models.PendingOrderItem.id == item_id).first()
                if db_item is None:
                    continue
                allocated = min(cut_counts[requirement_id], db_item.quantity_pending)
                # Rolls without a cut in this plan stay pending
                if allocated < db_item.quantity_pending:
                    pending_order.split_off(db, db_item=db_item, quantity=db_item.quantity_pending - allocated)
                linked_items.append(db_item)
                db.add(models.PlanPendingLink(
                    plan_id=db_plan.id,
                    pending_order_id=db_item.id,
                    quantity_allocated=allocated,
                ))
            pending_order.mark_in_production(db, items=linked_items)

            consumed = 0
            for consumption in suggestion.stock_consumptions:
                if _as_uuid(consumption.roll_id) is None:
                    logger.warning(f"⚠️ Stock roll {consumption.roll_id} is not tracked in inventory, skipping consumption")
                    continue
                stock_roll.consume(
                    db, roll_id=consumption.roll_id, width_used=consumption.width_used, plan_id=db_plan.id
                )
                consumed += 1

            db.commit()
            db.refresh(db_plan)
            logger.info(
                f"📝 Created plan {db_plan.frontend_id} from {suggestion.suggestion_id} v{suggestion.version}: "
                f"{len(linked_items)} pending items linked, {consumed} stock rolls consumed"
            )
            return db_plan

        except Exception as e:
            logger.error(f"Error creating plan: {e}")
            db.rollback()
            raise

    def start_plan(self, db: Session, *, plan_id: UUID) -> models.PlanMaster:
        db_plan = self.get_plan(db, plan_id)
        if db_plan.status != models.PlanStatus.PLANNED.value:
            raise InputError(f"Plan {db_plan.frontend_id} is {db_plan.status}, only planned plans can start")
        db_plan.status = models.PlanStatus.IN_PROGRESS.value
        db_plan.executed_at = datetime.utcnow()
        db.commit()
        db.refresh(db_plan)
        return db_plan

    def complete_plan(self, db: Session, *, plan_id: UUID) -> models.PlanMaster:
        """Complete a plan and resolve the pending items it was built for"""
        db_plan = self.get_plan(db, plan_id)
        if db_plan.status not in (models.PlanStatus.PLANNED.value, models.PlanStatus.IN_PROGRESS.value):
            raise InputError(f"Plan {db_plan.frontend_id} is already {db_plan.status}")

        links = [
            link for link in db_plan.plan_pending
            if link.pending_item.status == models.PendingOrderStatus.IN_PRODUCTION.value
        ]
        pending_order.resolve(db, links=links)

        db_plan.status = models.PlanStatus.COMPLETED.value
        db_plan.completed_at = datetime.utcnow()
        db.commit()
        db.refresh(db_plan)
        logger.info(f"✅ Completed plan {db_plan.frontend_id}, resolved {len(links)} pending items")
        return db_plan


plan = CRUDPlan(models.PlanMaster)


class SqlPlanStore:
    """Plan store backed by the plan tables, handed to ``cutting_optimizer.commit``."""

    def __init__(self, db: Session, plan_in: Optional[schemas.PlanMasterCreate] = None):
        self.db = db
        self.plan_in = plan_in

    def create_plan(self, suggestion: Suggestion) -> ProductionPlanReference:
        db_plan = plan.create_plan_from_suggestion(self.db, suggestion=suggestion, plan_in=self.plan_in)
        return ProductionPlanReference(
            plan_id=str(db_plan.id),
            frontend_id=db_plan.frontend_id,
            suggestion_id=suggestion.suggestion_id,
            status=db_plan.status,
        )
