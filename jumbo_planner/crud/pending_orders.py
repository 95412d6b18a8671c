from __future__ import annotations
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Iterable, List, Optional
from uuid import UUID
from datetime import datetime
import logging

from .base import CRUDBase, generate_frontend_id
from .. import models, schemas
from ..services.exceptions import InputError, NotFoundError
from ..services.roll_types import (
    PaperSpec,
    PendingRequirement,
    RequirementStatus,
    validate_requirement_transition,
)

logger = logging.getLogger(__name__)


class CRUDPendingOrder(CRUDBase[models.PendingOrderItem, schemas.PendingOrderItemCreate]):
    def create_pending_item(
        self, db: Session, *, pending: schemas.PendingOrderItemCreate
    ) -> models.PendingOrderItem:
        """Create a pending order item; the paper spec is normalised on the way in"""
        spec = PaperSpec(gsm=pending.gsm, bf=pending.bf, shade=pending.shade)

        db_item = models.PendingOrderItem(
            frontend_id=generate_frontend_id(db, models.PendingOrderItem, "POI"),
            original_order_id=pending.original_order_id,
            order_frontend_id=pending.order_frontend_id,
            client_name=pending.client_name,
            width_inches=pending.width_inches,
            gsm=spec.gsm,
            bf=spec.bf,
            shade=spec.shade,
            quantity_pending=pending.quantity_pending,
            reason=pending.reason,
            status=RequirementStatus.PENDING.value,
        )
        db.add(db_item)
        db.commit()
        db.refresh(db_item)
        logger.info(f"📋 Pending item {db_item.frontend_id}: {pending.quantity_pending}x{pending.width_inches}\" {spec.spec_id}")
        return db_item

    def get_pending_items(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = RequirementStatus.PENDING.value,
        spec: Optional[PaperSpec] = None,
        order_ids: Optional[Iterable[str]] = None,
    ) -> List[models.PendingOrderItem]:
        """Get pending order items, oldest first, filtered by status, spec and orders"""
        query = db.query(models.PendingOrderItem)

        if status:
            query = query.filter(models.PendingOrderItem.status == status)
        if spec is not None:
            query = query.filter(
                and_(
                    models.PendingOrderItem.gsm == spec.gsm,
                    models.PendingOrderItem.bf == spec.bf,
                    models.PendingOrderItem.shade == spec.shade,
                )
            )
        if order_ids:
            query = query.filter(models.PendingOrderItem.original_order_id.in_(list(order_ids)))

        return (
            query.order_by(models.PendingOrderItem.created_at, models.PendingOrderItem.frontend_id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_pending_item(self, db: Session, item_id: UUID) -> models.PendingOrderItem:
        db_item = self.get(db, item_id)
        if db_item is None:
            raise NotFoundError("Pending order item", str(item_id))
        return db_item

    @staticmethod
    def to_requirements(items: Iterable[models.PendingOrderItem]) -> List[PendingRequirement]:
        """Planner view of stored items; the requirement id is the row id"""
        return [
            PendingRequirement(
                requirement_id=str(item.id),
                width=float(item.width_inches),
                spec=PaperSpec(gsm=item.gsm, bf=float(item.bf), shade=item.shade),
                quantity=item.quantity_pending,
                order_id=item.original_order_id,
                reason=item.reason,
                status=item.status,
                order_frontend_id=item.order_frontend_id,
                client_name=item.client_name,
            )
            for item in items
        ]

    def list_pending(
        self,
        db: Session,
        *,
        spec: Optional[PaperSpec] = None,
        order_ids: Optional[Iterable[str]] = None,
        limit: int = 10000,
    ) -> List[PendingRequirement]:
        """Requirements still waiting for a plan, as planner input"""
        return self.to_requirements(self.get_pending_items(db, limit=limit, spec=spec, order_ids=order_ids))

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _move(self, db_item: models.PendingOrderItem, new_status: RequirementStatus) -> None:
        validate_requirement_transition(db_item.status, new_status.value)
        db_item.status = new_status.value
        if new_status == RequirementStatus.RESOLVED:
            db_item.resolved_at = datetime.utcnow()

    def cancel(self, db: Session, *, item_id: UUID) -> models.PendingOrderItem:
        db_item = self.get_pending_item(db, item_id)
        self._move(db_item, RequirementStatus.CANCELLED)
        db.commit()
        db.refresh(db_item)
        logger.info(f"🚫 Cancelled pending item {db_item.frontend_id}")
        return db_item

    def mark_in_production(
        self, db: Session, *, items: Iterable[models.PendingOrderItem]
    ) -> None:
        """Move items into production. The caller owns the transaction."""
        for db_item in items:
            self._move(db_item, RequirementStatus.IN_PRODUCTION)

    def split_off(
        self, db: Session, *, db_item: models.PendingOrderItem, quantity: int
    ) -> models.PendingOrderItem:
        """
        Move ``quantity`` rolls of a pending item into a new pending item of
        the same order and spec. The original keeps the rest. The caller owns
        the transaction.
        """
        if quantity <= 0 or quantity >= db_item.quantity_pending:
            raise InputError(
                f"Cannot split {quantity} of {db_item.quantity_pending} rolls off {db_item.frontend_id}"
            )
        # Flush so the new item's id counter sees items added earlier in this transaction
        db.flush()
        remainder = models.PendingOrderItem(
            frontend_id=generate_frontend_id(db, models.PendingOrderItem, "POI"),
            original_order_id=db_item.original_order_id,
            order_frontend_id=db_item.order_frontend_id,
            client_name=db_item.client_name,
            width_inches=db_item.width_inches,
            gsm=db_item.gsm,
            bf=db_item.bf,
            shade=db_item.shade,
            quantity_pending=quantity,
            reason=db_item.reason,
            status=RequirementStatus.PENDING.value,
        )
        db_item.quantity_pending -= quantity
        db.add(remainder)
        db.flush()
        logger.info(f"✂️ Split {quantity} rolls off {db_item.frontend_id} into {remainder.frontend_id}")
        return remainder

    def resolve(self, db: Session, *, links: Iterable[models.PlanPendingLink]) -> None:
        """
        Resolve the items of a completed plan. Each is fulfilled by the
        quantity its plan link allocated. The caller owns the transaction.
        """
        for link in links:
            db_item = link.pending_item
            self._move(db_item, RequirementStatus.RESOLVED)
            db_item.quantity_fulfilled = (db_item.quantity_fulfilled or 0) + link.quantity_allocated


pending_order = CRUDPendingOrder(models.PendingOrderItem)
