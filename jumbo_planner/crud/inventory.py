from __future__ import annotations
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import Iterable, List, Optional
from uuid import UUID
import logging

from .base import CRUDBase, generate_frontend_id
from .. import models, schemas
from ..config import settings
from ..services.exceptions import InputError, NotFoundError
from ..services.roll_types import WIDTH_EPSILON, ExistingStockRoll, PaperSpec, round_width

logger = logging.getLogger(__name__)


class CRUDStockRoll(CRUDBase[models.StockRoll, schemas.StockRollCreate]):
    def create_stock_roll(self, db: Session, *, roll: schemas.StockRollCreate) -> models.StockRoll:
        """Register a partially used roll as existing stock"""
        spec = PaperSpec(gsm=roll.gsm, bf=roll.bf, shade=roll.shade)

        db_roll = models.StockRoll(
            frontend_id=generate_frontend_id(db, models.StockRoll, "STK"),
            width_inches=roll.width_inches,
            gsm=spec.gsm,
            bf=spec.bf,
            shade=spec.shade,
            source=roll.source,
            location=roll.location,
            status=models.StockRollStatus.AVAILABLE.value,
        )
        db.add(db_roll)
        db.commit()
        db.refresh(db_roll)
        return db_roll

    def get_stock_rolls(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = models.StockRollStatus.AVAILABLE.value,
    ) -> List[models.StockRoll]:
        """Get stock rolls with filtering by status"""
        query = db.query(models.StockRoll)
        if status:
            query = query.filter(models.StockRoll.status == status)
        return query.order_by(models.StockRoll.created_at.desc()).offset(skip).limit(limit).all()

    def get_stock_roll(self, db: Session, roll_id: UUID) -> models.StockRoll:
        db_roll = self.get(db, roll_id)
        if db_roll is None:
            raise NotFoundError("Stock roll", str(roll_id))
        return db_roll

    def list_existing_stock(
        self, db: Session, *, specs: Optional[Iterable[PaperSpec]] = None
    ) -> List[ExistingStockRoll]:
        """Available rolls as planner input, optionally restricted to some paper specs"""
        query = db.query(models.StockRoll).filter(
            models.StockRoll.status == models.StockRollStatus.AVAILABLE.value
        )

        if specs is not None:
            spec_conditions = [
                and_(
                    models.StockRoll.gsm == spec.gsm,
                    models.StockRoll.bf == spec.bf,
                    models.StockRoll.shade == spec.shade,
                )
                for spec in specs
            ]
            if not spec_conditions:
                return []
            query = query.filter(or_(*spec_conditions))

        return [
            ExistingStockRoll(
                roll_id=str(db_roll.id),
                width=float(db_roll.width_inches),
                spec=PaperSpec(gsm=db_roll.gsm, bf=float(db_roll.bf), shade=db_roll.shade),
                source=db_roll.source or "",
            )
            for db_roll in query.order_by(models.StockRoll.width_inches, models.StockRoll.frontend_id).all()
        ]

    def consume(
        self,
        db: Session,
        *,
        roll_id: str,
        width_used: float,
        plan_id: Optional[UUID] = None,
    ) -> Optional[models.StockRoll]:
        """
        Take ``width_used`` inches off an available stock roll. The roll is marked used and,
        when the leftover is at least MIN_RESTOCK_WIDTH, the leftover goes
        back into stock as a new available roll, which is returned.
        The caller owns the transaction.
        """
        db_roll = self.get_stock_roll(db, UUID(roll_id))
        if db_roll.status != models.StockRollStatus.AVAILABLE.value:
            raise InputError(f"Stock roll {db_roll.frontend_id} is {db_roll.status}, not available")

        width = float(db_roll.width_inches)
        if width_used > width + WIDTH_EPSILON:
            raise InputError(
                f"Stock roll {db_roll.frontend_id} is {width}\" wide, cannot serve {width_used}\""
            )

        db_roll.status = models.StockRollStatus.USED.value
        db_roll.consumed_by_plan_id = plan_id

        remainder = round_width(width - width_used)
        if remainder < settings.MIN_RESTOCK_WIDTH:
            logger.info(f"♻️ Used stock roll {db_roll.frontend_id} ({width}\"), {remainder}\" discarded")
            return None

        # Flush so the new roll's id counter sees rolls added earlier in this transaction
        db.flush()
        remainder_roll = models.StockRoll(
            frontend_id=generate_frontend_id(db, models.StockRoll, "STK"),
            width_inches=remainder,
            gsm=db_roll.gsm,
            bf=db_roll.bf,
            shade=db_roll.shade,
            source=f"remainder of {db_roll.frontend_id}",
            location=db_roll.location,
            parent_roll_id=db_roll.id,
            status=models.StockRollStatus.AVAILABLE.value,
        )
        db.add(remainder_roll)
        db.flush()
        logger.info(f"♻️ Used stock roll {db_roll.frontend_id} ({width}\"), {remainder}\" back in stock as {remainder_roll.frontend_id}")
        return remainder_roll


stock_roll = CRUDStockRoll(models.StockRoll)
