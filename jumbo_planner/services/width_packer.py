from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from ..config import settings
from .exceptions import RequirementTooWide
from .id_generator import IdGenerator
from .roll_types import (
    WIDTH_EPSILON,
    Cut,
    ExistingStockRoll,
    PendingRequirement,
    RollSet,
    StockConsumption,
    round_width,
)

logger = logging.getLogger(__name__)

# One requirement unit: (requirement, position of the requirement in the input)
Unit = Tuple[PendingRequirement, int]


@dataclass
class PackingResult:
    """Sets cut from new jumbo material plus cuts served from existing stock."""
    sets: List[RollSet] = field(default_factory=list)
    existing_cuts: List[Cut] = field(default_factory=list)
    consumptions: List[StockConsumption] = field(default_factory=list)

    @property
    def placed_width(self) -> float:
        return round_width(
            sum(s.used_width for s in self.sets) + sum(c.width for c in self.existing_cuts)
        )


def describe_requirement_cut(requirement: PendingRequirement) -> str:
    order_label = requirement.order_frontend_id or requirement.order_id
    if requirement.client_name:
        return f"{requirement.width}\" from {order_label} ({requirement.client_name})"
    return f"{requirement.width}\" from {order_label}"


class WidthPacker:
    """
    Greedy best-fit-decreasing packer with existing-stock preference.

    Requirement units are placed largest first. Each unit is served from a
    matching existing stock roll when one is wide enough (and, if
    ``max_overrun`` is set, leaves no more than that over);
    otherwise it goes into the open set with the least room that still
    takes it, and a new set is opened only when no open set fits.
    """

    strategy = "best_fit"

    def __init__(
        self,
        target_width: float = settings.SET_WIDTH,
        max_overrun: Optional[float] = settings.EXISTING_STOCK_MAX_OVERRUN,
    ):
        self.target_width = float(target_width)
        self.max_overrun = None if max_overrun is None else float(max_overrun)

    # === INPUT PREPARATION ===

    def validate(self, requirements: Iterable[PendingRequirement]) -> None:
        """Reject any requirement that can never fit a set. Nothing is truncated."""
        for requirement in requirements:
            if requirement.width > self.target_width + WIDTH_EPSILON:
                logger.error(
                    f"❌ Requirement {requirement.requirement_id}: {requirement.width}\" > {self.target_width}\" set width"
                )
                raise RequirementTooWide(requirement.width, self.target_width, requirement.requirement_id)

    def expand_units(self, requirements: Sequence[PendingRequirement]) -> List[Unit]:
        """One unit per roll, widest first; ties by order id, then input position."""
        units: List[Unit] = []
        for position, requirement in enumerate(requirements):
            units.extend((requirement, position) for _ in range(requirement.quantity))
        units.sort(key=lambda unit: (-unit[0].width, unit[0].order_id, unit[1]))
        return units

    # === PACKING ===

    def pack(
        self,
        requirements: Sequence[PendingRequirement],
        existing_stock: Iterable[ExistingStockRoll] = (),
        id_generator: Optional[IdGenerator] = None,
    ) -> PackingResult:
        id_generator = id_generator or IdGenerator()
        requirements = list(requirements)
        self.validate(requirements)

        result = PackingResult()
        if not requirements:
            return result

        units = self.expand_units(requirements)
        available = sorted(existing_stock, key=lambda roll: (roll.width, roll.roll_id))
        remaining_units: List[Unit] = []

        for requirement, position in units:
            stock_roll = self._take_existing(requirement, available)
            if stock_roll is None:
                remaining_units.append((requirement, position))
                continue

            remaining_width = round_width(stock_roll.width - requirement.width)
            result.existing_cuts.append(Cut(
                cut_id=id_generator.next_id("cut"),
                width=requirement.width,
                requirement_id=requirement.requirement_id,
                order_id=requirement.order_id,
                uses_existing=True,
                stock_roll_id=stock_roll.roll_id,
                description=f"{requirement.width}\" from existing {stock_roll.width}\" roll {stock_roll.roll_id}",
                order_frontend_id=requirement.order_frontend_id,
                client_name=requirement.client_name,
            ))
            result.consumptions.append(StockConsumption(
                roll_id=stock_roll.roll_id,
                width_used=requirement.width,
                remaining_width=remaining_width,
                requirement_id=requirement.requirement_id,
            ))

        if result.existing_cuts:
            logger.info(f"♻️ Served {len(result.existing_cuts)} cuts from existing stock")

        result.sets = self._place_units(remaining_units, id_generator)

        total_waste = sum(s.waste for s in result.sets)
        logger.info(
            f"📦 PACKED: {len(units)} units → {len(result.sets)} sets + {len(result.existing_cuts)} from stock, "
            f"{round_width(total_waste)}\" total waste"
        )
        return result

    def _take_existing(
        self,
        requirement: PendingRequirement,
        available: List[ExistingStockRoll],
    ) -> Optional[ExistingStockRoll]:
        """Tightest matching stock roll, removed from ``available`` once chosen."""
        for index, roll in enumerate(available):
            if roll.spec != requirement.spec:
                continue
            overrun = roll.width - requirement.width
            if overrun < -WIDTH_EPSILON:
                continue
            # available is sorted by width, so the first hit is the tightest fit
            if self.max_overrun is None or overrun <= self.max_overrun + WIDTH_EPSILON:
                return available.pop(index)
            return None
        return None

    def _place_units(self, units: List[Unit], id_generator: IdGenerator) -> List[RollSet]:
        return self._build_sets(units, self._assign_bins(units), id_generator)

    def _assign_bins(self, units: List[Unit]) -> List[int]:
        """Set index for every unit, in unit order."""
        loads: List[float] = []
        assignment: List[int] = []
        for requirement, _ in units:
            bin_index = self._best_fit_bin(loads, requirement.width)
            if bin_index is None:
                loads.append(0.0)
                bin_index = len(loads) - 1
            loads[bin_index] = round_width(loads[bin_index] + requirement.width)
            assignment.append(bin_index)
        return assignment

    def _best_fit_bin(self, loads: List[float], width: float) -> Optional[int]:
        best: Optional[int] = None
        best_room = None
        for index, load in enumerate(loads):
            if load + width > self.target_width + WIDTH_EPSILON:
                continue
            room = self.target_width - load
            if best_room is None or room < best_room - WIDTH_EPSILON / 2:
                best, best_room = index, room
        return best

    def _build_sets(self, units: List[Unit], assignment: List[int], id_generator: IdGenerator) -> List[RollSet]:
        """Materialise sets in first-use order; cuts keep unit order within a set."""
        sets: List[RollSet] = []
        sets_by_bin: Dict[int, RollSet] = {}
        for (requirement, _), bin_index in zip(units, assignment):
            roll_set = sets_by_bin.get(bin_index)
            if roll_set is None:
                roll_set = RollSet(
                    set_id=id_generator.next_id("set"),
                    set_number=len(sets) + 1,
                    target_width=self.target_width,
                )
                sets_by_bin[bin_index] = roll_set
                sets.append(roll_set)
            roll_set.cuts.append(self._new_cut(requirement, id_generator))
        return sets

    @staticmethod
    def _new_cut(requirement: PendingRequirement, id_generator: IdGenerator) -> Cut:
        return Cut(
            cut_id=id_generator.next_id("cut"),
            width=requirement.width,
            requirement_id=requirement.requirement_id,
            order_id=requirement.order_id,
            uses_existing=False,
            description=describe_requirement_cut(requirement),
            order_frontend_id=requirement.order_frontend_id,
            client_name=requirement.client_name,
        )


def pack_widths(
    requirements: Sequence[PendingRequirement],
    target_width: float = settings.SET_WIDTH,
    existing_stock: Iterable[ExistingStockRoll] = (),
    id_generator: Optional[IdGenerator] = None,
    max_overrun: Optional[float] = settings.EXISTING_STOCK_MAX_OVERRUN,
) -> PackingResult:
    return WidthPacker(target_width=target_width, max_overrun=max_overrun).pack(
        requirements, existing_stock, id_generator
    )
