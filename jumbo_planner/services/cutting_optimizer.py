from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence
import logging
import time

from ..config import settings
from .exceptions import CapacityError, InputError
from .id_generator import IdGenerator
from .jumbo_assembler import assemble_jumbos
from .ortools_optimizer import ORToolsPacker
from .roll_types import (
    WIDTH_EPSILON,
    ExistingStockRoll,
    PaperSpec,
    PendingRequirement,
    ProductionPlanReference,
    Suggestion,
)
from .spec_grouper import group_by_spec
from .suggestion_aggregator import build_suggestion
from .width_packer import WidthPacker

logger = logging.getLogger(__name__)

PACKERS = {
    WidthPacker.strategy: WidthPacker,
    ORToolsPacker.strategy: ORToolsPacker,
}


def target_width_from_wastage(wastage: float, base_deckle: float = settings.BASE_DECKLE) -> float:
    """Dynamic target width for each set: 119 - wastage."""
    if wastage is None or wastage < 0:
        raise InputError("Wastage must be a non-negative number")
    target_width = round(base_deckle - wastage, 2)
    if target_width <= 0:
        raise InputError(f"Wastage {wastage}\" leaves no usable width")
    return target_width


class CuttingOptimizer:
    def __init__(
        self,
        target_width: float = settings.SET_WIDTH,
        strategy: str = WidthPacker.strategy,
        max_overrun: Optional[float] = settings.EXISTING_STOCK_MAX_OVERRUN,
        sets_per_jumbo: int = settings.SETS_PER_JUMBO,
        max_workers: int = settings.PLANNER_MAX_WORKERS,
        id_generator_factory: Callable[[str], IdGenerator] = IdGenerator,
    ):
        """
        Initialize the cutting optimizer with configuration.

        Args:
            target_width: Width of each intermediate set in inches (default: 118)
            strategy: "best_fit" (greedy) or "cp_sat" (OR-Tools)
            max_overrun: How much wider than the cut an existing stock roll may be;
                None accepts any roll wide enough
            sets_per_jumbo: Sets sliced from one jumbo roll (default: 3)
            max_workers: Worker threads for independent paper specs
            id_generator_factory: Builds the id generator for one spec group,
                given the group's namespace
        """
        if target_width is None or target_width <= 0:
            raise InputError("Target width must be positive")
        if strategy not in PACKERS:
            raise InputError(f"Unknown packing strategy '{strategy}', expected one of {sorted(PACKERS)}")
        if sets_per_jumbo < 1:
            raise InputError("A jumbo needs at least one set")

        self.target_width = float(target_width)
        self.strategy = strategy
        self.max_overrun = max_overrun
        self.sets_per_jumbo = sets_per_jumbo
        self.max_workers = max(1, int(max_workers or 1))
        self.id_generator_factory = id_generator_factory
        self.packer = PACKERS[strategy](target_width=self.target_width, max_overrun=max_overrun)

    def generate_suggestions(
        self,
        requirements: Sequence[PendingRequirement],
        existing_stock: Iterable[ExistingStockRoll] = (),
    ) -> List[Suggestion]:
        """
        Generate paper spec-based suggestions for pending requirements.
        Direct approach: Specs → Sets → Jumbo Rolls → Cuts (with order info).

        Raises:
            RequirementTooWide: if any requirement is wider than the set width.
                The whole call fails; no partial result is returned.
        """
        requirements = list(requirements)
        # Fail before any group is planned
        self.packer.validate(requirements)

        spec_groups = group_by_spec(requirements)
        if not spec_groups:
            logger.info("📭 No pending requirements to plan")
            return []

        stock_by_spec: Dict[PaperSpec, List[ExistingStockRoll]] = {}
        for roll in existing_stock:
            stock_by_spec.setdefault(roll.spec, []).append(roll)

        total_quantity = sum(r.quantity for r in requirements)
        logger.info(
            f"📊 PROCESSING START: {len(requirements)} requirements, {total_quantity} rolls, "
            f"{len(spec_groups)} specs, target {self.target_width}\" ({self.strategy})"
        )
        start_time = time.time()

        jobs = [(spec, items, stock_by_spec.get(spec, [])) for spec, items in spec_groups.items()]
        if self.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map keeps input order, so output does not depend on scheduling
                suggestions = list(executor.map(lambda job: self._plan_group(*job), jobs))
        else:
            suggestions = [self._plan_group(*job) for job in jobs]

        logger.info(
            f"✅ Generated {len(suggestions)} spec suggestions, "
            f"{sum(s.summary.total_jumbos for s in suggestions)} jumbo rolls in {time.time() - start_time:.2f}s"
        )
        return suggestions

    def _plan_group(
        self,
        spec: PaperSpec,
        items: List[PendingRequirement],
        stock: List[ExistingStockRoll],
    ) -> Suggestion:
        id_generator = self.id_generator_factory(spec.spec_id)
        spec_quantity = sum(item.quantity for item in items)
        logger.info(f"  → {spec.shade} {spec.gsm}GSM BF{spec.bf}: {len(items)} items, {spec_quantity} rolls, {len(stock)} stock rolls")

        packing = self.packer.pack(items, stock, id_generator)
        jumbos = assemble_jumbos(packing.sets, id_generator, self.sets_per_jumbo)
        return build_suggestion(
            suggestion_id=id_generator.next_id("suggestion"),
            spec=spec,
            requirements=items,
            packing=packing,
            jumbos=jumbos,
            target_width=self.target_width,
        )


def generate_suggestions(
    requirements: Sequence[PendingRequirement],
    existing_stock: Iterable[ExistingStockRoll] = (),
    target_width: float = settings.SET_WIDTH,
    **options,
) -> List[Suggestion]:
    return CuttingOptimizer(target_width=target_width, **options).generate_suggestions(requirements, existing_stock)


# ============================================================================
# COMMIT
# ============================================================================

class PlanStore(Protocol):
    def create_plan(self, suggestion: Suggestion) -> ProductionPlanReference:
        ...


def validate_suggestion(suggestion: Suggestion) -> None:
    """Re-check the physical limits on a (possibly hand-edited) suggestion."""
    for jumbo in suggestion.jumbos:
        if len(jumbo.sets) > jumbo.max_sets:
            raise CapacityError(f"Jumbo {jumbo.jumbo_id} has {len(jumbo.sets)} sets (max {jumbo.max_sets})")
        for roll_set in jumbo.sets:
            if roll_set.used_width > roll_set.target_width + WIDTH_EPSILON:
                raise CapacityError(
                    f"Set {roll_set.set_id} uses {roll_set.used_width}\" of {roll_set.target_width}\""
                )


def commit(suggestion: Suggestion, plan_store: PlanStore) -> List[ProductionPlanReference]:
    """
    Hand an accepted suggestion to the production-plan store. The planner
    persists nothing itself; the store decides what a plan looks like.
    """
    validate_suggestion(suggestion)
    reference = plan_store.create_plan(suggestion)
    logger.info(f"📝 Committed {suggestion.suggestion_id} v{suggestion.version} as plan {reference.frontend_id or reference.plan_id}")
    return [reference]
