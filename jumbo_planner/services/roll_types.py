from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..config import settings
from .exceptions import InputError, InvalidSpec

WIDTH_EPSILON = settings.WIDTH_EPSILON


def round_width(value: float) -> float:
    """Widths and waste are reported to the hundredth of an inch."""
    return round(value, 2)


class RequirementStatus(str, Enum):
    PENDING = "pending"
    IN_PRODUCTION = "in_production"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


REQUIREMENT_TRANSITIONS = {
    RequirementStatus.PENDING: [RequirementStatus.IN_PRODUCTION, RequirementStatus.CANCELLED],
    RequirementStatus.IN_PRODUCTION: [RequirementStatus.RESOLVED],
    RequirementStatus.RESOLVED: [],  # Terminal state
    RequirementStatus.CANCELLED: [],  # Terminal state
}


def validate_requirement_transition(current: str, new: str) -> None:
    """Raise InputError unless ``current -> new`` is an allowed lifecycle move."""
    try:
        current_status = RequirementStatus(current)
        new_status = RequirementStatus(new)
    except ValueError as e:
        raise InputError(f"Unknown requirement status: {e}")
    if new_status not in REQUIREMENT_TRANSITIONS[current_status]:
        raise InputError(f"Cannot move requirement from {current_status.value} to {new_status.value}")


@dataclass(frozen=True)
class PaperSpec:
    """Paper specification (GSM + BF + Shade). Identity key for grouping."""
    gsm: int
    bf: float
    shade: str

    def __post_init__(self):
        if isinstance(self.gsm, bool) or not isinstance(self.gsm, int) or self.gsm <= 0:
            raise InvalidSpec(f"GSM must be a positive integer, got {self.gsm!r}")
        try:
            bf = float(self.bf)
        except (TypeError, ValueError):
            raise InvalidSpec(f"BF must be a positive number, got {self.bf!r}")
        if bf <= 0:
            raise InvalidSpec(f"BF must be a positive number, got {self.bf!r}")
        shade = (self.shade or "").strip() if isinstance(self.shade, str) else ""
        if not shade:
            raise InvalidSpec("Shade must be a non-empty string")
        # Normalise so "golden" and "Golden " land in the same group
        object.__setattr__(self, "bf", bf)
        object.__setattr__(self, "shade", shade.title())

    @property
    def spec_id(self) -> str:
        return f"spec_{self.gsm}_{self.shade}_{self.bf}".replace(" ", "_")

    def as_dict(self) -> dict:
        return {"gsm": self.gsm, "bf": self.bf, "shade": self.shade}


@dataclass
class PendingRequirement:
    """One unit of unmet demand: ``quantity`` rolls of ``width`` in ``spec``."""
    requirement_id: str
    width: float
    spec: PaperSpec
    quantity: int
    order_id: str
    reason: str = "no_suitable_jumbo"
    status: RequirementStatus = RequirementStatus.PENDING
    order_frontend_id: Optional[str] = None
    client_name: Optional[str] = None

    def __post_init__(self):
        try:
            width = float(self.width)
        except (TypeError, ValueError):
            raise InputError(f"Requirement {self.requirement_id}: width must be a number, got {self.width!r}")
        if width <= 0:
            raise InputError(f"Requirement {self.requirement_id}: width must be positive")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise InputError(f"Requirement {self.requirement_id}: quantity must be a positive integer")
        try:
            self.status = RequirementStatus(self.status)
        except ValueError:
            raise InputError(f"Requirement {self.requirement_id}: unknown status {self.status!r}")
        self.width = width


@dataclass(frozen=True)
class ExistingStockRoll:
    """A partially used roll owned by inventory. The planner only reads it."""
    roll_id: str
    width: float
    spec: PaperSpec
    source: str = ""


@dataclass(frozen=True)
class StockConsumption:
    """Instruction for the inventory collaborator: this roll serves a cut."""
    roll_id: str
    width_used: float
    remaining_width: float
    requirement_id: Optional[str] = None


@dataclass
class Cut:
    cut_id: str
    width: float
    requirement_id: Optional[str] = None
    order_id: Optional[str] = None
    uses_existing: bool = False
    stock_roll_id: Optional[str] = None
    is_manual: bool = False
    description: str = ""
    order_frontend_id: Optional[str] = None
    client_name: Optional[str] = None


@dataclass
class RollSet:
    """An intermediate roll of ``target_width`` sliced into cuts."""
    set_id: str
    set_number: int
    target_width: float
    cuts: List[Cut] = field(default_factory=list)

    @property
    def used_width(self) -> float:
        return round_width(sum(cut.width for cut in self.cuts))

    @property
    def waste(self) -> float:
        return max(0.0, round_width(self.target_width - self.used_width))

    @property
    def efficiency(self) -> float:
        return round((self.used_width / self.target_width) * 100, 1) if self.target_width else 0.0

    @property
    def manual_addition_available(self) -> bool:
        return self.waste >= settings.MANUAL_ADDITION_MIN_WASTE

    def fits(self, width: float) -> bool:
        return self.used_width + width <= self.target_width + WIDTH_EPSILON


@dataclass
class JumboRoll:
    jumbo_id: str
    jumbo_number: int
    sets: List[RollSet] = field(default_factory=list)
    max_sets: int = settings.SETS_PER_JUMBO

    @property
    def is_partial(self) -> bool:
        return len(self.sets) < self.max_sets

    @property
    def cuts(self) -> List[Cut]:
        return [cut for roll_set in self.sets for cut in roll_set.cuts]


@dataclass
class Summary:
    total_rolls: int = 0
    rolls_from_existing: int = 0
    new_rolls_needed: int = 0
    total_sets: int = 0
    total_jumbos: int = 0
    partial_jumbos: int = 0
    total_used_width: float = 0.0
    total_waste: float = 0.0
    avg_waste: float = 0.0
    efficiency: float = 0.0


@dataclass
class Suggestion:
    """Planning result for one paper spec."""
    suggestion_id: str
    spec: PaperSpec
    target_width: float
    jumbos: List[JumboRoll] = field(default_factory=list)
    existing_stock_cuts: List[Cut] = field(default_factory=list)
    stock_consumptions: List[StockConsumption] = field(default_factory=list)
    requirement_ids: Tuple[str, ...] = ()
    order_ids: Tuple[str, ...] = ()
    summary: Summary = field(default_factory=Summary)
    version: int = 1

    @property
    def sets(self) -> List[RollSet]:
        return [roll_set for jumbo in self.jumbos for roll_set in jumbo.sets]

    @property
    def partial_jumbos(self) -> List[JumboRoll]:
        return [jumbo for jumbo in self.jumbos if jumbo.is_partial]

    @property
    def all_cuts(self) -> List[Cut]:
        return list(self.existing_stock_cuts) + [cut for jumbo in self.jumbos for cut in jumbo.cuts]


@dataclass(frozen=True)
class ProductionPlanReference:
    plan_id: str
    frontend_id: Optional[str]
    suggestion_id: str
    status: str
