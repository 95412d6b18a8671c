"""
Manual adjustment of produced suggestions.

Operators may add ad-hoc cuts into existing sets (or new sets of a partial
jumbo) and remove cuts. Every operation works on a deep copy and returns a
new Suggestion with ``version + 1`` and a recomputed summary; the input is
never mutated. Requirement lifecycle is left to the caller.
"""

import copy
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union
import logging

from ..config import settings

from .exceptions import (
    InputError,
    JumboFull,
    NotFoundError,
    RequirementTooWide,
    SetFull,
    VersionConflictError,
)
from .id_generator import IdGenerator
from .roll_types import WIDTH_EPSILON, Cut, JumboRoll, PaperSpec, RollSet, Suggestion, Summary
from .suggestion_aggregator import compute_summary

logger = logging.getLogger(__name__)

NEW_SET = "new"


@dataclass(frozen=True)
class AddCutOperation:
    jumbo_id: str
    set_id: str  # existing set id or "new"
    width: float
    spec: Optional[PaperSpec] = None
    description: Optional[str] = None
    order_id: Optional[str] = None
    client_name: Optional[str] = None


@dataclass(frozen=True)
class RemoveCutOperation:
    cut_id: str


Operation = Union[AddCutOperation, RemoveCutOperation]


def recompute_summary(suggestion: Suggestion) -> Summary:
    """Re-derive every Summary field from current jumbo/set/cut state. Pure."""
    return compute_summary(suggestion.jumbos, suggestion.existing_stock_cuts)


def _find_jumbo(suggestion: Suggestion, jumbo_id: str) -> JumboRoll:
    for jumbo in suggestion.jumbos:
        if jumbo.jumbo_id == jumbo_id:
            return jumbo
    raise NotFoundError("Jumbo", jumbo_id)


def _find_set(jumbo: JumboRoll, set_id: str) -> RollSet:
    for roll_set in jumbo.sets:
        if roll_set.set_id == set_id:
            return roll_set
    raise NotFoundError("Set", set_id)


def _default_id_generator(suggestion: Suggestion) -> IdGenerator:
    # Each revision gets its own namespace, so ids never collide across edits
    return IdGenerator(namespace=f"{suggestion.suggestion_id}/r{suggestion.version + 1}")


def add_cut(
    suggestion: Suggestion,
    jumbo_id: str,
    set_id: str,
    width: float,
    spec: Optional[PaperSpec] = None,
    description: Optional[str] = None,
    order_id: Optional[str] = None,
    client_name: Optional[str] = None,
    id_generator: Optional[IdGenerator] = None,
) -> Suggestion:
    """
    Insert an operator cut.

    Goes into ``set_id`` when it has room. With ``set_id="new"``, or when the
    named set is full, a new set is appended to the jumbo as long as it has
    fewer than the maximum number of sets.

    Raises:
        InputError: non-positive width or a spec other than the suggestion's
        RequirementTooWide: width larger than the set width
        NotFoundError: unknown jumbo or set
        JumboFull: "new" requested on a jumbo that already has all its sets
        SetFull: named set has no room and the jumbo cannot take another set
    """
    if width is None or width <= 0:
        raise InputError("Cut width must be positive")
    width = float(width)
    if spec is not None and spec != suggestion.spec:
        raise InputError(
            f"Cut spec {spec.spec_id} does not match suggestion spec {suggestion.spec.spec_id}"
        )
    if width > suggestion.target_width + WIDTH_EPSILON:
        raise RequirementTooWide(width, suggestion.target_width)

    id_generator = id_generator or _default_id_generator(suggestion)
    updated = copy.deepcopy(suggestion)
    jumbo = _find_jumbo(updated, jumbo_id)

    cut = Cut(
        cut_id=id_generator.next_id("manual_cut"),
        width=width,
        order_id=order_id,
        is_manual=True,
        description=description or f"Manual Cut: {width}\"",
        client_name=client_name,
    )

    if set_id == NEW_SET:
        if len(jumbo.sets) >= jumbo.max_sets:
            raise JumboFull(jumbo.jumbo_id, jumbo.max_sets)
        target_set = _append_set(jumbo, updated.target_width, id_generator)
    else:
        target_set = _find_set(jumbo, set_id)
        if not target_set.fits(width):
            if len(jumbo.sets) >= jumbo.max_sets:
                raise SetFull(target_set.set_id, width, target_set.waste)
            logger.info(f"🔄 Set {target_set.set_id} has {target_set.waste}\" left; opening a new set in {jumbo.jumbo_id}")
            target_set = _append_set(jumbo, updated.target_width, id_generator)

    target_set.cuts.append(cut)
    return _finish(updated)


def _append_set(jumbo: JumboRoll, target_width: float, id_generator: IdGenerator) -> RollSet:
    roll_set = RollSet(
        set_id=id_generator.next_id("set"),
        set_number=len(jumbo.sets) + 1,
        target_width=target_width,
    )
    jumbo.sets.append(roll_set)
    return roll_set


def remove_cut(suggestion: Suggestion, cut_id: str) -> Suggestion:
    """
    Remove a cut. A set left empty is dropped and the remaining sets of its
    jumbo renumbered; a jumbo left empty is dropped. Removing an existing
    stock cut also drops its consumption instruction.
    """
    updated = copy.deepcopy(suggestion)

    for index, cut in enumerate(updated.existing_stock_cuts):
        if cut.cut_id == cut_id:
            del updated.existing_stock_cuts[index]
            updated.stock_consumptions = [
                c for c in updated.stock_consumptions if c.roll_id != cut.stock_roll_id
            ]
            return _finish(updated)

    for jumbo in updated.jumbos:
        for roll_set in jumbo.sets:
            for index, cut in enumerate(roll_set.cuts):
                if cut.cut_id != cut_id:
                    continue
                del roll_set.cuts[index]
                if not roll_set.cuts:
                    jumbo.sets.remove(roll_set)
                    for position, remaining in enumerate(jumbo.sets, start=1):
                        remaining.set_number = position
                if not jumbo.sets:
                    updated.jumbos.remove(jumbo)
                    for number, remaining_jumbo in enumerate(updated.jumbos, start=1):
                        remaining_jumbo.jumbo_number = number
                return _finish(updated)

    raise NotFoundError("Cut", cut_id)


def _finish(updated: Suggestion) -> Suggestion:
    updated.version += 1
    updated.summary = recompute_summary(updated)
    return updated


def adjust(
    suggestion: Suggestion,
    operation: Operation,
    id_generator: Optional[IdGenerator] = None,
) -> Suggestion:
    """Apply one operation and return the adjusted suggestion."""
    if isinstance(operation, AddCutOperation):
        return add_cut(
            suggestion,
            jumbo_id=operation.jumbo_id,
            set_id=operation.set_id,
            width=operation.width,
            spec=operation.spec,
            description=operation.description,
            order_id=operation.order_id,
            client_name=operation.client_name,
            id_generator=id_generator,
        )
    if isinstance(operation, RemoveCutOperation):
        return remove_cut(suggestion, operation.cut_id)
    raise InputError(f"Unsupported adjustment operation: {type(operation).__name__}")


class SuggestionRegistry:
    """
    Holds live suggestions between planning and commit.

    Writes are serialised behind a lock and checked against the version the
    caller last saw, so two operators editing the same set cannot both pass
    the capacity check against the same stale width.

    Entries expire ``ttl_seconds`` after their last registration or edit,
    and at most ``max_entries`` are kept; the least recently touched go
    first.
    """

    def __init__(
        self,
        max_entries: int = settings.SUGGESTION_REGISTRY_MAX,
        ttl_seconds: Optional[float] = settings.SUGGESTION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise InputError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._suggestions: "OrderedDict[str, Tuple[Suggestion, float]]" = OrderedDict()
        self._lock = threading.Lock()

    # === Internal helpers (caller holds the lock) ===

    def _store(self, suggestion: Suggestion) -> None:
        self._suggestions[suggestion.suggestion_id] = (suggestion, self._clock())
        self._suggestions.move_to_end(suggestion.suggestion_id)
        self._evict()

    def _evict(self) -> None:
        if self.ttl_seconds is not None:
            cutoff = self._clock() - self.ttl_seconds
            expired = [sid for sid, (_, touched_at) in self._suggestions.items() if touched_at <= cutoff]
            for suggestion_id in expired:
                del self._suggestions[suggestion_id]
            if expired:
                logger.info(f"🧹 Expired {len(expired)} suggestions not touched for {self.ttl_seconds}s")
        while len(self._suggestions) > self.max_entries:
            suggestion_id, _ = self._suggestions.popitem(last=False)
            logger.info(f"🧹 Evicted {suggestion_id}, registry holds at most {self.max_entries}")

    def _current(self, suggestion_id: str) -> Suggestion:
        self._evict()
        entry = self._suggestions.get(suggestion_id)
        if entry is None:
            raise NotFoundError("Suggestion", suggestion_id)
        return entry[0]

    # === Public API ===

    def register(self, suggestion: Suggestion) -> None:
        with self._lock:
            self._store(suggestion)

    def get(self, suggestion_id: str) -> Suggestion:
        with self._lock:
            return self._current(suggestion_id)

    def apply(
        self,
        suggestion_id: str,
        operation: Operation,
        expected_version: Optional[int] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> Suggestion:
        with self._lock:
            current = self._current(suggestion_id)
            if expected_version is not None and expected_version != current.version:
                logger.warning(f"⚠️ Rejected stale edit on {suggestion_id}: v{expected_version} != v{current.version}")
                raise VersionConflictError(suggestion_id, expected_version, current.version)
            updated = adjust(current, operation, id_generator)
            self._store(updated)
            logger.info(f"✏️ {suggestion_id} → v{updated.version} ({type(operation).__name__})")
            return updated

    def pop(self, suggestion_id: str, expected_version: Optional[int] = None) -> Suggestion:
        """Take a suggestion out of the registry, e.g. once it is committed or discarded."""
        with self._lock:
            current = self._current(suggestion_id)
            if expected_version is not None and expected_version != current.version:
                raise VersionConflictError(suggestion_id, expected_version, current.version)
            del self._suggestions[suggestion_id]
            return current

    def __len__(self) -> int:
        with self._lock:
            self._evict()
            return len(self._suggestions)
