from typing import Dict, Iterable, List
import logging

from .roll_types import PaperSpec, PendingRequirement

logger = logging.getLogger(__name__)


def group_by_spec(requirements: Iterable[PendingRequirement]) -> Dict[PaperSpec, List[PendingRequirement]]:
    """
    Simple grouping by paper specs only (GSM + BF + Shade).

    PaperSpec normalises shade on construction, so equality here is exact
    on the normalised triple. Groups and their members keep input order.
    """
    spec_groups: Dict[PaperSpec, List[PendingRequirement]] = {}
    for requirement in requirements:
        spec_groups.setdefault(requirement.spec, []).append(requirement)

    if spec_groups:
        logger.info(f"📋 Grouped {sum(len(items) for items in spec_groups.values())} requirements into {len(spec_groups)} paper specs")
    return spec_groups
