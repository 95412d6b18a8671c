from typing import List, Optional
import logging

from ..config import settings
from .id_generator import IdGenerator
from .roll_types import JumboRoll, RollSet

logger = logging.getLogger(__name__)


def assemble_jumbos(
    sets: List[RollSet],
    id_generator: Optional[IdGenerator] = None,
    sets_per_jumbo: int = settings.SETS_PER_JUMBO,
) -> List[JumboRoll]:
    """
    Group packed sets into jumbo rolls, ``sets_per_jumbo`` at a time, in the
    order the packer produced them. The final jumbo may be partial; it is
    returned as is, never padded.
    """
    id_generator = id_generator or IdGenerator()
    jumbos: List[JumboRoll] = []

    for start in range(0, len(sets), sets_per_jumbo):
        chunk = sets[start:start + sets_per_jumbo]
        jumbo = JumboRoll(
            jumbo_id=id_generator.next_id("jumbo"),
            jumbo_number=len(jumbos) + 1,
            sets=chunk,
            max_sets=sets_per_jumbo,
        )
        # set_number is the position within the jumbo (1..sets_per_jumbo)
        for position, roll_set in enumerate(chunk, start=1):
            roll_set.set_number = position
        jumbos.append(jumbo)

    partial = [j for j in jumbos if j.is_partial]
    if partial:
        logger.warning(
            f"⚠️ {len(partial)} partial jumbo(s): "
            + ", ".join(f"{j.jumbo_id} ({len(j.sets)}/{sets_per_jumbo} sets)" for j in partial)
        )
    logger.info(f"🎯 Assembled {len(sets)} sets into {len(jumbos)} jumbo rolls")
    return jumbos
