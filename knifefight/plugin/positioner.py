"""Bring the second contender next to the first."""

from __future__ import annotations

import logging

from knifefight.plugin.host import Player
from knifefight.plugin.models import NEUTRAL_ANGLES, ORIGIN, ZERO_VELOCITY, Vector

logger = logging.getLogger(__name__)

DEFAULT_OFFSET = Vector(300.0, 0.0, 0.0)


def place_near(reference: Player | None, mover: Player | None, offset: Vector = DEFAULT_OFFSET) -> Vector | None:
    """Teleport ``mover`` to ``reference``'s position plus ``offset``.

    ``reference`` never moves and ``mover`` keeps its own facing, so placing
    the same pair twice yields the same geometry.
    """
    if reference is None or mover is None or not reference.is_valid or not mover.is_valid:
        return None
    reference_pawn = reference.pawn
    mover_pawn = mover.pawn
    if reference_pawn is None or mover_pawn is None:
        return None
    if not reference_pawn.is_valid or not mover_pawn.is_valid:
        return None

    center = reference_pawn.origin if reference_pawn.origin is not None else ORIGIN
    target = center + offset
    start = mover_pawn.origin if mover_pawn.origin is not None else ORIGIN
    angles = mover_pawn.eye_angles if mover_pawn.eye_angles is not None else NEUTRAL_ANGLES
    mover_pawn.teleport(target, angles, ZERO_VELOCITY)
    logger.debug("Moved %s %.1f units next to %s", mover.name, (target - start).length(), reference.name)
    return target
