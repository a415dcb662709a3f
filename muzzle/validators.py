"""Pick and install the solvability predicate of each puzzle variant."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .canvas import Canvas, PuzzleValidator
from .geometry import Number

logger = logging.getLogger(__name__)


def match_connections_valid(canvas: Canvas) -> bool:
    """Every non-odd left piece is connected on its right to its target.

    Odd pieces are not checked at all, whatever they are connected to.
    """

    for piece in canvas.pieces:
        metadata = piece.metadata
        if metadata.odd or not metadata.left:
            continue
        connection = piece.right_connection
        if connection is None or connection.id != metadata.right_target_id:
            return False
    return True


class ValidatorAttacher:
    def __init__(
        self,
        expected_refs: Optional[Sequence[Sequence[Number]]] = None,
        *,
        expected_refs_are_only_descriptive: bool = False,
    ) -> None:
        self.expected_refs = expected_refs
        self.expected_refs_are_only_descriptive = expected_refs_are_only_descriptive

    def attach_basic(self, canvas: Canvas) -> None:
        if self.expected_refs and not self.expected_refs_are_only_descriptive:
            if len(self.expected_refs) != len(canvas.pieces):
                raise ValueError(
                    f"Expected {len(canvas.pieces)} reference positions, got {len(self.expected_refs)}"
                )
            logger.debug("Attaching relative refs validator to %d pieces", len(canvas.pieces))
            canvas.attach_relative_refs_validator(self.expected_refs)
        else:
            canvas.attach_solved_validator()

    def attach_match(self, canvas: Canvas) -> None:
        canvas.attach_validator(PuzzleValidator(match_connections_valid))


__all__ = ["ValidatorAttacher", "match_connections_valid"]
