"""Solution persistence: export, import and canonical coordinates."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import numpy as np

from .geometry import Number, Vector

if TYPE_CHECKING:  # pragma: no cover
    from .canvas import Canvas

logger = logging.getLogger(__name__)

Point = List[Number]


@dataclass
class Solution:
    """Piece positions, index-aligned with the order pieces were created."""

    positions: List[Point] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"positions": [list(point) for point in self.positions]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_payload(cls, payload: Any) -> "Solution":
        """Build a solution from ``{"positions": [...]}`` or a bare list of pairs."""

        if isinstance(payload, dict):
            payload = payload.get("positions")
        if not isinstance(payload, list):
            raise ValueError("Solution must contain a list of positions")
        positions: List[Point] = []
        for point in payload:
            if not isinstance(point, (list, tuple)) or len(point) != 2:
                raise ValueError(f"Invalid position: {point!r}")
            x, y = point
            if not all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in (x, y)):
                raise ValueError(f"Invalid position: {point!r}")
            positions.append([x, y])
        return cls(positions)

    @classmethod
    def from_json(cls, content: str) -> "Solution":
        return cls.from_payload(json.loads(content))


def parse_solution(content: Optional[str]) -> Optional[Solution]:
    """Parse persisted content, treating anything unreadable as no solution."""

    if not content:
        return None
    try:
        return Solution.from_json(content)
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring unparseable previous solution: %s", exc)
        return None


def canonicalize(points: Sequence[Sequence[Number]]) -> List[Point]:
    """Translate points so the minimum x and minimum y become zero."""

    if not points:
        return []
    min_x = min(x for x, _ in points)
    min_y = min(y for _, y in points)
    return [[x - min_x, y - min_y] for x, y in points]


def positions_relatively_equal(
    expected: Sequence[Sequence[Number]],
    actual: Sequence[Sequence[Number]],
    unit: Any = 100,
) -> bool:
    """Compare layouts after anchoring both at their first point.

    ``expected`` is given in grid units and scaled by ``unit``; ``actual`` is
    in canvas pixels. Equality is exact.
    """

    expected_arr = np.asarray(expected, dtype=float)
    actual_arr = np.asarray(actual, dtype=float)
    for name, arr in (("expected", expected_arr), ("actual", actual_arr)):
        if arr.size and (arr.ndim != 2 or arr.shape[1] != 2):
            raise ValueError(f"{name} positions must be a list of [x, y] pairs")
    if expected_arr.shape[0] != actual_arr.shape[0]:
        return False
    if not expected_arr.size:
        return True

    scaled = expected_arr * np.asarray(Vector.of(unit).to_list(), dtype=float)
    offset = actual_arr[0] - scaled[0]
    return bool(np.array_equal(actual_arr - offset, scaled))


class SolutionCodec:
    """Move solutions in and out of a live canvas."""

    def __init__(self, canvas: "Canvas") -> None:
        self.canvas = canvas

    def export(self) -> Solution:
        return Solution([list(point) for point in self.canvas.points])

    def dumps(self) -> str:
        return self.export().to_json()

    def load(self, solution: Solution) -> None:
        """Relocate pieces to ``solution`` and reconnect them. Does not draw."""

        self.canvas.relocate_to(solution.positions)
        self.canvas.autoconnect()

    def load_content(self, content: Optional[str]) -> bool:
        solution = parse_solution(content)
        if solution is None:
            return False
        if len(solution.positions) != len(self.canvas.pieces):
            logger.warning(
                "Ignoring previous solution with %d positions for %d pieces",
                len(solution.positions),
                len(self.canvas.pieces),
            )
            return False
        self.load(solution)
        return True

    def reset_coordinates(self) -> None:
        """Move the arrangement to the origin without breaking connections."""

        points = self.canvas.points
        if not points:
            return
        (x, y), (canonical_x, canonical_y) = points[0], canonicalize(points)[0]
        self.canvas.translate(canonical_x - x, canonical_y - y)


__all__ = [
    "Point",
    "Solution",
    "SolutionCodec",
    "canonicalize",
    "parse_solution",
    "positions_relatively_equal",
]
