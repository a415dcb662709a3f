"""Geometry engine interface and a headless in-memory implementation.

The builder only talks to :class:`Canvas`. Rendering engines implement it
on top of a real drawing surface; :class:`MemoryCanvas` keeps pieces,
positions and connections in memory so puzzles can be built, restored and
validated without one.
"""

from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PIL import Image

from .geometry import Axis, Number, Vector
from .solution import positions_relatively_equal
from .templates import (
    NONE,
    SIDES,
    SLOT,
    TAB,
    PieceMetadata,
    PieceTemplate,
    inserts_match,
    parse_structure,
)

logger = logging.getLogger(__name__)

OPPOSITE = {"right": "left", "left": "right", "down": "up", "up": "down"}
SIDE_DELTAS = {"right": (1, 0), "down": (0, 1), "left": (-1, 0), "up": (0, -1)}


class Piece:
    """A placed piece: template data plus live position and connections."""

    def __init__(self, template: PieceTemplate, index: int, size: Vector, position: Vector) -> None:
        self.index = index
        self.structure = template.structure
        self.inserts = parse_structure(template.structure)
        self.metadata: PieceMetadata = template.metadata
        self.size = size
        self.position = position
        self.connections: Dict[str, Optional["Piece"]] = {side: None for side in SIDES}

    @property
    def id(self) -> str:
        return self.metadata.id if self.metadata.id is not None else str(self.index + 1)

    @property
    def right_connection(self) -> Optional["Piece"]:
        return self.connections["right"]

    @property
    def left_connection(self) -> Optional["Piece"]:
        return self.connections["left"]

    def connect(self, other: "Piece", side: str) -> None:
        self.connections[side] = other
        other.connections[OPPOSITE[side]] = self

    def disconnect(self) -> None:
        for side, other in self.connections.items():
            if other is not None:
                other.connections[OPPOSITE[side]] = None
                self.connections[side] = None

    def __repr__(self) -> str:
        return f"Piece({self.id!r}, {self.structure!r}, at={self.position.to_list()})"


class PuzzleValidator:
    """A pure predicate over a canvas."""

    def __init__(self, condition: Callable[["Canvas"], bool]) -> None:
        self.condition = condition

    def is_valid(self, canvas: "Canvas") -> bool:
        return bool(self.condition(canvas))


def all_pieces_connected(canvas: "Canvas") -> bool:
    """Every insert is connected, to its grid neighbour when pieces have one."""

    for piece in canvas.pieces:
        for side, insert in piece.inserts.items():
            if insert not in (TAB, SLOT):
                continue
            other = piece.connections[side]
            if other is None:
                return False
            own = piece.metadata.grid_position
            theirs = other.metadata.grid_position
            if own is not None and theirs is not None:
                dx, dy = SIDE_DELTAS[side]
                if (own[0] + dx, own[1] + dy) != tuple(theirs):
                    return False
    return True


class Canvas(ABC):
    """What the builder needs from a geometry engine."""

    pieces: List[Piece]

    @property
    @abstractmethod
    def points(self) -> List[List[Number]]:
        """Piece positions in creation order."""

    @property
    @abstractmethod
    def valid(self) -> bool:
        """Whether the installed validator accepts the live arrangement."""

    @abstractmethod
    def sketch_piece(self, template: PieceTemplate) -> Piece:
        ...

    @abstractmethod
    def autogenerate(self, *, horizontal_pieces_count: int, vertical_pieces_count: int) -> None:
        ...

    @abstractmethod
    def shuffle(self, strategy: str, farness: float) -> None:
        ...

    @abstractmethod
    def attach_validator(self, validator: PuzzleValidator) -> None:
        ...

    def attach_solved_validator(self) -> None:
        self.attach_validator(PuzzleValidator(all_pieces_connected))

    def attach_relative_refs_validator(self, refs: Sequence[Sequence[Number]]) -> None:
        unit = self.piece_diameter
        self.attach_validator(PuzzleValidator(lambda canvas: positions_relatively_equal(refs, canvas.points, unit)))

    @abstractmethod
    def on_valid(self, callback: Callable[[], Any]) -> None:
        ...

    @abstractmethod
    def adjust_images_to_puzzle(self, axis: Axis) -> None:
        ...

    @abstractmethod
    def adjust_images_to_piece(self, axis: Axis) -> None:
        ...

    @abstractmethod
    def relocate_to(self, points: Sequence[Sequence[Number]]) -> None:
        ...

    @abstractmethod
    def autoconnect(self) -> None:
        ...

    @abstractmethod
    def translate(self, dx: Number, dy: Number) -> None:
        ...

    @property
    @abstractmethod
    def piece_diameter(self) -> Vector:
        ...

    @property
    @abstractmethod
    def puzzle_diameter(self) -> Vector:
        ...

    @abstractmethod
    def draw(self) -> None:
        ...

    @abstractmethod
    def redraw(self) -> None:
        ...

    @abstractmethod
    def refill(self, image: Image.Image) -> None:
        ...

    @abstractmethod
    def resize(self, width: Number, height: Number) -> None:
        ...

    @abstractmethod
    def scale(self, factor: float) -> None:
        ...

    @abstractmethod
    def set_offset(self, offset: Vector) -> None:
        ...


class MemoryCanvas(Canvas):
    """Headless canvas keeping the whole puzzle in memory.

    Pieces connect when they sit edge to edge, within ``proximity``, with a
    tab facing a slot. Nothing is snapped, animated or drawn.
    """

    def __init__(self, canvas_id: str = "muzzle-canvas", config: Optional[Dict[str, Any]] = None) -> None:
        config = dict(config or {})
        self.id = canvas_id
        self.config = config
        self.width = config.get("width", 600)
        self.height = config.get("height", 600)
        self.piece_size = Vector.of(config.get("piece_size", 100))
        self.proximity = config.get("proximity", self.piece_size.min / 5)
        self.image: Optional[Image.Image] = config.get("image")
        self.max_pieces_count = config.get("max_pieces_count")
        self.pieces: List[Piece] = []
        self.image_adjustment: Optional[Tuple[str, Axis]] = None
        self.scale_factor = 1.0
        self.offset = Vector(0, 0)
        self.drawn = False
        self.redraw_count = 0
        self._rng = random.Random(config.get("seed"))
        self._validator: Optional[PuzzleValidator] = None
        self._valid_callbacks: List[Callable[[], Any]] = []
        self._was_valid = False

    # ------------------------------------------------------------------
    # Pieces

    def sketch_piece(self, template: PieceTemplate) -> Piece:
        size = template.size or self.piece_size
        position = template.metadata.target_position or Vector(0, 0)
        piece = Piece(template, len(self.pieces), size, position)
        self.pieces.append(piece)
        return piece

    def autogenerate(self, *, horizontal_pieces_count: int, vertical_pieces_count: int) -> None:
        if horizontal_pieces_count < 1 or vertical_pieces_count < 1:
            raise ValueError("Piece counts must be at least 1")
        last_x = horizontal_pieces_count - 1
        last_y = vertical_pieces_count - 1
        for x in range(horizontal_pieces_count):
            for y in range(vertical_pieces_count):
                structure = "".join(
                    (
                        TAB if x < last_x else NONE,
                        TAB if y < last_y else NONE,
                        SLOT if x > 0 else NONE,
                        SLOT if y > 0 else NONE,
                    )
                )
                target = self.piece_size.multiply((x, y))
                self.sketch_piece(
                    PieceTemplate(
                        structure=structure,
                        metadata=PieceMetadata(target_position=target, grid_position=(x, y)),
                    )
                )
        logger.debug("Generated %dx%d pieces on %s", horizontal_pieces_count, vertical_pieces_count, self.id)

    def get_piece(self, piece_id: str) -> Piece:
        for piece in self.pieces:
            if piece.id == piece_id:
                return piece
        raise KeyError(f"Piece '{piece_id}' not found")

    @property
    def points(self) -> List[List[Number]]:
        return [piece.position.to_list() for piece in self.pieces]

    # ------------------------------------------------------------------
    # Shuffling

    def shuffle(self, strategy: str, farness: float) -> None:
        shufflers = {
            "grid": self.shuffle_grid,
            "columns": self.shuffle_columns,
            "line": self.shuffle_line,
        }
        try:
            shuffler = shufflers[strategy]
        except KeyError as exc:
            raise ValueError(f"Unknown shuffler: {strategy!r}") from exc
        shuffler(farness)

    def shuffle_grid(self, farness: float) -> None:
        slots = [self._home(piece).multiply(1 + farness) for piece in self.pieces]
        self._rng.shuffle(slots)
        self._place(slots)

    def shuffle_columns(self, farness: float) -> None:
        columns: Dict[Number, List[int]] = {}
        for index, piece in enumerate(self.pieces):
            columns.setdefault(self._home(piece).x, []).append(index)
        slots: List[Vector] = [Vector(0, 0)] * len(self.pieces)
        for x, indexes in columns.items():
            ys = [self._home(self.pieces[index]).y for index in indexes]
            self._rng.shuffle(ys)
            for index, y in zip(indexes, ys):
                slots[index] = Vector(x * (1 + farness), y)
        self._place(slots)

    def shuffle_line(self, farness: float) -> None:
        step = self.piece_size.x * (1 + farness)
        slots = [Vector(index * step, 0) for index in range(len(self.pieces))]
        self._rng.shuffle(slots)
        self._place(slots)

    def _home(self, piece: Piece) -> Vector:
        return piece.metadata.target_position or piece.position

    def _place(self, slots: Sequence[Vector]) -> None:
        for piece, slot in zip(self.pieces, slots):
            piece.disconnect()
            piece.position = slot
        self._notify()

    # ------------------------------------------------------------------
    # Connections

    def _fits(self, piece: Piece, other: Piece, side: str) -> bool:
        if not inserts_match(piece.inserts[side], other.inserts[OPPOSITE[side]]):
            return False
        if side == "right":
            expected = piece.position.plus((piece.size.x, 0))
        else:
            expected = piece.position.plus((0, piece.size.y))
        return (
            abs(other.position.x - expected.x) <= self.proximity
            and abs(other.position.y - expected.y) <= self.proximity
        )

    def autoconnect(self) -> None:
        for piece in self.pieces:
            piece.disconnect()
        for piece in self.pieces:
            for other in self.pieces:
                if other is piece:
                    continue
                for side in ("right", "down"):
                    if (
                        piece.connections[side] is None
                        and other.connections[OPPOSITE[side]] is None
                        and self._fits(piece, other, side)
                    ):
                        piece.connect(other, side)
        self._notify()

    def connect(self, piece: Piece, other: Piece, side: str = "right") -> None:
        """Connect two pieces as a drag-and-drop would, snapping ``other`` to ``piece``.

        Inserts are not checked, so any two pieces can be joined.
        """

        if side not in OPPOSITE:
            raise ValueError(f"Unknown side: {side!r}")
        other.position = self._snapped(piece, other, side)
        previous = piece.connections[side]
        if previous is not None:
            previous.connections[OPPOSITE[side]] = None
        previous = other.connections[OPPOSITE[side]]
        if previous is not None:
            previous.connections[side] = None
        piece.connect(other, side)
        self._notify()

    @staticmethod
    def _snapped(piece: Piece, other: Piece, side: str) -> Vector:
        if side == "right":
            return piece.position.plus((piece.size.x, 0))
        if side == "down":
            return piece.position.plus((0, piece.size.y))
        if side == "left":
            return piece.position.minus((other.size.x, 0))
        return piece.position.minus((0, other.size.y))

    def disconnect(self, piece: Piece) -> None:
        piece.disconnect()
        self._notify()

    def move(self, piece: Piece, x: Number, y: Number) -> None:
        piece.position = Vector(x, y)
        self.autoconnect()

    def relocate_to(self, points: Sequence[Sequence[Number]]) -> None:
        if len(points) != len(self.pieces):
            raise ValueError(f"Expected {len(self.pieces)} positions, got {len(points)}")
        for piece, point in zip(self.pieces, points):
            piece.disconnect()
            piece.position = Vector.of(point)

    def translate(self, dx: Number, dy: Number) -> None:
        for piece in self.pieces:
            piece.position = piece.position.plus((dx, dy))

    # ------------------------------------------------------------------
    # Validation

    def attach_validator(self, validator: PuzzleValidator) -> None:
        self._validator = validator
        self._was_valid = self.valid

    @property
    def valid(self) -> bool:
        if self._validator is None:
            return False
        return self._validator.is_valid(self)

    def on_valid(self, callback: Callable[[], Any]) -> None:
        self._valid_callbacks.append(callback)

    def _notify(self) -> None:
        valid = self.valid
        became_valid = valid and not self._was_valid
        self._was_valid = valid
        if became_valid:
            for callback in list(self._valid_callbacks):
                callback()

    # ------------------------------------------------------------------
    # Images and viewport

    def adjust_images_to_puzzle(self, axis: Axis) -> None:
        self.image_adjustment = ("puzzle", axis)

    def adjust_images_to_piece(self, axis: Axis) -> None:
        self.image_adjustment = ("piece", axis)

    @property
    def piece_diameter(self) -> Vector:
        return self.piece_size

    @property
    def puzzle_diameter(self) -> Vector:
        if not self.pieces:
            return self.piece_size
        xs = [piece.position.x for piece in self.pieces]
        ys = [piece.position.y for piece in self.pieces]
        return Vector(max(xs) - min(xs), max(ys) - min(ys)).plus(self.piece_size)

    def draw(self) -> None:
        self.drawn = True

    def redraw(self) -> None:
        self.redraw_count += 1

    def refill(self, image: Image.Image) -> None:
        self.image = image

    def resize(self, width: Number, height: Number) -> None:
        self.width = width
        self.height = height

    def scale(self, factor: float) -> None:
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"Invalid scale factor: {factor}")
        self.scale_factor = factor

    def set_offset(self, offset: Vector) -> None:
        self.offset = offset


__all__ = [
    "Canvas",
    "MemoryCanvas",
    "Piece",
    "PuzzleValidator",
    "all_pieces_connected",
]
