"""Piece templates: edge structure plus identity metadata, before assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

from PIL import Image

from .backgrounds import Background, as_background
from .config import PuzzleConfig
from .geometry import Vector

if TYPE_CHECKING:  # pragma: no cover
    from .builder import Muzzle

# Sides are listed right, down, left, up.
TAB = "T"
SLOT = "S"
FLAT = "N"
NONE = "-"
INSERTS = (TAB, SLOT, FLAT, NONE)
SIDES = ("right", "down", "left", "up")

LEFT_STRUCTURE = "T-N-"
RIGHT_STRUCTURE = "N-S-"


def parse_structure(structure: str) -> Dict[str, str]:
    if len(structure) != 4 or any(char not in INSERTS for char in structure):
        raise ValueError(f"Invalid piece structure: {structure!r}")
    return dict(zip(SIDES, structure))


def inserts_match(one: str, other: str) -> bool:
    return {one, other} == {TAB, SLOT}


@dataclass
class ImageSpec:
    """Artwork of a piece and how the geometry engine should place it."""

    content: Image.Image
    scale: float = 1.0
    offset: Vector = field(default_factory=lambda: Vector(0, 0))

    def to_dict(self) -> dict:
        return {
            "size": list(self.content.size),
            "scale": self.scale,
            "offset": self.offset.to_list(),
        }


@dataclass
class PieceMetadata:
    id: Optional[str] = None
    left: bool = False
    odd: bool = False
    right_target_id: Optional[str] = None
    image: Optional[ImageSpec] = None
    target_position: Optional[Vector] = None
    grid_position: Optional[Tuple[int, int]] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "left": self.left,
            "odd": self.odd,
            "right_target_id": self.right_target_id,
            "image": self.image.to_dict() if self.image else None,
            "target_position": self.target_position.to_list() if self.target_position else None,
            "grid_position": list(self.grid_position) if self.grid_position else None,
        }


@dataclass
class PieceTemplate:
    structure: str
    metadata: PieceMetadata
    size: Optional[Vector] = None

    def __post_init__(self) -> None:
        parse_structure(self.structure)

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {
            "structure": self.structure,
            "metadata": self.metadata.to_dict(),
        }
        if self.size is not None:
            payload["size"] = self.size.to_list()
        return payload


class TemplateFactory:
    """Load piece artwork and describe the resulting pieces."""

    def __init__(self, config: PuzzleConfig, muzzle: Optional["Muzzle"] = None) -> None:
        self.config = config
        self.muzzle = muzzle

    def image_spec(self, image: Image.Image, size: Optional[Vector] = None) -> ImageSpec:
        if not self.config.get("scale_images_to_fit"):
            return ImageSpec(image)
        piece_width = (size or self.config.adjusted_piece_size).x
        scale = piece_width / image.width
        offset = Vector.of(self.config.effective_border_fill).divide(scale)
        return ImageSpec(image, scale=scale, offset=offset)

    async def create_match_template(
        self,
        background: Union[Background, Image.Image, str],
        *,
        id: str,
        left: bool = False,
        odd: bool = False,
        right_target_id: Optional[str] = None,
        target_position: Optional[Vector] = None,
        size: Optional[Vector] = None,
    ) -> PieceTemplate:
        image = await as_background(background).load(self.muzzle)
        return PieceTemplate(
            structure=LEFT_STRUCTURE if left else RIGHT_STRUCTURE,
            metadata=PieceMetadata(
                id=id,
                left=left,
                odd=odd,
                right_target_id=right_target_id,
                image=self.image_spec(image, size),
                target_position=target_position,
            ),
            size=size,
        )


__all__ = [
    "FLAT",
    "ImageSpec",
    "LEFT_STRUCTURE",
    "NONE",
    "PieceMetadata",
    "PieceTemplate",
    "RIGHT_STRUCTURE",
    "SIDES",
    "SLOT",
    "TAB",
    "TemplateFactory",
    "inserts_match",
    "parse_structure",
]
