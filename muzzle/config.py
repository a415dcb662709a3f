"""Puzzle configuration with set-if-absent defaults."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .geometry import Axis, Vector

PathLike = Union[str, Path]


class _Unset:
    """Marker for options nobody has written yet."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

OUTLINES = ("rounded", "spiky")
SHUFFLERS = ("grid", "columns", "line")

# Fallbacks used when neither the caller nor a builder wrote an option.
DEFAULTS: Dict[str, Any] = {
    "canvas_width": 600,
    "canvas_height": 600,
    "piece_size": 100,
    "aspect_ratio": 1,
    "stroke_width": 3,
    "line_softness": 0.18,
    "outline": "rounded",
    "shuffler": "grid",
    "shuffle_farness": 0.8,
    "fit_images_vertically": False,
    "scale_images_to_fit": False,
    "reference_insert_axis": None,
    "simple": None,
    "fixed_dimensions": False,
    "submit_delay": 1.5,
    "seed": None,
}


@dataclass
class PuzzleConfig:
    """Options of a puzzle canvas.

    Every option starts as ``UNSET``. Builders only fill options through
    :meth:`set_default`, so anything the caller wrote before building wins.
    ``proximity`` and ``border_fill`` are derived from the piece size when
    left unset.
    """

    canvas_width: Any = UNSET
    canvas_height: Any = UNSET
    piece_size: Any = UNSET
    aspect_ratio: Any = UNSET
    proximity: Any = UNSET
    border_fill: Any = UNSET
    stroke_width: Any = UNSET
    line_softness: Any = UNSET
    outline: Any = UNSET
    shuffler: Any = UNSET
    shuffle_farness: Any = UNSET
    fit_images_vertically: Any = UNSET
    scale_images_to_fit: Any = UNSET
    reference_insert_axis: Any = UNSET
    simple: Any = UNSET
    fixed_dimensions: Any = UNSET
    submit_delay: Any = UNSET
    seed: Any = UNSET

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PuzzleConfig":
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown puzzle options: {', '.join(unknown)}")
        config = cls(**payload)
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: PathLike) -> "PuzzleConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        payload = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Puzzle config must be a JSON object")
        return cls.from_dict(payload)

    def validate(self) -> None:
        if self.is_set("outline") and self.outline not in OUTLINES:
            raise ValueError(f"outline must be one of {OUTLINES}, got {self.outline!r}")
        if self.is_set("shuffler") and self.shuffler not in SHUFFLERS:
            raise ValueError(f"shuffler must be one of {SHUFFLERS}, got {self.shuffler!r}")
        if self.is_set("aspect_ratio") and self.aspect_ratio is not None and self.aspect_ratio <= 0:
            raise ValueError("aspect_ratio must be positive")

    # ------------------------------------------------------------------

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def set_default(self, name: str, value: Any) -> Any:
        """Write ``value`` only if ``name`` is still unset; return the effective value."""

        if not self.is_set(name):
            setattr(self, name, value)
        return getattr(self, name)

    def get(self, name: str) -> Any:
        value = getattr(self, name)
        if value is UNSET:
            return DEFAULTS[name]
        return value

    # ------------------------------------------------------------------

    @property
    def adjusted_piece_size(self) -> Vector:
        """The piece size, adjusted to the aspect ratio."""

        aspect_ratio = self.get("aspect_ratio") or 1
        piece_size = self.get("piece_size")
        return Vector(piece_size / aspect_ratio, piece_size)

    @property
    def effective_proximity(self) -> float:
        if self.is_set("proximity"):
            return self.proximity
        return self.adjusted_piece_size.min / 5

    @property
    def effective_border_fill(self):
        if self.get("outline") == "spiky":
            if self.is_set("border_fill") and self.border_fill is not None:
                return self.border_fill
            return self.adjusted_piece_size.divide(10)
        return 0

    @property
    def image_adjustment_axis(self) -> Axis:
        return Axis.VERTICAL if self.get("fit_images_vertically") else Axis.HORIZONTAL

    def outline_config(self) -> Dict[str, Any]:
        if self.get("outline") == "spiky":
            return {"border_fill": self.effective_border_fill}
        return {
            "border_fill": 0,
            "outline": {
                "kind": "rounded",
                "bezelize": True,
                "insert_depth": 3 / 5,
                "bezel_depth": 9 / 10,
                "reference_insert_axis": self.get("reference_insert_axis"),
            },
        }

    def base_config(self) -> Dict[str, Any]:
        """Canvas options handed to the geometry engine."""

        config = {
            "width": self.get("canvas_width"),
            "height": self.get("canvas_height"),
            "piece_size": self.adjusted_piece_size,
            "proximity": self.effective_proximity,
            "stroke_width": self.get("stroke_width"),
            "line_softness": self.get("line_softness"),
            "seed": self.get("seed"),
        }
        config.update(self.outline_config())
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in fields(self) if self.is_set(field.name)}


__all__ = ["DEFAULTS", "OUTLINES", "PuzzleConfig", "SHUFFLERS", "UNSET"]
