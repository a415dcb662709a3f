"""Puzzle configuration, solution persistence and grading toolkit."""

__all__ = [
    "AbstractTestHook",
    "AnimationBackground",
    "Axis",
    "Background",
    "Canvas",
    "EventRegistry",
    "GradingRequest",
    "GradingResult",
    "ImageBackground",
    "MemoryCanvas",
    "Muzzle",
    "PathBackground",
    "Piece",
    "PieceMetadata",
    "PieceTemplate",
    "PuzzleConfig",
    "PuzzleTestHook",
    "PuzzleValidator",
    "Solution",
    "SolutionCodec",
    "SubmissionGate",
    "SubmissionPayload",
    "TemplateFactory",
    "UNSET",
    "ValidatorAttacher",
    "Vector",
    "grade",
]

from .base import AbstractTestHook, GradingRequest, GradingResult
from .backgrounds import AnimationBackground, Background, ImageBackground, PathBackground
from .builder import Muzzle
from .canvas import Canvas, MemoryCanvas, Piece, PuzzleValidator
from .config import UNSET, PuzzleConfig
from .events import EventRegistry
from .geometry import Axis, Vector
from .grading import PuzzleTestHook, grade
from .solution import Solution, SolutionCodec
from .submission import SubmissionGate, SubmissionPayload
from .templates import PieceMetadata, PieceTemplate, TemplateFactory
from .validators import ValidatorAttacher
