"""Build puzzle canvases, persist their solutions and submit them."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from PIL import Image

from .backgrounds import AnimationBackground, Background, PathBackground, as_background
from .canvas import Canvas, MemoryCanvas
from .config import PuzzleConfig
from .events import READY, SUBMIT, VALID, EventRegistry
from .geometry import Axis, Number, Vector
from .solution import Solution, SolutionCodec
from .submission import SubmissionGate, SubmissionPayload
from .templates import PieceTemplate, TemplateFactory
from .validators import ValidatorAttacher

logger = logging.getLogger(__name__)

BackgroundLike = Union[Background, Image.Image, str, Path]
CanvasFactory = Callable[[str, Dict[str, Any]], Canvas]


class Muzzle:
    """Puzzle building context for one canvas of a page.

    Build a puzzle with :meth:`basic`, :meth:`match`, :meth:`choose`,
    :meth:`multi` or :meth:`custom`. Options written to :attr:`config`
    before building are never overridden by the builders' own defaults.
    """

    def __init__(
        self,
        canvas_id: str = "muzzle-canvas",
        *,
        config: Optional[PuzzleConfig] = None,
        canvas_factory: CanvasFactory = MemoryCanvas,
    ) -> None:
        self.canvas_id = canvas_id
        self.config = config or PuzzleConfig()
        self.canvas_factory = canvas_factory
        self.events = EventRegistry()
        self.expected_refs_are_only_descriptive = False
        self.previous_solution_content: Optional[str] = None
        self.aux: Dict[str, "Muzzle"] = {}
        self.animations: List[AnimationBackground] = []
        self._expected_refs: Optional[List[List[Number]]] = None
        self._canvas: Optional[Canvas] = None
        self._gate: Optional[SubmissionGate] = None

    @property
    def canvas(self) -> Optional[Canvas]:
        """The active canvas, or ``None`` until a build finished."""

        return self._canvas

    def _require_canvas(self) -> Canvas:
        if self._canvas is None:
            raise RuntimeError("No puzzle has been built yet")
        return self._canvas

    @property
    def expected_refs(self) -> Optional[List[List[Number]]]:
        return self._expected_refs

    def expect(self, refs: Sequence[Sequence[Number]]) -> None:
        self._expected_refs = [list(ref) for ref in refs]

    def another(self, canvas_id: str) -> "Muzzle":
        """Create a supplementary context for another canvas of the same page."""

        muzzle = Muzzle(canvas_id, canvas_factory=self.canvas_factory)
        self.aux[canvas_id] = muzzle
        return muzzle

    @staticmethod
    def image(path: Union[str, Path]) -> PathBackground:
        return PathBackground(path)

    @staticmethod
    def animation(
        patch_path: Union[str, Path],
        animation_interval: float = 0.1,
        patch_width: int = 4,
        patch_height: int = 4,
    ) -> AnimationBackground:
        return AnimationBackground(patch_path, animation_interval, patch_width, patch_height)

    # ------------------------------------------------------------------
    # Events

    def register(self, event: str, callback: Callable[..., Any]) -> None:
        self.events.register(event, callback)

    def on_ready(self, callback: Callable[[], Any]) -> None:
        self.register(READY, callback)

    def on_valid(self, callback: Callable[[], Any]) -> None:
        self.register(VALID, callback)

    def on_submit(self, callback: Callable[[SubmissionPayload], Any]) -> None:
        self.register(SUBMIT, callback)

    def run(self, callback: Callable[[], Any]) -> None:
        self.events.run(callback)

    # ------------------------------------------------------------------
    # Building

    async def basic(self, cols: int, rows: int, background: BackgroundLike) -> Canvas:
        """A rectangular jigsaw cut from one background, submitted when solved."""

        self.stop_animations()
        self.config.set_default("aspect_ratio", cols / rows)
        self.config.set_default("simple", True)
        self.config.set_default("shuffler", "grid")
        self.config.set_default("outline", "rounded")

        (image,) = await self._gather(as_background(background).load(self))
        canvas = self._start_new_canvas_config(image=image)
        canvas.adjust_images_to_puzzle(self.config.image_adjustment_axis)
        canvas.autogenerate(horizontal_pieces_count=cols, vertical_pieces_count=rows)
        self._validator_attacher().attach_basic(canvas)
        self._shuffle(canvas)
        self._finish_canvas_config()
        return canvas

    async def multi(self, cols: int, rows: int, backgrounds: Sequence[BackgroundLike]) -> Canvas:
        """A grid jigsaw stacking one block of ``rows`` per background."""

        if not backgrounds:
            raise ValueError("multi needs at least one background")
        self.stop_animations()
        self.config.set_default("aspect_ratio", cols / rows)
        self.config.set_default("shuffler", "grid")

        images = await self._gather(*(as_background(it).load(self) for it in backgrounds))
        canvas = self._start_new_canvas_config(images=images)
        canvas.autogenerate(horizontal_pieces_count=cols, vertical_pieces_count=rows * len(images))
        canvas.attach_solved_validator()
        self._shuffle(canvas)
        self._finish_canvas_config()
        return canvas

    async def match(
        self,
        left_assets: Sequence[BackgroundLike],
        right_assets: Sequence[BackgroundLike],
        *,
        left_odd_assets: Sequence[BackgroundLike] = (),
        right_odd_assets: Sequence[BackgroundLike] = (),
        right_aspect_ratio: float = 1,
    ) -> Canvas:
        """Two columns where each left piece must be connected to its right partner.

        Odd pieces are distractors that take no part in validation.
        """

        if len(left_assets) != len(right_assets):
            raise ValueError(
                f"match needs as many right assets as left ones ({len(left_assets)} != {len(right_assets)})"
            )
        self.stop_animations()
        self.config.set_default("reference_insert_axis", Axis.VERTICAL)
        self.config.set_default("simple", False)
        self.config.set_default("shuffler", "columns")

        factory = TemplateFactory(self.config, self)
        piece_size = self.config.get("piece_size")
        right_size = self.config.adjusted_piece_size.multiply((right_aspect_ratio, 1))

        def left_template(index: int, asset: BackgroundLike, **options):
            return factory.create_match_template(
                asset,
                left=True,
                target_position=Vector.of(piece_size).multiply((1, index)),
                **options,
            )

        def right_template(index: int, asset: BackgroundLike, **options):
            return factory.create_match_template(
                asset,
                size=right_size,
                target_position=Vector.of(piece_size).multiply((2, index)),
                **options,
            )

        pending = []
        for i, (left, right) in enumerate(zip(left_assets, right_assets)):
            pending.append(left_template(i + 1, left, id=f"l{i}", right_target_id=f"r{i}"))
            pending.append(right_template(i + 1, right, id=f"r{i}"))
        # Odd pieces start on the row below the last real pair.
        for i, asset in enumerate(left_odd_assets):
            pending.append(left_template(len(left_assets) + i + 1, asset, id=f"lo{i}", odd=True))
        for i, asset in enumerate(right_odd_assets):
            pending.append(right_template(len(right_assets) + i + 1, asset, id=f"ro{i}", odd=True))

        templates: List[PieceTemplate] = await self._gather(*pending)
        canvas = self._start_new_canvas_config(max_pieces_count=Vector(2, len(left_assets)))
        canvas.adjust_images_to_piece(self.config.image_adjustment_axis)
        for template in templates:
            canvas.sketch_piece(template)
        self._shuffle(canvas)
        self._validator_attacher().attach_match(canvas)
        self._finish_canvas_config()
        return canvas

    async def choose(
        self,
        left_asset: BackgroundLike,
        right_asset: BackgroundLike,
        left_odd_assets: Sequence[BackgroundLike] = (),
    ) -> Canvas:
        """A single pair to connect among left distractors, laid out in a line."""

        self.config.set_default("shuffler", "line")
        return await self.match([left_asset], [right_asset], left_odd_assets=left_odd_assets)

    async def custom(self, canvas: Canvas) -> Canvas:
        """Register a canvas that was built elsewhere."""

        self.stop_animations()
        self._start_canvas_config(canvas)
        self._finish_canvas_config()
        return canvas

    def _validator_attacher(self) -> ValidatorAttacher:
        return ValidatorAttacher(
            self._expected_refs,
            expected_refs_are_only_descriptive=self.expected_refs_are_only_descriptive,
        )

    def _shuffle(self, canvas: Canvas) -> None:
        canvas.shuffle(self.config.get("shuffler"), self.config.get("shuffle_farness"))

    async def _gather(self, *loads: Awaitable[Any]) -> List[Any]:
        """Wait for every load, then raise the first failure if any."""

        results = await asyncio.gather(*loads, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            self.stop_animations()
            raise errors[0]
        return list(results)

    def stop_animations(self) -> None:
        for animation in self.animations:
            animation.stop()
        self.animations.clear()

    def _start_new_canvas_config(self, **options: Any) -> Canvas:
        self.config.validate()
        options.update(self.config.base_config())
        canvas = self.canvas_factory(self.canvas_id, options)
        self._start_canvas_config(canvas)
        return canvas

    def _start_canvas_config(self, canvas: Canvas) -> None:
        self._canvas = canvas

    def _finish_canvas_config(self) -> None:
        canvas = self._require_canvas()
        canvas.on_valid(lambda: self.events.fire(VALID))
        self._gate = SubmissionGate(canvas, self.events, submit_delay=self.config.get("submit_delay"))
        self.ready()
        self._gate.watch()
        logger.debug("Canvas %s ready with %d pieces", self.canvas_id, len(canvas.pieces))

    def ready(self) -> None:
        """Load the previous solution, draw the canvas and fire ``ready``."""

        self.load_previous_solution()
        self.reset_coordinates()
        self._require_canvas().draw()
        self.events.fire(READY)

    # ------------------------------------------------------------------
    # Scaling

    def scale(self, width: Number, height: Number) -> None:
        if self.config.get("fixed_dimensions") or self._canvas is None:
            return
        factor = self.optimal_scale_factor(width, height)
        self._canvas.resize(width, height)
        self._canvas.scale(factor)
        self._canvas.redraw()
        self.focus(width, height, factor)

    def optimal_scale_factor(self, width: Number, height: Number) -> float:
        factors = Vector(width, height).divide(self._require_canvas().puzzle_diameter)
        return factors.min / 1.75

    def focus(self, width: Number, height: Number, factor: float) -> None:
        """Centre the pieces within a viewport of the given size."""

        canvas = self._require_canvas()
        area = Vector(width, height).divide(factor)
        offset = area.minus(canvas.puzzle_diameter).divide(-2)
        canvas.set_offset(offset)

    # ------------------------------------------------------------------
    # Persistence

    @property
    def solution(self) -> Solution:
        return SolutionCodec(self._require_canvas()).export()

    @property
    def solution_content(self) -> str:
        return SolutionCodec(self._require_canvas()).dumps()

    def load_solution(self, solution: Solution) -> None:
        SolutionCodec(self._require_canvas()).load(solution)

    def load_previous_solution(self) -> bool:
        return SolutionCodec(self._require_canvas()).load_content(self.previous_solution_content)

    def reset_coordinates(self) -> None:
        SolutionCodec(self._require_canvas()).reset_coordinates()

    def dump_previous_solution(self) -> None:
        """Store the live solution so the host editor can persist it."""

        self.previous_solution_content = self.solution_content

    # ------------------------------------------------------------------
    # Submitting

    @property
    def client_result_status(self) -> str:
        return self._require_gate().client_result_status

    def submit(self) -> SubmissionPayload:
        return self._require_gate().submit()

    async def drain(self) -> None:
        await self._require_gate().drain()

    def _require_gate(self) -> SubmissionGate:
        if self._gate is None:
            raise RuntimeError("No puzzle has been built yet")
        return self._gate

    def describe(self) -> Dict[str, Any]:
        canvas = self._require_canvas()
        pieces = []
        for piece in canvas.pieces:
            entry = {
                "id": piece.id,
                "structure": piece.structure,
                "position": piece.position.to_list(),
                "size": piece.size.to_list(),
                "metadata": piece.metadata.to_dict(),
                "right_connection": piece.right_connection.id if piece.right_connection else None,
            }
            pieces.append(entry)
        return {
            "canvas_id": self.canvas_id,
            "valid": canvas.valid,
            "pieces": pieces,
            "solution": self.solution.to_dict(),
        }


__all__ = ["Muzzle"]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a headless puzzle and print its pieces")
    parser.add_argument("--config", type=Path, default=None, help="JSON file with puzzle options")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--previous-solution", type=str, default=None, help="Persisted solution JSON")
    parser.add_argument("--expect", type=str, default=None, help="JSON list of expected [x, y] grid refs")
    subparsers = parser.add_subparsers(dest="kind", required=True)

    basic = subparsers.add_parser("basic", help="Grid jigsaw from one image")
    basic.add_argument("cols", type=int)
    basic.add_argument("rows", type=int)
    basic.add_argument("background", type=Path)

    match = subparsers.add_parser("match", help="Match left images with right images")
    match.add_argument("--left", type=Path, nargs="+", required=True)
    match.add_argument("--right", type=Path, nargs="+", required=True)
    match.add_argument("--left-odd", type=Path, nargs="*", default=[])
    match.add_argument("--right-odd", type=Path, nargs="*", default=[])
    match.add_argument("--right-aspect-ratio", type=float, default=1)

    choose = subparsers.add_parser("choose", help="Choose the right image for one left image")
    choose.add_argument("left", type=Path)
    choose.add_argument("right", type=Path)
    choose.add_argument("--left-odd", type=Path, nargs="*", default=[])
    return parser.parse_args(argv)


async def _build(args: argparse.Namespace) -> Dict[str, Any]:
    config = PuzzleConfig.from_file(args.config) if args.config else PuzzleConfig()
    if args.seed is not None:
        config.seed = args.seed
    muzzle = Muzzle(config=config)
    muzzle.previous_solution_content = args.previous_solution
    if args.expect:
        muzzle.expect(json.loads(args.expect))

    if args.kind == "basic":
        await muzzle.basic(args.cols, args.rows, args.background)
    elif args.kind == "match":
        await muzzle.match(
            args.left,
            args.right,
            left_odd_assets=args.left_odd,
            right_odd_assets=args.right_odd,
            right_aspect_ratio=args.right_aspect_ratio,
        )
    else:
        await muzzle.choose(args.left, args.right, args.left_odd)
    return muzzle.describe()


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    result = asyncio.run(_build(args))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
