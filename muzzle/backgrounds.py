"""Image sources that can be cut into puzzle pieces."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple, Union

from PIL import Image

if TYPE_CHECKING:  # pragma: no cover
    from .builder import Muzzle

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _decode(path: Path) -> Image.Image:
    with Image.open(path) as image:
        return image.convert("RGBA")


async def load_image(path: PathLike) -> Image.Image:
    """Decode an image file without blocking the event loop.

    Missing or undecodable files raise ``FileNotFoundError`` or
    ``PIL.UnidentifiedImageError``; there is no retry.
    """

    image = await asyncio.to_thread(_decode, Path(path))
    logger.debug("Decoded %s (%dx%d)", path, image.width, image.height)
    return image


class Background(ABC):
    """A source of piece artwork."""

    @abstractmethod
    async def load(self, muzzle: Optional["Muzzle"] = None) -> Image.Image:
        """Return the decoded image to cut pieces from."""


class ImageBackground(Background):
    """An already decoded image."""

    def __init__(self, image: Image.Image) -> None:
        self.image = image

    async def load(self, muzzle: Optional["Muzzle"] = None) -> Image.Image:
        return self.image


class PathBackground(Background):
    """An image file on disk."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    async def load(self, muzzle: Optional["Muzzle"] = None) -> Image.Image:
        return await load_image(self.path)

    def __repr__(self) -> str:
        return f"PathBackground({self.path.as_posix()!r})"


class AnimationBackground(Background):
    """A sprite sheet of ``patch_width`` x ``patch_height`` frames.

    The first frame is shown right away; later frames only advance while
    the puzzle is valid, so the picture comes alive once it is solved.
    """

    def __init__(
        self,
        patch_path: PathLike,
        animation_interval: float = 0.1,
        patch_width: int = 4,
        patch_height: int = 4,
    ) -> None:
        if patch_width < 1 or patch_height < 1:
            raise ValueError("patch_width and patch_height must be at least 1")
        self.patch_path = Path(patch_path)
        self.animation_interval = animation_interval
        self.patch_width = patch_width
        self.patch_height = patch_height
        self.x_offset = 0
        self.y_offset = 0
        self._sheet: Optional[Image.Image] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def frame_size(self) -> Tuple[int, int]:
        if self._sheet is None:
            raise RuntimeError("Animation has not been loaded")
        return self._sheet.width // self.patch_width, self._sheet.height // self.patch_height

    def current_frame(self) -> Image.Image:
        width, height = self.frame_size
        left = self.x_offset * width
        top = self.y_offset * height
        return self._sheet.crop((left, top, left + width, top + height))

    def advance(self) -> None:
        self.x_offset += 1
        if self.x_offset == self.patch_width:
            self.x_offset = 0
            self.y_offset += 1
            if self.y_offset == self.patch_height:
                self.y_offset = 0

    async def load(self, muzzle: Optional["Muzzle"] = None) -> Image.Image:
        self._sheet = await load_image(self.patch_path)
        frame = self.current_frame()
        self.stop()
        if muzzle is not None:
            self._task = asyncio.get_running_loop().create_task(self._animate(muzzle))
            muzzle.animations.append(self)
        return frame

    @property
    def running(self) -> bool:
        return self._task is not None

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _animate(self, muzzle: "Muzzle") -> None:
        first = True
        while True:
            await asyncio.sleep(self.animation_interval)
            canvas = muzzle.canvas
            if canvas is not None and (first or canvas.valid):
                first = False
                canvas.refill(self.current_frame())
                canvas.redraw()
                self.advance()


def as_background(value: Union[Background, Image.Image, PathLike]) -> Background:
    if isinstance(value, Background):
        return value
    if isinstance(value, Image.Image):
        return ImageBackground(value)
    if isinstance(value, (str, Path)):
        return PathBackground(value)
    raise TypeError(f"Unsupported background: {value!r}")


__all__ = [
    "AnimationBackground",
    "Background",
    "ImageBackground",
    "PathBackground",
    "as_background",
    "load_image",
]
