"""Decide when a solution is sent and with which client status."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set

from .base import FAILED, PASSED
from .canvas import Canvas
from .events import SUBMIT, EventRegistry
from .solution import SolutionCodec

logger = logging.getLogger(__name__)


@dataclass
class SubmissionPayload:
    content: str
    client_result_status: str

    def to_dict(self) -> dict:
        return {
            "solution": {"content": self.content},
            "client_result": {"status": self.client_result_status},
        }


class SubmissionGate:
    """Send solutions to the ``submit`` slot.

    Automatic submissions wait ``submit_delay`` seconds after the puzzle
    becomes valid and are dropped if it is no longer valid by then.
    """

    def __init__(self, canvas: Canvas, events: EventRegistry, *, submit_delay: float = 1.5) -> None:
        self.canvas = canvas
        self.events = events
        self.submit_delay = submit_delay
        self._pending: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def client_result_status(self) -> str:
        return PASSED if self.canvas.valid else FAILED

    def prepare(self) -> SubmissionPayload:
        return SubmissionPayload(
            content=SolutionCodec(self.canvas).dumps(),
            client_result_status=self.client_result_status,
        )

    def submit(self) -> SubmissionPayload:
        payload = self.prepare()
        logger.info("Submitting solution (%s)", payload.client_result_status)
        self.events.fire(SUBMIT, payload)
        return payload

    def watch(self) -> None:
        """Submit automatically whenever the puzzle becomes valid.

        Must be called from a coroutine: automatic submissions are scheduled
        on that loop, and skipped once it stopped running. Explicit
        :meth:`submit` calls work without a loop.
        """

        self._loop = asyncio.get_running_loop()
        self.canvas.on_valid(self._schedule)

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            logger.info("No running event loop, skipping automatic submission")
            return
        task = loop.create_task(self._settle_and_submit())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _settle_and_submit(self) -> None:
        await asyncio.sleep(self.submit_delay)
        if self.canvas.valid:
            self.submit()
        else:
            logger.debug("Puzzle no longer valid after settling, not submitting")

    async def drain(self) -> None:
        """Wait for scheduled automatic submissions."""

        if self._pending:
            await asyncio.gather(*list(self._pending))


__all__ = ["SubmissionGate", "SubmissionPayload"]
