"""Server-side grading of submitted puzzle solutions."""

from __future__ import annotations

import argparse
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from .base import FAILED, PASSED, AbstractTestHook, GradingRequest, GradingResult
from .solution import Point, Solution, positions_relatively_equal

logger = logging.getLogger(__name__)

EXPECT_PATTERN = re.compile(r"Muzzle\.expect\((.+?)\)", re.DOTALL)
GRID_UNIT = 100


@dataclass
class CompiledPositions:
    client_status: Optional[str]
    expected: Optional[List[Point]]
    actual: Optional[List[Point]]


def parse_expected(test: str) -> Optional[List[Point]]:
    """Extract the refs of a ``Muzzle.expect([...])`` call, without running the test."""

    found = EXPECT_PATTERN.search(test or "")
    if not found:
        return None
    try:
        refs = json.loads(found.group(1))
    except ValueError:
        logger.debug("Ignoring unparseable expectation %r", found.group(1))
        return None
    return refs if isinstance(refs, list) else None


def parse_actual(content: str) -> Optional[List[Point]]:
    try:
        return Solution.from_json(content).positions
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable solution content")
        return None


class PuzzleTestHook(AbstractTestHook[CompiledPositions]):
    """Grade a solution against the layout its test expects.

    A client result sent along the solution is trusted as is: only the
    client can judge connections of match puzzles. Otherwise the layout is
    compared relative to its first piece, one grid unit being 100 pixels.
    Anything that cannot be parsed passes.
    """

    def compile(self, request: GradingRequest) -> CompiledPositions:
        client_status = request.client_status
        if client_status is not None:
            return CompiledPositions(client_status, None, None)
        expected = parse_expected(request.test)
        actual = parse_actual(request.content) if expected is not None else None
        return CompiledPositions(None, expected, actual)

    def run(self, compiled: CompiledPositions) -> GradingResult:
        if compiled.client_status is not None:
            return GradingResult(compiled.client_status)
        if compiled.expected is None or compiled.actual is None:
            return GradingResult(PASSED)
        try:
            equal = positions_relatively_equal(compiled.expected, compiled.actual, GRID_UNIT)
        except (TypeError, ValueError) as exc:
            logger.debug("Ignoring malformed positions: %s", exc)
            return GradingResult(PASSED)
        return GradingResult(PASSED if equal else FAILED)


def grade(request: Union[GradingRequest, Mapping[str, Any]]) -> GradingResult:
    return PuzzleTestHook().grade(request)


__all__ = [
    "CompiledPositions",
    "EXPECT_PATTERN",
    "PuzzleTestHook",
    "grade",
    "parse_actual",
    "parse_expected",
]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grade a submitted puzzle solution")
    parser.add_argument("request", type=Path, help="JSON file with test, content and optional client_result")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    result = PuzzleTestHook().grade_file(args.request)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
