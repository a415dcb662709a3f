"""Abstract interfaces for grading submitted solutions."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, TypeVar, Union

PathLike = Union[str, Path]
CompiledT = TypeVar("CompiledT")

PASSED = "passed"
FAILED = "failed"
STATUSES = (PASSED, FAILED)


@dataclass
class GradingRequest:
    """A submission as received on the grading boundary."""

    test: str
    content: str
    client_result: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GradingRequest":
        if not isinstance(payload, Mapping):
            raise TypeError("Grading request must be a JSON object")
        client_result = payload.get("client_result")
        return cls(
            test=str(payload.get("test") or ""),
            content=str(payload.get("content") or ""),
            client_result=dict(client_result) if isinstance(client_result, Mapping) else None,
        )

    @property
    def client_status(self) -> Optional[str]:
        if self.client_result is None:
            return None
        status = self.client_result.get("status")
        return status if status in STATUSES else None

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"test": self.test, "content": self.content}
        if self.client_result is not None:
            payload["client_result"] = self.client_result
        return payload


@dataclass
class GradingResult:
    status: str
    feedback: str = ""

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    def to_dict(self) -> dict:
        return {"status": self.status, "feedback": self.feedback}


class AbstractTestHook(ABC, Generic[CompiledT]):
    """Base class for stateless graders: compile a request, then run it."""

    @abstractmethod
    def compile(self, request: GradingRequest) -> CompiledT:
        """Extract what ``run`` needs from the raw request."""

    @abstractmethod
    def run(self, compiled: CompiledT) -> GradingResult:
        """Grade a compiled request."""

    def grade(self, request: Union[GradingRequest, Mapping[str, Any]]) -> GradingResult:
        if not isinstance(request, GradingRequest):
            request = GradingRequest.from_dict(request)
        return self.run(self.compile(request))

    def grade_all(self, requests: Iterable[Union[GradingRequest, Mapping[str, Any]]]) -> List[GradingResult]:
        return [self.grade(request) for request in requests]

    def grade_file(self, request_path: PathLike) -> GradingResult:
        path = Path(request_path)
        if not path.exists():
            raise FileNotFoundError(f"Request file not found: {path}")
        return self.grade(json.loads(path.read_text(encoding="utf-8")))


__all__ = [
    "AbstractTestHook",
    "FAILED",
    "GradingRequest",
    "GradingResult",
    "PASSED",
    "PathLike",
    "STATUSES",
]
