#!/usr/bin/env python3
"""Grade a JSON list of submissions and report how many passed."""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from muzzle.grading import PuzzleTestHook


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "requests",
        type=Path,
        help="JSON file holding a list of {test, content, client_result?} requests",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional path for the graded results JSON",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    requests_path = args.requests.resolve()
    if not requests_path.exists():
        raise FileNotFoundError(f"Requests file not found: {requests_path}")

    payload = json.loads(requests_path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError("Requests file must contain a list of requests")

    graded = PuzzleTestHook().grade_all(payload)
    results: List[dict] = []
    for index, (request, result) in enumerate(zip(payload, graded), start=1):
        record = {"index": index, **result.to_dict()}
        if isinstance(request, dict) and "id" in request:
            record["id"] = request["id"]
        results.append(record)
        print(f"[{index}/{len(payload)}] {record.get('id', index)}: {result.status}")

    totals = Counter(result["status"] for result in results)
    print(f"passed={totals['passed']} failed={totals['failed']}")

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(json.dumps(results, indent=2), encoding="utf-8")
        print(f"Wrote {len(results)} results to {args.output}")


if __name__ == "__main__":
    main()
