"""HTTP grading boundary."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from flask import Flask, jsonify, request

from .grading import PuzzleTestHook

logger = logging.getLogger(__name__)


def create_app(hook: Optional[PuzzleTestHook] = None) -> Flask:
    app = Flask(__name__)
    test_hook = hook or PuzzleTestHook()

    @app.route("/test", methods=["POST"])
    def run_test():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        result = test_hook.grade(payload)
        logger.info("Graded submission: %s", result.status)
        return jsonify(result.to_dict())

    return app


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the puzzle grading endpoint")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=4569)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    create_app().run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
