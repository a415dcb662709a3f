import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from muzzle.base import GradingRequest
from muzzle.grading import PuzzleTestHook, grade, main, parse_expected

EXPECT_TEST = "Muzzle.expect([[1, 2], [1, 3]])\nMuzzle.basic(1, 2, 'an_image.png')\n"


def _content(*positions) -> str:
    return json.dumps({"positions": [list(position) for position in positions]})


class PuzzleTestHookTests(unittest.TestCase):
    def setUp(self) -> None:
        self.hook = PuzzleTestHook()

    def test_right_exact_positions_pass(self) -> None:
        result = self.hook.grade({"test": EXPECT_TEST, "content": _content((100, 200), (100, 300))})
        self.assertEqual(result.to_dict(), {"status": "passed", "feedback": ""})

    def test_wrong_exact_positions_fail(self) -> None:
        result = self.hook.grade({"test": EXPECT_TEST, "content": _content((100, 200), (100, 400))})
        self.assertEqual(result.to_dict(), {"status": "failed", "feedback": ""})

    def test_right_relative_positions_pass(self) -> None:
        result = self.hook.grade({"test": EXPECT_TEST, "content": _content((200, 300), (200, 400))})
        self.assertEqual(result.status, "passed")

    def test_wrong_relative_positions_fail(self) -> None:
        result = self.hook.grade({"test": EXPECT_TEST, "content": _content((200, 300), (200, 450))})
        self.assertEqual(result.status, "failed")

    def test_grade_is_translation_invariant(self) -> None:
        layout = [(0, 0), (100, 0), (0, 100)]
        test = "Muzzle.expect([[0, 0], [1, 0], [0, 1]])"
        for dx, dy in ((0, 0), (37, -12), (-500, 250), (0.5, 0.25)):
            shifted = [(x + dx, y + dy) for x, y in layout]
            with self.subTest(offset=(dx, dy)):
                self.assertEqual(grade({"test": test, "content": _content(*shifted)}).status, "passed")
        broken = [(0, 0), (100, 0), (0, 101)]
        self.assertEqual(grade({"test": test, "content": _content(*broken)}).status, "failed")

    def test_client_result_is_trusted(self) -> None:
        result = self.hook.grade(
            {
                "test": EXPECT_TEST,
                "content": _content((100, 200), (100, 300)),
                "client_result": {"status": "failed"},
            }
        )
        self.assertEqual(result.status, "failed")

        result = self.hook.grade(
            {"test": EXPECT_TEST, "content": "garbage", "client_result": {"status": "passed"}}
        )
        self.assertEqual(result.status, "passed")

    def test_missing_expectation_passes(self) -> None:
        result = self.hook.grade({"test": "Muzzle.basic(1, 2, 'an_image.png')\n", "content": _content((1, 2))})
        self.assertEqual(result.to_dict(), {"status": "passed", "feedback": ""})

    def test_unparseable_inputs_pass(self) -> None:
        self.assertEqual(grade({"test": "Muzzle.expect([[1, 2], oops)", "content": _content((1, 2))}).status, "passed")
        self.assertEqual(grade({"test": EXPECT_TEST, "content": "{not json"}).status, "passed")
        self.assertEqual(grade({"test": "Muzzle.expect([1, 2])", "content": _content((1, 2))}).status, "passed")
        self.assertEqual(grade({"test": EXPECT_TEST, "content": ""}).status, "passed")

    def test_bare_position_lists_are_accepted(self) -> None:
        self.assertEqual(grade({"test": EXPECT_TEST, "content": "[[100, 200], [100, 300]]"}).status, "passed")
        self.assertEqual(grade({"test": EXPECT_TEST, "content": "[[100, 200], [100, 400]]"}).status, "failed")

    def test_piece_count_mismatch_fails(self) -> None:
        result = grade({"test": EXPECT_TEST, "content": _content((100, 200), (100, 300), (100, 400))})
        self.assertEqual(result.status, "failed")

    def test_unknown_client_status_is_ignored(self) -> None:
        request = GradingRequest.from_dict(
            {"test": EXPECT_TEST, "content": _content((100, 200), (100, 400)), "client_result": {"status": "maybe"}}
        )
        self.assertIsNone(request.client_status)
        self.assertEqual(self.hook.grade(request).status, "failed")

    def test_grade_all_keeps_request_order(self) -> None:
        results = self.hook.grade_all(
            [
                {"test": EXPECT_TEST, "content": _content((100, 200), (100, 400))},
                {"test": EXPECT_TEST, "content": _content((0, 0), (0, 100))},
                {"test": "", "content": "", "client_result": {"status": "failed"}},
            ]
        )
        self.assertEqual([result.status for result in results], ["failed", "passed", "failed"])

    def test_expectation_may_span_lines(self) -> None:
        refs = parse_expected("Muzzle.expect([\n  [1, 2],\n  [1, 3]\n])\n")
        self.assertEqual(refs, [[1, 2], [1, 3]])


class GradingCliTests(unittest.TestCase):
    def test_main_prints_result(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            request_path = Path(tmp) / "request.json"
            request_path.write_text(
                json.dumps({"test": EXPECT_TEST, "content": _content((100, 200), (100, 400))}),
                encoding="utf-8",
            )
            buffer = io.StringIO()
            with redirect_stdout(buffer):
                main([str(request_path)])
        self.assertEqual(json.loads(buffer.getvalue()), {"status": "failed", "feedback": ""})

    def test_missing_request_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            PuzzleTestHook().grade_file("/nonexistent/request.json")


if __name__ == "__main__":
    unittest.main()
