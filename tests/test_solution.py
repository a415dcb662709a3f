import unittest

from muzzle.canvas import MemoryCanvas
from muzzle.geometry import Vector
from muzzle.solution import (
    Solution,
    SolutionCodec,
    canonicalize,
    parse_solution,
    positions_relatively_equal,
)
from muzzle.templates import PieceMetadata, PieceTemplate


def _canvas_with_pieces(*positions) -> MemoryCanvas:
    canvas = MemoryCanvas("test", {"piece_size": 100})
    for x, y in positions:
        canvas.sketch_piece(PieceTemplate("----", PieceMetadata(target_position=Vector(x, y))))
    return canvas


class SolutionTests(unittest.TestCase):
    def test_json_round_trip(self) -> None:
        solution = Solution([[10, 20], [30.5, 40]])
        self.assertEqual(solution.to_json(), '{"positions": [[10, 20], [30.5, 40]]}')
        self.assertEqual(Solution.from_json(solution.to_json()), solution)

    def test_invalid_payloads_raise(self) -> None:
        for content in ('{"positions": 3}', '{"positions": [[1]]}', '{"positions": [["a", 1]]}', "42"):
            with self.subTest(content=content):
                with self.assertRaises(ValueError):
                    Solution.from_json(content)

    def test_parse_solution_warns_and_ignores_garbage(self) -> None:
        with self.assertLogs("muzzle.solution", level="WARNING") as logs:
            self.assertIsNone(parse_solution("{not json"))
        self.assertIn("Ignoring unparseable previous solution", logs.output[0])
        self.assertIsNone(parse_solution(None))
        self.assertIsNone(parse_solution(""))

    def test_canonicalize_moves_layout_to_origin(self) -> None:
        self.assertEqual(canonicalize([[50, 70], [150, 20]]), [[0, 50], [100, 0]])
        self.assertEqual(canonicalize([]), [])

    def test_relative_equality_scales_expected_refs(self) -> None:
        self.assertTrue(positions_relatively_equal([[0, 0], [1, 0]], [[7, 7], [57, 7]], unit=(50, 100)))
        self.assertFalse(positions_relatively_equal([[0, 0], [1, 0]], [[7, 7], [107, 7]], unit=(50, 100)))
        self.assertTrue(positions_relatively_equal([], []))
        with self.assertRaises(ValueError):
            positions_relatively_equal([[0, 0, 0]], [[1, 1, 1]])


class SolutionCodecTests(unittest.TestCase):
    def test_export_then_import_reproduces_layout_up_to_translation(self) -> None:
        source = _canvas_with_pieces((120, 40), (320, 40), (220, 190))
        content = SolutionCodec(source).dumps()

        target = _canvas_with_pieces((0, 0), (0, 0), (0, 0))
        codec = SolutionCodec(target)
        self.assertTrue(codec.load_content(content))
        codec.reset_coordinates()

        self.assertEqual(target.points, canonicalize(source.points))
        self.assertEqual(target.points, [[0, 0], [200, 0], [100, 150]])

    def test_corrupt_content_keeps_current_layout(self) -> None:
        canvas = _canvas_with_pieces((5, 5), (300, 5))
        with self.assertLogs("muzzle.solution", level="WARNING"):
            self.assertFalse(SolutionCodec(canvas).load_content("[[1, 2], "))
        self.assertEqual(canvas.points, [[5, 5], [300, 5]])

    def test_content_for_other_piece_count_is_ignored(self) -> None:
        canvas = _canvas_with_pieces((5, 5), (300, 5))
        with self.assertLogs("muzzle.solution", level="WARNING"):
            self.assertFalse(SolutionCodec(canvas).load_content('{"positions": [[0, 0]]}'))
        self.assertEqual(canvas.points, [[5, 5], [300, 5]])


if __name__ == "__main__":
    unittest.main()
