import json
import tempfile
import unittest
from pathlib import Path

from muzzle.config import UNSET, PuzzleConfig
from muzzle.geometry import Axis, Vector


class PuzzleConfigTests(unittest.TestCase):
    def test_options_start_unset_and_fall_back_to_defaults(self) -> None:
        config = PuzzleConfig()
        self.assertIs(config.piece_size, UNSET)
        self.assertEqual(config.get("piece_size"), 100)
        self.assertEqual(config.get("canvas_width"), 600)
        self.assertEqual(config.to_dict(), {})

    def test_set_default_never_overrides_explicit_values(self) -> None:
        config = PuzzleConfig(aspect_ratio=3)
        self.assertEqual(config.set_default("aspect_ratio", 2), 3)
        self.assertEqual(config.set_default("simple", True), True)
        self.assertEqual(config.set_default("simple", False), True)

        config.shuffler = "line"
        config.set_default("shuffler", "columns")
        self.assertEqual(config.shuffler, "line")

    def test_explicit_none_counts_as_written(self) -> None:
        config = PuzzleConfig(reference_insert_axis=None)
        config.set_default("reference_insert_axis", Axis.VERTICAL)
        self.assertIsNone(config.reference_insert_axis)

    def test_piece_size_follows_aspect_ratio(self) -> None:
        config = PuzzleConfig(piece_size=120, aspect_ratio=2)
        self.assertEqual(config.adjusted_piece_size, Vector(60, 120))
        self.assertEqual(config.effective_proximity, 12)

    def test_border_fill_depends_on_outline(self) -> None:
        self.assertEqual(PuzzleConfig().effective_border_fill, 0)
        self.assertEqual(PuzzleConfig(outline="spiky").effective_border_fill, Vector(10, 10))
        self.assertEqual(PuzzleConfig(outline="spiky", border_fill=4).effective_border_fill, 4)

    def test_base_config_describes_canvas(self) -> None:
        config = PuzzleConfig(canvas_width=800, stroke_width=1, reference_insert_axis=Axis.VERTICAL)
        base = config.base_config()
        self.assertEqual(base["width"], 800)
        self.assertEqual(base["height"], 600)
        self.assertEqual(base["stroke_width"], 1)
        self.assertEqual(base["piece_size"], Vector(100, 100))
        self.assertEqual(base["proximity"], 20)
        self.assertEqual(base["border_fill"], 0)
        self.assertEqual(base["outline"]["reference_insert_axis"], Axis.VERTICAL)

    def test_image_adjustment_axis(self) -> None:
        self.assertEqual(PuzzleConfig().image_adjustment_axis, Axis.HORIZONTAL)
        self.assertEqual(PuzzleConfig(fit_images_vertically=True).image_adjustment_axis, Axis.VERTICAL)

    def test_from_dict_rejects_unknown_and_invalid_options(self) -> None:
        with self.assertRaises(ValueError):
            PuzzleConfig.from_dict({"pieceSize": 100})
        with self.assertRaises(ValueError):
            PuzzleConfig.from_dict({"outline": "wavy"})
        with self.assertRaises(ValueError):
            PuzzleConfig.from_dict({"shuffler": "spiral"})

    def test_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"piece_size": 80, "seed": 7}), encoding="utf-8")
            config = PuzzleConfig.from_file(path)
        self.assertEqual(config.to_dict(), {"piece_size": 80, "seed": 7})

        with self.assertRaises(FileNotFoundError):
            PuzzleConfig.from_file(Path("/nonexistent/config.json"))


if __name__ == "__main__":
    unittest.main()
