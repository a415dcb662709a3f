import asyncio
import json
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from muzzle.builder import Muzzle
from muzzle.config import PuzzleConfig
from muzzle.solution import Solution

SOLVED = Solution([[0, 0], [50, 0]])
UNSOLVED = Solution([[0, 0], [400, 0]])


class SubmissionGateTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        background = Path(self.tmp.name) / "background.png"
        Image.new("RGB", (100, 50), (0, 120, 0)).save(background)

        self.muzzle = Muzzle(config=PuzzleConfig(seed=1, submit_delay=0.01))
        self.submissions = []
        self.muzzle.on_submit(self.submissions.append)
        self.canvas = await self.muzzle.basic(2, 1, background)

    async def asyncTearDown(self) -> None:
        self.tmp.cleanup()

    async def test_valid_puzzle_is_submitted_after_settling(self) -> None:
        self.muzzle.load_solution(SOLVED)
        self.assertEqual(self.submissions, [])

        await self.muzzle.drain()

        self.assertEqual(len(self.submissions), 1)
        payload = self.submissions[0]
        self.assertEqual(payload.client_result_status, "passed")
        self.assertEqual(json.loads(payload.content), {"positions": [[0, 0], [50, 0]]})

    async def test_stale_validity_is_not_submitted(self) -> None:
        self.muzzle.load_solution(SOLVED)
        self.muzzle.load_solution(UNSOLVED)

        await self.muzzle.drain()

        self.assertEqual(self.submissions, [])

    async def test_settle_delay_is_respected(self) -> None:
        self.muzzle.load_solution(SOLVED)
        await asyncio.sleep(0)
        self.assertEqual(self.submissions, [])
        await self.muzzle.drain()
        self.assertEqual(len(self.submissions), 1)

    async def test_explicit_submit_recomputes_status(self) -> None:
        payload = self.muzzle.submit()
        self.assertEqual(payload.client_result_status, "failed")

        self.muzzle.load_solution(SOLVED)
        payload = self.muzzle.submit()
        self.assertEqual(payload.client_result_status, "passed")
        self.assertEqual(
            payload.to_dict(),
            {
                "solution": {"content": '{"positions": [[0, 0], [50, 0]]}'},
                "client_result": {"status": "passed"},
            },
        )
        self.assertEqual(len(self.submissions), 2)
        self.assertIs(self.submissions[-1], payload)


class LooplessHostTests(unittest.TestCase):
    def test_moves_after_the_build_loop_ended_only_skip_auto_submission(self) -> None:
        muzzle = Muzzle(config=PuzzleConfig(seed=1, submit_delay=0.01))
        submissions = []
        muzzle.on_submit(submissions.append)
        with tempfile.TemporaryDirectory() as tmp:
            left = Path(tmp) / "left.png"
            right = Path(tmp) / "right.png"
            Image.new("RGB", (40, 40), (200, 0, 0)).save(left)
            Image.new("RGB", (40, 40), (0, 0, 200)).save(right)
            canvas = asyncio.run(muzzle.match([left], [right]))

        with self.assertLogs("muzzle.submission", level="INFO") as logs:
            canvas.connect(canvas.get_piece("l0"), canvas.get_piece("r0"))

        self.assertTrue(canvas.valid)
        self.assertEqual(submissions, [])
        self.assertIn("skipping automatic submission", logs.output[0])

        payload = muzzle.submit()
        self.assertEqual(payload.client_result_status, "passed")
        self.assertEqual(submissions, [payload])


if __name__ == "__main__":
    unittest.main()
