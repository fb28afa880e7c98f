import unittest

from keysmash.metrics import LiveStats
from keysmash.screens import (
    HELP_TEXT,
    RESULT_OPTIONS,
    TOO_SMALL,
    error_lines,
    minimal_lines,
    percent_line,
    progress_bar,
    results_lines,
    spaced,
    stats_line,
    welcome_lines,
)
from keysmash.session import COMPLETED, SessionResult


class TestBlocks(unittest.TestCase):
    def test_spaced_fills_gaps(self):
        self.assertEqual(spaced([(2, "c"), (0, "a")]), ["a", "", "c"])
        self.assertEqual(spaced([]), [])

    def test_welcome(self):
        lines = welcome_lines()
        self.assertEqual(len(lines), 7)
        self.assertEqual(lines[0], "KEYSMASH")
        self.assertEqual(lines[2], "TYPING TEST")
        self.assertIn("ESC", lines[-1])

    def test_error(self):
        lines = error_lines("Error [E002]: No text files in texts directory.")
        self.assertEqual(lines[0], "ERROR")
        self.assertEqual(lines[4], "Error [E002]: No text files in texts directory.")
        self.assertEqual(len(lines), 9)

    def test_results(self):
        result = SessionResult(
            reference_text="hello", user_input="hello", source_label="fox.txt",
            phase=COMPLETED, error_count=2, elapsed=12.34, wpm=41.666, accuracy=87.5, percent=100,
        )
        lines = results_lines(result)
        self.assertEqual(lines[0], "TEST COMPLETE")
        self.assertIn("Source: fox.txt", lines)
        self.assertIn("WPM: 41.7", lines)
        self.assertIn("Accuracy: 87.5%", lines)
        self.assertIn("Time: 12.3s", lines)
        self.assertIn("Characters: 5 (Errors: 2)", lines)
        self.assertEqual(lines[-1], RESULT_OPTIONS)


class TestStatusText(unittest.TestCase):
    def setUp(self):
        self.stats = LiveStats(elapsed=5.31, wpm=33.33, errors=3, percent=40)

    def test_stats_line(self):
        self.assertEqual(stats_line(self.stats), "Time: 5.3s | WPM: 33.3 | Errors: 3")
        self.assertEqual(stats_line(self.stats, compact=True), "WPM: 33.3 | Err: 3")

    def test_percent_line(self):
        self.assertEqual(percent_line(40), "Progress: 40%")

    def test_progress_bar(self):
        self.assertEqual(progress_bar(50, 10), "[=====     ] 50%")
        self.assertEqual(progress_bar(0, 10), "[          ] 0%")
        self.assertEqual(progress_bar(150, 10), "[==========] 100%")
        self.assertEqual(progress_bar(40, 9), "40%")
        self.assertEqual(len(progress_bar(100, 200)), 60 + 2 + 5)

    def test_minimal_lines(self):
        rows = dict(minimal_lines(30, 10, self.stats))
        self.assertEqual(rows[0], "KEYSMASH")
        self.assertEqual(rows[2], TOO_SMALL)
        self.assertEqual(rows[4], "WPM:33.3")
        self.assertEqual(rows[6], HELP_TEXT)

    def test_minimal_lines_tiny(self):
        self.assertEqual(minimal_lines(5, 1), [(0, "KEYSM")])
        self.assertEqual(minimal_lines(0, 0), [])


if __name__ == "__main__":
    unittest.main()
