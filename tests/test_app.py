import contextlib
import curses
import io
import json
import logging
import logging.handlers
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from keysmash import app
from keysmash.config import Settings
from keysmash.cursor import CursorController
from keysmash.screens import INPUT_TITLE, REFERENCE_TITLE, TOO_SMALL
from keysmash.session import (
    ABANDONED,
    COMPLETED,
    KEY_BACKSPACE,
    KEY_CANCEL,
    KEY_CHAR,
    KEY_NEWLINE,
    KeyEvent,
    new_session,
)


class FakeScreen:
    """Just enough of a curses window for the driver loops."""

    def __init__(self, width=80, height=24, keys=()):
        self.width = width
        self.height = height
        self.keys = list(keys)
        self.drawn = []
        self.moves = []

    def getmaxyx(self):
        return self.height, self.width

    def erase(self):
        self.drawn = []

    def addstr(self, y, x, text, attr=0):
        self.drawn.append((y, x, text))

    def refresh(self):
        pass

    def move(self, y, x):
        self.moves.append((y, x))

    def keypad(self, flag):
        pass

    def get_wch(self):
        if self.keys:
            return self.keys.pop(0)
        return "\x1b"

    def text(self):
        return [t for _, _, t in self.drawn]


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 0.5
        return self.now


class TestKeyEvent(unittest.TestCase):
    def test_printable(self):
        self.assertEqual(app.key_event("a"), KeyEvent(KEY_CHAR, "a"))
        self.assertEqual(app.key_event("é"), KeyEvent(KEY_CHAR, "é"))
        self.assertEqual(app.key_event("\t"), KeyEvent(KEY_CHAR, "\t"))

    def test_control_keys(self):
        for ch in ("\x1b", 27):
            self.assertEqual(app.key_event(ch), KeyEvent(KEY_CANCEL))
        for ch in ("\x7f", "\b", curses.KEY_BACKSPACE, 127, 8):
            self.assertEqual(app.key_event(ch), KeyEvent(KEY_BACKSPACE))
        for ch in ("\n", "\r", curses.KEY_ENTER, 10, 13):
            self.assertEqual(app.key_event(ch), KeyEvent(KEY_NEWLINE))

    def test_ignored(self):
        for ch in (None, "\x01", curses.KEY_LEFT, curses.KEY_F1):
            self.assertIsNone(app.key_event(ch))

    def test_post_test_choice(self):
        self.assertEqual(app.post_test_choice("R"), app.RETRY)
        self.assertEqual(app.post_test_choice("n"), app.NEW_TEST)
        self.assertEqual(app.post_test_choice("q"), app.QUIT)
        self.assertEqual(app.post_test_choice("\x1b"), app.QUIT)
        self.assertEqual(app.post_test_choice(27), app.QUIT)
        self.assertIsNone(app.post_test_choice("x"))
        self.assertIsNone(app.post_test_choice(curses.KEY_UP))


class TestCliArgs(unittest.TestCase):
    def test_flags_to_env(self):
        env = {}
        argv = ["keysmash", "debug", "--texts-dir=/srv/t", "--strict-newlines", "-l", "/tmp/k.log", "--json"]
        self.assertTrue(app.apply_cli_args(argv, env))
        self.assertEqual(env, {
            "LOG_LEVEL": "DEBUG",
            "KEYSMASH_TEXTS_DIR": "/srv/t",
            "KEYSMASH_NEWLINE_POLICY": "strict",
            "KEYSMASH_LOG_FILE": "/tmp/k.log",
            "LOG_JSON": "1",
        })

    def test_help(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            self.assertFalse(app.apply_cli_args(["keysmash", "--help"], {}))
        self.assertIn("Usage: keysmash", out.getvalue())


class TestLogging(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        for h in list(app.LOGGER.handlers):
            h.close()
        app.LOGGER.handlers = []
        self._tmp.cleanup()

    def test_rotating_file_in_var_dir(self):
        logger = app.setup_logging(Settings(var_dir=self.root), env={"LOG_LEVEL": "warning"})
        self.assertEqual(logger.level, logging.WARNING)
        self.assertEqual(len(logger.handlers), 1)
        handler = logger.handlers[0]
        self.assertIsInstance(handler, logging.handlers.RotatingFileHandler)
        self.assertEqual(Path(handler.baseFilename), self.root / "log" / "keysmash.log")
        self.assertEqual(handler.backupCount, 3)

    def test_explicit_file_and_stderr(self):
        path = self.root / "k.log"
        env = {"KEYSMASH_LOG_FILE": str(path), "KEYSMASH_STDERR_TUI": "1", "LOG_JSON": "1"}
        logger = app.setup_logging(Settings(), env=env)
        self.assertEqual(len(logger.handlers), 2)
        self.assertIsInstance(logger.handlers[0].formatter, app.JsonFormatter)
        for h in logger.handlers:
            h.flush()
        line = path.read_text(encoding="utf-8").splitlines()[0]
        self.assertEqual(json.loads(line)["logger"], "keysmash")

    def test_unusable_log_dir_falls_back_to_stderr(self):
        blocker = self.root / "var"
        blocker.write_text("not a directory", encoding="utf-8")
        logger = app.setup_logging(Settings(var_dir=blocker), env={"LOG_LEVEL": "ERROR"})
        self.assertEqual(len(logger.handlers), 1)
        self.assertNotIsInstance(logger.handlers[0], logging.handlers.RotatingFileHandler)
        self.assertIsInstance(logger.handlers[0], logging.StreamHandler)

    def test_stderr_when_nowhere_else(self):
        logger = app.setup_logging(Settings(), env={})
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0], logging.StreamHandler)


class TestDriver(unittest.TestCase):
    def setUp(self):
        self._out = contextlib.redirect_stdout(io.StringIO())
        self._out.__enter__()
        self.cursor = CursorController(env={})

    def tearDown(self):
        self._out.__exit__(None, None, None)

    def test_session_completes(self):
        scr = FakeScreen(keys=["h", "x", curses.KEY_BACKSPACE, curses.KEY_RESIZE, "i"])
        state = new_session("hi", "hi.txt")
        result = app.run_session(scr, state, Settings(), self.cursor, clock=Clock())
        self.assertEqual(result.phase, COMPLETED)
        self.assertEqual(result.user_input, "hi")
        self.assertEqual(result.error_count, 1)
        self.assertEqual(scr.keys, [])

    def test_session_abandoned_on_escape(self):
        scr = FakeScreen(keys=["h"])
        state = new_session("hello")
        result = app.run_session(scr, state, Settings(), self.cursor, clock=Clock())
        self.assertEqual(result.phase, ABANDONED)
        self.assertEqual(result.user_input, "h")

    def test_strict_newlines_from_settings(self):
        scr = FakeScreen(keys=["a", "\n", "b"])
        state = new_session("ab")
        result = app.run_session(scr, state, Settings(newline_policy="strict"), self.cursor, clock=Clock())
        self.assertEqual(result.phase, COMPLETED)
        self.assertEqual(result.error_count, 0)

    def test_render_full_screen(self):
        scr = FakeScreen(80, 24)
        state = new_session("the quick brown fox", "fox.txt")
        state.user_input = "the"
        state.started = True
        state.start_time = 0.0
        view = app.render_session(scr, state, self.cursor, 2.0)
        self.assertFalse(view.degraded)
        texts = scr.text()
        self.assertIn(REFERENCE_TITLE, texts)
        self.assertIn(INPUT_TITLE, texts)
        self.assertIn("Source: fox.txt", texts)
        self.assertIn("the quick brown fox", texts)
        self.assertEqual(scr.moves[-1], (view.cursor_y, view.cursor_x))

    def test_render_marks_mistyped_trailing_space(self):
        scr = FakeScreen(80, 24)
        state = new_session("ab")
        state.user_input = "a "
        state.started = True
        state.start_time = 0.0
        view = app.render_session(scr, state, self.cursor, 1.0)
        self.assertEqual((view.cursor_y, view.cursor_x), (17, 5))
        self.assertIn((17, 5, " "), scr.drawn)

    def test_render_degraded(self):
        scr = FakeScreen(30, 10)
        view = app.render_session(scr, new_session("abc"), self.cursor, 0.0)
        self.assertTrue(view.degraded)
        self.assertIn(TOO_SMALL, scr.text())
        self.assertEqual(scr.moves, [])

    def test_main_completes_then_quits(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "one.txt").write_text("hi\n", encoding="utf-8")
            scr = FakeScreen(keys=[" ", "h", "i", "q"])
            with mock.patch.object(app, "init_colors"):
                app.main(scr, Settings(texts_dir=tmp))
        self.assertEqual(scr.keys, [])
        self.assertIn("TEST COMPLETE", scr.text())

    def test_main_reports_missing_texts(self):
        scr = FakeScreen(keys=["x"])
        with mock.patch.object(app, "init_colors"), \
                mock.patch.object(app, "find_texts_dir", return_value=None):
            with self.assertLogs("keysmash", level="WARNING"):
                app.main(scr, Settings(texts_dir="/nowhere"))
        self.assertIn("ERROR", scr.text())


if __name__ == "__main__":
    unittest.main()
