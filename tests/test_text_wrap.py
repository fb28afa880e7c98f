import unittest

from keysmash.text_wrap import wrap, wrap_spans
from keysmash.ui_utils import char_width, display_width


SAMPLES = [
    "This is a test of the word wrapping function. It should wrap at word boundaries.",
    "This contains a verylongwordthatwillneedtobesplitacrossmultiplelines because it's too long.",
    "This has\na newline\nin it.",
    "漢字かな交じり文は二列ずつ使うのでmixedテキストtoo",
    "a\n\n\nb   c\t\td\n",
    "x" * 97,
    "",
]


class TestWrap(unittest.TestCase):
    def test_normal_paragraph(self):
        text = "This is a test of the word wrapping function. It should wrap at word boundaries."
        self.assertEqual(
            wrap(text, 20),
            ["This is a test of", "the word wrapping", "function. It should", "wrap at word", "boundaries."],
        )

    def test_long_word_is_force_split_and_tail_keeps_packing(self):
        text = "This contains a verylongwordthatwillneedtobesplitacrossmultiplelines because it's too long."
        self.assertEqual(
            wrap(text, 20),
            [
                "This contains a",
                "verylongwordthatwill",
                "needtobesplitacrossm",
                "ultiplelines because",
                "it's too long.",
            ],
        )

    def test_newlines_start_new_lines(self):
        self.assertEqual(wrap("This has\na newline\nin it.", 20), ["This has", "a newline", "in it."])

    def test_empty_text_is_zero_lines(self):
        self.assertEqual(wrap("", 20), [])

    def test_single_newline_is_two_empty_lines(self):
        self.assertEqual(wrap("\n", 5), ["", ""])

    def test_blank_paragraphs_are_preserved(self):
        self.assertEqual(wrap("a\n\nb", 10), ["a", "", "b"])
        self.assertEqual(wrap("   \nabc", 10), ["", "abc"])

    def test_single_character(self):
        self.assertEqual(wrap("x", 20), ["x"])

    def test_whitespace_runs_collapse_to_one_space(self):
        self.assertEqual(wrap("a   b\tc", 10), ["a b c"])

    def test_wide_glyphs_split_by_cells(self):
        self.assertEqual(wrap("漢字漢字漢", 4), ["漢字", "漢字", "漢"])

    def test_no_line_exceeds_budget(self):
        for text in SAMPLES:
            for width in range(1, 30):
                for line in wrap(text, width):
                    if display_width(line) <= width:
                        continue
                    # Only a lone wide glyph may overrun, and only at width 1
                    self.assertEqual(width, 1, (text, line))
                    self.assertEqual(len(line), 1, (text, line))
                    self.assertEqual(char_width(line), 2, (text, line))

    def test_ascii_fits_width_one(self):
        for text in SAMPLES:
            if not text.isascii():
                continue
            for line in wrap(text, 1):
                self.assertLessEqual(display_width(line), 1, (text, line))

    def test_wide_glyph_at_width_one_gets_its_own_line(self):
        self.assertEqual(wrap("a漢b", 1), ["a", "漢", "b"])
        self.assertEqual(wrap("漢字", 1), ["漢", "字"])

    def test_deterministic(self):
        for text in SAMPLES:
            self.assertEqual(wrap(text, 7), wrap(text, 7))

    def test_rejects_non_positive_width(self):
        with self.assertRaises(ValueError):
            wrap("abc", 0)


class TestWrapSpans(unittest.TestCase):
    def test_joiner_maps_to_source_whitespace(self):
        self.assertEqual(wrap_spans("ab  cd", 10), [[0, 1, 2, 4, 5]])

    def test_spans_skip_newlines(self):
        self.assertEqual(wrap_spans("ab\ncd", 10), [[0, 1], [3, 4]])

    def test_spans_match_wrapped_text(self):
        for text in SAMPLES:
            lines = wrap(text, 9)
            spans = wrap_spans(text, 9)
            self.assertEqual([len(line) for line in lines], [len(span) for span in spans])
            for line, span in zip(lines, spans):
                for ch, idx in zip(line, span):
                    self.assertTrue(ch == text[idx] or (ch == " " and text[idx].isspace()))


if __name__ == "__main__":
    unittest.main()
