"""Test cases for text node word wrapping."""

import unittest

from mcp_canvas_tools.text_wrap import estimate_width, wrap_text

FONT_SIZE = 16
MAX_WIDTH = 240  # 300 wide node minus 2 * 30 padding

SAMPLES = [
    "hello world",
    "The quick brown fox jumps over the lazy dog",
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua.",
    "a " + "x" * 50 + " b",
    "   leading and   repeated   spaces   ",
    "first paragraph\nsecond paragraph with a few more words than fit on a line",
    "",
]


class WrapTextTest(unittest.TestCase):

    def test_short_text_stays_on_one_line(self):
        self.assertEqual(wrap_text("hello world", MAX_WIDTH, FONT_SIZE), ["hello world"])

    def test_greedy_break(self):
        lines = wrap_text("The quick brown fox jumps over the lazy dog", MAX_WIDTH, FONT_SIZE)
        self.assertEqual(lines, ["The quick brown fox jumps", "over the lazy dog"])

    def test_words_are_conserved(self):
        for text in SAMPLES:
            with self.subTest(text=text):
                lines = wrap_text(text, MAX_WIDTH, FONT_SIZE)
                self.assertEqual(" ".join(lines).split(), text.split())

    def test_lines_fit_width_unless_single_word(self):
        for text in SAMPLES:
            for max_width in (40, 100, MAX_WIDTH):
                for line in wrap_text(text, max_width, FONT_SIZE):
                    if len(line.split()) > 1:
                        self.assertLessEqual(estimate_width(line, FONT_SIZE), max_width, line)

    def test_long_word_is_not_broken(self):
        long_word = "x" * 50
        lines = wrap_text(f"a {long_word} b", 100, FONT_SIZE)
        self.assertEqual(lines, ["a", long_word, "b"])

    def test_long_first_word_does_not_leave_empty_line(self):
        long_word = "y" * 40
        self.assertEqual(wrap_text(long_word, 100, FONT_SIZE), [long_word])

    def test_newlines_are_hard_breaks(self):
        self.assertEqual(wrap_text("one\n\ntwo", MAX_WIDTH, FONT_SIZE), ["one", "", "two"])

    def test_empty_text_is_one_empty_line(self):
        self.assertEqual(wrap_text("", MAX_WIDTH, FONT_SIZE), [""])

    def test_non_positive_width_puts_each_word_on_a_line(self):
        self.assertEqual(wrap_text("a b c", 0, FONT_SIZE), ["a", "b", "c"])

    def test_estimate_width(self):
        self.assertAlmostEqual(estimate_width("abcdefghi", 18), 90)


if __name__ == "__main__":
    unittest.main()
