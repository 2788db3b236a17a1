"""Width-heuristic word wrapping for canvas text nodes."""

from typing import List

# Average glyph width is approximated as font_size / CHAR_WIDTH_DIVISOR
CHAR_WIDTH_DIVISOR = 1.8


def estimate_width(line: str, font_size: float) -> float:
    """Estimated rendered width of a line, in canvas units."""
    return len(line) * (font_size / CHAR_WIDTH_DIVISOR)


def _wrap_paragraph(paragraph: str, max_width: float, font_size: float) -> List[str]:
    lines = []
    current = ""

    for word in paragraph.split():
        candidate = f"{current} {word}" if current else word
        if current and estimate_width(candidate, font_size) > max_width:
            lines.append(current.strip())
            current = word
        else:
            current = candidate

    # A paragraph without words still occupies one (empty) line
    lines.append(current.strip())
    return lines


def wrap_text(text: str, max_width: float, font_size: float) -> List[str]:
    """Greedily break text into lines that fit max_width.

    Words are never split: a word wider than max_width is placed alone on
    its own line and overflows. Newlines in the input are kept as hard
    breaks, each paragraph being wrapped on its own.
    """
    lines: List[str] = []
    for paragraph in text.split("\n"):
        lines.extend(_wrap_paragraph(paragraph, max_width, font_size))
    return lines
