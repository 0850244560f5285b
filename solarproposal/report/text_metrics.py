from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from reportlab.pdfbase import pdfmetrics


_WHITESPACE_PATTERN = re.compile(r'\s+')


@dataclass(frozen=True)
class FontFace:
    """A registered font, identified by its reportlab name."""

    name: str

    def width(self, text: str, size: float) -> float:
        return measure_text_width(text, font_name=self.name, font_size=size)


@dataclass(frozen=True)
class DocumentFonts:
    regular: FontFace
    bold: FontFace


@lru_cache(maxsize=4096)
def measure_text_width(text: str, *, font_name: str, font_size: float) -> float:
    if not text:
        return 0.0
    return float(pdfmetrics.stringWidth(text, font_name, float(font_size)))


def tokenize(text: str) -> list[str]:
    return [token for token in _WHITESPACE_PATTERN.split(str(text or '')) if token]


def wrap_lines(text: str, max_width: float, font: FontFace, size: float) -> list[str]:
    """Greedy word wrap by rendered width.

    Words are never split: a single word wider than ``max_width`` gets a
    line of its own. Whitespace runs collapse to single spaces.
    """
    lines: list[str] = []
    current = ''
    for word in tokenize(text):
        candidate = f'{current} {word}' if current else word
        if font.width(candidate, size) > max_width:
            if current:
                lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines
