from __future__ import annotations

from dataclasses import dataclass, replace

from .surface import PageSurface, gray


MARGIN = 40.0
# Content must stay above MARGIN + BOTTOM_RESERVE; the footer lives below it.
BOTTOM_RESERVE = 80.0

TEXT_SOFT = gray(0.25)
MUTED = gray(0.35)
FOOTER_TEXT = gray(0.4)
RULE_LIGHT = gray(0.85)


@dataclass(frozen=True)
class LayoutCursor:
    x: float
    y: float
    page: PageSurface

    def at(self, *, x: float | None = None, y: float | None = None) -> LayoutCursor:
        return replace(
            self,
            x=self.x if x is None else x,
            y=self.y if y is None else y,
        )

    def moved(self, *, dx: float = 0.0, dy: float = 0.0) -> LayoutCursor:
        return replace(self, x=self.x + dx, y=self.y + dy)


def page_top_cursor(page: PageSurface) -> LayoutCursor:
    return LayoutCursor(x=MARGIN, y=page.height - MARGIN, page=page)


def content_width(page: PageSurface) -> float:
    return page.width - 2 * MARGIN
