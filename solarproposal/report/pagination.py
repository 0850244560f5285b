from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from .layout import BOTTOM_RESERVE, MARGIN, LayoutCursor
from .surface import PageSource, PageSurface


logger = logging.getLogger(__name__)

HeaderRenderer = Callable[[PageSurface, float, float], None]
PageFinisher = Callable[[PageSurface], None]


class PaginationState(str, Enum):
    appending = 'appending'
    overflowing = 'overflowing'


class PaginationController:
    """Reactive page breaking: checks the room for one content unit at a time.

    When ``cursor.y - needed`` would drop below ``margin + bottom_reserve`` the
    current page is finished, a new page is opened and, if configured, the
    continuation header is drawn before the returned cursor.
    """

    HEADER_HEIGHT = 14.0
    HEADER_GAP = 10.0

    def __init__(
        self,
        pages: PageSource,
        *,
        header: HeaderRenderer | None = None,
        on_page_finished: PageFinisher | None = None,
        margin: float = MARGIN,
        bottom_reserve: float = BOTTOM_RESERVE,
    ) -> None:
        self._pages = pages
        self._header = header
        self._on_page_finished = on_page_finished
        self.margin = margin
        self.bottom_reserve = bottom_reserve
        self.state = PaginationState.appending
        self.page_breaks = 0

    def fits(self, cursor: LayoutCursor, needed: float) -> bool:
        return cursor.y - needed >= self.margin + self.bottom_reserve

    def ensure_space(self, cursor: LayoutCursor, needed: float) -> LayoutCursor:
        if self.fits(cursor, needed):
            self.state = PaginationState.appending
            return cursor

        self.state = PaginationState.overflowing
        finished = cursor.page
        if self._on_page_finished is not None:
            self._on_page_finished(finished)

        page = self._pages.new_page()
        self.page_breaks += 1
        top = page.height - self.margin
        next_y = top
        if self._header is not None:
            header_y = top - self.HEADER_HEIGHT
            self._header(page, self.margin, header_y)
            next_y = header_y - self.HEADER_GAP
        logger.debug(
            'Page break after page %s: needed %.1f at y=%.1f, continuing on page %s',
            finished.number,
            needed,
            cursor.y,
            page.number,
        )

        return LayoutCursor(x=cursor.x, y=next_y, page=page)
