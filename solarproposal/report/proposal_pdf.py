from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..errors import DocumentBuildError, UnsupportedImageFormat
from ..types import AssetBundle, ProposalRecord
from .layout import page_top_cursor
from .pagination import PaginationController
from .sections import (
    draw_bullet_section,
    draw_charts_block,
    draw_cover,
    draw_footer,
    draw_items_table,
    draw_notes_box,
    table_pagination,
)
from .surface import DocumentSurface, EmbeddedImage, PageSurface, ProposalDocument
from .text_metrics import DocumentFonts


logger = logging.getLogger(__name__)

SECTION_GAP = 12.0


class ProposalAssembler:
    """Lays out one proposal, page by page, on a fresh document surface."""

    def __init__(
        self,
        record: ProposalRecord,
        assets: AssetBundle,
        *,
        settings: Settings,
        document: DocumentSurface | None = None,
    ) -> None:
        self.record = record
        self.assets = assets
        self.settings = settings
        if document is None:
            document = ProposalDocument(invariant=settings.pdf_invariant, producer=settings.pdf_producer)
        self.document = document
        self._fonts: DocumentFonts | None = None
        self._finished_pages: list[int] = []

    @property
    def finished_pages(self) -> list[int]:
        return list(self._finished_pages)

    @property
    def fonts(self) -> DocumentFonts:
        if self._fonts is None:
            raise RuntimeError('fonts are embedded at the start of build()')
        return self._fonts

    def _optional_image(self, data: bytes | None, label: str) -> EmbeddedImage | None:
        if not data:
            return None
        try:
            return self.document.embed_image(data)
        except UnsupportedImageFormat as exc:
            logger.warning('Skipping %s image for proposal %r: %s', label, self.record.title, exc)
            return None

    def _finish_page(self, page: PageSurface) -> None:
        draw_footer(page, self.record.company, self.fonts, page_number=page.number)
        self._finished_pages.append(page.number)

    def _draw_cover_page(self) -> None:
        page = self.document.new_page()
        logo = self._optional_image(self.assets.logo, 'logo')
        draw_cover(page_top_cursor(page), self.record, self.fonts, logo=logo)
        self._finish_page(page)

    def _draw_items_pages(self) -> None:
        page = self.document.new_page()
        pagination = table_pagination(self.document, self.fonts, on_page_finished=self._finish_page)
        result = draw_items_table(page_top_cursor(page), self.record.items, self.fonts, pagination)
        if pagination.page_breaks:
            logger.debug('Items table spilled over %d extra page(s)', pagination.page_breaks)
        self._finish_page(result.cursor.page)

    def _draw_charts_page(self) -> None:
        page = self.document.new_page()
        charts = self.assets.charts
        cursor = draw_charts_block(
            page_top_cursor(page),
            self.fonts,
            payback=self._optional_image(charts.payback, 'payback chart'),
            annual_generation=self._optional_image(charts.annual_generation, 'annual generation chart'),
        )
        cursor = draw_notes_box(cursor, self.fonts)

        pagination = PaginationController(self.document, on_page_finished=self._finish_page)
        if self.record.technical_assumptions:
            cursor = draw_bullet_section(
                cursor,
                'Premissas Técnicas',
                self.record.technical_assumptions,
                self.fonts,
                pagination=pagination,
            )
            cursor = cursor.moved(dy=-SECTION_GAP)
        if self.record.notes:
            cursor = draw_bullet_section(
                cursor,
                'Observações',
                self.record.notes,
                self.fonts,
                pagination=pagination,
            )
        self._finish_page(cursor.page)

    def build(self) -> bytes:
        self._fonts = self.document.embed_fonts(
            regular_path=self.settings.pdf_font_regular_path,
            bold_path=self.settings.pdf_font_bold_path,
        )
        self._draw_cover_page()
        self._draw_items_pages()
        self._draw_charts_page()

        self.document.set_metadata(
            title=self.record.title,
            author=self.record.company.name,
            subject=self.settings.pdf_subject,
        )
        return self.document.serialize()


def build_proposal_pdf(
    record: ProposalRecord,
    assets: AssetBundle | None = None,
    *,
    settings: Settings | None = None,
    document: DocumentSurface | None = None,
) -> bytes:
    settings = settings or get_settings()
    assets = assets or AssetBundle()
    try:
        pdf_bytes = ProposalAssembler(record, assets, settings=settings, document=document).build()
    except Exception as exc:
        logger.error('Proposal PDF build failed for %r: %s', record.title, exc)
        raise DocumentBuildError(f'failed to build proposal PDF {record.title!r}: {exc}') from exc

    logger.info(
        'Built proposal PDF %r: %d item(s), subtotal %s, %d bytes',
        record.title,
        len(record.items),
        record.subtotal,
        len(pdf_bytes),
    )
    return pdf_bytes
