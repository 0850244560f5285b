"""Section builders for the proposal document.

Each builder takes a cursor, the slice of the record it renders and the
document fonts, draws onto ``cursor.page`` and returns the cursor where the
next section may start. Coordinates are PDF points, origin bottom-left.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from reportlab.lib import colors

from ..types import Company, Kpis, LineItem, ProposalRecord
from .formatting import format_brl, format_date, format_percent, format_years
from .layout import FOOTER_TEXT, MARGIN, MUTED, RULE_LIGHT, TEXT_SOFT, LayoutCursor, content_width
from .pagination import PageFinisher, PaginationController
from .surface import EmbeddedImage, PageSource, PageSurface, gray, scale_to_fit
from .text_metrics import DocumentFonts, FontFace, wrap_lines


# Cover
LOGO_WIDTH = 140.0
LOGO_MAX_HEIGHT = 140.0
KPI_ROW_TOP_OFFSET = 180.0
KPI_ROW_GAP = 12.0
COVER_DIVIDER_OFFSET = 260.0
COVER_DIVIDER_GAP = 10.0

# KPI cards
KPI_CARD_WIDTH = 120.0
KPI_CARD_HEIGHT = 70.0
KPI_CARD_PADDING = 10.0
KPI_CARD_GUTTER = 12.0
KPI_CARD_FILL = colors.Color(0.98, 0.98, 0.98)
KPI_VALUE_SIZE = 16.0
KPI_VALUE_MIN_SIZE = 8.0

# Items table
ROW_HEIGHT = 20.0
TABLE_FONT_SIZE = 10.0
TOTALS_BLOCK_HEIGHT = 90.0
TOTALS_BLOCK_WIDTH = 220.0
TOTALS_LINE_STEP = 18.0
DESCRIPTION_LIMIT = 90
DESCRIPTION_KEEP = 87

# Charts page
CHART_BOX_HEIGHT = 240.0
CHART_GUTTER = 12.0
NOTES_BOX_GAP = 40.0
NOTES_BOX_HEIGHT = 120.0
NOTES_CONTENT_OFFSET = 36.0

# Bullets
BULLET_TEXT_SIZE = 10.0
BULLET_INDENT = 12.0
BULLET_FIRST_LINE_DROP = 24.0
BULLET_LINE_STEP = 14.0
BULLET_ITEM_GAP = 2.0
SECTION_TITLE_STEP = 18.0


@dataclass(frozen=True)
class TableColumn:
    title: str
    width: float
    align: str = 'left'


TABLE_COLUMNS: tuple[TableColumn, ...] = (
    TableColumn('Descrição', 300.0),
    TableColumn('Qtde', 60.0, 'right'),
    TableColumn('Preço', 90.0, 'right'),
    TableColumn('Total', 90.0, 'right'),
)
TABLE_WIDTH = sum(column.width for column in TABLE_COLUMNS)


@dataclass(frozen=True)
class TableResult:
    cursor: LayoutCursor
    subtotal: Decimal
    rows: int


def _draw_right(page: PageSurface, text: str, *, right: float, y: float, size: float, font: FontFace) -> None:
    page.draw_text(text, x=right - font.width(text, size), y=y, size=size, font=font)


# ----------------------------------------------------------------------------
# Cover
# ----------------------------------------------------------------------------

def cover_metadata_lines(record: ProposalRecord) -> list[str]:
    company_line = record.company.name
    if record.company.tax_id:
        company_line += f' • CNPJ {record.company.tax_id}'
    client_line = f'Cliente: {record.client.name}'
    if record.client.document_id:
        client_line += f' • {record.client.document_id}'
    return [company_line, client_line, f'Data: {format_date(record.issue_date)}']


def kpi_cards(kpis: Kpis) -> list[tuple[str, str, str | None]]:
    payback = format_years(kpis.payback_years)
    if kpis.irr_percent is not None:
        payback += f' (TIR {format_percent(kpis.irr_percent)})'
    return [
        ('Potência do Sistema', f'{kpis.power_kwp:.2f} kWp', None),
        ('Geração Mensal', f'{kpis.monthly_energy_kwh:.0f} kWh/mês', None),
        ('Economia Anual', format_brl(kpis.annual_savings), None),
        ('Payback Estimado', payback, None),
    ]


def fit_font_size(text: str, font: FontFace, max_width: float, *, size: float, min_size: float) -> float:
    """Largest size, stepping down by half points, at which ``text`` fits ``max_width``."""
    while size > min_size and font.width(text, size) > max_width:
        size -= 0.5
    return max(size, min_size)


def draw_kpi_card(
    cursor: LayoutCursor,
    title: str,
    value: str,
    unit: str | None,
    fonts: DocumentFonts,
) -> float:
    """Draw one card with its top-left corner at the cursor; returns the next card's x."""
    page, x, y = cursor.page, cursor.x, cursor.y
    page.draw_rectangle(
        x=x,
        y=y - KPI_CARD_HEIGHT,
        width=KPI_CARD_WIDTH,
        height=KPI_CARD_HEIGHT,
        fill=KPI_CARD_FILL,
        border=RULE_LIGHT,
        border_width=0.6,
    )
    text_x = x + KPI_CARD_PADDING
    page.draw_text(title, x=text_x, y=y - KPI_CARD_PADDING - 14, size=9, font=fonts.regular, color=MUTED)
    value_size = fit_font_size(
        value,
        fonts.bold,
        KPI_CARD_WIDTH - 2 * KPI_CARD_PADDING,
        size=KPI_VALUE_SIZE,
        min_size=KPI_VALUE_MIN_SIZE,
    )
    page.draw_text(value, x=text_x, y=y - KPI_CARD_PADDING - 32, size=value_size, font=fonts.bold)
    if unit:
        page.draw_text(unit, x=text_x, y=y - KPI_CARD_PADDING - 48, size=9, font=fonts.regular, color=MUTED)
    return x + KPI_CARD_WIDTH + KPI_CARD_GUTTER


def draw_kpi_row(cursor: LayoutCursor, kpis: Kpis, fonts: DocumentFonts) -> LayoutCursor:
    card_x = cursor.x
    for title, value, unit in kpi_cards(kpis):
        card_x = draw_kpi_card(cursor.at(x=card_x), title, value, unit, fonts)
    return cursor.at(y=cursor.y - KPI_CARD_HEIGHT)


def draw_cover(
    cursor: LayoutCursor,
    record: ProposalRecord,
    fonts: DocumentFonts,
    *,
    logo: EmbeddedImage | None = None,
) -> LayoutCursor:
    page, x = cursor.page, cursor.x
    y = cursor.y

    if logo is not None:
        logo_width, logo_height = scale_to_fit(logo, LOGO_WIDTH, LOGO_MAX_HEIGHT)
        page.draw_image(logo, x=x, y=y - logo_height, width=logo_width, height=logo_height)
        y -= logo_height + 12

    page.draw_text(record.title, x=x, y=y - 24, size=22, font=fonts.bold)
    y -= 44
    for line in cover_metadata_lines(record):
        page.draw_text(line, x=x, y=y, size=11, font=fonts.regular, color=TEXT_SOFT)
        y -= 18

    # A tall logo pushes the cards and the divider down with the text block.
    kpi_top = min(page.height - KPI_ROW_TOP_OFFSET, y - KPI_ROW_GAP)
    draw_kpi_row(cursor.at(y=kpi_top), record.kpis, fonts)

    divider_y = min(
        page.height - COVER_DIVIDER_OFFSET,
        kpi_top - KPI_CARD_HEIGHT - COVER_DIVIDER_GAP,
    )
    page.draw_line(start=(x, divider_y), end=(page.width - MARGIN, divider_y), thickness=1.0, color=RULE_LIGHT)
    return cursor.at(y=divider_y)


# ----------------------------------------------------------------------------
# Items table
# ----------------------------------------------------------------------------

def truncate_description(text: str) -> str:
    if len(text) > DESCRIPTION_LIMIT:
        return text[:DESCRIPTION_KEEP] + '...'
    return text


def draw_table_header(page: PageSurface, x: float, y: float, fonts: DocumentFonts) -> None:
    column_x = x
    for column in TABLE_COLUMNS:
        page.draw_text(column.title, x=column_x + 2, y=y, size=TABLE_FONT_SIZE, font=fonts.bold)
        column_x += column.width
    page.draw_line(start=(x, y - 4), end=(x + TABLE_WIDTH, y - 4), thickness=0.6, color=gray(0.6))


def table_pagination(
    pages: PageSource,
    fonts: DocumentFonts,
    *,
    on_page_finished: PageFinisher | None = None,
) -> PaginationController:
    def _header(page: PageSurface, x: float, y: float) -> None:
        draw_table_header(page, x, y, fonts)

    return PaginationController(pages, header=_header, on_page_finished=on_page_finished)


def _draw_item_row(cursor: LayoutCursor, item: LineItem, fonts: DocumentFonts) -> None:
    page, y = cursor.page, cursor.y
    font = fonts.regular
    cells = (
        truncate_description(item.description),
        str(item.quantity),
        format_brl(item.unit_price),
        format_brl(item.total),
    )
    column_x = cursor.x
    for column, text in zip(TABLE_COLUMNS, cells):
        if column.align == 'right':
            _draw_right(page, text, right=column_x + column.width - 2, y=y, size=TABLE_FONT_SIZE, font=font)
        else:
            page.draw_text(text, x=column_x + 2, y=y, size=TABLE_FONT_SIZE, font=font)
        column_x += column.width


def draw_totals_block(cursor: LayoutCursor, subtotal: Decimal, fonts: DocumentFonts) -> LayoutCursor:
    page = cursor.page
    right = page.width - MARGIN
    label_x = right - TOTALS_BLOCK_WIDTH
    y = cursor.y

    def _line(label: str, value: str, font: FontFace) -> None:
        nonlocal y
        page.draw_text(label, x=label_x, y=y, size=TABLE_FONT_SIZE, font=font)
        _draw_right(page, value, right=right, y=y, size=TABLE_FONT_SIZE, font=font)
        y -= TOTALS_LINE_STEP

    amount = format_brl(subtotal)
    _line('Subtotal', amount, fonts.regular)
    # No tax or discount layer: the total repeats the subtotal.
    page.draw_line(start=(label_x, y + 6), end=(right, y + 6), thickness=0.8, color=gray(0.2))
    _line('Total', amount, fonts.bold)
    return cursor.at(y=y)


def draw_items_table(
    cursor: LayoutCursor,
    items: Sequence[LineItem],
    fonts: DocumentFonts,
    pagination: PaginationController,
) -> TableResult:
    page, x = cursor.page, cursor.x
    y = cursor.y - 14

    page.draw_text('Itens do Sistema', x=x, y=y, size=12, font=fonts.bold)
    y -= 20
    draw_table_header(page, x, y, fonts)
    cursor = cursor.at(y=y - 16)

    subtotal = Decimal('0')
    for item in items:
        subtotal += item.total
        cursor = pagination.ensure_space(cursor, ROW_HEIGHT * 2)
        _draw_item_row(cursor, item, fonts)
        cursor = cursor.moved(dy=-ROW_HEIGHT)
        row_page = cursor.page
        row_page.draw_line(
            start=(MARGIN, cursor.y + 4),
            end=(row_page.width - MARGIN, cursor.y + 4),
            thickness=0.3,
            color=gray(0.9),
        )

    cursor = pagination.ensure_space(cursor, TOTALS_BLOCK_HEIGHT)
    cursor = draw_totals_block(cursor, subtotal, fonts)
    return TableResult(cursor=cursor, subtotal=subtotal, rows=len(items))


# ----------------------------------------------------------------------------
# Charts page
# ----------------------------------------------------------------------------

def draw_charts_block(
    cursor: LayoutCursor,
    fonts: DocumentFonts,
    *,
    payback: EmbeddedImage | None = None,
    annual_generation: EmbeddedImage | None = None,
) -> LayoutCursor:
    """Draw up to two charts side by side; returns the cursor at the notes box top."""
    page, x = cursor.page, cursor.x
    y = cursor.y - 10
    page.draw_text('Gráficos', x=x, y=y, size=12, font=fonts.bold)
    y -= 20

    column_width = (content_width(page) - CHART_GUTTER) / 2
    panels = (
        ('Payback (fluxo de caixa)', payback, x),
        ('Geração Anual (kWh)', annual_generation, x + column_width + CHART_GUTTER),
    )
    for caption, image, panel_x in panels:
        if image is None:
            continue
        width, height = scale_to_fit(image, column_width, CHART_BOX_HEIGHT)
        page.draw_text(caption, x=panel_x, y=y - 12, size=10, font=fonts.regular, color=MUTED)
        page.draw_image(image, x=panel_x, y=y - height - 18, width=width, height=height)

    return cursor.at(y=y - CHART_BOX_HEIGHT - NOTES_BOX_GAP)


def draw_notes_box(cursor: LayoutCursor, fonts: DocumentFonts) -> LayoutCursor:
    page, x, top = cursor.page, cursor.x, cursor.y
    page.draw_rectangle(
        x=x,
        y=top - NOTES_BOX_HEIGHT,
        width=content_width(page),
        height=NOTES_BOX_HEIGHT,
        fill=gray(0.985),
        border=RULE_LIGHT,
        border_width=0.6,
    )
    page.draw_text('Notas e Premissas', x=x + 10, y=top - 16, size=11, font=fonts.bold)
    return cursor.at(y=top - NOTES_CONTENT_OFFSET)


# ----------------------------------------------------------------------------
# Bulleted sections
# ----------------------------------------------------------------------------

def bullet_item_height(line_count: int) -> float:
    return BULLET_FIRST_LINE_DROP + BULLET_LINE_STEP * max(0, line_count - 1) + BULLET_ITEM_GAP


def draw_bullets(
    cursor: LayoutCursor,
    items: Iterable[str],
    width: float,
    fonts: DocumentFonts,
    *,
    pagination: PaginationController | None = None,
) -> LayoutCursor:
    font = fonts.regular
    for item in items:
        lines = wrap_lines(item, width - 16, font, BULLET_TEXT_SIZE)
        if not lines:
            continue
        if pagination is not None:
            cursor = pagination.ensure_space(cursor, bullet_item_height(len(lines)))

        page, x, y = cursor.page, cursor.x, cursor.y
        text_x = x + BULLET_INDENT
        page.draw_circle(x=x + 3, y=y - 6, radius=2, color=gray(0.2))
        page.draw_text(lines[0], x=text_x, y=y - 10, size=BULLET_TEXT_SIZE, font=font)
        line_y = y - BULLET_FIRST_LINE_DROP
        for extra in lines[1:]:
            page.draw_text(extra, x=text_x, y=line_y, size=BULLET_TEXT_SIZE, font=font)
            line_y -= BULLET_LINE_STEP
        cursor = cursor.at(y=line_y - BULLET_ITEM_GAP)
    return cursor


def draw_bullet_section(
    cursor: LayoutCursor,
    title: str,
    items: Sequence[str],
    fonts: DocumentFonts,
    *,
    width: float | None = None,
    pagination: PaginationController | None = None,
) -> LayoutCursor:
    if pagination is not None:
        # keep the title together with its first bullet
        cursor = pagination.ensure_space(cursor, SECTION_TITLE_STEP + bullet_item_height(1))
    cursor.page.draw_text(title, x=cursor.x, y=cursor.y, size=12, font=fonts.bold)
    cursor = cursor.moved(dy=-SECTION_TITLE_STEP)
    available = content_width(cursor.page) if width is None else width
    return draw_bullets(cursor, items, available, fonts, pagination=pagination)


# ----------------------------------------------------------------------------
# Footer
# ----------------------------------------------------------------------------

def draw_footer(page: PageSurface, company: Company, fonts: DocumentFonts, *, page_number: int) -> None:
    rule_y = MARGIN + 24
    text_y = MARGIN + 10
    page.draw_line(start=(MARGIN, rule_y), end=(page.width - MARGIN, rule_y), thickness=0.4, color=RULE_LIGHT)

    info = company.name
    if company.contact:
        info += f' • {company.contact}'
    page.draw_text(info, x=MARGIN, y=text_y, size=9, font=fonts.regular, color=FOOTER_TEXT)

    number = str(page_number)
    page.draw_text(
        number,
        x=page.width - MARGIN - fonts.regular.width(number, 9),
        y=text_y,
        size=9,
        font=fonts.regular,
        color=FOOTER_TEXT,
    )
