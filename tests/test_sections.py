import pytest

from conftest import RecordingDocument, RecordingPage, image_bytes, make_items, record_payload
from solarproposal.report.layout import MARGIN, LayoutCursor, page_top_cursor
from solarproposal.report.sections import (
    KPI_CARD_WIDTH,
    draw_bullets,
    draw_charts_block,
    draw_cover,
    draw_footer,
    draw_items_table,
    draw_kpi_row,
    table_pagination,
    truncate_description,
)
from solarproposal.report.surface import decode_image
from solarproposal.types import ProposalRecord


def _table_for(items, fonts):
    document = RecordingDocument()
    page = document.new_page()
    record = ProposalRecord.model_validate(record_payload(itens=items))
    pagination = table_pagination(document, fonts)
    result = draw_items_table(page_top_cursor(page), record.items, fonts, pagination)
    return document, result


def test_kpi_cards_are_spaced_by_card_width_plus_gutter(record, fonts):
    page = RecordingPage(1)
    draw_kpi_row(LayoutCursor(x=MARGIN, y=600, page=page), record.kpis, fonts)

    offsets = [op[1] - MARGIN for op in page.ops_of('rect')]
    assert offsets == [0, 132, 264, 396]
    assert all(op[3] == KPI_CARD_WIDTH for op in page.ops_of('rect'))


def test_kpi_card_texts(record, fonts):
    page = RecordingPage(1)
    draw_kpi_row(LayoutCursor(x=MARGIN, y=600, page=page), record.kpis, fonts)

    texts = page.texts()
    assert '8.20 kWp' in texts
    assert '1050 kWh/mês' in texts
    assert 'R$ 9.800,50' in texts
    assert '4.3 anos (TIR 21.7%)' in texts


def test_kpi_values_shrink_to_fit_inside_the_card(record, fonts):
    page = RecordingPage(1)
    draw_kpi_row(LayoutCursor(x=MARGIN, y=600, page=page), record.kpis, fonts)

    inner_width = KPI_CARD_WIDTH - 20
    [payback] = [op for op in page.ops_of('text') if op[1].startswith('4.3 anos')]
    assert payback[4] < 16
    assert fonts.bold.width(payback[1], payback[4]) <= inner_width
    [power] = [op for op in page.ops_of('text') if op[1] == '8.20 kWp']
    assert power[4] == 16


def test_cover_without_logo_draws_no_image(record, fonts):
    page = RecordingPage(1)
    cursor = draw_cover(page_top_cursor(page), record, fonts)

    assert page.ops_of('image') == []
    assert 'Proposta Residencial 8 kWp' in page.texts()
    assert 'Sol Forte Energia • CNPJ 12.345.678/0001-90' in page.texts()
    assert 'Data: 05/03/2024' in page.texts()
    assert cursor.y == pytest.approx(page.height - 260)


def test_cover_scales_logo_to_fixed_width(record, fonts):
    page = RecordingPage(1)
    logo = decode_image(image_bytes('PNG', size=(280, 70)))
    draw_cover(page_top_cursor(page), record, fonts, logo=logo)

    [(_, image_format, x, y, width, height)] = page.ops_of('image')
    assert image_format == 'PNG'
    assert (x, width, height) == (MARGIN, 140.0, 35.0)
    assert y == pytest.approx(page.height - MARGIN - 35.0)


def test_square_logo_pushes_cards_below_the_text_block(record, fonts):
    page = RecordingPage(1)
    logo = decode_image(image_bytes('PNG', size=(200, 200)))
    cursor = draw_cover(page_top_cursor(page), record, fonts, logo=logo)

    [(_, _, _, logo_y, width, height)] = page.ops_of('image')
    assert (width, height) == (pytest.approx(140.0), pytest.approx(140.0))
    [date_line] = [op for op in page.ops_of('text') if op[1].startswith('Data: ')]
    cards = page.ops_of('rect')
    card_top = cards[0][2] + cards[0][4]
    assert date_line[3] > card_top
    assert all(op[2] + op[4] == pytest.approx(card_top) for op in cards)
    [(_, start, end, _)] = page.ops_of('line')
    assert start[1] == end[1] == pytest.approx(cursor.y)
    assert cursor.y < cards[0][2]


def test_very_tall_logo_is_capped(record, fonts):
    page = RecordingPage(1)
    logo = decode_image(image_bytes('PNG', size=(40, 400)))
    draw_cover(page_top_cursor(page), record, fonts, logo=logo)

    [(_, _, _, _, width, height)] = page.ops_of('image')
    assert (width, height) == (pytest.approx(14.0), pytest.approx(140.0))


def test_long_description_is_truncated():
    text = 'x' * 95
    truncated = truncate_description(text)
    assert truncated == 'x' * 87 + '...'
    assert len(truncated) == 90
    assert truncate_description('y' * 90) == 'y' * 90


def test_single_item_row_and_totals(fonts):
    document, result = _table_for([{'descricao': 'Module', 'qtd': 10, 'precoUnit': '899'}], fonts)
    [page] = document.pages

    assert result.rows == 1
    assert str(result.subtotal) == '8990'
    assert page.texts().count('R$ 8.990,00') == 3
    assert 'R$ 899,00' in page.texts()
    assert len(page.ops_of('line')) == 3


def test_empty_table_draws_header_and_zero_totals(fonts):
    document, result = _table_for([], fonts)
    [page] = document.pages

    texts = page.texts()
    assert texts[:5] == ['Itens do Sistema', 'Descrição', 'Qtde', 'Preço', 'Total']
    assert texts.count('R$ 0,00') == 2
    # header underline and the totals rule, no row separators
    assert len(page.ops_of('line')) == 2
    assert result.rows == 0


def test_right_aligned_cells_end_two_points_before_column_edge(fonts):
    document, _ = _table_for([{'descricao': 'Module', 'qtd': 10, 'precoUnit': '899'}], fonts)
    page = document.pages[0]
    row_texts = [op for op in page.ops_of('text') if op[1] == '10']

    [(_, text, x, _, size, font_name)] = row_texts
    right_edge = MARGIN + 300 + 60
    assert x + fonts.regular.width(text, size) == pytest.approx(right_edge - 2)


def test_rows_flow_onto_continuation_pages(fonts):
    document, result = _table_for(make_items(80), fonts)

    assert len(document.pages) == 3
    rows_per_page = [
        sum(1 for text in page.texts() if text.startswith('Item ')) for page in document.pages
    ]
    assert rows_per_page == [30, 31, 19]
    assert result.cursor.page is document.pages[-1]
    assert str(result.subtotal) == '800.00'


def test_continuation_pages_repeat_header_before_rows(fonts):
    document, _ = _table_for(make_items(80), fonts)

    for page in document.pages[1:]:
        texts = page.texts()
        assert texts[:4] == ['Descrição', 'Qtde', 'Preço', 'Total']
        assert 'Itens do Sistema' not in texts
        header = page.ops_of('text')[0]
        assert header[3] == pytest.approx(page.height - MARGIN - 14)


def test_no_row_is_drawn_inside_the_bottom_reserve(fonts):
    document, _ = _table_for(make_items(120), fonts)

    for page in document.pages:
        for op in page.ops_of('text'):
            assert op[3] >= MARGIN + 80


def test_totals_move_to_new_page_when_rows_fill_the_first(fonts):
    document, _ = _table_for(make_items(30), fonts)

    assert len(document.pages) == 2
    assert 'Subtotal' in document.pages[1].texts()
    assert 'Subtotal' not in document.pages[0].texts()


def test_charts_block_skips_missing_panels(fonts):
    page = RecordingPage(3)
    chart = decode_image(image_bytes('JPEG', size=(800, 500)))
    cursor = draw_charts_block(page_top_cursor(page), fonts, payback=None, annual_generation=chart)

    [(_, image_format, x, _, width, height)] = page.ops_of('image')
    column_width = (page.width - 2 * MARGIN - 12) / 2
    assert image_format == 'JPEG'
    assert x == pytest.approx(MARGIN + column_width + 12)
    assert width == pytest.approx(column_width)
    assert height <= 240
    assert 'Payback (fluxo de caixa)' not in page.texts()
    assert 'Geração Anual (kWh)' in page.texts()
    assert cursor.y == pytest.approx(page.height - MARGIN - 30 - 240 - 40)


def test_bullets_skip_empty_items_and_wrap_long_ones(fonts):
    page = RecordingPage(3)
    long_item = ' '.join(['Premissa longa com várias palavras'] * 6)
    cursor = draw_bullets(LayoutCursor(x=MARGIN, y=500, page=page), ['', long_item, 'Curta'], 300, fonts)

    assert len(page.ops_of('circle')) == 2
    assert page.ops_of('circle')[0][1:] == (MARGIN + 3, 494, 2)
    first_text = page.ops_of('text')[0]
    assert (first_text[2], first_text[3]) == (MARGIN + 12, 490)
    assert cursor.y < 500 - 24 - 14


def test_footer_places_page_number_at_right_margin(record, fonts):
    page = RecordingPage(2)
    draw_footer(page, record.company, fonts, page_number=2)

    texts = page.ops_of('text')
    assert texts[0][1] == 'Sol Forte Energia • contato@solforte.com.br'
    number = texts[1]
    assert number[1] == '2'
    assert number[2] + fonts.regular.width('2', 9) == pytest.approx(page.width - MARGIN)
    assert number[3] == MARGIN + 10
    [(_, start, end, thickness)] = page.ops_of('line')
    assert start[1] == end[1] == MARGIN + 24
