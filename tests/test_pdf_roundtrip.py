from conftest import image_bytes, make_items, record_payload
from solarproposal.adapters.charts import build_chart_images
from solarproposal.adapters.pdf_inspect import inspect_pdf
from solarproposal.report.proposal_pdf import build_proposal_pdf
from solarproposal.types import AssetBundle, ProposalRecord


def test_real_pdf_has_three_pages_and_metadata(record, settings):
    assets = AssetBundle(logo=image_bytes('JPEG'), charts=build_chart_images(record, settings))
    pdf_bytes = build_proposal_pdf(record, assets, settings=settings)

    assert pdf_bytes.startswith(b'%PDF-')
    inspection = inspect_pdf(pdf_bytes)
    assert inspection.page_count == 3
    assert inspection.title == 'Proposta Residencial 8 kWp'
    assert inspection.author == 'Sol Forte Energia'
    assert inspection.subject == 'Proposta de sistema fotovoltaico'
    assert 'Itens do Sistema' in inspection.pages[1]
    assert 'R$ 15.490,00' in inspection.pages[1]
    assert 'Notas e Premissas' in inspection.pages[2]


def test_identical_input_gives_identical_bytes(record, settings):
    assets = AssetBundle(logo=image_bytes('PNG'))

    first = build_proposal_pdf(record, assets, settings=settings)
    second = build_proposal_pdf(record, assets, settings=settings)

    assert first == second


def test_overflowing_table_adds_pages(settings):
    record = ProposalRecord.model_validate(record_payload(itens=make_items(80)))
    inspection = inspect_pdf(build_proposal_pdf(record, settings=settings))

    assert inspection.page_count == 5
    assert 'Qtde' in inspection.pages[2]
    assert 'Subtotal' in inspection.pages[3]
    assert inspection.page_lines(5)
