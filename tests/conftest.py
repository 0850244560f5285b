from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from solarproposal.config import Settings, get_settings
from solarproposal.errors import FontEmbeddingError
from solarproposal.report.surface import (
    FONT_BOLD_NAME,
    FONT_REGULAR_NAME,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    EmbeddedImage,
    decode_image,
)
from solarproposal.report.text_metrics import DocumentFonts, FontFace
from solarproposal.types import ProposalRecord


class RecordingPage:
    """PageSurface fake that keeps every draw call as a tuple."""

    def __init__(self, number: int) -> None:
        self.number = number
        self.width = PAGE_WIDTH
        self.height = PAGE_HEIGHT
        self.ops: list[tuple] = []

    def draw_text(self, text, *, x, y, size, font, color=None):
        self.ops.append(('text', text, x, y, size, font.name))

    def draw_line(self, *, start, end, thickness, color=None):
        self.ops.append(('line', start, end, thickness))

    def draw_rectangle(self, *, x, y, width, height, fill=None, border=None, border_width=0.0):
        self.ops.append(('rect', x, y, width, height))

    def draw_circle(self, *, x, y, radius, color=None):
        self.ops.append(('circle', x, y, radius))

    def draw_image(self, image, *, x, y, width, height):
        self.ops.append(('image', image.format, x, y, width, height))

    def texts(self) -> list[str]:
        return [op[1] for op in self.ops if op[0] == 'text']

    def ops_of(self, kind: str) -> list[tuple]:
        return [op for op in self.ops if op[0] == kind]


class RecordingDocument:
    """DocumentSurface fake. Images go through the real decoder."""

    def __init__(self, *, fail_fonts: bool = False) -> None:
        self.pages: list[RecordingPage] = []
        self.metadata: dict[str, str] = {}
        self.fail_fonts = fail_fonts
        self.serialized = False

    def embed_fonts(self, *, regular_path: Path | None = None, bold_path: Path | None = None) -> DocumentFonts:
        if self.fail_fonts:
            raise FontEmbeddingError('font file unreadable')
        return DocumentFonts(regular=FontFace(FONT_REGULAR_NAME), bold=FontFace(FONT_BOLD_NAME))

    def embed_image(self, data: bytes) -> EmbeddedImage:
        return decode_image(data)

    def new_page(self) -> RecordingPage:
        page = RecordingPage(len(self.pages) + 1)
        self.pages.append(page)
        return page

    def set_metadata(self, *, title: str, author: str, subject: str) -> None:
        self.metadata = {'title': title, 'author': author, 'subject': subject}

    def serialize(self) -> bytes:
        self.serialized = True
        return b'%PDF-recorded'


def image_bytes(image_format: str, size: tuple[int, int] = (200, 100), color: str = 'navy') -> bytes:
    buf = BytesIO()
    Image.new('RGB', size, color).save(buf, format=image_format)
    return buf.getvalue()


def record_payload(**overrides) -> dict:
    payload = {
        'titulo': 'Proposta Residencial 8 kWp',
        'dataISO': '2024-03-05T10:30:00.000Z',
        'company': {
            'nome': 'Sol Forte Energia',
            'cnpj': '12.345.678/0001-90',
            'contato': 'contato@solforte.com.br',
        },
        'client': {'nome': 'Maria Souza', 'documento': '123.456.789-00'},
        'kpis': {
            'potenciaKWp': 8.2,
            'energiaMensalKWh': 1050,
            'economiaAnualBRL': 9800.5,
            'paybackAnos': 4.3,
            'tirPercent': 21.7,
        },
        'finance': {'capexBRL': 42000, 'tarifaBRLkWh': 0.95, 'degradacaoAnual': 0.005},
        'itens': [
            {'descricao': 'Módulo 550 W', 'qtd': 10, 'precoUnit': '899'},
            {'descricao': 'Inversor 8 kW', 'qtd': 1, 'precoUnit': '6500.00'},
        ],
        'premissasTecnicas': ['Irradiação média de 5,2 kWh/m²/dia', 'Perdas do sistema de 14%'],
        'observacoes': ['Validade da proposta: 15 dias'],
    }
    payload.update(overrides)
    return payload


def make_items(count: int) -> list[dict]:
    return [
        {'description': f'Item {index + 1}', 'quantity': 1, 'unit_price': '10.00'}
        for index in range(count)
    ]


@pytest.fixture
def fonts() -> DocumentFonts:
    return DocumentFonts(regular=FontFace(FONT_REGULAR_NAME), bold=FontFace(FONT_BOLD_NAME))


@pytest.fixture
def record() -> ProposalRecord:
    return ProposalRecord.model_validate(record_payload())


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, data_dir=tmp_path / 'data')


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv('DATA_DIR', str(tmp_path / 'data'))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
