from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from PIL import Image as PILImage
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas as pdf_canvas

from ..errors import FontEmbeddingError, UnsupportedImageFormat
from .text_metrics import DocumentFonts, FontFace


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

FONT_REGULAR_NAME = 'Helvetica'
FONT_BOLD_NAME = 'Helvetica-Bold'

IMAGE_DECODE_ORDER = ('PNG', 'JPEG')

Point = tuple[float, float]


def gray(level: float) -> colors.Color:
    return colors.Color(level, level, level)


BLACK = gray(0.0)


@dataclass(frozen=True)
class EmbeddedImage:
    format: str
    width: int
    height: int
    handle: Any = field(default=None, compare=False, repr=False)


def scale_to_fit(image: EmbeddedImage, box_width: float, box_height: float) -> tuple[float, float]:
    scale = min(box_width / image.width, box_height / image.height)
    return image.width * scale, image.height * scale


def decode_image(data: bytes) -> EmbeddedImage:
    """Decode a raster buffer, trying PNG first and JPEG second."""
    if not data:
        raise UnsupportedImageFormat('empty image buffer', attempted=())

    failures: list[str] = []
    for image_format in IMAGE_DECODE_ORDER:
        try:
            decoded = PILImage.open(io.BytesIO(data), formats=(image_format,))
            decoded.load()
        except (OSError, SyntaxError, ValueError) as exc:
            failures.append(f'{image_format}: {exc}')
            continue
        return EmbeddedImage(
            format=image_format,
            width=int(decoded.width),
            height=int(decoded.height),
            handle=ImageReader(decoded),
        )

    raise UnsupportedImageFormat(
        'image buffer could not be decoded (' + '; '.join(failures) + ')',
        attempted=IMAGE_DECODE_ORDER,
    )


class PageSurface(Protocol):
    number: int
    width: float
    height: float

    def draw_text(
        self,
        text: str,
        *,
        x: float,
        y: float,
        size: float,
        font: FontFace,
        color: colors.Color = BLACK,
    ) -> None: ...

    def draw_line(self, *, start: Point, end: Point, thickness: float, color: colors.Color = BLACK) -> None: ...

    def draw_rectangle(
        self,
        *,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: colors.Color | None = None,
        border: colors.Color | None = None,
        border_width: float = 0.0,
    ) -> None: ...

    def draw_circle(self, *, x: float, y: float, radius: float, color: colors.Color = BLACK) -> None: ...

    def draw_image(self, image: EmbeddedImage, *, x: float, y: float, width: float, height: float) -> None: ...


class PageSource(Protocol):
    def new_page(self) -> PageSurface: ...


class DocumentSurface(PageSource, Protocol):
    def embed_fonts(
        self,
        *,
        regular_path: Path | None = None,
        bold_path: Path | None = None,
    ) -> DocumentFonts: ...

    def embed_image(self, data: bytes) -> EmbeddedImage: ...

    def set_metadata(self, *, title: str, author: str, subject: str) -> None: ...

    def serialize(self) -> bytes: ...


class CanvasPage:
    """One A4 page of a reportlab canvas. Only the newest page accepts drawing."""

    def __init__(self, canvas: pdf_canvas.Canvas, number: int) -> None:
        self._canvas = canvas
        self.number = number
        self.width = PAGE_WIDTH
        self.height = PAGE_HEIGHT
        self.active = True

    def _target(self) -> pdf_canvas.Canvas:
        if not self.active:
            raise RuntimeError(f'page {self.number} is already closed')
        return self._canvas

    def draw_text(
        self,
        text: str,
        *,
        x: float,
        y: float,
        size: float,
        font: FontFace,
        color: colors.Color = BLACK,
    ) -> None:
        canvas = self._target()
        canvas.setFont(font.name, size)
        canvas.setFillColor(color)
        canvas.drawString(x, y, text)

    def draw_line(self, *, start: Point, end: Point, thickness: float, color: colors.Color = BLACK) -> None:
        canvas = self._target()
        canvas.setStrokeColor(color)
        canvas.setLineWidth(thickness)
        canvas.line(start[0], start[1], end[0], end[1])

    def draw_rectangle(
        self,
        *,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: colors.Color | None = None,
        border: colors.Color | None = None,
        border_width: float = 0.0,
    ) -> None:
        canvas = self._target()
        if fill is not None:
            canvas.setFillColor(fill)
        stroke = border is not None and border_width > 0
        if stroke:
            canvas.setStrokeColor(border)
            canvas.setLineWidth(border_width)
        canvas.rect(x, y, width, height, stroke=int(stroke), fill=int(fill is not None))

    def draw_circle(self, *, x: float, y: float, radius: float, color: colors.Color = BLACK) -> None:
        canvas = self._target()
        canvas.setFillColor(color)
        canvas.circle(x, y, radius, stroke=0, fill=1)

    def draw_image(self, image: EmbeddedImage, *, x: float, y: float, width: float, height: float) -> None:
        canvas = self._target()
        canvas.drawImage(image.handle, x, y, width=width, height=height, mask='auto')


def _register_ttf_font(font_name: str, font_path: Path) -> None:
    if font_name in pdfmetrics.getRegisteredFontNames():
        return
    try:
        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
    except Exception as exc:
        raise FontEmbeddingError(f'failed to embed font {font_name} from {font_path}: {exc}') from exc


class ProposalDocument:
    """Owns the canvas, its pages, the embedded fonts and decoded images for one build."""

    def __init__(self, *, invariant: bool = True, producer: str | None = None) -> None:
        self._buffer = io.BytesIO()
        self._canvas = pdf_canvas.Canvas(
            self._buffer,
            pagesize=(PAGE_WIDTH, PAGE_HEIGHT),
            invariant=1 if invariant else 0,
        )
        if producer:
            self._canvas.setProducer(producer)
        self._pages: list[CanvasPage] = []
        self._images: dict[str, EmbeddedImage] = {}
        self._fonts: DocumentFonts | None = None
        self._serialized: bytes | None = None

    @property
    def pages(self) -> list[CanvasPage]:
        return list(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def embed_fonts(
        self,
        *,
        regular_path: Path | None = None,
        bold_path: Path | None = None,
    ) -> DocumentFonts:
        if self._fonts is not None:
            return self._fonts

        regular_name = FONT_REGULAR_NAME
        bold_name = FONT_BOLD_NAME
        if regular_path is not None:
            regular_name = f'Proposal-{Path(regular_path).stem}'
            _register_ttf_font(regular_name, Path(regular_path))
        if bold_path is not None:
            bold_name = f'Proposal-{Path(bold_path).stem}'
            _register_ttf_font(bold_name, Path(bold_path))

        for name in (regular_name, bold_name):
            try:
                pdfmetrics.getFont(name)
            except Exception as exc:
                raise FontEmbeddingError(f'font {name} is not available') from exc

        self._fonts = DocumentFonts(regular=FontFace(regular_name), bold=FontFace(bold_name))
        logger.debug('Embedded proposal fonts %s / %s', regular_name, bold_name)
        return self._fonts

    def embed_image(self, data: bytes) -> EmbeddedImage:
        key = hashlib.sha256(data or b'').hexdigest()
        cached = self._images.get(key)
        if cached is not None:
            return cached
        image = decode_image(data)
        self._images[key] = image
        return image

    def new_page(self) -> CanvasPage:
        if self._serialized is not None:
            raise RuntimeError('document has already been serialized')
        if self._pages:
            self._pages[-1].active = False
            self._canvas.showPage()
        page = CanvasPage(self._canvas, number=len(self._pages) + 1)
        self._pages.append(page)
        return page

    def set_metadata(self, *, title: str, author: str, subject: str) -> None:
        self._canvas.setTitle(title)
        self._canvas.setAuthor(author)
        self._canvas.setSubject(subject)

    def serialize(self) -> bytes:
        if self._serialized is None:
            if self._pages:
                self._pages[-1].active = False
            self._canvas.save()
            self._serialized = self._buffer.getvalue()
        return self._serialized
