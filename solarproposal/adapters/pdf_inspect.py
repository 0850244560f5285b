from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

from pypdf import PdfReader


@dataclass
class PdfInspection:
    page_count: int
    pages: list[str] = field(default_factory=list)
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    producer: str | None = None

    def page_lines(self, page_number: int) -> list[str]:
        """Non-empty text lines of a 1-based page."""
        text = self.pages[page_number - 1]
        return [line.strip() for line in text.splitlines() if line.strip()]

    def to_dict(self) -> dict[str, Any]:
        return {
            'page_count': self.page_count,
            'title': self.title,
            'author': self.author,
            'subject': self.subject,
            'producer': self.producer,
            'pages': [{'page': index, 'text': text} for index, text in enumerate(self.pages, start=1)],
        }


def inspect_pdf(pdf_bytes: bytes) -> PdfInspection:
    reader = PdfReader(BytesIO(pdf_bytes))
    pages: list[str] = []
    for page in reader.pages:
        text = (page.extract_text() or '').strip()
        pages.append(text)

    metadata = reader.metadata
    return PdfInspection(
        page_count=len(pages),
        pages=pages,
        title=metadata.title if metadata else None,
        author=metadata.author if metadata else None,
        subject=metadata.subject if metadata else None,
        producer=metadata.producer if metadata else None,
    )
