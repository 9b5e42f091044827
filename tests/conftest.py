import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


def _pdf(*pages: list[str]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for lines in pages:
        y = 720
        for line in lines:
            c.drawString(72, y, line)
            y -= 20
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return _pdf(["Hello PDF World"])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    return _pdf(["Page one content"], ["Page two content"])


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    return _pdf([])


@pytest.fixture()
def application_pdf_bytes() -> bytes:
    """A PDF that reads like a Progressive application form."""
    return _pdf(
        [
            "Progressive Casualty Insurance Company",
            "Application for Insurance - Personal Auto",
            "Named insured: Jane Doe",
        ]
    )


@pytest.fixture()
def invoice_pdf_bytes() -> bytes:
    """A PDF that is not an application."""
    return _pdf(["Invoice #4411", "Premium due: $120.00"])
