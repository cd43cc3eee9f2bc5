import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def w2_pdf_bytes() -> bytes:
    """Generate a one-page PDF laid out like a wage and tax statement."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Form W-2 Wage and Tax Statement 2024")
    c.drawString(72, 700, "Employee: Jane Doe")
    c.drawString(72, 680, "Social Security Number: 123-45-6789")
    c.drawString(72, 660, "Employer ID Number: 12-3456789")
    c.drawString(72, 640, "Wages, tips, other compensation $60,000.00")
    c.drawString(72, 620, "Federal income tax withheld $8,000.00")
    c.save()
    return buf.getvalue()
