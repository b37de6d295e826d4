# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.

Sample PDFs are drawn with reportlab, sample images with Pillow.
"""

import pytest
from pathlib import Path
from typing import List, Optional

from PIL import Image


def write_pdf(path: Path, pages: int = 1, title: str = "Sample") -> Path:
    """Create a PDF with the given number of pages."""
    from reportlab.pdfgen import canvas
    from reportlab.lib.pagesizes import letter

    path.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(path), pagesize=letter)
    for page in range(1, pages + 1):
        c.drawString(100, 750, f"{title} page {page}")
        c.showPage()
    c.save()
    return path


def write_image(path: Path, size=(120, 80), color=(200, 40, 40), fmt: Optional[str] = None) -> Path:
    """Create a solid color raster; format follows the extension unless given."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


def write_tiff(path: Path, frames: int = 2, size=(60, 90)) -> Path:
    """Create a multi-frame TIFF."""
    path.parent.mkdir(parents=True, exist_ok=True)
    images: List[Image.Image] = [
        Image.new("RGB", size, (40 * i % 255, 100, 150)) for i in range(frames)
    ]
    images[0].save(path, format="TIFF", save_all=True, append_images=images[1:])
    return path


def pdf_bytes(pages: int = 1) -> bytes:
    """PDF content with the given page count."""
    from io import BytesIO
    from reportlab.pdfgen import canvas

    buffer = BytesIO()
    c = canvas.Canvas(buffer)
    for page in range(1, pages + 1):
        c.drawString(100, 750, f"page {page}")
        c.showPage()
    c.save()
    return buffer.getvalue()


def jpeg_bytes(size=(120, 80), color=(30, 120, 200)) -> bytes:
    from io import BytesIO

    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def png_bytes(size=(120, 80), mode="RGB") -> bytes:
    from io import BytesIO

    buffer = BytesIO()
    color = (10, 200, 10, 128) if mode == "RGBA" else (10, 200, 10)
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def patients_root(tmp_path):
    """Empty patients root folder"""
    root = tmp_path / "patients"
    root.mkdir()
    return root


@pytest.fixture
def john_doe(patients_root):
    """JohnDoe-00123 with a 2-page identification PDF and an insurance form photo"""
    folder = patients_root / "JohnDoe-00123"
    write_pdf(folder / "1.pdf", pages=2, title="Identification")
    write_image(folder / "2.jpg")
    return folder


@pytest.fixture
def make_case_folder(patients_root):
    """Factory creating a minimal valid patient folder (1.pdf + 2.pdf)."""
    def _make(name: str, extra_pages: int = 1) -> Path:
        folder = patients_root / name
        write_pdf(folder / "1.pdf", pages=1, title="Identification")
        write_pdf(folder / "2.pdf", pages=extra_pages, title="Insurance form")
        return folder
    return _make
