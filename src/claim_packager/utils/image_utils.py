# ============================================================================
# src/claim_packager/utils/image_utils.py
# ============================================================================
"""
Image utilities for the claim packager.

Provides:
- Raster decoding with EXIF orientation correction
- Flattening to PDF-friendly color modes
- JPEG/PNG encoding
- Building PDFs whose pages are sized to the image's native dimensions
"""

from io import BytesIO
from typing import Iterator, List, Optional
import logging
import threading

from PIL import Image, ImageOps, ImageSequence
from reportlab import rl_config
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

# rl_config is process-global; image pages are built one PDF at a time
_RL_CONFIG_LOCK = threading.Lock()


def open_image(data: bytes) -> Image.Image:
    """
    Decode raster bytes and apply EXIF orientation.

    Phone photos store landscape pixels plus a rotate tag; without the
    transpose the page comes out sideways.
    """
    image = Image.open(BytesIO(data))
    try:
        image = ImageOps.exif_transpose(image)
    except Exception as e:
        logger.warning(f"EXIF transpose failed (non-fatal): {e}")
    return image


def iter_frames(data: bytes) -> Iterator[Image.Image]:
    """Yield every frame of a (possibly multi-page) raster, e.g. TIFF."""
    image = Image.open(BytesIO(data))
    for frame in ImageSequence.Iterator(image):
        yield ImageOps.exif_transpose(frame.copy())


def flatten(image: Image.Image) -> Image.Image:
    """Convert to RGB or L, painting transparency onto white."""
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        image = image.convert('RGBA')
        background = Image.new('RGB', image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[3])
        return background
    if image.mode not in ('RGB', 'L'):
        return image.convert('RGB')
    return image


def downscale(image: Image.Image, max_dimension: Optional[int]) -> Image.Image:
    """Shrink so the longest side is at most max_dimension."""
    if not max_dimension:
        return image
    w, h = image.size
    if max(w, h) <= max_dimension:
        return image
    scale = max_dimension / max(w, h)
    new_w, new_h = max(1, int(w * scale)), max(1, int(h * scale))
    logger.debug(f"Resized {w}x{h} -> {new_w}x{new_h}")
    return image.resize((new_w, new_h), Image.LANCZOS)


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    flatten(image).save(buffer, format='JPEG', quality=quality, optimize=True)
    return buffer.getvalue()


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    flatten(image).save(buffer, format='PNG', optimize=True)
    return buffer.getvalue()


def images_to_pdf_bytes(encoded_images: List[bytes]) -> bytes:
    """
    Build a PDF with one full-bleed page per encoded image.

    Each page is sized to the image's pixel dimensions (one point per
    pixel). JPEG data is embedded as-is by reportlab, so no second lossy
    pass happens here.

    Args:
        encoded_images: JPEG or PNG bytes, one per page

    Returns:
        PDF content as bytes
    """
    if not encoded_images:
        raise ValueError("No images to place")

    buffer = BytesIO()

    # ASCII85 text encoding would grow every image stream by a quarter
    with _RL_CONFIG_LOCK:
        use_a85 = rl_config.useA85
        rl_config.useA85 = 0
        try:
            pdf = canvas.Canvas(buffer)
            for data in encoded_images:
                reader = ImageReader(BytesIO(data))
                width, height = reader.getSize()
                pdf.setPageSize((width, height))
                pdf.drawImage(reader, 0, 0, width=width, height=height)
                pdf.showPage()
            pdf.save()
        finally:
            rl_config.useA85 = use_a85

    return buffer.getvalue()
