# ============================================================================
# src/claim_packager/compositor/compression.py
# ============================================================================
"""
Lossy recompression of raster images before they are embedded.
"""

from typing import List, Optional
import logging

from ..core.models import CompressionPolicy, SourceKind
from ..utils.exceptions import ConversionError
from ..utils.file_utils import detect_source_kind
from ..utils.image_utils import downscale, encode_jpeg, open_image


class RasterCompressor:
    """
    Applies a CompressionPolicy to JPEG/PNG bytes.

    Pipeline:
    1. Decode with EXIF orientation applied
    2. Downscale to the policy's max dimension
    3. JPEG-encode at quality_max, then quality_min if still not smaller
    4. Keep the smallest candidate
    """

    def __init__(self, policy: Optional[CompressionPolicy] = None):
        self.policy = policy or CompressionPolicy()
        self.logger = logging.getLogger(__name__)

    def compress(self, data: bytes) -> bytes:
        """
        Recompress raster bytes.

        Returns JPEG bytes, or the original bytes when the source is an
        unscaled JPEG that no quality in the policy can shrink.

        Raises:
            ConversionError: the bytes cannot be decoded as an image
        """
        try:
            image = open_image(data)
            image.load()
        except Exception as e:
            raise ConversionError(f"Cannot decode image: {e}") from e

        original_size = image.size
        image = downscale(image, self.policy.max_dimension)
        resized = image.size != original_size

        candidates: List[bytes] = []
        for quality in self.policy.jpeg_qualities:
            encoded = encode_jpeg(image, quality)
            candidates.append(encoded)
            if len(encoded) < len(data):
                break

        if not resized and detect_source_kind("", data[:4]) == SourceKind.JPEG:
            candidates.append(data)

        best = min(candidates, key=len)
        self.logger.debug(f"Compressed image {len(data)} -> {len(best)} bytes")
        return best
