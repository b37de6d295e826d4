"""
Document composition: raster compression and PDF merging.
"""

from .compression import RasterCompressor
from .compositor import CompositorSource, DocumentCompositor, is_merged_pdf
