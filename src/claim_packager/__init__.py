"""
claim-packager: turns scanned patient folders into upload-ready claim PDFs.
"""

__version__ = "0.1.0"
