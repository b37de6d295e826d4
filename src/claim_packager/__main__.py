# ============================================================================
# src/claim_packager/__main__.py
# ============================================================================
"""Allows `python -m claim_packager`."""

import sys

from .cli import main

sys.exit(main())
