"""
LinkView Utils - Bookkeeping Structures
=======================================

Classes:
- IdentityRegistry: stable per-collection keys for collection members
- LinkTable: derived <-> source link table with numpy index arrays
"""

from .identity import IdentityRegistry
from .links import UNLINKED, LinkTable

__all__ = [
    "IdentityRegistry",
    "LinkTable",
    "UNLINKED",
]
