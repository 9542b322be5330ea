"""
Operator tools for the hex mining backend.
"""

from tools.precompute_cache import precompute
from tools.reset_cells import reset_owned_cells

__all__ = [
    "precompute",
    "reset_owned_cells",
]
