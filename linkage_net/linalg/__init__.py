"""
Linear algebra kernel for Linkage-Net.
"""

from linkage_net.linalg.matrix_kernel import (
    determinant,
    null_space,
    nullity,
    rank,
    row_echelon,
)

__all__ = [
    "determinant",
    "null_space",
    "nullity",
    "rank",
    "row_echelon",
]
