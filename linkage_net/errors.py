"""
Error taxonomy for Linkage-Net.

Input problems are reported to the caller immediately. Degenerate geometry
and constraint violations are raised by the low-level routines and caught by
the search code, where they mean "this candidate is not available".
"""

from __future__ import annotations


class LinkageError(Exception):
    """Base class for all Linkage-Net errors."""


class InputError(LinkageError, ValueError):
    """Invalid graph or coordinate input."""


class MissingCoordinateError(InputError, KeyError):
    """A vertex referenced by the graph has no coordinate."""

    def __init__(self, vertex: int):
        self.vertex = vertex
        super().__init__(f"Missing coordinate for vertex {vertex}")

    def __str__(self) -> str:
        return f"Missing coordinate for vertex {self.vertex}"


class DegenerateGeometryError(LinkageError, ArithmeticError):
    """Zero-length axis, singular matrix or vanishing direction."""


class ConstraintViolationError(LinkageError, RuntimeError):
    """A transform broke an edge length or its declared ranks."""

    def __init__(self, message: str, violations=None):
        super().__init__(message)
        self.violations = list(violations or [])
