"""
Exception types raised by the recognition pipeline.

Input errors are local contract violations and are raised immediately.
Embedding errors are handled by the matcher (skip reference / abort query).
"""


class DrawingError(ValueError):
    """Base class for invalid drawing input."""


class EmptyInputError(DrawingError):
    """Raised when an operation receives a point sequence with no points."""


class PointShapeError(DrawingError):
    """Raised when points are not a sequence of (x, y, z) triples."""


class FeatureSizeError(DrawingError):
    """Raised when a point sequence does not have the expected N points."""


class DrawingFormatError(DrawingError):
    """Raised when a stored drawing record cannot be parsed."""


class EmbeddingError(RuntimeError):
    """Raised when an embedder cannot produce an embedding."""
