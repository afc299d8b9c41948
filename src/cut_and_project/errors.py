"""
Exceptions raised by cut-and-project.

All errors derive from ``ValueError`` so callers that already guard model
input with ``except ValueError`` keep working.
"""


class CutAndProjectError(ValueError):
    """Base class for all package errors."""


class ModelError(CutAndProjectError):
    """Inconsistent superspace model (dimensions, shapes, symmetry, domains)."""


class ModelFormatError(ModelError):
    """Malformed serialized model."""


class DegenerateFormError(CutAndProjectError):
    """Quadratic form that cannot be reduced (singular or not positive-definite)."""
