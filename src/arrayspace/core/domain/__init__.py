"""
Domain models and value objects.

Contains shape descriptors for fixed-size nested arrays.
"""

from arrayspace.core.domain.shape import ArrayShape
from arrayspace.core.math.scalar import Precision

__all__ = [
    "ArrayShape",
    "Precision",
]
