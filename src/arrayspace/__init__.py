"""
arrayspace — vector-space arithmetic over scalars and fixed-size nested arrays.

    >>> from arrayspace import F64, FixedArray
    >>> Vec2 = FixedArray[F64, 2]
    >>> Vec2([3.0, 4.0]).normalized()
    FixedArray[F64, 2]([0.6, 0.8])
"""

from arrayspace.core.config import (
    ReductionOrder,
    VectorSpaceConfig,
    get_config,
    reset_config,
    set_config,
    use_config,
)
from arrayspace.core.domain import ArrayShape
from arrayspace.core.exceptions import (
    InvalidClampRangeError,
    PrecisionMismatchError,
    ShapeMismatchError,
    UnsupportedElementTypeError,
)
from arrayspace.core.math import (
    F32,
    F64,
    ArrayVectorSpace,
    ArrayVectorSpaceMut,
    FixedArray,
    Precision,
    ScalarLeaf,
    array_type,
    array_type_for_shape,
)

__version__ = "0.1.0"

__all__ = [
    # Capability sets
    "ArrayVectorSpace",
    "ArrayVectorSpaceMut",
    # Types
    "F32",
    "F64",
    "ScalarLeaf",
    "FixedArray",
    "Precision",
    "ArrayShape",
    "array_type",
    "array_type_for_shape",
    # Config
    "ReductionOrder",
    "VectorSpaceConfig",
    "get_config",
    "set_config",
    "reset_config",
    "use_config",
    # Exceptions
    "ShapeMismatchError",
    "PrecisionMismatchError",
    "UnsupportedElementTypeError",
    "InvalidClampRangeError",
]
