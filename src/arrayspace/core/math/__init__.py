"""
Core math modules для arrayspace

Наборы операций векторного пространства, скалярные листья и обобщённый
композит фиксированной длины.
"""

# Numerics
from arrayspace.core.math.numerics import (
    # Epsilon constants
    EPS_FLOAT32_COMPARE_REL,
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    # Native arithmetic
    native_arithmetic,
    is_valid_float,
    # Clamp
    clamp_scalar,
    validate_clamp_bounds,
    # Reductions
    pairwise_sum,
    sequential_sum,
    # Comparisons
    is_close,
)

# Capability sets
from arrayspace.core.math.traits import ArrayVectorSpace, ArrayVectorSpaceMut

# Scalar leaves
from arrayspace.core.math.scalar import (
    F32,
    F64,
    SCALAR_TYPES,
    Precision,
    ScalarLeaf,
    is_scalar_type,
    scalar_type_for,
)

# Fixed-size arrays
from arrayspace.core.math.array import (
    FixedArray,
    array_type,
    array_type_for_shape,
    is_array_type,
    is_vector_space_type,
)

__all__ = [
    # Numerics: Epsilon constants
    "EPS_FLOAT32_COMPARE_REL",
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    # Numerics: Native arithmetic
    "native_arithmetic",
    "is_valid_float",
    # Numerics: Clamp
    "clamp_scalar",
    "validate_clamp_bounds",
    # Numerics: Reductions
    "pairwise_sum",
    "sequential_sum",
    # Numerics: Comparisons
    "is_close",
    # Capability sets
    "ArrayVectorSpace",
    "ArrayVectorSpaceMut",
    # Scalar leaves
    "F32",
    "F64",
    "SCALAR_TYPES",
    "Precision",
    "ScalarLeaf",
    "is_scalar_type",
    "scalar_type_for",
    # Fixed-size arrays
    "FixedArray",
    "array_type",
    "array_type_for_shape",
    "is_array_type",
    "is_vector_space_type",
]
