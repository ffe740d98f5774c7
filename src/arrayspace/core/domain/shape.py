"""
ArrayShape — Описание формы вложенного массива

Immutable Pydantic модель: точность листа и длины уровней (внешняя первой).
Связывает классы FixedArray с JSON Schema контрактами (contracts/validators.py).
"""

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator

from arrayspace.core.exceptions import UnsupportedElementTypeError
from arrayspace.core.math.array import FixedArray, array_type_for_shape, is_array_type
from arrayspace.core.math.scalar import Precision, scalar_type_for


class ArrayShape(BaseModel):
    """
    Форма массива фиксированной длины.

    Examples:
        >>> ArrayShape(precision="f32", dims=(2, 2)).to_array_type()
        <class 'arrayspace.core.math.array.FixedArray[FixedArray[F32, 2], 2]'>
    """

    precision: Precision = Field(..., description="Точность листа (f32/f64)")
    dims: tuple[int, ...] = Field(
        ..., min_length=1, description="Длины уровней, внешняя первой"
    )

    model_config = {"frozen": True}

    @field_validator("dims")
    @classmethod
    def validate_dims(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Длины неотрицательные."""
        for n in v:
            if n < 0:
                raise ValueError(f"dims must be non-negative, got {v}")
        return v

    @property
    def ndim(self) -> int:
        return len(self.dims)

    @property
    def size(self) -> int:
        """Число листовых элементов."""
        return math.prod(self.dims)

    def to_array_type(self) -> type[FixedArray]:
        """Класс FixedArray этой формы (кэшированный)."""
        return array_type_for_shape(scalar_type_for(self.precision), self.dims)

    @classmethod
    def of(cls, value: Any) -> "ArrayShape":
        """
        Форма класса FixedArray или его экземпляра.

        Raises:
            UnsupportedElementTypeError: value не является массивом
        """
        if isinstance(value, FixedArray):
            value = type(value)
        if not is_array_type(value):
            raise UnsupportedElementTypeError(value, "expected a FixedArray type or instance")
        return cls(precision=value.scalar_type.precision, dims=value.shape)
