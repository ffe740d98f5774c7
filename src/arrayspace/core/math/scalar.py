"""
Скалярные листья векторного пространства.

F32 и F64 хранят значение как numpy.float32 / numpy.float64, поэтому вся
арифметика нативная IEEE: деление на ноль даёт inf/NaN, а не исключение.

normalized/mut_normalized листа — заглушка: результат всегда 1 независимо
от значения. Она нужна только как база рекурсии; настоящая нормализация
определена на уровне композита.
"""

import numbers
from enum import Enum
from typing import Any, ClassVar, Final

import numpy as np

from arrayspace.core.exceptions import (
    PrecisionMismatchError,
    ShapeMismatchError,
    UnsupportedElementTypeError,
)
from arrayspace.core.math.numerics import (
    EPS_FLOAT32_COMPARE_REL,
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    clamp_scalar,
    is_close,
    native_arithmetic,
)
from arrayspace.core.math.traits import ArrayVectorSpace, ArrayVectorSpaceMut


class Precision(str, Enum):
    """Поддерживаемые точности скаляра."""

    F32 = "f32"
    F64 = "f64"


def describe(value: Any) -> str:
    """Короткое описание значения для сообщений об ошибках."""
    shape = getattr(value, "shape", None)
    if isinstance(shape, tuple):
        return f"{type(value).__name__} with shape {shape}"
    return type(value).__name__


class ScalarLeaf(ArrayVectorSpace, ArrayVectorSpaceMut):
    """
    Базовый класс скалярного листа.

    Подкласс задаёт dtype и precision. Лист изменяем (mut_* операции),
    поэтому не хешируется.
    """

    __slots__ = ("_value",)

    dtype: ClassVar[type[np.floating]]
    precision: ClassVar[Precision]
    scalar_type: ClassVar[type["ScalarLeaf"]]
    # Форма листа: скаляр
    shape: ClassVar[tuple[int, ...]] = ()
    # Относительная толерантность is_close по умолчанию
    default_rel_tol: ClassVar[float] = EPS_FLOAT_COMPARE_REL

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "dtype" in cls.__dict__:
            cls.scalar_type = cls

    def __init__(self, value: Any = 0.0):
        if not hasattr(type(self), "dtype"):
            raise UnsupportedElementTypeError(
                type(self), "scalar leaf class must define dtype"
            )
        self._value = self.to_native(value)

    @classmethod
    def _new(cls, value: np.floating) -> "ScalarLeaf":
        obj = object.__new__(cls)
        obj._value = value
        return obj

    # -------------------------------------------------------------------------
    # Приведение типов
    # -------------------------------------------------------------------------

    @classmethod
    def to_native(cls, value: Any) -> np.floating:
        """
        Приведение скалярного аргумента T к dtype листа.

        Числа Python и целые numpy приводятся. Вещественные numpy-скаляры и
        листья другой точности отвергаются.

        Raises:
            PrecisionMismatchError: Скаляр другой точности
            TypeError: Значение не является вещественным скаляром
        """
        if isinstance(value, ScalarLeaf):
            if value.dtype is not cls.dtype:
                raise PrecisionMismatchError(cls.precision.value, value.precision.value)
            return value._value

        if isinstance(value, (bool, np.bool_)):
            raise TypeError(f"Expected a real scalar, got {type(value).__name__}")

        if isinstance(value, np.generic):
            if isinstance(value, cls.dtype):
                return value
            if isinstance(value, np.floating):
                raise PrecisionMismatchError(cls.precision.value, value.dtype.name)
            if not isinstance(value, np.integer):
                raise TypeError(f"Expected a real scalar, got {type(value).__name__}")

        if isinstance(value, numbers.Real):
            with native_arithmetic():
                return cls.dtype(value)

        raise TypeError(f"Expected a real scalar, got {type(value).__name__}")

    @classmethod
    def coerce(cls, value: Any) -> "ScalarLeaf":
        """
        Новый лист из значения элемента (всегда копия).

        Raises:
            ShapeMismatchError: На месте скаляра последовательность или массив
        """
        if isinstance(value, (ScalarLeaf, numbers.Real, np.generic)):
            return cls(value)
        raise ShapeMismatchError(cls.shape, describe(value))

    @classmethod
    def full(cls, value: Any) -> "ScalarLeaf":
        return cls(value)

    @classmethod
    def zeros(cls) -> "ScalarLeaf":
        return cls(0)

    def _check_operand(self, rhs: Any) -> "ScalarLeaf":
        if not isinstance(rhs, ScalarLeaf):
            raise ShapeMismatchError(self.shape, describe(rhs))
        if rhs.dtype is not self.dtype:
            raise PrecisionMismatchError(self.precision.value, rhs.precision.value)
        return rhs

    # -------------------------------------------------------------------------
    # Доступ к значению
    # -------------------------------------------------------------------------

    @property
    def value(self) -> np.floating:
        return self._value

    def __float__(self) -> float:
        return float(self._value)

    def copy(self) -> "ScalarLeaf":
        return self._new(self._value)

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "ScalarLeaf":
        return self.copy()

    def __reduce__(self) -> tuple:
        return (type(self), (float(self._value),))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({float(self._value)!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ScalarLeaf):
            return other.dtype is self.dtype and bool(self._value == other._value)
        if is_real_number(other):
            return bool(self._value == other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def is_close(
        self,
        other: "ScalarLeaf",
        rel_tol: float | None = None,
        abs_tol: float = EPS_FLOAT_COMPARE_ABS,
    ) -> bool:
        """Сравнение с толерантностью (по умолчанию по точности листа)."""
        rhs = self._check_operand(other)
        if rel_tol is None:
            rel_tol = self.default_rel_tol
        return is_close(self._value, rhs._value, rel_tol=rel_tol, abs_tol=abs_tol)

    # -------------------------------------------------------------------------
    # ArrayVectorSpace
    # -------------------------------------------------------------------------

    def dot(self, rhs: "ScalarLeaf") -> np.floating:
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            return self._value * rhs._value

    def add(self, rhs: "ScalarLeaf") -> "ScalarLeaf":
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            return self._new(self._value + rhs._value)

    def sub(self, rhs: "ScalarLeaf") -> "ScalarLeaf":
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            return self._new(self._value - rhs._value)

    def mul(self, rhs: "ScalarLeaf") -> "ScalarLeaf":
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            return self._new(self._value * rhs._value)

    def div(self, rhs: "ScalarLeaf") -> "ScalarLeaf":
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            return self._new(self._value / rhs._value)

    def scal_mul(self, rhs: Any) -> "ScalarLeaf":
        k = self.to_native(rhs)
        with native_arithmetic():
            return self._new(self._value * k)

    def clamp(self, min_value: Any, max_value: Any) -> "ScalarLeaf":
        lo = self.to_native(min_value)
        hi = self.to_native(max_value)
        return self._new(clamp_scalar(self._value, lo, hi))

    def normalized(self) -> "ScalarLeaf":
        # Заглушка базы рекурсии
        return self._new(self.dtype(1))

    # -------------------------------------------------------------------------
    # ArrayVectorSpaceMut
    # -------------------------------------------------------------------------

    def mut_add(self, rhs: "ScalarLeaf") -> None:
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            self._value += rhs._value

    def mut_sub(self, rhs: "ScalarLeaf") -> None:
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            self._value -= rhs._value

    def mut_mul(self, rhs: "ScalarLeaf") -> None:
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            self._value *= rhs._value

    def mut_div(self, rhs: "ScalarLeaf") -> None:
        rhs = self._check_operand(rhs)
        with native_arithmetic():
            self._value /= rhs._value

    def mut_scal_mul(self, rhs: Any) -> None:
        k = self.to_native(rhs)
        with native_arithmetic():
            self._value *= k

    def mut_clamp(self, min_value: Any, max_value: Any) -> None:
        lo = self.to_native(min_value)
        hi = self.to_native(max_value)
        self._value = clamp_scalar(self._value, lo, hi)

    def mut_normalized(self) -> None:
        self._value = self.dtype(1)


def is_real_number(value: Any) -> bool:
    return isinstance(value, (numbers.Real, np.generic)) and not isinstance(
        value, (bool, np.bool_)
    )


class F32(ScalarLeaf):
    """Лист single precision (numpy.float32)."""

    __slots__ = ()

    dtype = np.float32
    precision = Precision.F32
    default_rel_tol = EPS_FLOAT32_COMPARE_REL


class F64(ScalarLeaf):
    """Лист double precision (numpy.float64)."""

    __slots__ = ()

    dtype = np.float64
    precision = Precision.F64


# Реестр листьев по точности
SCALAR_TYPES: Final[dict[Precision, type[ScalarLeaf]]] = {
    Precision.F32: F32,
    Precision.F64: F64,
}


def scalar_type_for(precision: Precision | str) -> type[ScalarLeaf]:
    """
    Класс листа для точности.

    Raises:
        ValueError: Неизвестная точность
    """
    return SCALAR_TYPES[Precision(precision)]


def is_scalar_type(value: Any) -> bool:
    """True для класса листа с определённым dtype."""
    return (
        isinstance(value, type)
        and issubclass(value, ScalarLeaf)
        and hasattr(value, "dtype")
    )
