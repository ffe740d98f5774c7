"""
FixedArray — композит фиксированной длины

Обобщённая реализация обоих наборов операций для массива из N элементов,
каждый из которых сам участвует в векторном пространстве (лист или другой
композит). Все операции делегируются элементам с парами по индексам;
глубина вложенности не ограничена, специальной 2-D логики нет.

    Vec2 = FixedArray[F64, 2]
    Mat2 = FixedArray[FixedArray[F32, 2], 2]

Параметризация кэшируется: FixedArray[F64, 2] is FixedArray[F64, 2].

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Форма и точность операндов проверяются до вычисления результата/мутации
2. dot суммирует слева направо, начиная с T(0) (если не включён PAIRWISE)
3. norm2 == dot(self, self); normalized == scal_mul(1 / sqrt(norm2))
4. Элементы никогда не разделяются между массивами (конструктор копирует)
"""

import logging
import numbers
import operator
import threading
from types import new_class
from typing import Any, ClassVar, Iterator, Sequence, final

import numpy as np

from arrayspace.core.config import ReductionOrder, get_config
from arrayspace.core.exceptions import (
    PrecisionMismatchError,
    ShapeMismatchError,
    UnsupportedElementTypeError,
)
from arrayspace.core.math.numerics import (
    EPS_FLOAT_COMPARE_ABS,
    is_valid_float,
    native_arithmetic,
    pairwise_sum,
    sequential_sum,
    validate_clamp_bounds,
)
from arrayspace.core.math.scalar import ScalarLeaf, describe, is_scalar_type
from arrayspace.core.math.traits import (
    ArrayVectorSpace,
    ArrayVectorSpaceMut,
    reject_final_overrides,
)

logger = logging.getLogger(__name__)


class FixedArray(ArrayVectorSpace, ArrayVectorSpaceMut):
    """
    Массив фиксированной длины над элементами векторного пространства.

    Напрямую не инстанцируется: используйте FixedArray[V, N].
    """

    __slots__ = ("_items",)

    element_type: ClassVar[Any] = None
    length: ClassVar[int] = 0
    scalar_type: ClassVar[Any] = None
    dtype: ClassVar[Any] = None
    # Длины по уровням, внешняя первой
    shape: ClassVar[tuple[int, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        reject_final_overrides(cls, FixedArray, ("normalized", "mut_normalized"))

    def __class_getitem__(cls, params: Any) -> type["FixedArray"]:
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError("FixedArray[V, N] expects an element type and a length")
        element_type, length = params
        return array_type(element_type, length)

    def __init__(self, values: Any):
        cls = type(self)
        if cls.element_type is None:
            raise UnsupportedElementTypeError(
                cls, "parameterize first, e.g. FixedArray[F64, 3]"
            )
        if isinstance(values, FixedArray) and values.shape != cls.shape:
            raise ShapeMismatchError(cls.shape, values.shape)
        if isinstance(values, (str, bytes)) or isinstance(
            values, (ScalarLeaf, numbers.Real, np.generic)
        ):
            raise ShapeMismatchError(cls.shape, describe(values))
        try:
            items = list(values)
        except TypeError as e:
            raise ShapeMismatchError(cls.shape, describe(values)) from e

        if len(items) != cls.length:
            raise ShapeMismatchError(cls.shape, f"sequence of length {len(items)}")

        self._items = [cls.element_type.coerce(item) for item in items]

    @classmethod
    def _from_items(cls, items: list) -> "FixedArray":
        obj = object.__new__(cls)
        obj._items = items
        return obj

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def coerce(cls, value: Any) -> "FixedArray":
        """Новый массив из значения элемента (всегда копия)."""
        return cls(value)

    @classmethod
    def full(cls, value: Any) -> "FixedArray":
        """Массив, все листья которого равны value."""
        cls.scalar_type.to_native(value)
        return cls._from_items([cls.element_type.full(value) for _ in range(cls.length)])

    @classmethod
    def zeros(cls) -> "FixedArray":
        return cls.full(0)

    @classmethod
    def from_numpy(cls, array: Any) -> "FixedArray":
        """
        Массив из ndarray той же формы.

        Raises:
            ShapeMismatchError: Форма ndarray отличается
            PrecisionMismatchError: Вещественный ndarray другой точности
        """
        arr = np.asarray(array)
        if arr.shape != cls.shape:
            raise ShapeMismatchError(cls.shape, arr.shape)
        if arr.dtype.kind == "f" and arr.dtype != np.dtype(cls.dtype):
            raise PrecisionMismatchError(cls.scalar_type.precision.value, arr.dtype.name)
        return cls(arr)

    # -------------------------------------------------------------------------
    # Представление
    # -------------------------------------------------------------------------

    def to_list(self) -> list:
        """Вложенные списки float."""
        return [
            item.to_list() if isinstance(item, FixedArray) else float(item)
            for item in self._items
        ]

    def to_numpy(self) -> np.ndarray:
        return np.array(self.to_list(), dtype=self.dtype).reshape(self.shape)

    def copy(self) -> "FixedArray":
        return self._from_items([item.copy() for item in self._items])

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "FixedArray":
        return self.copy()

    def __reduce__(self) -> tuple:
        cls = type(self)
        if cls is array_type_for_shape(cls.scalar_type, cls.shape):
            # Динамический класс: восстанавливаем по листу и форме
            return (_rebuild_array, (cls.scalar_type, cls.shape, self.to_list()))
        return (cls, (self.to_list(),))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_list()!r})"

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index: Any) -> Any:
        return self._items[index]

    def __setitem__(self, index: Any, value: Any) -> None:
        try:
            index = operator.index(index)
        except TypeError:
            raise TypeError("FixedArray supports assignment by integer index only") from None
        self._items[index] = self.element_type.coerce(value)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, FixedArray):
            return NotImplemented
        if other.shape != self.shape or other.dtype is not self.dtype:
            return False
        return all(v == w for v, w in zip(self._items, other._items))

    __hash__ = None  # type: ignore[assignment]

    def is_close(
        self,
        other: "FixedArray",
        rel_tol: float | None = None,
        abs_tol: float = EPS_FLOAT_COMPARE_ABS,
    ) -> bool:
        """Поэлементное сравнение с толерантностью."""
        rhs = self._check_operand(other)
        return all(
            v.is_close(w, rel_tol=rel_tol, abs_tol=abs_tol)
            for v, w in zip(self._items, rhs._items)
        )

    # -------------------------------------------------------------------------
    # Проверки
    # -------------------------------------------------------------------------

    def _check_operand(self, rhs: Any) -> "FixedArray":
        if not isinstance(rhs, FixedArray):
            raise ShapeMismatchError(self.shape, describe(rhs))
        if rhs.shape != self.shape:
            raise ShapeMismatchError(self.shape, rhs.shape)
        if rhs.dtype is not self.dtype:
            raise PrecisionMismatchError(
                self.scalar_type.precision.value, rhs.scalar_type.precision.value
            )
        return rhs

    def _norm(self) -> np.floating:
        with native_arithmetic():
            n = np.sqrt(self.norm2())
        if get_config().warn_on_degenerate_norm and (n == 0 or not is_valid_float(n)):
            logger.warning(
                "Normalizing %s with degenerate norm %s; result is not finite",
                type(self).__name__,
                n,
            )
        return n

    # -------------------------------------------------------------------------
    # ArrayVectorSpace
    # -------------------------------------------------------------------------

    def dot(self, rhs: "FixedArray") -> np.floating:
        rhs = self._check_operand(rhs)
        partial = [v.dot(w) for v, w in zip(self._items, rhs._items)]
        zero = self.dtype(0)
        if get_config().reduction is ReductionOrder.PAIRWISE:
            return pairwise_sum(partial, zero)
        return sequential_sum(partial, zero)

    def add(self, rhs: "FixedArray") -> "FixedArray":
        rhs = self._check_operand(rhs)
        return self._from_items([v.add(w) for v, w in zip(self._items, rhs._items)])

    def sub(self, rhs: "FixedArray") -> "FixedArray":
        rhs = self._check_operand(rhs)
        return self._from_items([v.sub(w) for v, w in zip(self._items, rhs._items)])

    def mul(self, rhs: "FixedArray") -> "FixedArray":
        rhs = self._check_operand(rhs)
        return self._from_items([v.mul(w) for v, w in zip(self._items, rhs._items)])

    def div(self, rhs: "FixedArray") -> "FixedArray":
        rhs = self._check_operand(rhs)
        return self._from_items([v.div(w) for v, w in zip(self._items, rhs._items)])

    def scal_mul(self, rhs: Any) -> "FixedArray":
        k = self.scalar_type.to_native(rhs)
        return self._from_items([v.scal_mul(k) for v in self._items])

    def clamp(self, min_value: Any, max_value: Any) -> "FixedArray":
        lo = self.scalar_type.to_native(min_value)
        hi = self.scalar_type.to_native(max_value)
        validate_clamp_bounds(lo, hi)
        return self._from_items([v.clamp(lo, hi) for v in self._items])

    @final
    def normalized(self) -> "FixedArray":
        """
        Единичный вектор: self.scal_mul(1 / sqrt(norm2)).

        Для нулевого вектора результат inf/NaN (нативное деление).
        """
        n = self._norm()
        with native_arithmetic():
            inv = self.dtype(1) / n
        return self.scal_mul(inv)

    # -------------------------------------------------------------------------
    # ArrayVectorSpaceMut
    # -------------------------------------------------------------------------

    def mut_add(self, rhs: "FixedArray") -> None:
        rhs = self._check_operand(rhs)
        for v, w in zip(self._items, rhs._items):
            v.mut_add(w)

    def mut_sub(self, rhs: "FixedArray") -> None:
        rhs = self._check_operand(rhs)
        for v, w in zip(self._items, rhs._items):
            v.mut_sub(w)

    def mut_mul(self, rhs: "FixedArray") -> None:
        rhs = self._check_operand(rhs)
        for v, w in zip(self._items, rhs._items):
            v.mut_mul(w)

    def mut_div(self, rhs: "FixedArray") -> None:
        rhs = self._check_operand(rhs)
        for v, w in zip(self._items, rhs._items):
            v.mut_div(w)

    def mut_scal_mul(self, rhs: Any) -> None:
        k = self.scalar_type.to_native(rhs)
        for v in self._items:
            v.mut_scal_mul(k)

    def mut_clamp(self, min_value: Any, max_value: Any) -> None:
        lo = self.scalar_type.to_native(min_value)
        hi = self.scalar_type.to_native(max_value)
        # До первой мутации: частичного результата не бывает
        validate_clamp_bounds(lo, hi)
        for v in self._items:
            v.mut_clamp(lo, hi)

    @final
    def mut_normalized(self) -> None:
        """In-place вариант normalized; norm2 читается через ArrayVectorSpace."""
        n = self._norm()
        with native_arithmetic():
            inv = self.dtype(1) / n
        self.mut_scal_mul(inv)


# =============================================================================
# ПАРАМЕТРИЗАЦИЯ
# =============================================================================


def is_array_type(value: Any) -> bool:
    """True для параметризованного класса FixedArray."""
    return (
        isinstance(value, type)
        and issubclass(value, FixedArray)
        and value.element_type is not None
    )


def is_vector_space_type(value: Any) -> bool:
    """Участвует ли тип в векторном пространстве (лист или композит)."""
    return is_scalar_type(value) or is_array_type(value)


def array_type(element_type: Any, length: Any) -> type[FixedArray]:
    """
    Класс массива длины length над element_type.

    Raises:
        UnsupportedElementTypeError: element_type не участвует в векторном
            пространстве или length не является неотрицательным int
    """
    if isinstance(length, bool) or not isinstance(length, (int, np.integer)) or length < 0:
        raise UnsupportedElementTypeError(length, "length must be a non-negative int")
    if not is_vector_space_type(element_type):
        raise UnsupportedElementTypeError(
            element_type, "element must be a scalar leaf or a FixedArray type"
        )
    return _make_array_type(element_type, int(length))


_ARRAY_TYPES: dict[tuple[Any, int], type[FixedArray]] = {}
_ARRAY_TYPES_LOCK = threading.Lock()


def _make_array_type(element_type: Any, length: int) -> type[FixedArray]:
    key = (element_type, length)
    cls = _ARRAY_TYPES.get(key)
    if cls is not None:
        return cls
    with _ARRAY_TYPES_LOCK:
        # Повторная проверка под блокировкой: один класс на ключ
        cls = _ARRAY_TYPES.get(key)
        if cls is None:
            cls = _new_array_type(element_type, length)
            _ARRAY_TYPES[key] = cls
    return cls


def _new_array_type(element_type: Any, length: int) -> type[FixedArray]:
    name = f"FixedArray[{element_type.__name__}, {length}]"
    attrs = {
        "__slots__": (),
        "__module__": __name__,
        "__qualname__": name,
        "element_type": element_type,
        "length": length,
        "scalar_type": element_type.scalar_type,
        "dtype": element_type.dtype,
        "shape": (length,) + tuple(element_type.shape),
    }
    cls = new_class(name, (FixedArray,), exec_body=lambda ns: ns.update(attrs))
    logger.debug("Created array type %s with shape %s", name, attrs["shape"])
    return cls


def array_type_for_shape(scalar_type: Any, shape: Sequence[int]) -> type[FixedArray]:
    """
    Класс вложенного массива заданной формы (внешняя длина первой).

    Examples:
        >>> array_type_for_shape(F32, (3, 2)) is FixedArray[FixedArray[F32, 2], 3]
        True
    """
    if not is_scalar_type(scalar_type):
        raise UnsupportedElementTypeError(scalar_type, "expected a scalar leaf type")
    if len(shape) == 0:
        raise UnsupportedElementTypeError(tuple(shape), "shape must have at least one dim")
    result: Any = scalar_type
    for n in reversed(tuple(shape)):
        result = array_type(result, n)
    return result


def _rebuild_array(scalar_type: Any, shape: tuple[int, ...], values: list) -> FixedArray:
    return array_type_for_shape(scalar_type, shape)(values)
