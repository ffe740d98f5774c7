"""
Наборы операций векторного пространства.

Два взаимодополняющих набора:
- ArrayVectorSpace: операции с семантикой значений (операнды не меняются,
  возвращается новое значение)
- ArrayVectorSpaceMut: те же операции как мутация левого операнда

Оба набора реализуются скалярным листом (scalar.py) и обобщённым
композитом фиксированной длины (array.py), который делегирует операции
своим элементам.

Производные операции (norm2, а также normalized/mut_normalized композита)
финальны: переопределение в подклассе отвергается при создании класса.
"""

import numbers
from abc import ABC, abstractmethod
from typing import Any, Iterable, final

import numpy as np


def is_raw_scalar(value: Any) -> bool:
    """True для «сырого» скаляра T (число Python или numpy-скаляр)."""
    return isinstance(value, (numbers.Real, np.generic))


def is_scalar_operand(target: Any, value: Any) -> bool:
    """
    Трактуется ли value как скаляр T для оператора `*` над target.

    Сырой скаляр всегда скаляр. Лист (shape == ()) становится скаляром,
    только если target композит; лист * лист остаётся mul.
    """
    if is_raw_scalar(value):
        return True
    return getattr(value, "shape", None) == () and getattr(target, "shape", ()) != ()


def reject_final_overrides(cls: type, owner: type, names: Iterable[str]) -> None:
    """
    Запрет переопределения производных операций.

    Raises:
        TypeError: Если cls определяет одну из names
    """
    for name in names:
        if name in cls.__dict__:
            raise TypeError(
                f"{cls.__name__}.{name} is derived in {owner.__name__} "
                f"and cannot be overridden"
            )


# =============================================================================
# VALUE SEMANTICS
# =============================================================================


class ArrayVectorSpace(ABC):
    """
    Векторное пространство с семантикой значений.

    Все бинарные операции требуют операнд той же формы и точности;
    несовпадение отвергается (ShapeMismatchError) до вычисления результата.
    """

    __slots__ = ()

    # Запрещаем numpy разворачивать наши объекты в ndarray при `np.float64(2) * x`
    __array_ufunc__ = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        reject_final_overrides(cls, ArrayVectorSpace, ("norm2",))

    @abstractmethod
    def dot(self, rhs: "ArrayVectorSpace") -> np.floating:
        """Скалярное произведение."""

    @final
    def norm2(self) -> np.floating:
        """Квадрат нормы: по определению ровно self.dot(self)."""
        return self.dot(self)

    @abstractmethod
    def add(self, rhs: "ArrayVectorSpace") -> "ArrayVectorSpace": ...

    @abstractmethod
    def sub(self, rhs: "ArrayVectorSpace") -> "ArrayVectorSpace": ...

    @abstractmethod
    def mul(self, rhs: "ArrayVectorSpace") -> "ArrayVectorSpace": ...

    @abstractmethod
    def div(self, rhs: "ArrayVectorSpace") -> "ArrayVectorSpace":
        """Поэлементное деление; деление на ноль даёт inf/NaN."""

    @abstractmethod
    def scal_mul(self, rhs: Any) -> "ArrayVectorSpace":
        """Умножение каждого листового элемента на скаляр rhs."""

    @abstractmethod
    def clamp(self, min_value: Any, max_value: Any) -> "ArrayVectorSpace":
        """Ограничение каждого листового элемента диапазоном [min, max]."""

    @abstractmethod
    def normalized(self) -> "ArrayVectorSpace": ...

    # -------------------------------------------------------------------------
    # Операторы
    # -------------------------------------------------------------------------

    def __add__(self, rhs: Any) -> "ArrayVectorSpace":
        return self.add(rhs)

    def __sub__(self, rhs: Any) -> "ArrayVectorSpace":
        return self.sub(rhs)

    def __mul__(self, rhs: Any) -> "ArrayVectorSpace":
        if is_scalar_operand(self, rhs):
            return self.scal_mul(rhs)
        if is_scalar_operand(rhs, self):
            # лист * композит: отдаём композиту через __rmul__
            return NotImplemented
        return self.mul(rhs)

    def __rmul__(self, lhs: Any) -> "ArrayVectorSpace":
        if is_scalar_operand(self, lhs):
            return self.scal_mul(lhs)
        return NotImplemented

    def __truediv__(self, rhs: Any) -> "ArrayVectorSpace":
        return self.div(rhs)


# =============================================================================
# IN-PLACE
# =============================================================================


class ArrayVectorSpaceMut(ABC):
    """
    Векторное пространство с мутацией левого операнда.

    Операции меняют self, возвращают None и никогда не меняют rhs.
    Результаты побитово совпадают с аналогами из ArrayVectorSpace.

    mut_normalized композита читает norm2 через ArrayVectorSpace, поэтому
    тип должен реализовывать оба набора.
    """

    __slots__ = ()

    @abstractmethod
    def mut_add(self, rhs: Any) -> None: ...

    @abstractmethod
    def mut_sub(self, rhs: Any) -> None: ...

    @abstractmethod
    def mut_mul(self, rhs: Any) -> None: ...

    @abstractmethod
    def mut_div(self, rhs: Any) -> None: ...

    @abstractmethod
    def mut_scal_mul(self, rhs: Any) -> None: ...

    @abstractmethod
    def mut_clamp(self, min_value: Any, max_value: Any) -> None: ...

    @abstractmethod
    def mut_normalized(self) -> None: ...

    def __iadd__(self, rhs: Any) -> "ArrayVectorSpaceMut":
        self.mut_add(rhs)
        return self

    def __isub__(self, rhs: Any) -> "ArrayVectorSpaceMut":
        self.mut_sub(rhs)
        return self

    def __imul__(self, rhs: Any) -> "ArrayVectorSpaceMut":
        if is_scalar_operand(self, rhs):
            self.mut_scal_mul(rhs)
        else:
            self.mut_mul(rhs)
        return self

    def __itruediv__(self, rhs: Any) -> "ArrayVectorSpaceMut":
        self.mut_div(rhs)
        return self
