"""
Исключения arrayspace.

Числовые крайние случаи (деление на ноль, нормализация нулевого вектора)
исключений не порождают: распространяются нативные inf/NaN.
Исключения существуют только для несовместимых форм и точностей операндов,
неподдерживаемых типов элементов и невалидного диапазона clamp.
"""

from typing import Any


class ShapeMismatchError(TypeError):
    """
    Операнды имеют разную форму.

    Attributes:
        expected: Ожидаемая форма (кортеж длин, внешняя первой)
        actual: Фактическая форма или описание значения
    """

    def __init__(self, expected: Any, actual: Any, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Shape mismatch: expected {expected}, got {actual}")


class PrecisionMismatchError(ShapeMismatchError):
    """
    Операнд или скалярный аргумент другой точности (например, float64 для F32).

    Неявного смешивания точностей нет.
    """

    def __init__(self, expected: Any, actual: Any):
        super().__init__(
            expected,
            actual,
            f"Precision mismatch: expected {expected}, got {actual}",
        )


class UnsupportedElementTypeError(TypeError):
    """
    Тип не участвует в абстракции векторного пространства.

    Attributes:
        element_type: Отвергнутый тип (или значение длины)
    """

    def __init__(self, element_type: Any, reason: str):
        self.element_type = element_type
        super().__init__(f"Unsupported element type {element_type!r}: {reason}")


class InvalidClampRangeError(ValueError):
    """
    clamp вызван с min > max или с NaN-границей.

    Attributes:
        min_value: Нижняя граница
        max_value: Верхняя граница
    """

    def __init__(self, min_value: Any, max_value: Any):
        self.min_value = min_value
        self.max_value = max_value
        super().__init__(
            f"Invalid clamp range: min={min_value} must be <= max={max_value} "
            f"and neither may be NaN"
        )
