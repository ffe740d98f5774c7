"""
Numerics — нативные скалярные примитивы

Модуль содержит общую скалярную логику, переиспользуемую листьями и
композитами обоих наборов операций:
- Контекст нативной IEEE-арифметики (без предупреждений numpy о делении на ноль)
- Примитив clamp со строгой проверкой диапазона
- Редукции суммы: последовательная (по индексам) и попарная
- Сравнения float с толерантностью (для проверок и тестов)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Деление на ноль и переполнение НЕ перехватываются: результат inf/NaN
2. Последовательная сумма складывает строго слева направо, начиная с нуля
3. clamp с min > max или NaN-границей всегда отвергается (InvalidClampRangeError)
4. Все операции детерминированы и воспроизводимы
"""

import math
from typing import Final, Sequence

import numpy as np

from arrayspace.core.exceptions import InvalidClampRangeError

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Относительная толерантность сравнения float
EPS_FLOAT_COMPARE_REL: Final[float] = 1e-9

# Абсолютная толерантность сравнения float
EPS_FLOAT_COMPARE_ABS: Final[float] = 1e-12

# Относительная толерантность для single precision (≈ 2^-20)
EPS_FLOAT32_COMPARE_REL: Final[float] = 1e-6


# =============================================================================
# НАТИВНАЯ АРИФМЕТИКА
# =============================================================================


def native_arithmetic() -> np.errstate:
    """
    Контекст нативной IEEE-арифметики.

    numpy по умолчанию выдаёт RuntimeWarning при делении на ноль и
    переполнении. Результат от этого не меняется, поэтому предупреждения
    подавляются: inf/NaN возвращаются молча, как у встроенных float-операций.
    Новый экземпляр на каждый вызов (errstate не реентерабелен).
    """
    return np.errstate(all="ignore")


def is_valid_float(value: float) -> bool:
    """True если значение конечное (не NaN, не Inf)."""
    return math.isfinite(value)


# =============================================================================
# CLAMP
# =============================================================================


def validate_clamp_bounds(min_value: float, max_value: float) -> None:
    """
    Валидация диапазона clamp.

    Args:
        min_value: Нижняя граница
        max_value: Верхняя граница

    Raises:
        InvalidClampRangeError: Если min_value > max_value или граница NaN
    """
    if math.isnan(min_value) or math.isnan(max_value) or min_value > max_value:
        raise InvalidClampRangeError(min_value, max_value)


def clamp_scalar(value: np.floating, min_value: np.floating, max_value: np.floating) -> np.floating:
    """
    Ограничение скаляра диапазоном [min_value, max_value].

    NaN-значение проходит без изменений (оба сравнения ложны).

    Args:
        value: Исходное значение
        min_value: Нижняя граница (той же точности)
        max_value: Верхняя граница (той же точности)

    Returns:
        Значение, ограниченное диапазоном

    Raises:
        InvalidClampRangeError: Если диапазон невалиден

    Examples:
        >>> clamp_scalar(np.float64(-1.0), np.float64(0.0), np.float64(1.0))
        np.float64(0.0)
        >>> clamp_scalar(np.float64(2.0), np.float64(0.0), np.float64(1.0))
        np.float64(1.0)
    """
    validate_clamp_bounds(min_value, max_value)

    result = value
    if result < min_value:
        result = min_value
    if result > max_value:
        result = max_value
    return result


# =============================================================================
# РЕДУКЦИИ
# =============================================================================


def sequential_sum(values: Sequence[np.floating], zero: np.floating) -> np.floating:
    """
    Сумма слева направо в порядке индексов, начиная с zero.

    Порядок сложения фиксирован: ((zero + v0) + v1) + ...
    """
    acc = zero
    with native_arithmetic():
        for v in values:
            acc = acc + v
    return acc


def pairwise_sum(values: Sequence[np.floating], zero: np.floating) -> np.floating:
    """
    Попарная (древовидная) сумма.

    Режим ослабленного порядка: меньше накопление ошибки округления на длинных
    массивах, но результат может отличаться от sequential_sum в последних битах.
    """
    if not values:
        return zero
    if len(values) == 1:
        with native_arithmetic():
            return zero + values[0]

    mid = len(values) // 2
    left = pairwise_sum(values[:mid], zero)
    right = pairwise_sum(values[mid:], zero)
    with native_arithmetic():
        return left + right


# =============================================================================
# EPSILON-СРАВНЕНИЯ FLOAT
# =============================================================================


def is_close(
    a: float,
    b: float,
    rel_tol: float = EPS_FLOAT_COMPARE_REL,
    abs_tol: float = EPS_FLOAT_COMPARE_ABS,
) -> bool:
    """
    Сравнение float с учётом машинной точности.

    Алгоритм:
        abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)

    Examples:
        >>> is_close(1.0, 1.0 + 1e-10)
        True
        >>> is_close(1.0, 1.1)
        False
    """
    return math.isclose(float(a), float(b), rel_tol=rel_tol, abs_tol=abs_tol)
