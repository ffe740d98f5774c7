"""
Конфигурация векторного пространства.

Активная конфигурация хранится в ContextVar: она локальна для потока и
asyncio-задачи. Между вызовами операций библиотека состояния не хранит.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class ReductionOrder(str, Enum):
    """Порядок суммирования в dot композита."""

    # Строго слева направо по индексам (воспроизводимо)
    SEQUENTIAL = "sequential"
    # Попарное дерево (ослабленный порядок)
    PAIRWISE = "pairwise"


@dataclass(frozen=True)
class VectorSpaceConfig:
    """Конфигурация операций векторного пространства.

    Параметры по умолчанию воспроизводят порядок по индексам.
    """

    # Порядок суммирования в dot
    reduction: ReductionOrder = ReductionOrder.SEQUENTIAL

    # WARNING в лог при нулевой или неконечной норме в normalized
    warn_on_degenerate_norm: bool = True

    def __post_init__(self) -> None:
        # Допускаем строковое значение ("pairwise")
        object.__setattr__(self, "reduction", ReductionOrder(self.reduction))
        if not isinstance(self.warn_on_degenerate_norm, bool):
            raise TypeError(
                f"warn_on_degenerate_norm must be bool, got {self.warn_on_degenerate_norm!r}"
            )


_DEFAULT_CONFIG = VectorSpaceConfig()

_ACTIVE_CONFIG: ContextVar[VectorSpaceConfig] = ContextVar(
    "arrayspace_config", default=_DEFAULT_CONFIG
)


def get_config() -> VectorSpaceConfig:
    """Активная конфигурация текущего контекста."""
    return _ACTIVE_CONFIG.get()


def set_config(config: VectorSpaceConfig) -> None:
    """
    Установка конфигурации для текущего контекста.

    Args:
        config: Новая конфигурация

    Raises:
        TypeError: Если config не VectorSpaceConfig
    """
    if not isinstance(config, VectorSpaceConfig):
        raise TypeError(f"config must be VectorSpaceConfig, got {type(config).__name__}")
    logger.debug("arrayspace config set: %s", config)
    _ACTIVE_CONFIG.set(config)


def reset_config() -> None:
    """Возврат к конфигурации по умолчанию."""
    set_config(_DEFAULT_CONFIG)


@contextmanager
def use_config(**overrides: Any) -> Iterator[VectorSpaceConfig]:
    """
    Временное переопределение параметров конфигурации.

    Examples:
        >>> with use_config(reduction="pairwise"):
        ...     x.dot(y)

    Raises:
        TypeError: Неизвестный параметр
        ValueError: Невалидное значение reduction
    """
    known = {f.name for f in fields(VectorSpaceConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"Unknown config options: {sorted(unknown)}")

    config = replace(get_config(), **overrides)
    token = _ACTIVE_CONFIG.set(config)
    logger.debug("arrayspace config overridden: %s", config)
    try:
        yield config
    finally:
        _ACTIVE_CONFIG.reset(token)
