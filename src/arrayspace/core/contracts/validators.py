"""
JSON Schema Array Contracts

Модуль для валидации внешних JSON-представлений массивов (вложенные списки
чисел) до построения FixedArray. Схема строится по ArrayShape: каждый уровень
— массив ровно из N элементов, листья — числа.
Использует библиотеку jsonschema (Draft 2020-12).
"""

import json
from typing import Any, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator, ValidationError

from arrayspace.core.domain.shape import ArrayShape
from arrayspace.core.math.array import FixedArray

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


def _as_shape(shape: Any) -> ArrayShape:
    if isinstance(shape, ArrayShape):
        return shape
    return ArrayShape.of(shape)


# =============================================================================
# SCHEMA BUILDER
# =============================================================================


class ArraySchemaBuilder:
    """
    Построитель JSON Schema для форм массивов.

    Построенные схемы кэшируются по ArrayShape.
    """

    def __init__(self):
        # Кэш построенных схем
        self._schemas: Dict[ArrayShape, Dict[str, Any]] = {}

    def build_schema(self, shape: ArrayShape) -> Dict[str, Any]:
        """
        JSON Schema для формы.

        Args:
            shape: Форма массива

        Returns:
            Схема как dict

        Raises:
            ValueError: Если построенная схема невалидна (meta-validation)
        """
        if shape in self._schemas:
            return self._schemas[shape]

        node: Dict[str, Any] = {"type": "number"}
        for n in reversed(shape.dims):
            node = {"type": "array", "minItems": n, "maxItems": n, "items": node}

        dims = "x".join(str(n) for n in shape.dims)
        schema = {
            "$schema": SCHEMA_DIALECT,
            "title": f"{shape.precision.value}[{dims}]",
            **node,
        }

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema for shape {shape}: {e}")

        self._schemas[shape] = schema
        return schema


# Глобальный экземпляр построителя
_SCHEMA_BUILDER = ArraySchemaBuilder()


def build_array_schema(shape: Any) -> Dict[str, Any]:
    """JSON Schema для ArrayShape или класса/экземпляра FixedArray."""
    return _SCHEMA_BUILDER.build_schema(_as_shape(shape))


# =============================================================================
# PAYLOAD VALIDATOR
# =============================================================================


class ArrayPayloadValidator:
    """
    Валидатор вложенных списков против формы массива.
    """

    def __init__(self, shape: Any):
        """
        Args:
            shape: ArrayShape или класс/экземпляр FixedArray
        """
        self.shape = _as_shape(shape)
        self.schema = _SCHEMA_BUILDER.build_schema(self.shape)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Any) -> None:
        """
        Raises:
            ValidationError: Если данные не соответствуют форме
        """
        self.validator.validate(data)

    def is_valid(self, data: Any) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Any) -> Iterator[ValidationError]:
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_array_payload(payload: Any, shape: Any) -> None:
    """
    Валидация вложенных списков против формы.

    Raises:
        ValidationError: Если данные не соответствуют форме
    """
    ArrayPayloadValidator(shape).validate(payload)


def decode_array(payload: Any, array_type: type[FixedArray]) -> FixedArray:
    """
    FixedArray из вложенных списков (после валидации схемой).

    Raises:
        ValidationError: Если данные не соответствуют форме
    """
    validate_array_payload(payload, array_type)
    return array_type(payload)


def encode_array(array: FixedArray) -> list:
    """Вложенные списки float."""
    return array.to_list()


def loads_array(text: str | bytes, array_type: type[FixedArray]) -> FixedArray:
    """FixedArray из JSON-текста."""
    return decode_array(json.loads(text), array_type)


def dumps_array(array: FixedArray, **kwargs: Any) -> str:
    """JSON-текст массива (kwargs передаются в json.dumps)."""
    return json.dumps(encode_array(array), **kwargs)
