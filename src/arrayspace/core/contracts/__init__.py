"""
Contract Validation Module

Модуль для валидации JSON-представлений массивов arrayspace.
"""

from .validators import (
    ArrayPayloadValidator,
    ArraySchemaBuilder,
    build_array_schema,
    decode_array,
    dumps_array,
    encode_array,
    loads_array,
    validate_array_payload,
)

__all__ = [
    # Classes
    "ArraySchemaBuilder",
    "ArrayPayloadValidator",
    # Functions
    "build_array_schema",
    "validate_array_payload",
    "decode_array",
    "encode_array",
    "loads_array",
    "dumps_array",
]
