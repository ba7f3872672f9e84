"""Schema validation pipeline.

 - ``normalizer``: declarative schema (JSON Schema mapping, pydantic model,
   ``TypeAdapter``) → canonical JSON Schema.
 - ``validator``: canonical schema → compiled ``SchemaValidator`` with
   coercion and default injection.
 - ``repair``: best-effort recovery of JSON values from malformed text.
"""

from .normalizer import SchemaLike, normalize, to_json_schema, validate_schema
from .repair import parse_broken_json
from .validator import (
    SchemaValidator,
    ValidationResult,
    ValidatorOptions,
    Violation,
    compile_validator,
    create_schema_validator,
)

__all__ = [
    "SchemaLike",
    "SchemaValidator",
    "ValidationResult",
    "ValidatorOptions",
    "Violation",
    "compile_validator",
    "create_schema_validator",
    "normalize",
    "parse_broken_json",
    "to_json_schema",
    "validate_schema",
]
