from __future__ import annotations

"""Validator compiler.

``compile_validator`` turns a canonical JSON Schema into a reusable
``SchemaValidator``. Compilation checks the schema against its meta-schema and
for internal contradictions, so a broken tool schema fails when the tool is
registered instead of in the middle of a run.

A compiled validator is a pure function of its input: it works on a deep copy
of the candidate, applies declared defaults and type coercions, and reports
violations as ``(path, reason, keyword)`` entries with JSON-pointer paths.
It never adds properties the schema does not declare.

Coercion rules (``coerce_types``):

- string: numbers and booleans are rendered, ``None`` becomes ``""``.
- number/integer: numeric strings are parsed, booleans become ``1``/``0``,
  ``None`` becomes ``0``; integers only from integral values.
- boolean: ``"true"``/``"false"``, ``1``/``0`` and ``None``.
- null: ``""``, ``0`` and ``False``.
- ``"array"`` mode additionally wraps a scalar into a one-item array and
  unwraps a one-item array into a scalar.
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional, Sequence, Set, Union

from jsonschema import Draft202012Validator, FormatChecker, validators
from jsonschema.exceptions import SchemaError, ValidationError
from pydantic import BaseModel, ConfigDict, Field

from ..errors import SchemaCompileError
from .normalizer import SchemaLike, to_json_schema

logger = logging.getLogger(__name__)

_MISSING = object()

_BOUND_PAIRS = (
    ("minimum", "maximum"),
    ("exclusiveMinimum", "exclusiveMaximum"),
    ("minLength", "maxLength"),
    ("minItems", "maxItems"),
    ("minProperties", "maxProperties"),
    ("minContains", "maxContains"),
)


class ValidatorOptions(BaseModel):
    """Options controlling coercion, defaults and format strictness."""

    model_config = ConfigDict(frozen=True)

    coerce_types: Union[bool, Literal["array"]] = Field(
        default="array", description="Coerce scalar types; 'array' also wraps/unwraps arrays"
    )
    use_defaults: bool = Field(default=True, description="Inject declared defaults for missing properties")
    validate_formats: bool = Field(default=True, description="Enforce 'format' keywords (date, email, ...)")


@dataclass(frozen=True)
class Violation:
    """A violated constraint."""

    path: str
    reason: str
    keyword: str = ""


@dataclass
class ValidationResult:
    """Outcome of validating one candidate value."""

    valid: bool
    value: Any
    violations: List[Violation] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def _pointer(parts: Sequence[Any]) -> str:
    if not parts:
        return ""
    return "/" + "/".join(str(p).replace("~", "~0").replace("/", "~1") for p in parts)


def _required_with_path(validator: Any, required: Any, instance: Any, schema: Mapping) -> Iterator[ValidationError]:
    if not validator.is_type(instance, "object"):
        return
    for prop in required:
        if prop not in instance:
            yield ValidationError(f"{prop!r} is a required property", path=(prop,))


_ExtendedValidator = validators.extend(Draft202012Validator, {"required": _required_with_path})


def _declared_types(schema: Mapping) -> List[str]:
    declared = schema.get("type")
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, list):
        return [t for t in declared if isinstance(t, str)]
    return []


def _intersect_types(left: Set[str], right: List[str]) -> Set[str]:
    # An integer is also a number.
    common = left & set(right)
    if ("integer" in left and "number" in right) or ("number" in left and "integer" in right):
        common.add("integer")
    return common


def _matches_type(value: Any, type_name: str) -> bool:
    if type_name == "null":
        return value is None
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "array":
        return isinstance(value, list)
    if type_name == "object":
        return isinstance(value, dict)
    return True


def _parse_number(text: str) -> Any:
    try:
        number = float(text.strip())
    except ValueError:
        return _MISSING
    if math.isnan(number) or math.isinf(number):
        return _MISSING
    return int(number) if number.is_integer() and "." not in text and "e" not in text.lower() else number


def _coerce_scalar(value: Any, type_name: str) -> Any:
    if type_name == "string":
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if value is None:
            return ""
    elif type_name in ("number", "integer"):
        candidate: Any = _MISSING
        if isinstance(value, bool):
            candidate = 1 if value else 0
        elif value is None:
            candidate = 0
        elif isinstance(value, str) and value.strip():
            candidate = _parse_number(value)
        elif type_name == "integer" and isinstance(value, float) and value.is_integer():
            candidate = int(value)
        if candidate is not _MISSING and type_name == "integer":
            if isinstance(candidate, float):
                candidate = int(candidate) if candidate.is_integer() else _MISSING
        return candidate
    elif type_name == "boolean":
        if value in ("true", 1) and not isinstance(value, bool):
            return True
        if value in ("false", 0, None) and not isinstance(value, bool):
            return False
    elif type_name == "null":
        if value is False or (value in ("", 0) and not isinstance(value, bool)):
            return None
    return _MISSING


class SchemaValidator:
    """Compiled validator bound to one canonical schema."""

    def __init__(self, schema: Dict[str, Any], options: ValidatorOptions, validator: Any) -> None:
        self.schema = schema
        self.options = options
        self._validator = validator

    def __call__(self, value: Any) -> ValidationResult:
        return self.validate(value)

    def validate(self, value: Any) -> ValidationResult:
        """
        Validate ``value``.

        Returns:
            ``ValidationResult`` whose ``value`` holds the candidate with
            defaults and coercions applied.
        """
        candidate = copy.deepcopy(value)
        candidate = self._prepare(candidate, self.schema, depth=0)

        violations = [
            Violation(path=_pointer(list(err.absolute_path)), reason=err.message, keyword=str(err.validator))
            for err in sorted(self._validator.iter_errors(candidate), key=lambda e: list(map(str, e.absolute_path)))
        ]
        return ValidationResult(valid=not violations, value=candidate, violations=violations)

    def is_valid(self, value: Any) -> bool:
        return self.validate(value).valid

    def _resolve(self, schema: Any) -> Any:
        # Follow local "$ref"s so defaults and coercion see the target schema.
        seen = 0
        while isinstance(schema, Mapping) and isinstance(schema.get("$ref"), str) and seen < 32:
            ref = schema["$ref"]
            if not ref.startswith("#"):
                return schema
            target: Any = self.schema
            for part in [p for p in ref[1:].split("/") if p]:
                part = part.replace("~1", "/").replace("~0", "~")
                if not isinstance(target, Mapping) or part not in target:
                    return schema
                target = target[part]
            schema = target
            seen += 1
        return schema

    def _prepare(self, value: Any, schema: Any, depth: int) -> Any:
        schema = self._resolve(schema)
        if not isinstance(schema, Mapping) or depth > 64:
            return value

        if self.options.coerce_types:
            value = self._coerce(value, schema)

        if isinstance(value, dict):
            properties = schema.get("properties")
            if isinstance(properties, Mapping):
                for name, sub in properties.items():
                    sub = self._resolve(sub)
                    if name not in value:
                        if self.options.use_defaults and isinstance(sub, Mapping) and "default" in sub:
                            value[name] = copy.deepcopy(sub["default"])
                        continue
                    value[name] = self._prepare(value[name], sub, depth + 1)
        elif isinstance(value, list):
            prefix = schema.get("prefixItems")
            items = schema.get("items")
            for index, item in enumerate(value):
                if isinstance(prefix, list) and index < len(prefix):
                    value[index] = self._prepare(item, prefix[index], depth + 1)
                elif isinstance(items, Mapping):
                    value[index] = self._prepare(item, items, depth + 1)
        return value

    def _coerce(self, value: Any, schema: Mapping) -> Any:
        types = _declared_types(schema)
        if not types or any(_matches_type(value, t) for t in types):
            return value

        array_mode = self.options.coerce_types == "array"
        if array_mode and isinstance(value, list) and len(value) == 1:
            for type_name in types:
                if type_name not in ("array", "object") and _matches_type(value[0], type_name):
                    return value[0]
        for type_name in types:
            if type_name == "array":
                if array_mode and not isinstance(value, (list, dict)):
                    return [value]
                continue
            if type_name == "object":
                continue
            source = value[0] if array_mode and isinstance(value, list) and len(value) == 1 else value
            coerced = _coerce_scalar(source, type_name)
            if coerced is not _MISSING:
                return coerced
        return value


def _check_consistency(node: Any, pointer: str, problems: List[str]) -> None:
    if isinstance(node, list):
        for index, sub in enumerate(node):
            _check_consistency(sub, f"{pointer}/{index}", problems)
        return
    if not isinstance(node, Mapping):
        return

    for low, high in _BOUND_PAIRS:
        lo, hi = node.get(low), node.get(high)
        if isinstance(lo, (int, float)) and isinstance(hi, (int, float)) and lo > hi:
            problems.append(f"{pointer or '#'}: {low} ({lo}) is greater than {high} ({hi})")

    types = _declared_types(node)
    if types:
        if "enum" in node and isinstance(node["enum"], list):
            bad = [v for v in node["enum"] if not any(_matches_type(v, t) for t in types)]
            if bad:
                problems.append(f"{pointer or '#'}: enum values {bad!r} contradict type {types!r}")
        if "const" in node and not any(_matches_type(node["const"], t) for t in types):
            problems.append(f"{pointer or '#'}: const {node['const']!r} contradicts type {types!r}")
        if "default" in node and not any(_matches_type(node["default"], t) for t in types):
            problems.append(f"{pointer or '#'}: default {node['default']!r} contradicts type {types!r}")

    branches = node.get("allOf")
    if isinstance(branches, list):
        allowed = set(types) if types else None
        for branch in branches:
            branch_types = _declared_types(branch) if isinstance(branch, Mapping) else []
            if not branch_types:
                continue
            allowed = set(branch_types) if allowed is None else _intersect_types(allowed, branch_types)
            if not allowed:
                problems.append(f"{pointer or '#'}: allOf branches declare incompatible types")
                break

    if node.get("additionalProperties") is False and isinstance(node.get("required"), list):
        declared = node.get("properties") if isinstance(node.get("properties"), Mapping) else {}
        patterns = node.get("patternProperties")
        if not patterns:
            for name in node["required"]:
                if name not in declared:
                    problems.append(f"{pointer or '#'}: required property {name!r} is forbidden by additionalProperties")

    for key, sub in node.items():
        if key in ("enum", "const", "default", "examples", "required"):
            continue
        if isinstance(sub, (Mapping, list)):
            _check_consistency(sub, f"{pointer}/{key}", problems)


def compile_validator(schema: Mapping[str, Any], options: Optional[ValidatorOptions] = None) -> SchemaValidator:
    """
    Compile a canonical schema into a validator.

    Args:
        schema: Canonical JSON Schema (see ``normalizer.to_json_schema``).
        options: Coercion/default/format options.

    Raises:
        SchemaCompileError: If the schema violates its meta-schema or is
            internally inconsistent.
    """
    options = options or ValidatorOptions()
    schema = copy.deepcopy(dict(schema))

    base = validators.validator_for(schema, default=Draft202012Validator)
    try:
        base.check_schema(schema)
    except SchemaError as e:
        raise SchemaCompileError(f"Invalid schema: {e.message}", [e], problems=[e.message]) from e

    problems: List[str] = []
    _check_consistency(schema, "", problems)
    if problems:
        raise SchemaCompileError(
            f"Inconsistent schema: {'; '.join(problems)}",
            problems=problems,
        )

    cls = _ExtendedValidator if base is Draft202012Validator else validators.extend(base, {"required": _required_with_path})
    format_checker = FormatChecker() if options.validate_formats else None
    compiled = cls(schema, format_checker=format_checker)
    logger.debug(f"Validator compiled for schema with {len(schema.get('properties', {}) or {})} properties")
    return SchemaValidator(schema, options, compiled)


def create_schema_validator(schema: SchemaLike, options: Optional[ValidatorOptions] = None) -> SchemaValidator:
    """Normalize ``schema`` and compile it."""
    return compile_validator(to_json_schema(schema), options)
