from __future__ import annotations

"""Schema normalizer.

Turns a declarative schema of any supported dialect into canonical JSON
Schema:

- ``Mapping`` JSON Schema documents are deep-copied.
- pydantic ``BaseModel`` subclasses and ``TypeAdapter`` instances are
  converted with pydantic's JSON Schema generator.

The result is then canonicalized recursively. Every object node (``type``
``"object"`` or a node declaring ``properties``) carries a ``required`` list:
missing becomes ``[]`` and a non-list value becomes the list of declared
property names. Sub-schemas are re-normalized even when they look canonical
already, which keeps the operation idempotent.

Schemas whose constraints live in code (pydantic validators, mapping schemas
holding callables) cannot be represented declaratively and are rejected with
``SchemaConversionError`` instead of silently dropping the constraint.
"""

import copy
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Set, Type, Union

from pydantic import BaseModel, TypeAdapter

from ..errors import SchemaConversionError

logger = logging.getLogger(__name__)

SchemaLike = Union[Mapping, Type[BaseModel], TypeAdapter]

_FUNCTION_SCHEMA_TYPES = ("function-after", "function-before", "function-wrap", "function-plain")
_JSON_SCALARS = (str, int, float, bool, type(None))

# Keywords holding a single sub-schema.
_SCHEMA_KEYWORDS = ("additionalProperties", "items", "not", "contains", "propertyNames", "if", "then", "else")
# Keywords holding a list of sub-schemas.
_SCHEMA_LIST_KEYWORDS = ("anyOf", "oneOf", "allOf", "prefixItems")
# Keywords holding a name -> sub-schema mapping.
_SCHEMA_MAP_KEYWORDS = ("properties", "patternProperties", "$defs", "definitions")


def is_model_class(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def validate_schema(schema: Any) -> None:
    """
    Reject schemas that cannot be converted to declarative JSON Schema.

    Raises:
        SchemaConversionError: For pydantic models carrying code-based
            validators, mapping schemas with non-JSON values and unsupported
            schema types.
    """
    if is_model_class(schema):
        _check_core_schema(schema.__pydantic_core_schema__, schema.__name__)
    elif isinstance(schema, TypeAdapter):
        _check_core_schema(schema.core_schema, "TypeAdapter")
    elif isinstance(schema, Mapping):
        _check_json_value(schema, "#")
    else:
        raise SchemaConversionError(f"Unsupported schema type: {type(schema).__name__}")


def to_json_schema(schema: SchemaLike) -> Dict[str, Any]:
    """
    Convert ``schema`` into a canonical JSON Schema document.

    Args:
        schema: A JSON Schema mapping, a pydantic model class or a ``TypeAdapter``.

    Returns:
        A new canonical schema; the input is never mutated.

    Raises:
        SchemaConversionError: If the schema dialect cannot be converted.
    """
    validate_schema(schema)

    if is_model_class(schema):
        logger.debug(f"Converting pydantic model {schema.__name__} to JSON Schema")
        converted: Any = schema.model_json_schema()
    elif isinstance(schema, TypeAdapter):
        converted = schema.json_schema()
    else:
        converted = copy.deepcopy(dict(schema))

    return normalize(converted)


def normalize(node: Any) -> Any:
    """Canonicalize a JSON Schema node recursively. Returns a new value."""
    if not isinstance(node, Mapping):
        return node

    out: Dict[str, Any] = {key: value for key, value in node.items()}

    if _is_object_node(out):
        properties = out.get("properties")
        required = out.get("required")
        if required is None:
            out["required"] = []
        elif not isinstance(required, list):
            out["required"] = list(properties.keys()) if isinstance(properties, Mapping) else []

    for keyword in _SCHEMA_MAP_KEYWORDS:
        value = out.get(keyword)
        if isinstance(value, Mapping):
            out[keyword] = {name: normalize(sub) for name, sub in value.items()}

    for keyword in _SCHEMA_KEYWORDS:
        value = out.get(keyword)
        if isinstance(value, Mapping):
            out[keyword] = normalize(value)
        elif keyword == "items" and isinstance(value, list):
            out[keyword] = [normalize(sub) for sub in value]

    for keyword in _SCHEMA_LIST_KEYWORDS:
        value = out.get(keyword)
        if isinstance(value, list):
            out[keyword] = [normalize(sub) for sub in value]

    return out


def _is_object_node(node: Mapping) -> bool:
    declared = node.get("type")
    if declared == "object":
        return True
    if isinstance(declared, list) and "object" in declared:
        return True
    return "properties" in node


def _check_core_schema(core_schema: Any, owner: str) -> None:
    """Reject code-based validators anywhere in a pydantic core schema."""
    stack: List[Any] = [core_schema]
    seen: Set[int] = set()
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, Mapping):
            if node.get("type") in _FUNCTION_SCHEMA_TYPES:
                function = _user_function(node)
                if function is not None:
                    name = getattr(function, "__qualname__", repr(function))
                    raise SchemaConversionError(
                        f"pydantic validator {name} on {owner} cannot be converted to JSON Schema!",
                        context={"schema": owner, "validator": name},
                    )
            for key, sub in node.items():
                # Serializers do not constrain input.
                if key in ("serialization", "metadata"):
                    continue
                if isinstance(sub, (Mapping, list, tuple)):
                    stack.append(sub)
        elif isinstance(node, (list, tuple)):
            stack.extend(sub for sub in node if isinstance(sub, (Mapping, list, tuple)))


def _user_function(node: Mapping) -> Any:
    info = node.get("function")
    function = info.get("function") if isinstance(info, Mapping) else info
    module = getattr(function, "__module__", None) or ""
    # pydantic implements some standard types (paths, IP addresses, ...) with
    # its own function validators; those have a declarative JSON Schema.
    if module.split(".")[0] in ("pydantic", "pydantic_core"):
        return None
    return function


def _check_json_value(value: Any, pointer: str) -> None:
    if isinstance(value, Mapping):
        for key, sub in value.items():
            if not isinstance(key, str):
                raise SchemaConversionError(f"Schema key at {pointer} is not a string: {key!r}")
            _check_json_value(sub, f"{pointer}/{key}")
    elif isinstance(value, (list, tuple)):
        for index, sub in enumerate(value):
            _check_json_value(sub, f"{pointer}/{index}")
    elif not isinstance(value, _JSON_SCALARS):
        raise SchemaConversionError(
            f"Schema value at {pointer} ({type(value).__name__}) has no static JSON Schema shape!",
            context={"pointer": pointer},
        )
