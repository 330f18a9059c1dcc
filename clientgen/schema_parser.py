"""Resolve OpenAPI schemas to TypeScript / JSDoc types.

Every schema node is first tagged with a SchemaKind; the resolvers
dispatch on that tag:

- resolve_runtime_type: type expression for TS signatures
- resolve_doc_type:     type name for JSDoc comments
- resolve_type_name:    identifier for a generated declaration

Also handles:
- allOf read as single inheritance (exactly [ $ref, extension ])
- parameter requiredness, including $ref parameters whose target is nullable
- request body schema lookup
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .errors import SchemaValidationError
from .loader import ref_name, resolve_ref

API_NAMESPACE = "api"

_DATE_FORMATS = ("date", "date-time")


class SchemaKind(Enum):
    ABSENT = "absent"
    ENUM = "enum"
    REF = "ref"
    WRAPPED = "wrapped"  # parameter or media type carrying a `schema`
    ARRAY = "array"
    MAP = "map"  # object with additionalProperties
    OBJECT = "object"
    INTEGER = "integer"
    DATE = "date"
    PRIMITIVE = "primitive"


def classify_schema(node: dict[str, Any] | None, with_enum: bool = True) -> SchemaKind:
    """Tag a schema node with the first matching kind.

    Enums only count for unspecified, string or number types; other enum
    nodes fall through to their declared type.
    """
    if not node:
        return SchemaKind.ABSENT
    schema_type = node.get("type")
    if with_enum and node.get("enum") and schema_type in (None, "string", "number"):
        return SchemaKind.ENUM
    if "$ref" in node:
        return SchemaKind.REF
    if "schema" in node:
        return SchemaKind.WRAPPED
    if schema_type == "array":
        if not isinstance(node.get("items"), dict):
            raise SchemaValidationError("Array schema must declare its items")
        return SchemaKind.ARRAY
    if schema_type == "object":
        if node.get("additionalProperties", False) is not False:
            return SchemaKind.MAP
        return SchemaKind.OBJECT
    if schema_type == "integer":
        return SchemaKind.INTEGER
    if schema_type == "string" and node.get("format") in _DATE_FORMATS:
        return SchemaKind.DATE
    return SchemaKind.PRIMITIVE


def qualify(name: str, in_types_module: bool = False) -> str:
    """Prefix a declared type name with the types namespace."""
    return name if in_types_module else f"{API_NAMESPACE}.{name}"


def _enum_literal(values: list[Any], schema_type: str | None) -> str:
    if schema_type == "number":
        return "|".join(str(v) for v in values)
    return "|".join("'{}'".format(str(v).replace("'", "\\'")) for v in values)


def _array_items_kind(items: dict[str, Any]) -> SchemaKind | None:
    """Kind of an array's items, or None when they carry no type information."""
    if "$ref" in items:
        return SchemaKind.REF
    if items.get("type") or items.get("enum"):
        return classify_schema(items)
    return None


def resolve_runtime_type(node: dict[str, Any] | None, in_types_module: bool = False) -> str:
    """Resolve a schema to a TypeScript type expression."""
    kind = classify_schema(node)

    if kind is SchemaKind.ABSENT:
        return "any"
    if kind is SchemaKind.ENUM:
        return _enum_literal(node["enum"], node.get("type"))
    if kind is SchemaKind.REF:
        return qualify(ref_name(node["$ref"]), in_types_module)
    if kind is SchemaKind.WRAPPED:
        return resolve_runtime_type(node["schema"], in_types_module)
    if kind is SchemaKind.ARRAY:
        items = node["items"]
        items_kind = _array_items_kind(items)
        if items_kind is SchemaKind.REF:
            return qualify(ref_name(items["$ref"]), in_types_module) + "[]"
        if items_kind is SchemaKind.ENUM:
            return f"({resolve_runtime_type(items, in_types_module)})[]"
        if items_kind is None:
            return "any[]"
        return resolve_runtime_type(items, in_types_module) + "[]"
    if kind is SchemaKind.MAP:
        extra = node["additionalProperties"]
        value_type = resolve_runtime_type(extra, in_types_module) if isinstance(extra, dict) else "any"
        return f"{{[key: string]: {value_type}}}"
    if kind is SchemaKind.OBJECT:
        return "any"
    if kind is SchemaKind.INTEGER:
        return "number"
    if kind is SchemaKind.DATE:
        return "Date"
    return node.get("type") or "any"


def resolve_doc_type(node: dict[str, Any] | None) -> str:
    """Resolve a schema to an unqualified JSDoc type name."""
    kind = classify_schema(node, with_enum=False)

    if kind is SchemaKind.ABSENT:
        return "object"
    if kind is SchemaKind.REF:
        return ref_name(node["$ref"])
    if kind is SchemaKind.WRAPPED:
        return resolve_doc_type(node["schema"])
    if kind is SchemaKind.ARRAY:
        items = node["items"]
        if "$ref" in items:
            return ref_name(items["$ref"]) + "[]"
        if items.get("type"):
            return resolve_doc_type(items) + "[]"
        return "object[]"
    if kind in (SchemaKind.MAP, SchemaKind.OBJECT):
        return "object"
    if kind is SchemaKind.INTEGER:
        return "number"
    if kind is SchemaKind.DATE:
        return "date"
    return node.get("type") or "object"


def resolve_type_name(
    node: dict[str, Any] | None,
    fallback: str,
    strip_array_suffix: bool = False,
) -> str:
    """Name for a generated declaration of this schema.

    With strip_array_suffix, an array resolves to its element name so an
    inline `Foo[]` body can be declared as `Foo`.
    """
    kind = classify_schema(node, with_enum=False)

    if kind is SchemaKind.ABSENT:
        return fallback
    if kind is SchemaKind.REF:
        return ref_name(node["$ref"])
    if kind is SchemaKind.WRAPPED:
        return resolve_type_name(node["schema"], fallback, strip_array_suffix)
    if kind is SchemaKind.ARRAY:
        suffix = "" if strip_array_suffix else "[]"
        items = node["items"]
        if "$ref" in items:
            return ref_name(items["$ref"]) + suffix
        if items.get("type"):
            return resolve_type_name(items, fallback, strip_array_suffix) + suffix
        return fallback + suffix
    if kind is SchemaKind.INTEGER:
        return "number"
    if kind is SchemaKind.DATE:
        return "date"
    return fallback


def resolve_inheritance(name: str, all_of: list[dict[str, Any]] | None) -> tuple[str, dict[str, Any]]:
    """Read a two-element allOf as `name extends <first> with <second>`.

    Returns the parent type name and the extension schema.
    """
    if not all_of or len(all_of) != 2:
        raise SchemaValidationError(
            f"Json schema allOf '{name}' must have two elements to be treated as inheritance"
        )
    parent = all_of[0]
    if not isinstance(parent, dict) or "$ref" not in parent:
        raise SchemaValidationError(
            f"Json schema allOf '{name}' first element must be a $ref"
        )
    return ref_name(parent["$ref"]), all_of[1]


def is_inline_object(node: dict[str, Any] | None) -> bool:
    """True for a non-$ref object schema with its own structure."""
    if not isinstance(node, dict) or "$ref" in node:
        return False
    if node.get("type") not in (None, "object"):
        return False
    return "properties" in node or "allOf" in node


def get_parameter(spec: dict[str, Any], param: dict[str, Any]) -> dict[str, Any]:
    """Return the parameter, resolving it first if it is a $ref."""
    if "$ref" in param:
        return resolve_ref(spec, param["$ref"])
    return param


def is_param_required(spec: dict[str, Any], param: dict[str, Any]) -> bool:
    """A $ref parameter is required unless its target is nullable."""
    if "$ref" in param:
        return not resolve_ref(spec, param["$ref"]).get("nullable", False)
    return bool(param.get("required", False))


def partition_parameters(
    spec: dict[str, Any],
    params: list[dict[str, Any]],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Split parameters into required and optional, resolving $refs."""
    required: list[dict[str, Any]] = []
    optional: list[dict[str, Any]] = []
    for param in params:
        resolved = get_parameter(spec, param)
        if "name" not in resolved:
            raise SchemaValidationError(
                f"Parameter {param.get('$ref', param)!r} has no name"
            )
        if is_param_required(spec, param):
            required.append(resolved)
        else:
            optional.append(resolved)
    return required, optional


def get_request_body_schema(
    spec: dict[str, Any],
    request_body: dict[str, Any] | None,
) -> dict[str, Any] | None:
    """JSON schema of a request body; a $ref body is returned as the reference."""
    if not request_body:
        return None
    if "$ref" in request_body:
        resolve_ref(spec, request_body["$ref"])
        return request_body
    content = request_body.get("content") or {}
    media = content.get("application/json")
    if media is None and content:
        media = next(iter(content.values()))
    if not media:
        return None
    return media.get("schema")


def get_response_schema(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """JSON schema of a response, or None for default / non-JSON responses."""
    if not response or response.get("code") == "default":
        return None
    media = (response.get("content") or {}).get("application/json")
    if not isinstance(media, dict):
        return None
    return media.get("schema")
