"""Build Jinja2 template contexts from a parsed OpenAPI spec.

One context per output file:
- operations.j2  one per operation group
- types.j2       aggregated declarations and JSDoc typedefs
- spec.j2        runtime spec descriptor
- actions.j2     Redux action creators, one per operation group
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import TEMPLATE_INDENT, ClientOptions
from .errors import SchemaValidationError
from .loader import get_best_response, get_schemas
from .naming import (
    camel_to_uppercase,
    get_param_name,
    options_type_name,
    param_property_name,
)
from .schema_parser import (
    get_parameter,
    get_request_body_schema,
    get_response_schema,
    is_inline_object,
    is_param_required,
    partition_parameters,
    qualify,
    resolve_doc_type,
    resolve_inheritance,
    resolve_runtime_type,
    resolve_type_name,
)

logger = logging.getLogger(__name__)

DOC = " * "
MEMBER_DOC = TEMPLATE_INDENT + DOC

_DATE_FORMATS = ("date", "date-time")


def format_doc_description(description: str | None, prefix: str = DOC) -> str:
    """Trim a description; continuation lines stay inside the comment block."""
    return (description or "").strip().replace("\n", f"\n{prefix}{TEMPLATE_INDENT}")


def request_type_name(op: dict[str, Any]) -> str:
    return f"{op['id']}_request"


def response_type_name(op: dict[str, Any]) -> str:
    return f"{op['id']}_response"


def _body_runtime_type(schema: dict[str, Any] | None, fallback: str) -> str:
    """TS type of a body; inline objects are named after their generated declaration."""
    if schema is None:
        return "any"
    if is_inline_object(schema):
        return qualify(fallback)
    if schema.get("type") == "array" and is_inline_object(schema.get("items")):
        return qualify(resolve_type_name(schema, fallback, strip_array_suffix=True)) + "[]"
    return resolve_runtime_type(schema)


def _body_doc_type(schema: dict[str, Any] | None, fallback: str) -> str:
    if schema is None:
        return "object"
    if is_inline_object(schema):
        return fallback
    if schema.get("type") == "array" and is_inline_object(schema.get("items")):
        return resolve_type_name(schema, fallback)
    return resolve_doc_type(schema)


def operation_return_type(op: dict[str, Any]) -> str:
    """TS type of the data in the best response."""
    schema = get_response_schema(get_best_response(op))
    return _body_runtime_type(schema, response_type_name(op))


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _render_doc_param(param: dict[str, Any], required: bool) -> str:
    name = get_param_name(param["name"])
    if not required:
        name = f"options.{name}"
        default = param.get("default", (param.get("schema") or {}).get("default"))
        if default is not None:
            name += f"={default}"
        name = f"[{name}]"

    description = format_doc_description(param.get("description"))
    enum = param.get("enum") or (param.get("schema") or {}).get("enum")
    if enum:
        description = f"Enum: {', '.join(str(v) for v in enum)}. {description}"
    return f"{DOC}@param {{{resolve_doc_type(param)}}} {name} {description}".rstrip()


def _build_doc_lines(
    op: dict[str, Any],
    required: list[dict[str, Any]],
    optional: list[dict[str, Any]],
    body_schema: dict[str, Any] | None,
) -> list[str]:
    lines = []
    description = (op["description"] or op["summary"] or "").strip()
    if description:
        lines.append(DOC + description.replace("\n", f"\n{DOC}"))
        lines.append(DOC.rstrip())

    lines.extend(_render_doc_param(p, True) for p in required)
    if optional:
        lines.append(f"{DOC}@param {{object}} options Optional options")
        lines.extend(_render_doc_param(p, False) for p in optional)
    if op["request_body"]:
        lines.append(f"{DOC}@param {{{_body_doc_type(body_schema, request_type_name(op))}}} body")

    response = get_best_response(op)
    schema = get_response_schema(response)
    data_type = _body_doc_type(schema, response_type_name(op))
    returns = format_doc_description((response or {}).get("description"))
    lines.append(f"{DOC}@return {{Promise<$tipi$ApiResponse<{data_type}>>}} {returns}".rstrip())
    return lines


def render_param_signature(
    spec: dict[str, Any],
    op: dict[str, Any],
    options: ClientOptions,
    pkg: str = "",
) -> str:
    """Function parameters: required params, body, then the options bag."""
    required, optional = partition_parameters(spec, op["parameters"])
    params = []
    for param in required:
        name = get_param_name(param["name"])
        params.append(f"{name}: {resolve_runtime_type(param)}" if options.typed else name)

    if op["request_body"]:
        if options.typed:
            body_schema = get_request_body_schema(spec, op["request_body"])
            params.append(f"body: {_body_runtime_type(body_schema, request_type_name(op))}")
        else:
            params.append("body")

    if optional:
        if options.typed:
            params.append(f"options?: {pkg}{options_type_name(op['id'])}")
        else:
            params.append("options")
    return ", ".join(params)


def _param_group_entry(param: dict[str, Any], required: bool) -> str:
    name = get_param_name(param["name"])
    key = param_property_name(param["name"])
    value = name if required else f"options.{name}"

    if param.get("type") == "array":
        collection_format = param.get("collectionFormat")
        if not collection_format:
            raise SchemaValidationError(
                f"param {param['name']} must specify an array collectionFormat"
            )
        return f"{key}: gateway.formatArrayParam({value}, '{collection_format}', '{param['name']}')"
    if param.get("format") in _DATE_FORMATS:
        return f"{key}: gateway.formatDate({value}, '{param['format']}')"
    if required and param["name"] == name == key:
        return key
    return f"{key}: {value}"


def build_param_groups(spec: dict[str, Any], params: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Parameter object entries grouped by location, in document order."""
    groups: dict[str, list[str]] = {}
    for param in params:
        resolved = get_parameter(spec, param)
        entry = _param_group_entry(resolved, is_param_required(spec, param))
        groups.setdefault(resolved.get("in", "query"), []).append(entry)
    return [{"name": name, "entries": entries} for name, entries in groups.items()]


def _build_options_type(op: dict[str, Any], optional: list[dict[str, Any]]) -> dict[str, Any] | None:
    if not optional:
        return None
    return {
        "name": options_type_name(op["id"]),
        "props": [
            {
                "name": get_param_name(param["name"]),
                "type": resolve_runtime_type(param),
                "description": format_doc_description(param.get("description"), MEMBER_DOC),
            }
            for param in optional
        ],
    }


def _build_operation_info(op: dict[str, Any]) -> dict[str, Any]:
    request_body = op["request_body"]
    content_types: list[str] = []
    if request_body and "$ref" not in request_body:
        content_types = list((request_body.get("content") or {}).keys())
    return {
        "path": op["path"],
        "method": op["method"],
        "content_types": content_types,
        "security": op["security"] or [],
    }


def build_operation(spec: dict[str, Any], op: dict[str, Any], options: ClientOptions) -> dict[str, Any]:
    """Context for one operation: function, options type and info record."""
    required, optional = partition_parameters(spec, op["parameters"])
    body_schema = get_request_body_schema(spec, op["request_body"])
    param_groups = build_param_groups(spec, op["parameters"])
    has_body = bool(op["request_body"])

    return_signature = ""
    if options.typed:
        return_signature = f": Promise<api.Response<{operation_return_type(op)}>>"

    return {
        "id": op["id"],
        "doc_lines": _build_doc_lines(op, required, optional, body_schema),
        "signature": render_param_signature(spec, op, options),
        "return_signature": return_signature,
        "has_optionals": bool(optional),
        "has_parameters": bool(param_groups) or has_body,
        "has_body": has_body,
        "param_groups": param_groups,
        "options_type": _build_options_type(op, optional),
        "info": _build_operation_info(op),
    }


def build_operations_context(
    spec: dict[str, Any],
    group: str,
    operations: list[dict[str, Any]],
    options: ClientOptions,
) -> dict[str, Any]:
    """Context for one operation group file."""
    return {
        "group": group,
        "typed": options.typed,
        "has_types": bool(get_schemas(spec)),
        "st": options.st,
        "operations": [build_operation(spec, op, options) for op in operations],
    }


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

def _add_inline_definition(
    defs: dict[str, Any],
    schema: dict[str, Any] | None,
    name: str,
) -> None:
    """Register an inline body schema, flattening `Foo[]` bodies into `Foo`."""
    if schema is None:
        return
    if "$ref" in schema:
        logger.debug("Skipping $ref to %s", schema["$ref"])
        return

    if schema.get("type") == "array":
        items = schema.get("items") or {}
        if "$ref" in items:
            logger.debug("Skipping $ref to %s", items["$ref"])
            return
        if not is_inline_object(items):
            return
        name = resolve_type_name(schema, name, strip_array_suffix=True)
        if name in defs:
            logger.warning("Skipping already defined base type for %s[]", name)
            return
        flattened = dict(items, type="object")
        if schema.get("description"):
            flattened["description"] = schema["description"]
        defs[name] = flattened
    elif is_inline_object(schema):
        defs[name] = schema


def collect_definitions(spec: dict[str, Any], operations: list[dict[str, Any]]) -> dict[str, Any]:
    """Component schemas plus inline request/response bodies, by declared name."""
    defs = dict(get_schemas(spec))
    for op in operations:
        request_body = op["request_body"]
        if request_body:
            _add_inline_definition(
                defs, get_request_body_schema(spec, request_body), request_type_name(op)
            )
        # only the response the operation is typed with gets a declaration
        response = get_best_response(op)
        _add_inline_definition(defs, get_response_schema(response), response_type_name(op))
    return defs


def _is_declarable(definition: dict[str, Any]) -> bool:
    schema_type = definition.get("type")
    if schema_type in ("object", "array"):
        return True
    return schema_type is None and "properties" in definition


def build_declaration(name: str, definition: dict[str, Any]) -> dict[str, Any] | None:
    """Interface or alias declaration, or None when the schema has no declarable shape."""
    parent = None
    if "allOf" in definition:
        parent, definition = resolve_inheritance(name, definition["allOf"])

    if "$ref" in definition:
        logger.debug("Skipping $ref to %s", definition["$ref"])
        return None
    if not _is_declarable(definition):
        logger.warning("Unable to render %s %s, skipping.", name, definition.get("type"))
        return None

    declaration = {
        "name": name,
        "parent": parent,
        "description": format_doc_description(definition.get("description")),
    }

    if definition.get("type") == "array":
        declaration.update({
            "kind": "alias",
            "type": resolve_runtime_type(definition, in_types_module=True),
            "doc_type": resolve_doc_type(definition),
            "props": [],
        })
        return declaration

    required = set(definition.get("required") or [])
    properties = definition.get("properties") or {}
    ordered = [p for p in properties if p in required] + [p for p in properties if p not in required]

    declaration["kind"] = "interface"
    declaration["props"] = [
        {
            "name": prop,
            "optional": prop not in required,
            "type": resolve_runtime_type(properties[prop], in_types_module=True),
            "doc_type": resolve_doc_type(properties[prop]),
            "format": properties[prop].get("format"),
            "description": format_doc_description(properties[prop].get("description"), MEMBER_DOC),
            "doc_description": format_doc_description(properties[prop].get("description")),
        }
        for prop in ordered
    ]
    return declaration


def build_types_context(
    spec: dict[str, Any],
    operations: list[dict[str, Any]],
    options: ClientOptions,
) -> dict[str, Any]:
    """Context for the aggregated types file."""
    declarations = []
    for name, definition in collect_definitions(spec, operations).items():
        declaration = build_declaration(name, definition)
        if declaration is not None:
            declarations.append(declaration)
    return {
        "typed": options.typed,
        "st": options.st,
        "declarations": declarations,
    }


# ---------------------------------------------------------------------------
# Spec descriptor
# ---------------------------------------------------------------------------

def build_spec_context(spec: dict[str, Any], options: ClientOptions) -> dict[str, Any]:
    """Context for gateway/spec, the runtime view of the document."""
    view = {
        "host": spec.get("host"),
        "schemes": spec.get("schemes"),
        "basePath": spec.get("basePath"),
        "contentTypes": spec.get("contentTypes"),
        "accepts": spec.get("accepts"),
        "securitySchemes": (spec.get("components") or {}).get("securitySchemes"),
    }
    view = {key: value for key, value in view.items() if value is not None}
    return {
        "typed": options.typed,
        "st": options.st,
        "view": json.dumps(view, indent=len(TEMPLATE_INDENT)).replace('"', "'"),
    }


# ---------------------------------------------------------------------------
# Redux actions
# ---------------------------------------------------------------------------

def build_action(
    spec: dict[str, Any],
    group: str,
    op: dict[str, Any],
    options: ClientOptions,
) -> dict[str, Any]:
    """Context for the start/complete constants and thunk of one operation."""
    signature = render_param_signature(spec, op, options, pkg=f"{group}.")
    info_param = "info?: any" if options.typed else "info"
    signature = f"{signature}, {info_param}" if signature else info_param

    required, optional = partition_parameters(spec, op["parameters"])
    call_args = [get_param_name(p["name"]) for p in required]
    if op["request_body"]:
        call_args.append("body")
    if optional:
        call_args.append("options")

    return {
        "id": op["id"],
        "start": camel_to_uppercase(op["id"]) + "_START",
        "complete": camel_to_uppercase(op["id"]),
        "signature": signature,
        "call_args": ", ".join(call_args),
        "return_type": operation_return_type(op),
    }


def build_actions_context(
    spec: dict[str, Any],
    group: str,
    operations: list[dict[str, Any]],
    options: ClientOptions,
) -> dict[str, Any]:
    """Context for one Redux action file."""
    return {
        "group": group,
        "typed": options.typed,
        "has_types": bool(get_schemas(spec)),
        "st": options.st,
        "actions": [build_action(spec, group, op, options) for op in operations],
    }
