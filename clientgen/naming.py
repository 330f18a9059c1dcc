"""Derive JavaScript identifiers from OpenAPI names.

Parameter names are camel-cased on separator characters and escaped
when they collide with a reserved word:

  user-id       -> userId
  page_size     -> pageSize
  X-Request-ID  -> XRequestID
  class         -> class_

Operations without an operationId get one from method + path:

  GET  /pets/{petId}        -> getPetsPetId
  POST /store/order         -> postStoreOrder

Redux action constants are the upper-cased operation id:

  getPetById -> GET_PET_BY_ID
"""

from __future__ import annotations

import re

from .errors import SchemaValidationError

_PARAM_SEPARATORS = re.compile(r"[_\-\s!@#$%^&*()]")

_RESERVED_WORDS: frozenset[str] = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "export", "extends", "finally",
    "for", "function", "if", "import", "in", "instanceof", "new",
    "return", "super", "switch", "this", "throw", "try", "typeof",
    "var", "void", "while", "with", "yield",
})

_PLAIN_KEY = re.compile(r"^[_$a-z0-9]+$", re.IGNORECASE)

DEFAULT_GROUP = "default"


def escape_reserved_words(name: str) -> str:
    """Append an underscore to names that are JS reserved words."""
    if name in _RESERVED_WORDS:
        return name + "_"
    return name


def get_param_name(name: str) -> str:
    """Convert a parameter name to a camelCase JS identifier."""
    parts = [p for p in _PARAM_SEPARATORS.split(name) if p]
    if not parts:
        raise SchemaValidationError(f"Parameter name {name!r} has no identifier characters")
    reduced = parts[0] + "".join(p[0].upper() + p[1:] for p in parts[1:])
    return escape_reserved_words(reduced)


def param_property_name(name: str) -> str:
    """Object key for a parameter, quoted when not a plain identifier."""
    if _PLAIN_KEY.match(name):
        return name
    return f"'{name}'"


def camel_to_uppercase(value: str) -> str:
    """Convert camelCase to UPPER_SNAKE_CASE."""
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", value).upper()


def options_type_name(op_id: str) -> str:
    """Name of the interface holding an operation's optional params."""
    return op_id[0].upper() + op_id[1:] + "Options"


def build_operation_id(method: str, path: str) -> str:
    """Build an operation id from HTTP method and path."""
    words = [w for w in re.split(r"[^A-Za-z0-9]+", path) if w]
    return method.lower() + "".join(w[0].upper() + w[1:] for w in words)


def build_group_name(tags: list[str]) -> str:
    """Group name from the first tag, reduced to identifier characters."""
    if not tags:
        return DEFAULT_GROUP
    name = re.sub(r"[^$_a-z0-9]+", "", tags[0], flags=re.IGNORECASE)
    name = re.sub(r"^[0-9]+", "", name)
    return name or DEFAULT_GROUP
