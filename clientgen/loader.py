"""Load and normalise an OpenAPI document.

Reads a JSON or YAML spec from disk or over http(s), fills in the
derived fields the generated runtime needs, resolves $ref pointers and
extracts operations.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import httpx
import yaml

from .errors import ReferenceResolutionError, SpecLoadError
from .naming import build_group_name, build_operation_id

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")


def _is_url(src: str) -> bool:
    return src.lower().startswith(("http://", "https://"))


def _parse_contents(contents: str, name: str) -> dict[str, Any]:
    """Parse YAML or JSON text depending on the source name."""
    try:
        if name.lower().endswith((".yaml", ".yml")):
            doc = yaml.safe_load(contents)
        else:
            doc = json.loads(contents)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise SpecLoadError(f"Unable to parse spec at '{name}': {exc}") from exc
    if not isinstance(doc, dict):
        raise SpecLoadError(f"Spec at '{name}' is not a mapping")
    return doc


def load_spec(src: str | Path) -> dict[str, Any]:
    """Load the OpenAPI spec from a file path or an http(s) URL."""
    src = str(src)
    if _is_url(src):
        try:
            resp = httpx.get(src, follow_redirects=True, timeout=30.0)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise SpecLoadError(f"Unable to fetch spec at '{src}': {exc}") from exc
        return _parse_contents(resp.text, urlsplit(src).path or src)

    path = Path(src)
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Unable to read spec at '{src}': {exc}") from exc
    return _parse_contents(contents, path.name)


def format_spec(spec: dict[str, Any], src: str | Path | None = None) -> dict[str, Any]:
    """Return a copy of the spec with host, schemes, basePath, accepts and contentTypes set."""
    spec = copy.deepcopy(spec)

    base_path = spec.get("basePath") or ""
    spec["basePath"] = base_path[:-1] if base_path.endswith("/") else base_path

    if src is not None and _is_url(str(src)):
        parts = urlsplit(str(src))
        spec.setdefault("host", parts.netloc)
        if not spec.get("schemes"):
            spec["schemes"] = [parts.scheme]
    else:
        spec.setdefault("host", "localhost")
        if not spec.get("schemes"):
            spec["schemes"] = ["http"]

    spec["accepts"] = spec.pop("produces", None) or ["application/json"]
    spec["contentTypes"] = spec.pop("consumes", None) or []
    return spec


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the spec."""
    return (spec.get("components") or {}).get("schemas") or {}


def ref_name(ref: str) -> str:
    """Last path segment of a $ref pointer."""
    return ref.split("/")[-1]


def resolve_ref(
    spec: dict[str, Any],
    ref: str,
    _seen: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Resolve a #/components/schemas/ pointer, following chained $refs."""
    if not ref.startswith(SCHEMA_REF_PREFIX):
        raise ReferenceResolutionError(
            f"Can't follow $ref '{ref}', only {SCHEMA_REF_PREFIX} is supported"
        )
    if ref in _seen:
        raise ReferenceResolutionError(f"Circular $ref chain through '{ref}'")

    name = ref[len(SCHEMA_REF_PREFIX):]
    schemas = get_schemas(spec)
    if name not in schemas:
        raise ReferenceResolutionError(f"Invalid schema reference: {ref}")

    target = schemas[name]
    if isinstance(target, dict) and set(target) == {"$ref"}:
        return resolve_ref(spec, target["$ref"], _seen | {ref})
    return target


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Path-level params first, replaced by operation params with the same name and location."""
    def key(param: dict[str, Any]) -> tuple[Any, Any] | None:
        if "$ref" in param:
            return None
        return (param.get("name"), param.get("in"))

    overridden = {key(p) for p in op_params} - {None}
    merged = [p for p in path_params if key(p) is None or key(p) not in overridden]
    merged.extend(op_params)
    return merged


def _get_security(
    spec: dict[str, Any],
    operation: dict[str, Any],
) -> list[dict[str, Any]] | None:
    security = operation.get("security", spec.get("security"))
    if security is None:
        return None
    result = []
    for requirement in security:
        for sec_id, scopes in requirement.items():
            result.append({"id": sec_id, "scopes": list(scopes) if scopes else None})
    return result


def get_operations(spec: dict[str, Any]) -> list[dict[str, Any]]:
    """Extract one operation record per path + method, in document order."""
    operations: list[dict[str, Any]] = []

    for path, path_item in get_paths(spec).items():
        path_params = path_item.get("parameters", [])

        for method in HTTP_METHODS:
            if method not in path_item:
                continue

            operation = path_item[method]
            responses = []
            for code, response in (operation.get("responses") or {}).items():
                response = dict(response)
                response["code"] = str(code)
                responses.append(response)

            tags = operation.get("tags") or []
            operations.append({
                "id": operation.get("operationId") or build_operation_id(method, path),
                "method": method,
                "path": path,
                "group": build_group_name(tags),
                "summary": operation.get("summary", ""),
                "description": operation.get("description", ""),
                "parameters": _merge_parameters(path_params, operation.get("parameters", [])),
                "request_body": operation.get("requestBody"),
                "responses": responses,
                "security": _get_security(spec, operation),
                "tags": tags,
            })

    logger.debug("Extracted %d operations", len(operations))
    return operations


def group_operations(operations: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Bucket operations by group name, keeping first-seen order."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for op in operations:
        groups.setdefault(op["group"], []).append(op)
    return groups


def get_best_response(op: dict[str, Any]) -> dict[str, Any] | None:
    """Pick the response with the lowest numeric status code."""
    responses = op.get("responses") or []
    best = None
    best_code = None
    for response in responses:
        try:
            code = int(response["code"])
        except ValueError:
            continue
        if best_code is None or code < best_code:
            best, best_code = response, code
    if best is None and responses:
        return responses[0]
    return best
