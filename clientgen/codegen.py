"""Render templates and write generated output.

Takes the contexts from context_builder and produces, under the
output directory:

  <group>.<ext>          operations, one per group
  types.<ext>            declarations and typedefs
  gateway/spec.<ext>     runtime spec descriptor
  action/<group>.<ext>   Redux actions (with --redux)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2

from .config import TEMPLATE_INDENT, ClientOptions
from .context_builder import (
    build_actions_context,
    build_operations_context,
    build_spec_context,
    build_types_context,
)
from .loader import get_operations, group_operations

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

_LEADING_INDENT = re.compile(rf"^((?:{TEMPLATE_INDENT})+)", re.MULTILINE)


@dataclass(frozen=True)
class GeneratedFile:
    path: Path
    contents: str


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def reindent(text: str, sp: str) -> str:
    """Rewrite leading template indentation to the configured unit."""
    if sp == TEMPLATE_INDENT:
        return text
    return _LEADING_INDENT.sub(
        lambda m: sp * (len(m.group(1)) // len(TEMPLATE_INDENT)), text
    )


def render(
    template_name: str,
    context: dict[str, Any],
    options: ClientOptions,
    env: jinja2.Environment | None = None,
) -> str:
    """Render one template with the run's formatting applied."""
    env = env or _environment()
    output = env.get_template(template_name).render(**context)
    return reindent(output, options.sp)


def generate_files(spec: dict[str, Any], options: ClientOptions) -> list[GeneratedFile]:
    """Render every output file in memory."""
    env = _environment()
    out = options.out_dir
    ext = options.extension
    operations = get_operations(spec)
    groups = group_operations(operations)
    files: list[GeneratedFile] = []

    for group, group_ops in groups.items():
        context = build_operations_context(spec, group, group_ops, options)
        files.append(GeneratedFile(out / f"{group}.{ext}", render("operations.j2", context, options, env)))

    context = build_types_context(spec, operations, options)
    files.append(GeneratedFile(out / f"types.{ext}", render("types.j2", context, options, env)))

    context = build_spec_context(spec, options)
    files.append(GeneratedFile(out / "gateway" / f"spec.{ext}", render("spec.j2", context, options, env)))

    if options.redux:
        for group, group_ops in groups.items():
            context = build_actions_context(spec, group, group_ops, options)
            files.append(
                GeneratedFile(out / "action" / f"{group}.{ext}", render("actions.j2", context, options, env))
            )

    return files


def generate(spec: dict[str, Any], options: ClientOptions) -> list[Path]:
    """Render all files and write them under options.out_dir."""
    files = generate_files(spec, options)
    for file in files:
        file.path.parent.mkdir(parents=True, exist_ok=True)
        file.path.write_text(file.contents, encoding="utf-8")
        logger.info("Generated %s", file.path)
    return [file.path for file in files]
