"""Entry point: python -m clientgen SRC -o OUT_DIR

Reads an OpenAPI document (path or URL, JSON or YAML) and writes a
TypeScript or JavaScript client into OUT_DIR.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .codegen import generate
from .config import LANGUAGES, ClientOptions
from .errors import ClientGenError
from .loader import format_spec, load_spec


@click.command()
@click.argument("src")
@click.option("-o", "--out-dir", required=True, type=click.Path(file_okay=False, path_type=Path), help="Directory to write the client into.")
@click.option("-l", "--language", default="ts", type=click.Choice(LANGUAGES), help="ts for typed output, js for untyped.")
@click.option("--redux", is_flag=True, help="Also generate Redux action creators.")
@click.option("--indent", default="2", type=click.Choice(["2", "4", "tab"]), help="Indentation of generated code.")
@click.option("--semicolon", is_flag=True, help="Terminate statements with semicolons.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def main(src: str, out_dir: Path, language: str, redux: bool, indent: str, semicolon: bool, verbose: bool) -> None:
    """Generate an API client from the OpenAPI document at SRC."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        options = ClientOptions(
            out_dir=out_dir,
            language=language,
            redux=redux,
            indent=indent,
            semicolon=semicolon,
        )
        spec = format_spec(load_spec(src), src)
        paths = generate(spec, options)
    except ClientGenError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Generated {len(paths)} files in {out_dir}")


if __name__ == "__main__":
    main()
