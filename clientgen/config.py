"""Generation options.

One immutable ClientOptions value is built by the CLI and passed
through every renderer; formatting preferences (indent unit and
statement terminator) are derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

LANGUAGES = ("ts", "js")

_INDENTS: dict[str, str] = {
    "2": "  ",
    "4": "    ",
    "tab": "\t",
}

# Unit the templates are written in; rewritten to ClientOptions.sp on output
TEMPLATE_INDENT = "  "


@dataclass(frozen=True)
class ClientOptions:
    """Options for one generation run.

    language is "ts" for typed output and "js" for untyped output.
    """

    out_dir: Path
    language: str = "ts"
    redux: bool = False
    indent: str = "2"
    semicolon: bool = False

    def __post_init__(self) -> None:
        if self.language not in LANGUAGES:
            raise ConfigError(
                f"Unknown language {self.language!r}, expected one of {', '.join(LANGUAGES)}"
            )
        if str(self.indent) not in _INDENTS:
            raise ConfigError(
                f"Unknown indent {self.indent!r}, expected one of {', '.join(_INDENTS)}"
            )
        object.__setattr__(self, "out_dir", Path(self.out_dir))
        object.__setattr__(self, "indent", str(self.indent))

    @property
    def typed(self) -> bool:
        return self.language == "ts"

    @property
    def extension(self) -> str:
        return self.language

    @property
    def sp(self) -> str:
        """Indent unit."""
        return _INDENTS[self.indent]

    @property
    def st(self) -> str:
        """Statement terminator."""
        return ";" if self.semicolon else ""
