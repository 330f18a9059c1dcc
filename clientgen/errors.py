"""Exceptions raised while generating a client.

Reference and schema errors abort generation of the whole document;
they are raised where the problem is found and surface to the caller.
"""

from __future__ import annotations


class ClientGenError(Exception):
    """Base class for all generator errors."""


class ConfigError(ClientGenError):
    """Invalid generation options."""


class SpecLoadError(ClientGenError):
    """The OpenAPI document could not be fetched or parsed."""


class ReferenceResolutionError(ClientGenError):
    """A $ref uses an unsupported prefix, points nowhere, or loops."""


class SchemaValidationError(ClientGenError):
    """A schema or parameter has a shape the generator cannot render."""
