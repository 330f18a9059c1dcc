"""Shared fixtures for clientgen tests.

PETSTORE is a small OpenAPI 3 document that exercises every resolver
case: $refs, enums, maps, allOf inheritance, inline request/response
bodies, nullable $ref parameters, date parameters and security.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from clientgen.config import ClientOptions
from clientgen.loader import format_spec


PETSTORE: dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "basePath": "/v1/",
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "tags": ["pets"],
                "summary": "List all pets",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "required": False,
                        "description": "How many items to return",
                        "schema": {"type": "integer", "default": 20},
                    },
                    {
                        "name": "status",
                        "in": "query",
                        "schema": {"type": "string", "enum": ["available", "sold"]},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "A paged array of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                },
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createPet",
                "tags": ["pets"],
                "description": "Create a pet.\nThe name must be unique.",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["name"],
                                "properties": {
                                    "name": {"type": "string"},
                                    "tag": {"type": "string"},
                                },
                            },
                        }
                    }
                },
                "responses": {
                    "201": {
                        "description": "Created",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"},
                            }
                        },
                    }
                },
                "security": [{"petstore_auth": ["write:pets", "read:pets"]}],
            },
        },
        "/pets/{pet-id}": {
            "parameters": [
                {
                    "name": "pet-id",
                    "in": "path",
                    "required": True,
                    "description": "The id of the pet",
                    "schema": {"type": "integer"},
                },
            ],
            "get": {
                "operationId": "showPetById",
                "tags": ["pets"],
                "parameters": [{"$ref": "#/components/schemas/TraceHeader"}],
                "responses": {
                    "default": {
                        "description": "unexpected error",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Error"},
                            }
                        },
                    },
                    "200": {
                        "description": "Expected response",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"},
                            }
                        },
                    },
                },
            },
        },
        "/store/inventory": {
            "get": {
                "tags": ["store"],
                "responses": {
                    "200": {
                        "description": "Counts by status",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "additionalProperties": {"type": "integer"},
                                },
                            }
                        },
                    }
                },
            },
        },
        "/store/orders": {
            "get": {
                "operationId": "listOrders",
                "tags": ["store"],
                "parameters": [
                    {"name": "since", "in": "query", "type": "string", "format": "date-time"},
                ],
                "responses": {
                    "200": {
                        "description": "Orders",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {
                                        "type": "object",
                                        "properties": {
                                            "id": {"type": "integer"},
                                            "shipDate": {"type": "string", "format": "date-time"},
                                        },
                                    },
                                },
                            }
                        },
                    }
                },
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string", "description": "Pet name"},
                    "tag": {"type": "string"},
                    "status": {"type": "string", "enum": ["available", "pending", "sold"]},
                    "attributes": {
                        "type": "object",
                        "additionalProperties": {"type": "string"},
                    },
                },
            },
            "Dog": {
                "allOf": [
                    {"$ref": "#/components/schemas/Pet"},
                    {"type": "object", "properties": {"bark": {"type": "boolean"}}},
                ],
            },
            "Pets": {
                "type": "array",
                "items": {"$ref": "#/components/schemas/Pet"},
            },
            "Error": {
                "type": "object",
                "required": ["code", "message"],
                "properties": {
                    "code": {"type": "integer"},
                    "message": {"type": "string"},
                },
            },
            "TraceHeader": {
                "name": "X-Trace-Id",
                "in": "header",
                "type": "string",
                "nullable": True,
            },
        },
        "securitySchemes": {
            "petstore_auth": {
                "type": "oauth2",
                "flows": {
                    "implicit": {
                        "authorizationUrl": "https://petstore.example.com/oauth",
                        "scopes": {"write:pets": "modify pets", "read:pets": "read pets"},
                    }
                },
            }
        },
    },
}


@pytest.fixture
def petstore() -> dict[str, Any]:
    """Normalised copy of PETSTORE, safe to mutate."""
    return format_spec(copy.deepcopy(PETSTORE))


@pytest.fixture
def ts_options(tmp_path) -> ClientOptions:
    return ClientOptions(out_dir=tmp_path / "client", language="ts", redux=True)


@pytest.fixture
def js_options(tmp_path) -> ClientOptions:
    return ClientOptions(out_dir=tmp_path / "client", language="js", redux=True)
