from __future__ import annotations

from typing import Any, Dict, Type

from pydantic import BaseModel

from syndicate.schemas.messages import JSONSchema, ResponseFormat


def generate_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """JSON schema for ``model`` with extra keys disallowed on every object."""
    schema = model.model_json_schema()
    _close_objects(schema)
    return schema


def json_response_format(name: str, model: Type[BaseModel]) -> ResponseFormat:
    return ResponseFormat(
        type="json_schema",
        json_schema=JSONSchema(name=name, schema=generate_schema(model), strict=True),
    )


def _close_objects(node: Any) -> None:
    if isinstance(node, dict):
        if node.get("type") == "object":
            node.setdefault("properties", {})
            node["additionalProperties"] = False
        node.pop("title", None)
        for key, value in node.items():
            # "properties" maps field names to schemas; a field may itself be named "title".
            if key == "properties" and isinstance(value, dict):
                for prop in value.values():
                    _close_objects(prop)
            else:
                _close_objects(value)
    elif isinstance(node, list):
        for item in node:
            _close_objects(item)
