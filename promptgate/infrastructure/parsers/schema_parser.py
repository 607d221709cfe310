"""Converts pydantic output models into OpenAI strict-mode JSON schemas.

Strict structured output accepts a subset of JSON Schema: every object must
set `additionalProperties: false` and list all of its properties as
required, and references must be resolvable without `$defs`. Pydantic's
generated schema is rewritten in place to satisfy that.
"""

import copy
import logging
from typing import Any, Dict, Set, Type, Union

from pydantic import BaseModel

from promptgate.domain.exceptions import ConfigurationError
from promptgate.domain.models.common import JsonSchema

logger = logging.getLogger(__name__)

UNSUPPORTED_KEYS = ("$schema", "$defs", "definitions", "markdownDescription", "errorMessage", "default")
COMBINATOR_KEYS = ("anyOf", "allOf", "oneOf")
REF_PREFIXES = ("#/$defs/", "#/definitions/")

class SchemaParser:
    """Produces strict JSON schemas for `response_format`."""

    def to_openai_schema(self, output_schema: Union[Type[BaseModel], Dict[str, Any]]) -> JsonSchema:
        """Converts a pydantic model class (or a plain JSON schema dict).

        Raises:
            ConfigurationError: If the schema is recursive or references an
                unknown definition.
        """
        if isinstance(output_schema, dict):
            raw = copy.deepcopy(output_schema)
        else:
            raw = output_schema.model_json_schema()

        definitions = {**raw.pop("definitions", {}), **raw.pop("$defs", {})}
        schema = self._inline_refs(raw, definitions, set())
        self._clean(schema)
        logger.debug(f"Converted output schema with {len(definitions)} definition(s) to strict form")
        return JsonSchema(schema)

    def _inline_refs(self, node: Any, definitions: Dict[str, Any], seen: Set[str]) -> Any:
        if isinstance(node, list):
            return [self._inline_refs(item, definitions, seen) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str):
            name = self._definition_name(ref)
            if name in seen:
                raise ConfigurationError(f"Recursive output schemas are not supported: {name}")
            if name not in definitions:
                raise ConfigurationError(f"Unresolvable schema reference: {ref}")
            resolved = self._inline_refs(definitions[name], definitions, seen | {name})
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            return {**resolved, **self._inline_refs(siblings, definitions, seen)}

        return {key: self._inline_refs(value, definitions, seen) for key, value in node.items()}

    @staticmethod
    def _definition_name(ref: str) -> str:
        for prefix in REF_PREFIXES:
            if ref.startswith(prefix):
                return ref[len(prefix):]
        return ref

    def _clean(self, schema: Any) -> None:
        if not isinstance(schema, dict):
            return

        for key in UNSUPPORTED_KEYS:
            schema.pop(key, None)

        # Draft-4 style boolean exclusive bounds become numeric bounds.
        for exclusive, inclusive in (("exclusiveMinimum", "minimum"), ("exclusiveMaximum", "maximum")):
            if isinstance(schema.get(exclusive), bool):
                if schema[exclusive] and isinstance(schema.get(inclusive), (int, float)):
                    schema[exclusive] = schema.pop(inclusive)
                else:
                    del schema[exclusive]

        if schema.get("type") == "object":
            schema.setdefault("additionalProperties", False)
            properties = schema.get("properties")
            if properties:
                schema["required"] = list(properties.keys())
                for prop in properties.values():
                    self._clean(prop)

        if "items" in schema:
            self._clean(schema["items"])

        for key in COMBINATOR_KEYS:
            for sub_schema in schema.get(key, []):
                self._clean(sub_schema)
