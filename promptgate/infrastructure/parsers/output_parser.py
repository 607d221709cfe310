"""Validates model output against the caller's expected output shape."""

import json
import logging
from typing import Any, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from promptgate.domain.exceptions import OutputValidationError

logger = logging.getLogger(__name__)

def _format_issue(error: dict) -> str:
    path = ".".join(str(part) for part in error.get("loc", ()))
    return f"{path}: {error.get('msg', 'invalid value')}"

class OutputParser:
    """Parses JSON content and validates it with a pydantic model."""

    def parse_and_validate(self, raw_content: str, output_schema: Optional[Type[BaseModel]]) -> Tuple[Any, Optional[BaseModel]]:
        """Returns `(content, structured_output)`.

        Without a schema, or with empty content, the raw text comes back
        unchanged and `structured_output` is None. Content that is not JSON
        is also returned raw (with a warning).

        Raises:
            OutputValidationError: If the JSON does not match the schema.
        """
        if output_schema is None or not raw_content:
            return raw_content, None

        try:
            parsed = json.loads(raw_content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse structured output, returning raw content: {e}")
            return raw_content, None

        try:
            validated = output_schema.model_validate(parsed)
        except ValidationError as e:
            issues = [_format_issue(error) for error in e.errors()]
            logger.error(f"Output validation failed: {issues}")
            raise OutputValidationError(issues) from e

        logger.debug(f"Successfully validated output against {output_schema.__name__}")
        return validated, validated
