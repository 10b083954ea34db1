"""Response validation and formatting.

Turns the model's raw reply into the text prompt2json emits, following a linear
state machine:

1. Parse as JSON. Failure ends in ``UNPARSABLE``; the raw text is the output.
2. Validate against the compiled schema. Failure ends in ``SCHEMA_INVALID``;
   the reformatted value is still the output so callers can inspect it.
3. Otherwise ``VALID`` with the reformatted value and no error.

Formatting re-serializes the parsed value; it never edits the reply text.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from prompt2json.config.schema import parse_json
from prompt2json.core.types import FormattedResult, JsonValue, ValidationState
from prompt2json.exceptions import ValidationError

if TYPE_CHECKING:
    from prompt2json.config import CompiledSchema

log = logging.getLogger(__name__)


def format_json(value: JsonValue, *, pretty: bool = False) -> str:
    """Serialize a parsed JSON value, minified or with 2-space indentation.

    Raises:
        ValueError: If the value cannot be represented as strict JSON, or
            holds a lone surrogate that cannot be written as UTF-8.
        TypeError: If the value contains a non-JSON type.
    """
    if pretty:
        text = json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)
    else:
        text = json.dumps(
            value, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError(f"output is not valid UTF-8: {e.reason}") from e
    return text


class ResultBuilder:
    """Validate model replies against a schema and format them for output.

    Attributes:
        schema: The compiled schema replies must satisfy.
        pretty: Whether output is indented instead of minified.
    """

    def __init__(self, schema: CompiledSchema, *, pretty: bool = False) -> None:
        self.schema = schema
        self.pretty = pretty

    def build(self, raw: str) -> FormattedResult:
        """Run the parse, validate and format steps on a raw reply.

        This never raises for a bad reply; the failure is carried in the
        returned result's ``error``.
        """
        try:
            value = parse_json(raw)
        except ValueError as e:
            log.info("Validation: response is not valid JSON - FAILED")
            return FormattedResult(
                state=ValidationState.UNPARSABLE,
                output=raw,
                error=ValidationError(f"response is not valid JSON: {e}"),
            )
        log.info("Validation: response is valid JSON - PASSED")

        violations = self.schema.iter_violations(value)
        if violations:
            log.info("Validation: schema validation - FAILED")
            reason = f"schema validation failed: {'; '.join(violations)}"
            try:
                output = format_json(value, pretty=self.pretty)
            except (TypeError, ValueError) as e:
                return FormattedResult(
                    state=ValidationState.SCHEMA_INVALID,
                    output=raw,
                    error=ValidationError(f"{reason} (and formatting failed: {e})"),
                )
            return FormattedResult(
                state=ValidationState.SCHEMA_INVALID,
                output=output,
                error=ValidationError(reason),
            )
        log.info("Validation: schema validation - PASSED")

        try:
            output = format_json(value, pretty=self.pretty)
        except (TypeError, ValueError) as e:
            return FormattedResult(
                state=ValidationState.VALID,
                output=raw,
                error=ValidationError(f"formatting failed: {e}"),
            )
        return FormattedResult(state=ValidationState.VALID, output=output)
