"""Core data types that flow through the pipeline.

These are the immutable values handed from one stage to the next: encoded
attachments produced by the loader and the formatted result produced by the
validator. Generic JSON data uses pydantic's ``JsonValue`` tagged union.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
import typing

from pydantic import JsonValue

if typing.TYPE_CHECKING:
    from prompt2json.exceptions import ValidationError

__all__ = [
    "AttachmentPart",
    "FormattedResult",
    "JsonValue",
    "ValidationState",
]


@dataclasses.dataclass(frozen=True, slots=True)
class AttachmentPart:
    """One inline attachment ready for the request body."""

    mime_type: str
    data: str  # base64, standard alphabet with padding

    @property
    def encoded_size(self) -> int:
        return len(self.data)


class ValidationState(str, Enum):
    """Terminal state of the response validator."""

    VALID = "valid"
    SCHEMA_INVALID = "schema-invalid"
    UNPARSABLE = "unparsable"


@dataclasses.dataclass(frozen=True, slots=True)
class FormattedResult:
    """Text to emit for a model reply, paired with the reason it failed (if any).

    ``output`` is always populated: the reformatted value when the reply parsed,
    otherwise the raw reply text.
    """

    state: ValidationState
    output: str
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
