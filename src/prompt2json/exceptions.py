"""Error kinds and exceptions for prompt2json.

Every error raised by the pipeline carries an explicit ``ErrorKind``; the CLI
inspects it once at the top level to pick the process exit code.
"""

from enum import Enum

from .constants import (
    EXIT_API_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_USAGE_ERROR,
    EXIT_VALIDATION_ERROR,
)


class ErrorKind(str, Enum):
    """Category of a pipeline failure."""

    USAGE = "usage"  # malformed or contradictory flags, missing values
    INPUT = "input"  # file reads, schema parsing, attachment limits
    VALIDATION = "validation"  # model reply unusable or off-schema
    API = "api"  # credentials, HTTP status, network

    @property
    def exit_code(self) -> int:
        """Process exit status for this kind of failure."""
        return _EXIT_CODES[self]


_EXIT_CODES = {
    ErrorKind.USAGE: EXIT_USAGE_ERROR,
    ErrorKind.INPUT: EXIT_INPUT_ERROR,
    ErrorKind.VALIDATION: EXIT_VALIDATION_ERROR,
    ErrorKind.API: EXIT_API_ERROR,
}


class Prompt2JsonError(Exception):
    """Base exception for prompt2json errors"""  # noqa: D415

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UsageError(Prompt2JsonError):
    """Raised when command-line options are missing or contradictory"""  # noqa: D415

    kind = ErrorKind.USAGE


class InputError(Prompt2JsonError):
    """Raised when an input file, schema or attachment cannot be used"""  # noqa: D415

    kind = ErrorKind.INPUT


class ValidationError(Prompt2JsonError):
    """Raised when the model response is unusable or violates the schema"""  # noqa: D415

    kind = ErrorKind.VALIDATION


class APIError(Prompt2JsonError):
    """Raised for credential, transport and HTTP status failures"""  # noqa: D415

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
