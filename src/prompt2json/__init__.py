"""prompt2json: schema-validated JSON from Gemini on Vertex AI."""

import importlib.metadata
import logging

# Version handling
try:
    __version__ = importlib.metadata.version("prompt2json")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

from prompt2json.config import ConfigInputs, ResolvedConfig, resolve_config  # noqa: E402
from prompt2json.core.types import (  # noqa: E402
    AttachmentPart,
    FormattedResult,
    ValidationState,
)
from prompt2json.exceptions import (  # noqa: E402
    APIError,
    ErrorKind,
    InputError,
    Prompt2JsonError,
    UsageError,
    ValidationError,
)
from prompt2json.executor import Prompt2JsonExecutor, create_executor  # noqa: E402

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Executor
    "Prompt2JsonExecutor",
    "create_executor",
    # Configuration
    "ConfigInputs",
    "ResolvedConfig",
    "resolve_config",
    # Core types
    "AttachmentPart",
    "FormattedResult",
    "ValidationState",
    # Exceptions
    "ErrorKind",
    "Prompt2JsonError",
    "UsageError",
    "InputError",
    "ValidationError",
    "APIError",
]
