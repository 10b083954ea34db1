"""The primary entry point for running one prompt through the pipeline.

Stages run strictly in order and never call back into an earlier one:
attachments are loaded, the request is built and sent, and the reply is
validated and formatted. Stage failures propagate as ``Prompt2JsonError``
subclasses; a reply that fails validation is returned (not raised) so the
caller can still emit what the model produced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prompt2json.auth import GoogleDefaultTokenProvider
from prompt2json.files import load_attachments
from prompt2json.pipeline.api_handler import GenerateContentClient, build_request
from prompt2json.pipeline.result_builder import ResultBuilder

if TYPE_CHECKING:
    from prompt2json.config import ResolvedConfig
    from prompt2json.core.types import FormattedResult

log = logging.getLogger(__name__)


class Prompt2JsonExecutor:
    """Runs a resolved configuration through load, call and validate stages."""

    def __init__(self, config: ResolvedConfig, client: GenerateContentClient) -> None:
        self.config = config
        self.client = client
        self.result_builder = ResultBuilder(config.schema, pretty=config.pretty_print)

    def execute(self) -> FormattedResult:
        """Execute the pipeline once.

        Returns:
            The formatted reply. Its ``error`` is set when the reply was not
            valid JSON or did not satisfy the schema.

        Raises:
            InputError: Attachment problems (before any network access).
            APIError: Credential, transport or HTTP status failures.
            ValidationError: The response carried no usable text.
        """
        attachments = load_attachments(self.config.attachments)
        request = build_request(self.config, attachments)
        raw = self.client.generate(self.config, request)
        return self.result_builder.build(raw)


def create_executor(
    config: ResolvedConfig,
    *,
    client: GenerateContentClient | None = None,
) -> Prompt2JsonExecutor:
    """Create an executor, defaulting to Application Default Credentials.

    Args:
        config: Resolved run configuration.
        client: Optional pre-built client (custom token source or transport).
    """
    final_client = client or GenerateContentClient(GoogleDefaultTokenProvider())
    return Prompt2JsonExecutor(config, final_client)
