"""API handling stage of the pipeline.

Builds the ``generateContent`` payload, authenticates, performs exactly one
synchronous POST and extracts the generated text from the first candidate.
There are no retries: every failure is final and is raised with its category
(``APIError`` for credentials/transport/status, ``ValidationError`` for a
response that cannot yield usable text).
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import time
from typing import TYPE_CHECKING

import httpx
import pydantic

from prompt2json.constants import FINISH_REASON_STOP, GENERATE_CONTENT_URL
from prompt2json.core.envelopes import (
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    InlineData,
    InlineDataPart,
    SystemInstruction,
    TextPart,
)
from prompt2json.exceptions import APIError, ValidationError

if TYPE_CHECKING:
    from prompt2json.auth import TokenProvider
    from prompt2json.config import ResolvedConfig
    from prompt2json.core.types import AttachmentPart

logger = logging.getLogger(__name__)

_clock = time.monotonic


def build_request(
    config: ResolvedConfig, attachments: Sequence[AttachmentPart] = ()
) -> GenerateContentRequest:
    """Assemble the request body.

    The user turn carries the prompt text first, then each attachment in the
    order the loader produced them.
    """
    parts: list[TextPart | InlineDataPart] = [TextPart(text=config.prompt)]
    parts.extend(
        InlineDataPart(inline_data=InlineData(mime_type=a.mime_type, data=a.data))
        for a in attachments
    )
    return GenerateContentRequest(
        system_instruction=SystemInstruction(
            parts=[TextPart(text=config.system_instruction)]
        ),
        contents=[Content(role="user", parts=parts)],
        generation_config=GenerationConfig(
            response_json_schema=config.schema.document
        ),
    )


def endpoint_url(config: ResolvedConfig) -> str:
    """Regional ``generateContent`` URL for the configured model."""
    return GENERATE_CONTENT_URL.format(
        location=config.location, project=config.project, model=config.model
    )


class GenerateContentClient:
    """Single-shot client for the Vertex AI ``generateContent`` endpoint.

    Args:
        token_provider: Supplies the bearer token for the request.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.token_provider = token_provider
        self._transport = transport

    def _create_http_client(self, timeout: int) -> httpx.Client:
        return httpx.Client(
            timeout=timeout if timeout > 0 else None, transport=self._transport
        )

    def generate(self, config: ResolvedConfig, request: GenerateContentRequest) -> str:
        """Send the request and return the first candidate's text.

        ``config.timeout`` bounds the whole call. httpx applies it to each of
        connect, write and read, and the body is streamed so a reply that
        trickles in past the deadline is cut off as well.

        Raises:
            APIError: Credential failure, network failure/timeout, non-200 status.
            ValidationError: Unparsable body, no candidates, abnormal finish
                reason, or empty text.
        """
        token = self.token_provider.token()
        url = endpoint_url(config)
        logger.info("Request: POST %s", url)

        deadline = _clock() + config.timeout if config.timeout > 0 else None
        try:
            with self._create_http_client(config.timeout) as client:
                with client.stream(
                    "POST",
                    url,
                    content=request.to_json(),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {token}",
                    },
                ) as response:
                    body = _read_body(response, deadline, config.timeout)
        except httpx.HTTPError as e:
            raise APIError(f"failed to call API: {e}") from e

        if response.status_code != httpx.codes.OK:
            text = body.decode("utf-8", errors="replace")
            raise APIError(
                f"API returned status {response.status_code}: {text}",
                status_code=response.status_code,
                body=text,
            )

        return extract_text(body)


def _read_body(
    response: httpx.Response, deadline: float | None, timeout: int
) -> bytes:
    chunks = []
    for chunk in response.iter_bytes():
        if deadline is not None and _clock() > deadline:
            raise APIError(f"failed to call API: request exceeded {timeout}s timeout")
        chunks.append(chunk)
    return b"".join(chunks)


def extract_text(body: bytes | str) -> str:
    """Pull the generated text out of a ``generateContent`` response body.

    An abnormal finish reason is always reported on the error stream (as a
    warning), with the provider's message when one is present.
    """
    try:
        parsed = GenerateContentResponse.model_validate_json(body)
    except pydantic.ValidationError as e:
        raise ValidationError(f"failed to parse response: {e}") from e

    if not parsed.candidates:
        raise ValidationError("no candidates in response")
    candidate = parsed.candidates[0]

    if candidate.finish_reason != FINISH_REASON_STOP:
        message = f"unexpected finish reason: {candidate.finish_reason}"
        if candidate.finish_message:
            message = f"{message} (finishMessage: {candidate.finish_message})"
            logger.warning(
                "Generation stopped: finishReason=%s, finishMessage=%s",
                candidate.finish_reason,
                candidate.finish_message,
            )
        else:
            logger.warning(
                "Generation stopped: finishReason=%s", candidate.finish_reason
            )
        raise ValidationError(message)

    if not candidate.parts:
        raise ValidationError("no content parts in response")
    text = candidate.text
    if not text:
        raise ValidationError("empty response text")

    logger.info("API response: finish_reason=%s", candidate.finish_reason)
    usage = parsed.usage_metadata
    if usage.total_token_count > 0:
        logger.info(
            "Token usage:\n"
            "  promptTokenCount:     %d\n"
            "  candidatesTokenCount: %d\n"
            "  totalTokenCount:      %d",
            usage.prompt_token_count,
            usage.candidates_token_count,
            usage.total_token_count,
        )
    return text
