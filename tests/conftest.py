"""
Global test configuration for prompt2json.
"""

from collections.abc import Callable
import json
import logging
import os
from pathlib import Path
import sys
from typing import Any

import httpx
import pytest

# Ensure `src/` is importable when the package is not installed
_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from prompt2json.config import CompiledSchema, ResolvedConfig, compile_schema  # noqa: E402
from prompt2json.pipeline.api_handler import GenerateContentClient  # noqa: E402

SENTIMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "sentiment": {"type": "string", "enum": ["POSITIVE", "NEGATIVE", "NEUTRAL"]},
        "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
    },
    "required": ["sentiment", "confidence"],
}


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, isolated unit tests")


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_gcloud_env(monkeypatch):
    """Remove Google Cloud project/region variables so fallbacks are explicit."""
    for key in list(os.environ.keys()):
        if key.startswith(("GOOGLE_CLOUD_", "CLOUDSDK_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo logging configuration applied by CLI runs."""
    yield
    logger = logging.getLogger("prompt2json")
    for handler in list(logger.handlers):
        if handler.get_name() == "prompt2json.stderr":
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# --- Schema and Config Fixtures ---
@pytest.fixture
def sentiment_schema_text() -> str:
    return json.dumps(SENTIMENT_SCHEMA)


@pytest.fixture
def sentiment_schema(sentiment_schema_text) -> CompiledSchema:
    return compile_schema(sentiment_schema_text)


@pytest.fixture
def make_config(sentiment_schema) -> Callable[..., ResolvedConfig]:
    """Build a ResolvedConfig directly, bypassing flag resolution."""

    def _make(**overrides: Any) -> ResolvedConfig:
        values: dict[str, Any] = {
            "system_instruction": "Classify sentiment",
            "schema": sentiment_schema,
            "prompt": "this is great",
            "project": "example-project",
            "location": "us-central1",
            "model": "gemini-2.5-flash",
            "timeout": 60,
        }
        values.update(overrides)
        return ResolvedConfig(**values)

    return _make


# --- API Fixtures ---
class FakeTokenProvider:
    """Token provider that never touches real credentials."""

    def __init__(self, token: str = "test-token") -> None:
        self._token = token
        self.calls = 0

    def token(self) -> str:
        self.calls += 1
        return self._token


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    return FakeTokenProvider()


@pytest.fixture
def gemini_body() -> Callable[..., dict[str, Any]]:
    """Build a generateContent response body.

    Usage: gemini_body("{...}") or gemini_body(parts=["{", "}"], finish_reason="STOP")
    """

    def _make(
        text: str | None = None,
        *,
        parts: list[str] | None = None,
        finish_reason: str = "STOP",
        finish_message: str | None = None,
        usage: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        texts = parts if parts is not None else [text or ""]
        candidate: dict[str, Any] = {
            "content": {"role": "model", "parts": [{"text": t} for t in texts]},
            "finishReason": finish_reason,
        }
        if finish_message is not None:
            candidate["finishMessage"] = finish_message
        body: dict[str, Any] = {"candidates": [candidate]}
        if usage is not None:
            body["usageMetadata"] = usage
        return body

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_client(
    token_provider,
) -> Callable[..., tuple[GenerateContentClient, RecordingTransport]]:
    """Create a client whose HTTP layer is served by ``handler``.

    ``handler`` may be a callable taking the request, or a dict used as the
    JSON body of a 200 response.
    """

    def _make(
        handler: Callable[[httpx.Request], httpx.Response] | dict[str, Any],
    ) -> tuple[GenerateContentClient, RecordingTransport]:
        if isinstance(handler, dict):
            body = handler

            def handler(_request: httpx.Request) -> httpx.Response:
                return httpx.Response(200, json=body)

        transport = RecordingTransport(handler)
        client = GenerateContentClient(token_provider, transport=transport)
        return client, transport

    return _make
