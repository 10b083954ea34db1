"""Unit tests for request construction and the generateContent transport."""

import itertools
import json
import logging

import httpx
import pytest

from prompt2json.core.types import AttachmentPart
from prompt2json.exceptions import APIError, ErrorKind, ValidationError
from prompt2json.pipeline import api_handler
from prompt2json.pipeline.api_handler import build_request, endpoint_url, extract_text

URL = (
    "https://us-central1-aiplatform.googleapis.com/v1/projects/example-project"
    "/locations/us-central1/publishers/google/models/gemini-2.5-flash:generateContent"
)


class TestBuildRequest:
    @pytest.mark.unit
    def test_payload_shape(self, make_config, sentiment_schema):
        attachments = (
            AttachmentPart(mime_type="image/png", data="aW1n"),
            AttachmentPart(mime_type="application/pdf", data="cGRm"),
        )
        request = build_request(make_config(), attachments)

        assert json.loads(request.to_json()) == {
            "systemInstruction": {"parts": [{"text": "Classify sentiment"}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": "this is great"},
                        {"inlineData": {"mimeType": "image/png", "data": "aW1n"}},
                        {"inlineData": {"mimeType": "application/pdf", "data": "cGRm"}},
                    ],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseJsonSchema": sentiment_schema.document,
            },
        }

    @pytest.mark.unit
    def test_prompt_only(self, make_config):
        body = json.loads(build_request(make_config()).to_json())
        assert body["contents"][0]["parts"] == [{"text": "this is great"}]

    @pytest.mark.unit
    def test_endpoint_url(self, make_config):
        assert endpoint_url(make_config()) == URL


class TestGenerate:
    @pytest.mark.unit
    def test_successful_call(self, make_config, make_client, gemini_body):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert str(request.url) == URL
            assert request.headers["Authorization"] == "Bearer test-token"
            assert request.headers["Content-Type"] == "application/json"
            sent = json.loads(request.content)
            assert sent["contents"][0]["parts"][0]["text"] == "this is great"
            return httpx.Response(200, json=gemini_body(parts=['{"sentiment":', ' "POSITIVE"}']))

        config = make_config()
        client, transport = make_client(handler)

        text = client.generate(config, build_request(config))

        assert text == '{"sentiment": "POSITIVE"}'
        assert len(transport.requests) == 1

    @pytest.mark.unit
    def test_non_success_status_is_api_error(self, make_config, make_client):
        config = make_config()
        client, _ = make_client(
            lambda _req: httpx.Response(403, text='{"error": "permission denied"}')
        )

        with pytest.raises(APIError) as exc_info:
            client.generate(config, build_request(config))

        error = exc_info.value
        assert error.kind is ErrorKind.API
        assert error.status_code == 403
        assert error.body == '{"error": "permission denied"}'
        assert str(error) == 'API returned status 403: {"error": "permission denied"}'

    @pytest.mark.unit
    @pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ReadTimeout])
    def test_network_failure_is_api_error(self, make_config, make_client, exc_type):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("boom", request=request)

        config = make_config()
        client, _ = make_client(handler)

        with pytest.raises(APIError, match="failed to call API: boom"):
            client.generate(config, build_request(config))

    @pytest.mark.unit
    def test_token_failure_prevents_request(self, make_config, make_client, gemini_body):
        class BrokenTokens:
            def token(self) -> str:
                raise APIError("failed to get credentials: none configured")

        config = make_config()
        client, transport = make_client(gemini_body("{}"))
        client.token_provider = BrokenTokens()

        with pytest.raises(APIError, match="failed to get credentials"):
            client.generate(config, build_request(config))
        assert transport.requests == []

    @pytest.mark.unit
    def test_zero_timeout_disables_client_timeout(self, make_config, make_client):
        client, _ = make_client(lambda _req: httpx.Response(200))
        with client._create_http_client(0) as http:
            assert http.timeout.read is None
        with client._create_http_client(5) as http:
            assert http.timeout.read == 5

    @pytest.mark.unit
    def test_slow_body_past_deadline_is_api_error(
        self, make_config, make_client, gemini_body, monkeypatch
    ):
        """Each chunk arrives in time, but the whole reply takes too long."""
        ticks = itertools.count(0, 35)
        monkeypatch.setattr(api_handler, "_clock", lambda: next(ticks))
        payload = json.dumps(gemini_body("{}")).encode()
        chunks = [payload[:10], payload[10:20], payload[20:]]

        config = make_config(timeout=60)
        client, transport = make_client(
            lambda _req: httpx.Response(200, content=iter(chunks))
        )

        with pytest.raises(APIError, match="request exceeded 60s timeout"):
            client.generate(config, build_request(config))
        assert len(transport.requests) == 1

    @pytest.mark.unit
    def test_zero_timeout_reads_whole_chunked_body(
        self, make_config, make_client, gemini_body, monkeypatch
    ):
        ticks = itertools.count(0, 1000)
        monkeypatch.setattr(api_handler, "_clock", lambda: next(ticks))
        payload = json.dumps(gemini_body('{"ok": true}')).encode()
        chunks = [payload[i : i + 7] for i in range(0, len(payload), 7)]

        config = make_config(timeout=0)
        client, _ = make_client(lambda _req: httpx.Response(200, content=iter(chunks)))

        assert client.generate(config, build_request(config)) == '{"ok": true}'


class TestExtractText:
    @pytest.mark.unit
    def test_concatenates_parts_in_order(self, gemini_body):
        body = json.dumps(gemini_body(parts=["[1,", " 2", "]"]))
        assert extract_text(body) == "[1, 2]"

    @pytest.mark.unit
    def test_unparsable_body(self):
        with pytest.raises(ValidationError, match="failed to parse response"):
            extract_text(b"<html>oops</html>")

    @pytest.mark.unit
    def test_no_candidates(self):
        with pytest.raises(ValidationError, match="no candidates in response"):
            extract_text(b'{"candidates": []}')

    @pytest.mark.unit
    def test_no_content_parts(self):
        body = json.dumps({"candidates": [{"content": {"parts": []}, "finishReason": "STOP"}]})
        with pytest.raises(ValidationError, match="no content parts in response"):
            extract_text(body)

    @pytest.mark.unit
    def test_empty_text(self, gemini_body):
        with pytest.raises(ValidationError, match="empty response text"):
            extract_text(json.dumps(gemini_body(parts=["", ""])))

    @pytest.mark.unit
    def test_abnormal_finish_with_message(self, gemini_body, caplog):
        caplog.set_level(logging.WARNING, logger="prompt2json")
        body = json.dumps(
            gemini_body("{}", finish_reason="SAFETY", finish_message="blocked by policy")
        )

        with pytest.raises(ValidationError) as exc_info:
            extract_text(body)

        assert str(exc_info.value) == (
            "unexpected finish reason: SAFETY (finishMessage: blocked by policy)"
        )
        assert (
            "Generation stopped: finishReason=SAFETY, finishMessage=blocked by policy"
            in caplog.text
        )

    @pytest.mark.unit
    @pytest.mark.parametrize("finish_message", [None, ""])
    def test_abnormal_finish_without_message(self, gemini_body, caplog, finish_message):
        caplog.set_level(logging.WARNING, logger="prompt2json")
        body = json.dumps(
            gemini_body('{"partial', finish_reason="MAX_TOKENS", finish_message=finish_message)
        )

        with pytest.raises(ValidationError, match=r"^unexpected finish reason: MAX_TOKENS$"):
            extract_text(body)

        assert "Generation stopped: finishReason=MAX_TOKENS" in caplog.text
        assert "finishMessage" not in caplog.text

    @pytest.mark.unit
    def test_token_usage_logged_when_present(self, gemini_body, caplog):
        caplog.set_level(logging.INFO, logger="prompt2json")
        usage = {"promptTokenCount": 12, "candidatesTokenCount": 8, "totalTokenCount": 20}
        extract_text(json.dumps(gemini_body("{}", usage=usage)))

        assert "API response: finish_reason=STOP" in caplog.text
        assert "totalTokenCount:      20" in caplog.text

    @pytest.mark.unit
    def test_zero_token_usage_not_logged(self, gemini_body, caplog):
        caplog.set_level(logging.INFO, logger="prompt2json")
        extract_text(json.dumps(gemini_body("{}", usage={"totalTokenCount": 0})))
        assert "Token usage" not in caplog.text
