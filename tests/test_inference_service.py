"""Tests for inference clients."""

import json

import httpx
import openai
import pytest
import requests
from unittest.mock import Mock, PropertyMock, patch

from healthguard.models.errors import RemoteInvocationError, TransportError
from healthguard.services.inference_service import (
    HTTPInferenceClient,
    OpenAIInferenceClient,
    get_inference_client,
)

MESSAGES = [
    {"role": "system", "content": "You are a Health Misinformation Safety Analyst."},
    {"role": "user", "content": "{}"},
]
SCHEMA = {"type": "object"}


def _http_response(status_code=200, payload=None, text=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text if text is not None else json.dumps(payload)
    response.json.return_value = payload
    return response


class TestHTTPInferenceClient:
    """Test the plain JSON endpoint client."""

    @patch("healthguard.services.inference_service.requests.post")
    def test_posts_messages_and_schema(self, mock_post):
        """Test the wire request and a single attempt."""
        mock_post.return_value = _http_response(payload={"completion": "fine"})
        client = HTTPInferenceClient(url="https://inference.test/llm")

        response = client.complete(MESSAGES, SCHEMA)

        mock_post.assert_called_once_with(
            "https://inference.test/llm",
            json={"messages": MESSAGES, "schema": SCHEMA},
            headers={"Content-Type": "application/json"},
            timeout=None
        )
        assert response.payload == {"completion": "fine"}
        assert response.decode_error is None

    @patch("healthguard.services.inference_service.requests.post")
    def test_timeout_is_passed(self, mock_post):
        """Test that a configured timeout reaches requests."""
        mock_post.return_value = _http_response(payload={})
        client = HTTPInferenceClient(url="https://inference.test/llm", timeout=5.0)

        client.complete(MESSAGES, SCHEMA)

        assert mock_post.call_args.kwargs["timeout"] == 5.0

    @patch("healthguard.services.inference_service.requests.post")
    def test_non_success_status(self, mock_post):
        """Test that a non-2xx response raises with status and body."""
        mock_post.return_value = _http_response(status_code=503, text="upstream down")
        client = HTTPInferenceClient(url="https://inference.test/llm")

        with pytest.raises(RemoteInvocationError) as exc_info:
            client.complete(MESSAGES, SCHEMA)

        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "upstream down"
        assert exc_info.value.message == "AI request failed: 503 upstream down"
        assert mock_post.call_count == 1

    @patch("healthguard.services.inference_service.requests.post")
    def test_unreadable_error_body(self, mock_post):
        """Test that a failed body read yields an empty body."""
        response = _http_response(status_code=500)
        type(response).text = PropertyMock(side_effect=RuntimeError("stream closed"))
        mock_post.return_value = response
        client = HTTPInferenceClient(url="https://inference.test/llm")

        with pytest.raises(RemoteInvocationError) as exc_info:
            client.complete(MESSAGES, SCHEMA)

        assert exc_info.value.body == ""
        assert exc_info.value.message == "AI request failed: 500"

    @patch("healthguard.services.inference_service.requests.post")
    def test_connection_failure(self, mock_post):
        """Test that no response at all raises TransportError."""
        mock_post.side_effect = requests.exceptions.ConnectionError("Name or service not known")
        client = HTTPInferenceClient(url="https://inference.test/llm")

        with pytest.raises(TransportError):
            client.complete(MESSAGES, SCHEMA)

    @patch("healthguard.services.inference_service.requests.post")
    def test_timeout_failure(self, mock_post):
        """Test that a timeout raises TransportError."""
        mock_post.side_effect = requests.exceptions.ReadTimeout("read timed out")
        client = HTTPInferenceClient(url="https://inference.test/llm", timeout=1.0)

        with pytest.raises(TransportError) as exc_info:
            client.complete(MESSAGES, SCHEMA)

        assert "timed out" in exc_info.value.message

    @patch("healthguard.services.inference_service.requests.post")
    def test_undecodable_body(self, mock_post):
        """Test that a non-JSON body is returned, not raised."""
        response = _http_response(text="<html>Bad Gateway</html>")
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        mock_post.return_value = response
        client = HTTPInferenceClient(url="https://inference.test/llm")

        result = client.complete(MESSAGES, SCHEMA)

        assert result.payload is None
        assert result.raw_text == "<html>Bad Gateway</html>"
        assert "Expecting value" in result.decode_error


class TestOpenAIInferenceClient:
    """Test the OpenAI chat completions client."""

    def _client(self, content=None, error=None):
        client = OpenAIInferenceClient(api_key="sk-test", model="gpt-4o-mini")
        client.client = Mock()
        create = client.client.chat.completions.create
        if error is not None:
            create.side_effect = error
        else:
            message = Mock()
            message.content = content
            create.return_value = Mock(choices=[Mock(message=message)])
        return client

    def test_requires_api_key(self):
        """Test that a missing key is rejected."""
        with patch("healthguard.services.inference_service.settings") as mock_settings:
            mock_settings.OPENAI_API_KEY = ""
            with pytest.raises(ValueError):
                OpenAIInferenceClient(api_key=None)

    def test_json_reply_becomes_schema_data(self):
        """Test that a JSON object reply is surfaced as schema_data."""
        client = self._client(content='{"verdict": "truth"}')

        response = client.complete(MESSAGES, SCHEMA)

        assert response.payload == {"schema_data": {"verdict": "truth"}}
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"]["json_schema"]["schema"] == SCHEMA
        assert kwargs["messages"] == MESSAGES

    def test_text_reply_becomes_completion(self):
        """Test that a free-text reply is surfaced as completion."""
        client = self._client(content="This looks harmful.")

        response = client.complete(MESSAGES, SCHEMA)

        assert response.payload == {"completion": "This looks harmful."}

    def test_status_error(self):
        """Test that API status errors map to RemoteInvocationError."""
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(429, request=request, text="rate limited")
        error = openai.RateLimitError("rate limited", response=response, body=None)
        client = self._client(error=error)

        with pytest.raises(RemoteInvocationError) as exc_info:
            client.complete(MESSAGES, SCHEMA)

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "rate limited"

    def test_connection_error(self):
        """Test that connection errors map to TransportError."""
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client = self._client(error=openai.APIConnectionError(request=request))

        with pytest.raises(TransportError):
            client.complete(MESSAGES, SCHEMA)


class TestGetInferenceClient:
    """Test the client factory."""

    def test_http_backend(self):
        """Test that the http backend is built."""
        client = get_inference_client("http", url="https://inference.test/llm")

        assert isinstance(client, HTTPInferenceClient)
        assert client.url == "https://inference.test/llm"

    def test_unknown_backend(self):
        """Test that an unknown backend is rejected."""
        with pytest.raises(ValueError):
            get_inference_client("carrier-pigeon")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
