"""Inference clients for the remote model endpoint."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from ..config import settings
from ..models.errors import RemoteInvocationError, TransportError
from ..models.schemas import InferenceResponse

logger = logging.getLogger(__name__)


class BaseInferenceClient(ABC):
    """Abstract base class for inference backends.

    A backend performs exactly one call per ``complete`` invocation and
    never retries. Implement this interface to plug in another endpoint.
    """

    @abstractmethod
    def complete(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any]
    ) -> InferenceResponse:
        """Send messages plus output schema to the model.

        Args:
            messages: Chat messages (system then user)
            schema: JSON schema the output must satisfy

        Returns:
            InferenceResponse whose payload is ``{"schema_data": ...}``,
            ``{"completion": ...}``, any other JSON, or None if the body
            was not JSON

        Raises:
            TransportError: No response was obtained
            RemoteInvocationError: The endpoint returned a non-success status
        """
        pass


class HTTPInferenceClient(BaseInferenceClient):
    """Client for a plain JSON inference endpoint.

    Posts ``{"messages": ..., "schema": ...}`` and expects either
    ``{"schema_data": ...}`` or ``{"completion": ...}`` back.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """Initialize the HTTP client.

        Args:
            url: Endpoint URL (defaults to settings)
            timeout: Seconds to wait for a response, None waits indefinitely
                (defaults to settings)
            session: Optional requests session to reuse connections
        """
        self.url = url or settings.INFERENCE_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session

    def complete(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any]
    ) -> InferenceResponse:
        poster = self.session.post if self.session is not None else requests.post

        try:
            response = poster(
                self.url,
                json={"messages": messages, "schema": schema},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Inference request timed out: {e}")
            raise TransportError(f"AI request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Inference request could not be sent: {e}")
            raise TransportError(f"AI request could not be sent: {e}") from e

        if not response.ok:
            body = self._read_body(response)
            logger.error(f"Inference endpoint returned {response.status_code}")
            raise RemoteInvocationError(response.status_code, body)

        raw_text = self._read_body(response)

        try:
            payload = response.json()
        except ValueError as e:
            # requests' JSONDecodeError subclasses ValueError
            logger.warning(f"Inference response is not JSON: {e}")
            return InferenceResponse(
                status_code=response.status_code,
                payload=None,
                raw_text=raw_text,
                decode_error=str(e)
            )

        return InferenceResponse(
            status_code=response.status_code,
            payload=payload,
            raw_text=raw_text
        )

    @staticmethod
    def _read_body(response: requests.Response) -> str:
        """Best-effort body read; failures yield an empty string."""
        try:
            return response.text or ""
        except Exception as e:
            logger.debug(f"Could not read response body: {e}")
            return ""


class OpenAIInferenceClient(BaseInferenceClient):
    """Client using OpenAI chat completions with a JSON-schema response format.

    A reply that parses as a JSON object is surfaced as ``schema_data``;
    anything else is surfaced as a free-text ``completion``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to settings)
            model: Model name (defaults to settings)
            temperature: Temperature for generation (defaults to settings)
            base_url: Alternative API base URL (defaults to settings)
            timeout: Seconds to wait for a response (defaults to settings)
        """
        from openai import OpenAI

        self.api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.LLM_MODEL
        self.temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE

        if not self.api_key:
            raise ValueError("OpenAI API key is required. Set OPENAI_API_KEY environment variable.")

        # max_retries=0: one call per analysis
        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url or settings.OPENAI_BASE_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            max_retries=0
        )

    def complete(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any]
    ) -> InferenceResponse:
        import openai

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "analysis_result", "schema": schema}
                }
            )
        except openai.APIStatusError as e:
            body = ""
            try:
                body = e.response.text or ""
            except Exception:
                logger.debug("Could not read OpenAI error body")
            logger.error(f"OpenAI returned {e.status_code}")
            raise RemoteInvocationError(e.status_code, body) from e
        except openai.APIConnectionError as e:
            # APITimeoutError is a subclass
            logger.error(f"OpenAI request could not be completed: {e}")
            raise TransportError(f"AI request could not be sent: {e}") from e

        content = response.choices[0].message.content or ""

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("OpenAI reply is not JSON, treating it as free text")
            return InferenceResponse(payload={"completion": content}, raw_text=content)

        if isinstance(parsed, dict):
            return InferenceResponse(payload={"schema_data": parsed}, raw_text=content)

        return InferenceResponse(payload={"completion": content}, raw_text=content)


def get_inference_client(backend: Optional[str] = None, **kwargs) -> BaseInferenceClient:
    """Factory function to get an inference client.

    Args:
        backend: "http" or "openai" (defaults to settings)
        **kwargs: Arguments passed to the client constructor

    Returns:
        BaseInferenceClient instance
    """
    backend = backend or settings.INFERENCE_BACKEND

    if backend == "http":
        return HTTPInferenceClient(**kwargs)
    elif backend == "openai":
        return OpenAIInferenceClient(**kwargs)
    else:
        raise ValueError(f"Unknown inference backend: {backend}")
