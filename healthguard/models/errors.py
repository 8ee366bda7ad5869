"""Error taxonomy for claim analysis."""

from typing import Any, Dict, List, Optional


class AnalysisError(Exception):
    """Base class for recoverable analysis failures.

    None of these is fatal to the process. The orchestrator lets them
    propagate; the calling boundary turns them into a degraded result.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(AnalysisError):
    """No response was obtained (connectivity, DNS, timeout)."""


class RemoteInvocationError(AnalysisError):
    """The endpoint answered with a non-success status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"AI request failed: {status_code} {body}".rstrip())


class MalformedResponseError(AnalysisError):
    """The response body could not be decoded as JSON."""

    def __init__(self, decode_error: str = ""):
        self.decode_error = decode_error
        super().__init__(f"AI response could not be decoded: {decode_error}".rstrip(": "))


class SchemaValidationError(AnalysisError):
    """A structured result from the endpoint failed local validation."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class EmptyInputError(ValueError):
    """None of url, text or pdf was supplied."""


class SchemaContractError(RuntimeError):
    """The output schema and the result models disagree."""
