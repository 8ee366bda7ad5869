"""Services for HealthGuard."""

from .inference_service import (
    BaseInferenceClient,
    HTTPInferenceClient,
    OpenAIInferenceClient,
    get_inference_client,
)
from .history_service import AnalysisHistory
from .rate_limiter import SlidingWindowRateLimiter

__all__ = [
    "BaseInferenceClient",
    "HTTPInferenceClient",
    "OpenAIInferenceClient",
    "get_inference_client",
    "AnalysisHistory",
    "SlidingWindowRateLimiter",
]
