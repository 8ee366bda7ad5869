"""Data models for HealthGuard."""

from .schemas import (
    Verdict,
    ResponseKind,
    PdfMetadata,
    AnalysisInput,
    Citation,
    AnalysisResult,
    InferenceResponse,
    AnalyzeRequest,
    HistoryEntry,
    DashboardStats,
)
from .errors import (
    AnalysisError,
    TransportError,
    RemoteInvocationError,
    MalformedResponseError,
    SchemaValidationError,
    EmptyInputError,
    SchemaContractError,
)

__all__ = [
    "Verdict",
    "ResponseKind",
    "PdfMetadata",
    "AnalysisInput",
    "Citation",
    "AnalysisResult",
    "InferenceResponse",
    "AnalyzeRequest",
    "HistoryEntry",
    "DashboardStats",
    "AnalysisError",
    "TransportError",
    "RemoteInvocationError",
    "MalformedResponseError",
    "SchemaValidationError",
    "EmptyInputError",
    "SchemaContractError",
]
