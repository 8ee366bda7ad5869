"""LangGraph orchestrator for HealthGuard."""

from .orchestrator import (
    ClaimAnalysisGraph,
    create_orchestrator,
    analyze_claim,
    analyze_claim_async,
)

__all__ = [
    "ClaimAnalysisGraph",
    "create_orchestrator",
    "analyze_claim",
    "analyze_claim_async",
]
