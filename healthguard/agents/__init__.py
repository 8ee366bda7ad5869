"""Agents for the HealthGuard analysis pipeline."""

from .normalizer import normalize_input, normalize_request
from .prompt_builder import PromptBuilder, ANALYSIS_RESULT_SCHEMA, verify_schema_contract
from .reconciler import ResponseReconciler, VERDICT_RULES, infer_verdict

__all__ = [
    "normalize_input",
    "normalize_request",
    "PromptBuilder",
    "ANALYSIS_RESULT_SCHEMA",
    "verify_schema_contract",
    "ResponseReconciler",
    "VERDICT_RULES",
    "infer_verdict",
]
