"""Turns remote model responses into schema-valid analysis results."""

import logging
import re
import time
from typing import Any, Optional, Pattern, Sequence, Tuple

from pydantic import ValidationError

from ..config import settings
from ..models.errors import MalformedResponseError, SchemaValidationError
from ..models.schemas import (
    AnalysisInput,
    AnalysisResult,
    Citation,
    InferenceResponse,
    ResponseKind,
    Verdict,
)

logger = logging.getLogger(__name__)


# Evaluated in order, first match wins. Harmful signals dominate
# misinformation signals, which dominate the default.
VERDICT_RULES: Tuple[Tuple[Pattern[str], Verdict], ...] = (
    (re.compile(r"harmful", re.IGNORECASE), Verdict.HARMFUL),
    (re.compile(r"misinfo|false|inaccurate", re.IGNORECASE), Verdict.MISINFORMATION),
)

# No signal at all yields the laxest verdict.
DEFAULT_VERDICT = Verdict.TRUTH

WHO_CITATION = Citation(title="World Health Organization", url="https://www.who.int/")
CDC_CITATION = Citation(title="Centers for Disease Control and Prevention", url="https://www.cdc.gov/")

FAILURE_MESSAGE = "Failed to analyze. Please try again."


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def infer_verdict(
    text: str,
    rules: Sequence[Tuple[Pattern[str], Verdict]] = VERDICT_RULES,
    default: Verdict = DEFAULT_VERDICT
) -> Verdict:
    """Guess a verdict from free text using an ordered rule list.

    Args:
        text: Raw model completion
        rules: (pattern, verdict) pairs, first match wins
        default: Verdict when no pattern matches

    Returns:
        The inferred Verdict
    """
    for pattern, verdict in rules:
        if pattern.search(text):
            return verdict
    return default


class ResponseReconciler:
    """Reconciles inference responses into AnalysisResult objects.

    Three outcomes are possible: a structured result validated locally,
    a degraded result synthesized from free text, or a conservative
    failure result built from an error.
    """

    def __init__(
        self,
        reasoning_limit: Optional[int] = None,
        degraded_confidence: Optional[float] = None,
        failure_confidence: Optional[float] = None,
        rules: Optional[Sequence[Tuple[Pattern[str], Verdict]]] = None
    ):
        """Initialize the reconciler.

        Args:
            reasoning_limit: Characters of completion kept as reasoning
            degraded_confidence: Confidence of free-text results
            failure_confidence: Confidence of failure results
            rules: Verdict inference rules (defaults to VERDICT_RULES)
        """
        self.reasoning_limit = (
            reasoning_limit if reasoning_limit is not None
            else settings.REASONING_CHAR_LIMIT
        )
        self.degraded_confidence = (
            degraded_confidence if degraded_confidence is not None
            else settings.DEGRADED_CONFIDENCE
        )
        self.failure_confidence = (
            failure_confidence if failure_confidence is not None
            else settings.FAILURE_CONFIDENCE
        )
        self.rules = tuple(rules) if rules is not None else VERDICT_RULES

    def classify(self, response: InferenceResponse) -> ResponseKind:
        """Determine which shape the response has."""
        if response.decode_error is not None:
            return ResponseKind.MALFORMED

        payload = response.payload
        if not isinstance(payload, dict):
            return ResponseKind.EMPTY

        if payload.get("schema_data"):
            return ResponseKind.STRUCTURED

        if isinstance(payload.get("completion"), str):
            return ResponseKind.COMPLETION

        return ResponseKind.EMPTY

    def extract_completion(self, response: InferenceResponse) -> str:
        """Return the completion text, or an empty string if there is none."""
        payload = response.payload
        if isinstance(payload, dict) and isinstance(payload.get("completion"), str):
            return payload["completion"]
        return ""

    def accept_structured(self, data: Any) -> AnalysisResult:
        """Validate a structured object against the result model.

        Args:
            data: The ``schema_data`` object from the endpoint

        Returns:
            The validated result, identical in content to ``data``

        Raises:
            SchemaValidationError: If ``data`` does not match the contract
        """
        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.error(f"Structured response failed validation: {e.error_count()} errors")
            raise SchemaValidationError(
                f"AI response did not match the expected format ({e.error_count()} errors)",
                errors=e.errors(include_url=False)
            ) from e

    def synthesize(
        self,
        completion: str,
        analysis_input: AnalysisInput,
        analyzed_at: int
    ) -> AnalysisResult:
        """Build a best-effort result from free text.

        Args:
            completion: Raw completion text, possibly empty
            analysis_input: The submission being analyzed
            analyzed_at: Invocation start time in epoch milliseconds

        Returns:
            Low-confidence AnalysisResult with a fallback citation
        """
        verdict = infer_verdict(completion, self.rules)

        logger.warning(
            f"Using degraded result: verdict={verdict.value}, "
            f"completion length={len(completion)}"
        )

        return AnalysisResult(
            verdict=verdict,
            confidence=self.degraded_confidence,
            reasoning=completion[:self.reasoning_limit],
            citations=[WHO_CITATION],
            input_echo=analysis_input,
            analyzed_at=analyzed_at,
        )

    def reconcile(
        self,
        response: InferenceResponse,
        analysis_input: AnalysisInput,
        analyzed_at: int
    ) -> AnalysisResult:
        """Classify a response and produce the matching result.

        Raises:
            MalformedResponseError: If the body could not be decoded
            SchemaValidationError: If a structured result fails validation
        """
        kind = self.classify(response)
        logger.info(f"Reconciling {kind.value} response")

        if kind == ResponseKind.MALFORMED:
            raise MalformedResponseError(response.decode_error or "")

        if kind == ResponseKind.STRUCTURED:
            return self.accept_structured(response.payload["schema_data"])

        return self.synthesize(self.extract_completion(response), analysis_input, analyzed_at)

    def failure_result(
        self,
        error: BaseException,
        analysis_input: AnalysisInput
    ) -> AnalysisResult:
        """Build the conservative result shown when an analysis fails.

        Args:
            error: The failure that ended the analysis
            analysis_input: The submission being analyzed

        Returns:
            Misinformation verdict with low confidence and a CDC citation
        """
        message = getattr(error, "message", None) or str(error) or FAILURE_MESSAGE

        return AnalysisResult(
            verdict=Verdict.MISINFORMATION,
            confidence=self.failure_confidence,
            reasoning=message,
            citations=[CDC_CITATION],
            input_echo=analysis_input,
            analyzed_at=now_ms(),
        )
