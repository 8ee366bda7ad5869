"""LangGraph orchestrator for the HealthGuard claim analysis pipeline."""

import logging
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import StateGraph, START, END

from ..models.errors import EmptyInputError, MalformedResponseError
from ..models.schemas import (
    AnalysisInput,
    AnalysisResult,
    InferenceResponse,
    ResponseKind,
)
from ..agents.prompt_builder import PromptBuilder
from ..agents.reconciler import ResponseReconciler, now_ms
from ..services.inference_service import BaseInferenceClient, get_inference_client
from ..config import settings

logger = logging.getLogger(__name__)


class AnalysisState(TypedDict, total=False):
    """State flowing through the analysis graph for one invocation."""
    analysis_input: AnalysisInput
    submitted_by: Optional[str]
    analyzed_at: int
    messages: List[Dict[str, str]]
    output_schema: Dict[str, Any]
    response: InferenceResponse
    response_kind: ResponseKind
    result: AnalysisResult


def create_initial_state(
    analysis_input: AnalysisInput,
    submitted_by: Optional[str] = None
) -> AnalysisState:
    """Create the initial state for an analysis run.

    The timestamp is captured here, once, and reused as ``analyzedAt``.
    """
    return AnalysisState(
        analysis_input=analysis_input,
        submitted_by=submitted_by,
        analyzed_at=now_ms(),
    )


class ClaimAnalysisGraph:
    """LangGraph-based orchestrator for claim analysis.

    Builds the prompt, makes exactly one inference call, and reconciles
    the response into an AnalysisResult. Holds no per-call state, so a
    single instance can serve concurrent callers.
    """

    def __init__(
        self,
        inference_client: Optional[BaseInferenceClient] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        reconciler: Optional[ResponseReconciler] = None,
        reject_empty_input: Optional[bool] = None
    ):
        """Initialize the orchestrator.

        Args:
            inference_client: Backend used for the model call
            prompt_builder: Custom prompt builder
            reconciler: Custom response reconciler
            reject_empty_input: Fail fast on submissions with no url, text
                or pdf (defaults to settings)
        """
        self.inference_client = inference_client or get_inference_client()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.reconciler = reconciler or ResponseReconciler()
        self.reject_empty_input = (
            reject_empty_input if reject_empty_input is not None
            else settings.REJECT_EMPTY_INPUT
        )

        self.graph = self._build_graph()
        self.compiled_graph = self.graph.compile()

        logger.info(
            f"ClaimAnalysisGraph initialized with {type(self.inference_client).__name__}"
        )

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph state machine.

        Returns:
            Configured StateGraph instance
        """
        graph = StateGraph(AnalysisState)

        graph.add_node("build_request", self._build_request_node)
        graph.add_node("invoke_model", self._invoke_model_node)
        graph.add_node("classify_response", self._classify_response_node)
        graph.add_node("accept_structured", self._accept_structured_node)
        graph.add_node("synthesize_degraded", self._synthesize_degraded_node)

        graph.add_edge(START, "build_request")
        graph.add_edge("build_request", "invoke_model")
        graph.add_edge("invoke_model", "classify_response")

        graph.add_conditional_edges(
            "classify_response",
            self._route_after_classification,
            {
                "accept_structured": "accept_structured",
                "synthesize_degraded": "synthesize_degraded"
            }
        )

        graph.add_edge("accept_structured", END)
        graph.add_edge("synthesize_degraded", END)

        return graph

    # ==================== Node Functions ====================

    def _build_request_node(self, state: AnalysisState) -> Dict[str, Any]:
        messages = self.prompt_builder.build_messages(
            state["analysis_input"],
            state.get("submitted_by"),
            state["analyzed_at"]
        )
        return {
            "messages": messages,
            "output_schema": self.prompt_builder.build_schema()
        }

    def _invoke_model_node(self, state: AnalysisState) -> Dict[str, Any]:
        """Make the single inference call. Transport errors propagate."""
        logger.info("Invoking inference endpoint...")

        response = self.inference_client.complete(
            state["messages"],
            state["output_schema"]
        )
        return {"response": response}

    def _classify_response_node(self, state: AnalysisState) -> Dict[str, Any]:
        kind = self.reconciler.classify(state["response"])

        if kind == ResponseKind.MALFORMED:
            decode_error = state["response"].decode_error or ""
            logger.error(f"Response body could not be decoded: {decode_error}")
            raise MalformedResponseError(decode_error)

        if kind == ResponseKind.EMPTY:
            logger.warning("Response carried neither schema_data nor completion")
        else:
            logger.info(f"Received {kind.value} response")

        return {"response_kind": kind}

    def _accept_structured_node(self, state: AnalysisState) -> Dict[str, Any]:
        result = self.reconciler.accept_structured(state["response"].payload["schema_data"])
        return {"result": result}

    def _synthesize_degraded_node(self, state: AnalysisState) -> Dict[str, Any]:
        completion = self.reconciler.extract_completion(state["response"])
        result = self.reconciler.synthesize(
            completion,
            state["analysis_input"],
            state["analyzed_at"]
        )
        return {"result": result}

    # ==================== Routing Functions ====================

    def _route_after_classification(self, state: AnalysisState) -> str:
        if state["response_kind"] == ResponseKind.STRUCTURED:
            return "accept_structured"
        return "synthesize_degraded"

    # ==================== Public Interface ====================

    def analyze(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str] = None
    ) -> AnalysisResult:
        """Analyze a submission.

        Args:
            analysis_input: Normalized submission
            submitted_by: Identity of the submitter, if known

        Returns:
            AnalysisResult from the structured or degraded path

        Raises:
            EmptyInputError: No url, text or pdf, with rejection enabled
            TransportError: No response was obtained
            RemoteInvocationError: The endpoint returned a non-success status
            MalformedResponseError: The response body was not valid JSON
            SchemaValidationError: The structured result failed validation
        """
        if self.reject_empty_input and analysis_input.is_empty():
            raise EmptyInputError("Provide a URL, text or PDF to analyze.")

        preview = analysis_input.text or analysis_input.url or (
            analysis_input.pdf.name if analysis_input.pdf else ""
        )
        logger.info(f"Starting analysis for: {preview[:100]}")

        initial_state = create_initial_state(analysis_input, submitted_by)
        final_state = self.compiled_graph.invoke(initial_state)

        result = final_state["result"]
        logger.info(
            f"Analysis completed: {result.verdict.value} "
            f"(confidence: {result.confidence:.2f})"
        )
        return result

    def analyze_safely(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str] = None
    ) -> AnalysisResult:
        """Analyze a submission, degrading any failure to a conservative result.

        A failed analysis never propagates: it becomes a low-confidence
        misinformation verdict whose reasoning is the error message.
        Only EmptyInputError, a caller mistake, is re-raised.
        """
        try:
            return self.analyze(analysis_input, submitted_by)
        except EmptyInputError:
            raise
        except Exception as e:
            logger.error(f"Analysis failed, returning conservative result: {e}")
            return self.reconciler.failure_result(e, analysis_input)

    async def aanalyze(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str] = None
    ) -> AnalysisResult:
        """Async version of analyze."""
        import asyncio
        return await asyncio.to_thread(self.analyze, analysis_input, submitted_by)

    async def aanalyze_safely(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str] = None
    ) -> AnalysisResult:
        """Async version of analyze_safely."""
        import asyncio
        return await asyncio.to_thread(self.analyze_safely, analysis_input, submitted_by)


# ==================== Module-level convenience functions ====================

def create_orchestrator(
    inference_client: Optional[BaseInferenceClient] = None,
    **kwargs
) -> ClaimAnalysisGraph:
    """Create a ClaimAnalysisGraph instance.

    Args:
        inference_client: Optional inference backend
        **kwargs: Additional arguments for ClaimAnalysisGraph

    Returns:
        Configured ClaimAnalysisGraph instance
    """
    return ClaimAnalysisGraph(inference_client=inference_client, **kwargs)


def analyze_claim(
    analysis_input: AnalysisInput,
    submitted_by: Optional[str] = None,
    **kwargs
) -> AnalysisResult:
    """Analyze a submission with a fresh orchestrator.

    Args:
        analysis_input: Normalized submission
        submitted_by: Identity of the submitter
        **kwargs: Arguments for ClaimAnalysisGraph

    Returns:
        AnalysisResult
    """
    orchestrator = create_orchestrator(**kwargs)
    return orchestrator.analyze(analysis_input, submitted_by)


async def analyze_claim_async(
    analysis_input: AnalysisInput,
    submitted_by: Optional[str] = None,
    **kwargs
) -> AnalysisResult:
    """Async version of analyze_claim."""
    orchestrator = create_orchestrator(**kwargs)
    return await orchestrator.aanalyze(analysis_input, submitted_by)
