"""Example of using HealthGuard with a custom inference client."""

import os
import sys
from typing import Any, Dict, List

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from healthguard.models.schemas import AnalysisInput, InferenceResponse
from healthguard.services.inference_service import BaseInferenceClient
from healthguard.graph import ClaimAnalysisGraph


class KeywordTriageClient(BaseInferenceClient):
    """
    Example custom inference client.

    Answers locally with a free-text completion instead of calling a
    model, which exercises the degraded path of the pipeline. Replace
    ``complete`` with a call to your own endpoint.
    """

    RED_FLAGS = ("cure", "miracle", "detox", "instead of vaccines")

    def complete(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any]
    ) -> InferenceResponse:
        user_content = messages[-1]["content"].lower()
        hits = [flag for flag in self.RED_FLAGS if flag in user_content]

        if hits:
            completion = f"Likely misinformation: the claim uses {', '.join(hits)} language."
        else:
            completion = "No red-flag language found in the submission."

        return InferenceResponse(payload={"completion": completion})


def main():
    """Demonstrate custom client usage."""

    print("=" * 60)
    print("HealthGuard - Custom Inference Client Example")
    print("=" * 60)

    graph = ClaimAnalysisGraph(inference_client=KeywordTriageClient())

    samples = [
        AnalysisInput(text="This miracle tea will detox your liver in 3 days."),
        AnalysisInput(text="Washing hands with soap reduces the spread of infections."),
    ]

    for analysis_input in samples:
        result = graph.analyze(analysis_input)

        print(f"\n- {analysis_input.text}")
        print(f"  Verdict: {result.verdict.value} ({result.confidence:.1%})")
        print(f"  Reasoning: {result.reasoning}")


if __name__ == "__main__":
    main()
