"""Prompt and output-schema construction for claim analysis."""

import copy
import json
import logging
import types
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union, get_args, get_origin

from pydantic import BaseModel

from ..config import settings
from ..models.errors import SchemaContractError
from ..models.schemas import AnalysisInput, AnalysisResult, Citation, PdfMetadata, Verdict

logger = logging.getLogger(__name__)


ANALYSIS_RESULT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["verdict", "confidence", "reasoning", "citations", "inputEcho", "analyzedAt"],
    "properties": {
        "verdict": {"type": "string", "enum": [v.value for v in Verdict]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        "reasoning": {"type": "string"},
        "citations": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["title", "url"],
                "properties": {
                    "title": {"type": "string"},
                    "url": {"type": "string"},
                    "excerpt": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
        "inputEcho": {
            "type": "object",
            "properties": {
                "url": {"type": "string"},
                "text": {"type": "string"},
                "pdf": {
                    "anyOf": [
                        {"type": "null"},
                        {
                            "type": "object",
                            "required": ["name", "size"],
                            "properties": {
                                "name": {"type": "string"},
                                "size": {"type": "integer", "minimum": 0},
                                "type": {"type": "string"},
                            },
                            "additionalProperties": False,
                        },
                    ],
                },
            },
            "additionalProperties": False,
        },
        "analyzedAt": {"type": "integer"},
    },
    "additionalProperties": False,
}


_SCALAR_TYPES = {str: "string", int: "integer", float: "number", bool: "boolean"}


def _json_types(annotation) -> Set[str]:
    """JSON Schema type names a pydantic field annotation accepts."""
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        found: Set[str] = set()
        for arg in get_args(annotation):
            found |= _json_types(arg)
        return found
    if annotation is type(None):
        return {"null"}
    if origin in (list, List):
        return {"array"}
    if isinstance(annotation, type):
        if issubclass(annotation, Enum):
            return {"string"}
        if issubclass(annotation, BaseModel):
            return {"object"}
        if annotation in _SCALAR_TYPES:
            return {_SCALAR_TYPES[annotation]}
    return set()


def _schema_types(node: Dict[str, Any]) -> Set[str]:
    if "anyOf" in node:
        found: Set[str] = set()
        for option in node["anyOf"]:
            found |= _schema_types(option)
        return found
    declared = node.get("type", [])
    return {declared} if isinstance(declared, str) else set(declared)


def _wire_fields(model) -> Dict[str, Any]:
    """Map each wire name of a pydantic model to its field info."""
    return {(info.alias or name): info for name, info in model.model_fields.items()}


def _check_object(path: str, node: Dict[str, Any], model) -> None:
    fields = _wire_fields(model)
    properties = node.get("properties", {})
    declared = set(properties)
    required = set(node.get("required", []))

    if declared != set(fields):
        raise SchemaContractError(
            f"{path}: schema declares {sorted(declared)}, model has {sorted(fields)}"
        )
    expected_required = {k for k, info in fields.items() if info.is_required()}
    if required != expected_required:
        raise SchemaContractError(
            f"{path}: schema requires {sorted(required)}, model requires {sorted(expected_required)}"
        )

    if model.model_config.get("extra") == "forbid" and node.get("additionalProperties") is not False:
        raise SchemaContractError(f"{path}: additional properties must be disallowed")

    for key, info in fields.items():
        accepted = _json_types(info.annotation)
        allowed = _schema_types(properties[key])
        # The schema may leave out null where the model tolerates it, never the reverse.
        if not allowed <= accepted or allowed - {"null"} != accepted - {"null"}:
            raise SchemaContractError(
                f"{path}.{key}: schema allows {sorted(allowed)}, model accepts {sorted(accepted)}"
            )


def verify_schema_contract(schema: Dict[str, Any]) -> None:
    """Check that the output schema describes the result models exactly.

    Property names, required sets, scalar types and closed objects must
    all agree, so anything the schema admits also validates locally.

    Raises:
        SchemaContractError: On any mismatch. The schema is never widened
            to make it fit.
    """
    _check_object("$", schema, AnalysisResult)

    props = schema["properties"]
    _check_object("$.citations.items", props["citations"]["items"], Citation)
    if props["citations"].get("minItems", 0) < 1:
        raise SchemaContractError("$.citations: at least one citation must be required")

    echo = props["inputEcho"]
    _check_object("$.inputEcho", echo, AnalysisInput)

    pdf_object = [s for s in echo["properties"]["pdf"]["anyOf"] if s.get("type") == "object"]
    if len(pdf_object) != 1:
        raise SchemaContractError("$.inputEcho.pdf: expected null or one object shape")
    _check_object("$.inputEcho.pdf", pdf_object[0], PdfMetadata)


class PromptBuilder:
    """Builds the messages and output schema sent to the model.

    Output is fully determined by the arguments, so one builder can be
    shared across concurrent analyses.
    """

    SYSTEM_PROMPT = (
        "You are a Health Misinformation Safety Analyst. Classify input as 'truth', "
        "'harmful', or 'misinformation'. Provide concise reasoning and at least one "
        "reputable citation (WHO, CDC, PubMed, government health sites). If unsure, "
        "prefer 'misinformation' or 'harmful' depending on risk. Be cautious and "
        "safety-first."
    )

    INSTRUCTIONS = (
        "Analyze the following possible health misinformation inputs. Consider url "
        "content if provided, the text statement, and any PDF metadata if available. "
        "If the URL is provided, prioritize assessing the claim based on the landing "
        "content; if only text is provided, analyze the text. If only a PDF is provided "
        "and its contents are unavailable, use the filename context sparingly and "
        "avoid overclaiming."
    )

    PURPOSE = (
        "Safety triage for health information. Output structured JSON matching the "
        "schema, include citations with authoritative sources."
    )

    def __init__(
        self,
        platform: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None
    ):
        """Initialize the builder.

        Args:
            platform: Platform label sent as caller context (defaults to settings)
            schema: Output schema override, checked against the result models
        """
        self.platform = platform or settings.PLATFORM
        self._schema = schema if schema is not None else ANALYSIS_RESULT_SCHEMA
        verify_schema_contract(self._schema)

    def build_schema(self) -> Dict[str, Any]:
        """Return a fresh copy of the output schema."""
        return copy.deepcopy(self._schema)

    def build_user_payload(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str],
        now_ms: int
    ) -> Dict[str, Any]:
        return {
            "instructions": self.INSTRUCTIONS,
            "input": analysis_input.to_payload(),
            "context": {
                "submittedBy": submitted_by,
                "platform": self.platform,
                "purpose": self.PURPOSE,
            },
            "now": now_ms,
        }

    def build_messages(
        self,
        analysis_input: AnalysisInput,
        submitted_by: Optional[str],
        now_ms: int
    ) -> List[Dict[str, str]]:
        """Build the system and user messages.

        Args:
            analysis_input: Normalized submission
            submitted_by: Identity of the submitter, if known
            now_ms: Invocation start time in epoch milliseconds

        Returns:
            Two chat messages, system first
        """
        user_payload = self.build_user_payload(analysis_input, submitted_by, now_ms)
        logger.debug(f"Built prompt with input fields: {sorted(user_payload['input'])}")

        return [
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(user_payload)},
        ]
