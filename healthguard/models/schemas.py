"""Pydantic data models for the HealthGuard analysis pipeline."""

from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class Verdict(str, Enum):
    """Safety classification of a health claim."""
    TRUTH = "truth"
    HARMFUL = "harmful"
    MISINFORMATION = "misinformation"


class ResponseKind(str, Enum):
    """Shape of a response returned by the inference endpoint."""
    STRUCTURED = "structured"
    COMPLETION = "completion"
    EMPTY = "empty"
    MALFORMED = "malformed"


class PdfMetadata(BaseModel):
    """Metadata of a picked PDF file. The file contents are never read."""

    name: str = Field(..., description="File name of the PDF")
    size: int = Field(..., ge=0, description="File size in bytes")
    mime_type: Optional[str] = Field(
        default=None,
        alias="type",
        description="MIME type reported by the file picker"
    )

    class Config:
        populate_by_name = True
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "name": "vaccine-study.pdf",
                "size": 482133,
                "type": "application/pdf"
            }
        }


class AnalysisInput(BaseModel):
    """Normalized submission: any combination of url, text and PDF metadata."""

    url: Optional[str] = Field(default=None, description="Address of the page making the claim")
    text: Optional[str] = Field(default=None, description="Claim statement as free text")
    pdf: Optional[PdfMetadata] = Field(default=None, description="Metadata of an attached PDF")

    class Config:
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "text": "Drinking bleach cures viral infections.",
                "pdf": None
            }
        }

    def is_empty(self) -> bool:
        """Return True when no url, text or pdf is present."""
        return self.url is None and self.text is None and self.pdf is None

    def to_payload(self) -> Dict[str, Any]:
        """Render the input as embedded in the model prompt.

        Absent url/text keys are left out; ``pdf`` is always present and
        is ``None`` when no file was attached.
        """
        payload = self.model_dump(mode="json", exclude_none=True, exclude={"pdf"})
        payload["pdf"] = (
            self.pdf.model_dump(mode="json", by_alias=True, exclude_none=True)
            if self.pdf is not None
            else None
        )
        return payload


class Citation(BaseModel):
    """A source supporting the verdict."""

    title: str = Field(..., description="Title of the source")
    url: str = Field(..., description="URL of the source")
    excerpt: Optional[str] = Field(default=None, description="Relevant passage from the source")

    class Config:
        frozen = True
        extra = "forbid"


class AnalysisResult(BaseModel):
    """Outcome of analyzing a single submission.

    Built exactly once per invocation and immutable afterwards.
    """

    verdict: Verdict = Field(..., description="Safety classification")
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Confidence of the verdict"
    )
    reasoning: str = Field(..., description="Explanation of the verdict")
    citations: List[Citation] = Field(
        ...,
        min_length=1,
        description="Supporting sources, at least one"
    )
    input_echo: AnalysisInput = Field(
        ...,
        alias="inputEcho",
        description="The submission this result belongs to"
    )
    analyzed_at: int = Field(
        ...,
        alias="analyzedAt",
        description="Invocation start time in epoch milliseconds"
    )

    class Config:
        populate_by_name = True
        frozen = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "verdict": "misinformation",
                "confidence": 0.92,
                "reasoning": "Ingesting bleach is dangerous and does not treat infections.",
                "citations": [
                    {"title": "Centers for Disease Control and Prevention", "url": "https://www.cdc.gov/"}
                ],
                "inputEcho": {"text": "Drinking bleach cures viral infections.", "pdf": None},
                "analyzedAt": 1760868000000
            }
        }


class InferenceResponse(BaseModel):
    """Successful transport outcome, before any interpretation."""

    status_code: int = Field(default=200, description="HTTP status of the response")
    payload: Optional[Any] = Field(
        default=None,
        description="Decoded JSON body, None when the body was not JSON"
    )
    raw_text: str = Field(default="", description="Undecoded response body")
    decode_error: Optional[str] = Field(
        default=None,
        description="Why the body could not be decoded, if it could not"
    )


# API Request/Response Models

class AnalyzeRequest(BaseModel):
    """Request model for the analysis endpoint."""

    url: Optional[str] = Field(default=None, max_length=2048, description="URL to analyze")
    text: Optional[str] = Field(default=None, description="Claim text to analyze")
    pdf: Optional[PdfMetadata] = Field(default=None, description="Metadata of an attached PDF")
    submitted_by: Optional[str] = Field(default=None, description="Identity of the submitter")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com/miracle-cure",
                "text": "This herb cures diabetes in two weeks.",
                "submitted_by": "user@example.com"
            }
        }


class HistoryEntry(BaseModel):
    """An analysis result recorded for a submitter."""

    result: AnalysisResult
    submitted_by: Optional[str] = None
    recorded_at: datetime = Field(default_factory=datetime.utcnow)


class DashboardStats(BaseModel):
    """Verdict counts over recorded analyses."""

    total: int = 0
    truth: int = 0
    harmful: int = 0
    misinformation: int = 0
