"""Folds raw submission fields into a single AnalysisInput."""

from typing import Any, Mapping, Optional, Union

from ..models.schemas import AnalysisInput, AnalyzeRequest, PdfMetadata


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_input(
    url: Optional[str] = None,
    text: Optional[str] = None,
    pdf: Optional[Union[PdfMetadata, Mapping[str, Any]]] = None
) -> AnalysisInput:
    """Build an AnalysisInput from raw form fields.

    Strings are trimmed and blank ones become absent, so the prompt can
    tell "no input" apart from "empty input".

    Args:
        url: URL as typed by the user
        text: Claim text as typed by the user
        pdf: Picked-file metadata, either a PdfMetadata or a mapping
            with name/size/type keys

    Returns:
        Normalized AnalysisInput
    """
    if pdf is not None and not isinstance(pdf, PdfMetadata):
        pdf = PdfMetadata.model_validate(dict(pdf))

    return AnalysisInput(url=_clean(url), text=_clean(text), pdf=pdf)


def normalize_request(request: AnalyzeRequest) -> AnalysisInput:
    """Normalize an API request body."""
    return normalize_input(url=request.url, text=request.text, pdf=request.pdf)
