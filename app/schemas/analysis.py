"""Pydantic schemas for SEO analysis requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArticleInput(BaseModel):
    """Article fields submitted for analysis.

    Fields are optional at the schema level so a missing field is reported
    by the analysis service as InvalidInput (400) instead of FastAPI's 422.
    Non-string values are rejected by strict typing and surface as 400
    through the request validation handler.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    title: str | None = Field(
        default=None,
        description="Article title.",
        examples=["How to choose running shoes in 2025"],
    )
    headings: str | None = Field(
        default=None,
        description="Article headings, one per line (e.g. H2/H3 outline).",
        examples=["## Why fit matters\n## Cushioning vs. stability\n### Trail shoes"],
    )
    content: str | None = Field(
        default=None,
        description="Article body text. Only the first characters are analyzed.",
    )


class SEOAnalysisResult(BaseModel):
    """Structured output expected from the model."""

    score: int = Field(
        ...,
        ge=0,
        le=100,
        description="Overall SEO score from 0 to 100.",
    )
    analysis: str = Field(
        ...,
        description="Detailed analysis, multiple lines separated by newlines.",
    )
    improvements: list[str] = Field(
        ...,
        description="Concrete improvement suggestions.",
    )


class SEOAnalysisResponse(SEOAnalysisResult):
    """Analysis result returned to the client with the remaining daily quota."""

    remaining: int = Field(
        ...,
        ge=0,
        description="Analyses the client may still run before the daily window resets.",
    )


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx response."""

    error: str = Field(..., description="Human-readable error message.")
    code: str = Field(..., description="Stable, machine-readable error code.")
    request_id: str | None = Field(default=None, description="Correlation id of the request.")
    details: dict[str, Any] | None = Field(default=None, description="Optional structured context.")
