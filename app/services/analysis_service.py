"""SEO analysis service orchestrating input validation and the LLM call.

This service is the business logic behind ``POST /v1/analyze``:
- Input validation (all fields present and non-blank)
- Prompt construction from title, headings and a body excerpt
- LLM invocation in JSON mode
- Output validation into a score, an analysis and improvement suggestions

Any failure after validation surfaces as AnalysisAppError with a generic
message; the underlying cause is logged only.
"""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from app.adapters.llm.base import AbstractLLMClient
from app.core.config import settings
from app.core.errors import AnalysisAppError, ValidationAppError
from app.schemas.analysis import ArticleInput, SEOAnalysisResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "headings", "content")

SYSTEM_PROMPT = "You are an SEO analysis tool for corporate SEO and content teams."

ANALYSIS_FAILED_MESSAGE = "An error occurred during analysis. Please try again."

INVALID_INPUT_MESSAGE = "Please fill in the title, headings and content."


@dataclass(frozen=True)
class Article:
    """Validated article ready for analysis."""

    title: str
    headings: str
    content: str


def _truncate(text: str, max_chars: int) -> tuple[str, bool]:
    """Truncate text to max_chars if needed.

    Returns:
        Tuple of (truncated_text, was_truncated).
    """
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True


def validate_article(payload: ArticleInput) -> Article:
    """Check that every article field is present and non-blank.

    Args:
        payload: Parsed request body.

    Returns:
        Article with the original (unstripped) values.

    Raises:
        ValidationAppError: If any field is missing or blank.
    """
    missing = [
        name
        for name in REQUIRED_FIELDS
        if not (getattr(payload, name) or "").strip()
    ]
    if missing:
        raise ValidationAppError(
            code="invalid_input",
            message=INVALID_INPUT_MESSAGE,
            details={"missing_fields": missing},
        )

    return Article(
        title=payload.title,  # type: ignore[arg-type]
        headings=payload.headings,  # type: ignore[arg-type]
        content=payload.content,  # type: ignore[arg-type]
    )


def build_prompt(title: str, headings: str, content_excerpt: str) -> str:
    """Build the fixed SEO scoring prompt.

    Args:
        title: Article title.
        headings: Article headings.
        content_excerpt: Leading part of the article body.

    Returns:
        Formatted prompt string for the LLM.
    """
    return f"""
You are an SEO expert. Analyze the article below and evaluate it from an SEO perspective.

[ARTICLE TITLE]
{title}

[HEADINGS]
{headings}

[BODY (OPENING)]
{content_excerpt}

Return the result as JSON in exactly this format:
{{
  "score": <integer 0-100>,
  "analysis": "Detailed analysis (multiple lines separated by newlines)",
  "improvements": ["Improvement 1", "Improvement 2", "Improvement 3"]
}}

Evaluation criteria:
1. Title length (30-35 characters is ideal)
2. Whether the main keyword appears early in the title
3. Whether the heading hierarchy is appropriate
4. Whether the headings contain the keywords
5. Readability of the body
6. Natural use of keywords

Return only the JSON object.
""".strip()


class AnalysisService:
    """Service scoring articles for SEO using an LLM.

    Attributes:
        llm: LLM client adapter for generating structured JSON.
        excerpt_chars: Number of leading body characters sent to the model.
        temperature: Sampling temperature for the completion.
    """

    def __init__(
        self,
        llm: AbstractLLMClient,
        *,
        excerpt_chars: int | None = None,
        temperature: float | None = None,
    ) -> None:
        self.llm = llm
        self.excerpt_chars = excerpt_chars or settings.app.content_excerpt_chars
        self.temperature = settings.llm.temperature if temperature is None else temperature

    def _parse_result(self, raw_response: dict) -> SEOAnalysisResult:
        try:
            return SEOAnalysisResult.model_validate(raw_response)
        except ValidationError as exc:
            logger.error(
                "analysis.invalid_model_output",
                extra={
                    "error_count": exc.error_count(),
                    "error_fields": sorted({".".join(map(str, e["loc"])) for e in exc.errors()}),
                },
            )
            raise AnalysisAppError(
                code="analysis_failed",
                message=ANALYSIS_FAILED_MESSAGE,
            ) from exc

    async def analyze(self, article: Article) -> SEOAnalysisResult:
        """Score a validated article.

        Args:
            article: Article returned by validate_article().

        Returns:
            SEOAnalysisResult with score, analysis and improvements.

        Raises:
            AnalysisAppError: If the LLM call fails or returns malformed output.
        """
        excerpt, truncated = _truncate(article.content, self.excerpt_chars)
        prompt = build_prompt(article.title, article.headings, excerpt)

        try:
            raw_response = await self.llm.generate_json(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                json_mode=True,
                temperature=self.temperature,
            )
        except Exception as exc:
            logger.error(
                "analysis.failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise AnalysisAppError(
                code="analysis_failed",
                message=ANALYSIS_FAILED_MESSAGE,
            ) from exc

        result = self._parse_result(raw_response)

        logger.info(
            "analysis.completed",
            extra={
                "score": result.score,
                "improvement_count": len(result.improvements),
                "content_truncated": truncated,
            },
        )
        return result
