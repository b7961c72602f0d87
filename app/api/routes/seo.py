from fastapi import APIRouter, Depends, Request

from app.adapters.rate_limit.daily import DailyRateLimiter
from app.core.auth import verify_api_key
from app.core.rate_limit import enforce_rate_limit, get_rate_limiter
from app.schemas.analysis import ArticleInput, ErrorResponse, SEOAnalysisResponse
from app.services.analysis_service import AnalysisService, validate_article

router = APIRouter(tags=["SEO"])


def get_analysis_service(request: Request) -> AnalysisService:
    """FastAPI dependency returning the analysis service created at startup."""
    return request.app.state.analysis_service


@router.post(
    "/analyze",
    response_model=SEOAnalysisResponse,
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed article fields."},
        403: {"model": ErrorResponse, "description": "API key required and missing/invalid."},
        429: {"model": ErrorResponse, "description": "Daily analysis limit reached."},
        500: {"model": ErrorResponse, "description": "Analysis failed; retry later."},
    },
)
async def analyze_article(
    request: Request,
    payload: ArticleInput,
    limiter: DailyRateLimiter = Depends(get_rate_limiter),
    service: AnalysisService = Depends(get_analysis_service),
) -> SEOAnalysisResponse:
    """Score an article for SEO.

    Validates the body before touching the rate limiter, so invalid
    requests never consume quota. Quota consumed by an admitted request is
    not refunded if the analysis itself fails.

    Returns:
        SEOAnalysisResponse: score, analysis, improvements and remaining quota.

    Raises:
        ValidationAppError: 400 when a field is missing or blank.
        RateLimitAppError: 429 when the client's daily quota is used up.
        AnalysisAppError: 500 when the model call or its output fails.
    """
    article = validate_article(payload)

    quota = await enforce_rate_limit(request, limiter)

    result = await service.analyze(article)

    return SEOAnalysisResponse(**result.model_dump(), remaining=quota.remaining)
