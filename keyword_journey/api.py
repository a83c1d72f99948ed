"""HTTP API: keyword lookup, buyer-journey classification and insight generation."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from keyword_journey.app import KeywordJourneyApp
from keyword_journey.exceptions import InvalidInsightTypeError
from keyword_journey.modules.buyer_journey.service import DEFAULT_MODEL, validate_keywords

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["keyword-journey"])


def _journey_app(request: Request) -> KeywordJourneyApp:
    return request.app.state.journey_app


async def _read_json(request: Request) -> dict[str, Any]:
    """Parse the body as a JSON object.

    Raises:
        ValueError: for malformed JSON or a body that is not an object.
    """
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


@router.get("/health")
async def health(request: Request) -> dict:
    app = _journey_app(request)
    return {
        "status": "ok",
        "openai": app.journey_service.is_configured,
        "naver": app.stats_service.is_configured,
    }


@router.post("/keywords")
async def related_keywords(request: Request):
    """Related keywords with monthly search statistics for one seed keyword."""
    try:
        body = await _read_json(request)
        keyword = body.get("keyword")
        if not keyword:
            return JSONResponse({"error": "Keyword is required"}, status_code=400)

        service = _journey_app(request).stats_service
        rows = await service.fetch_keywords(str(keyword), include_detail=bool(body.get("includeDetail")))
        return {"keywords": rows}
    except Exception as exc:
        logger.error("Keyword route error: %s", exc, exc_info=True)
        return JSONResponse(
            {"error": "Failed to process request", "details": str(exc) or "Unknown error"},
            status_code=500,
        )


@router.post("/analyze-journey")
async def analyze_journey(request: Request):
    """Classify keywords into buyer-journey stages."""
    try:
        body = await _read_json(request)
        keywords = body.get("keywords")
        if not validate_keywords(keywords):
            return JSONResponse({"error": "Keywords are required"}, status_code=400)

        model: Optional[str] = body.get("model") or DEFAULT_MODEL
        analysis = await _journey_app(request).journey_service.analyze(keywords, str(model))
        return analysis.to_response()
    except Exception as exc:
        logger.error("Journey analysis error: %s", exc, exc_info=True)
        return JSONResponse(
            {"error": "Failed to analyze buyer journey", "details": str(exc) or "Unknown error"},
            status_code=500,
        )


@router.post("/generate-insights")
async def generate_insights(request: Request):
    """Marketing, budget, landing, DA or SA insight for classified keywords."""
    try:
        body = await _read_json(request)
        keywords = body.get("keywords")
        if not isinstance(keywords, list):
            raise ValueError("keywords must be a list")
        insight = await _journey_app(request).insight_generator.generate(
            keywords, body.get("insightType")
        )
        return {"insight": insight}
    except InvalidInsightTypeError:
        return JSONResponse({"error": "Invalid insight type"}, status_code=400)
    except Exception as exc:
        logger.error("Error generating insights: %s", exc, exc_info=True)
        return JSONResponse({"error": "Failed to generate insights"}, status_code=500)


def create_app(journey_app: Optional[KeywordJourneyApp] = None) -> FastAPI:
    """Build the FastAPI application around a (possibly pre-wired) ``KeywordJourneyApp``."""
    if journey_app is None:
        journey_app = KeywordJourneyApp()
    journey_app.initialize()

    app = FastAPI(
        title="Keyword Journey API",
        description="Naver keyword statistics with buyer-journey stage classification",
        version="1.0.0",
    )
    app.state.journey_app = journey_app
    app.include_router(router)
    return app
