"""The AI recommendation proxy endpoint."""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from unilib.api.deps import get_base_store, get_llm
from unilib.api.middleware.auth import get_optional_principal
from unilib.api.schemas import RecommendationRequest, RecommendationResponse
from unilib.config import settings
from unilib.ports.auth import Principal
from unilib.ports.llm import LLMPort
from unilib.ports.store import StorePort
from unilib.services.recommendation import CurrentBook, RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recommendations"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.post(
    "/book-recommendations",
    response_model=RecommendationResponse,
    responses={400: {"description": "Query is required"}, 500: {"description": "Upstream or configuration failure"}},
)
async def book_recommendations(
    request: Request,
    principal: Principal | None = Depends(get_optional_principal),
    llm: LLMPort = Depends(get_llm),
    store: StorePort = Depends(get_base_store),
) -> JSONResponse:
    """
    Forward a recommendation query to the AI gateway.

    With ``currentBook`` the model is asked for books similar to it. Without
    it the prompt is enriched with the caller's recent history and
    preferences (when the bearer token identifies a user) and a snapshot of
    the top-rated catalog.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error("Error in book-recommendations: invalid JSON body: %s", exc)
        return _error(str(exc), 500)

    try:
        payload = RecommendationRequest.model_validate(body)
    except ValidationError as exc:
        if any(err["loc"][:1] == ("query",) for err in exc.errors()):
            return _error("Query is required", 400)
        return _error(f"Invalid request body: {exc.error_count()} validation error(s)", 400)
    if not payload.query or not payload.query.strip():
        return _error("Query is required", 400)

    current_book = None
    if payload.current_book is not None:
        current_book = CurrentBook(payload.current_book.title, payload.current_book.author)

    service = RecommendationService(
        llm,
        store.for_principal(principal),
        history_limit=settings.history_context_limit,
        catalog_limit=settings.catalog_context_limit,
        snippet_chars=settings.catalog_snippet_chars,
    )
    try:
        text = await service.recommend(payload.query, current_book, principal)
    except Exception as exc:
        logger.exception("Error in book-recommendations")
        return _error(str(exc) or "An error occurred", 500)

    return JSONResponse(RecommendationResponse(response=text).model_dump())
