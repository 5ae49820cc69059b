from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import ValidationError

from ..analytics.store import record_event
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import request_recommendation
from .config import DEFAULT_ASSISTANT_CONFIG, AssistantConfig
from .errors import ExternalServiceError, MalformedRequestError
from .models import RecommendationRequest
from .resolver import resolve

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "body"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_request(payload: Any) -> RecommendationRequest:
    """Validate an inbound JSON body, raising MalformedRequestError."""
    try:
        return RecommendationRequest.model_validate(payload)
    except ValidationError as exc:
        raise MalformedRequestError(_describe_validation_error(exc)) from exc


def plan_event(
    request: RecommendationRequest,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    config: AssistantConfig = DEFAULT_ASSISTANT_CONFIG,
) -> dict[str, Any]:
    """
    Run the model call and resolver for one request.

    Returns the JSON body for the caller: the model output as decoded when it
    was accepted, otherwise the fallback package.
    """
    start_time = time.time()

    raw_text: str | None = None
    try:
        raw_text = request_recommendation(request, llm_config)
    except ExternalServiceError as exc:
        logger.warning("Recommendation request failed, falling back: %s", exc)

    resolution = resolve(raw_text, request, config)
    result = resolution.result

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    if not resolution.used_fallback:
        logger.info(
            "Planned %d providers for %s (total %.2f) in %.1f ms",
            len(result.recommendations), request.location, result.total_cost, elapsed_ms,
        )

    record_event("assistant", {
        "location": request.location,
        "event_type": request.event_type,
        "budget": request.budget,
        "total_candidates": len(request.providers),
        "results_returned": len(result.recommendations),
        "total_cost": result.total_cost,
        "used_fallback": resolution.used_fallback,
        "fallback_reason": resolution.fallback_reason,
        "response_time_ms": elapsed_ms,
    })

    return resolution.body
