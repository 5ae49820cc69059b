from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .config import DEFAULT_ASSISTANT_CONFIG, AssistantConfig
from .errors import MalformedModelOutputError
from .models import RecommendationItem, RecommendationRequest, RecommendationResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("recommendations", "totalCost", "summary")
FALLBACK_REASON = "automatic selection based on availability"
FALLBACK_SUMMARY = "basic package selected automatically"


@dataclass(frozen=True)
class Resolution:
    """
    ``result`` is the validated view used for logging and analytics;
    ``body`` is what goes back to the caller.
    """

    result: RecommendationResult
    body: dict[str, Any] = field(default_factory=dict)
    used_fallback: bool = False
    fallback_reason: str | None = None


def _reject_constant(name: str) -> Any:
    raise MalformedModelOutputError(f"model output contains non-finite number {name}")


def _decode(raw_text: str) -> dict[str, Any]:
    if not raw_text or not raw_text.strip():
        raise MalformedModelOutputError("model returned empty output")

    try:
        payload = json.loads(raw_text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise MalformedModelOutputError(f"model output is not valid JSON: {exc.msg}") from exc
    except (ValueError, RecursionError) as exc:
        raise MalformedModelOutputError(f"model output could not be decoded: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedModelOutputError("model output is not a JSON object")

    missing = [name for name in REQUIRED_FIELDS if name not in payload]
    if missing:
        raise MalformedModelOutputError(f"model output is missing fields: {', '.join(missing)}")

    return payload


def _validate(
    payload: dict[str, Any],
    request: RecommendationRequest,
    config: AssistantConfig,
) -> RecommendationResult:
    try:
        result = RecommendationResult.model_validate(payload)
    except ValidationError as exc:
        raise MalformedModelOutputError(
            f"model output does not match schema ({exc.error_count()} errors)"
        ) from exc

    if not result.recommendations:
        raise MalformedModelOutputError("model output has no recommendations")
    if len(result.recommendations) > len(request.providers):
        raise MalformedModelOutputError("model output has more items than candidates")

    if config.strict_totals:
        item_sum = sum(item.price for item in result.recommendations)
        if not math.isclose(result.total_cost, item_sum, abs_tol=config.total_tolerance):
            raise MalformedModelOutputError(
                f"totalCost {result.total_cost} does not match item sum {item_sum}"
            )
        candidate_ids = {p.id for p in request.providers}
        unknown = [item.id for item in result.recommendations if item.id not in candidate_ids]
        if unknown:
            raise MalformedModelOutputError(f"unknown provider ids: {', '.join(unknown)}")

    return result


def parse_model_output(
    raw_text: str,
    request: RecommendationRequest,
    config: AssistantConfig = DEFAULT_ASSISTANT_CONFIG,
) -> RecommendationResult:
    """
    Parse the model text into a RecommendationResult.

    Raises MalformedModelOutputError when the text is not a JSON object with
    the expected shape. Types are checked strictly (``"25"`` is not a price)
    and non-finite numbers are rejected. With ``config.strict_totals`` the
    total/item consistency and provider ids are also checked.
    """
    return _validate(_decode(raw_text), request, config)


def build_fallback(
    request: RecommendationRequest,
    config: AssistantConfig = DEFAULT_ASSISTANT_CONFIG,
) -> RecommendationResult:
    """Take the first candidates in the order given; no sorting, no dedup."""
    selected = request.providers[: config.fallback_size]
    items = [
        RecommendationItem(
            id=p.id,
            name=p.name,
            category=p.category,
            price=p.price,
            rating=p.rating,
            reason=FALLBACK_REASON,
        )
        for p in selected
    ]
    return RecommendationResult(
        recommendations=items,
        total_cost=sum(p.price for p in selected),
        summary=FALLBACK_SUMMARY,
    )


def _fallback(request: RecommendationRequest, config: AssistantConfig, reason: str) -> Resolution:
    result = build_fallback(request, config)
    return Resolution(
        result=result,
        body=result.model_dump(mode="json", by_alias=True),
        used_fallback=True,
        fallback_reason=reason,
    )


def resolve(
    raw_text: str | None,
    request: RecommendationRequest,
    config: AssistantConfig = DEFAULT_ASSISTANT_CONFIG,
) -> Resolution:
    """
    Turn the requestor output into a usable result. Never raises.

    ``raw_text`` is ``None`` when the model call itself failed. Accepted model
    output is relayed as the decoded object, extra keys and number types
    included.
    """
    if raw_text is None:
        return _fallback(request, config, "external_service_error")

    try:
        payload = _decode(raw_text)
        result = _validate(payload, request, config)
    except MalformedModelOutputError as exc:
        logger.warning("Failed to parse model output, using fallback: %s", exc)
        logger.debug("Unparseable model output: %.500r", raw_text)
        return _fallback(request, config, "malformed_model_output")

    return Resolution(result=result, body=payload)
