from __future__ import annotations

import json
import logging

from groq import APIStatusError, Groq

from ..recommendations.errors import ExternalServiceError
from ..recommendations.models import RecommendationRequest
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert event planner. "
    "Given an event budget, location, event type and a list of available "
    "providers, recommend a package of providers for the event.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"recommendations": [{"id": "<provider_id>", "name": "<provider_name>", '
    '"category": "<category>", "price": <number>, "rating": <number>, '
    '"reason": "<short reason for the choice>"}], '
    '"totalCost": <number>, "summary": "<short summary of the package>"}\n'
    "Include only providers from the provided list. "
    "Do not add any text outside the JSON object."
)


def _format_amount(value: float) -> str:
    """Plain decimal notation: 1500000.0 -> "1500000", 123456.78 unchanged."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _build_user_message(request: RecommendationRequest) -> str:
    categories = request.categories()
    providers = [p.model_dump(exclude_none=True) for p in request.providers]

    lines = ["## Event"]
    lines.append(f"- Budget: {_format_amount(request.budget)}")
    lines.append(f"- Location: {request.location}")
    lines.append(f"- Event type: {request.event_type or 'General party'}")

    lines.append("\n## Available Providers")
    lines.append(json.dumps(providers, indent=2, ensure_ascii=False))

    lines.append("\n## Instructions")
    lines.append(f"1. Select EXACTLY one provider from each category: {', '.join(categories)}.")
    lines.append(f"2. The total cost must NOT exceed the budget of {_format_amount(request.budget)}.")
    lines.append("3. Prefer providers with a higher rating and a shorter distance.")
    lines.append("4. totalCost must equal the sum of the selected prices.")

    return "\n".join(lines)


def request_recommendation(
    request: RecommendationRequest,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """
    Ask the Groq LLM for an event package and return its raw text.

    Exactly one call is made; the SDK retry loop is disabled. Any failure
    (missing key, non-2xx status, connection error, timeout, empty
    response) raises ExternalServiceError.
    """
    if not config.enabled or not config.api_key:
        raise ExternalServiceError("Groq API key is not configured")

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout, max_retries=0)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _build_user_message(request)},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            response_format={"type": "json_object"},
        )
    except APIStatusError as exc:
        raise ExternalServiceError(f"Groq API error: {exc.status_code}") from exc
    except Exception as exc:
        raise ExternalServiceError(f"Groq API call failed: {exc}") from exc

    if not response.choices:
        raise ExternalServiceError("Groq API returned no choices")

    content = response.choices[0].message.content or ""
    logger.debug("Groq returned %d characters", len(content))
    return content
