from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    plans = [e for e in events if e["type"] == "assistant"]
    total = len(plans)

    # Average response time
    times = [p["response_time_ms"] for p in plans if "response_time_ms" in p]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Fallback usage
    fallbacks = [p for p in plans if p.get("used_fallback")]
    reason_counter: Counter[str] = Counter(
        p.get("fallback_reason") or "unknown" for p in fallbacks
    )

    # Top locations
    loc_counter: Counter[str] = Counter()
    for p in plans:
        loc_counter[p.get("location", "unknown")] += 1
    top_locations = [{"name": n, "count": c} for n, c in loc_counter.most_common(10)]

    # Event types
    type_counter: Counter[str] = Counter()
    for p in plans:
        type_counter[p.get("event_type") or "unspecified"] += 1
    event_types = [{"name": n, "count": c} for n, c in type_counter.most_common(10)]

    # Package cost vs budget
    costs = [p["total_cost"] for p in plans if "total_cost" in p]
    over_budget = sum(
        1 for p in plans if p.get("total_cost", 0) > p.get("budget", float("inf"))
    )

    return {
        "total_plans": total,
        "avg_response_time_ms": avg_time,
        "avg_total_cost": round(sum(costs) / len(costs), 2) if costs else 0.0,
        "over_budget_plans": over_budget,
        "top_locations": top_locations,
        "event_types": event_types,
        "fallback_stats": {
            "count": len(fallbacks),
            "rate": round(len(fallbacks) / total * 100, 1) if total else 0.0,
            "reasons": dict(reason_counter),
        },
    }
