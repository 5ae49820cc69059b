"""
Event package recommendation engine.

Responsibilities:
- Validate inbound assistant requests (budget, location, event type, providers).
- Ask the LLM for one provider per category within budget.
- Accept the model JSON when it matches the result schema.
- Fall back to a deterministic pick of the first candidates otherwise.
"""
