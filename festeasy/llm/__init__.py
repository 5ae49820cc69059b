"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the event-planning prompt from a budget, location and candidate providers.
- Issue exactly one chat completion call and hand back the raw model text.
- Report every call failure as ExternalServiceError so callers can fall back.
"""
