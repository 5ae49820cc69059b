from __future__ import annotations


class AssistantError(Exception):
    """Base class for failures raised while planning an event package."""


class MalformedRequestError(AssistantError):
    """The inbound assistant request is not JSON or misses required fields."""


class ExternalServiceError(AssistantError):
    """The model API call failed, timed out or returned a non-success status."""


class MalformedModelOutputError(AssistantError):
    """The model text does not match the expected recommendation schema."""
