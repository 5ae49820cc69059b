from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Provider(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="e.g. Food, Music, Decoration")
    price: float = Field(..., gt=0)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    distance: float | None = Field(default=None, ge=0.0, description="Kilometres from the event")


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    budget: float = Field(..., gt=0)
    location: str = Field(..., min_length=1)
    event_type: str | None = Field(default=None, alias="eventType")
    providers: list[Provider] = Field(..., min_length=1)

    def categories(self) -> list[str]:
        """Distinct candidate categories, in first-seen order."""
        seen: list[str] = []
        for provider in self.providers:
            if provider.category not in seen:
                seen.append(provider.category)
        return seen


class RecommendationItem(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    # Model output is checked strictly: "25" is not a price, 7 is not an id.
    id: str = Field(..., strict=True)
    name: str = Field(..., strict=True)
    category: str = Field(..., strict=True)
    price: float = Field(..., strict=True)
    rating: float = Field(..., strict=True)
    reason: str = Field(..., strict=True)


class RecommendationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    recommendations: list[RecommendationItem]
    total_cost: float = Field(..., alias="totalCost", strict=True)
    summary: str = Field(..., strict=True)


class ErrorResponse(BaseModel):
    error: str
    details: str
