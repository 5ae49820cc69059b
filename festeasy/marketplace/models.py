from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ProviderProfile(BaseModel):
    id: str
    name: str
    category: str
    description: str
    price: float
    rating: float | None
    reviews: int
    location: str
    distance: float | None
    services: list[str]


class BookingStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class BookingCreate(BaseModel):
    client_name: str = Field(..., min_length=1)
    event_date: date
    event_type: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    guests: int = Field(..., ge=1)
    provider_id: str | None = None


class BookingRequest(BookingCreate):
    id: str
    status: BookingStatus = BookingStatus.pending
    created_by: str
    created_at: datetime


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    description: str = ""


class Service(ServiceCreate):
    id: str
    owner: str


class DashboardStats(BaseModel):
    pending: int
    accepted: int
    rejected: int
    total_requests: int
    services: int
