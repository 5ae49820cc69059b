from __future__ import annotations

import logging
import os
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import require_provider, require_user
from .auth.users import ROLES, UserExistsError, authenticate, register
from .marketplace.catalog import get_provider, list_categories, list_locations, search_providers
from .marketplace.models import (
    BookingCreate,
    BookingRequest,
    BookingStatus,
    DashboardStats,
    ProviderProfile,
    Service,
    ServiceCreate,
)
from .marketplace.store import (
    BookingNotFoundError,
    InvalidStatusTransitionError,
    MarketplaceStore,
    ServiceNotFoundError,
)
from .recommendations.errors import MalformedRequestError
from .recommendations.models import ErrorResponse, RecommendationResult
from .recommendations.planner import parse_request, plan_event

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose successful preflight answer has an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


app = FastAPI(title="FestEasy API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "festeasy-secret-change-in-production"),
)
app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)
app.state.store = MarketplaceStore()


def get_store(request: Request) -> MarketplaceStore:
    return request.app.state.store


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupRequest(LoginRequest):
    password: str = Field(..., min_length=6)
    role: str = Field(default="user")
    full_name: str | None = None


@app.exception_handler(MalformedRequestError)
async def malformed_request_handler(request: Request, exc: MalformedRequestError) -> JSONResponse:
    logger.warning("Rejected assistant request: %s", exc)
    body = ErrorResponse(error="Could not generate recommendations", details=str(exc))
    return JSONResponse(status_code=400, content=body.model_dump())


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {"categories": list_categories(), "locations": list_locations()}


@app.get("/providers", response_model=list[ProviderProfile])
def providers(search: str | None = None, category: str | None = None) -> list[ProviderProfile]:
    return search_providers(search=search, category=category)


@app.get("/providers/{provider_id}", response_model=ProviderProfile)
def provider_detail(provider_id: str) -> ProviderProfile:
    provider = get_provider(provider_id)
    if provider is None:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider


@app.post(
    "/assistant",
    response_model=RecommendationResult,
    responses={400: {"model": ErrorResponse}},
)
async def assistant(request: Request) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise MalformedRequestError("Request body is not valid JSON") from exc

    body = parse_request(payload)
    result: dict[str, Any] = await run_in_threadpool(plan_event, body)
    return JSONResponse(content=result)


@app.options("/assistant")
def assistant_options() -> Response:
    # Real CORS preflights are answered by CORSMiddleware before reaching here.
    return Response(status_code=200)


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/signup")
def signup(body: SignupRequest, request: Request) -> dict:
    if body.role not in ROLES:
        raise HTTPException(status_code=422, detail=f"Role must be one of {', '.join(ROLES)}")
    try:
        user = register(body.username, body.password, body.role, body.full_name)
    except UserExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Client endpoints ─────────────────────────────────────────────────────


@app.post("/bookings", response_model=BookingRequest, status_code=201)
def create_booking(
    body: BookingCreate,
    user: dict = Depends(require_user),
    store: MarketplaceStore = Depends(get_store),
) -> BookingRequest:
    if body.provider_id is not None and get_provider(body.provider_id) is None:
        raise HTTPException(status_code=404, detail="Provider not found")
    return store.create_booking(body, created_by=user["username"])


@app.get("/bookings/mine", response_model=list[BookingRequest])
def my_bookings(
    user: dict = Depends(require_user),
    store: MarketplaceStore = Depends(get_store),
) -> list[BookingRequest]:
    return store.bookings_for(user["username"])


# ── Provider endpoints ───────────────────────────────────────────────────


@app.get("/bookings", response_model=list[BookingRequest])
def list_bookings(
    status: BookingStatus | None = None,
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> list[BookingRequest]:
    return store.list_bookings(status)


def _decide(store: MarketplaceStore, booking_id: str, status: BookingStatus) -> BookingRequest:
    try:
        return store.update_status(booking_id, status)
    except BookingNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidStatusTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@app.post("/bookings/{booking_id}/accept", response_model=BookingRequest)
def accept_booking(
    booking_id: str,
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> BookingRequest:
    return _decide(store, booking_id, BookingStatus.accepted)


@app.post("/bookings/{booking_id}/reject", response_model=BookingRequest)
def reject_booking(
    booking_id: str,
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> BookingRequest:
    return _decide(store, booking_id, BookingStatus.rejected)


@app.get("/services", response_model=list[Service])
def list_services(
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> list[Service]:
    return store.list_services(user["username"])


@app.post("/services", response_model=Service, status_code=201)
def add_service(
    body: ServiceCreate,
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> Service:
    return store.add_service(user["username"], body)


@app.delete("/services/{service_id}")
def remove_service(
    service_id: str,
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> dict:
    try:
        store.remove_service(user["username"], service_id)
    except ServiceNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"status": "removed"}


@app.get("/dashboard", response_model=DashboardStats)
def dashboard(
    user: dict = Depends(require_provider),
    store: MarketplaceStore = Depends(get_store),
) -> DashboardStats:
    return store.dashboard(user["username"])


@app.get("/analytics")
def analytics(user: dict = Depends(require_provider)) -> dict:
    return compute_analytics(get_events())


def run() -> None:
    uvicorn.run(
        "festeasy.app:app",
        host=os.environ.get("APP_HOST", "0.0.0.0"),
        port=int(os.environ.get("APP_PORT", "8000")),
        reload=False,
    )
