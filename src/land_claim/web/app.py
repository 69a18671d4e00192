"""FastAPI application — re-validation of claims uploaded by the app."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from land_claim.web.schemas import (
    CollisionRequest,
    CollisionResponse,
    DatumRequest,
    DatumResponse,
    HealthResponse,
    ValidateRequest,
    ValidateResponse,
)
from land_claim.web.service import ClaimService

load_dotenv()  # loads .env from project root; must run before env vars are consumed

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

_VERSION = "0.1.0"

app = FastAPI(title="Land Claim Validation", version=_VERSION)

_service = ClaimService()

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=_VERSION)


@app.post("/api/validate", response_model=ValidateResponse)
def validate(req: ValidateRequest) -> ValidateResponse:
    """Run the closed-path checks: points, distance, self-intersection, area."""
    return _service.validate(req)


@app.post("/api/collision", response_model=CollisionResponse)
def collision(req: CollisionRequest) -> CollisionResponse:
    """Check a point (and the newest path segment) against the supplied territories."""
    return _service.check_collision(req)


@app.post("/api/datum/to-display", response_model=DatumResponse)
def datum_to_display(req: DatumRequest) -> DatumResponse:
    return _service.to_display(req.points)


@app.post("/api/datum/from-display", response_model=DatumResponse)
def datum_from_display(req: DatumRequest) -> DatumResponse:
    return _service.from_display(req.points)
