"""Pydantic request/response schemas for the validation API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PointModel(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class TerritoryModel(BaseModel):
    id: str
    user_id: str
    path: list[PointModel]
    name: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str


class ValidateRequest(BaseModel):
    path: list[PointModel]
    min_points: int = Field(default=10, ge=1)
    min_total_distance_m: float = 50.0
    min_area_m2: float = 100.0


class ValidateResponse(BaseModel):
    passed: bool
    reason: str | None = None
    message: str | None = None
    area_m2: float
    point_count: int
    total_distance_m: float


class CollisionRequest(BaseModel):
    point: PointModel
    path: list[PointModel] = []
    territories: list[TerritoryModel] = []
    exclude_owner_id: str | None = None


class CollisionResponse(BaseModel):
    has_collision: bool
    kind: str | None = None
    message: str | None = None
    closest_distance_m: float | None = None
    warning_level: str
    territory_name: str | None = None


class DatumRequest(BaseModel):
    points: list[PointModel]


class DatumResponse(BaseModel):
    points: list[PointModel]
