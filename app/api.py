"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import TemperatureMeasurement, TemperatureResponse
from models.records import EnvironmentMode
from services.temperature import (
    OverallTimeout,
    PartialBackendFailure,
    TemperatureService,
    build_default_service,
)

router = APIRouter()


def get_service() -> TemperatureService:
    return build_default_service()


@router.get(
    "/api/temperatures",
    response_model=TemperatureResponse,
    summary="Minute, hour and day temperature averages for every node.",
)
async def get_temperatures(
    dev: bool = Query(False, description="Query the development metrics backend."),
    service: TemperatureService = Depends(get_service),
) -> TemperatureResponse:
    mode = EnvironmentMode.development if dev else EnvironmentMode.production
    try:
        report = await service.get_temperatures(mode)
    except PartialBackendFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except OverallTimeout as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=str(exc),
        ) from exc
    return TemperatureResponse(
        measurements=[TemperatureMeasurement.from_record(record) for record in report]
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /api/temperatures for node readings."}
