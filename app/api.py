"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    AlertLogItem,
    AlertsResponse,
    AlertStateModel,
    AnalysisResponse,
    ConnectRealRequest,
    HistorySummaryModel,
    Reading,
    SoundPreviewResponse,
    StatusResponse,
    ThresholdsModel,
)
from models.readings import SoundType
from services.aggregator import Aggregator
from services.alerts import alert_log
from services.analysis import AnalysisClient, build_default_analysis_client
from services.controller import PollingController, build_default_controller
from services.historical import (
    HistoricalDataProvider,
    build_default_historical_provider,
    parse_day,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_controller() -> PollingController:
    return build_default_controller()


def get_analysis_client() -> AnalysisClient:
    return build_default_analysis_client()


def get_historical_provider() -> HistoricalDataProvider:
    return build_default_historical_provider()


def _status_payload(controller: PollingController) -> StatusResponse:
    current = controller.current
    return StatusResponse(
        status=controller.status,
        device_ip=controller.device_ip,
        polling=controller.is_polling,
        current=Reading.from_domain(current) if current else None,
        alerts=AlertStateModel.from_domain(controller.alert_state),
    )


@router.get("/status", response_model=StatusResponse, summary="Connection state and latest reading.")
async def get_status(controller: PollingController = Depends(get_controller)) -> StatusResponse:
    return _status_payload(controller)


@router.post(
    "/connect/mock",
    response_model=StatusResponse,
    summary="Start polling the built-in simulator.",
)
async def connect_mock(controller: PollingController = Depends(get_controller)) -> StatusResponse:
    await controller.connect_mock()
    return _status_payload(controller)


@router.post(
    "/connect/real",
    response_model=StatusResponse,
    summary="Probe the sensor device and start polling it.",
)
async def connect_real(
    request: Optional[ConnectRealRequest] = None,
    controller: PollingController = Depends(get_controller),
) -> StatusResponse:
    await controller.connect_real(request.ip if request else None)
    return _status_payload(controller)


@router.post("/disconnect", response_model=StatusResponse, summary="Stop polling.")
async def disconnect(controller: PollingController = Depends(get_controller)) -> StatusResponse:
    await controller.disconnect()
    return _status_payload(controller)


@router.get("/readings/current", response_model=Reading, summary="Most recent reading.")
async def current_reading(controller: PollingController = Depends(get_controller)) -> Reading:
    if controller.current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No reading has been received yet.",
        )
    return Reading.from_domain(controller.current)


@router.get(
    "/readings/history",
    response_model=List[Reading],
    summary="Rolling reading history, oldest first.",
)
async def reading_history(controller: PollingController = Depends(get_controller)) -> List[Reading]:
    return [Reading.from_domain(reading) for reading in controller.history.readings()]


@router.get(
    "/readings/summary",
    response_model=HistorySummaryModel,
    summary="Min, max and mean over the rolling history.",
)
async def reading_summary(
    controller: PollingController = Depends(get_controller),
) -> HistorySummaryModel:
    summary = Aggregator().aggregate(controller.history.readings())
    return HistorySummaryModel.from_domain(summary)


@router.get("/thresholds", response_model=ThresholdsModel, summary="Current alert thresholds.")
async def get_thresholds(controller: PollingController = Depends(get_controller)) -> ThresholdsModel:
    return ThresholdsModel.from_domain(controller.thresholds)


@router.put("/thresholds", response_model=ThresholdsModel, summary="Replace alert thresholds.")
async def put_thresholds(
    thresholds: ThresholdsModel,
    controller: PollingController = Depends(get_controller),
) -> ThresholdsModel:
    controller.update_thresholds(thresholds.to_domain())
    return ThresholdsModel.from_domain(controller.thresholds)


@router.get("/alerts", response_model=AlertsResponse, summary="Alert flags and out-of-range log.")
async def get_alerts(controller: PollingController = Depends(get_controller)) -> AlertsResponse:
    entries = alert_log(controller.history.readings(), controller.thresholds)
    return AlertsResponse(
        state=AlertStateModel.from_domain(controller.alert_state),
        log=[AlertLogItem.from_domain(entry) for entry in entries],
    )


@router.post(
    "/sound/{sound_type}",
    response_model=SoundPreviewResponse,
    summary="Preview an alert sound regardless of the sound toggle.",
)
async def preview_sound(
    sound_type: SoundType,
    controller: PollingController = Depends(get_controller),
) -> SoundPreviewResponse:
    played = controller.notifier.play(sound_type)
    return SoundPreviewResponse(sound_type=sound_type, played=played)


@router.post(
    "/analysis",
    response_model=AnalysisResponse,
    summary="Ask the text model to assess the current environment.",
)
async def analyze(
    controller: PollingController = Depends(get_controller),
    client: AnalysisClient = Depends(get_analysis_client),
) -> AnalysisResponse:
    if controller.current is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No reading available to analyse; connect a source first.",
        )
    text = await client.analyze(controller.current, controller.thresholds)
    return AnalysisResponse(analysis=text)


@router.get(
    "/history/{day}",
    response_model=List[Reading],
    summary="Day of half-hourly readings; empty when the store is unavailable.",
)
async def historical_readings(
    day: str,
    provider: HistoricalDataProvider = Depends(get_historical_provider),
) -> List[Reading]:
    try:
        target = parse_day(day)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        series = await provider.get_historical_data(target)
    except Exception:  # noqa: BLE001 - an unavailable store shows as "no data"
        logger.exception("Historical query failed", extra={"date": target.isoformat()})
        return []
    return [Reading.from_domain(reading) for reading in series]


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
    return {"status": "ok", "detail": "See /status for the monitor state."}
