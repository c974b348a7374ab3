"""
Endpoint Monitor.

POST /monitor/start                                → {id}
POST /monitor/{id}/stop                            → 200, body vuoto
GET  /monitor/{id}                                 → stato del monitor
GET  /monitor/{id}/flights                         → voli tracciati
GET  /monitor/{id}/flights/{flight_id}/history     → storico prezzi
"""
import logging

from fastapi import APIRouter, HTTPException, Response

from flight_monitor.api.dependencies import MonitorServiceDep
from flight_monitor.models.monitor import TrackedFlight
from flight_monitor.models.schemas import (
    FlightSummaryOut,
    MonitorOut,
    SegmentOut,
    StartMonitorIn,
    StartMonitorOut,
)
from flight_monitor.services.exceptions import (
    AuthError,
    NotFoundError,
    PersistenceError,
    SearchError,
    ValidationError,
)
from flight_monitor.services.providers.base import Credentials

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_id(value: str, name: str = "Monitor ID") -> str:
    if not value.strip():
        raise HTTPException(status_code=400, detail=f"{name} is required")
    return value


def _flight_out(flight: TrackedFlight) -> FlightSummaryOut:
    return FlightSummaryOut(
        id=flight.offer_id,
        price=flight.price,
        price_history=flight.price_history,
        timestamp=flight.updated_at,
        airline=flight.airline,
        outbound=SegmentOut(**flight.outbound),
        return_=SegmentOut(**flight.return_segment) if flight.return_segment else None,
    )


@router.post("/start", response_model=StartMonitorOut)
async def start_monitor(service: MonitorServiceDep, body: StartMonitorIn) -> StartMonitorOut:
    credentials = Credentials(
        client_id=body.credentials.client_id,
        client_secret=body.credentials.client_secret.get_secret_value(),
    )
    logger.debug("Richiesta start %s→%s", body.details.origin, body.details.destination)

    try:
        monitor_id = await service.start(credentials, body.details)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except AuthError:
        # nessun dettaglio sulle credenziali nel testo restituito al client
        raise HTTPException(status_code=502, detail="Authentication with the pricing provider failed")
    except SearchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return StartMonitorOut(id=monitor_id)


@router.post("/{monitor_id}/stop")
async def stop_monitor(service: MonitorServiceDep, monitor_id: str) -> Response:
    service.stop(_require_id(monitor_id))
    return Response(status_code=200)


@router.get("/{monitor_id}", response_model=MonitorOut)
async def get_monitor(service: MonitorServiceDep, monitor_id: str) -> MonitorOut:
    try:
        return await service.get_monitor(_require_id(monitor_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/{monitor_id}/flights", response_model=list[FlightSummaryOut], response_model_exclude_none=True)
async def get_flights(service: MonitorServiceDep, monitor_id: str) -> list[FlightSummaryOut]:
    try:
        flights = await service.get_flights(_require_id(monitor_id))
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return [_flight_out(f) for f in flights]


@router.get("/{monitor_id}/flights/{flight_id}/history", response_model=list[float])
async def get_flight_history(service: MonitorServiceDep, monitor_id: str, flight_id: str) -> list[float]:
    _require_id(monitor_id)
    _require_id(flight_id, "Flight ID")
    try:
        return await service.get_flight_history(monitor_id, flight_id)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
