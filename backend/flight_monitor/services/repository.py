"""
Persistence adapter per monitor, voli tracciati e storico prezzi (PostgreSQL).

Ogni operazione apre la propria sessione/transazione: i poll tick girano fuori
dal ciclo di vita delle richieste HTTP e monitor diversi aggiornano righe
diverse, senza lock globali.

Qualsiasi SQLAlchemyError viene annullata (rollback) e rilanciata come
PersistenceError.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flight_monitor.models.monitor import Monitor, TrackedFlight
from flight_monitor.services.exceptions import PersistenceError
from flight_monitor.services.providers.base import FlightSummary

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MonitorRepository:

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_maker() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Errore database: %s: %s", type(exc).__name__, exc)
                raise PersistenceError(f"Database error: {type(exc).__name__}") from exc

    ########################################################################
    #       MONITOR
    ########################################################################
    async def upsert_monitor(
        self,
        monitor_id: str,
        credentials: dict,
        details: dict,
        flights: list[FlightSummary],
    ) -> None:
        """
        Crea o sostituisce il monitor con lo snapshot iniziale dei voli.

        Se il monitor esiste già, i suoi voli vengono sostituiti (overwrite,
        non merge): lo storico precedente va perso.
        Ogni volo parte con price_history = [price].
        """
        now = _now()
        stmt = (
            insert(Monitor)
            .values(id=monitor_id, credentials=credentials, details=details, updated_at=now)
            .on_conflict_do_update(
                index_elements=["id"],
                set_={"credentials": credentials, "details": details, "updated_at": now},
            )
        )

        async with self._session() as session:
            await session.execute(stmt)
            await session.execute(delete(TrackedFlight).where(TrackedFlight.monitor_id == monitor_id))
            session.add_all([_to_row(monitor_id, flight, now) for flight in flights])
            await session.commit()

    async def get_monitor(self, monitor_id: str) -> Monitor | None:
        async with self._session() as session:
            return await session.get(Monitor, monitor_id)

    ########################################################################
    #       FLIGHTS
    ########################################################################
    async def find_flight(self, monitor_id: str, flight_id: str) -> TrackedFlight | None:
        async with self._session() as session:
            return await session.get(TrackedFlight, (monitor_id, flight_id))

    async def update_flight_price(
        self,
        monitor_id: str,
        flight_id: str,
        price: float,
        history: list[float],
    ) -> None:
        stmt = (
            update(TrackedFlight)
            .where(TrackedFlight.monitor_id == monitor_id, TrackedFlight.offer_id == flight_id)
            .values(price=price, price_history=history, updated_at=_now())
        )
        async with self._session() as session:
            await session.execute(stmt)
            await session.commit()

    async def list_flights(self, monitor_id: str) -> list[TrackedFlight]:
        stmt = (
            select(TrackedFlight)
            .where(TrackedFlight.monitor_id == monitor_id)
            .order_by(TrackedFlight.price, TrackedFlight.offer_id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_flight_history(self, monitor_id: str, flight_id: str) -> list[float]:
        """Storico prezzi dal più vecchio; volo sconosciuto → lista vuota."""
        flight = await self.find_flight(monitor_id, flight_id)
        if flight is None:
            logger.warning("Storico non trovato: monitor=%s flight=%s", monitor_id, flight_id)
            return []
        return list(flight.price_history)


def _to_row(monitor_id: str, flight: FlightSummary, now: datetime) -> TrackedFlight:
    outbound, return_segment = flight.segments_as_dict()
    return TrackedFlight(
        monitor_id=monitor_id,
        offer_id=flight.id,
        airline=flight.airline,
        price=flight.price,
        price_history=[flight.price],
        outbound=outbound,
        return_segment=return_segment,
        updated_at=now,
    )
