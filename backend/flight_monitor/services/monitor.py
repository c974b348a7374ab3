"""
Core logic del monitoraggio prezzi.

Flusso di start():
  1. Costruisce la matrice di ricerca (validazione prima di ogni chiamata esterna).
  2. Un token per ciclo, poi una ricerca per coppia di date, in sequenza;
     una coppia fallita viene saltata, se falliscono tutte lo start fallisce.
  3. Normalizza, filtra per cabina, deduplica per id offerta (vince la prima).
  4. Salva lo snapshot iniziale (storico = [prezzo]) e avvia il PollJob.

Ad ogni tick (refresh) la matrice viene rieseguita: i voli già tracciati
ricevono il nuovo prezzo in coda allo storico (sempre, anche se invariato);
le offerte nuove vengono ignorate e quelle sparite restano come sono.
"""
import functools
import logging
import uuid
from typing import Awaitable, Callable

from flight_monitor.models.monitor import TrackedFlight
from flight_monitor.models.schemas import MonitorDetails, MonitorOut
from flight_monitor.services.exceptions import NotFoundError, SearchError
from flight_monitor.services.normalizer import normalize_offers
from flight_monitor.services.providers.base import Credentials, FlightSummary, PricingProvider
from flight_monitor.services.registry import MonitorRegistry, MonitorState, PollJob
from flight_monitor.services.repository import MonitorRepository
from flight_monitor.services.search_matrix import build_search_matrix
from flight_monitor.utils.quota import record_call

logger = logging.getLogger(__name__)


def _unique_by_id(flights: list[FlightSummary]) -> list[FlightSummary]:
    """Amadeus numera le offerte per risposta: a parità di id vince la prima nella matrice."""
    seen: dict[str, FlightSummary] = {}
    for flight in flights:
        seen.setdefault(flight.id, flight)
    return list(seen.values())


class MonitorService:

    def __init__(
        self,
        client: PricingProvider,
        repository: MonitorRepository,
        registry: MonitorRegistry | None = None,
        track_usage: Callable[[], Awaitable[None]] = record_call,
    ) -> None:
        self._client = client
        self._repository = repository
        self.registry = registry if registry is not None else MonitorRegistry()
        self._track_usage = track_usage

    # ------------------------------------------------------------------
    # Ricerca
    # ------------------------------------------------------------------

    async def search_flights(self, credentials: Credentials, details: MonitorDetails) -> list[FlightSummary]:
        """
        Esegue l'intera matrice di ricerca, una coppia di date alla volta.

        Un SearchError su una coppia viene loggato e la coppia saltata; se
        falliscono tutte il ciclo solleva SearchError. AuthError interrompe
        subito: senza token non parte nessuna ricerca.
        """
        requests = build_search_matrix(details)
        token = await self._client.authenticate(credentials.client_id, credentials.client_secret)

        flights: list[FlightSummary] = []
        failed = 0
        for request in requests:
            await self._track_usage()
            try:
                response = await self._client.search(token, request)
            except SearchError as exc:
                failed += 1
                logger.error(
                    "Ricerca fallita per %s/%s, coppia saltata: %s",
                    request.depart_date, request.return_date, exc,
                )
                continue

            if not response.is_valid():
                logger.warning(
                    "Risposta Amadeus non valida per %s/%s, coppia saltata",
                    request.depart_date, request.return_date,
                )
                continue

            found = normalize_offers(
                response, details.depart_date, details.return_date, details.preferred_cabins
            )
            logger.debug(
                "%s/%s: %d offerte, %d dopo filtro cabina",
                request.depart_date, request.return_date, len(response.data), len(found),
            )
            flights.extend(found)

        if failed == len(requests):
            raise SearchError(f"All {failed} date pair searches failed")

        logger.info(
            "Ricerca %s→%s completata: %d coppie di date (%d fallite), %d voli",
            details.origin, details.destination, len(requests), failed, len(flights),
        )
        return flights

    # ------------------------------------------------------------------
    # Ciclo di vita
    # ------------------------------------------------------------------

    async def start(
        self,
        credentials: Credentials,
        details: MonitorDetails,
        monitor_id: str | None = None,
    ) -> str:
        """
        Snapshot iniziale + avvio polling.

        Un id esplicito già esistente viene sovrascritto (job fermato, voli
        sostituiti). Qualsiasi errore qui interrompe lo start: nessun job
        registrato.
        """
        monitor_id = monitor_id or str(uuid.uuid4())
        logger.info(
            "Avvio monitor %s: %s→%s %s/%s flex %d/%d ogni %s",
            monitor_id, details.origin, details.destination,
            details.depart_date, details.return_date,
            details.depart_flex_days, details.return_flex_days,
            details.poll_interval.label,
        )
        self.registry.stop(monitor_id)

        flights = _unique_by_id(await self.search_flights(credentials, details))
        if details.max_price is not None:
            flights = [f for f in flights if f.price <= details.max_price]

        await self._repository.upsert_monitor(
            monitor_id,
            {"client_id": credentials.client_id, "client_secret": credentials.client_secret},
            details.model_dump(mode="json", by_alias=True),
            flights,
        )
        logger.info("Monitor %s: snapshot iniziale di %d voli", monitor_id, len(flights))

        job = PollJob(
            monitor_id,
            details.poll_interval.seconds,
            functools.partial(self.refresh, monitor_id, credentials, details),
        )
        self.registry.register(job)
        return monitor_id

    async def refresh(self, monitor_id: str, credentials: Credentials, details: MonitorDetails) -> int:
        """Un poll tick. Restituisce il numero di voli aggiornati."""
        flights = _unique_by_id(await self.search_flights(credentials, details))

        updated = 0
        for flight in flights:
            existing = await self._repository.find_flight(monitor_id, flight.id)
            if existing is None:
                continue

            history = [*existing.price_history, flight.price]
            previous = existing.price_history[-1] if existing.price_history else existing.price
            if flight.price != previous:
                logger.info(
                    "Variazione prezzo monitor=%s flight=%s: %.2f → %.2f (%+.2f)",
                    monitor_id, flight.id, previous, flight.price, flight.price - previous,
                )

            await self._repository.update_flight_price(monitor_id, flight.id, flight.price, history)
            updated += 1

        logger.debug("Monitor %s: %d voli aggiornati", monitor_id, updated)
        return updated

    def stop(self, monitor_id: str) -> bool:
        stopped = self.registry.stop(monitor_id)
        if stopped:
            logger.info("Monitor %s fermato", monitor_id)
        else:
            logger.debug("Stop su monitor non attivo %s: nessuna azione", monitor_id)
        return stopped

    async def shutdown(self) -> None:
        await self.registry.shutdown()

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def get_monitor(self, monitor_id: str) -> MonitorOut:
        monitor = await self._repository.get_monitor(monitor_id)
        if monitor is None:
            raise NotFoundError(f"Monitor {monitor_id} not found")

        job = self.registry.get(monitor_id)
        return MonitorOut(
            id=monitor.id,
            active=job is not None,
            state=(job.state if job is not None else MonitorState.STOPPED).value,
            details=monitor.details,
        )

    async def get_flights(self, monitor_id: str) -> list[TrackedFlight]:
        return await self._repository.list_flights(monitor_id)

    async def get_flight_history(self, monitor_id: str, flight_id: str) -> list[float]:
        return await self._repository.get_flight_history(monitor_id, flight_id)
