"""
AmadeusClient — client per l'Amadeus Self-Service API (ambiente test).

Due operazioni, nessun retry e nessun rate limiting:
  authenticate() → POST /v1/security/oauth2/token (client credentials)
  search()       → POST /v2/shopping/flight-offers, una chiamata per coppia di date

Il token NON è cachato qui: è il chiamante (MonitorService) a riusarlo per
tutte le coppie di date di un singolo ciclo di ricerca.
Le credenziali sono dell'utente del monitor, non dell'applicazione.

Documentazione: https://developers.amadeus.com/self-service/category/flights
"""
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from flight_monitor.config import settings
from flight_monitor.services.exceptions import AuthError, SearchError
from flight_monitor.services.providers.amadeus_schemas import AmadeusResponse
from flight_monitor.services.providers.base import PricingProvider, SearchRequest

logger = logging.getLogger(__name__)

_AUTH_PATH = "/v1/security/oauth2/token"
_SEARCH_PATH = "/v2/shopping/flight-offers"

# Amadeus max è 250
_MAX_FLIGHT_OFFERS = 200


def build_search_body(request: SearchRequest) -> dict:
    """Body JSON della ricerca andata/ritorno per una coppia di date."""
    return {
        "currencyCode": "EUR",
        "originDestinations": [
            {
                "id": "1",
                "originLocationCode": request.origin,
                "destinationLocationCode": request.destination,
                "departureDateTimeRange": {
                    "date": request.depart_date.isoformat(),
                    "time": "10:00:00",
                },
            },
            {
                "id": "2",
                "originLocationCode": request.destination,
                "destinationLocationCode": request.origin,
                "departureDateTimeRange": {
                    "date": request.return_date.isoformat(),
                    "time": "10:00:00",
                },
            },
        ],
        "travelers": [
            {"id": "1", "travelerType": "ADULT", "count": request.adults},
        ],
        "sources": ["GDS"],
        "searchCriteria": {
            "maxFlightOffers": _MAX_FLIGHT_OFFERS,
            "flightFilters": {"nonStop": request.non_stop},
        },
    }


class AmadeusClient(PricingProvider):

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.amadeus_base_url
        self.timeout = timeout if timeout is not None else settings.amadeus_timeout_seconds
        # transport iniettabile: nei test httpx.MockTransport
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def authenticate(self, client_id: str, client_secret: str) -> str:
        try:
            async with self._client() as client:
                resp = await client.post(
                    _AUTH_PATH,
                    data={
                        "grant_type": "client_credentials",
                        "client_id": client_id,
                        "client_secret": client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as exc:
            raise AuthError(f"Authentication request failed: {type(exc).__name__}") from exc

        if resp.is_error:
            # il body può contenere dettagli sulle credenziali: solo nel log
            logger.error("Amadeus auth: HTTP %d: %s", resp.status_code, resp.text[:300])
            raise AuthError(f"Authentication failed: HTTP {resp.status_code}")

        try:
            return resp.json()["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthError("Authentication response without access_token") from exc

    async def search(self, token: str, request: SearchRequest) -> AmadeusResponse:
        body = build_search_body(request)
        logger.debug(
            "Amadeus search %s→%s %s/%s",
            request.origin, request.destination, request.depart_date, request.return_date,
        )

        try:
            async with self._client() as client:
                resp = await client.post(
                    _SEARCH_PATH,
                    json=body,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as exc:
            raise SearchError(f"Flight search request failed: {type(exc).__name__}: {exc}") from exc

        if resp.is_error:
            logger.error(
                "Amadeus %s→%s %s/%s: HTTP %d: %s",
                request.origin, request.destination, request.depart_date, request.return_date,
                resp.status_code, resp.text[:300],
            )
            raise SearchError(f"Flight search failed: HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise SearchError("Invalid response format from Amadeus API") from exc

        if not isinstance(payload, dict) or "data" not in payload:
            raise SearchError("Unexpected response structure from Amadeus API")

        try:
            return AmadeusResponse.model_validate(payload)
        except PydanticValidationError as exc:
            raise SearchError(f"Unexpected response structure from Amadeus API: {exc.error_count()} errors") from exc
