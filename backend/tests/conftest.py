"""
Fixture condivise per la test suite del flight monitor.

Tutte le dipendenze esterne (Amadeus, PostgreSQL, Redis) vengono simulate:
il client Amadeus con AsyncMock, il database con un repository in memoria
che espone gli stessi metodi di MonitorRepository.
"""
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from flight_monitor.models.monitor import Monitor, TrackedFlight
from flight_monitor.models.schemas import MonitorDetails
from flight_monitor.services.providers.amadeus_schemas import AmadeusResponse
from flight_monitor.services.providers.base import Credentials, FlightSummary, SearchRequest
from flight_monitor.services.repository import _to_row


# ---------------------------------------------------------------------------
# Date di riferimento (sempre nel futuro, la validazione lo richiede)
# ---------------------------------------------------------------------------

DEPART = date.today() + timedelta(days=60)
RETURN = DEPART + timedelta(days=9)


def make_details(**overrides) -> MonitorDetails:
    data = {
        "origin": "VCE",
        "destination": "TFS",
        "departDate": DEPART.isoformat(),
        "returnDate": RETURN.isoformat(),
        "departFlexDays": 0,
        "returnFlexDays": 0,
        "pollInterval": 300000,
    }
    data.update(overrides)
    return MonitorDetails.model_validate(data)


@pytest.fixture
def details():
    return make_details()


@pytest.fixture
def credentials():
    return Credentials(client_id="client-id", client_secret="s3cret")


# ---------------------------------------------------------------------------
# Offerte Amadeus fittizie
# ---------------------------------------------------------------------------

def make_raw_offer(
    offer_id: str,
    price: float,
    depart_on: date = DEPART,
    return_on: date | None = RETURN,
    cabin: str = "ECONOMY",
    carrier: str = "AZ",
) -> dict:
    """Offerta andata/ritorno nel formato /v2/shopping/flight-offers."""
    itineraries = [
        {
            "duration": "PT4H35M",
            "segments": [
                {
                    "departure": {"iataCode": "VCE", "at": f"{depart_on.isoformat()}T06:30:00"},
                    "arrival": {"iataCode": "FCO", "at": f"{depart_on.isoformat()}T07:40:00"},
                    "carrierCode": carrier,
                    "number": "1464",
                    "duration": "PT1H10M",
                },
                {
                    "departure": {"iataCode": "FCO", "at": f"{depart_on.isoformat()}T08:20:00"},
                    "arrival": {"iataCode": "TFS", "at": f"{depart_on.isoformat()}T11:05:00"},
                    "carrierCode": carrier,
                    "number": "1700",
                    "duration": "PT3H45M",
                },
            ],
        }
    ]
    if return_on is not None:
        itineraries.append(
            {
                "duration": "PT4H",
                "segments": [
                    {
                        "departure": {"iataCode": "TFS", "at": f"{return_on.isoformat()}T12:00:00"},
                        "arrival": {"iataCode": "VCE", "at": f"{return_on.isoformat()}T17:00:00"},
                        "carrierCode": carrier,
                        "number": "1701",
                    }
                ],
            }
        )

    return {
        "type": "flight-offer",
        "id": offer_id,
        "source": "GDS",
        "itineraries": itineraries,
        "price": {"currency": "EUR", "total": f"{price:.2f}", "base": f"{price * 0.8:.2f}"},
        "validatingAirlineCodes": [carrier],
        "travelerPricings": [
            {
                "travelerId": "1",
                "fareOption": "STANDARD",
                "travelerType": "ADULT",
                "fareDetailsBySegment": [
                    {"segmentId": "1", "cabin": cabin, "fareBasis": "X", "class": "Y"},
                ],
            }
        ],
    }


def make_payload(offers: list[dict], carriers: dict | None = None) -> dict:
    return {
        "meta": {"count": len(offers)},
        "data": offers,
        "dictionaries": {
            "locations": {},
            "aircraft": {},
            "currencies": {"EUR": "EURO"},
            "carriers": carriers if carriers is not None else {"AZ": "ITA AIRWAYS"},
        },
    }


def make_response(offers: list[dict], carriers: dict | None = None) -> AmadeusResponse:
    return AmadeusResponse.model_validate(make_payload(offers, carriers))


def make_client(*responses) -> AsyncMock:
    """
    Client Amadeus mockato. Ogni chiamata a search() restituisce la risposta
    successiva; un'eccezione nella lista viene sollevata.
    """
    client = AsyncMock()
    client.authenticate = AsyncMock(return_value="token-123")
    client.search = AsyncMock(side_effect=list(responses))
    return client


# ---------------------------------------------------------------------------
# Repository in memoria
# ---------------------------------------------------------------------------

class InMemoryRepository:
    """Stessa interfaccia di MonitorRepository, senza database."""

    def __init__(self) -> None:
        self.monitors: dict[str, Monitor] = {}
        self.flights: dict[tuple[str, str], TrackedFlight] = {}
        self.updates: list[tuple[str, str, float, list[float]]] = []

    async def upsert_monitor(self, monitor_id, credentials, details, flights: list[FlightSummary]):
        self.monitors[monitor_id] = Monitor(id=monitor_id, credentials=credentials, details=details)
        self.flights = {k: v for k, v in self.flights.items() if k[0] != monitor_id}
        for flight in flights:
            self.flights[(monitor_id, flight.id)] = _to_row(monitor_id, flight, None)

    async def get_monitor(self, monitor_id):
        return self.monitors.get(monitor_id)

    async def find_flight(self, monitor_id, flight_id):
        return self.flights.get((monitor_id, flight_id))

    async def update_flight_price(self, monitor_id, flight_id, price, history):
        self.updates.append((monitor_id, flight_id, price, history))
        row = self.flights[(monitor_id, flight_id)]
        row.price = price
        row.price_history = history

    async def list_flights(self, monitor_id):
        rows = [row for (mid, _), row in self.flights.items() if mid == monitor_id]
        return sorted(rows, key=lambda r: (r.price, r.offer_id))

    async def get_flight_history(self, monitor_id, flight_id):
        row = self.flights.get((monitor_id, flight_id))
        return list(row.price_history) if row else []


@pytest.fixture
def repository():
    return InMemoryRepository()


def search_request(depart: date = DEPART, ret: date = RETURN) -> SearchRequest:
    return SearchRequest(origin="VCE", destination="TFS", depart_date=depart, return_date=ret)
