"""
Forma della risposta di /v2/shopping/flight-offers.

Solo i campi effettivamente usati sono modellati; il resto viene ignorato.
Un body che non rispetta questi modelli è un SearchError (vedi amadeus.py):
nessun accesso ai campi avviene su dati non validati.

Documentazione: https://developers.amadeus.com/self-service/category/flights
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _AmadeusModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class FlightPoint(_AmadeusModel):
    iata_code: str
    at: str                 # "2026-12-27T06:30:00", ora locale aeroporto


class Segment(_AmadeusModel):
    departure: FlightPoint
    arrival: FlightPoint
    carrier_code: str
    number: str | None = None
    duration: str | None = None


class Itinerary(_AmadeusModel):
    duration: str | None = None          # ISO 8601, es. "PT9H10M"
    segments: list[Segment] = Field(min_length=1)


class Price(_AmadeusModel):
    currency: str | None = None
    total: float


class FareDetailsBySegment(_AmadeusModel):
    segment_id: str | None = None
    cabin: str | None = None


class TravelerPricing(_AmadeusModel):
    traveler_id: str | None = None
    fare_details_by_segment: list[FareDetailsBySegment] = []


class FlightOfferData(_AmadeusModel):
    id: str
    itineraries: list[Itinerary] = Field(min_length=1)
    price: Price
    validating_airline_codes: list[str] = []
    traveler_pricings: list[TravelerPricing] = []

    def cabins(self) -> set[str]:
        return {
            fare.cabin
            for pricing in self.traveler_pricings
            for fare in pricing.fare_details_by_segment
            if fare.cabin
        }


class Meta(_AmadeusModel):
    count: int


class Dictionaries(_AmadeusModel):
    locations: dict[str, dict] = {}
    aircraft: dict[str, str] = {}
    currencies: dict[str, str] = {}
    carriers: dict[str, str] = {}


class AmadeusResponse(_AmadeusModel):
    meta: Meta | None = None
    data: list[FlightOfferData] = []
    dictionaries: Dictionaries | None = None

    def is_valid(self) -> bool:
        """Risposta utilizzabile: almeno un'offerta, conteggio coerente, dizionari presenti."""
        return (
            len(self.data) > 0
            and self.meta is not None
            and self.meta.count == len(self.data)
            and self.dictionaries is not None
        )

    def carrier_name(self, code: str) -> str | None:
        if self.dictionaries is None:
            return None
        return self.dictionaries.carriers.get(code)
