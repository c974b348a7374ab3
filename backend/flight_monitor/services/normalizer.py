"""
Normalizzazione delle offerte Amadeus nel formato FlightSummary.

Per ogni tratta (itinerario) si prende la partenza del primo segmento e
l'arrivo dell'ultimo; alternative_date segnala che la data effettiva di
partenza differisce da quella base richiesta, cioè che l'offerta arriva da
una ricerca espansa dalla flessibilità.
"""
import re
from datetime import date

from flight_monitor.models.schemas import CabinClass
from flight_monitor.services.providers.amadeus_schemas import (
    AmadeusResponse,
    FlightOfferData,
    Itinerary,
)
from flight_monitor.services.providers.base import FlightSummary, SegmentSummary


def _parse_iso_duration(duration: str) -> int:
    """Converte durata ISO 8601 'PT2H30M' (o 'P1DT2H') in minuti totali."""
    days = int(re.search(r"(\d+)D", duration).group(1)) if "D" in duration else 0
    hours = int(re.search(r"(\d+)H", duration).group(1)) if "H" in duration else 0
    mins = int(re.search(r"(\d+)M", duration).group(1)) if "M" in duration else 0
    return days * 24 * 60 + hours * 60 + mins


def format_duration(duration: str | None) -> str:
    """'PT9H10M' → '9h 10m'. Durata assente → stringa vuota."""
    if not duration:
        return ""
    total = _parse_iso_duration(duration)
    hours, mins = divmod(total, 60)
    return f"{hours}h {mins:02d}m"


def matches_cabins(offer: FlightOfferData, cabins: list[CabinClass] | None) -> bool:
    """Almeno un fareDetailsBySegment in una delle classi richieste; nessun filtro → True."""
    if not cabins:
        return True
    wanted = {CabinClass(c).value for c in cabins}
    return not wanted.isdisjoint(offer.cabins())


def _segment_summary(itinerary: Itinerary, base_date: date) -> SegmentSummary:
    first_seg = itinerary.segments[0]
    last_seg = itinerary.segments[-1]
    actual_date = first_seg.departure.at.split("T")[0]
    return SegmentSummary(
        departure=first_seg.departure.at,
        arrival=last_seg.arrival.at,
        duration=format_duration(itinerary.duration),
        alternative_date=actual_date != base_date.isoformat(),
    )


def _airline(offer: FlightOfferData, response: AmadeusResponse) -> str:
    if offer.validating_airline_codes:
        code = offer.validating_airline_codes[0]
    else:
        code = offer.itineraries[0].segments[0].carrier_code
    return response.carrier_name(code) or code


def normalize_offer(
    offer: FlightOfferData,
    response: AmadeusResponse,
    base_depart: date,
    base_return: date,
) -> FlightSummary:
    itineraries = offer.itineraries
    return FlightSummary(
        id=offer.id,
        price=float(offer.price.total),
        airline=_airline(offer, response),
        outbound=_segment_summary(itineraries[0], base_depart),
        return_segment=_segment_summary(itineraries[1], base_return) if len(itineraries) > 1 else None,
    )


def normalize_offers(
    response: AmadeusResponse,
    base_depart: date,
    base_return: date,
    cabins: list[CabinClass] | None = None,
) -> list[FlightSummary]:
    """Filtra per classe di cabina e normalizza. Risposta non valida → lista vuota."""
    if not response.is_valid():
        return []
    return [
        normalize_offer(offer, response, base_depart, base_return)
        for offer in response.data
        if matches_cabins(offer, cabins)
    ]
