"""
Matrice di ricerca: espande i giorni di flessibilità in coppie (andata, ritorno).

Con flex = d su una tratta si ottengono 2d+1 date; la matrice è il prodotto
cartesiano andata × ritorno, andata nel ciclo esterno, offset crescente.
Nessuna deduplica: flex = 0 su entrambe produce esattamente una coppia.
"""
from datetime import date, timedelta

from flight_monitor.models.schemas import MonitorDetails
from flight_monitor.services.exceptions import ValidationError
from flight_monitor.services.providers.base import SearchRequest

MAX_FLEX_DAYS = 3


def date_range(base: date, flex_days: int) -> list[date]:
    """[base - flex, ..., base + flex] in ordine crescente."""
    if not 0 <= flex_days <= MAX_FLEX_DAYS:
        raise ValidationError(f"flex days must be between 0 and {MAX_FLEX_DAYS}, got {flex_days}")
    return [base + timedelta(days=offset) for offset in range(-flex_days, flex_days + 1)]


def build_search_matrix(details: MonitorDetails) -> list[SearchRequest]:
    depart_dates = date_range(details.depart_date, details.depart_flex_days)
    return_dates = date_range(details.return_date, details.return_flex_days)

    return [
        SearchRequest(
            origin=details.origin,
            destination=details.destination,
            depart_date=depart_date,
            return_date=return_date,
        )
        for depart_date in depart_dates
        for return_date in return_dates
    ]
