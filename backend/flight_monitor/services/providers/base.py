"""
Pricing Provider Layer — interfaccia astratta e tipi normalizzati.

Il MonitorService usa solo queste classi: il client concreto (Amadeus) viene
iniettato alla costruzione, nei test viene sostituito da un mock.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Credentials:
    """Coppia client id / secret dell'utente, catturata una volta allo start."""
    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class SearchRequest:
    """Una singola combinazione (andata, ritorno) della matrice di ricerca."""
    origin: str        # codice IATA (es. "VCE")
    destination: str   # codice IATA (es. "TFS")
    depart_date: date
    return_date: date
    adults: int = 1
    non_stop: bool = False


@dataclass
class SegmentSummary:
    departure: str          # ISO datetime locale (es. "2026-12-27T06:30:00")
    arrival: str
    duration: str           # leggibile (es. "4h 35m")
    alternative_date: bool


@dataclass
class FlightSummary:
    """Offerta normalizzata indipendente dal formato del provider."""
    id: str
    price: float
    airline: str
    outbound: SegmentSummary
    return_segment: SegmentSummary | None

    def segments_as_dict(self) -> tuple[dict[str, Any], dict[str, Any] | None]:
        outbound = asdict(self.outbound)
        return_segment = asdict(self.return_segment) if self.return_segment else None
        return outbound, return_segment


class PricingProvider(ABC):

    @abstractmethod
    async def authenticate(self, client_id: str, client_secret: str) -> str:
        """Scambio client-credentials; restituisce il bearer token."""
        ...

    @abstractmethod
    async def search(self, token: str, request: SearchRequest) -> Any:
        """Una chiamata di ricerca per la coppia di date della request."""
        ...
