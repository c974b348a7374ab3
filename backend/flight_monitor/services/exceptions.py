#services/exceptions.py


class FlightMonitorError(Exception):
    """Base di tutti gli errori applicativi del monitor."""


class ValidationError(FlightMonitorError):
    """Richiesta malformata, rifiutata prima di qualsiasi chiamata esterna."""


class AuthError(FlightMonitorError):
    """Credenziali rifiutate dall'endpoint OAuth2 del provider."""


class SearchError(FlightMonitorError):
    """Risposta non-2xx o body non interpretabile dalla ricerca voli."""


class PersistenceError(FlightMonitorError):
    """Errore SQLAlchemy durante lettura o scrittura, transazione annullata."""


class NotFoundError(FlightMonitorError):
    """Monitor richiesto inesistente."""
