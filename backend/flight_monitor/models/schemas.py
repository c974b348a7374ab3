from datetime import date, datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic.alias_generators import to_camel


# I codici aeroporto arrivano già in maiuscolo: "vce" è un errore, non va corretto
_IATA_PATTERN = r"^[A-Z]{3}$"


class CabinClass(str, Enum):
    ECONOMY = "ECONOMY"
    PREMIUM_ECONOMY = "PREMIUM_ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class PollInterval(IntEnum):
    """Intervalli di polling ammessi, in millisecondi."""
    FIVE_MINUTES = 300_000
    TEN_MINUTES = 600_000
    THIRTY_MINUTES = 1_800_000
    ONE_HOUR = 3_600_000

    @property
    def label(self) -> str:
        minutes = self.value // 60_000
        return "1 hour" if minutes == 60 else f"{minutes} minutes"

    @property
    def seconds(self) -> float:
        return self.value / 1000


class CamelModel(BaseModel):
    # JSON in camelCase (contratto con CLI e dashboard), attributi Python in snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Start monitor — richiesta
# ---------------------------------------------------------------------------

class CredentialsIn(CamelModel):
    client_id: str
    client_secret: SecretStr

    @field_validator("client_id")
    @classmethod
    def _client_id_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Missing API credentials")
        return v

    @field_validator("client_secret")
    @classmethod
    def _client_secret_non_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("Missing API credentials")
        return v


class MonitorDetails(CamelModel):
    origin: str = Field(pattern=_IATA_PATTERN)
    destination: str = Field(pattern=_IATA_PATTERN)
    depart_date: date
    return_date: date
    depart_flex_days: int = Field(default=0, ge=0, le=3)
    return_flex_days: int = Field(default=0, ge=0, le=3)
    poll_interval: PollInterval
    max_price: float | None = Field(default=None, gt=0)
    preferred_cabins: list[CabinClass] | None = None

    @field_validator("preferred_cabins", mode="before")
    @classmethod
    def _single_cabin_to_list(cls, v):
        # la dashboard manda una sola classe come stringa
        if isinstance(v, str):
            return [v]
        return v

    @model_validator(mode="after")
    def _check_dates(self) -> "MonitorDetails":
        if self.depart_date <= date.today():
            raise ValueError("Departure date must be in the future")
        if self.return_date <= self.depart_date:
            raise ValueError("Return date must be after departure date")
        return self


class StartMonitorIn(BaseModel):
    credentials: CredentialsIn
    details: MonitorDetails


class StartMonitorOut(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Voli monitorati
# ---------------------------------------------------------------------------

class SegmentOut(CamelModel):
    departure: str
    arrival: str
    duration: str
    alternative_date: bool = False


class FlightSummaryOut(CamelModel):
    id: str
    price: float
    price_history: list[float]
    timestamp: datetime
    airline: str
    outbound: SegmentOut
    return_: SegmentOut | None = Field(default=None, alias="return")


class MonitorOut(CamelModel):
    id: str
    active: bool
    state: str
    # criteri salvati, senza credenziali
    details: dict


class HealthOut(CamelModel):
    status: str
    env: str
    active_monitors: int
    amadeus_remaining: int | None = None
