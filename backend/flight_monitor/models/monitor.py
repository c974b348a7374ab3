from datetime import datetime

from sqlalchemy import JSON, Float, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from flight_monitor.db.database import Base

# JSONB su PostgreSQL, JSON generico sugli altri dialetti
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Monitor(Base):
    __tablename__ = "monitors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # {"client_id": ..., "client_secret": ...}
    credentials: Mapped[dict] = mapped_column(JsonType, nullable=False)
    # criteri di ricerca serializzati con gli alias camelCase dell'API
    details: Mapped[dict] = mapped_column(JsonType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    flights: Mapped[list["TrackedFlight"]] = relationship(
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class TrackedFlight(Base):
    __tablename__ = "flights"

    monitor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("monitors.id", ondelete="CASCADE"), primary_key=True
    )
    # id dell'offerta Amadeus: unico solo all'interno di un monitor
    offer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    airline: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    # append-only, dal più vecchio; l'ultimo elemento coincide sempre con price
    price_history: Mapped[list] = mapped_column(JsonType, nullable=False)
    outbound: Mapped[dict] = mapped_column(JsonType, nullable=False)
    return_segment: Mapped[dict | None] = mapped_column("return", JsonType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now())

    monitor: Mapped[Monitor] = relationship(back_populates="flights")

    __table_args__ = (
        Index("idx_flights_monitor_price", "monitor_id", "price"),
    )
