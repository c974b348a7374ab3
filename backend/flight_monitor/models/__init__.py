# Importare tutti i modelli qui serve a "registrarli" con Base.
# SQLAlchemy deve conoscere tutte le tabelle prima di poter
# chiamare create_all() nel lifespan.
from flight_monitor.models.monitor import Monitor, TrackedFlight  # noqa: F401
