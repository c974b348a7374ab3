import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from flight_monitor.config import settings
from flight_monitor.db.database import async_session_maker, engine, Base
from flight_monitor.db.redis import get_redis, close_redis
from flight_monitor.api.dependencies import MonitorServiceDep
from flight_monitor.api.router import api_router
from flight_monitor.models.schemas import HealthOut
from flight_monitor.services.monitor import MonitorService
from flight_monitor.services.providers.amadeus import AmadeusClient
from flight_monitor.services.repository import MonitorRepository
from flight_monitor.utils.quota import AMADEUS_USAGE_KEY, get_remaining
import flight_monitor.models  # noqa: F401 — registra tutti i modelli con Base

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


###############---############
# REMEMBER TO SWITCH TO Alembic migrations IN PROD
###############---############
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    redis = await get_redis()
    await redis.ping()  # verifica connessione Redis all'avvio

    app.state.monitor_service = MonitorService(
        client=AmadeusClient(),
        repository=MonitorRepository(async_session_maker),
    )
    logger.info("Flight monitor pronto (env=%s)", settings.app_env)

    yield

    # Shutdown: i timer dei monitor muoiono con il processo, i dati restano
    await app.state.monitor_service.shutdown()
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Flight Monitor API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # richiesta malformata → 400; "input" escluso: può contenere il client secret
    errors = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": errors})


app.include_router(api_router)


@app.get("/health", response_model=HealthOut)
async def health(service: MonitorServiceDep) -> HealthOut:
    try:
        remaining = await get_remaining(AMADEUS_USAGE_KEY, settings.amadeus_monthly_limit)
    except RedisError as exc:
        logger.warning("Saldo Amadeus non disponibile: %s", exc)
        remaining = None

    return HealthOut(
        status="ok",
        env=settings.app_env,
        active_monitors=len(service.registry),
        amadeus_remaining=remaining,
    )
