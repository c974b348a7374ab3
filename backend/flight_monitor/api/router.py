#To aggregate all routes of the API


from fastapi import APIRouter

from flight_monitor.api.routes.monitor import router as monitor_router

api_router = APIRouter()
api_router.include_router(monitor_router, prefix="/monitor", tags=["monitor"])
