# api/dependencies.py
"""
Il MonitorService (e con lui il registro dei job) è creato nel lifespan e
appeso ad app.state: gli handler lo ricevono da qui, nei test si sostituisce
con app.dependency_overrides.
"""
from typing import Annotated

from fastapi import Depends, Request

from flight_monitor.services.monitor import MonitorService


def get_monitor_service(request: Request) -> MonitorService:
    return request.app.state.monitor_service


MonitorServiceDep = Annotated[MonitorService, Depends(get_monitor_service)]
