"""
Registro dei monitor attivi: monitor id → PollJob.

Ogni PollJob è un asyncio.Task che aspetta l'evento di stop con l'intervallo
di polling come timeout. Lo stop imposta il flag e basta: un tick già in
corso arriva fino in fondo (e salva i suoi risultati), i tick successivi non
partono più. Il flag viene controllato all'inizio di ogni tick.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class MonitorState(str, Enum):
    CREATED = "CREATED"
    POLLING = "POLLING"
    STOPPED = "STOPPED"


class PollJob:

    def __init__(self, monitor_id: str, interval_seconds: float, tick: TickCallback) -> None:
        self.monitor_id = monitor_id
        self.interval_seconds = interval_seconds
        self._tick = tick
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.state = MonitorState.CREATED
        self.ticks_run = 0

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name=f"poll-{self.monitor_id}")
        self.state = MonitorState.POLLING

    def stop(self) -> None:
        self._stop_event.set()
        self.state = MonitorState.STOPPED

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

            if self._stop_event.is_set():
                break

            try:
                await self._tick()
            except Exception:
                # un tick fallito non ferma il monitor: si riprova al prossimo intervallo
                logger.exception("Poll tick fallito per monitor %s", self.monitor_id)
            finally:
                self.ticks_run += 1

        logger.debug("Poll loop terminato per monitor %s", self.monitor_id)


class MonitorRegistry:

    def __init__(self) -> None:
        self._jobs: dict[str, PollJob] = {}

    def __contains__(self, monitor_id: str) -> bool:
        return monitor_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, monitor_id: str) -> PollJob | None:
        return self._jobs.get(monitor_id)

    def register(self, job: PollJob) -> None:
        """Registra e avvia il job; un job esistente con lo stesso id viene fermato."""
        self.stop(job.monitor_id)
        self._jobs[job.monitor_id] = job
        job.start()

    def stop(self, monitor_id: str) -> bool:
        """Ferma il job. Id sconosciuto o già fermato → False, nessun errore."""
        job = self._jobs.pop(monitor_id, None)
        if job is None:
            return False
        job.stop()
        return True

    async def shutdown(self) -> None:
        """Ferma tutti i job e cancella i task (chiusura del processo)."""
        jobs = list(self._jobs.values())
        self._jobs.clear()
        for job in jobs:
            job.stop()
            if job.task is not None:
                job.task.cancel()
        tasks = [job.task for job in jobs if job.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Registry chiuso: %d monitor fermati", len(jobs))
