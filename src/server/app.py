from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import signal
from dataclasses import asdict
from typing import Callable, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from dispatch import Direction, PickupRequest
from simulation import Simulation, SimulationConfig

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("liftdispatch.server")


class PipelineSelection(BaseModel):
    name: str


class PickupRequestBody(BaseModel):
    origin: int
    destination: int
    direction: Optional[str] = None


class ResetRequest(BaseModel):
    elevator_count: Optional[int] = None


def config_from_env() -> SimulationConfig:
    seed = os.getenv("LIFT_SEED", "")
    return SimulationConfig(
        num_floors=int(os.getenv("LIFT_FLOORS", "10")),
        elevator_count=int(os.getenv("LIFT_ELEVATORS", "2")),
        tick_interval=float(os.getenv("LIFT_TICK_INTERVAL", "2.0")),
        random_seed=int(seed) if seed else None,
        pipeline=os.getenv("LIFT_PIPELINE", "fcfs"),
    )


def to_pickup_request(body: PickupRequestBody) -> PickupRequest:
    if body.direction is None:
        return PickupRequest.between(body.origin, body.destination)
    try:
        heading = Direction[body.direction.upper()]
    except KeyError:
        raise ValueError(f"Unknown direction '{body.direction}'. Available: up, down") from None
    return PickupRequest(body.origin, heading, body.destination)


def terminate_process(exc: BaseException) -> None:
    """Ask uvicorn for a graceful shutdown, the same as Ctrl+C."""
    os.kill(os.getpid(), signal.SIGTERM)


class SimulationManager:
    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        on_fatal: Callable[[BaseException], None] = terminate_process,
    ) -> None:
        self.config = config or SimulationConfig()
        self.simulation = Simulation(self.config)
        self.tick_interval = self.config.tick_interval
        self.clients: Set[WebSocket] = set()
        self.failure: Optional[BaseException] = None
        self.on_fatal = on_fatal
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        if self._task is None:
            logger.info(
                "simulation started elevators=%d pipeline=%s",
                self.config.elevator_count,
                self.simulation.pipeline.name,
            )
            self._task = asyncio.create_task(self._run())
            self._task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.fail(exc)

    def fail(self, exc: BaseException) -> None:
        """Mark the simulation dead; the snapshot can no longer be trusted."""
        self.failure = exc
        logger.critical("tick loop died, shutting down: %r", exc, exc_info=exc)
        self.on_fatal(exc)

    def ensure_alive(self) -> None:
        if self.failure is not None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Simulation halted: {self.failure}",
            )

    async def stop(self) -> None:
        if self._task:
            # A task that already died was reported by _on_task_done.
            if not self._task.done():
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            async with self._lock:
                self.simulation.step()
                payload = self.current_state()
            await self.broadcast(payload)
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        state = self.simulation.snapshot()
        state["metrics"] = asdict(self.simulation.metrics.snapshot(self.simulation.current_time))
        return state

    async def submit(self, request: PickupRequest) -> dict:
        async with self._lock:
            self.simulation.submit(request)
            state = self.current_state()
            state["submitted"] = request.to_dict()
            return state

    async def set_pipeline(self, name: str) -> dict:
        async with self._lock:
            self.simulation.set_pipeline(name)
            return self.current_state()

    async def reset(self, elevator_count: Optional[int]) -> dict:
        async with self._lock:
            if elevator_count is not None:
                self.config.elevator_count = elevator_count
            self.simulation = Simulation(self.config)
            logger.info("simulation reset elevators=%d", self.config.elevator_count)
            return self.current_state()


manager = SimulationManager(config_from_env())
app = FastAPI(title="Lift Dispatch Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    await manager.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/state")
async def get_state() -> dict:
    manager.ensure_alive()
    return manager.current_state()


@app.post("/requests")
async def submit_request(body: PickupRequestBody) -> dict:
    manager.ensure_alive()
    try:
        request = to_pickup_request(body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return await manager.submit(request)


@app.post("/pipeline")
async def set_pipeline(selection: PipelineSelection) -> dict:
    manager.ensure_alive()
    try:
        return await manager.set_pipeline(selection.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/reset")
async def reset(request: ResetRequest) -> dict:
    manager.ensure_alive()
    if request.elevator_count is not None and request.elevator_count < 0:
        raise HTTPException(status_code=400, detail="elevator_count must not be negative")
    return await manager.reset(request.elevator_count)


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    if manager.failure is not None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
