"""FastAPI application factory: wires the engine, bus, frame log and health checks."""

import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

from communication.bus import EventBus
from config import load_config
from core.errors import BaseSimError
from core.health import (
    get_health_checker,
    check_event_loop,
    create_bounds_check,
    create_bus_check,
    create_engine_check,
    create_logger_check,
)
from core.observer import get_logger, LogLevel, StructuredLogger, AsyncFileLogger
from utils.crash import create_async_handler
from simulation.engine import SimulationEngine
from simulation.state import FrameSnapshot
from ui.routes import control, api, health

STATIC_DIR = Path(__file__).parent / "static"


def format_sse(event, data):
    """Format data as Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def _register_checks(checker, engine, bus, file_logger):
    checker.register("event_loop", check_event_loop, critical=True)
    checker.register("event_bus", create_bus_check(bus), critical=True)
    checker.register("simulation_engine", create_engine_check(engine), critical=True)
    checker.register("particle_bounds", create_bounds_check(engine), critical=True)
    checker.register("frame_logger", create_logger_check(file_logger), critical=False)


async def _forward_to_file(subscriber, file_logger):
    """Copy bus traffic into the frame log until cancelled."""
    while True:
        item = await subscriber.queue.get()
        if isinstance(item, FrameSnapshot):
            file_logger.try_log("frame", item.to_dict(include_cells=False))
        else:
            file_logger.try_log("event", item)


def create_app(config=None):
    config = config or load_config()
    StructuredLogger.configure(min_level=LogLevel.parse(config.logging.level))
    log = get_logger(component="app")

    bus = EventBus(queue_size=100)
    engine = SimulationEngine(bus=bus, config=config.simulation, surface=config.surface.to_surface())
    file_logger = AsyncFileLogger(config.logging.file, sample_every=config.logging.frame_sample_every)
    checker = get_health_checker()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Application starting", version=app.version,
                 surface=engine.surface.to_dict(), particles=len(engine.particles))
        asyncio.get_running_loop().set_exception_handler(create_async_handler(log))

        await file_logger.start()
        log_sub = await bus.subscribe("frame-log", max_queue_size=200)
        forwarder = asyncio.create_task(_forward_to_file(log_sub, file_logger))
        _register_checks(checker, engine, bus, file_logger)
        await engine.start()
        log.info("Application started successfully")

        yield

        log.info("Application shutting down")
        await engine.stop()
        forwarder.cancel()
        try:
            await forwarder
        except asyncio.CancelledError:
            pass
        await file_logger.stop()
        log.info("Application shutdown complete", frames_written=file_logger.written)

    app = FastAPI(
        title="Particle Heatmap",
        version="1.0.0",
        description="nearest-neighbor particle simulation with a live density heatmap",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.bus = bus
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    control.init(engine, bus)
    api.init(engine, bus, file_logger)
    health.init(engine, checker)
    for module in (control, api, health):
        app.include_router(module.router)

    @app.exception_handler(BaseSimError)
    async def sim_error(request: Request, exc: BaseSimError):
        log.error("request failed", error=exc, error_id=exc.error_id, path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return (STATIC_DIR / "index.html").read_text(encoding="utf-8")

    @app.get("/events")
    async def events(request: Request):
        """SSE stream of heatmap frames. Slow clients skip frames rather than lag behind."""
        name = f"ui-{uuid.uuid4().hex[:8]}"
        sub = await bus.subscribe(name, max_queue_size=2, latest_only=True)

        async def stream():
            try:
                yield format_sse("frame", (await engine.get_snapshot()).to_dict())
                while not await request.is_disconnected():
                    try:
                        item = await asyncio.wait_for(sub.queue.get(), timeout=1.0)
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    if isinstance(item, FrameSnapshot):
                        yield format_sse("frame", item.to_dict())
                    else:
                        yield format_sse("event", item)
            finally:
                await bus.unsubscribe(name)

        return StreamingResponse(stream(), media_type="text/event-stream")

    return app
