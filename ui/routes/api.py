"""API routes for stats, the current frame and the world description."""

from fastapi import APIRouter, Depends

from utils.timestamp import format_timestamp
from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1", tags=["api"])

# Set by app.py
_engine = None
_bus = None
_file_logger = None


def init(engine, bus, file_logger):
    global _engine, _bus, _file_logger
    _engine = engine
    _bus = bus
    _file_logger = file_logger


@router.get("/stats")
async def stats(username=Depends(verify_basic_auth)):
    """Bus, logger and simulation statistics."""
    frame = await _engine.get_snapshot()
    return {
        "timestamp": format_timestamp(),
        "simulation": {
            "tick": frame.tick,
            "sim_time_s": frame.sim_time_s,
            "particle_count": frame.particle_count,
            "max_heat": frame.max_heat,
            "compute_ms": round(frame.compute_ms, 3),
            "state": _engine.state,
        },
        "bus": _bus.get_stats(),
        "logger": _file_logger.get_stats(),
    }


@router.get("/subscribers")
async def subscribers(username=Depends(verify_basic_auth)):
    return await _bus.get_subscriber_info()


@router.get("/world")
async def world(username=Depends(verify_basic_auth)):
    """Surface, clamp mode and grid resolution of the running world."""
    return {
        "surface": _engine.surface.to_dict(),
        "clamp_mode": _engine.world.clamp_mode,
        "density": _engine.config.density,
        "particle_count": len(_engine.particles),
        "grid": {"width": _engine.grid.width, "height": _engine.grid.height},
    }


@router.get("/frame")
async def frame(include_cells: bool = True, username=Depends(verify_basic_auth)):
    """Latest heatmap frame."""
    snapshot = await _engine.get_snapshot()
    return snapshot.to_dict(include_cells=include_cells)
