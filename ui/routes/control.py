"""Simulation control routes."""

import time

from fastapi import APIRouter, Depends

from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1/control", tags=["control"])

# Set by app.py
_engine = None
_bus = None


def init(engine, bus):
    global _engine, _bus
    _engine = engine
    _bus = bus


@router.post("/pause")
async def pause(username=Depends(verify_basic_auth)):
    """Stop advancing ticks; the last frame stays on screen."""
    await _engine.pause()
    await _bus.publish({"kind": "paused", "tick": _engine.tick, "timestamp": time.time()})
    return {"ok": True, "state": _engine.state}


@router.post("/resume")
async def resume(username=Depends(verify_basic_auth)):
    await _engine.resume()
    await _bus.publish({"kind": "resumed", "tick": _engine.tick, "timestamp": time.time()})
    return {"ok": True, "state": _engine.state}


@router.post("/reset")
async def reset(username=Depends(verify_basic_auth)):
    """Repopulate the surface with a fresh random world."""
    await _engine.restart()
    await _bus.publish({"kind": "reset", "particles": len(_engine.particles), "timestamp": time.time()})
    return {"ok": True, "particles": len(_engine.particles)}
