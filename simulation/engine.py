import asyncio
import random
import time
from config import load_config
from core.observer import get_logger
from simulation.heatmap import HeatmapGrid
from simulation.palette import colorize
from simulation.state import FrameSnapshot
from simulation.world import World
from utils.timestamp import elapsed_ms

class EngineState:
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"

class SimulationEngine:
    """Advances the world at most once per tick_interval and publishes each heatmap frame.

    A tick runs in a worker thread while the engine lock is held, so the
    world is never read mid-update and ticks never overlap.
    """

    def __init__(self, bus, config=None, surface=None):
        self.bus = bus
        if config is None or surface is None:
            loaded = load_config()
            config = config or loaded.simulation
            surface = surface or loaded.surface.to_surface()
        self.config = config
        self.surface = surface
        self._lock = asyncio.Lock()
        self._log = get_logger(component="engine")
        self._state = EngineState.STOPPED
        self._task = None
        self._stop = asyncio.Event()
        self.reset()

    @property
    def paused(self):
        return self._state == EngineState.PAUSED

    @property
    def state(self):
        return self._state

    @property
    def particles(self):
        return self.world.particles

    def reset(self):
        """Repopulate the surface. Seeded configs rebuild the same world every time."""
        self.tick = 0
        self.sim_time = 0.0
        self._last_publish_tick = -1
        self.world = World(self.surface, rng=random.Random(self.config.seed),
                           density=self.config.density, clamp_mode=self.config.clamp_mode)
        self.grid = HeatmapGrid(self.config.heatmap_width, self.config.heatmap_height)
        self.grid.accumulate(self.world)
        self._frame = self._make_frame(0.0)

    def _make_frame(self, compute_ms):
        return FrameSnapshot(self.tick, self.sim_time, self.grid.width, self.grid.height,
                             self.grid.cells, self.grid.max_heat, len(self.world.particles),
                             pixels=colorize(self.grid.max_heat, self.grid.cells),
                             compute_ms=compute_ms)

    def advance(self):
        """Run one tick synchronously: move particles, rebuild the heatmap, colorize."""
        started = time.perf_counter()
        moved = self.world.next_iteration()
        self.grid.accumulate(self.world)
        self.tick += 1
        self.sim_time += self.config.tick_interval
        compute_ms = elapsed_ms(started)
        self._frame = self._make_frame(compute_ms)
        self._log.debug("computed frame", tick=self.tick, moved=moved,
                        max_heat=self.grid.max_heat, ms=round(compute_ms, 3))
        return self._frame

    async def start(self):
        if self._task:
            return
        self._stop.clear()
        self._state = EngineState.RUNNING
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        self._state = EngineState.STOPPED
        await self.bus.publish({"kind": "engine_stopped", "tick": self.tick})

    async def _set_state(self, state):
        async with self._lock:
            self._state = state
        self._log.info(f"engine {state}", tick=self.tick)

    async def pause(self):
        await self._set_state(EngineState.PAUSED)

    async def resume(self):
        await self._set_state(EngineState.RUNNING)

    async def restart(self):
        async with self._lock:
            self.reset()
        self._log.info("engine reset", particles=len(self.world.particles))

    async def get_snapshot(self):
        async with self._lock:
            return self._frame

    async def count_outside(self):
        """Particles currently off the surface, read between ticks."""
        async with self._lock:
            surface = self.world.surface
            return sum(1 for particle in self.world.particles if not surface.contains(particle.coord))

    async def _sleep_until(self, deadline):
        """Wait for the deadline; True if stop was requested meanwhile."""
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            return self._stop.is_set()
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=remaining)
            return True
        except asyncio.TimeoutError:
            return False

    async def _tick_once(self):
        async with self._lock:
            if self._state == EngineState.RUNNING:
                await asyncio.to_thread(self.advance)
            return self._frame

    async def _loop(self):
        interval = self.config.tick_interval
        deadline = time.perf_counter()
        self._log.info("engine start", dt=interval, particles=len(self.world.particles))

        while not await self._sleep_until(deadline):
            # A slow tick pushes the schedule back instead of queueing catch-up ticks
            deadline = max(deadline + interval, time.perf_counter())
            try:
                frame = await self._tick_once()
            except Exception as exc:
                self._log.error("tick fail", error=exc, tick=self.tick)
                continue

            if frame.tick != self._last_publish_tick:
                await self.bus.publish(frame)
                self._last_publish_tick = frame.tick

        self._log.info("engine stop", tick=self.tick)
