"""Pytest fixtures for all tests."""

import random

import pytest
from httpx import AsyncClient, ASGITransport

from ui.app import create_app
from communication.bus import EventBus
from simulation.engine import SimulationEngine
from simulation.geometry import Point
from simulation.world import Surface, World
from config import Config, LoggingConfig, SimulationConfig, SurfaceConfig


@pytest.fixture
def surface():
    """A 10 x 10 cm test surface."""
    return Surface(width=10.0, height=10.0, speaker=Point(5, 0))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def world(surface, rng):
    """Small seeded world: 2 particles per cm2 on 10 x 10."""
    return World(surface, rng=rng, density=2)


@pytest.fixture
def sim_config():
    """Create test simulation config."""
    return SimulationConfig(
        tick_interval=0.05,
        density=1,
        heatmap_width=20,
        heatmap_height=16,
        seed=7,
    )


@pytest.fixture
def small_surface():
    return Surface(width=5.0, height=4.0)


@pytest.fixture
async def bus():
    """Create test event bus."""
    return EventBus(queue_size=10)


@pytest.fixture
async def engine(bus, sim_config, small_surface):
    """Create test simulation engine."""
    eng = SimulationEngine(bus=bus, config=sim_config, surface=small_surface)
    yield eng
    if eng._task:
        await eng.stop()


@pytest.fixture
def app_config(tmp_path, sim_config):
    return Config(
        surface=SurfaceConfig(width=5.0, height=4.0),
        simulation=sim_config,
        logging=LoggingConfig(file=str(tmp_path / "frames.log"), crash_file=str(tmp_path / "crash.log")),
    )


@pytest.fixture
async def app(app_config):
    """Create test FastAPI app."""
    return create_app(app_config)


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
