"""World holds the particles on a surface and applies the per-tick move rule."""

import heapq
import math
import random

from core.errors import SurfaceError
from core.observer import get_logger
from simulation.entities import Particle
from simulation.geometry import Point
from simulation import heatmap

# Particles created per unit cell (1 cm x 1 cm) of the surface
PARTICLES_PER_CM = 10000
# Squared distance under which a particle jumps onto its nearest neighbor
MOVE_THRESHOLD = 0.01
NEIGHBOR_COUNT = 7


class ClampMode:
    # y is clamped against the surface width, as the first release did
    LEGACY = "legacy"
    CORRECTED = "corrected"

    ALL = (LEGACY, CORRECTED)


class Surface:
    """Bounded area the particles live on. Dimensions are in centimeters."""

    __slots__ = ("width", "height", "speaker")

    def __init__(self, width, height, speaker=None):
        self.width = width
        self.height = height
        self.speaker = speaker or Point(0, 0)
        self.validate()

    def validate(self):
        for name, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise SurfaceError(f"surface {name} must be a number, got {value!r}",
                                   width=self.width, height=self.height)
            if not math.isfinite(value) or value <= 0:
                raise SurfaceError(f"surface {name} must be positive, got {value!r}",
                                   width=self.width, height=self.height)

    def contains(self, point):
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height

    def to_dict(self):
        return {"width": self.width, "height": self.height, "speaker": self.speaker.to_dict()}


class World:
    """Particles on a surface.

    Moves are applied in place while iterating, so a particle processed later
    in a tick sees the new positions of the particles processed before it.
    """

    def __init__(self, surface, rng=None, density=PARTICLES_PER_CM, clamp_mode=ClampMode.LEGACY,
                 particles=None):
        if clamp_mode not in ClampMode.ALL:
            raise ValueError(f"unknown clamp mode {clamp_mode!r}")
        self.surface = surface
        self.clamp_mode = clamp_mode
        self._rng = rng or random.Random()
        self._log = get_logger(component="world")
        self.particles = particles if particles is not None else self._populate(density)
        self._log.info("world starting", particles=len(self.particles),
                       width=surface.width, height=surface.height)

    @property
    def width(self):
        return self.surface.width

    @property
    def height(self):
        return self.surface.height

    def _populate(self, density):
        width, height = self.surface.width, self.surface.height
        return [Particle.random(self._rng, width, height)
                for _x in range(int(width))
                for _y in range(int(height))
                for _ in range(density)]

    def _clamp_bounds(self):
        if self.clamp_mode == ClampMode.LEGACY:
            return self.surface.width, self.surface.width
        return self.surface.width, self.surface.height

    def nearest_neighbors(self, index, k=NEIGHBOR_COUNT):
        """Return up to k (squared_distance, particle) pairs closest to particles[index].

        The particle itself is skipped. Ties at the cut-off are resolved by
        scan order.
        """
        origin = self.particles[index].coord
        candidates = ((origin.squared_distance(other.coord), other)
                      for i, other in enumerate(self.particles) if i != index)
        return heapq.nsmallest(k, candidates, key=lambda pair: pair[0])

    def next_iteration(self):
        """Advance one tick. Returns the number of particles that moved."""
        max_x, max_y = self._clamp_bounds()
        moved = 0
        for index, particle in enumerate(self.particles):
            closest = self.nearest_neighbors(index)
            if not closest:
                continue
            distance, neighbor = min(closest, key=lambda pair: pair[0])
            if distance < MOVE_THRESHOLD:
                particle.move_to(neighbor.coord, max_x, max_y)
                moved += 1
        return moved

    def add_heatmap(self, width, height, buffer):
        """Bin particle positions into a pre-zeroed row-major buffer. Returns the peak count."""
        return heatmap.accumulate(self.particles, self.surface, width, height, buffer)

    def positions(self):
        return [(particle.x, particle.y) for particle in self.particles]

    @classmethod
    def from_points(cls, surface, points, clamp_mode=ClampMode.LEGACY):
        """Build a world with particles at the given (x, y) positions."""
        return cls(surface, clamp_mode=clamp_mode, particles=[Particle(x, y) for x, y in points])
