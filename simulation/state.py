from utils.ksuid import generate_ksuid
from utils.timestamp import format_timestamp


class FrameSnapshot:
    """Immutable copy of one tick's heatmap, safe to hand to subscribers."""

    __slots__ = ("id", "timestamp", "tick", "time", "width", "height", "cells",
                 "max_heat", "particle_count", "pixels", "compute_ms")

    def __init__(self, tick, time, width, height, cells, max_heat, particle_count,
                 pixels=None, compute_ms=0.0, id=None, timestamp=None):
        self.id = id or generate_ksuid()
        self.timestamp = timestamp or format_timestamp()
        self.tick = tick
        self.time = time
        self.width = width
        self.height = height
        self.cells = tuple(cells)
        self.max_heat = max_heat
        self.particle_count = particle_count
        self.pixels = tuple(pixels) if pixels is not None else None
        self.compute_ms = compute_ms

    @property
    def sim_time_s(self):
        return self.time

    def to_dict(self, include_cells=True):
        data = {
            "id": self.id,
            "timestamp": self.timestamp,
            "tick": self.tick,
            "sim_time_s": self.time,
            "width": self.width,
            "height": self.height,
            "max_heat": self.max_heat,
            "particle_count": self.particle_count,
            "compute_ms": round(self.compute_ms, 3),
        }
        if include_cells:
            data["cells"] = list(self.cells)
            if self.pixels is not None:
                data["pixels"] = list(self.pixels)
        return data
