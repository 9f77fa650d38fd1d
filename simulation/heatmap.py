"""Bin particle positions into a fixed-size occupancy grid."""

from core.errors import HeatmapError


def _cell_index(coord, extent, cells):
    index = int(coord / extent * cells)
    if index < 0:
        return 0
    if index >= cells:
        return cells - 1
    return index


def accumulate(particles, surface, width, height, buffer):
    """Count particles per cell of a width x height grid.

    `buffer` is row-major and must already be zeroed. Returns the highest
    cell count reached, 0 when there are no particles.
    """
    if width <= 0 or height <= 0:
        raise HeatmapError(f"grid must be at least 1x1, got {width}x{height}",
                           context={"width": width, "height": height})
    if len(buffer) < width * height:
        raise HeatmapError(f"buffer holds {len(buffer)} cells, grid needs {width * height}",
                           context={"width": width, "height": height, "buffer": len(buffer)})

    max_heat = 0
    for particle in particles:
        x = _cell_index(particle.coord.x, surface.width, width)
        y = _cell_index(particle.coord.y, surface.height, height)
        cell = y * width + x
        buffer[cell] += 1
        if buffer[cell] > max_heat:
            max_heat = buffer[cell]
    return max_heat


class HeatmapGrid:
    """Occupancy counters for one frame plus the peak count."""

    __slots__ = ("width", "height", "cells", "max_heat")

    def __init__(self, width, height):
        if width <= 0 or height <= 0:
            raise HeatmapError(f"grid must be at least 1x1, got {width}x{height}",
                               context={"width": width, "height": height})
        self.width = width
        self.height = height
        self.cells = [0] * (width * height)
        self.max_heat = 0

    def reset(self):
        self.cells = [0] * (self.width * self.height)
        self.max_heat = 0

    def accumulate(self, world):
        """Zero the grid, bin the world's particles and return the peak count."""
        self.reset()
        self.max_heat = world.add_heatmap(self.width, self.height, self.cells)
        return self.max_heat

    def total(self):
        return sum(self.cells)
