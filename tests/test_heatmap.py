"""Unit tests for heatmap binning."""

import pytest
from core.errors import HeatmapError
from simulation.heatmap import HeatmapGrid, accumulate
from simulation.world import Surface, World


@pytest.fixture
def ten():
    return Surface(10.0, 10.0)


class TestAccumulate:
    """Tests for the binning pass."""

    def test_single_particle_center(self, ten):
        world = World.from_points(ten, [(5.0, 5.0)])
        buffer = [0] * 100
        assert world.add_heatmap(10, 10, buffer) == 1
        assert buffer[5 * 10 + 5] == 1
        assert sum(buffer) == 1

    def test_same_cell_counts_up(self, ten):
        points = [(1.1, 2.2), (1.5, 2.5), (1.9, 2.9), (1.0, 2.0), (1.2, 2.8)]
        world = World.from_points(ten, points)
        buffer = [0] * 100
        assert world.add_heatmap(10, 10, buffer) == len(points)
        assert buffer[2 * 10 + 1] == len(points)
        assert sum(buffer) == len(points)

    def test_max_is_peak_not_total(self, ten):
        world = World.from_points(ten, [(0.5, 0.5), (0.5, 0.5), (9.5, 9.5)])
        buffer = [0] * 100
        assert world.add_heatmap(10, 10, buffer) == 2
        assert sum(buffer) == 3

    def test_grid_resolution_independent_of_surface(self, ten):
        world = World.from_points(ten, [(9.9, 0.1)])
        buffer = [0] * 8
        world.add_heatmap(4, 2, buffer)
        assert buffer == [0, 0, 0, 1, 0, 0, 0, 0]

    def test_far_edge_goes_to_last_cell(self, ten):
        world = World.from_points(ten, [(10.0, 10.0), (10.0, 0.0)])
        buffer = [0] * 100
        world.add_heatmap(10, 10, buffer)
        assert buffer[99] == 1
        assert buffer[9] == 1

    def test_out_of_surface_is_clamped(self):
        # legacy clamping can leave y beyond the height
        world = World.from_points(Surface(10.0, 4.0), [(2.0, 7.0), (-1.0, -1.0)])
        buffer = [0] * 100
        world.add_heatmap(10, 10, buffer)
        assert buffer[9 * 10 + 2] == 1
        assert buffer[0] == 1

    def test_empty_world_max_zero(self, ten):
        buffer = [0] * 100
        assert World(ten, density=0).add_heatmap(10, 10, buffer) == 0
        assert not any(buffer)

    def test_buffer_is_not_cleared(self, ten):
        world = World.from_points(ten, [(5.0, 5.0)])
        buffer = [0] * 100
        world.add_heatmap(10, 10, buffer)
        assert world.add_heatmap(10, 10, buffer) == 2

    def test_short_buffer_rejected(self, ten):
        with pytest.raises(HeatmapError):
            accumulate([], ten, 10, 10, [0] * 99)

    def test_empty_grid_rejected(self, ten):
        with pytest.raises(HeatmapError):
            accumulate([], ten, 0, 10, [])


class TestHeatmapGrid:
    """Tests for the grid wrapper."""

    def test_grid_starts_zeroed(self):
        grid = HeatmapGrid(4, 3)
        assert grid.cells == [0] * 12
        assert grid.max_heat == 0

    def test_accumulate_resets_first(self, world):
        grid = HeatmapGrid(16, 16)
        first = grid.accumulate(world)
        second = grid.accumulate(world)
        assert first == second
        assert grid.total() == len(world.particles)

    def test_row_major_layout(self, ten):
        grid = HeatmapGrid(10, 10)
        grid.accumulate(World.from_points(ten, [(3.5, 7.5)]))
        assert grid.cells[7 * 10 + 3] == 1
        assert grid.max_heat == 1

    def test_invalid_size(self):
        with pytest.raises(HeatmapError):
            HeatmapGrid(0, 5)
