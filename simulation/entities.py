from simulation.geometry import Point, clamp


class Particle:
    """A point particle. Its coordinate is mutated in place by the world."""

    __slots__ = ("coord",)

    def __init__(self, x, y):
        self.coord = Point(x, y)

    @classmethod
    def random(cls, rng, width, height):
        particle = cls.__new__(cls)
        particle.coord = Point.random(rng, width, height)
        return particle

    @property
    def x(self):
        return self.coord.x

    @property
    def y(self):
        return self.coord.y

    def move_to(self, point, max_x, max_y):
        """Jump to point, clamping each axis into [0, max]."""
        self.coord.x = clamp(point.x, 0.0, max_x)
        self.coord.y = clamp(point.y, 0.0, max_y)

    def __repr__(self):
        return f"Particle({self.coord.x}, {self.coord.y})"
