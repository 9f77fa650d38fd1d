"""Point and clamping primitives shared by the world and the heatmap."""


class Point:
    """A position on the surface, in centimeters."""

    __slots__ = ("x", "y")

    def __init__(self, x, y):
        self.x = float(x)
        self.y = float(y)

    @classmethod
    def random(cls, rng, width, height):
        """Uniform draw in [0, width) x [0, height)."""
        return cls(rng.uniform(0, width), rng.uniform(0, height))

    @classmethod
    def from_dict(cls, d):
        return cls(d["x"], d["y"])

    def squared_distance(self, other):
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def to_dict(self):
        return {"x": self.x, "y": self.y}

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __repr__(self):
        return f"Point({self.x}, {self.y})"


def clamp(value, low, high):
    return max(low, min(value, high))
