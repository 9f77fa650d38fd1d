"""Map heatmap counts to packed 0xRRGGBB pixels."""

AQUA = 0x00FFFF
BLUE = 0x0000FF
RED = 0xFF0000


def color_for(count):
    if count == 0:
        return AQUA
    if count == 1:
        return BLUE
    return RED


def colorize(max_value, cells):
    """One pixel per cell: empty cells aqua, single occupancy blue, crowded red.

    `max_value` is not used by the fixed levels.
    """
    return [color_for(count) for count in cells]
