"""
Shape size bounds for generation parameters.

``validate_shape_bounds`` is the clamp the level authoring tool applies
whenever the board or shape count changes. The packer uses it to relax
bounds that cannot fit a single starting region.
"""

import math
from typing import Tuple

from ..utils.numbers import clamp


def validate_shape_bounds(
    cell_count: int, num_shapes: int, min_shape_size: int, max_shape_size: int
) -> Tuple[int, int]:
    """
    Clamp requested shape sizes into the range a board can satisfy.

    Args:
        cell_count: Number of playable cells on the board
        num_shapes: Number of shapes to place
        min_shape_size: Requested minimum shape size
        max_shape_size: Requested maximum shape size

    Returns:
        The adjusted (min_shape_size, max_shape_size)
    """
    if cell_count < num_shapes:
        return 1, 1

    cells_per_shape = cell_count / num_shapes

    maximum_min_size = max(1, math.floor(cells_per_shape))
    min_size = clamp(min_shape_size, 1, maximum_min_size)

    minimum_max_size = math.ceil(cells_per_shape)
    maximum_max_size = cell_count - min_size * (num_shapes - 1)
    max_size = clamp(max_shape_size, minimum_max_size, maximum_max_size)

    return min_size, max_size
