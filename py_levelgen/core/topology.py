"""
Grid topologies and their adjacency rules.

Three tessellations are supported:
- Square: 4 neighbours (left, right, up, down)
- Triangle: 3 neighbours, the vertical one depends on whether the
  triangle at (x, y) points up or down
- Hexagon: 6 neighbours using offset coordinates. Rotated hexagons shift
  every even column up, unrotated hexagons shift every odd row right.
"""

from enum import Enum
from typing import Iterator, List, Tuple

Offset = Tuple[int, int]


class GridShape(int, Enum):
    """Board tessellation. Values match the level file's level type field."""

    SQUARE = 0
    TRIANGLE = 1
    HEXAGON = 2

    @classmethod
    def from_name(cls, name: str) -> "GridShape":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown grid shape: {name}") from None


SQUARE_OFFSETS: List[Offset] = [(-1, 0), (1, 0), (0, -1), (0, 1)]

# Rotated hexagons, selected by column parity
HEX_ROTATED_EVEN_X: List[Offset] = [(-1, -1), (0, -1), (1, -1), (1, 0), (0, 1), (-1, 0)]
HEX_ROTATED_ODD_X: List[Offset] = [(-1, 0), (0, -1), (1, 0), (1, 1), (0, 1), (-1, 1)]

# Unrotated hexagons, selected by row parity
HEX_EVEN_Y: List[Offset] = [(-1, 0), (-1, -1), (0, -1), (1, 0), (0, 1), (-1, 1)]
HEX_ODD_Y: List[Offset] = [(-1, 0), (0, -1), (1, -1), (1, 0), (1, 1), (0, 1)]


def is_upside_down(x: int, y: int) -> bool:
    """Whether the triangle at (x, y) points down."""
    return (x + y) % 2 == 1


def triangle_offsets(x: int, y: int) -> List[Offset]:
    return [(-1, 0), (1, 0), (0, -1 if is_upside_down(x, y) else 1)]


def hexagon_offsets(x: int, y: int, rotate_hexagon: bool) -> List[Offset]:
    if rotate_hexagon:
        return HEX_ROTATED_EVEN_X if x % 2 == 0 else HEX_ROTATED_ODD_X
    return HEX_EVEN_Y if y % 2 == 0 else HEX_ODD_Y


def neighbor_offsets(
    grid_shape: GridShape, x: int, y: int, rotate_hexagon: bool = False
) -> List[Offset]:
    """Offsets of every geometrically adjacent position of (x, y)."""
    if grid_shape == GridShape.SQUARE:
        return SQUARE_OFFSETS
    if grid_shape == GridShape.TRIANGLE:
        return triangle_offsets(x, y)
    if grid_shape == GridShape.HEXAGON:
        return hexagon_offsets(x, y, rotate_hexagon)
    raise ValueError(f"Unsupported grid shape: {grid_shape}")


def neighbor_coords(
    grid_shape: GridShape,
    x: int,
    y: int,
    x_cells: int,
    y_cells: int,
    rotate_hexagon: bool = False,
) -> Iterator[Tuple[int, int]]:
    """
    Yield the in-bounds neighbour coordinates of (x, y).

    Out-of-bounds positions are skipped, so cells on edges and corners
    simply yield fewer neighbours.
    """
    for dx, dy in neighbor_offsets(grid_shape, x, y, rotate_hexagon):
        nx, ny = x + dx, y + dy
        if 0 <= nx < x_cells and 0 <= ny < y_cells:
            yield nx, ny
