"""
Level file records.

A level is stored as one comma separated line::

    timestamp,levelType,rotateHexagon,yCells,xCells,v0,v1,...

``levelType`` is the integer grid shape, ``rotateHexagon`` is ``True`` or
``False`` and the ``yCells * xCells`` values follow in row-major order with
0 = blank, 1 = block and values >= 2 naming the shape that owns the cell.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
import structlog

from .board import BLANK_VALUE, BLOCK_VALUE, SHAPE_VALUE_OFFSET
from .exceptions import LevelFileError
from .topology import GridShape

logger = structlog.get_logger()

HEADER_FIELDS = 5
LEVEL_FILE_SUFFIX = ".txt"


@dataclass
class LevelRecord:
    """One stored level."""

    grid_shape: GridShape
    rotate_hexagon: bool
    grid: np.ndarray
    timestamp: int = field(default_factory=lambda: current_timestamp_ms())

    @property
    def y_cells(self) -> int:
        return int(self.grid.shape[0])

    @property
    def x_cells(self) -> int:
        return int(self.grid.shape[1])


@dataclass
class LevelShape:
    """A shape of a stored level with its bounding box."""

    index: int
    value: int
    left: int
    top: int
    width: int
    height: int
    cells: List[Tuple[int, int]]


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def format_level(record: LevelRecord) -> str:
    """Serialize a level record to its single line form."""
    header = [
        str(record.timestamp),
        str(int(record.grid_shape)),
        "True" if record.rotate_hexagon else "False",
        str(record.y_cells),
        str(record.x_cells),
    ]
    values = [str(int(value)) for value in np.asarray(record.grid).ravel()]
    return ",".join(header + values)


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise LevelFileError(f"Invalid boolean value: {text!r}")


def _parse_int(text: str, name: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise LevelFileError(f"Invalid {name}: {text!r}") from None


def parse_level(text: str) -> LevelRecord:
    """
    Parse a level line.

    Raises:
        LevelFileError: If the header is incomplete, a value is malformed
            or the number of cell values does not match the dimensions
    """
    parts = text.strip().split(",")
    if len(parts) < HEADER_FIELDS:
        raise LevelFileError("Invalid level file: header is incomplete")

    timestamp = _parse_int(parts[0], "timestamp")
    level_type = _parse_int(parts[1], "level type")
    try:
        grid_shape = GridShape(level_type)
    except ValueError:
        raise LevelFileError(f"Unknown level type: {level_type}") from None
    rotate_hexagon = _parse_bool(parts[2])
    y_cells = _parse_int(parts[3], "yCells")
    x_cells = _parse_int(parts[4], "xCells")

    if x_cells < 1 or y_cells < 1:
        raise LevelFileError(f"Invalid level dimensions {x_cells}x{y_cells}")

    values = parts[HEADER_FIELDS:]
    if len(values) != x_cells * y_cells:
        raise LevelFileError(
            f"Expected {x_cells * y_cells} cell values, found {len(values)}"
        )

    grid = np.array([_parse_int(value, "cell value") for value in values], dtype=np.int32)

    return LevelRecord(
        grid_shape=grid_shape,
        rotate_hexagon=rotate_hexagon,
        grid=grid.reshape(y_cells, x_cells),
        timestamp=timestamp,
    )


def level_shapes(record: LevelRecord) -> List[LevelShape]:
    """Shapes of a level in order of first appearance, with their bounds."""
    cells_by_value = {}
    for y in range(record.y_cells):
        for x in range(record.x_cells):
            value = int(record.grid[y, x])
            if value >= SHAPE_VALUE_OFFSET:
                cells_by_value.setdefault(value, []).append((x, y))

    shapes = []
    for index, (value, cells) in enumerate(cells_by_value.items()):
        xs = [x for x, _ in cells]
        ys = [y for _, y in cells]
        shapes.append(
            LevelShape(
                index=index,
                value=value,
                left=min(xs),
                top=min(ys),
                width=max(xs) - min(xs) + 1,
                height=max(ys) - min(ys) + 1,
                cells=cells,
            )
        )
    return shapes


def cell_types_from_grid(grid: Sequence[Sequence[int]]) -> List[List[int]]:
    """Keep blanks and blocks of a grid, mark everything else playable (-1)."""
    return [
        [int(value) if value in (BLANK_VALUE, BLOCK_VALUE) else -1 for value in row]
        for row in np.asarray(grid).tolist()
    ]


def unique_level_path(folder: Union[str, Path], filename: str = "level") -> Path:
    """
    First free path of the form ``level.txt``, ``level 1.txt``, ``level 2.txt``...
    """
    folder = Path(folder)
    stem = filename or "level"

    path = folder / f"{stem}{LEVEL_FILE_SUFFIX}"
    number = 1
    while path.exists():
        path = folder / f"{stem} {number}{LEVEL_FILE_SUFFIX}"
        number += 1
    return path


def write_level(record: LevelRecord, folder: Union[str, Path], filename: str = "level") -> Path:
    """Write a level record to a new file in ``folder``."""
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)

    path = unique_level_path(folder, filename)
    path.write_text(format_level(record), encoding="utf-8")

    logger.info("Level exported", path=str(path), size=(record.x_cells, record.y_cells))
    return path


def read_level(path: Union[str, Path]) -> LevelRecord:
    path = Path(path)
    if not path.exists():
        raise LevelFileError(f"File not found: {path}")
    return parse_level(path.read_text(encoding="utf-8"))
