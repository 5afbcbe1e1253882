"""
Command line entry point.

    py-levelgen generate --shape hexagon --width 6 --height 6 --shapes 8 --min 3 --max 5
    py-levelgen batch --count 20 --output-dir levels --width 5 --height 5 --shapes 5 --max 6
"""

import argparse
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from .config.config import settings
from .core.batch import generate_batch
from .core.board import Board
from .core.board_analysis import board_statistics
from .core.exceptions import LevelGenerationError
from .core.generator import GenerationRequest, GenerationStatus, LevelGenerator
from .core.level_file import LevelRecord, cell_types_from_grid, read_level, write_level
from .core.topology import GridShape
from .utils.logging import configure_logging

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def _add_generation_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--shape",
        default="square",
        choices=[shape.name.lower() for shape in GridShape],
        help="Board tessellation",
    )
    parser.add_argument("--rotate-hexagon", action="store_true", help="Use rotated hexagons")
    parser.add_argument("--width", type=int, help="Number of columns")
    parser.add_argument("--height", type=int, help="Number of rows")
    parser.add_argument(
        "--cells",
        help="Level file whose blank and block cells are kept; sets shape and size",
    )
    parser.add_argument("--shapes", type=int, required=True, help="Number of shapes")
    parser.add_argument("--min", dest="min_size", type=int, default=1, help="Minimum shape size")
    parser.add_argument("--max", dest="max_size", type=int, required=True, help="Maximum shape size")
    parser.add_argument("--seed", help="Random seed for reproducible boards")
    parser.add_argument(
        "--iterations",
        type=int,
        default=settings.randomize_iterations,
        help="Random grow moves after packing",
    )
    parser.add_argument(
        "--no-relax",
        action="store_true",
        help="Fail instead of loosening shape sizes that cannot fit the board",
    )
    parser.add_argument("--filename", default="level", help="Base name of exported level files")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-levelgen", description="Generate block puzzle level boards"
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a single level")
    _add_generation_arguments(generate)
    generate.add_argument("--output-dir", help="Export the level file to this folder")

    batch = subparsers.add_parser("batch", help="Generate and export several levels")
    _add_generation_arguments(batch)
    batch.add_argument("--count", type=int, required=True, help="Number of levels")
    batch.add_argument("--output-dir", default=settings.output_dir, help="Folder for level files")

    return parser


def request_from_args(args: argparse.Namespace) -> GenerationRequest:
    grid_shape = GridShape.from_name(args.shape)
    rotate_hexagon = args.rotate_hexagon
    width, height = args.width, args.height
    cell_types = None

    if args.cells:
        record = read_level(args.cells)
        grid_shape = record.grid_shape
        rotate_hexagon = record.rotate_hexagon
        width, height = record.x_cells, record.y_cells
        cell_types = cell_types_from_grid(record.grid)

    if width is None or height is None:
        raise LevelGenerationError("--width and --height are required without --cells")

    return GenerationRequest(
        grid_shape=grid_shape,
        rotate_hexagon=rotate_hexagon,
        x_cells=width,
        y_cells=height,
        cell_types=cell_types,
        num_shapes=args.shapes,
        min_shape_size=args.min_size,
        max_shape_size=args.max_size,
        seed=args.seed,
        randomize_iterations=args.iterations,
        relax_shape_bounds=not args.no_relax,
    )


def run_generate(args: argparse.Namespace) -> int:
    request = request_from_args(args)
    result = LevelGenerator(request).generate()

    if result.status != GenerationStatus.COMPLETED:
        print(result.error or "Generation did not complete", file=sys.stderr)
        return EXIT_FAILED

    board = Board.from_matrix(request.grid_shape, result.grid, request.rotate_hexagon)
    stats = board_statistics(board)

    print(board.render())
    print(
        f"seed={result.seed} shapes={stats.num_shapes} "
        f"sizes={stats.smallest_shape}-{stats.largest_shape} "
        f"bounds={result.min_shape_size}-{result.max_shape_size} "
        f"time={result.elapsed_seconds}s"
    )

    if args.output_dir:
        record = LevelRecord(
            grid_shape=request.grid_shape,
            rotate_hexagon=request.rotate_hexagon,
            grid=result.grid,
        )
        path = write_level(record, args.output_dir, args.filename)
        print(path)

    return EXIT_OK


def run_batch(args: argparse.Namespace) -> int:
    request = request_from_args(args)
    batch = generate_batch(request, args.count, args.output_dir, args.filename)

    for path in batch.paths:
        print(path)

    if not batch.completed:
        last = batch.results[-1]
        print(
            f"Stopped after {len(batch.paths)} of {args.count} levels: {last.error}",
            file=sys.stderr,
        )
        return EXIT_FAILED

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level, "console")

    commands = {"generate": run_generate, "batch": run_batch}

    try:
        return commands[args.command](args)
    except (LevelGenerationError, ValidationError, ValueError) as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
