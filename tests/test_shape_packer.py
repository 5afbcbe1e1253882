"""Tests for the backtracking shape packer."""

import threading

import pytest

from py_levelgen.config import validate_shape_bounds
from py_levelgen.core.board import EMPTY_SHAPE, Board
from py_levelgen.core.board_analysis import check_board, shape_sizes
from py_levelgen.core.regions import RegionPartitioner
from py_levelgen.core.shape_packer import ShapePacker, insert_sorted
from py_levelgen.core.topology import GridShape

PLUS_BOARD = [[1, -1, 1], [-1, -1, -1], [1, -1, 1]]


def make_packer(board, num_shapes, min_size, max_size, cancel_event=None):
    return ShapePacker(board, num_shapes, min_size, max_size, cancel_event=cancel_event)


class TestInsertSorted:
    """Test canonical shape keys."""

    def test_order_independent_key(self):
        """Test the same cell set gives the same key whatever the insert order."""
        board = Board(GridShape.SQUARE, 2, 2)
        a, b, c = board.cell(1, 0), board.cell(0, 1), board.cell(0, 0)

        shape = []
        insert_sorted(a, shape)
        insert_sorted(b, shape)
        key = insert_sorted(c, shape)

        other = []
        for cell in (c, a, b):
            other_key = insert_sorted(cell, other)

        assert key == ((0, 0), (0, 1), (1, 0))
        assert other_key == key
        assert shape == [c, b, a]


class TestMinShapesToFill:
    """Test the minimum shape count needed to cover a region."""

    @pytest.mark.parametrize("cell_count,expected", [(1, 0), (2, 1), (3, 1), (4, 2), (5, 2), (7, 3)])
    def test_sizes_two_to_three(self, cell_count, expected):
        """Test counts for shapes of 2 or 3 cells."""
        packer = make_packer(Board(GridShape.SQUARE, 1, 1), 1, 2, 3)
        assert packer.min_shapes_to_fill(cell_count) == expected

    def test_no_exact_cover(self):
        """Test 0 when no combination of sizes covers the cells."""
        packer = make_packer(Board(GridShape.SQUARE, 1, 1), 1, 3, 3)
        assert packer.min_shapes_to_fill(4) == 0
        assert packer.min_shapes_to_fill(6) == 2

    def test_cache_cleared_on_new_bounds(self):
        """Test changing the bounds invalidates memoized counts."""
        packer = make_packer(Board(GridShape.SQUARE, 1, 1), 1, 3, 3)
        assert packer.min_shapes_to_fill(4) == 0

        packer.set_shape_bounds(1, 3)
        assert packer.min_shapes_to_fill(4) == 2


class TestCanFillRemaining:
    """Test the feasibility pre-check."""

    def test_exact_tiling_passes(self):
        """Test 4 shapes of 4 cells fit a 4x4 board."""
        board = Board(GridShape.SQUARE, 4, 4)
        regions = RegionPartitioner(board).partition()
        assert make_packer(board, 4, 4, 4).can_fill_remaining(regions, 0, 0)

    def test_too_many_shapes(self):
        """Test 5 shapes of 2 cells cannot cover 9 cells."""
        board = Board(GridShape.SQUARE, 3, 3)
        regions = RegionPartitioner(board).partition()
        assert not make_packer(board, 5, 2, 2).can_fill_remaining(regions, 0, 0)

    def test_more_regions_than_shapes(self):
        """Test every region needs at least one shape."""
        board = Board(GridShape.SQUARE, 3, 1, cell_types=[[-1, 1, -1]])
        regions = RegionPartitioner(board).partition()
        assert not make_packer(board, 1, 1, 3).can_fill_remaining(regions, 0, 0)

    def test_region_smaller_than_min(self):
        """Test a region below the minimum shape size fails."""
        board = Board(GridShape.SQUARE, 4, 1, cell_types=[[-1, 1, -1, -1]])
        regions = RegionPartitioner(board).partition()
        assert not make_packer(board, 2, 2, 2).can_fill_remaining(regions, 0, 0)


class TestRelaxShapeBounds:
    """Test loosening the bounds of an infeasible request."""

    def test_single_region(self):
        """Test bounds derived from the average shape size."""
        board = Board(GridShape.SQUARE, 3, 3)
        regions = RegionPartitioner(board).partition()
        packer = make_packer(board, 5, 2, 2)

        assert packer.relax_shape_bounds(regions) == (1, 2)
        assert (packer.min_shape_size, packer.max_shape_size) == (1, 2)

    def test_single_region_matches_validated_bounds(self):
        """Test a single region gets the same clamp as parameter validation."""
        board = Board(GridShape.SQUARE, 4, 4)
        regions = RegionPartitioner(board).partition()
        packer = make_packer(board, 4, 5, 8)

        assert packer.relax_shape_bounds(regions) == validate_shape_bounds(16, 4, 5, 8) == (4, 4)

    def test_fewer_cells_than_shapes(self):
        """Test both bounds collapse to 1 when shapes outnumber cells."""
        board = Board(GridShape.SQUARE, 3, 1)
        regions = RegionPartitioner(board).partition()
        packer = make_packer(board, 5, 1, 3)

        assert packer.relax_shape_bounds(regions) == (1, 1)
        assert not packer.can_fill_remaining(regions, 0, 0)

    def test_multiple_regions(self):
        """Test bounds become 1 and the playable cell count."""
        board = Board(GridShape.SQUARE, 7, 1, cell_types=[[-1, -1, -1, 1, -1, -1, -1]])
        regions = RegionPartitioner(board).partition()
        packer = make_packer(board, 2, 4, 4)

        assert packer.relax_shape_bounds(regions) == (1, 6)


class TestFillRegions:
    """Test the packing search."""

    def test_four_by_four(self):
        """Test a 4x4 board splits into four shapes of four."""
        board = Board(GridShape.SQUARE, 4, 4)
        regions = RegionPartitioner(board).partition()

        assert make_packer(board, 4, 4, 4).fill_regions(regions, 0, 0)
        assert check_board(board, 4, 4, 4) == []
        assert sorted(shape_sizes(board).values()) == [4, 4, 4, 4]

    def test_blocks_split_regions(self):
        """Test each region receives its own shapes."""
        board = Board(GridShape.SQUARE, 5, 2, cell_types=[[-1, -1, 1, -1, -1], [-1, -1, 1, -1, -1]])
        regions = RegionPartitioner(board).partition()

        assert make_packer(board, 2, 4, 4).fill_regions(regions, 0, 0)
        assert check_board(board, 2, 4, 4) == []
        assert board.cell(0, 0).shape_index != board.cell(4, 0).shape_index

    @pytest.mark.parametrize(
        "grid_shape,rotate", [(GridShape.TRIANGLE, False), (GridShape.HEXAGON, False), (GridShape.HEXAGON, True)]
    )
    def test_other_topologies(self, grid_shape, rotate):
        """Test packing follows triangle and hexagon adjacency."""
        board = Board(grid_shape, 4, 3, rotate_hexagon=rotate)
        regions = RegionPartitioner(board).partition()

        assert make_packer(board, 3, 2, 6).fill_regions(regions, 0, 0)
        assert check_board(board, 3, 2, 6) == []

    def test_search_exhausted_restores_board(self):
        """Test a failed search leaves every cell empty."""
        board = Board(GridShape.SQUARE, 3, 3, cell_types=PLUS_BOARD)
        regions = RegionPartitioner(board).partition()
        packer = make_packer(board, 2, 2, 3)

        assert packer.can_fill_remaining(regions, 0, 0)
        assert not packer.fill_regions(regions, 0, 0)
        assert all(cell.shape_index == EMPTY_SHAPE for cell in board.iter_cells())

    def test_cancelled(self):
        """Test a set cancel event stops the search immediately."""
        board = Board(GridShape.SQUARE, 4, 4)
        regions = RegionPartitioner(board).partition()
        cancel_event = threading.Event()
        cancel_event.set()
        packer = make_packer(board, 4, 4, 4, cancel_event=cancel_event)

        assert packer.stopping
        assert not packer.fill_regions(regions, 0, 0)
        assert not packer.can_fill_remaining(regions, 0, 0)
