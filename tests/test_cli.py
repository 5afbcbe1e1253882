"""Tests for the command line interface."""

import pytest

from py_levelgen.cli import EXIT_FAILED, EXIT_INVALID, EXIT_OK, build_parser, main, request_from_args
from py_levelgen.core.level_file import read_level
from py_levelgen.core.topology import GridShape

SQUARE_ARGS = ["--width", "4", "--height", "4", "--shapes", "4", "--min", "4", "--max", "4",
               "--seed", "cli", "--iterations", "0"]


class TestRequestFromArgs:
    """Test building generation requests from arguments."""

    def test_basic(self):
        """Test arguments map onto request fields."""
        args = build_parser().parse_args(["generate", "--shape", "hexagon", "--rotate-hexagon"] + SQUARE_ARGS)
        request = request_from_args(args)

        assert request.grid_shape == GridShape.HEXAGON
        assert request.rotate_hexagon
        assert (request.x_cells, request.y_cells) == (4, 4)
        assert (request.num_shapes, request.min_shape_size, request.max_shape_size) == (4, 4, 4)
        assert request.seed == "cli"
        assert request.randomize_iterations == 0
        assert request.relax_shape_bounds

    def test_cells_from_level_file(self, tmp_path):
        """Test a level file supplies the shape, size and fixed cells."""
        level = tmp_path / "board.txt"
        level.write_text("1,1,False,2,3,0,2,2,1,3,3")

        args = build_parser().parse_args(["generate", "--cells", str(level), "--shapes", "2", "--max", "4"])
        request = request_from_args(args)

        assert request.grid_shape == GridShape.TRIANGLE
        assert (request.x_cells, request.y_cells) == (3, 2)
        assert request.cell_types == [[0, -1, -1], [1, -1, -1]]

    def test_missing_size(self):
        """Test the size is required without a level file."""
        args = build_parser().parse_args(["generate", "--shapes", "2", "--max", "4"])
        assert main(["generate", "--shapes", "2", "--max", "4"]) == EXIT_INVALID
        assert args.width is None


class TestMain:
    """Test running commands end to end."""

    def test_generate(self, capsys):
        """Test a generated board is printed."""
        assert main(["generate"] + SQUARE_ARGS) == EXIT_OK

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 5
        assert all(len(line) == 4 and set(line) <= set("0123") for line in lines[:4])
        assert lines[4].startswith("seed=cli shapes=4 sizes=4-4")

    def test_generate_exports(self, tmp_path, capsys):
        """Test the level file is written when an output folder is given."""
        assert main(["generate"] + SQUARE_ARGS + ["--output-dir", str(tmp_path)]) == EXIT_OK

        path = tmp_path / "level.txt"
        assert capsys.readouterr().out.splitlines()[-1] == str(path)
        assert read_level(path).grid.shape == (4, 4)

    def test_generate_failure(self, capsys):
        """Test an infeasible board exits with a failure."""
        argv = ["generate", "--width", "3", "--height", "3", "--shapes", "5", "--min", "2",
                "--max", "9", "--no-relax"]
        assert main(argv) == EXIT_FAILED
        assert "Could not fill board with shapes." in capsys.readouterr().err

    def test_invalid_board(self, capsys):
        """Test oversized boards are reported as invalid."""
        argv = ["generate", "--width", "40", "--height", "3", "--shapes", "2", "--max", "9"]
        assert main(argv) == EXIT_INVALID
        assert "Invalid arguments" in capsys.readouterr().err

    def test_batch(self, tmp_path):
        """Test a batch writes one file per level."""
        argv = ["batch", "--count", "2", "--output-dir", str(tmp_path)] + SQUARE_ARGS
        assert main(argv) == EXIT_OK
        assert sorted(p.name for p in tmp_path.iterdir()) == ["level 1.txt", "level.txt"]

    def test_missing_required_argument(self):
        """Test argparse rejects a missing shape count."""
        with pytest.raises(SystemExit):
            main(["generate", "--width", "3", "--height", "3", "--max", "4"])
