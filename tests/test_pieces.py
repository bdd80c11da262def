"""
Tests for puzzle definition validation and the built-in presets.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pieces import (
    Puzzle, PlacedPiece, PUZZLES, SOMA, BEDLAM, MAX_CUBES, get_puzzle,
)

SQUARE = ((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))


class TestPresets:
    def test_soma_shape(self):
        assert SOMA.dimension == 3
        assert SOMA.cell_count == 27
        assert SOMA.piece_count == 7
        assert SOMA.chiral_pair == (4, 6)

    def test_bedlam_shape(self):
        assert BEDLAM.dimension == 4
        assert BEDLAM.cell_count == 64
        assert BEDLAM.piece_count == 13
        assert BEDLAM.chiral_pair is None

    @pytest.mark.parametrize("name", sorted(PUZZLES))
    def test_pieces_fill_the_cube_exactly(self, name):
        puzzle = PUZZLES[name]
        assert sum(len(p) for p in puzzle.pieces) == puzzle.cell_count

    @pytest.mark.parametrize("name", sorted(PUZZLES))
    def test_pieces_are_normalized(self, name):
        for piece in PUZZLES[name].pieces:
            for axis in range(3):
                assert min(c[axis] for c in piece) == 0

    def test_get_puzzle(self):
        assert get_puzzle("soma") is SOMA

    def test_get_puzzle_unknown_name(self):
        with pytest.raises(KeyError, match="Unknown puzzle"):
            get_puzzle("rubik")

    def test_masks(self):
        assert SOMA.full_mask == (1 << 27) - 1
        assert BEDLAM.full_mask == (1 << 64) - 1
        assert SOMA.all_pieces_mask == 0b1111111


class TestValidation:
    def test_valid_definition(self):
        puzzle = Puzzle("tiny", 2, 8, 2, (SQUARE, SQUARE))
        assert puzzle.piece_count == 2

    def test_cell_count_must_be_cube_of_dimension(self):
        with pytest.raises(ValueError, match="dimension"):
            Puzzle("bad", 3, 26, 7, SOMA.pieces)

    def test_piece_list_must_match_declared_count(self):
        with pytest.raises(ValueError, match="pieces"):
            Puzzle("bad", 3, 27, 6, SOMA.pieces)

    def test_cell_count_limit(self):
        with pytest.raises(ValueError, match="64"):
            Puzzle("bad", 5, 125, 1, (SQUARE,))

    def test_piece_count_limit(self):
        pieces = tuple(((0, 0, 0),) for _ in range(33))
        with pytest.raises(ValueError, match="32"):
            Puzzle("bad", 4, 64, 33, pieces)

    def test_piece_cube_limit(self):
        too_long = tuple((x, 0, 0) for x in range(MAX_CUBES + 1))
        with pytest.raises(ValueError, match="MAX_CUBES"):
            Puzzle("bad", 4, 64, 1, (too_long,))

    def test_empty_piece(self):
        with pytest.raises(ValueError, match="no cubes"):
            Puzzle("bad", 2, 8, 1, ((),))

    def test_chiral_pair_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            Puzzle("bad", 2, 8, 2, (SQUARE, SQUARE), chiral_pair=(0, 2))

    def test_chiral_pair_must_differ(self):
        with pytest.raises(ValueError, match="different"):
            Puzzle("bad", 2, 8, 2, (SQUARE, SQUARE), chiral_pair=(1, 1))

    def test_more_cubes_than_cells(self):
        mono = ((0, 0, 0),)
        with pytest.raises(ValueError, match="cubes in total"):
            Puzzle("over", 1, 1, 2, (mono, mono))

    def test_fewer_cubes_than_cells(self):
        with pytest.raises(ValueError, match="cubes in total"):
            Puzzle("under", 2, 8, 1, (SQUARE,))

    def test_puzzle_is_immutable(self):
        with pytest.raises(AttributeError):
            SOMA.dimension = 4


class TestPlacedPiece:
    def test_cube_count(self):
        placed = PlacedPiece(3, ((0, 0, 0), (1, 0, 0), (0, 1, 0)))
        assert placed.cube_count == 3

    def test_equality(self):
        assert PlacedPiece(0, ((0, 0, 0),)) == PlacedPiece(0, ((0, 0, 0),))
