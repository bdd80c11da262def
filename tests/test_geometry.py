"""
Tests for the cube rotation group and piece orientation generation.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from geometry import ROTATIONS, NUM_ROTATIONS, rotate, normalize_to_origin, all_orientations
from pieces import SOMA_PIECES, BEDLAM_PIECES


def rotation_matrix(rotate_fn):
    """Columns are the images of the unit axes."""
    return np.array([rotate_fn(axis) for axis in ((1, 0, 0), (0, 1, 0), (0, 0, 1))]).T


# ============================================================================
# Rotation group
# ============================================================================


class TestRotationGroup:
    def test_there_are_24_rotations(self):
        assert NUM_ROTATIONS == 24

    def test_rotation_zero_is_identity(self):
        for coord in [(0, 0, 0), (1, 2, 3), (-4, 5, -6)]:
            assert rotate(coord, 0) == coord

    def test_rotations_are_distinct(self):
        images = {rotate_fn((1, 2, 3)) for rotate_fn in ROTATIONS}
        assert len(images) == 24

    def test_rotations_are_proper(self):
        """Every transform is orthogonal with determinant +1 (no mirror images)."""
        for i, rotate_fn in enumerate(ROTATIONS):
            matrix = rotation_matrix(rotate_fn)
            assert np.array_equal(matrix @ matrix.T, np.eye(3, dtype=int)), f"Rotation {i} not orthogonal"
            assert round(np.linalg.det(matrix)) == 1, f"Rotation {i} is a reflection"

    def test_rotations_are_linear(self):
        p, q = (1, -2, 3), (4, 0, -1)
        summed = tuple(a + b for a, b in zip(p, q))
        for rotate_fn in ROTATIONS:
            expected = tuple(a + b for a, b in zip(rotate_fn(p), rotate_fn(q)))
            assert rotate_fn(summed) == expected

    def test_group_is_closed_under_composition(self):
        probe = (1, 2, 3)
        images = {rotate_fn(probe): i for i, rotate_fn in enumerate(ROTATIONS)}
        for first in ROTATIONS:
            for second in ROTATIONS:
                assert second(first(probe)) in images

    def test_face_up_blocks_share_a_vertical_axis(self):
        """Rotations 4k..4k+3 all bring the same face to +Z."""
        unit_faces = [(1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1)]
        up_faces = []
        for block in range(6):
            faces = set()
            for turn in range(4):
                rotate_fn = ROTATIONS[4 * block + turn]
                faces.update(f for f in unit_faces if rotate_fn(f) == (0, 0, 1))
            assert len(faces) == 1
            up_faces.append(faces.pop())
        assert up_faces == [(0, 0, 1), (0, 1, 0), (0, 0, -1), (0, -1, 0), (-1, 0, 0), (1, 0, 0)]

    def test_rotate_rejects_bad_index(self):
        with pytest.raises(ValueError):
            rotate((0, 0, 0), 24)
        with pytest.raises(ValueError):
            rotate((0, 0, 0), -1)


# ============================================================================
# Orientations
# ============================================================================


ALL_PIECES = list(SOMA_PIECES) + list(BEDLAM_PIECES)


class TestOrientations:
    def test_normalize_to_origin(self):
        assert normalize_to_origin([(3, 1, 2), (2, 1, 5)]) == ((0, 0, 0), (1, 0, 3))

    @pytest.mark.parametrize("piece", ALL_PIECES)
    def test_orientation_properties(self, piece):
        orientations = all_orientations(piece)

        assert 1 <= len(orientations) <= 24
        assert len(set(orientations)) == len(orientations), "Duplicate orientations"
        for orientation in orientations:
            assert len(orientation) == len(piece)
            assert len(set(orientation)) == len(piece)
            for axis in range(3):
                assert min(c[axis] for c in orientation) == 0

    def test_asymmetric_piece_has_24_orientations(self):
        # Soma L tetracube
        assert len(all_orientations(SOMA_PIECES[0])) == 24

    def test_small_l_has_12_orientations(self):
        assert len(all_orientations(SOMA_PIECES[3])) == 12

    def test_tripod_has_8_orientations(self):
        assert len(all_orientations(SOMA_PIECES[5])) == 8

    def test_single_cube_has_one_orientation(self):
        assert all_orientations(((0, 0, 0),)) == [((0, 0, 0),)]

    def test_orientations_do_not_depend_on_cube_order(self):
        piece = SOMA_PIECES[2]
        assert all_orientations(piece) == all_orientations(tuple(reversed(piece)))

    def test_chiral_pair_orientations_are_disjoint(self):
        """Mirror-image pieces can never be rotated into each other."""
        first = set(all_orientations(SOMA_PIECES[4]))
        second = set(all_orientations(SOMA_PIECES[6]))
        assert first.isdisjoint(second)
