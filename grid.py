"""Grid indexing, symmetry tables and canonical forms.

The grid is a flat array of D**3 cells in x-major order. Each cell holds a
1-based piece number, or 0 when empty.
"""

import numpy as np
from numba import jit as njit

from geometry import ROTATIONS, NUM_ROTATIONS

_ROTATION_TABLES = {}
_REFLECTION_TABLES = {}


def coord_to_idx(x, y, z, dim):
    """Converts (x, y, z) to a cell index: x * D * D + y * D + z."""
    return x * dim * dim + y * dim + z


def idx_to_coord(cell_index, dim):
    """Converts a cell index back to (x, y, z)."""
    return (cell_index // (dim * dim), (cell_index // dim) % dim, cell_index % dim)


def build_rotation_table(dim):
    """Returns the (24, D**3) cell permutation table for a grid dimension.

    table[r, src] is where cell `src` lands after rotating the whole grid by
    rotation r about its center. Built once per dimension.
    """
    table = _ROTATION_TABLES.get(dim)
    if table is not None:
        return table

    cells = dim ** 3
    dim_m1 = dim - 1
    table = np.empty((NUM_ROTATIONS, cells), dtype=np.int64)

    for rot, rotate_fn in enumerate(ROTATIONS):
        for src in range(cells):
            x, y, z = idx_to_coord(src, dim)
            # doubled centered coordinates: the center of an even grid is a half-integer
            rx, ry, rz = rotate_fn((2 * x - dim_m1, 2 * y - dim_m1, 2 * z - dim_m1))
            table[rot, src] = coord_to_idx(
                (rx + dim_m1) // 2, (ry + dim_m1) // 2, (rz + dim_m1) // 2, dim
            )

    _ROTATION_TABLES[dim] = table
    return table


def build_reflection_table(dim):
    """Returns the cell mapping of a mirror through the yz center plane (x -> D-1-x)."""
    table = _REFLECTION_TABLES.get(dim)
    if table is not None:
        return table

    table = np.empty(dim ** 3, dtype=np.int64)
    for src in range(dim ** 3):
        x, y, z = idx_to_coord(src, dim)
        table[src] = coord_to_idx(dim - 1 - x, y, z, dim)

    _REFLECTION_TABLES[dim] = table
    return table


@njit(nopython=True)
def _is_less(a, b):
    """Lexicographic a < b for two equal-length byte grids."""
    for i in range(a.shape[0]):
        if a[i] != b[i]:
            return a[i] < b[i]
    return False


@njit(nopython=True)
def smallest_rotation(grid, table):
    """Lexicographically smallest image of `grid` over all rotations in `table`."""
    n = grid.shape[0]
    smallest = grid.copy()
    rotated = np.empty(n, dtype=np.uint8)

    # row 0 is the identity, already in `smallest`
    for rot in range(1, table.shape[0]):
        for src in range(n):
            rotated[table[rot, src]] = grid[src]
        if _is_less(rotated, smallest):
            smallest[:] = rotated

    return smallest


@njit(nopython=True)
def _smallest_with_reflection(grid, table, reflection, first_label, second_label):
    smallest = smallest_rotation(grid, table)

    # mirror the grid; a mirrored chiral piece takes its twin's shape, so swap labels
    n = grid.shape[0]
    reflected = np.empty(n, dtype=np.uint8)
    for src in range(n):
        value = grid[src]
        if value == first_label:
            reflected[reflection[src]] = second_label
        elif value == second_label:
            reflected[reflection[src]] = first_label
        else:
            reflected[reflection[src]] = value

    reflected_smallest = smallest_rotation(reflected, table)
    if _is_less(reflected_smallest, smallest):
        return reflected_smallest
    return smallest


def canonical_grid(grid, dim, chiral_pair=None):
    """Reduces a byte grid to its smallest form under the puzzle's symmetry group.

    Without a chiral pair only the 24 rotations are considered. With one, the
    x-mirror of the grid (chiral labels swapped) and its 24 rotations are
    considered too.
    """
    table = build_rotation_table(dim)
    if chiral_pair is None:
        return smallest_rotation(grid, table)

    first, second = chiral_pair
    return _smallest_with_reflection(
        grid, table, build_reflection_table(dim), first + 1, second + 1
    )


def solution_to_grid(solution, dim):
    """Converts a list of placed pieces into a flat uint8 grid of piece numbers."""
    grid = np.zeros(dim ** 3, dtype=np.uint8)
    for placed in solution:
        piece_number = placed.piece_index + 1
        for x, y, z in placed.positions:
            grid[coord_to_idx(x, y, z, dim)] = piece_number
    return grid


def canonical_key(solution, puzzle):
    """Symmetry fingerprint of a (partial) solution: equal keys mean congruent grids."""
    grid = solution_to_grid(solution, puzzle.dimension)
    return canonical_grid(grid, puzzle.dimension, puzzle.chiral_pair).tobytes()


def cell_char(piece_number):
    if piece_number == 0:
        return "."
    if piece_number < 10:
        return str(piece_number)
    return chr(ord("A") + piece_number - 10)


def format_solution(solution, dim):
    """Formats a solution as D z-slices side by side.

    Rows run from y = D-1 at the top down to y = 0; x increases to the right.
    Empty cells show as '.'.
    """
    grid = solution_to_grid(solution, dim)

    lines = ["  ".join(f"z={z:<{dim}}" for z in range(dim))]
    for y in reversed(range(dim)):
        slices = []
        for z in range(dim):
            slices.append("".join(
                cell_char(int(grid[coord_to_idx(x, y, z, dim)])) for x in range(dim)
            ))
        lines.append("  ".join(slices))

    return "\n".join(lines) + "\n"
