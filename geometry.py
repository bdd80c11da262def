"""Cube rotation group and piece orientations.

A cube has 24 proper rotations: 6 ways to choose which face points up,
times 4 quarter turns around the vertical axis through that face.

    Rotations  0-3:  +Z face up
    Rotations  4-7:  +Y face up
    Rotations  8-11: -Z face up
    Rotations 12-15: -Y face up
    Rotations 16-19: -X face up
    Rotations 20-23: +X face up

grid.build_rotation_table applies these same functions to whole grids, so
rotation index r means the same thing for a piece and for a grid.
"""

ROTATIONS = (
    # +Z face up, turn around Z
    lambda p: (p[0], p[1], p[2]),
    lambda p: (-p[1], p[0], p[2]),
    lambda p: (-p[0], -p[1], p[2]),
    lambda p: (p[1], -p[0], p[2]),
    # +Y face up
    lambda p: (p[0], -p[2], p[1]),
    lambda p: (p[2], p[0], p[1]),
    lambda p: (-p[0], p[2], p[1]),
    lambda p: (-p[2], -p[0], p[1]),
    # -Z face up
    lambda p: (p[0], -p[1], -p[2]),
    lambda p: (p[1], p[0], -p[2]),
    lambda p: (-p[0], p[1], -p[2]),
    lambda p: (-p[1], -p[0], -p[2]),
    # -Y face up
    lambda p: (p[0], p[2], -p[1]),
    lambda p: (-p[2], p[0], -p[1]),
    lambda p: (-p[0], -p[2], -p[1]),
    lambda p: (p[2], -p[0], -p[1]),
    # -X face up
    lambda p: (p[2], p[1], -p[0]),
    lambda p: (-p[1], p[2], -p[0]),
    lambda p: (-p[2], -p[1], -p[0]),
    lambda p: (p[1], -p[2], -p[0]),
    # +X face up
    lambda p: (-p[2], p[1], p[0]),
    lambda p: (-p[1], -p[2], p[0]),
    lambda p: (p[2], -p[1], p[0]),
    lambda p: (p[1], p[2], p[0]),
)

NUM_ROTATIONS = len(ROTATIONS)


def rotate(coord, rotation_index):
    """Applies rotation `rotation_index` (0-23) to a single coordinate."""
    if not 0 <= rotation_index < NUM_ROTATIONS:
        raise ValueError(f"Rotation index must be 0-{NUM_ROTATIONS - 1}, got {rotation_index}")
    return ROTATIONS[rotation_index](coord)


def normalize_to_origin(coords):
    """Translates coordinates so the minimum x, y and z are all zero.

    The result is sorted, so two orientations that differ only by
    translation or cube order compare equal.
    """
    min_x = min(c[0] for c in coords)
    min_y = min(c[1] for c in coords)
    min_z = min(c[2] for c in coords)
    return tuple(sorted((c[0] - min_x, c[1] - min_y, c[2] - min_z) for c in coords))


def all_orientations(piece):
    """Generates all distinct orientations of a piece.

    Symmetric pieces map onto themselves under some rotations, so they have
    fewer than 24 orientations.
    """
    unique_shapes = set()
    for rotate_fn in ROTATIONS:
        unique_shapes.add(normalize_to_origin([rotate_fn(c) for c in piece]))
    return sorted(unique_shapes)
