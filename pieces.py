"""Puzzle piece definitions and the built-in puzzle presets.

Each piece is a tuple of unit-cube positions, normalized so the minimum
coordinate on every axis is zero.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

Coord = Tuple[int, int, int]

# Widest piece across all presets
MAX_CUBES = 5
# Occupied cells are a 64-bit mask, remaining pieces a 32-bit mask
MAX_CELLS = 64
MAX_PIECES = 32


@dataclass(frozen=True)
class Puzzle:
    """A cube dissection puzzle: which pieces must fill which cube.

    `chiral_pair` names two piece indices that are mirror images of each
    other. Canonicalization reflects the grid and swaps their labels, so a
    mirrored solution is recognized as a duplicate.
    """
    name: str
    dimension: int
    cell_count: int
    piece_count: int
    pieces: Tuple[Tuple[Coord, ...], ...]
    chiral_pair: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if self.dimension < 1:
            raise ValueError(f"dimension must be positive (got {self.dimension})")
        if self.dimension ** 3 != self.cell_count:
            raise ValueError(
                f"cell_count must equal dimension**3 "
                f"(got {self.cell_count} for dimension {self.dimension})"
            )
        if self.cell_count > MAX_CELLS:
            raise ValueError(f"cell_count must be <= {MAX_CELLS} (got {self.cell_count})")
        if len(self.pieces) != self.piece_count:
            raise ValueError(
                f"expected {self.piece_count} pieces, got {len(self.pieces)}"
            )
        if self.piece_count > MAX_PIECES:
            raise ValueError(f"piece_count must be <= {MAX_PIECES} (got {self.piece_count})")

        for i, piece in enumerate(self.pieces):
            if not piece:
                raise ValueError(f"piece {i} has no cubes")
            if len(piece) > MAX_CUBES:
                raise ValueError(
                    f"piece {i} has {len(piece)} cubes, more than MAX_CUBES ({MAX_CUBES})"
                )

        if self.chiral_pair is not None:
            first, second = self.chiral_pair
            if first == second:
                raise ValueError(f"chiral_pair must name two different pieces (got {self.chiral_pair})")
            for index in (first, second):
                if not 0 <= index < self.piece_count:
                    raise ValueError(f"chiral_pair index {index} out of range")

        # a full grid must mean every piece is placed
        total_cubes = sum(len(piece) for piece in self.pieces)
        if total_cubes != self.cell_count:
            raise ValueError(
                f"pieces have {total_cubes} cubes in total, but the grid has {self.cell_count} cells"
            )

    @property
    def full_mask(self):
        """Occupied-cell bitmask with every cell filled."""
        return (1 << self.cell_count) - 1

    @property
    def all_pieces_mask(self):
        """Remaining-piece bitmask with every piece still available."""
        return (1 << self.piece_count) - 1


@dataclass(frozen=True)
class PlacedPiece:
    """A piece placed at absolute grid coordinates."""
    piece_index: int
    positions: Tuple[Coord, ...]

    @property
    def cube_count(self):
        return len(self.positions)


# The seven Soma cube pieces that fill a 3x3x3 cube.
SOMA_PIECES = (
    # L-shaped piece
    ((0, 0, 0), (1, 0, 0), (2, 0, 0), (0, 1, 0)),
    # T-shaped piece
    ((0, 0, 0), (1, 0, 0), (2, 0, 0), (1, 1, 0)),
    # S-shaped piece
    ((0, 0, 0), (1, 0, 0), (1, 1, 0), (2, 1, 0)),
    # small L (3 cubes)
    ((0, 0, 0), (1, 0, 0), (0, 1, 0)),
    # 3d corner, variant A
    ((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 0, 1)),
    # 3d corner, variant B (tripod)
    ((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)),
    # 3d corner, variant C (mirror of A)
    ((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 1, 1)),
)

SOMA_CHIRAL_PAIR = (4, 6)

# The thirteen Bedlam cube pieces that fill a 4x4x4 cube.
BEDLAM_PIECES = (
    # Little Corner
    ((0, 0, 0), (0, 1, 0), (1, 0, 0), (0, 0, 1)),
    # Long Stick
    ((0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0), (3, 1, 0)),
    # Hat
    ((0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 2, 0), (2, 2, 0)),
    # Bucket
    ((0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 2, 0), (1, 1, 1)),
    # Screw
    ((0, 0, 0), (1, 0, 0), (1, 0, 1), (1, 1, 1), (2, 1, 1)),
    # Twist
    ((0, 0, 0), (1, 0, 0), (1, 1, 0), (1, 1, 1), (2, 1, 1)),
    # Signpost
    ((0, 0, 0), (1, 0, 0), (2, 0, 0), (1, 1, 0), (1, 0, 1)),
    # Ducktail
    ((0, 0, 0), (1, 0, 0), (1, 1, 0), (2, 1, 0), (1, 0, 1)),
    # Plane
    ((0, 0, 0), (0, 1, 0), (1, 1, 0), (2, 1, 0), (1, 2, 0)),
    # Bridge
    ((0, 0, 0), (1, 0, 0), (2, 0, 0), (0, 1, 0), (2, 1, 0)),
    # Staircase
    ((0, 0, 0), (1, 0, 0), (1, 1, 0), (2, 1, 0), (2, 2, 0)),
    # Spikey Zag
    ((0, 0, 1), (0, 1, 0), (0, 1, 1), (1, 1, 0), (1, 2, 0)),
    # Middle Zig
    ((0, 0, 0), (0, 1, 0), (0, 1, 1), (1, 1, 0), (1, 2, 0)),
)

SOMA = Puzzle(
    name="soma",
    dimension=3,
    cell_count=27,
    piece_count=7,
    pieces=SOMA_PIECES,
    chiral_pair=SOMA_CHIRAL_PAIR,
)

BEDLAM = Puzzle(
    name="bedlam",
    dimension=4,
    cell_count=64,
    piece_count=13,
    pieces=BEDLAM_PIECES,
)

PUZZLES = {
    SOMA.name: SOMA,
    BEDLAM.name: BEDLAM,
}


def get_puzzle(name):
    """Looks up a built-in puzzle preset by name."""
    try:
        return PUZZLES[name]
    except KeyError:
        raise KeyError(f"Unknown puzzle '{name}'. Choose from: {', '.join(sorted(PUZZLES))}") from None
