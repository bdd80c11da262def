"""Saving and loading solution sets.

Binary format (little endian):
    4 bytes   magic (b"BLKR")
    u8        format version
    u8        puzzle dimension
    u8        puzzle cell count
    u8        puzzle piece count
    u32       solution count
    per solution:
        u32   piece count
        per piece:
            u32   piece index (0-based)
            u32   cube count
            3 bytes per cube (x, y, z)

Legacy files have no magic or metadata: the first four bytes are the
solution count, and the puzzle shape is whatever the caller expects. A
legacy file whose solution count happens to equal the magic is read as the
current format.
"""

import os
import struct

from grid import format_solution
from pieces import PlacedPiece, MAX_CUBES

DEFAULT_RESULTS_DIR = "results"
FILE_MAGIC = b"BLKR"
FILE_VERSION = 1

_HEADER = struct.Struct("<4sBBBBI")
_U32 = struct.Struct("<I")


class CorruptSolutionFile(ValueError):
    """Raised while parsing; load_all and count turn it into None."""


def _ensure_parent_dir(path):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def save(solutions, puzzle, bin_path, txt_path):
    """Saves solutions to both the text and the binary file.

    Raises OSError if either file cannot be written.
    """
    save_text(solutions, puzzle, txt_path)
    save_binary(solutions, puzzle, bin_path)


def save_text(solutions, puzzle, path):
    _ensure_parent_dir(path)
    with open(path, "w") as f:
        f.write(f"Found {len(solutions)} solutions:\n\n")
        for i, solution in enumerate(solutions):
            f.write(f"Solution {i + 1}:\n")
            f.write(format_solution(solution, puzzle.dimension))
            f.write("\n")


def encode_solutions(solutions, puzzle):
    chunks = [
        _HEADER.pack(FILE_MAGIC, FILE_VERSION, puzzle.dimension, puzzle.cell_count,
                     puzzle.piece_count, len(solutions))
    ]
    for solution in solutions:
        chunks.append(_U32.pack(len(solution)))
        for placed in solution:
            chunks.append(_U32.pack(placed.piece_index))
            chunks.append(_U32.pack(placed.cube_count))
            for x, y, z in placed.positions:
                chunks.append(bytes((x, y, z)))
    return b"".join(chunks)


def save_binary(solutions, puzzle, path):
    _ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(encode_solutions(solutions, puzzle))


class _Reader:
    def __init__(self, data, offset=0):
        self.data = data
        self.offset = offset

    def read(self, size):
        end = self.offset + size
        if end > len(self.data):
            raise CorruptSolutionFile(f"unexpected end of file at byte {self.offset}")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def read_u32(self):
        return _U32.unpack(self.read(4))[0]


def _parse_solutions(reader, solution_count, puzzle):
    dim = puzzle.dimension
    expected_mask = (1 << puzzle.piece_count) - 1
    solutions = []

    for _ in range(solution_count):
        piece_count = reader.read_u32()
        if piece_count != puzzle.piece_count:
            raise CorruptSolutionFile(f"solution has {piece_count} pieces, expected {puzzle.piece_count}")

        seen_pieces = 0
        solution = []
        for _ in range(piece_count):
            piece_index = reader.read_u32()
            if piece_index >= puzzle.piece_count:
                raise CorruptSolutionFile(f"piece index {piece_index} out of range")

            piece_bit = 1 << piece_index
            if seen_pieces & piece_bit:
                raise CorruptSolutionFile(f"piece index {piece_index} appears twice")
            seen_pieces |= piece_bit

            cube_count = reader.read_u32()
            if cube_count == 0 or cube_count > MAX_CUBES:
                raise CorruptSolutionFile(f"invalid cube count {cube_count}")

            positions = []
            for _ in range(cube_count):
                x, y, z = reader.read(3)
                if x >= dim or y >= dim or z >= dim:
                    raise CorruptSolutionFile(f"cube ({x}, {y}, {z}) outside a {dim}-wide grid")
                positions.append((x, y, z))

            solution.append(PlacedPiece(piece_index, tuple(positions)))

        if seen_pieces != expected_mask:
            raise CorruptSolutionFile("solution is missing a piece")
        solutions.append(solution)

    return solutions


def _read_header(reader, puzzle):
    """Returns (is_current_format, solution_count) and leaves the reader at the first solution."""
    prefix = reader.read(4)
    if prefix != FILE_MAGIC:
        return False, _U32.unpack(prefix)[0]

    version, dim, cell_count, piece_count = reader.read(4)
    if (version != FILE_VERSION
            or dim != puzzle.dimension
            or cell_count != puzzle.cell_count
            or piece_count != puzzle.piece_count):
        raise CorruptSolutionFile(
            f"header (v{version}, dim {dim}, {cell_count} cells, {piece_count} pieces) "
            f"does not match puzzle '{puzzle.name}'"
        )
    return True, reader.read_u32()


def decode_solutions(data, puzzle):
    """Parses a whole binary file. Raises CorruptSolutionFile on any defect."""
    reader = _Reader(data)
    _, solution_count = _read_header(reader, puzzle)
    return _parse_solutions(reader, solution_count, puzzle)


def _read_file(path):
    with open(path, "rb") as f:
        return f.read()


def load_all(path, puzzle):
    """Loads all solutions, or returns None if the file is missing or invalid.

    Never returns a partially parsed solution set.
    """
    try:
        return decode_solutions(_read_file(path), puzzle)
    except (OSError, CorruptSolutionFile):
        return None


def count(path, puzzle):
    """Returns the number of saved solutions, or None if the file is missing or invalid.

    Current-format files only need their header read; legacy files are parsed
    in full so a corrupt file is never counted.
    """
    try:
        reader = _Reader(_read_file(path))
        is_current, solution_count = _read_header(reader, puzzle)
        if is_current:
            return solution_count
        return len(_parse_solutions(reader, solution_count, puzzle))
    except (OSError, CorruptSolutionFile):
        return None


def is_legacy(path):
    """True if the file exists, is readable and has no magic header."""
    try:
        with open(path, "rb") as f:
            prefix = f.read(4)
    except OSError:
        return False
    return len(prefix) == 4 and prefix != FILE_MAGIC


def format_js(solutions):
    """Formats solutions as a JavaScript array for the website."""
    lines = ["const SOLUTIONS = ["]
    for i, solution in enumerate(solutions):
        pieces = ", ".join(
            "[{}, [{}]]".format(
                placed.piece_index,
                ",".join(f"[{x},{y},{z}]" for x, y, z in placed.positions),
            )
            for placed in solution
        )
        separator = "," if i < len(solutions) - 1 else ""
        lines.append(f"  [{pieces}]{separator}")
    lines.append("];")
    return "\n".join(lines)
