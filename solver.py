import os
import sys
import time
import argparse
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from geometry import all_orientations
from grid import coord_to_idx, idx_to_coord, canonical_grid
from pieces import Coord, PlacedPiece, PUZZLES, get_puzzle
import persistence


@dataclass(frozen=True)
class Placement:
    """One orientation of a piece translated to a fixed spot in the grid.

    Keeps both the bitmask (for collision checks) and the coordinates (for
    building the solution).
    """
    occupied_mask: int
    positions: Tuple[Coord, ...]
    cells: Tuple[int, ...]

    @property
    def cube_count(self):
        return len(self.positions)


def try_create_placement(orientation, target, anchor, dim):
    """Translates `orientation` so its `anchor` cube sits on `target`.

    Returns None if any cube falls outside the grid.
    """
    offset_x = target[0] - anchor[0]
    offset_y = target[1] - anchor[1]
    offset_z = target[2] - anchor[2]

    occupied_mask = 0
    positions = []
    cells = []
    for x, y, z in orientation:
        ax, ay, az = x + offset_x, y + offset_y, z + offset_z
        if not (0 <= ax < dim and 0 <= ay < dim and 0 <= az < dim):
            return None
        cell = coord_to_idx(ax, ay, az, dim)
        occupied_mask |= 1 << cell
        positions.append((ax, ay, az))
        cells.append(cell)

    return Placement(occupied_mask, tuple(positions), tuple(cells))


def build_placement_table(puzzle):
    """Lists every in-bounds placement, indexed as table[piece_index][target_cell].

    Each orientation is tried with each of its cubes as the anchor, so every
    placement covering the target cell is included.
    """
    dim = puzzle.dimension
    table = []
    for piece in puzzle.pieces:
        orientations = all_orientations(piece)
        per_cell = []
        for target_cell in range(puzzle.cell_count):
            target = idx_to_coord(target_cell, dim)
            placements = []
            for orientation in orientations:
                for anchor in orientation:
                    placement = try_create_placement(orientation, target, anchor, dim)
                    if placement is not None:
                        placements.append(placement)
            per_cell.append(placements)
        table.append(per_cell)
    return table


def first_empty_cell(occupied, full_mask):
    """Index of the lowest unoccupied cell, or None when the grid is full."""
    if occupied == full_mask:
        return None
    # trailing ones of `occupied` = position of its lowest zero bit
    return ((~occupied) & (occupied + 1)).bit_length() - 1


@dataclass
class SearchFrame:
    """A partial solution on the search stack.

    `placed` holds (piece_index, Placement) pairs. The cursors record which
    piece and which of its placements to try next when the search resumes
    this frame after backtracking.
    """
    placed: tuple = ()
    remaining_pieces: int = 0
    occupied_cells: int = 0
    piece_cursor: int = 0
    placement_cursor: int = 0

    @property
    def placed_count(self):
        return len(self.placed)

    def to_solution(self):
        return [PlacedPiece(piece_index, placement.positions) for piece_index, placement in self.placed]


def placed_key(placed, puzzle):
    """Canonical key of a set of (piece_index, Placement) pairs."""
    grid = np.zeros(puzzle.cell_count, dtype=np.uint8)
    for piece_index, placement in placed:
        grid[list(placement.cells)] = piece_index + 1
    return canonical_grid(grid, puzzle.dimension, puzzle.chiral_pair).tobytes()


def expand(frame, placement_table, puzzle, seen_states):
    """Advances `frame` to its next unexplored child and returns that child.

    Placements that overlap, or whose extended state is congruent to one
    already explored, are skipped. Returns None when the frame has no
    alternatives left. The frame's cursors are left pointing just past the
    returned child.
    """
    target_cell = first_empty_cell(frame.occupied_cells, puzzle.full_mask)

    while frame.piece_cursor < puzzle.piece_count:
        piece_index = frame.piece_cursor
        piece_bit = 1 << piece_index

        if frame.remaining_pieces & piece_bit:
            placements = placement_table[piece_index][target_cell]
            while frame.placement_cursor < len(placements):
                placement = placements[frame.placement_cursor]
                frame.placement_cursor += 1

                if frame.occupied_cells & placement.occupied_mask:
                    continue

                placed = frame.placed + ((piece_index, placement),)
                key = placed_key(placed, puzzle)
                if key in seen_states:
                    # a symmetric image of this state was already explored
                    continue
                seen_states.add(key)

                return SearchFrame(
                    placed=placed,
                    remaining_pieces=frame.remaining_pieces & ~piece_bit,
                    occupied_cells=frame.occupied_cells | placement.occupied_mask,
                )

        frame.piece_cursor += 1
        frame.placement_cursor = 0

    return None


def search(stack, placement_table, puzzle, seen_states, max_solutions=None, on_solution=None):
    """Runs the depth-first search until `stack` is empty or the cap is hit.

    `seen_states` is the canonical-key set shared by every branch; it only
    ever grows. `on_solution(count)` is called after each solution is found.
    """
    solutions = []

    while stack:
        frame = stack.pop()

        if frame.occupied_cells == puzzle.full_mask:
            solutions.append(frame.to_solution())
            if on_solution is not None:
                on_solution(len(solutions))
            if max_solutions is not None and len(solutions) >= max_solutions:
                break
            continue

        child = expand(frame, placement_table, puzzle, seen_states)
        if child is not None:
            # resume this frame's remaining alternatives after the child's subtree
            stack.append(frame)
            stack.append(child)

    return solutions


class ProgressReporter:
    """Prints the time to the first solution and a running solution count."""

    def __init__(self, start_time):
        self.start_time = start_time

    def __call__(self, count):
        if count == 1:
            print(f"First solution found in {time.time() - self.start_time:.2f} seconds!")
        elif count % 100 == 0:
            print(f"Found {count} solutions...", end='\r')


def solve(puzzle, max_solutions=None, verbose=False):
    """Finds all symmetry-distinct solutions of `puzzle`.

    With `max_solutions`, the search stops as soon as that many solutions
    have been found.
    """
    if max_solutions is not None and max_solutions <= 0:
        return []

    start_time = time.time()
    placement_table = build_placement_table(puzzle)

    if verbose:
        orientation_counts = [len(all_orientations(p)) for p in puzzle.pieces]
        placement_count = sum(len(cell) for per_cell in placement_table for cell in per_cell)
        print(f"Puzzle: {puzzle.name} ({puzzle.dimension}x{puzzle.dimension}x{puzzle.dimension}, {puzzle.piece_count} pieces)")
        print(f"Unique Piece Orientations: {orientation_counts}")
        print(f"Precomputed Placements: {placement_count}")

    root = SearchFrame(remaining_pieces=puzzle.all_pieces_mask)
    reporter = ProgressReporter(start_time) if verbose else None
    solutions = search([root], placement_table, puzzle, set(), max_solutions, reporter)

    if verbose:
        print(f"\nSearch complete in {time.time() - start_time:.2f} seconds.")
        print(f"Total Solutions Found: {len(solutions)}")

    return solutions


DISPLAY_CONTROLS = "Controls: Left/Right navigate, W/S explode, R reset"


def results_paths(results_dir, puzzle):
    base = os.path.join(results_dir, f"solutions_{puzzle.name}")
    return base + ".bin", base + ".txt"


def run_solver(puzzle, max_solutions=None, workers=1, results_dir=persistence.DEFAULT_RESULTS_DIR):
    """Solves the puzzle, saves to disk, and returns the solutions."""
    if workers > 1:
        from run_parallel import solve_parallel
        solutions = solve_parallel(puzzle, workers=workers, max_solutions=max_solutions, verbose=True)
    else:
        solutions = solve(puzzle, max_solutions=max_solutions, verbose=True)

    bin_path, txt_path = results_paths(results_dir, puzzle)
    try:
        persistence.save(solutions, puzzle, bin_path, txt_path)
    except OSError as e:
        print(f"Failed to save solutions: {e}", file=sys.stderr)
    else:
        print(f"Found {len(solutions)} solutions")
        print(f"Wrote {txt_path} and {bin_path}")

    return solutions


def missing_solutions(bin_path):
    print(f"No solutions found at {bin_path}. Run 'blocker solve' first.", file=sys.stderr)
    sys.exit(1)


def run_display(puzzle, results_dir):
    bin_path, _ = results_paths(results_dir, puzzle)
    solutions = persistence.load_all(bin_path, puzzle)
    if solutions is None:
        missing_solutions(bin_path)

    print(f"Loaded {len(solutions)} solutions")
    print(DISPLAY_CONTROLS)
    import visualization
    visualization.display(solutions, puzzle)


def run_count(puzzle, results_dir):
    bin_path, _ = results_paths(results_dir, puzzle)
    count = persistence.count(bin_path, puzzle)
    if count is None:
        missing_solutions(bin_path)
    print(f"{count} solutions")


def run_export_js(puzzle, max_solutions=None):
    solutions = solve(puzzle, max_solutions=max_solutions)
    print(persistence.format_js(solutions))


def run_migrate(puzzle, results_dir):
    from migrate_solutions import migrate
    bin_path, _ = results_paths(results_dir, puzzle)
    migrate(puzzle, bin_path)


COMMANDS = ['solve', 'display', 'count', 'export-js', 'migrate']


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Find every distinct way to pack a cube with a set of polycube pieces."
    )
    parser.add_argument('command', nargs='?', choices=COMMANDS,
                        help="What to do. Default: solve, save, then display the solutions.")
    parser.add_argument('-p', '--puzzle', choices=sorted(PUZZLES), default='soma',
                        help="Built-in puzzle to use. Default is soma.")
    parser.add_argument('-m', '--max-solutions', type=int,
                        help="Stop after this many solutions.")
    parser.add_argument('-t', '--workers', type=int, default=1,
                        help="Worker processes for solving (default: 1, no parallelism).")
    parser.add_argument('-o', '--results-dir', default=persistence.DEFAULT_RESULTS_DIR,
                        help="Directory for solution files. Default is 'results'.")

    args = parser.parse_args(argv)
    if args.max_solutions is not None and args.max_solutions < 1:
        parser.error("--max-solutions must be at least 1")
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    puzzle = get_puzzle(args.puzzle)

    if args.command == 'solve':
        run_solver(puzzle, args.max_solutions, args.workers, args.results_dir)
    elif args.command == 'display':
        run_display(puzzle, args.results_dir)
    elif args.command == 'count':
        run_count(puzzle, args.results_dir)
    elif args.command == 'export-js':
        run_export_js(puzzle, args.max_solutions)
    elif args.command == 'migrate':
        run_migrate(puzzle, args.results_dir)
    else:
        solutions = run_solver(puzzle, args.max_solutions, args.workers, args.results_dir)
        if solutions:
            print(DISPLAY_CONTROLS)
            import visualization
            visualization.display(solutions, puzzle)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nSolve cancelled by user.")
        sys.exit(0)
