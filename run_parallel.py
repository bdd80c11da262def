import multiprocessing
import os
import sys
import time
import threading
import argparse
import queue as std_queue

import numpy as np

from grid import canonical_grid, canonical_key
from pieces import PUZZLES, get_puzzle
from solver import SearchFrame, build_placement_table, expand, search, placed_key, results_paths
import persistence


def seed_frames(puzzle, placement_table):
    """Returns the root's children: one frame per distinct first placement.

    They are pruned against each other exactly as the serial search would,
    and come out in the same order.
    """
    root = SearchFrame(remaining_pieces=puzzle.all_pieces_mask)
    seen_states = set()
    seeds = []
    while True:
        child = expand(root, placement_table, puzzle, seen_states)
        if child is None:
            return seeds
        seeds.append(child)


def init_worker(puzzle, q, abort_val):
    """Initialize worker with the puzzle, its placement table and shared signals."""
    global PUZZLE, PLACEMENT_TABLE, QUEUE, ABORT_VAL
    PUZZLE = puzzle
    PLACEMENT_TABLE = build_placement_table(puzzle)
    QUEUE = q
    ABORT_VAL = abort_val


def solve_subtree(task):
    """Searches every completion of one seed frame with a private canonical-key set.

    Never capped: solutions found here may be duplicates of another subtree's,
    so only the merge knows how many distinct ones there are.
    """
    index, frame = task

    # Check abort value (safe to read shared memory)
    if ABORT_VAL.value == 1:
        return index, []

    if QUEUE is not None:
        QUEUE.put((index, "Searching..."))

    start_time = time.time()
    seen_states = {placed_key(frame.placed, PUZZLE)}
    solutions = search([frame], PLACEMENT_TABLE, PUZZLE, seen_states)

    if QUEUE is not None:
        QUEUE.put((index, f"{len(solutions)} solutions in {time.time() - start_time:.2f}s"))
    return index, solutions


def display_manager(q, total, stop_event):
    """Prints subtree status messages as workers report them."""
    finished = set()
    while not stop_event.is_set() or not q.empty():
        try:
            index, msg = q.get(timeout=0.1)
        except std_queue.Empty:
            continue
        if msg != "Searching...":
            finished.add(index)
        print(f"[{len(finished)}/{total}] subtree {index}: {msg}")
        sys.stdout.flush()


def warmup(puzzle):
    """Compiles the canonicalization kernels once, before workers start."""
    grid = np.zeros(puzzle.cell_count, dtype=np.uint8)
    canonical_grid(grid, puzzle.dimension, puzzle.chiral_pair)


def solve_parallel(puzzle, workers=None, max_solutions=None, verbose=False):
    """Solves `puzzle` with each first-placement subtree in a worker process.

    Workers do not share canonical keys, so their results can overlap; the
    merge keeps the first solution of each symmetry class. The resulting set
    of classes is the same as `solver.solve` finds, grouped by subtree.
    """
    if max_solutions is not None and max_solutions <= 0:
        return []

    start_time = time.time()
    placement_table = build_placement_table(puzzle)
    seeds = seed_frames(puzzle, placement_table)
    if not seeds:
        return []

    workers = min(workers or os.cpu_count() or 1, len(seeds))
    if verbose:
        print(f"Splitting {puzzle.name} into {len(seeds)} subtrees across {workers} workers...")

    warmup(puzzle)

    q = multiprocessing.Queue() if verbose else None
    stop_event = threading.Event()
    # Use multiprocessing.Value for robust abort signaling
    abort_val = multiprocessing.Value('i', 0)

    solutions = []
    seen_solutions = set()
    capped = False

    pool = multiprocessing.Pool(processes=workers, initializer=init_worker,
                                initargs=(puzzle, q, abort_val))
    display_thread = None
    try:
        # started only once the pool exists, so the finally block always stops it
        if verbose:
            display_thread = threading.Thread(target=display_manager, args=(q, len(seeds), stop_event))
            display_thread.start()

        # imap keeps subtree order, so the merge is deterministic
        for index, subtree_solutions in pool.imap(solve_subtree, enumerate(seeds)):
            for solution in subtree_solutions:
                key = canonical_key(solution, puzzle)
                if key in seen_solutions:
                    continue
                seen_solutions.add(key)
                solutions.append(solution)
                if max_solutions is not None and len(solutions) >= max_solutions:
                    capped = True
                    break
            if capped:
                # Signal workers to skip the subtrees they have not started
                abort_val.value = 1
                break
    except BaseException:
        abort_val.value = 1
        pool.terminate()
        raise
    else:
        if capped:
            pool.terminate()
        else:
            pool.close()
    finally:
        pool.join()
        stop_event.set()
        if display_thread is not None:
            display_thread.join()

    if verbose:
        print(f"\nSearch complete in {time.time() - start_time:.2f} seconds.")
        print(f"Total Solutions Found: {len(solutions)}")

    return solutions


def main():
    parser = argparse.ArgumentParser(description="Solve a cube packing puzzle across several processes.")
    parser.add_argument("-p", "--puzzle", choices=sorted(PUZZLES), default="soma", help="Built-in puzzle to solve.")
    parser.add_argument("-t", "--threads", type=int, default=os.cpu_count(), help="Number of worker processes to use.")
    parser.add_argument("-m", "--max-solutions", type=int, help="Stop after this many solutions.")
    parser.add_argument("-o", "--results-dir", default=persistence.DEFAULT_RESULTS_DIR, help="Directory for solution files.")

    args = parser.parse_args()

    # Validation
    cpu_count = os.cpu_count()
    if args.threads < 1 or args.threads > cpu_count:
        print(f"Error: Requested threads ({args.threads}) must be between 1 and CPU count ({cpu_count}).")
        sys.exit(1)

    puzzle = get_puzzle(args.puzzle)
    solutions = solve_parallel(puzzle, workers=args.threads, max_solutions=args.max_solutions, verbose=True)

    bin_path, txt_path = results_paths(args.results_dir, puzzle)
    try:
        persistence.save(solutions, puzzle, bin_path, txt_path)
    except OSError as e:
        print(f"Failed to save solutions: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Wrote {txt_path} and {bin_path}")


if __name__ == "__main__":
    multiprocessing.freeze_support()
    try:
        main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(0)
