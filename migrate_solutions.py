import os
import sys
import glob
import shutil
import argparse

from pieces import PUZZLES
import persistence

# Legacy files are parsed whole, in memory
MAX_FILE_SIZE = 512 * 1024 * 1024


def migrate(puzzle, path):
    """Rewrites one legacy header-less solution file in the current format.

    The original bytes are kept next to it as `<path>.legacy`. Returns a short
    status string.
    """
    print(f"Migrating {path}...")

    if not os.path.exists(path):
        print("No solution file found.")
        return "missing"

    if not persistence.is_legacy(path):
        print("Already in the current format, skipping.")
        return "current"

    file_size = os.path.getsize(path)
    if file_size > MAX_FILE_SIZE:
        print(f"Skipping {path}: Too large ({file_size} bytes)")
        return "too-large"

    solutions = persistence.load_all(path, puzzle)
    if solutions is None:
        print(f"Migration failed: {path} is not a valid legacy file for puzzle '{puzzle.name}'.")
        return "invalid"

    backup_path = path + ".legacy"
    try:
        shutil.copyfile(path, backup_path)
        persistence.save_binary(solutions, puzzle, path)
    except OSError as e:
        print(f"Failed to write {path}: {e}", file=sys.stderr)
        return "failed"

    print(f"Successfully migrated {len(solutions)} solutions (backup at {backup_path})")
    return "migrated"


def migrate_all(results_dir=persistence.DEFAULT_RESULTS_DIR):
    """Migrates every `solutions_<preset>.bin` in `results_dir`. Returns {path: status}."""
    if not os.path.exists(results_dir):
        print("No results directory found.")
        return {}

    files = sorted(glob.glob(os.path.join(results_dir, "solutions_*.bin")))
    if not files:
        print("No solution files found.")
        return {}

    print(f"Found {len(files)} solution files.")

    statuses = {}
    for path in files:
        name = os.path.basename(path)[len("solutions_"):-len(".bin")]
        puzzle = PUZZLES.get(name)
        if puzzle is None:
            print(f"Skipping {path}: unknown puzzle '{name}'")
            statuses[path] = "unknown-puzzle"
            continue
        statuses[path] = migrate(puzzle, path)

    return statuses


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Convert legacy header-less solution files to the current format.")
    parser.add_argument("-o", "--results-dir", default=persistence.DEFAULT_RESULTS_DIR,
                        help="Directory holding solutions_<puzzle>.bin files.")
    args = parser.parse_args()
    migrate_all(args.results_dir)
