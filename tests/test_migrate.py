"""
Tests for converting legacy solution files to the current format.
"""

import struct
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import migrate_solutions
from migrate_solutions import migrate, migrate_all
from persistence import FILE_MAGIC, encode_solutions, load_all, is_legacy
from pieces import SOMA
from solver import solve


@pytest.fixture(scope="module")
def soma_solutions():
    return solve(SOMA, max_solutions=4)


def legacy_bytes(solutions, puzzle):
    """Current-format bytes with the metadata header stripped back to a bare count."""
    data = encode_solutions(solutions, puzzle)
    return struct.pack("<I", len(solutions)) + data[12:]


class TestMigrate:
    def test_migrates_legacy_file(self, tmp_path, soma_solutions):
        path = tmp_path / "solutions_soma.bin"
        original = legacy_bytes(soma_solutions, SOMA)
        path.write_bytes(original)

        assert migrate(SOMA, str(path)) == "migrated"
        assert path.read_bytes().startswith(FILE_MAGIC)
        assert load_all(str(path), SOMA) == soma_solutions
        assert (tmp_path / "solutions_soma.bin.legacy").read_bytes() == original

    def test_missing_file(self, tmp_path):
        assert migrate(SOMA, str(tmp_path / "solutions_soma.bin")) == "missing"

    def test_current_file_is_left_alone(self, tmp_path, soma_solutions):
        path = tmp_path / "solutions_soma.bin"
        data = encode_solutions(soma_solutions, SOMA)
        path.write_bytes(data)

        assert migrate(SOMA, str(path)) == "current"
        assert path.read_bytes() == data
        assert not (tmp_path / "solutions_soma.bin.legacy").exists()

    def test_invalid_legacy_file(self, tmp_path):
        path = tmp_path / "solutions_soma.bin"
        path.write_bytes(struct.pack("<I", 3) + b"\x07\x00\x00\x00")

        assert migrate(SOMA, str(path)) == "invalid"
        assert is_legacy(str(path))

    def test_too_large(self, tmp_path, monkeypatch, soma_solutions):
        path = tmp_path / "solutions_soma.bin"
        path.write_bytes(legacy_bytes(soma_solutions, SOMA))
        monkeypatch.setattr(migrate_solutions, "MAX_FILE_SIZE", 8)

        assert migrate(SOMA, str(path)) == "too-large"


class TestMigrateAll:
    def test_missing_directory(self, tmp_path):
        assert migrate_all(str(tmp_path / "nope")) == {}

    def test_empty_directory(self, tmp_path):
        assert migrate_all(str(tmp_path)) == {}

    def test_statuses(self, tmp_path, soma_solutions):
        (tmp_path / "solutions_soma.bin").write_bytes(legacy_bytes(soma_solutions, SOMA))
        (tmp_path / "solutions_bedlam.bin").write_bytes(FILE_MAGIC + bytes((1, 4, 64, 13)) + bytes(4))
        (tmp_path / "solutions_rubik.bin").write_bytes(bytes(4))

        statuses = migrate_all(str(tmp_path))

        assert statuses == {
            str(tmp_path / "solutions_bedlam.bin"): "current",
            str(tmp_path / "solutions_rubik.bin"): "unknown-puzzle",
            str(tmp_path / "solutions_soma.bin"): "migrated",
        }
