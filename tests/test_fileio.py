"""
Tests for the directory and file primitives.
"""

import errno
import logging
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plimit.exceptions import (
    CgroupIOError,
    CgroupRemovalError,
    NotFoundError,
    PermissionDeniedError,
)
from plimit.utils.fileio import ensure_directory, read_lines, remove_directory, write_text


# ===========================================================================
# ensure_directory Tests
# ===========================================================================

class TestEnsureDirectory:
    """Tests for ensure_directory()."""

    @pytest.mark.unit
    def test_creates_directory(self, temp_dir: Path):
        target = temp_dir / "cg"
        assert ensure_directory(target) is True
        assert target.is_dir()

    @pytest.mark.unit
    def test_existing_directory_is_success(self, temp_dir: Path):
        target = temp_dir / "cg"
        target.mkdir()
        assert ensure_directory(target) is False
        assert target.is_dir()

    @pytest.mark.unit
    def test_existing_file_fails(self, temp_dir: Path):
        target = temp_dir / "cg"
        target.write_text("not a dir")
        with pytest.raises(CgroupIOError):
            ensure_directory(target)

    @pytest.mark.unit
    def test_missing_parent_fails_without_parents(self, temp_dir: Path):
        with pytest.raises(CgroupIOError):
            ensure_directory(temp_dir / "a" / "b")

    @pytest.mark.unit
    def test_parents_creates_ancestors(self, temp_dir: Path):
        target = temp_dir / "a" / "b"
        assert ensure_directory(target, parents=True) is True
        assert target.is_dir()

    @pytest.mark.unit
    def test_dry_run_creates_nothing(self, temp_dir: Path, caplog):
        caplog.set_level(logging.DEBUG)
        target = temp_dir / "cg"
        assert ensure_directory(target, dry_run=True) is False
        assert not target.exists()
        assert "[dry-run]" in caplog.text

    @pytest.mark.unit
    def test_permission_denied(self, temp_dir: Path):
        with patch.object(Path, 'mkdir', side_effect=PermissionError(errno.EACCES, "denied")):
            with pytest.raises(PermissionDeniedError):
                ensure_directory(temp_dir / "cg")


# ===========================================================================
# write_text Tests
# ===========================================================================

class TestWriteText:
    """Tests for write_text()."""

    @pytest.mark.unit
    def test_writes_exact_content(self, temp_dir: Path):
        target = temp_dir / "cpu.max"
        write_text(target, "50000 100000")
        assert target.read_text() == "50000 100000"

    @pytest.mark.unit
    def test_truncates_previous_content(self, temp_dir: Path):
        target = temp_dir / "memory.max"
        target.write_text("123456789012345")
        write_text(target, "42")
        assert target.read_text() == "42"

    @pytest.mark.unit
    def test_empty_content_truncates(self, temp_dir: Path):
        target = temp_dir / "cgroup.procs"
        target.write_text("1\n2\n")
        write_text(target, "")
        assert target.read_text() == ""

    @pytest.mark.unit
    def test_missing_directory_is_io_error(self, temp_dir: Path):
        with pytest.raises(CgroupIOError):
            write_text(temp_dir / "missing" / "cpu.max", "max")

    @pytest.mark.unit
    def test_dry_run_writes_nothing(self, temp_dir: Path, caplog):
        caplog.set_level(logging.DEBUG)
        target = temp_dir / "cpu.max"
        write_text(target, "max", dry_run=True)
        assert not target.exists()
        assert "write file" in caplog.text

    @pytest.mark.unit
    def test_short_write_is_io_error(self, temp_dir: Path):
        with patch('plimit.utils.fileio.os.write', return_value=1):
            with pytest.raises(CgroupIOError, match="short write"):
                write_text(temp_dir / "io.max", "8:0 rbps=1")

    @pytest.mark.unit
    def test_kernel_rejection_is_io_error(self, temp_dir: Path):
        with patch('plimit.utils.fileio.os.write', side_effect=OSError(errno.EINVAL, "Invalid argument")):
            with pytest.raises(CgroupIOError) as exc_info:
                write_text(temp_dir / "cpu.max", "bogus")
        assert exc_info.value.path == str(temp_dir / "cpu.max")

    @pytest.mark.unit
    def test_eperm_is_permission_error(self, temp_dir: Path):
        with patch('plimit.utils.fileio.os.open', side_effect=PermissionError(errno.EPERM, "denied")):
            with pytest.raises(PermissionDeniedError):
                write_text(temp_dir / "cgroup.procs", "1")

    @pytest.mark.unit
    def test_verbose_logs_action(self, temp_dir: Path, caplog):
        caplog.set_level(logging.DEBUG)
        write_text(temp_dir / "cpu.max", "max", verbose=True)
        assert "ACTION: write file" in caplog.text


# ===========================================================================
# read_lines Tests
# ===========================================================================

class TestReadLines:
    """Tests for read_lines()."""

    @pytest.mark.unit
    def test_returns_lines_in_order(self, temp_dir: Path):
        target = temp_dir / "cgroup.procs"
        target.write_text("300\n12\n\n4500\n")
        assert read_lines(target) == ["300", "12", "4500"]

    @pytest.mark.unit
    def test_empty_file(self, temp_dir: Path):
        target = temp_dir / "cgroup.procs"
        target.write_text("")
        assert read_lines(target) == []

    @pytest.mark.unit
    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(NotFoundError):
            read_lines(temp_dir / "cgroup.procs")


# ===========================================================================
# remove_directory Tests
# ===========================================================================

class TestRemoveDirectory:
    """Tests for remove_directory()."""

    @pytest.mark.unit
    def test_removes_empty_directory(self, temp_dir: Path):
        target = temp_dir / "cg"
        target.mkdir()
        remove_directory(target)
        assert not target.exists()

    @pytest.mark.unit
    def test_non_empty_is_removal_error(self, temp_dir: Path):
        target = temp_dir / "cg"
        (target / "child").mkdir(parents=True)
        with pytest.raises(CgroupRemovalError):
            remove_directory(target)
        assert target.exists()

    @pytest.mark.unit
    def test_busy_is_removal_error(self, temp_dir: Path):
        with patch('plimit.utils.fileio.os.rmdir', side_effect=OSError(errno.EBUSY, "busy")):
            with pytest.raises(CgroupRemovalError):
                remove_directory(temp_dir / "cg")

    @pytest.mark.unit
    def test_missing_is_not_found(self, temp_dir: Path):
        with pytest.raises(NotFoundError):
            remove_directory(temp_dir / "cg")

    @pytest.mark.unit
    def test_dry_run_keeps_directory(self, temp_dir: Path):
        target = temp_dir / "cg"
        target.mkdir()
        remove_directory(target, dry_run=True)
        assert target.is_dir()
