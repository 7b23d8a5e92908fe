"""
Pytest configuration and shared fixtures for plimit tests.

The cgroup filesystem is replaced by a temporary directory: a directory
containing `cgroup.controllers` is all the engine needs to treat it as a
cgroup v2 root, and control files are plain files there.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

# Add the parent directory to the path for imports
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plimit.cgroups import CgroupManager, LimitSpec
from plimit.constants import PlimitSettings


# ===========================================================================
# Temporary Directory Fixtures
# ===========================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    tmpdir = tempfile.mkdtemp(prefix="plimit_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def cgroup_root(temp_dir: Path) -> Path:
    """Provide a fake cgroup v2 root."""
    root = temp_dir / "cgroup"
    root.mkdir()
    (root / "cgroup.controllers").write_text("cpu io memory pids\n")
    (root / "cgroup.subtree_control").write_text("")
    return root


@pytest.fixture
def settings(cgroup_root: Path) -> PlimitSettings:
    """Provide engine settings pointing at the fake cgroup root."""
    return PlimitSettings(cgroup_root=str(cgroup_root))


# ===========================================================================
# Privilege Fixtures
# ===========================================================================

@pytest.fixture
def privileged():
    """Make the privilege check pass."""
    with patch('plimit.cgroups.manager.is_privileged', return_value=True) as mock:
        yield mock


@pytest.fixture
def unprivileged():
    """Make the privilege check fail."""
    with patch('plimit.cgroups.manager.is_privileged', return_value=False) as mock:
        yield mock


# ===========================================================================
# Engine Fixtures
# ===========================================================================

@pytest.fixture
def manager(settings: PlimitSettings, privileged) -> CgroupManager:
    """Provide a CgroupManager on the fake root with privileges granted."""
    return CgroupManager(settings=settings)


@pytest.fixture
def existing_cgroup(cgroup_root: Path) -> Path:
    """Provide an existing cgroup plimit/1234 under an existing parent."""
    path = cgroup_root / "plimit" / "1234"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def end_to_end_spec() -> LimitSpec:
    """pid 1234 in plimit/1234 at 50% CPU and 512 MiB."""
    return LimitSpec(
        pid=1234,
        cgname="plimit/1234",
        cpu_percent=50,
        mem_max=536870912,
    )


# ===========================================================================
# Configuration Fixtures
# ===========================================================================

SAMPLE_PROFILES = """\
version: "1"
defaults:
  default_parent: limited
  controllers: [cpu, memory]
profiles:
  small:
    description: "Quarter CPU, 256M"
    cpu_percent: 25
    mem_max: 256M
    io_max: ["8:0 rbps=1048576"]
  batch:
    description: "Throttled batch work"
    cpu_quota: 20000
    cpu_period: 100000
  unlimited:
    cpu_max: "max 100000"
"""


@pytest.fixture
def profile_file(temp_dir: Path) -> Path:
    """Provide a YAML profile file with three profiles."""
    path = temp_dir / "profiles.yaml"
    path.write_text(SAMPLE_PROFILES)
    return path


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by setup_logging() during a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clean_plimit_env(monkeypatch):
    """Keep PLIMIT_* variables of the calling shell out of the tests."""
    for key in list(os.environ):
        if key.startswith('PLIMIT_'):
            monkeypatch.delenv(key)


# ===========================================================================
# Helper Functions
# ===========================================================================

def read_control(path: Path) -> str:
    """Read a control file written by the engine."""
    return path.read_text()


def snapshot(root: Path) -> dict:
    """Map of every path under `root` to its content (None for directories)."""
    result = {}
    for p in sorted(root.rglob('*')):
        result[str(p.relative_to(root))] = None if p.is_dir() else p.read_bytes()
    return result


# ===========================================================================
# Markers
# ===========================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "cli: Command-line interface tests")
