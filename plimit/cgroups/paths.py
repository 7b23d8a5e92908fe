"""
Cgroup path derivation.

Maps a user-supplied cgroup name to the absolute directory of the cgroup
and of its parent:

    "plimit/1234"  ->  {root}/plimit/1234, parent {root}/plimit
    "web/api"      ->  {root}/web/api,     parent {root}/web
    "1234"         ->  {root}/plimit/1234, parent {root}/plimit

Names without a '/' are grouped under the default collection so that
unscoped requests still share a common ancestor. Paths are computed fresh on
every call; the filesystem is the only source of truth.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..constants import Limits, Paths
from ..exceptions import ArgumentError


@dataclass(frozen=True)
class CgroupPaths:
    """Absolute locations of a cgroup and its parent."""
    name: str
    cgroup_path: Path
    parent_path: Path


def split_name(name: Optional[str]) -> List[str]:
    """
    Validate a cgroup name and return its path segments.

    Leading and trailing '/' are ignored. Empty segments, '.' and '..'
    are rejected so that a name can never escape the cgroup root.
    """
    if name is None or not name.strip('/'):
        raise ArgumentError("cgroup name must not be empty")
    if '\0' in name:
        raise ArgumentError("cgroup name must not contain NUL bytes")

    segments = name.strip('/').split('/')
    for segment in segments:
        if not segment:
            raise ArgumentError(f"cgroup name has an empty path segment: '{name}'")
        if segment in ('.', '..'):
            raise ArgumentError(f"cgroup name must not contain '{segment}': '{name}'")
        if len(segment.encode('utf-8')) > Limits.NAME_MAX:
            raise ArgumentError(
                f"cgroup name segment longer than {Limits.NAME_MAX} bytes: '{segment[:32]}...'"
            )
    return segments


def join_checked(root: Union[str, Path], segments: List[str]) -> Path:
    """Join `segments` under `root`, failing instead of exceeding PATH_MAX."""
    path = Path(root).joinpath(*segments)
    # +1 for the file name component written inside the directory
    if len(str(path).encode('utf-8')) + 1 > Limits.PATH_MAX:
        raise ArgumentError(f"cgroup path longer than {Limits.PATH_MAX} bytes", path=str(path)[:64])
    return path


def resolve(
    name: Optional[str],
    root: Union[str, Path] = Paths.CGROUP_ROOT,
    default_parent: str = Paths.DEFAULT_PARENT,
) -> CgroupPaths:
    """
    Derive the cgroup directory and its parent for `name`.

    Raises:
        ArgumentError: empty name, traversal segments, a default parent that
            is not a single segment, or over-long path
    """
    segments = split_name(name)
    if len(segments) == 1:
        parent_segments = split_name(default_parent)
        if len(parent_segments) != 1:
            raise ArgumentError(f"default parent must be a single name: '{default_parent}'")
        segments = parent_segments + segments

    cgroup_path = join_checked(root, segments)
    parent_path = join_checked(root, segments[:-1])
    return CgroupPaths(name='/'.join(segments), cgroup_path=cgroup_path, parent_path=parent_path)
