"""
Cgroup v2 lifecycle orchestration.

Sequences directory creation, controller enabling, limit application and
process migration into one request, and tears cgroups down.

Create/apply path:

    START -> PARENT_READY (force only) -> SELF_READY -> LIMITS_APPLIED
          -> ATTACHED -> DONE

Delete path:

    START -> DELETED -> DONE

Any failing step aborts the request. Already-applied steps are not rolled
back: cgroup writes are not transactional, and the partial state is left
for the caller to inspect or retry. Re-running the same request is safe;
every write simply overwrites the previous value.

Concurrent invocations are not coordinated. The kernel is the only arbiter
of concurrent mutations; callers that need mutual exclusion must lock
externally.

Usage:
    manager = CgroupManager()

    spec = LimitSpec(pid=1234, cgname="plimit/1234", cpu_percent=50,
                     mem_max=parse_byte_size("512M"))
    result = manager.apply(spec)

    for action in result.actions:
        print(action.kind.value, action.path, action.value)

    manager.list_members("plimit/1234")
    manager.delete("plimit/1234")
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..constants import ControllerFiles, Paths, PlimitSettings
from ..exceptions import ArgumentError, NotFoundError, PermissionDeniedError, PlimitError
from ..logging_config import get_logger
from ..privilege import has_cgroup_v2, is_privileged
from ..utils.fileio import ensure_directory, remove_directory
from . import membership
from .controllers import ActionKind, CgroupAction, enable_controllers, write_controller
from .limits import LimitSpec, cpu_max_value, io_max_values, memory_max_value
from .paths import CgroupPaths, resolve

logger = get_logger(__name__)


class LifecycleState(Enum):
    """Progress of one request through the orchestrator."""
    START = "start"
    PARENT_READY = "parent_ready"
    SELF_READY = "self_ready"
    LIMITS_APPLIED = "limits_applied"
    ATTACHED = "attached"
    DELETED = "deleted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ApplyResult:
    """Outcome of one orchestration request."""
    paths: CgroupPaths
    dry_run: bool = False
    state: LifecycleState = LifecycleState.START
    actions: List[CgroupAction] = field(default_factory=list)

    @property
    def cgroup_path(self) -> Path:
        return self.paths.cgroup_path

    @property
    def parent_path(self) -> Path:
        return self.paths.parent_path

    @property
    def writes(self) -> List[Tuple[str, str]]:
        """(file, value) pairs written, in order."""
        return [(a.file, a.value) for a in self.actions if a.value is not None]

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            'cgroup': self.paths.name,
            'cgroup_path': str(self.paths.cgroup_path),
            'parent_path': str(self.paths.parent_path),
            'dry_run': self.dry_run,
            'state': self.state.value,
            'actions': [a.to_dict() for a in self.actions],
        }


class CgroupManager:
    """
    Applies resource limits through the cgroup v2 filesystem.

    The manager holds configuration only; every request derives its paths
    afresh and reads nothing back from previous requests.
    """

    def __init__(
        self,
        settings: Optional[PlimitSettings] = None,
        root: Optional[Union[str, Path]] = None,
    ):
        self._settings = settings or PlimitSettings.from_environment()
        self._root = Path(root) if root is not None else Path(self._settings.cgroup_root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def settings(self) -> PlimitSettings:
        return self._settings

    def resolve(self, name: Optional[str]) -> CgroupPaths:
        """Derive the cgroup and parent directories for `name`."""
        return resolve(name, self._root, self._settings.default_parent)

    def check_preconditions(self) -> None:
        """
        Fail before any mutation if cgroup v2 is absent or the caller is
        not privileged.
        """
        if not has_cgroup_v2(self._root):
            raise NotFoundError(
                f"cgroup v2 not detected at {self._root}",
                path=str(self._root / Paths.CONTROLLERS_FILE),
            )
        if not is_privileged():
            raise PermissionDeniedError("must be run as root or with CAP_SYS_ADMIN")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def apply(self, spec: LimitSpec) -> ApplyResult:
        """
        Execute one request: delete, or create/limit/attach.

        Raises:
            PlimitError: the first failing step's error; remaining steps
                are skipped
        """
        spec.validate()
        if spec.delete:
            return self.delete(spec.cgname, dry_run=spec.dry_run, verbose=spec.verbose)

        if not spec.cgname:
            raise ArgumentError("a cgroup name is required")

        self.check_preconditions()
        result = ApplyResult(paths=self.resolve(spec.cgname), dry_run=spec.dry_run)
        paths = result.paths

        if spec.verbose:
            logger.verbose(f"Applying limits to cgroup {paths.name}",
                           extra={'extra_data': {'path': paths.cgroup_path}})

        with self._step(result, "prepare parent"):
            if spec.force:
                result.actions.append(self._ensure_directory(
                    paths.parent_path, spec, parents=True))
                result.actions.append(enable_controllers(
                    paths.parent_path, self._settings.controller_list,
                    dry_run=spec.dry_run, verbose=spec.verbose))
                result.state = LifecycleState.PARENT_READY

        with self._step(result, "create cgroup"):
            result.actions.append(self._ensure_directory(paths.cgroup_path, spec))
            result.state = LifecycleState.SELF_READY

        if not spec.attach_only:
            with self._step(result, "apply cpu limits"):
                self._apply_cpu(result, spec)
            with self._step(result, "apply memory limits"):
                self._apply_memory(result, spec)
            with self._step(result, "apply io limits"):
                self._apply_io(result, spec)
            result.state = LifecycleState.LIMITS_APPLIED

        if spec.pid is not None and spec.pid > 0:
            with self._step(result, "move pid"):
                result.actions.append(membership.attach(
                    paths.cgroup_path, spec.pid,
                    dry_run=spec.dry_run, verbose=spec.verbose))
                result.state = LifecycleState.ATTACHED

        result.state = LifecycleState.DONE
        return result

    def delete(self, name: Optional[str], dry_run: bool = False, verbose: bool = False) -> ApplyResult:
        """
        Remove the cgroup directory for `name`, and only that directory.

        Fails if the cgroup still holds processes or child cgroups; the
        engine never empties it first.
        """
        if not name:
            raise ArgumentError("delete requires a cgroup name")

        self.check_preconditions()
        result = ApplyResult(paths=self.resolve(name), dry_run=dry_run)

        with self._step(result, "delete cgroup"):
            remove_directory(result.cgroup_path, dry_run=dry_run, verbose=verbose)
            result.actions.append(CgroupAction(
                kind=ActionKind.REMOVE_DIRECTORY, path=result.cgroup_path))
            result.state = LifecycleState.DELETED

        result.state = LifecycleState.DONE
        return result

    def list_members(self, name: str) -> List[str]:
        """PIDs in the cgroup `name`, as strings, in kernel order."""
        paths = self.resolve(name)
        if not paths.cgroup_path.is_dir():
            raise NotFoundError(f"cgroup '{paths.name}' does not exist",
                                path=str(paths.cgroup_path))
        return membership.list_members(paths.cgroup_path)

    def clear_members(self, name: str, dry_run: bool = False, verbose: bool = False) -> ApplyResult:
        """Truncate the cgroup's `cgroup.procs`."""
        self.check_preconditions()
        result = ApplyResult(paths=self.resolve(name), dry_run=dry_run)
        with self._step(result, "clear members"):
            result.actions.append(membership.clear_members(
                result.cgroup_path, dry_run=dry_run, verbose=verbose))
        result.state = LifecycleState.DONE
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @contextmanager
    def _step(self, result: ApplyResult, name: str) -> Iterator[None]:
        """Tag a failing step's error and mark the request failed."""
        try:
            yield
        except PlimitError as e:
            result.state = LifecycleState.FAILED
            if getattr(e, 'step', None) is None:
                e.step = name
            logger.debug(f"Step '{name}' failed for cgroup {result.paths.name}: {e}")
            raise

    def _ensure_directory(self, path: Path, spec: LimitSpec, parents: bool = False) -> CgroupAction:
        ensure_directory(path, mode=self._settings.dir_mode,
                         dry_run=spec.dry_run, verbose=spec.verbose, parents=parents)
        return CgroupAction(kind=ActionKind.ENSURE_DIRECTORY, path=path)

    def _write(self, result: ApplyResult, spec: LimitSpec, file: str, value: str) -> None:
        result.actions.append(write_controller(
            result.cgroup_path, file, value, dry_run=spec.dry_run, verbose=spec.verbose))

    def _apply_cpu(self, result: ApplyResult, spec: LimitSpec) -> None:
        value = cpu_max_value(spec)
        if value is not None:
            self._write(result, spec, ControllerFiles.CPU_MAX, value)

    def _apply_memory(self, result: ApplyResult, spec: LimitSpec) -> None:
        value = memory_max_value(spec)
        if value is not None:
            self._write(result, spec, ControllerFiles.MEMORY_MAX, value)

    def _apply_io(self, result: ApplyResult, spec: LimitSpec) -> None:
        for entry in io_max_values(spec):
            self._write(result, spec, ControllerFiles.IO_MAX, entry)


def apply_limits(spec: LimitSpec, settings: Optional[PlimitSettings] = None) -> ApplyResult:
    """Apply `spec` with a manager built from `settings` (or the environment)."""
    return CgroupManager(settings=settings).apply(spec)


__all__ = [
    'LifecycleState',
    'ApplyResult',
    'CgroupManager',
    'apply_limits',
]
