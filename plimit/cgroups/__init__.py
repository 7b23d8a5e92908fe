"""
cgroup v2 Engine for plimit

Creates cgroups, applies resource limits and moves processes into them by
writing the kernel's cgroup v2 filesystem interface.

Components:
- paths: cgroup name to directory derivation
- controllers: controller file writes and controller enabling
- limits: LimitSpec and translation to cpu.max / memory.max / io.max values
- membership: cgroup.procs attach, list and clear
- manager: lifecycle orchestration of a single request

Usage:
    from plimit.cgroups import CgroupManager, LimitSpec

    manager = CgroupManager()
    manager.apply(LimitSpec(pid=1234, cgname="plimit/1234", cpu_percent=50))
"""

from .paths import (
    CgroupPaths,
    resolve,
    split_name,
)

from .controllers import (
    ActionKind,
    CgroupAction,
    write_controller,
    enable_controllers,
)

from .limits import (
    LimitSpec,
    percent_to_quota,
    cpu_max_value,
    memory_max_value,
    io_max_values,
)

from .membership import (
    attach,
    list_members,
    clear_members,
)

from .manager import (
    LifecycleState,
    ApplyResult,
    CgroupManager,
    apply_limits,
)

__all__ = [
    # Paths
    'CgroupPaths',
    'resolve',
    'split_name',
    # Controllers
    'ActionKind',
    'CgroupAction',
    'write_controller',
    'enable_controllers',
    # Limits
    'LimitSpec',
    'percent_to_quota',
    'cpu_max_value',
    'memory_max_value',
    'io_max_values',
    # Membership
    'attach',
    'list_members',
    'clear_members',
    # Orchestration
    'LifecycleState',
    'ApplyResult',
    'CgroupManager',
    'apply_limits',
]
