"""
Limit requests and their translation into controller values.

A LimitSpec describes one orchestration request. The translators turn its
user-facing fields into the exact strings the kernel expects:

    cpu.max     "<quota> <period>" or a raw string such as "max 100000"
    memory.max  decimal byte count
    io.max      "MAJ:MIN key=val ..." entries, written one at a time
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

from ..constants import Limits
from ..exceptions import ArgumentError


@dataclass(frozen=True)
class LimitSpec:
    """Validated description of one orchestration request."""

    pid: Optional[int] = None
    cgname: Optional[str] = None

    # CPU: at most one of percent, quota+period, raw string
    cpu_percent: Optional[int] = None  # 1..100 percent of a single CPU
    cpu_quota: Optional[int] = None  # Microseconds per period
    cpu_period: Optional[int] = None  # Period in microseconds
    cpu_max_raw: Optional[str] = None  # Written verbatim to cpu.max

    # Memory ceiling in bytes
    mem_max: Optional[int] = None

    # I/O limits (per device, format: "MAJ:MIN rbps=... wbps=...")
    io_max: Tuple[str, ...] = field(default_factory=tuple)

    attach_only: bool = False
    delete: bool = False
    force: bool = False
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self):
        # Accept any sequence, keep an immutable tuple
        if not isinstance(self.io_max, tuple):
            object.__setattr__(self, 'io_max', tuple(self.io_max or ()))

    @property
    def has_cpu_limit(self) -> bool:
        return cpu_forms_set(self) > 0

    @property
    def has_limits(self) -> bool:
        return self.has_cpu_limit or self.mem_max is not None or bool(self.io_max)

    def validate(self) -> 'LimitSpec':
        """
        Check the request's invariants.

        Returns:
            self, for chaining

        Raises:
            ArgumentError: on the first violated invariant
        """
        if self.delete and self.attach_only:
            raise ArgumentError("delete and attach-only cannot be combined")

        if self.pid is not None and self.pid <= 0:
            raise ArgumentError(f"pid must be a positive integer, got {self.pid}")

        if (self.cpu_quota is None) != (self.cpu_period is None):
            raise ArgumentError("cpu quota and cpu period are required together")
        if self.cpu_quota is not None and (self.cpu_quota <= 0 or self.cpu_period <= 0):
            raise ArgumentError("cpu quota and cpu period must both be greater than 0")

        if cpu_forms_set(self) > 1:
            raise ArgumentError(
                "only one of cpu percent, cpu quota/period or raw cpu.max may be given"
            )

        if self.cpu_percent is not None and not (
                Limits.CPU_PERCENT_MIN <= self.cpu_percent <= Limits.CPU_PERCENT_MAX):
            raise ArgumentError(
                f"cpu percent must be between {Limits.CPU_PERCENT_MIN} and "
                f"{Limits.CPU_PERCENT_MAX}, got {self.cpu_percent}"
            )

        if self.cpu_max_raw is not None and not self.cpu_max_raw.strip():
            raise ArgumentError("raw cpu.max value must not be empty")

        if self.mem_max is not None and self.mem_max < 0:
            raise ArgumentError(f"memory limit must not be negative, got {self.mem_max}")

        for entry in self.io_max:
            if not isinstance(entry, str) or not entry.strip():
                raise ArgumentError("io.max entries must be non-empty strings")

        return self

    def with_defaults(self, **values: Any) -> 'LimitSpec':
        """Return a copy with unset fields filled from `values`."""
        updates = {k: v for k, v in values.items()
                   if v is not None and getattr(self, k) in (None, ())}
        return replace(self, **updates) if updates else self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'pid': self.pid,
            'cgname': self.cgname,
            'cpu_percent': self.cpu_percent,
            'cpu_quota': self.cpu_quota,
            'cpu_period': self.cpu_period,
            'cpu_max_raw': self.cpu_max_raw,
            'mem_max': self.mem_max,
            'io_max': list(self.io_max),
            'attach_only': self.attach_only,
            'delete': self.delete,
            'force': self.force,
            'dry_run': self.dry_run,
            'verbose': self.verbose,
        }


def cpu_forms_set(spec: LimitSpec) -> int:
    """Count how many CPU limit forms `spec` sets."""
    return sum((
        spec.cpu_max_raw is not None,
        spec.cpu_percent is not None,
        spec.cpu_quota is not None or spec.cpu_period is not None,
    ))


def percent_to_quota(percent: int, period: int = Limits.CPU_PERIOD_US) -> Tuple[int, int]:
    """Convert a percentage of one CPU into a (quota, period) pair."""
    return (period * percent) // 100, period


def format_cpu_max(quota: int, period: int) -> str:
    return f"{quota} {period}"


def cpu_max_value(spec: LimitSpec) -> Optional[str]:
    """
    Value for cpu.max, or None when no CPU limit is requested.

    Raw string wins over percentage, which wins over quota+period.
    """
    if spec.cpu_max_raw is not None:
        return spec.cpu_max_raw
    if spec.cpu_percent is not None and spec.cpu_percent > 0:
        return format_cpu_max(*percent_to_quota(spec.cpu_percent))
    if spec.cpu_quota is not None and spec.cpu_period is not None \
            and spec.cpu_quota > 0 and spec.cpu_period > 0:
        return format_cpu_max(spec.cpu_quota, spec.cpu_period)
    return None


def memory_max_value(spec: LimitSpec) -> Optional[str]:
    """Value for memory.max, or None when unset."""
    if spec.mem_max is None or spec.mem_max < 0:
        return None
    return str(spec.mem_max)


def io_max_values(spec: LimitSpec) -> Sequence[str]:
    """Entries for io.max, in request order."""
    return spec.io_max


__all__ = [
    'LimitSpec',
    'cpu_forms_set',
    'percent_to_quota',
    'format_cpu_max',
    'cpu_max_value',
    'memory_max_value',
    'io_max_values',
]
