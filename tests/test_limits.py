"""
Tests for LimitSpec validation and limit value translation.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plimit.cgroups.limits import (
    LimitSpec,
    cpu_forms_set,
    cpu_max_value,
    format_cpu_max,
    io_max_values,
    memory_max_value,
    percent_to_quota,
)
from plimit.exceptions import ArgumentError


# ===========================================================================
# CPU Translation Tests
# ===========================================================================

class TestCpuTranslation:
    """Tests for cpu.max value generation."""

    @pytest.mark.unit
    @pytest.mark.parametrize("percent", [1, 7, 33, 50, 99, 100])
    def test_percent_to_quota(self, percent):
        """Quota is floor(100000 * p / 100) over a 100000us period."""
        quota, period = percent_to_quota(percent)
        assert quota == (100000 * percent) // 100
        assert period == 100000

    @pytest.mark.unit
    def test_percent_value(self):
        assert cpu_max_value(LimitSpec(cpu_percent=50)) == "50000 100000"
        assert cpu_max_value(LimitSpec(cpu_percent=100)) == "100000 100000"

    @pytest.mark.unit
    def test_quota_period_value(self):
        spec = LimitSpec(cpu_quota=20000, cpu_period=50000)
        assert cpu_max_value(spec) == "20000 50000"

    @pytest.mark.unit
    def test_raw_value_verbatim(self):
        assert cpu_max_value(LimitSpec(cpu_max_raw="max 100000")) == "max 100000"

    @pytest.mark.unit
    def test_no_cpu_limit(self):
        assert cpu_max_value(LimitSpec()) is None

    @pytest.mark.unit
    def test_raw_wins_over_percent(self):
        """Priority holds even for a spec that skipped validation."""
        spec = LimitSpec(cpu_max_raw="max", cpu_percent=10, cpu_quota=1, cpu_period=2)
        assert cpu_max_value(spec) == "max"

    @pytest.mark.unit
    def test_percent_wins_over_quota(self):
        spec = LimitSpec(cpu_percent=10, cpu_quota=1, cpu_period=2)
        assert cpu_max_value(spec) == "10000 100000"

    @pytest.mark.unit
    def test_format_cpu_max(self):
        assert format_cpu_max(25000, 100000) == "25000 100000"


# ===========================================================================
# Memory and I/O Translation Tests
# ===========================================================================

class TestMemoryAndIoTranslation:
    """Tests for memory.max and io.max values."""

    @pytest.mark.unit
    def test_memory_decimal(self):
        assert memory_max_value(LimitSpec(mem_max=536870912)) == "536870912"

    @pytest.mark.unit
    def test_memory_zero_is_a_limit(self):
        assert memory_max_value(LimitSpec(mem_max=0)) == "0"

    @pytest.mark.unit
    def test_memory_unset(self):
        assert memory_max_value(LimitSpec()) is None

    @pytest.mark.unit
    def test_io_entries_in_order(self):
        spec = LimitSpec(io_max=["8:0 rbps=1048576", "8:16 wiops=100"])
        assert list(io_max_values(spec)) == ["8:0 rbps=1048576", "8:16 wiops=100"]

    @pytest.mark.unit
    def test_io_max_is_immutable_copy(self):
        """The spec owns its io.max entries."""
        entries = ["8:0 rbps=1"]
        spec = LimitSpec(io_max=entries)
        entries.append("8:16 rbps=2")
        assert spec.io_max == ("8:0 rbps=1",)
        assert isinstance(spec.io_max, tuple)


# ===========================================================================
# Validation Tests
# ===========================================================================

class TestLimitSpecValidation:
    """Tests for LimitSpec.validate()."""

    @pytest.mark.unit
    def test_valid_spec_returns_self(self):
        spec = LimitSpec(pid=1, cgname="a/b", cpu_percent=50, mem_max=1024)
        assert spec.validate() is spec

    @pytest.mark.unit
    def test_delete_with_attach_only_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(cgname="a", delete=True, attach_only=True).validate()

    @pytest.mark.unit
    @pytest.mark.parametrize("pid", [0, -1])
    def test_non_positive_pid_rejected(self, pid):
        with pytest.raises(ArgumentError):
            LimitSpec(pid=pid, cgname="a").validate()

    @pytest.mark.unit
    def test_quota_without_period_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_quota=1000).validate()
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_period=1000).validate()

    @pytest.mark.unit
    def test_zero_quota_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_quota=0, cpu_period=100000).validate()

    @pytest.mark.unit
    def test_two_cpu_forms_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_percent=50, cpu_max_raw="max").validate()
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_percent=50, cpu_quota=1, cpu_period=2).validate()

    @pytest.mark.unit
    @pytest.mark.parametrize("percent", [0, 101, -5])
    def test_percent_out_of_range_rejected(self, percent):
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_percent=percent).validate()

    @pytest.mark.unit
    def test_blank_raw_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(cpu_max_raw="  ").validate()

    @pytest.mark.unit
    def test_negative_memory_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(mem_max=-1).validate()

    @pytest.mark.unit
    def test_blank_io_entry_rejected(self):
        with pytest.raises(ArgumentError):
            LimitSpec(io_max=["8:0 rbps=1", ""]).validate()

    @pytest.mark.unit
    def test_cpu_forms_set(self):
        assert cpu_forms_set(LimitSpec()) == 0
        assert cpu_forms_set(LimitSpec(cpu_percent=5)) == 1
        assert cpu_forms_set(LimitSpec(cpu_percent=5, cpu_max_raw="max")) == 2


# ===========================================================================
# Defaults Tests
# ===========================================================================

class TestWithDefaults:
    """Tests for LimitSpec.with_defaults()."""

    @pytest.mark.unit
    def test_fills_unset_fields(self):
        spec = LimitSpec(pid=1).with_defaults(mem_max=1024, io_max=("8:0 rbps=1",))
        assert spec.mem_max == 1024
        assert spec.io_max == ("8:0 rbps=1",)

    @pytest.mark.unit
    def test_keeps_set_fields(self):
        spec = LimitSpec(mem_max=2048).with_defaults(mem_max=1024)
        assert spec.mem_max == 2048

    @pytest.mark.unit
    def test_returns_same_object_when_nothing_changes(self):
        spec = LimitSpec(mem_max=2048)
        assert spec.with_defaults(mem_max=None) is spec

    @pytest.mark.unit
    def test_has_limits(self):
        assert not LimitSpec(pid=1).has_limits
        assert LimitSpec(mem_max=0).has_limits
        assert LimitSpec(io_max=["8:0 rbps=1"]).has_limits
        assert LimitSpec(cpu_max_raw="max").has_cpu_limit

    @pytest.mark.unit
    def test_to_dict(self):
        data = LimitSpec(pid=7, cgname="a/b", io_max=["x"]).to_dict()
        assert data['pid'] == 7
        assert data['io_max'] == ["x"]
