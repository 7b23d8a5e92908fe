"""
CLI Module for plimit

Provides the command-line tool:
- plimitctl: apply, delete and inspect cgroup limits

Usage:
    python -m plimit.cli.plimitctl apply -p 1234 --cpu-percent 50
    python -m plimit.cli.plimitctl members plimit/1234
"""

from .plimitctl import PlimitCLI, main as plimitctl_main

__all__ = [
    'PlimitCLI',
    'plimitctl_main',
]
