#!/usr/bin/env python3
"""
plimit - Process Resource Limit CLI

Provides command-line interface for cgroup v2 resource limits:
- Create a cgroup, apply CPU / memory / I/O limits and move a process in
- Delete a cgroup
- List and clear the processes of a cgroup
- List limit profiles from the YAML configuration

Usage:
    plimit apply -p 1234 --cpu-percent 50 --mem-max 512M
    plimit apply -p 1234 --cgname web/api --profile small --force
    plimit apply -p 1234 --cgname web/api --attach-only
    plimit apply -p 1234 --cpu-quota 20000 --cpu-period 100000 --dry-run
    plimit delete --cgname web/api
    plimit members web/api --long
    plimit clear web/api
    plimit profiles

Environment Variables:
    PLIMIT_CONFIG        - Path to profile configuration file
    PLIMIT_CGROUP_ROOT   - cgroup v2 mount point
    PLIMIT_VERBOSE       - Enable verbose logging
    PLIMIT_LOG_FILE      - Also log to this file
    PLIMIT_LOG_JSON      - Log as JSON lines
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import psutil

from plimit.cgroups import CgroupManager, LimitSpec
from plimit.config import ProfileConfigLoader, load_profiles
from plimit.constants import ExitCode, PlimitSettings, Version
from plimit.exceptions import ArgumentError, NotFoundError, PlimitError
from plimit.logging_config import configure_from_environment, get_logger, is_verbose
from plimit.utils.error_handling import handle_error
from plimit.utils.parsing import parse_byte_size, parse_integer

logger = get_logger(__name__)


# ANSI color codes
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'
    GRAY = '\033[90m'

    @classmethod
    def disable(cls):
        """Disable colors for non-TTY output."""
        cls.RESET = ''
        cls.BOLD = ''
        cls.RED = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.CYAN = ''
        cls.GRAY = ''


def format_bytes(n: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(n) < 1024.0:
            return f"{n:.1f}{unit}"
        n /= 1024.0
    return f"{n:.1f}PB"


def print_error(msg: str) -> None:
    """Print error message."""
    print(f"{Colors.RED}Error:{Colors.RESET} {msg}", file=sys.stderr)


def print_success(msg: str) -> None:
    """Print success message."""
    print(f"{Colors.GREEN}✓{Colors.RESET} {msg}")


def print_info(msg: str) -> None:
    """Print info message."""
    print(f"{Colors.CYAN}ℹ{Colors.RESET} {msg}")


def process_name(pid: str) -> str:
    """Name of process `pid`, or '?' if it vanished or is not visible."""
    try:
        return psutil.Process(int(pid)).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied, ValueError):
        return '?'


class PlimitCLI:
    """CLI handler for plimit commands."""

    def __init__(
        self,
        settings: Optional[PlimitSettings] = None,
        loader: Optional[ProfileConfigLoader] = None,
        verbose: bool = False,
    ):
        self.loader = loader or ProfileConfigLoader()
        self.settings = settings or PlimitSettings.from_environment(**self.loader.defaults)
        self.verbose = verbose
        self._manager: Optional[CgroupManager] = None

    def _get_manager(self) -> CgroupManager:
        """Get or create the cgroup manager."""
        if self._manager is None:
            self._manager = CgroupManager(settings=self.settings)
        return self._manager

    def _build_spec(self, args: argparse.Namespace) -> LimitSpec:
        """Translate `apply` arguments (and an optional profile) into a LimitSpec."""
        pid = parse_integer(args.pid, "pid") if args.pid is not None else None
        if pid is None and not args.cgname:
            raise ArgumentError("apply requires --pid or --cgname")

        cgname = args.cgname or f"{self.settings.default_parent}/{pid}"

        spec = LimitSpec(
            pid=pid,
            cgname=cgname,
            cpu_percent=(parse_integer(args.cpu_percent, "cpu percent")
                         if args.cpu_percent is not None else None),
            cpu_quota=(parse_integer(args.cpu_quota, "cpu quota")
                       if args.cpu_quota is not None else None),
            cpu_period=(parse_integer(args.cpu_period, "cpu period")
                        if args.cpu_period is not None else None),
            cpu_max_raw=args.cpu_max,
            mem_max=parse_byte_size(args.mem_max) if args.mem_max is not None else None,
            io_max=tuple(args.io_max or ()),
            attach_only=args.attach_only,
            force=args.force,
            dry_run=args.dry_run,
            verbose=self.verbose,
        )

        if args.profile:
            profile = self.loader.require_profile(args.profile)
            logger.debug(f"Using profile '{profile.name}'")
            spec = profile.apply_to(spec)

        return spec.validate()

    def cmd_apply(self, args: argparse.Namespace) -> int:
        """Create a cgroup, apply limits and attach a process."""
        spec = self._build_spec(args)

        if spec.pid is not None and not spec.dry_run and not psutil.pid_exists(spec.pid):
            raise NotFoundError(f"no such process: {spec.pid}")

        result = self._get_manager().apply(spec)

        prefix = "[dry-run] " if result.dry_run else ""
        if spec.pid is not None:
            print_success(f"{prefix}applied cgroup {result.paths.name} for PID {spec.pid}")
        else:
            print_success(f"{prefix}applied cgroup {result.paths.name}")
        return ExitCode.OK

    def cmd_delete(self, args: argparse.Namespace) -> int:
        """Remove an empty cgroup."""
        result = self._get_manager().delete(args.cgname, dry_run=args.dry_run, verbose=self.verbose)
        prefix = "[dry-run] " if result.dry_run else ""
        print_success(f"{prefix}deleted cgroup {result.paths.name}")
        return ExitCode.OK

    def cmd_members(self, args: argparse.Namespace) -> int:
        """List the processes of a cgroup."""
        pids = self._get_manager().list_members(args.name)

        if args.output == 'json':
            output = [{'pid': int(pid), 'name': process_name(pid)} if args.long else int(pid)
                      for pid in pids]
            print(json.dumps(output, indent=2))
            return ExitCode.OK

        if not pids:
            print_info(f"cgroup {args.name} has no processes")
            return ExitCode.OK

        if args.long:
            print(f"{Colors.BOLD}{'PID':<10} {'NAME':<20}{Colors.RESET}")
            for pid in pids:
                print(f"{pid:<10} {process_name(pid):<20}")
        else:
            for pid in pids:
                print(pid)
        return ExitCode.OK

    def cmd_clear(self, args: argparse.Namespace) -> int:
        """Truncate the process list of a cgroup."""
        result = self._get_manager().clear_members(args.name, dry_run=args.dry_run,
                                                   verbose=self.verbose)
        prefix = "[dry-run] " if result.dry_run else ""
        print_success(f"{prefix}cleared members of cgroup {result.paths.name}")
        return ExitCode.OK

    def cmd_profiles(self, args: argparse.Namespace) -> int:
        """List available limit profiles."""
        profiles = self.loader.get_all_profiles()

        if args.output == 'json':
            output = [profiles[name].to_dict() for name in sorted(profiles)]
            print(json.dumps(output, indent=2))
            return ExitCode.OK

        if not profiles:
            print_info("No profiles configured")
            return ExitCode.OK

        print(f"\n{Colors.BOLD}Available Limit Profiles:{Colors.RESET}\n")
        for name in sorted(profiles):
            profile = profiles[name]
            details = []
            if profile.cpu_percent is not None:
                details.append(f"cpu {profile.cpu_percent}%")
            elif profile.cpu_max is not None:
                details.append(f"cpu.max '{profile.cpu_max}'")
            elif profile.cpu_quota is not None:
                details.append(f"cpu {profile.cpu_quota}/{profile.cpu_period}us")
            if profile.mem_max is not None:
                details.append(f"mem {format_bytes(profile.mem_max)}")
            if profile.io_max:
                details.append(f"io {len(profile.io_max)} device(s)")

            print(f"  {Colors.CYAN}{name:<12}{Colors.RESET} {profile.description}")
            if details:
                print(f"  {'':<12} {Colors.GRAY}{', '.join(details)}{Colors.RESET}")

        print(f"\n{Colors.GRAY}Use 'plimit apply --profile <name> -p <pid>' to apply a profile{Colors.RESET}")
        return ExitCode.OK


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='plimit',
        description='Apply cgroup v2 resource limits to processes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  plimit apply -p 1234 --cpu-percent 50 --mem-max 512M
  plimit apply -p 1234 --cgname web/api --profile small --force
  plimit apply -p 1234 --cgname web/api --attach-only
  plimit delete --cgname web/api
  plimit members web/api --long
  plimit profiles
        """
    )

    parser.add_argument(
        '--no-color', action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--json-logs', action='store_true',
        help='Emit log records as JSON'
    )
    parser.add_argument(
        '--log-file', metavar='PATH',
        help='Also write logs to PATH'
    )
    parser.add_argument(
        '--config', metavar='PATH',
        help='Path to profile configuration file or directory'
    )
    parser.add_argument(
        '--root', metavar='PATH',
        help='cgroup v2 mount point (default: /sys/fs/cgroup)'
    )
    parser.add_argument(
        '--version', action='version',
        version=f"%(prog)s {Version.VERSION}"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # apply command
    apply_parser = subparsers.add_parser('apply', help='Create cgroup, apply limits, attach PID')
    apply_parser.add_argument(
        '-p', '--pid', metavar='PID',
        help='Process to move into the cgroup'
    )
    apply_parser.add_argument(
        '--cgname', metavar='NAME',
        help='cgroup name, e.g. web/api (default: plimit/<pid>)'
    )
    apply_parser.add_argument(
        '--profile', metavar='NAME',
        help='Limit profile from the configuration file'
    )
    apply_parser.add_argument(
        '--cpu-percent', metavar='N',
        help='CPU limit as percentage of one CPU (1-100)'
    )
    apply_parser.add_argument(
        '--cpu-quota', metavar='US',
        help='CPU quota in microseconds per period'
    )
    apply_parser.add_argument(
        '--cpu-period', metavar='US',
        help='CPU period in microseconds'
    )
    apply_parser.add_argument(
        '--cpu-max', metavar='STR',
        help="Raw cpu.max value (e.g., 'max 100000')"
    )
    apply_parser.add_argument(
        '--mem-max', metavar='SIZE',
        help='Memory limit (e.g., 512M, 1G)'
    )
    apply_parser.add_argument(
        '--io-max', metavar='STR', action='append',
        help="io.max entry, e.g. '8:0 rbps=1048576' (repeatable)"
    )
    apply_parser.add_argument(
        '--attach-only', action='store_true',
        help='Only move the process; write no limits'
    )
    apply_parser.add_argument(
        '--force', action='store_true',
        help='Create the parent and enable controllers on it'
    )
    apply_parser.add_argument(
        '--dry-run', action='store_true',
        help='Show actions without performing them'
    )

    # delete command
    delete_parser = subparsers.add_parser('delete', help='Remove an empty cgroup')
    delete_parser.add_argument(
        '--cgname', metavar='NAME', required=True,
        help='cgroup to remove'
    )
    delete_parser.add_argument(
        '--dry-run', action='store_true',
        help='Show actions without performing them'
    )

    # members command
    members_parser = subparsers.add_parser('members', aliases=['ls'], help='List cgroup processes')
    members_parser.add_argument('name', help='cgroup name')
    members_parser.add_argument(
        '-o', '--output', choices=['text', 'json'], default='text',
        help='Output format'
    )
    members_parser.add_argument(
        '-l', '--long', action='store_true',
        help='Show process names'
    )

    # clear command
    clear_parser = subparsers.add_parser('clear', help='Truncate cgroup process list')
    clear_parser.add_argument('name', help='cgroup name')
    clear_parser.add_argument(
        '--dry-run', action='store_true',
        help='Show actions without performing them'
    )

    # profiles command
    profiles_parser = subparsers.add_parser('profiles', help='List limit profiles')
    profiles_parser.add_argument(
        '-o', '--output', choices=['text', 'json'], default='text',
        help='Output format'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle colors
    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    configure_from_environment(
        verbose=args.verbose,
        log_file=args.log_file,
        json_format=args.json_logs,
        use_colors=not args.no_color,
    )

    if not args.command:
        parser.print_help()
        return ExitCode.OK

    try:
        loader = load_profiles(args.config)
        overrides = loader.defaults
        if args.root:
            overrides['cgroup_root'] = args.root
        settings = PlimitSettings.from_environment(**overrides)
        cli = PlimitCLI(settings=settings, loader=loader, verbose=is_verbose())

        command_map = {
            'apply': cli.cmd_apply,
            'delete': cli.cmd_delete,
            'members': cli.cmd_members,
            'ls': cli.cmd_members,
            'clear': cli.cmd_clear,
            'profiles': cli.cmd_profiles,
        }

        handler = command_map.get(args.command)
        if handler is None:
            print_error(f"Unknown command: {args.command}")
            return ExitCode.GENERIC
        return handler(args)

    except PlimitError as e:
        step = getattr(e, 'step', None)
        context = handle_error(
            e, args.command,
            additional_context={'step': step} if step else None,
            include_trace=is_verbose(),
            log_level=logging.DEBUG,
        )
        print_error(str(e))
        return context.exit_code
    except KeyboardInterrupt:
        print_error("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
