"""Command-line interface for freqctl."""

import argparse
import json
import sys
from pathlib import Path

from freqctl import __version__
from freqctl.core.config import Settings, load_settings, user_config_path
from freqctl.core.context import Context
from freqctl.core.logging import LOG_LEVELS, EventLogger, get_log_path, query_logs
from freqctl.core.output import Output
from freqctl.core.profiles import ProfileError, find_profiles, load_profile, validate_profile
from freqctl.lib.attributes import AttributeStore
from freqctl.lib.counters import CounterSource
from freqctl.lib.errors import FreqError
from freqctl.lib.policy import CpuPolicy, PolicyRepository
from freqctl.lib.sampler import PerformanceSampler, SampleResult
from freqctl.lib.sampling import STATUS_OK, CpuReading, SamplingLoop


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="freqctl",
        description="Inspect and change CPU frequency policy, measure effective frequency",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"freqctl {__version__}",
    )
    parser.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="Output format (default: plain)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser("info", help="Show frequency policy of CPUs")
    info_parser.add_argument(
        "--cpu", "-c",
        type=int,
        help="CPU to show (default: all)",
    )

    # set command
    set_parser = subparsers.add_parser("set", help="Change frequency policy of a CPU")
    set_parser.add_argument("--cpu", "-c", type=int, required=True, help="CPU to change")
    set_parser.add_argument("--governor", "-g", help="Scaling governor")
    set_parser.add_argument("--min", "-d", type=int, help="Lower scaling bound in kHz")
    set_parser.add_argument("--max", "-u", type=int, help="Upper scaling bound in kHz")
    set_parser.add_argument(
        "--freq", "-f",
        type=int,
        help="Fixed frequency in kHz (switches to the userspace governor)",
    )

    # apply command
    apply_parser = subparsers.add_parser("apply", help="Apply a policy profile")
    apply_parser.add_argument("profile", help="Profile file or profile name")
    apply_parser.add_argument(
        "--cpu", "-c",
        type=int,
        action="append",
        dest="cpus",
        help="CPU to apply to (can be specified multiple times)",
    )

    # monitor command
    monitor_parser = subparsers.add_parser(
        "monitor", help="Measure average frequency and C-state residency"
    )
    monitor_parser.add_argument(
        "--cpu", "-c",
        type=int,
        help="CPU to measure (default: all)",
    )
    monitor_parser.add_argument(
        "--interval", "-i",
        type=float,
        help="Refresh interval in seconds (default: 1)",
    )
    monitor_parser.add_argument(
        "--once", "-o",
        action="store_true",
        help="Exit after one interval",
    )

    # doctor command
    subparsers.add_parser("doctor", help="Check cpufreq and MSR interface availability")

    # logs command
    logs_parser = subparsers.add_parser("logs", help="Show today's event log")
    logs_parser.add_argument(
        "--tool",
        choices=["policy", "monitor"],
        default="policy",
        help="Event log to show (default: policy)",
    )
    logs_parser.add_argument(
        "--level",
        choices=list(LOG_LEVELS),
        default="info",
        help="Minimum level (default: info)",
    )
    logs_parser.add_argument("--limit", type=int, help="Maximum entries to show")

    return parser


def build_repository(
    context: Context, settings: Settings, logger: EventLogger | None = None
) -> PolicyRepository:
    store = AttributeStore(context, root=settings.sysfs_root)
    return PolicyRepository(store, logger=logger)


def policy_logger(settings: Settings) -> EventLogger:
    return EventLogger("policy", get_log_path("policy", settings.log_dir))


def fail(message: str, code: int = 1) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return code


def describe_cpu(repository: PolicyRepository, cpu: int, output: Output) -> dict:
    """Collect everything known about one CPU; missing parts become None."""
    info = {}

    def attempt(key, func):
        try:
            info[key] = func(cpu)
        except FreqError as e:
            info[key] = None
            output.warning(f"cpu {cpu}: {e}")

    attempt("driver", repository.get_driver)
    attempt("hardware_limits", lambda c: vars(repository.get_hardware_limits(c)))
    attempt("policy", lambda c: vars(repository.get_policy(c)))
    info["current_freq"] = repository.get_freq_kernel(cpu) or None
    attempt("available_governors", repository.get_available_governors)
    attempt("available_frequencies", repository.get_available_frequencies)
    attempt("affected_cpus", repository.get_affected_cpus)
    return info


def cmd_info(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Show frequency policy of one or all CPUs."""
    repository = build_repository(context, settings)

    if args.cpu is not None:
        if not repository.cpu_exists(args.cpu):
            return fail(f"CPU {args.cpu} does not exist", 2)
        cpus = [args.cpu]
    else:
        cpus = repository.list_cpus()
        if not cpus:
            return fail("No CPUs found under " + settings.sysfs_root, 2)

    output = Output()
    for cpu in cpus:
        output.emit({cpu: describe_cpu(repository, cpu, output)})

    output.render(args.format, title="CPU frequency policy")

    if args.cpu is not None and output.data[args.cpu]["policy"] is None:
        return 1
    return 0


def cmd_set(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Change frequency policy of one CPU."""
    changes = [args.governor, args.min, args.max]
    if args.freq is None and all(v is None for v in changes):
        return fail("Nothing to set: give --governor, --min, --max or --freq", 2)
    if args.freq is not None and any(v is not None for v in changes):
        return fail("--freq cannot be combined with --governor, --min or --max", 2)

    with policy_logger(settings) as logger:
        repository = build_repository(context, settings, logger)
        if not repository.cpu_exists(args.cpu):
            return fail(f"CPU {args.cpu} does not exist", 2)

        try:
            if args.freq is not None:
                repository.set_target_frequency(args.cpu, args.freq)
            elif all(v is not None for v in changes):
                repository.set_policy(
                    args.cpu,
                    CpuPolicy(governor=args.governor, min=args.min, max=args.max),
                )
            else:
                if args.max is not None:
                    repository.set_max(args.cpu, args.max)
                if args.min is not None:
                    repository.set_min(args.cpu, args.min)
                if args.governor is not None:
                    repository.set_governor(args.cpu, args.governor)
        except FreqError as e:
            return fail(str(e))

    return 0


def resolve_profile(name: str):
    """Load a profile from a path, or by name from the user profile directory."""
    path = Path(name)
    if path.exists():
        return load_profile(path)

    for profile in find_profiles(user_config_path().parent / "profiles"):
        if profile.name == name:
            return profile
    raise ProfileError(f"Profile not found: {name}")


def cmd_apply(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Apply a policy profile to CPUs."""
    try:
        profile = resolve_profile(args.profile)
    except ProfileError as e:
        return fail(str(e), 2)

    output = Output()
    for warning in validate_profile(profile):
        output.warning(warning)

    with policy_logger(settings) as logger:
        repository = build_repository(context, settings, logger)
        cpus = args.cpus or profile.cpus or repository.list_cpus()

        applied = []
        for cpu in cpus:
            try:
                repository.set_policy(cpu, profile.to_policy())
            except FreqError as e:
                output.error(f"cpu {cpu}: {e}")
                continue
            applied.append(cpu)

    output.emit({"profile": profile.name, "applied": applied})
    output.render(args.format)
    return 1 if output.errors else 0


def format_duration(ms: int) -> str:
    return f"{ms // 1000:02d} sec {ms % 1000:03d} ms"


def format_reading(reading: CpuReading) -> str:
    """One fixed-width table row."""
    if reading.status != STATUS_OK:
        return f"{reading.cpu:03d}\t[{reading.status}]"
    result: SampleResult = reading.result
    return (
        f"{reading.cpu:03d}\t{result.average_freq:07d}\t\t\t"
        f"{format_duration(result.active_ms)}\t"
        f"{format_duration(result.sleep_ms)}\t"
        f"{result.active_percent:02d}"
    )


def reading_to_dict(reading: CpuReading) -> dict:
    entry = {"cpu": reading.cpu, "status": reading.status}
    if reading.result is not None:
        entry.update(vars(reading.result))
    return entry


def cmd_monitor(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Measure average frequency and time in C0/Cx until interrupted."""
    interval = args.interval if args.interval is not None else settings.interval
    if interval < 0:
        return fail(f"Interval must not be negative: {interval}", 2)

    counters = CounterSource(context, msr_path=settings.msr_path)
    if not counters.cpu_supports_aperfmperf():
        return fail("CPU doesn't support APERF/MPERF", 2)

    check_cpu = args.cpu if args.cpu is not None else 0
    if not counters.is_available(check_cpu):
        return fail(
            f"Error reading {counters.device_path(check_cpu)}, load/enable msr.ko", 2
        )

    with EventLogger("monitor", get_log_path("monitor", settings.log_dir)) as logger:
        repository = build_repository(context, settings)
        cpus = [args.cpu] if args.cpu is not None else repository.list_cpus()
        sampler = PerformanceSampler(repository, counters)
        loop = SamplingLoop(
            sampler, context, cpus, interval=interval, once=args.once, logger=logger,
        )

        if args.cpu is not None and not sampler.is_valid(args.cpu):
            return fail(f"Cannot start measuring on cpu {args.cpu}")

        if args.format == "plain":
            print("CPU\tAverage freq(KHz)\tTime in C0\tTime in Cx\tC0 percentage")

        try:
            for readings in loop.run():
                if args.format == "json":
                    print(json.dumps([reading_to_dict(r) for r in readings]))
                else:
                    for reading in readings:
                        print(format_reading(reading))
                    if not args.once:
                        print()
                sys.stdout.flush()
        except KeyboardInterrupt:
            pass

    return 0


def cmd_doctor(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Check cpufreq and MSR interface availability."""
    store = AttributeStore(context, root=settings.sysfs_root)
    repository = PolicyRepository(store)
    counters = CounterSource(context, msr_path=settings.msr_path)

    cpus = repository.list_cpus()
    cpufreq = bool(cpus) and context.is_dir(f"{store.cpu_path(cpus[0])}/cpufreq")
    try:
        driver = repository.get_driver(cpus[0]) if cpus else None
    except FreqError:
        driver = None

    checks = {
        "cpus": len(cpus),
        "cpufreq_sysfs": cpufreq,
        "driver": driver,
        "aperfmperf": counters.cpu_supports_aperfmperf(),
        "msr_readable": counters.is_available(cpus[0] if cpus else 0),
    }

    output = Output()
    output.emit(checks)
    if not checks["cpufreq_sysfs"]:
        output.warning("cpufreq sysfs interface not available")
    if not checks["aperfmperf"]:
        output.warning("CPU does not advertise APERF/MPERF")
    if not checks["msr_readable"]:
        output.warning("MSR device not readable, load msr.ko and run as root")
    output.render(args.format, title="freqctl doctor")

    return 1 if output.warnings else 0


def cmd_logs(args: argparse.Namespace, context: Context, settings: Settings) -> int:
    """Show today's event log entries."""
    entries = query_logs(
        settings.log_dir, args.tool, min_level=args.level, limit=args.limit,
    )

    if args.format == "json":
        print(json.dumps(entries, indent=2))
        return 0

    if not entries:
        print("No log entries.")
        return 0

    for entry in entries:
        extra = {
            k: v for k, v in entry.items()
            if k not in ("timestamp", "level", "tool", "message")
        }
        details = " ".join(f"{k}={v}" for k, v in extra.items())
        print(f"{entry.get('timestamp', '')} {entry.get('level', '').upper():7} "
              f"{entry.get('message', '')} {details}".rstrip())
    return 0


def main(
    argv: list[str] | None = None,
    context: Context | None = None,
    settings: Settings | None = None,
) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if context is None:
        context = Context()
    if settings is None:
        settings = load_settings()

    commands = {
        "info": cmd_info,
        "set": cmd_set,
        "apply": cmd_apply,
        "monitor": cmd_monitor,
        "doctor": cmd_doctor,
        "logs": cmd_logs,
    }

    return commands[args.command](args, context, settings)


if __name__ == "__main__":
    sys.exit(main())
