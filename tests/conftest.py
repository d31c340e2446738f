"""Shared test fixtures."""

import struct
import sys
from pathlib import Path

import pytest

# Add project root to path for package and helper imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

SYSFS_ROOT = "/sys/devices/system/cpu"

MSR_MPERF = 0xE7
MSR_APERF = 0xE8


class MockContext:
    """Mock Context for testing without real sysfs, MSR or clock access."""

    def __init__(
        self,
        file_contents: dict[str, str] | None = None,
        registers: dict[tuple[str, int], int | bytes | Exception] | None = None,
        write_errors: dict[str, Exception] | None = None,
        clock: float = 1000.0,
    ):
        self.file_contents = file_contents or {}
        self.registers = registers or {}
        self.write_errors = write_errors or {}
        self.clock = clock
        self.writes: list[tuple[str, str]] = []
        self.sleeps: list[float] = []

    def read_file(self, path: str) -> str:
        """Return mocked file content."""
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        return self.file_contents[path]

    def write_file(self, path: str, content: str) -> None:
        """Record a write; only existing files can be written."""
        if path in self.write_errors:
            raise self.write_errors[path]
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        self.file_contents[path] = content
        self.writes.append((path, content))

    def read_bytes(self, path: str, offset: int, size: int) -> bytes:
        """Return a mocked register value as little-endian bytes."""
        key = (path, offset)
        if key not in self.registers:
            raise FileNotFoundError(f"No mock register for: {path}@{offset:#x}")
        value = self.registers[key]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return value[:size]
        return struct.pack("<Q", value)[:size]

    def is_dir(self, path: str) -> bool:
        """A path is a directory if any mocked file lives below it."""
        path_with_slash = path.rstrip("/") + "/"
        return any(p.startswith(path_with_slash) for p in self.file_contents.keys())

    def glob(self, pattern: str, root: str = ".") -> list[str]:
        """Return immediate children of root whose name matches pattern."""
        from fnmatch import fnmatch

        if not root.endswith("/"):
            root = root + "/"

        results = set()
        for path in self.file_contents.keys():
            if not path.startswith(root):
                continue
            child = path[len(root):].split("/")[0]
            if child and fnmatch(child, pattern):
                results.add(root + child)
        return sorted(results)

    def monotonic(self) -> float:
        """Return the fake clock."""
        return self.clock

    def sleep(self, seconds: float) -> None:
        """Advance the fake clock instead of sleeping."""
        self.sleeps.append(seconds)
        self.clock += seconds


def make_cpufreq_files(
    cpus: int | list[int] = 1,
    root: str = SYSFS_ROOT,
    **overrides: str,
) -> dict[str, str]:
    """
    Build file_contents for MockContext with cpufreq attributes.

    Keyword overrides replace an attribute on every CPU; pass None to
    leave the attribute out.
    """
    if isinstance(cpus, int):
        cpus = list(range(cpus))

    files = {}
    for cpu in cpus:
        attributes = {
            "cpuinfo_cur_freq": "2000000\n",
            "cpuinfo_min_freq": "800000\n",
            "cpuinfo_max_freq": "2000000\n",
            "scaling_cur_freq": "1800000\n",
            "scaling_min_freq": "800000\n",
            "scaling_max_freq": "2000000\n",
            "scaling_driver": "acpi-cpufreq\n",
            "scaling_governor": "ondemand\n",
            "scaling_available_governors": "ondemand userspace powersave performance\n",
            "scaling_available_frequencies": "2000000 1600000 1200000 800000\n",
            "affected_cpus": f"{cpu}\n",
            "scaling_setspeed": "<unsupported>\n",
        }
        attributes.update(overrides)
        base = f"{root}/cpu{cpu}/cpufreq"
        for name, value in attributes.items():
            if value is not None:
                files[f"{base}/{name}"] = value
    return files


def make_registers(
    counters: dict[int, tuple[int, int]],
    msr_path: str = "/dev/cpu/{cpu}/msr",
) -> dict[tuple[str, int], int]:
    """Build registers for MockContext from {cpu: (aperf, mperf)}."""
    registers = {}
    for cpu, (aperf, mperf) in counters.items():
        path = msr_path.format(cpu=cpu)
        registers[(path, MSR_APERF)] = aperf
        registers[(path, MSR_MPERF)] = mperf
    return registers


@pytest.fixture
def mock_context():
    """Factory fixture for creating MockContext instances."""
    def _create(**kwargs) -> MockContext:
        return MockContext(**kwargs)
    return _create
