"""APERF/MPERF counter reads through the msr character device."""

import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING

from freqctl.lib.errors import CounterUnavailable

if TYPE_CHECKING:
    from freqctl.core.context import Context


MSR_IA32_MPERF = 0xE7
MSR_IA32_APERF = 0xE8

DEFAULT_MSR_PATH = "/dev/cpu/{cpu}/msr"

CPUINFO_PATH = "/proc/cpuinfo"


@dataclass(frozen=True)
class CounterPair:
    """
    APERF and MPERF of one CPU, read back to back.

    MPERF ticks at the maximum non-turbo rate while the CPU is in C0;
    APERF ticks at the actual rate over the same time.
    """

    aperf: int
    mperf: int


class CounterSource:
    """Reads free-running 64-bit counters of one CPU at a time."""

    def __init__(self, context: "Context", msr_path: str = DEFAULT_MSR_PATH):
        self.context = context
        self.msr_path = msr_path

    def device_path(self, cpu: int) -> str:
        return self.msr_path.format(cpu=cpu)

    def read_register(self, cpu: int, index: int) -> int:
        """
        Read one MSR as an unsigned little-endian 64-bit value.

        Raises:
            CounterUnavailable: If the device cannot be opened or the read is short
        """
        path = self.device_path(cpu)
        try:
            data = self.context.read_bytes(path, index, 8)
        except OSError as e:
            raise CounterUnavailable(f"Cannot read MSR {index:#x} on cpu {cpu}: {e}") from e

        if len(data) != 8:
            raise CounterUnavailable(
                f"Short read of MSR {index:#x} on cpu {cpu}: {len(data)} bytes"
            )
        return struct.unpack("<Q", data)[0]

    def read_pair(self, cpu: int) -> CounterPair:
        """Read APERF, then MPERF."""
        aperf = self.read_register(cpu, MSR_IA32_APERF)
        mperf = self.read_register(cpu, MSR_IA32_MPERF)
        return CounterPair(aperf=aperf, mperf=mperf)

    def is_available(self, cpu: int = 0) -> bool:
        """True if the counters of cpu can be read."""
        try:
            self.read_register(cpu, MSR_IA32_MPERF)
        except CounterUnavailable:
            return False
        return True

    def cpu_supports_aperfmperf(self) -> bool:
        """
        Check the aperfmperf CPU flag.

        The kernel sets it from CPUID leaf 6 (ECX bit 0), the same bit
        that advertises the effective frequency interface.
        """
        try:
            content = self.context.read_file(CPUINFO_PATH)
        except OSError:
            return False

        for line in content.splitlines():
            if line.startswith("flags"):
                _, _, flags = line.partition(":")
                return "aperfmperf" in flags.split()
        return False
