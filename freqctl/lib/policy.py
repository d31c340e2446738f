"""Per-CPU frequency scaling policy: typed reads and validated writes."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from freqctl.lib.attributes import VALUE_ATTRIBUTES, AttributeStore
from freqctl.lib.codec import (
    encode_uint,
    parse_string,
    parse_token_list,
    parse_uint,
    validate_governor,
)
from freqctl.lib.errors import FreqError, InvalidArgument, NotFound

if TYPE_CHECKING:
    from freqctl.core.logging import EventLogger


# Governor that hands frequency selection to scaling_setspeed
USERSPACE_GOVERNOR = "userspace"


@dataclass
class CpuPolicy:
    """Scaling policy of one CPU. Frequencies in kHz."""

    governor: str
    min: int
    max: int


@dataclass(frozen=True)
class HardwareLimits:
    """Frequency range the hardware supports, in kHz."""

    min: int
    max: int


class PolicyRepository:
    """
    Typed view of the cpufreq attributes of every CPU.

    Numeric lookups follow an "unknown is zero" convention: read_value()
    returns 0 instead of failing. Every method that must tell a real
    zero from an unreadable attribute converts 0 into NotFound.
    """

    def __init__(self, store: AttributeStore, logger: "EventLogger | None" = None):
        self.store = store
        self.logger = logger

    def cpu_exists(self, cpu: int) -> bool:
        return self.store.cpu_exists(cpu)

    def list_cpus(self) -> list[int]:
        return self.store.list_cpus()

    def read_value(self, cpu: int, which: str) -> int:
        """
        Read one numeric attribute.

        Args:
            cpu: CPU id
            which: One of the cpuinfo_*_freq / scaling_*_freq attributes

        Returns:
            Value in kHz, or 0 if it cannot be opened, read or parsed
        """
        if which not in VALUE_ATTRIBUTES:
            return 0
        try:
            return parse_uint(self.store.read(cpu, which))
        except FreqError:
            return 0

    def get_freq_kernel(self, cpu: int) -> int:
        """Current frequency as the kernel last set it (0 if unknown)."""
        return self.read_value(cpu, "scaling_cur_freq")

    def get_freq_hardware(self, cpu: int) -> int:
        """Current frequency as read back from hardware (0 if unknown)."""
        return self.read_value(cpu, "cpuinfo_cur_freq")

    def get_hardware_limits(self, cpu: int) -> HardwareLimits:
        """
        Read the hardware frequency range.

        Raises:
            NotFound: If either bound reads as 0
        """
        low = self.read_value(cpu, "cpuinfo_min_freq")
        if not low:
            raise NotFound(f"cpuinfo_min_freq unavailable for cpu {cpu}")
        high = self.read_value(cpu, "cpuinfo_max_freq")
        if not high:
            raise NotFound(f"cpuinfo_max_freq unavailable for cpu {cpu}")
        return HardwareLimits(min=low, max=high)

    def _read_string(self, cpu: int, attribute: str) -> str:
        value = parse_string(self.store.read(cpu, attribute))
        if not value:
            raise NotFound(f"{attribute} is empty for cpu {cpu}")
        return value

    def get_driver(self, cpu: int) -> str:
        """
        Name of the cpufreq driver.

        Raises:
            NotFound: If the attribute is absent or empty
        """
        return self._read_string(cpu, "scaling_driver")

    def get_policy(self, cpu: int) -> CpuPolicy:
        """
        Read governor and scaling bounds.

        Raises:
            NotFound: If the governor is unreadable or a bound reads as 0
        """
        governor = self._read_string(cpu, "scaling_governor")
        low = self.read_value(cpu, "scaling_min_freq")
        high = self.read_value(cpu, "scaling_max_freq")
        if not low or not high:
            raise NotFound(f"Scaling bounds unavailable for cpu {cpu}")
        return CpuPolicy(governor=governor, min=low, max=high)

    def get_available_governors(self, cpu: int) -> list[str]:
        """Governors the driver offers, in kernel order."""
        text = self.store.read(cpu, "scaling_available_governors")
        return parse_token_list(text, 2)

    def get_available_frequencies(self, cpu: int) -> list[int]:
        """Discrete frequencies the driver offers, in kernel order."""
        text = self.store.read(cpu, "scaling_available_frequencies")
        return [parse_uint(token) for token in parse_token_list(text, 2)]

    def get_affected_cpus(self, cpu: int) -> list[int]:
        """CPUs in the same scaling domain as cpu."""
        text = self.store.read(cpu, "affected_cpus")
        return [parse_uint(token, bits=32) for token in parse_token_list(text, 1)]

    def _write(self, cpu: int, attribute: str, value: str) -> None:
        try:
            self.store.write(cpu, attribute, value)
        except FreqError as e:
            if self.logger is not None:
                self.logger.error(
                    f"Write to {attribute} failed", cpu=cpu, attribute=attribute,
                    value=value, error=str(e),
                )
            raise
        if self.logger is not None:
            self.logger.info(
                f"Wrote {attribute}", cpu=cpu, attribute=attribute, value=value,
            )

    def set_governor(self, cpu: int, name: str) -> None:
        """
        Switch the scaling governor.

        Raises:
            InvalidGovernor: If name fails validation; nothing is written
            IoFailure: If the write fails
        """
        self._write(cpu, "scaling_governor", validate_governor(name))

    def set_min(self, cpu: int, frequency: int) -> None:
        """Write the lower scaling bound. No check against the upper bound."""
        self._write(cpu, "scaling_min_freq", encode_uint(frequency))

    def set_max(self, cpu: int, frequency: int) -> None:
        """Write the upper scaling bound. No check against the lower bound."""
        self._write(cpu, "scaling_max_freq", encode_uint(frequency))

    def set_policy(self, cpu: int, policy: CpuPolicy) -> None:
        """
        Apply a full policy: max, then min, then governor.

        All arguments are validated before the first write. The writes
        are independent and earlier ones are not rolled back when a later
        one fails, so a failure can leave the CPU with a new max and the
        old min and governor.

        Raises:
            InvalidArgument: If policy.max < policy.min; nothing is written
            InvalidGovernor: If the governor is empty or invalid; an
                InvalidArgument subclass, nothing is written
            IoFailure: The first write that failed
        """
        if policy.max < policy.min:
            raise InvalidArgument(
                f"Policy max {policy.max} is below min {policy.min}"
            )
        governor = validate_governor(policy.governor)
        high = encode_uint(policy.max)
        low = encode_uint(policy.min)

        self._write(cpu, "scaling_max_freq", high)
        self._write(cpu, "scaling_min_freq", low)
        self._write(cpu, "scaling_governor", governor)

    def set_target_frequency(self, cpu: int, frequency: int) -> None:
        """
        Pin a CPU to one frequency through scaling_setspeed.

        Only the userspace governor honours scaling_setspeed, so when
        another governor is active this switches the CPU to userspace
        first. Callers asking for a frequency therefore also change the
        governor; the previous one is not restored.

        Raises:
            NotFound: If the current policy cannot be read
            IoFailure: If the governor switch or the frequency write fails
        """
        policy = self.get_policy(cpu)
        if policy.governor != USERSPACE_GOVERNOR:
            if self.logger is not None:
                self.logger.warning(
                    f"Switching governor from {policy.governor} to {USERSPACE_GOVERNOR}",
                    cpu=cpu,
                )
            self.set_governor(cpu, USERSPACE_GOVERNOR)

        self._write(cpu, "scaling_setspeed", encode_uint(frequency))
