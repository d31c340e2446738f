"""Periodic sampling of one or all CPUs."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator

from freqctl.lib.errors import FreqError
from freqctl.lib.sampler import PerformanceSampler, SampleResult

if TYPE_CHECKING:
    from freqctl.core.context import Context
    from freqctl.core.logging import EventLogger


STATUS_OK = "ok"
STATUS_OFFLINE = "offline"


@dataclass(frozen=True)
class CpuReading:
    """One row of a sampling pass."""

    cpu: int
    status: str
    result: SampleResult | None = None


class SamplingLoop:
    """
    Samples a fixed set of CPUs every interval seconds.

    Runs on the caller's thread. A pass over all CPUs is never
    interrupted; stop() is consulted before each pass and `once` ends
    the loop after the first one.
    """

    def __init__(
        self,
        sampler: PerformanceSampler,
        context: "Context",
        cpus: list[int],
        interval: float = 1.0,
        once: bool = False,
        logger: "EventLogger | None" = None,
    ):
        if interval < 0:
            raise ValueError(f"interval must not be negative: {interval}")
        self.sampler = sampler
        self.context = context
        self.cpus = sorted(cpus)
        self.interval = interval
        self.once = once
        self.logger = logger

        for cpu in self.cpus:
            self._initialize(cpu)

    def _initialize(self, cpu: int) -> bool:
        try:
            self.sampler.initialize(cpu)
        except FreqError as e:
            if self.logger is not None:
                self.logger.warning("CPU not sampled", cpu=cpu, error=str(e))
            return False
        return True

    def sample_pass(self, elapsed_ms: int) -> list[CpuReading]:
        """
        Sample every CPU once.

        Invalid CPUs get one re-initialization attempt and are reported
        offline for this pass; a success makes them sampled next pass.
        """
        readings = []
        for cpu in self.cpus:
            if not self.sampler.is_valid(cpu):
                if self._initialize(cpu) and self.logger is not None:
                    self.logger.info("CPU back online", cpu=cpu)
                readings.append(CpuReading(cpu=cpu, status=STATUS_OFFLINE))
                continue

            try:
                result = self.sampler.sample(cpu, elapsed_ms)
            except FreqError as e:
                if self.logger is not None:
                    self.logger.warning("Counter read failed", cpu=cpu, error=str(e))
                readings.append(CpuReading(cpu=cpu, status=STATUS_OFFLINE))
                continue

            readings.append(CpuReading(cpu=cpu, status=STATUS_OK, result=result))
        return readings

    def run(self, stop: Callable[[], bool] | None = None) -> Iterator[list[CpuReading]]:
        """
        Yield one list of readings per pass.

        Args:
            stop: Checked at the top of every pass; True ends the loop
        """
        previous = self.context.monotonic()
        while True:
            if stop is not None and stop():
                return

            self.context.sleep(self.interval)
            now = self.context.monotonic()
            elapsed_ms = int((now - previous) * 1000)
            previous = now

            yield self.sample_pass(elapsed_ms)

            if self.once:
                return
