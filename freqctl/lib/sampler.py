"""
Average frequency and C-state residency from APERF/MPERF deltas.

MPERF only ticks in C0, at the maximum non-turbo frequency. APERF ticks
at the actual frequency while in C0. Over an interval:

    average frequency = max_freq * aperf_diff / mperf_diff
    time in C0        = mperf_diff / max_freq

and the rest of the interval was spent in some sleep state.

Kernels that reset these registers to zero behind our back break the
deltas; that cannot be detected and is not supported.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from freqctl.lib.counters import CounterPair, CounterSource
from freqctl.lib.errors import CounterUnavailable, InvalidArgument, NotFound, Unsupported

if TYPE_CHECKING:
    from freqctl.lib.policy import PolicyRepository


U64_MAX = (1 << 64) - 1

# Right shift applied to both deltas when aperf_diff * 100 could overflow
OVERFLOW_SHIFT = 7

STATE_UNINITIALIZED = "uninitialized"
STATE_VALID = "valid"
STATE_INVALID = "invalid"


@dataclass
class Baseline:
    """Last counter reading of one CPU and the max frequency it is scaled by."""

    max_freq: int = 0
    last: CounterPair | None = None
    valid: bool = False


@dataclass(frozen=True)
class SampleResult:
    """Derived figures for one CPU over one interval."""

    average_freq: int
    active_ms: int
    sleep_ms: int
    active_percent: int
    stalled: bool = False

    @property
    def active_time(self) -> timedelta:
        return timedelta(milliseconds=self.active_ms)

    @property
    def sleep_time(self) -> timedelta:
        return timedelta(milliseconds=self.sleep_ms)


def counter_delta(now: int, before: int) -> int:
    """Difference of two u64 counter readings, allowing one wraparound."""
    return (now - before) & U64_MAX


def average_frequency(max_freq: int, aperf_diff: int, mperf_diff: int) -> int:
    """
    Average effective frequency over an interval, in kHz.

    Integer arithmetic throughout; the percentage is truncated before
    it scales max_freq. Returns 0 when mperf did not advance.
    """
    if aperf_diff > U64_MAX // 100:
        aperf_diff >>= OVERFLOW_SHIFT
        mperf_diff >>= OVERFLOW_SHIFT

    if mperf_diff == 0:
        return 0

    percent = (aperf_diff * 100) // mperf_diff
    return (max_freq * percent) // 100


def cstate_split(elapsed_ms: int, mperf_diff: int, max_freq: int) -> tuple[int, int, int]:
    """
    Split an interval into time in C0 and time in sleep states.

    Args:
        elapsed_ms: Wall-clock length of the interval
        mperf_diff: MPERF increase over the interval
        max_freq: Maximum frequency in kHz (MPERF ticks per ms in C0)

    Returns:
        (active_ms, sleep_ms, active_percent)
    """
    expected_ticks = max_freq * elapsed_ms
    if expected_ticks == 0:
        return 0, 0, 0

    active_percent = (mperf_diff * 100) // expected_ticks
    # mperf can outrun the wall clock on a wrap or a counter glitch
    sleep_ms = max(expected_ticks - mperf_diff, 0) // max_freq
    active_ms = mperf_diff // max_freq
    return active_ms, sleep_ms, active_percent


def compute_sample(
    max_freq: int,
    before: CounterPair,
    now: CounterPair,
    elapsed_ms: int,
) -> SampleResult:
    """Derive a SampleResult from two counter readings."""
    aperf_diff = counter_delta(now.aperf, before.aperf)
    mperf_diff = counter_delta(now.mperf, before.mperf)

    if mperf_diff == 0:
        # No C0 ticks at all: nothing to scale by
        _, sleep_ms, _ = cstate_split(elapsed_ms, 0, max_freq)
        return SampleResult(
            average_freq=0,
            active_ms=0,
            sleep_ms=sleep_ms,
            active_percent=0,
            stalled=True,
        )

    active_ms, sleep_ms, active_percent = cstate_split(elapsed_ms, mperf_diff, max_freq)
    return SampleResult(
        average_freq=average_frequency(max_freq, aperf_diff, mperf_diff),
        active_ms=active_ms,
        sleep_ms=sleep_ms,
        active_percent=active_percent,
    )


class PerformanceSampler:
    """
    Keeps one baseline per CPU and turns new readings into samples.

    A CPU starts uninitialized, becomes valid after initialize()
    succeeds and invalid when initialize() or a counter read fails.
    Invalid CPUs cannot be ticked until initialize() succeeds again.
    """

    def __init__(self, repository: "PolicyRepository", counters: CounterSource):
        self.repository = repository
        self.counters = counters
        self._baselines: dict[int, Baseline] = {}

    def state(self, cpu: int) -> str:
        baseline = self._baselines.get(cpu)
        if baseline is None:
            return STATE_UNINITIALIZED
        return STATE_VALID if baseline.valid else STATE_INVALID

    def is_valid(self, cpu: int) -> bool:
        return self.state(cpu) == STATE_VALID

    def baseline(self, cpu: int) -> Baseline | None:
        return self._baselines.get(cpu)

    def invalidate(self, cpu: int) -> None:
        baseline = self._baselines.setdefault(cpu, Baseline())
        baseline.valid = False

    def initialize(self, cpu: int) -> Baseline:
        """
        Take a fresh baseline for cpu.

        Raises:
            Unsupported: If the hardware max frequency is unknown
            CounterUnavailable: If the counters cannot be read
        """
        baseline = Baseline()
        self._baselines[cpu] = baseline

        try:
            limits = self.repository.get_hardware_limits(cpu)
        except NotFound as e:
            raise Unsupported(f"No hardware frequency limits for cpu {cpu}") from e
        baseline.max_freq = limits.max

        baseline.last = self.counters.read_pair(cpu)
        baseline.valid = True
        return baseline

    def tick(self, cpu: int, now: CounterPair, elapsed_ms: int) -> SampleResult:
        """
        Compute a sample against the baseline and move the baseline to now.

        Raises:
            InvalidArgument: If cpu is not in the valid state
        """
        baseline = self._baselines.get(cpu)
        if baseline is None or not baseline.valid:
            raise InvalidArgument(f"cpu {cpu} has no valid baseline")

        result = compute_sample(baseline.max_freq, baseline.last, now, elapsed_ms)
        baseline.last = now
        return result

    def sample(self, cpu: int, elapsed_ms: int) -> SampleResult:
        """
        Read the counters of cpu and tick.

        Raises:
            CounterUnavailable: If the read fails; cpu is marked invalid
        """
        if not self.is_valid(cpu):
            raise InvalidArgument(f"cpu {cpu} has no valid baseline")
        try:
            now = self.counters.read_pair(cpu)
        except CounterUnavailable:
            self.invalidate(cpu)
            raise
        return self.tick(cpu, now, elapsed_ms)
