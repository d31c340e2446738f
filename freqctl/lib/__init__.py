"""Policy and sampling library."""

from freqctl.lib.attributes import AttributeStore
from freqctl.lib.counters import CounterPair, CounterSource
from freqctl.lib.errors import (
    CounterUnavailable,
    FreqError,
    InvalidArgument,
    InvalidGovernor,
    IoFailure,
    NotFound,
    ParseError,
    Unsupported,
)
from freqctl.lib.policy import CpuPolicy, HardwareLimits, PolicyRepository
from freqctl.lib.sampler import PerformanceSampler, SampleResult
from freqctl.lib.sampling import CpuReading, SamplingLoop

__all__ = [
    "AttributeStore",
    "CounterPair",
    "CounterSource",
    "CounterUnavailable",
    "CpuPolicy",
    "CpuReading",
    "FreqError",
    "HardwareLimits",
    "InvalidArgument",
    "InvalidGovernor",
    "IoFailure",
    "NotFound",
    "ParseError",
    "PerformanceSampler",
    "PolicyRepository",
    "SampleResult",
    "SamplingLoop",
    "Unsupported",
]
