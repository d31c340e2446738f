"""freqctl - CPU frequency policy and APERF/MPERF monitoring."""

__version__ = "0.1.0"
