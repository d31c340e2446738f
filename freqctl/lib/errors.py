"""Error kinds raised by the policy and sampling layers."""


class FreqError(Exception):
    """Base class for freqctl errors."""

    pass


class NotFound(FreqError):
    """Attribute or CPU missing or unreadable."""

    pass


class ParseError(FreqError):
    """Malformed numeric or list content."""

    pass


class InvalidArgument(FreqError):
    """Argument rejected before touching the control surface."""

    pass


class InvalidGovernor(InvalidArgument):
    """Governor name fails charset or length validation."""

    pass


class Unsupported(FreqError):
    """CPU lacks the capability needed for an operation."""

    pass


class CounterUnavailable(FreqError):
    """APERF/MPERF registers could not be read."""

    pass


class IoFailure(FreqError):
    """Open or write failure on the control surface."""

    def __init__(self, operation: str, cpu: int, reason: str = ""):
        self.operation = operation
        self.cpu = cpu
        self.reason = reason
        message = f"{operation} failed on cpu {cpu}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
