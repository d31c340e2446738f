"""Execution context for testability."""

import os
import time
from pathlib import Path


class Context:
    """
    Wraps access to sysfs, device files and the clock for testability.

    In production: touches the real system
    In tests: can be replaced with MockContext
    """

    def read_file(self, path: str) -> str:
        """Read file contents."""
        return Path(path).read_text()

    def write_file(self, path: str, content: str) -> None:
        """
        Write content to an existing file.

        sysfs attributes cannot be created, so the file is opened
        without O_CREAT and a missing attribute raises FileNotFoundError.
        """
        fd = os.open(path, os.O_WRONLY | os.O_TRUNC)
        try:
            os.write(fd, content.encode())
        finally:
            os.close(fd)

    def read_bytes(self, path: str, offset: int, size: int) -> bytes:
        """
        Read size bytes at offset from a random-access device file.

        Args:
            path: Device path (e.g. /dev/cpu/0/msr)
            offset: Byte offset, the register index for MSR devices
            size: Number of bytes to read

        Returns:
            Bytes read, possibly fewer than size
        """
        fd = os.open(path, os.O_RDONLY)
        try:
            return os.pread(fd, size, offset)
        finally:
            os.close(fd)

    def is_dir(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def glob(self, pattern: str, root: str = ".") -> list[str]:
        """Find files matching pattern."""
        return [str(p) for p in Path(root).glob(pattern)]

    def monotonic(self) -> float:
        """Seconds on a monotonic clock."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """Suspend the caller."""
        time.sleep(seconds)
