"""Access to the per-CPU cpufreq sysfs attributes."""

import re
from typing import TYPE_CHECKING

from freqctl.lib.errors import InvalidArgument, IoFailure, NotFound

if TYPE_CHECKING:
    from freqctl.core.context import Context


DEFAULT_SYSFS_ROOT = "/sys/devices/system/cpu"

# Attributes holding one number
VALUE_ATTRIBUTES = (
    "cpuinfo_cur_freq",
    "cpuinfo_min_freq",
    "cpuinfo_max_freq",
    "scaling_cur_freq",
    "scaling_min_freq",
    "scaling_max_freq",
)

# Attributes holding one string
STRING_ATTRIBUTES = ("scaling_driver", "scaling_governor")

# Attributes holding a list of tokens
LIST_ATTRIBUTES = (
    "scaling_available_governors",
    "scaling_available_frequencies",
    "affected_cpus",
)

READ_ATTRIBUTES = VALUE_ATTRIBUTES + STRING_ATTRIBUTES + LIST_ATTRIBUTES

WRITE_ATTRIBUTES = (
    "scaling_min_freq",
    "scaling_max_freq",
    "scaling_governor",
    "scaling_setspeed",
)

CPU_DIR_PATTERN = re.compile(r"/cpu(\d+)(?:/|$)")


class AttributeStore:
    """
    Read and write access to cpufreq attributes, one CPU at a time.

    Paths follow {root}/cpu{N}/cpufreq/{attribute}.
    """

    def __init__(self, context: "Context", root: str = DEFAULT_SYSFS_ROOT):
        self.context = context
        self.root = root.rstrip("/")

    def cpu_path(self, cpu: int) -> str:
        """Directory of one CPU."""
        return f"{self.root}/cpu{cpu}"

    def attribute_path(self, cpu: int, attribute: str) -> str:
        """Path of one cpufreq attribute."""
        return f"{self.cpu_path(cpu)}/cpufreq/{attribute}"

    def cpu_exists(self, cpu: int) -> bool:
        """Check the CPU directory exists. Never raises."""
        if cpu < 0:
            return False
        try:
            return self.context.is_dir(self.cpu_path(cpu))
        except OSError:
            return False

    def list_cpus(self) -> list[int]:
        """Return the ids of every logical CPU directory, sorted."""
        cpus = set()
        try:
            paths = self.context.glob("cpu[0-9]*", root=self.root)
        except OSError:
            return []
        for path in paths:
            match = CPU_DIR_PATTERN.search(path[len(self.root):])
            if match:
                cpus.add(int(match.group(1)))
        return sorted(cpus)

    def read(self, cpu: int, attribute: str) -> str:
        """
        Read the raw text of an attribute.

        Raises:
            InvalidArgument: If attribute is not a known readable attribute
            NotFound: If the attribute is missing or unreadable
        """
        if attribute not in READ_ATTRIBUTES:
            raise InvalidArgument(f"Unknown attribute: {attribute}")

        path = self.attribute_path(cpu, attribute)
        try:
            return self.context.read_file(path)
        except (OSError, UnicodeDecodeError) as e:
            raise NotFound(f"Cannot read {path}: {e}") from e

    def write(self, cpu: int, attribute: str, value: str) -> None:
        """
        Write text to an attribute.

        Raises:
            InvalidArgument: If attribute is not a known writable attribute
            IoFailure: If the attribute cannot be opened or written
        """
        if attribute not in WRITE_ATTRIBUTES:
            raise InvalidArgument(f"Attribute is not writable: {attribute}")

        path = self.attribute_path(cpu, attribute)
        try:
            self.context.write_file(path, value)
        except OSError as e:
            raise IoFailure(f"write {attribute}", cpu, str(e)) from e
