"""Policy profile loading and validation."""

from dataclasses import dataclass
from pathlib import Path

import yaml

from freqctl.lib.codec import validate_governor
from freqctl.lib.errors import InvalidGovernor
from freqctl.lib.policy import CpuPolicy


class ProfileError(Exception):
    """Error loading or validating a profile."""

    pass


@dataclass
class Profile:
    """A named scaling policy and the CPUs it applies to."""

    name: str
    description: str
    governor: str
    min: int
    max: int
    cpus: list[int] | None = None
    path: Path | None = None

    def to_policy(self) -> CpuPolicy:
        return CpuPolicy(governor=self.governor, min=self.min, max=self.max)


def _require_int(data: dict, key: str, path: Path) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ProfileError(f"Profile field '{key}' must be a non-negative integer: {path}")
    return value


def load_profile(path: Path) -> Profile:
    """
    Load a profile from a YAML file.

    Example:

        name: batch
        description: Full speed for batch jobs
        governor: performance
        min: 2400000
        max: 3600000
        cpus: [0, 1, 2, 3]

    Raises:
        ProfileError: If file not found or invalid
    """
    if not path.exists():
        raise ProfileError(f"Profile not found: {path}")

    try:
        content = path.read_text()
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in profile {path}: {e}")

    if not isinstance(data, dict):
        raise ProfileError(f"Profile must be a YAML mapping: {path}")

    # Validate required fields
    for key in ("name", "governor", "min", "max"):
        if key not in data:
            raise ProfileError(f"Profile missing required field '{key}': {path}")

    governor = data["governor"]
    if not isinstance(governor, str) or not governor:
        raise ProfileError(f"Profile field 'governor' must be a non-empty string: {path}")

    cpus = data.get("cpus")
    if cpus is not None:
        if not isinstance(cpus, list) or not all(
            isinstance(c, int) and not isinstance(c, bool) and c >= 0 for c in cpus
        ):
            raise ProfileError(f"Profile field 'cpus' must be a list of CPU ids: {path}")

    return Profile(
        name=str(data["name"]),
        description=data.get("description", ""),
        governor=governor,
        min=_require_int(data, "min", path),
        max=_require_int(data, "max", path),
        cpus=cpus,
        path=path,
    )


def validate_profile(profile: Profile) -> list[str]:
    """
    Validate a profile and return warnings.

    Returns:
        List of warning messages (empty if valid)
    """
    warnings = []

    if profile.min > profile.max:
        warnings.append(
            f"Profile '{profile.name}' min {profile.min} is above max {profile.max}"
        )

    try:
        validate_governor(profile.governor)
    except InvalidGovernor as e:
        warnings.append(f"Profile '{profile.name}': {e}")

    if profile.cpus is not None and not profile.cpus:
        warnings.append(f"Profile '{profile.name}' has empty cpus list")

    return warnings


def find_profiles(directory: Path) -> list[Profile]:
    """
    Find all profiles in a directory.

    Invalid profiles are skipped.
    """
    profiles = []

    if not directory.exists():
        return profiles

    for pattern in ("*.yaml", "*.yml"):
        for path in sorted(directory.glob(pattern)):
            try:
                profiles.append(load_profile(path))
            except ProfileError:
                continue

    return profiles
