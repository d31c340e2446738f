"""Tests for freqctl.core.profiles module."""

import pytest

from freqctl.core.profiles import (
    Profile,
    ProfileError,
    find_profiles,
    load_profile,
    validate_profile,
)
from freqctl.lib.policy import CpuPolicy


BATCH_PROFILE = """\
name: batch
description: Full speed for batch jobs
governor: performance
min: 1600000
max: 2000000
cpus: [0, 1]
"""


class TestLoadProfile:
    """Tests for load_profile."""

    def test_loads_profile(self, tmp_path):
        """Loads every field."""
        path = tmp_path / "batch.yaml"
        path.write_text(BATCH_PROFILE)

        profile = load_profile(path)

        assert profile.name == "batch"
        assert profile.description == "Full speed for batch jobs"
        assert profile.cpus == [0, 1]
        assert profile.path == path
        assert profile.to_policy() == CpuPolicy(governor="performance", min=1600000, max=2000000)

    def test_cpus_optional(self, tmp_path):
        """Without cpus the profile applies to every CPU."""
        path = tmp_path / "quiet.yaml"
        path.write_text("name: quiet\ngovernor: powersave\nmin: 800000\nmax: 1200000\n")

        profile = load_profile(path)

        assert profile.cpus is None
        assert profile.description == ""

    def test_missing_file(self, tmp_path):
        """Raises ProfileError for a missing file."""
        with pytest.raises(ProfileError, match="not found"):
            load_profile(tmp_path / "none.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Raises ProfileError on YAML syntax errors."""
        path = tmp_path / "bad.yaml"
        path.write_text("name: [unclosed")

        with pytest.raises(ProfileError, match="Invalid YAML"):
            load_profile(path)

    def test_not_a_mapping(self, tmp_path):
        """Raises ProfileError when the document is not a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- performance\n")

        with pytest.raises(ProfileError, match="mapping"):
            load_profile(path)

    @pytest.mark.parametrize("field", ["name", "governor", "min", "max"])
    def test_missing_required_field(self, tmp_path, field):
        """Each required field must be present."""
        lines = [l for l in BATCH_PROFILE.splitlines() if not l.startswith(f"{field}:")]
        path = tmp_path / "partial.yaml"
        path.write_text("\n".join(lines))

        with pytest.raises(ProfileError, match=field):
            load_profile(path)

    @pytest.mark.parametrize("value", ["-1", "fast", "true", "1.5"])
    def test_bad_frequency(self, tmp_path, value):
        """Frequencies must be non-negative integers."""
        path = tmp_path / "bad.yaml"
        path.write_text(BATCH_PROFILE.replace("min: 1600000", f"min: {value}"))

        with pytest.raises(ProfileError, match="min"):
            load_profile(path)

    @pytest.mark.parametrize("value", ["", "''", "42", "[performance]"])
    def test_bad_governor(self, tmp_path, value):
        """An empty or non-string governor is rejected, not stringified."""
        path = tmp_path / "bad.yaml"
        path.write_text(BATCH_PROFILE.replace("governor: performance", f"governor: {value}"))

        with pytest.raises(ProfileError, match="governor"):
            load_profile(path)

    def test_bad_cpus(self, tmp_path):
        """cpus must be a list of CPU ids."""
        path = tmp_path / "bad.yaml"
        path.write_text(BATCH_PROFILE.replace("cpus: [0, 1]", "cpus: all"))

        with pytest.raises(ProfileError, match="cpus"):
            load_profile(path)


class TestValidateProfile:
    """Tests for validate_profile."""

    def test_valid_profile(self):
        """A consistent profile has no warnings."""
        profile = Profile(name="p", description="", governor="ondemand", min=1, max=2)

        assert validate_profile(profile) == []

    def test_min_above_max(self):
        """Warns when the bounds are inverted."""
        profile = Profile(name="p", description="", governor="ondemand", min=3, max=2)

        warnings = validate_profile(profile)

        assert len(warnings) == 1
        assert "above max" in warnings[0]

    def test_invalid_governor(self):
        """Warns about governor names that cannot be written."""
        profile = Profile(name="p", description="", governor="on demand", min=1, max=2)

        assert len(validate_profile(profile)) == 1

    def test_empty_cpus(self):
        """Warns when the cpus list is empty."""
        profile = Profile(name="p", description="", governor="ondemand", min=1, max=2, cpus=[])

        assert "empty cpus" in validate_profile(profile)[0]


class TestFindProfiles:
    """Tests for find_profiles."""

    def test_missing_directory(self, tmp_path):
        """Missing directory gives no profiles."""
        assert find_profiles(tmp_path / "profiles") == []

    def test_finds_valid_profiles(self, tmp_path):
        """Loads .yaml and .yml files, skipping invalid ones."""
        (tmp_path / "batch.yaml").write_text(BATCH_PROFILE)
        (tmp_path / "quiet.yml").write_text(
            "name: quiet\ngovernor: powersave\nmin: 800000\nmax: 1200000\n"
        )
        (tmp_path / "broken.yaml").write_text("name: [")
        (tmp_path / "notes.txt").write_text("ignored")

        names = [p.name for p in find_profiles(tmp_path)]

        assert names == ["batch", "quiet"]
