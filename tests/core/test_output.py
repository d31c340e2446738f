"""Tests for freqctl.core.output module."""

import json

from freqctl.core.output import Output


class TestOutput:
    """Tests for Output rendering."""

    def test_json_includes_errors_and_warnings(self):
        """JSON carries data plus any messages."""
        output = Output()
        output.emit({"driver": "acpi-cpufreq"})
        output.warning("scaling_setspeed not supported")
        output.error("cpu 3 offline")

        payload = json.loads(output.to_json())

        assert payload["driver"] == "acpi-cpufreq"
        assert payload["warnings"] == ["scaling_setspeed not supported"]
        assert payload["errors"] == ["cpu 3 offline"]

    def test_json_without_messages(self):
        """No error or warning keys when none were recorded."""
        output = Output()
        output.emit({"cpus": [0, 1]})

        assert json.loads(output.to_json()) == {"cpus": [0, 1]}

    def test_plain_rendering(self):
        """Nested data is indented and formatted by type."""
        output = Output()
        output.emit({
            0: {
                "scaling_governor": "ondemand",
                "available_frequencies": [2000000, 800000],
                "affected_cpus": [],
                "online": True,
                "hardware_freq": None,
            },
        })

        text = output.to_plain("CPU frequency policy")

        assert text.splitlines() == [
            "CPU frequency policy",
            "====================",
            "CPU 0:",
            "  Scaling governor: ondemand",
            "  Available frequencies: 2000000 800000",
            "  Affected cpus: (none)",
            "  Online: yes",
            "  Hardware freq: unknown",
        ]

    def test_plain_messages(self):
        """Warnings and errors are appended after data."""
        output = Output()
        output.emit({"driver": "intel_pstate"})
        output.warning("w")
        output.error("e")

        lines = output.to_plain().splitlines()

        assert lines[-3:] == ["[WARNING] w", "", "[ERROR] e"]

    def test_render_prints(self, capsys):
        """render() prints in the chosen format."""
        output = Output()
        output.emit({"driver": "acpi-cpufreq"})

        output.render("json")
        assert json.loads(capsys.readouterr().out) == {"driver": "acpi-cpufreq"}

        output.render("plain")
        assert capsys.readouterr().out == "Driver: acpi-cpufreq\n"
