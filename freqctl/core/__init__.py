"""Core freqctl functionality."""

from freqctl.core.config import Settings, get_config_value, load_settings
from freqctl.core.context import Context
from freqctl.core.logging import EventLogger, query_logs
from freqctl.core.output import Output
from freqctl.core.profiles import Profile, ProfileError, find_profiles, load_profile

__all__ = [
    "Context",
    "EventLogger",
    "Output",
    "Profile",
    "ProfileError",
    "Settings",
    "find_profiles",
    "get_config_value",
    "load_profile",
    "load_settings",
    "query_logs",
]
