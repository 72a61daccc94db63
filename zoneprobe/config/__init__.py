"""Configuration loading and validation for ZoneProbe."""

from zoneprobe.config.loader import ReportConfig, build_config
from zoneprobe.config.validator import validate_config, validate_selector

__all__ = ["ReportConfig", "build_config", "validate_config", "validate_selector"]
