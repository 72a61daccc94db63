"""ZoneProbe - storage/compute zone alignment reports for Kubernetes pods."""

__version__ = "0.1.0"
