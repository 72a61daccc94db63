"""Output rendering for ZoneProbe reports."""

from zoneprobe.output.renderers import OutputFormat, render

__all__ = ["OutputFormat", "render"]
