"""Kubernetes API access for ZoneProbe."""

from zoneprobe.cluster.client import ClusterClient

__all__ = ["ClusterClient"]
