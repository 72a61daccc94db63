"""Zone correlation for pods, nodes and persistent volumes.

Joins each pod with the zone of its node and the zones of the volumes
behind its persistent volume claims.
"""

from zoneprobe.topology.zones import ZONE_LABEL_KEY, lookup_zone, zones_match
from zoneprobe.topology.models import PodInfo, PVDetails, ZoneReport
from zoneprobe.topology.correlator import correlate_pod
from zoneprobe.topology.resolver import resolve_volume

__all__ = [
    "ZONE_LABEL_KEY",
    "lookup_zone",
    "zones_match",
    "PodInfo",
    "PVDetails",
    "ZoneReport",
    "correlate_pod",
    "resolve_volume",
]
