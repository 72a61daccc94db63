"""Data model for zone alignment reports.

Two groups of types live here:

- Records: lightweight snapshots of the Kubernetes objects the report
  reads (pods, nodes, claims, volumes), built by the cluster client.
- Report entities: ``PVDetails`` and ``PodInfo``, the joined per-pod,
  per-volume rows that renderers consume.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from zoneprobe.topology.zones import zones_match


# ── Records ──────────────────────────────────────────────────


@dataclass
class VolumeMount:
    """A volume declared in a pod spec.

    ``claim_name`` is set only for volumes backed by a persistent volume
    claim; config maps, secrets, emptyDirs and the like leave it ``None``.
    """

    name: str
    claim_name: Optional[str] = None

    @property
    def is_claim_backed(self) -> bool:
        return bool(self.claim_name)


@dataclass
class PodRecord:
    """Scheduling and volume information for a single pod."""

    name: str
    namespace: str
    node_name: str = ""
    volumes: List[VolumeMount] = field(default_factory=list)

    @property
    def claim_names(self) -> List[str]:
        """Claim names of claim-backed volumes, in declaration order."""
        return [v.claim_name for v in self.volumes if v.is_claim_backed]

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class NodeRecord:
    name: str
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class ClaimRecord:
    """A persistent volume claim. ``volume_name`` is empty while pending."""

    name: str
    namespace: str
    volume_name: str = ""


@dataclass
class VolumeRecord:
    name: str
    labels: Dict[str, str] = field(default_factory=dict)


# ── Report entities ──────────────────────────────────────────


@dataclass(frozen=True)
class PVDetails:
    """One claim-backed volume of a pod and the zone it lives in."""

    claim_name: str
    volume_name: str = ""
    volume_zone: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "PVCName": self.claim_name,
            "PVName": self.volume_name,
            "PVZone": self.volume_zone,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PVDetails":
        return cls(
            claim_name=data["PVCName"],
            volume_name=data.get("PVName") or "",
            volume_zone=data.get("PVZone") or "",
        )


@dataclass(frozen=True)
class PodInfo:
    """Zone alignment of one pod with its persistent volumes.

    ``zone_matched`` is derived from ``node_zone`` and ``volumes`` on
    every access; it is never stored.
    """

    pod_name: str
    node_name: str = ""
    node_zone: str = ""
    volumes: Tuple[PVDetails, ...] = ()

    def __post_init__(self):
        # Accept any iterable but always store an immutable tuple
        object.__setattr__(self, "volumes", tuple(self.volumes))

    @property
    def zone_matched(self) -> bool:
        """True if at least one volume shares the node's (known) zone."""
        return any(zones_match(v.volume_zone, self.node_zone) for v in self.volumes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the stable JSON field names."""
        return {
            "PodName": self.pod_name,
            "NodeName": self.node_name,
            "NodeZone": self.node_zone,
            "PVInfo": [v.to_dict() for v in self.volumes],
            "ZoneMatched": self.zone_matched,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PodInfo":
        """Deserialise from a dictionary.

        ``ZoneMatched`` is ignored on input; it is recomputed.
        """
        return cls(
            pod_name=data["PodName"],
            node_name=data.get("NodeName") or "",
            node_zone=data.get("NodeZone") or "",
            volumes=tuple(PVDetails.from_dict(v) for v in data.get("PVInfo") or []),
        )


@dataclass(frozen=True)
class PodFailure:
    """A pod whose correlation failed when the report keeps going."""

    pod_name: str
    namespace: str
    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


PodOutcome = Union[PodInfo, PodFailure]


@dataclass
class ZoneReport:
    """Ordered outcome of one report-building pass."""

    outcomes: List[PodOutcome] = field(default_factory=list)

    @property
    def pods(self) -> List[PodInfo]:
        return [o for o in self.outcomes if isinstance(o, PodInfo)]

    @property
    def failures(self) -> List[PodFailure]:
        return [o for o in self.outcomes if isinstance(o, PodFailure)]

    @property
    def complete(self) -> bool:
        """True if every pod was correlated successfully."""
        return not self.failures

    def summary(self) -> Dict[str, int]:
        pods = self.pods
        matched = sum(1 for p in pods if p.zone_matched)
        return {
            "pods": len(pods),
            "zoneMatched": matched,
            "zoneMismatched": len(pods) - matched,
            "failed": len(self.failures),
        }
