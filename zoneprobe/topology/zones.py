"""Topology zone lookup for nodes and persistent volumes."""

from typing import Mapping, Optional

# Well-known label set by cloud providers and CSI drivers
ZONE_LABEL_KEY = "topology.kubernetes.io/zone"


def lookup_zone(labels: Optional[Mapping[str, str]], key: str = ZONE_LABEL_KEY) -> str:
    """Return the zone stored under ``key`` in ``labels``.

    A missing label (or a missing label map) means the zone is unknown,
    which is reported as the empty string rather than ``None`` so that
    zone comparisons stay well defined.
    """
    if not labels:
        return ""
    return labels.get(key) or ""


def zones_match(a: str, b: str) -> bool:
    """Exact, case-sensitive zone comparison. Unknown zones never match."""
    return bool(a) and a == b
