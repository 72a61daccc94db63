"""Pod correlator: joins a pod with its node zone and volume zones."""

from zoneprobe.topology.models import PodInfo, PodRecord
from zoneprobe.topology.resolver import resolve_volume
from zoneprobe.topology.zones import ZONE_LABEL_KEY, lookup_zone


def correlate_pod(
    cluster,
    pod: PodRecord,
    zone_key: str = ZONE_LABEL_KEY,
    qualify: bool = False,
) -> PodInfo:
    """Build the PodInfo for a single pod.

    An unscheduled pod (no node name) gets an empty node zone and no
    node lookup is made. Only claim-backed volumes are resolved, one at
    a time in the order the pod spec declares them.

    With ``qualify`` the pod is reported as ``namespace/name``.

    Raises:
        ResourceNotFound: If the node, a claim or a volume has vanished.
        CollaboratorUnavailable: If the API cannot be reached.
    """
    node_zone = ""
    if pod.node_name:
        node = cluster.get_node(pod.node_name)
        node_zone = lookup_zone(node.labels, zone_key)

    volumes = [
        resolve_volume(cluster, pod.namespace, claim_name, zone_key)
        for claim_name in pod.claim_names
    ]

    return PodInfo(
        pod_name=pod.qualified_name if qualify else pod.name,
        node_name=pod.node_name,
        node_zone=node_zone,
        volumes=tuple(volumes),
    )
