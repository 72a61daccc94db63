"""Volume resolver: claim → bound volume → zone."""

from zoneprobe.topology.models import PVDetails
from zoneprobe.topology.zones import ZONE_LABEL_KEY, lookup_zone


def resolve_volume(
    cluster,
    namespace: str,
    claim_name: str,
    zone_key: str = ZONE_LABEL_KEY,
) -> PVDetails:
    """Resolve a pod's claim to the volume it is bound to and that volume's zone.

    Args:
        cluster: Collaborator exposing ``get_claim`` and ``get_volume``.
        namespace: Namespace of the pod (and therefore of the claim).
        claim_name: Name of the persistent volume claim.
        zone_key: Label key holding the topology zone.

    Returns:
        PVDetails for the claim. A pending (unbound) claim yields empty
        volume name and zone; it is not an error.

    Raises:
        ResourceNotFound: If the claim or its bound volume does not exist.
        CollaboratorUnavailable: If the API cannot be reached.
    """
    claim = cluster.get_claim(namespace, claim_name)
    if not claim.volume_name:
        return PVDetails(claim_name=claim_name)

    volume = cluster.get_volume(claim.volume_name)
    return PVDetails(
        claim_name=claim_name,
        volume_name=claim.volume_name,
        volume_zone=lookup_zone(volume.labels, zone_key),
    )
