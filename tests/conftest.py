"""Pytest configuration and fixtures."""

import threading

import pytest

from zoneprobe.config.loader import ReportConfig
from zoneprobe.errors import ReportCancelled, ResourceNotFound
from zoneprobe.topology.models import (
    ClaimRecord,
    NodeRecord,
    PodRecord,
    PVDetails,
    PodInfo,
    VolumeMount,
    VolumeRecord,
)
from zoneprobe.topology.zones import ZONE_LABEL_KEY


class FakeCluster:
    """In-memory stand-in for ClusterClient that records every call."""

    def __init__(self, pods=None, nodes=None, claims=None, volumes=None, failures=None):
        self.pods = list(pods or [])
        self.nodes = {n.name: n for n in nodes or []}
        self.claims = {(c.namespace, c.name): c for c in claims or []}
        self.volumes = {v.name: v for v in volumes or []}
        # (operation, key) -> exception raised instead of answering
        self.failures = dict(failures or {})
        self.calls = []
        self.cancel_event = threading.Event()
        self._lock = threading.Lock()

    def _record(self, operation, key):
        if self.cancel_event.is_set():
            raise ReportCancelled()
        with self._lock:
            self.calls.append((operation, key))
        if (operation, key) in self.failures:
            raise self.failures[(operation, key)]

    def list_pods(self, label_selector, namespace=""):
        self._record("list_pods", label_selector)
        return [p for p in self.pods if not namespace or p.namespace == namespace]

    def get_node(self, name):
        self._record("get_node", name)
        if name not in self.nodes:
            raise ResourceNotFound("Node", name)
        return self.nodes[name]

    def get_claim(self, namespace, name):
        self._record("get_claim", (namespace, name))
        if (namespace, name) not in self.claims:
            raise ResourceNotFound("PersistentVolumeClaim", name, namespace)
        return self.claims[(namespace, name)]

    def get_volume(self, name):
        self._record("get_volume", name)
        if name not in self.volumes:
            raise ResourceNotFound("PersistentVolume", name)
        return self.volumes[name]

    def calls_for(self, operation):
        return [key for op, key in self.calls if op == operation]


def _zoned(zone):
    return {ZONE_LABEL_KEY: zone} if zone else {}


@pytest.fixture
def fake_cluster():
    """Factory for in-memory clusters built from records."""
    return FakeCluster


@pytest.fixture
def scenario_cluster():
    """Pods A-D covering matched, mismatched, unscheduled and unbound cases."""
    pods = [
        PodRecord(
            name="pod-a", namespace="db", node_name="n1",
            volumes=[
                VolumeMount(name="config", claim_name=None),
                VolumeMount(name="data", claim_name="data-a"),
            ],
        ),
        PodRecord(
            name="pod-b", namespace="db", node_name="n2",
            volumes=[VolumeMount(name="data", claim_name="data-b")],
        ),
        PodRecord(
            name="pod-c", namespace="db", node_name="",
            volumes=[VolumeMount(name="data", claim_name="data-c")],
        ),
        PodRecord(
            name="pod-d", namespace="db", node_name="n1",
            volumes=[VolumeMount(name="data", claim_name="data-d")],
        ),
    ]
    nodes = [
        NodeRecord(name="n1", labels=_zoned("us-east-1a")),
        NodeRecord(name="n2", labels=_zoned("us-east-1b")),
    ]
    claims = [
        ClaimRecord(name="data-a", namespace="db", volume_name="pv-a"),
        ClaimRecord(name="data-b", namespace="db", volume_name="pv-b"),
        ClaimRecord(name="data-c", namespace="db", volume_name="pv-c"),
        ClaimRecord(name="data-d", namespace="db", volume_name=""),
    ]
    volumes = [
        VolumeRecord(name="pv-a", labels=_zoned("us-east-1a")),
        VolumeRecord(name="pv-b", labels=_zoned("us-east-1a")),
        VolumeRecord(name="pv-c", labels=_zoned("us-east-1c")),
    ]
    return FakeCluster(pods=pods, nodes=nodes, claims=claims, volumes=volumes)


@pytest.fixture
def report_config():
    return ReportConfig(label_selector="app=db", workers=2)


@pytest.fixture
def sample_pods():
    """Report rows for rendering tests."""
    return [
        PodInfo(
            pod_name="postgres-0",
            node_name="worker-1",
            node_zone="us-east-1a",
            volumes=(
                PVDetails("data-postgres-0", "pvc-1111", "us-east-1a"),
                PVDetails("wal-postgres-0", "pvc-2222", "us-east-1b"),
            ),
        ),
        PodInfo(
            pod_name="postgres-1",
            node_name="worker-2",
            node_zone="us-east-1b",
            volumes=(PVDetails("data-postgres-1", "pvc-3333", "us-east-1a"),),
        ),
        PodInfo(pod_name="sidecar", node_name="worker-1", node_zone="us-east-1a"),
    ]
