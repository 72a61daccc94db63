"""Read-only Kubernetes API access for zone reports.

Wraps ``CoreV1Api`` with the four lookups a report needs and converts
API objects into plain records. Failures are mapped onto the ZoneProbe
error taxonomy:

- HTTP 404                              → ResourceNotFound
- HTTP 400 when listing with a selector → SelectorInvalid
- any other API status, transport error
  or timeout                            → CollaboratorUnavailable
"""

import threading
from typing import Any, Callable, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from zoneprobe.errors import (
    CollaboratorUnavailable,
    ReportCancelled,
    ResourceNotFound,
    SelectorInvalid,
)
from zoneprobe.topology.models import (
    ClaimRecord,
    NodeRecord,
    PodRecord,
    VolumeMount,
    VolumeRecord,
)

# Page size when listing pods
LIST_PAGE_SIZE = 500
# Seconds to wait before retry N is N * RETRY_BACKOFF
RETRY_BACKOFF = 1.0


class ClusterClient:
    """Kubernetes API collaborator used by the report builder."""

    def __init__(
        self,
        timeout: float = 10,
        retries: int = 0,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        core_api: Optional[client.CoreV1Api] = None,
    ):
        """Initialise the client.

        Args:
            timeout: Per-call request timeout in seconds.
            retries: Extra attempts for calls that fail as unavailable.
            kubeconfig: Explicit kubeconfig path (default discovery otherwise).
            context: Kubeconfig context to use.
            cancel_event: Checked before every call; once set, calls
                raise ReportCancelled.
            core_api: Pre-built API object, skipping config loading.
        """
        self.timeout = timeout
        self.retries = retries
        self.cancel_event = cancel_event or threading.Event()

        if core_api is None:
            self._load_config(kubeconfig, context)
            core_api = client.CoreV1Api()
        self.core_api = core_api

    @staticmethod
    def _load_config(kubeconfig: Optional[str], context: Optional[str]) -> None:
        if kubeconfig or context:
            config.load_kube_config(config_file=kubeconfig, context=context)
            return
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_pods(self, label_selector: str, namespace: str = "") -> List[PodRecord]:
        """List pods matching a label selector.

        Args:
            label_selector: Kubernetes label selector, e.g. ``app=db``.
            namespace: Namespace to search; empty searches all namespaces.

        Returns:
            PodRecords in the order the API server returned them.
        """
        operation = f"list pods ({label_selector})"
        pods: List[PodRecord] = []
        token = None

        while True:
            kwargs = {"label_selector": label_selector, "limit": LIST_PAGE_SIZE}
            if token:
                kwargs["_continue"] = token
            try:
                if namespace:
                    resp = self._call(
                        operation, self.core_api.list_namespaced_pod, namespace, **kwargs
                    )
                else:
                    resp = self._call(
                        operation, self.core_api.list_pod_for_all_namespaces, **kwargs
                    )
            except ApiException as e:
                if e.status == 400:
                    raise SelectorInvalid(label_selector, _api_reason(e))
                raise self._unavailable(operation, e)

            pods.extend(self._to_pod_record(p) for p in resp.items or [])
            token = getattr(resp.metadata, "_continue", None) if resp.metadata else None
            if not token:
                return pods

    def get_node(self, name: str) -> NodeRecord:
        node = self._read("Node", name, None, self.core_api.read_node, name)
        return NodeRecord(name=name, labels=dict(node.metadata.labels or {}))

    def get_claim(self, namespace: str, name: str) -> ClaimRecord:
        pvc = self._read(
            "PersistentVolumeClaim",
            name,
            namespace,
            self.core_api.read_namespaced_persistent_volume_claim,
            name,
            namespace,
        )
        volume_name = (pvc.spec.volume_name if pvc.spec else None) or ""
        return ClaimRecord(name=name, namespace=namespace, volume_name=volume_name)

    def get_volume(self, name: str) -> VolumeRecord:
        pv = self._read(
            "PersistentVolume", name, None, self.core_api.read_persistent_volume, name
        )
        return VolumeRecord(name=name, labels=dict(pv.metadata.labels or {}))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(
        self,
        kind: str,
        name: str,
        namespace: Optional[str],
        fn: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Fetch a single object, translating API errors."""
        where = f"{namespace}/{name}" if namespace else name
        operation = f"get {kind.lower()} '{where}'"
        try:
            return self._call(operation, fn, *args)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFound(kind, name, namespace)
            raise self._unavailable(operation, e)

    def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke an API method with timeout, cancellation and retries.

        ApiExceptions with a definite status are re-raised untouched for
        the caller to classify; only transport failures and 5xx/429
        answers are retried.
        """
        attempt = 0
        while True:
            self._check_cancelled()
            try:
                return fn(*args, _request_timeout=self.timeout, **kwargs)
            except ApiException as e:
                if not _retryable(e) or attempt >= self.retries:
                    raise
                last_error: Exception = e
            except urllib3.exceptions.HTTPError as e:
                if attempt >= self.retries:
                    raise CollaboratorUnavailable(operation, _transport_reason(e))
                last_error = e

            attempt += 1
            # wait() returns early if the report is cancelled meanwhile
            if self.cancel_event.wait(RETRY_BACKOFF * attempt):
                raise ReportCancelled(f"cancelled while retrying {operation}: {last_error}")

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ReportCancelled()

    @staticmethod
    def _unavailable(operation: str, e: ApiException) -> CollaboratorUnavailable:
        return CollaboratorUnavailable(operation, f"HTTP {e.status}: {_api_reason(e)}")

    @staticmethod
    def _to_pod_record(pod: Any) -> PodRecord:
        """Convert a V1Pod into a PodRecord."""
        spec = pod.spec
        mounts = []
        for volume in (spec.volumes if spec else None) or []:
            pvc = volume.persistent_volume_claim
            mounts.append(VolumeMount(
                name=volume.name,
                claim_name=pvc.claim_name if pvc else None,
            ))

        return PodRecord(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace or "",
            node_name=(spec.node_name if spec else None) or "",
            volumes=mounts,
        )


def _retryable(e: ApiException) -> bool:
    # status 0 means the request never got an HTTP answer
    return not e.status or e.status == 429 or e.status >= 500


def _api_reason(e: ApiException) -> str:
    return e.reason or "unknown error"


def _transport_reason(e: Exception) -> str:
    reason = getattr(e, "reason", None)
    if isinstance(e, urllib3.exceptions.TimeoutError) or isinstance(
        reason, urllib3.exceptions.TimeoutError
    ):
        return f"timed out: {e}"
    return str(e) or type(e).__name__
