"""Report builder: correlates every selected pod and collects the results.

Pods are independent of each other, so they are correlated on a thread
pool. Each task owns one slot of the result list, indexed by the pod's
position in the listing, so no locking is needed and input order is
preserved.

Failure policy:
- fail-fast (default): the first failure aborts the report and is raised.
- keep-going: a failing pod becomes a PodFailure outcome in its slot and
  the remaining pods are still reported.

A pod name shared by pods in different namespaces is reported as
``namespace/name`` so rows stay unique within a report.
"""

import threading
from collections import defaultdict
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Set

from zoneprobe.config.loader import ReportConfig
from zoneprobe.errors import ReportCancelled, ZoneProbeError
from zoneprobe.topology.correlator import correlate_pod
from zoneprobe.topology.models import PodFailure, PodOutcome, PodRecord, ZoneReport


class ReportBuilder:
    """Builds a ZoneReport for a pod selection."""

    def __init__(
        self,
        cluster,
        config: ReportConfig,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[Callable[[str], None]] = None,
    ):
        """Initialise the builder.

        Args:
            cluster: Collaborator exposing list_pods, get_node, get_claim
                and get_volume.
            config: Run-scoped settings.
            cancel_event: Caller's cancellation signal. Defaults to the
                cluster client's own event when it has one. The builder
                sets it only on interrupt, never on a pod failure.
            progress: Optional callback receiving progress messages.
        """
        self.cluster = cluster
        self.config = config
        self.cancel_event = (
            cancel_event
            or getattr(cluster, "cancel_event", None)
            or threading.Event()
        )
        self._progress = progress or (lambda message: None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> ZoneReport:
        """List the pods matching the configured selector and build the report."""
        pods = self.cluster.list_pods(self.config.label_selector, self.config.namespace)
        where = self.config.namespace or "all namespaces"
        self._progress(
            f"Selector '{self.config.label_selector}' matched {len(pods)} pod(s) in {where}"
        )
        return self.build(pods)

    def build(self, pods: Sequence[PodRecord]) -> ZoneReport:
        """Correlate ``pods`` and return outcomes in the same order.

        Raises:
            ZoneProbeError: In fail-fast mode, the first correlation failure.
            ReportCancelled: If the cancellation signal fires; partial
                results are discarded.
        """
        if not pods:
            return ZoneReport()

        slots: List[Optional[PodOutcome]] = [None] * len(pods)
        shared = _shared_names(pods)
        workers = max(1, min(self.config.workers, len(pods)))
        # Stops the remaining pods of this pass only
        aborted = threading.Event()

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zoneprobe")
        try:
            futures = [
                executor.submit(
                    self._correlate_into, slots, idx, pod, pod.name in shared, aborted
                )
                for idx, pod in enumerate(pods)
            ]
            self._join(futures)
        except KeyboardInterrupt:
            self.cancel_event.set()
            self._abort(executor, aborted)
            raise ReportCancelled("report interrupted")
        except BaseException:
            self._abort(executor, aborted)
            raise
        executor.shutdown(wait=True)

        if self.cancel_event.is_set():
            raise ReportCancelled()

        return ZoneReport(outcomes=list(slots))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _abort(executor: ThreadPoolExecutor, aborted: threading.Event) -> None:
        """Stop the pass and drop whatever is still queued."""
        aborted.set()
        executor.shutdown(wait=True, cancel_futures=True)

    def _correlate_into(
        self,
        slots: List[Optional[PodOutcome]],
        idx: int,
        pod: PodRecord,
        qualify: bool,
        aborted: threading.Event,
    ) -> None:
        """Correlate one pod and store the outcome in its own slot."""
        if self.cancel_event.is_set():
            raise ReportCancelled()
        if aborted.is_set():
            return
        try:
            slots[idx] = correlate_pod(self.cluster, pod, self.config.zone_label, qualify)
        except ReportCancelled:
            raise
        except ZoneProbeError as e:
            if not self.config.keep_going:
                raise
            failure = PodFailure(pod_name=pod.name, namespace=pod.namespace, error=e)
            slots[idx] = failure
            self._progress(f"WARNING: pod '{pod.qualified_name}' skipped: {failure.reason}")
        else:
            self._progress(f"Correlated pod '{pod.qualified_name}'")

    @staticmethod
    def _join(futures: List[Future]) -> None:
        """Wait for all tasks, re-raising the first failure as soon as it happens."""
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        # FIRST_EXCEPTION returns only once everything finished when nothing failed
        for future in futures:
            future.result()


def _shared_names(pods: Sequence[PodRecord]) -> Set[str]:
    """Pod names that occur in more than one namespace."""
    namespaces = defaultdict(set)
    for pod in pods:
        namespaces[pod.name].add(pod.namespace)
    return {name for name, seen in namespaces.items() if len(seen) > 1}
