"""Error taxonomy for ZoneProbe.

Every failure raised while building a report is one of these, so callers
can tell a vanished resource apart from an unreachable API server and
decide between retrying and aborting.
"""

from typing import Optional


class ZoneProbeError(Exception):
    """Base class for all ZoneProbe failures."""


class SelectorInvalid(ZoneProbeError):
    """The label selector is empty or malformed."""

    def __init__(self, selector: str, reason: str = "invalid label selector"):
        super().__init__(f"{reason}: '{selector}'")
        self.selector = selector
        self.reason = reason


class ResourceNotFound(ZoneProbeError):
    """A referenced node, claim or volume no longer exists.

    Usually a race between listing pods and dereferencing what they point
    at, since cluster state is not read from a consistent snapshot.
    """

    def __init__(self, kind: str, name: str, namespace: Optional[str] = None):
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} '{where}' not found")
        self.kind = kind
        self.name = name
        self.namespace = namespace


class CollaboratorUnavailable(ZoneProbeError):
    """Transport, auth or timeout failure talking to the Kubernetes API."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation} failed: {reason}")
        self.operation = operation
        self.reason = reason


class ReportCancelled(ZoneProbeError):
    """The report-building pass was aborted."""

    def __init__(self, message: str = "report cancelled"):
        super().__init__(message)
