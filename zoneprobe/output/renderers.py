"""Report renderers: table, text and JSON.

All renderers are pure functions of the PodInfo sequence; the same input
always produces byte-identical output.
"""

import json
from enum import Enum
from typing import List, Sequence

from zoneprobe.topology.models import PodInfo

TABLE_HEADERS = ("POD", "NODE", "NODE ZONE", "ZONE MATCHED", "PVC", "PV", "PV ZONE")
TAB_WIDTH = 8


class OutputFormat(str, Enum):
    """Report encodings accepted by ``--output``."""

    TABLE = "table"
    JSON = "json"
    TEXT = "text"

    def describe(self) -> str:
        """Human-readable description of the format."""
        descriptions = {
            self.TABLE: "Tab-aligned table with one row per pod volume.",
            self.JSON: "Pretty-printed JSON list of pods with their volumes.",
            self.TEXT: "One summary line per pod.",
        }
        return descriptions[self]


def render(pods: Sequence[PodInfo], fmt: OutputFormat) -> str:
    """Render ``pods`` in the requested format."""
    fmt = OutputFormat(fmt)
    if fmt == OutputFormat.JSON:
        return render_json(pods)
    elif fmt == OutputFormat.TEXT:
        return render_text(pods)
    return render_table(pods)


def render_json(pods: Sequence[PodInfo]) -> str:
    """Pods in input order, volumes in mount order, indented by two spaces."""
    return json.dumps([p.to_dict() for p in pods], indent=2) + "\n"


def render_text(pods: Sequence[PodInfo]) -> str:
    lines = [
        f"Pod: {p.pod_name}, Node: {p.node_name}, Node Zone: {p.node_zone}, "
        f"Zone Matched: {_bool(p.zone_matched)}"
        for p in pods
    ]
    return "".join(line + "\n" for line in lines)


def render_table(pods: Sequence[PodInfo]) -> str:
    """One row per (pod, volume).

    A pod without claim-backed volumes still gets one row, with the PVC,
    PV and PV ZONE cells left empty.
    """
    rows: List[Sequence[str]] = [TABLE_HEADERS]
    for pod in pods:
        pod_cells = (pod.pod_name, pod.node_name, pod.node_zone, _bool(pod.zone_matched))
        if not pod.volumes:
            rows.append(pod_cells + ("", "", ""))
            continue
        for vol in pod.volumes:
            rows.append(pod_cells + (vol.claim_name, vol.volume_name, vol.volume_zone))
    return _tab_align(rows)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _tab_align(rows: Sequence[Sequence[str]]) -> str:
    """Align columns with tab characters on 8-column tab stops.

    Every column but the last is padded to the next tab stop past its
    widest cell, so at least one tab always separates adjacent cells.
    """
    ncols = len(rows[0])
    widths = []
    for col in range(ncols - 1):
        widest = max(len(row[col]) for row in rows)
        widths.append((widest // TAB_WIDTH + 1) * TAB_WIDTH)

    out = []
    for row in rows:
        parts = []
        for col, cell in enumerate(row[:-1]):
            tabs = -(-(widths[col] - len(cell)) // TAB_WIDTH)
            parts.append(cell + "\t" * tabs)
        parts.append(row[-1])
        out.append("".join(parts).rstrip("\t") + "\n")
    return "".join(out)
