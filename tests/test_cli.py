"""Tests for the zoneprobe command line."""

import json

import pytest
from click.testing import CliRunner

from zoneprobe import cli
from zoneprobe.errors import CollaboratorUnavailable


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched_cluster(scenario_cluster, monkeypatch):
    """Route the CLI's ClusterClient to the in-memory scenario cluster."""
    created = {}

    def factory(**kwargs):
        created.update(kwargs)
        scenario_cluster.cancel_event = kwargs["cancel_event"]
        return scenario_cluster

    monkeypatch.setattr(cli, "ClusterClient", factory)
    scenario_cluster.created_with = created
    return scenario_cluster


class TestReportCommand:
    """Tests for 'zoneprobe report'."""

    def test_table_is_default(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db"])

        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0].split("\t")[0] == "POD"
        # pods A-D each have exactly one claim
        assert len(lines) == 5

    def test_json_output(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db", "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [p["PodName"] for p in data] == ["pod-a", "pod-b", "pod-c", "pod-d"]
        assert [p["ZoneMatched"] for p in data] == [True, False, False, False]

    def test_text_output(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db", "-o", "text"])

        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines()[0] == (
            "Pod: pod-a, Node: n1, Node Zone: us-east-1a, Zone Matched: true"
        )

    def test_options_reach_client(self, runner, patched_cluster):
        result = runner.invoke(
            cli.main,
            ["report", "-l", "app=db", "--timeout", "2.5", "--retries", "3",
             "--context", "staging"],
        )

        assert result.exit_code == 0, result.output
        assert patched_cluster.created_with["timeout"] == 2.5
        assert patched_cluster.created_with["retries"] == 3
        assert patched_cluster.created_with["context"] == "staging"

    def test_missing_selector(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report"])

        assert result.exit_code == 1
        assert "label selector is required" in result.stderr
        assert patched_cluster.calls == []

    def test_malformed_selector_checked_before_api(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db,"])

        assert result.exit_code == 1
        assert patched_cluster.calls == []

    def test_not_found_aborts(self, runner, patched_cluster):
        del patched_cluster.nodes["n2"]
        result = runner.invoke(cli.main, ["report", "-l", "app=db", "--workers", "1"])

        assert result.exit_code == 1
        assert "Not found: Node 'n2' not found" in result.stderr
        assert result.stdout == ""

    def test_unavailable_aborts(self, runner, patched_cluster):
        patched_cluster.failures[("list_pods", "app=db")] = CollaboratorUnavailable(
            "list pods (app=db)", "timed out"
        )
        result = runner.invoke(cli.main, ["report", "-l", "app=db"])

        assert result.exit_code == 1
        assert "Kubernetes API unavailable" in result.stderr

    def test_keep_going_warns_and_reports_rest(self, runner, patched_cluster):
        del patched_cluster.nodes["n2"]
        result = runner.invoke(
            cli.main, ["report", "-l", "app=db", "-o", "json", "--keep-going"]
        )

        assert result.exit_code == 0, result.output
        assert "WARNING: pod 'db/pod-b' skipped" in result.stderr
        assert "report is incomplete, 1 pod(s) skipped" in result.stderr
        names = [p["PodName"] for p in json.loads(result.stdout)]
        assert names == ["pod-a", "pod-c", "pod-d"]

    def test_complete_report_has_no_incomplete_warning(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db"])

        assert result.exit_code == 0, result.output
        assert "incomplete" not in result.stderr

    def test_interrupt_while_listing_exits_130(self, runner, patched_cluster):
        patched_cluster.failures[("list_pods", "app=db")] = KeyboardInterrupt()
        result = runner.invoke(cli.main, ["report", "-l", "app=db"])

        assert result.exit_code == 130
        assert "report interrupted" in result.stderr
        assert patched_cluster.cancel_event.is_set()

    def test_output_help_describes_formats(self, runner):
        result = runner.invoke(cli.main, ["report", "--help"])

        assert result.exit_code == 0
        assert "One summary line per pod." in " ".join(result.output.split())

    def test_verbose_summary(self, runner, patched_cluster):
        result = runner.invoke(cli.main, ["report", "-l", "app=db", "-v"])

        assert result.exit_code == 0, result.output
        assert "[verbose] 4 pod(s): 1 matched, 3 mismatched, 0 failed" in result.stderr

    def test_save_writes_file(self, runner, patched_cluster, tmp_path):
        target = tmp_path / "report.json"
        result = runner.invoke(
            cli.main, ["report", "-l", "app=db", "-o", "json", "--save", str(target)]
        )

        assert result.exit_code == 0, result.output
        assert target.read_text() == result.stdout

    def test_config_file(self, runner, patched_cluster, tmp_path):
        path = tmp_path / "zoneprobe.yaml"
        path.write_text("labelSelector: app=db\noutput: text\n")
        result = runner.invoke(cli.main, ["report", "--config", str(path)])

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("Pod: pod-a")


class TestCheckConfigCommand:
    def test_prints_effective_config(self, runner, tmp_path):
        path = tmp_path / "zoneprobe.yaml"
        path.write_text("labelSelector: app=db\nworkers: 2\n")
        result = runner.invoke(cli.main, ["check-config", str(path)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["labelSelector"] == "app=db"
        assert data["workers"] == 2
        assert data["output"] == "table"

    def test_reports_schema_errors(self, runner, tmp_path):
        path = tmp_path / "zoneprobe.yaml"
        path.write_text("labelSelector: app=db\nworkers: many\n")
        result = runner.invoke(cli.main, ["check-config", str(path)])

        assert result.exit_code == 1
        assert "Schema validation failed" in result.stderr
