import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from schedule_engine.cli.main import cli


@pytest.fixture(autouse=True)
def reset_engine_logger():
    # setup_logging binds a handler to the runner's captured stderr
    yield
    logger = logging.getLogger("schedule_engine")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def engine_config(tmp_path) -> str:
    # Keep INFO logging out of the captured output
    path = tmp_path / "engine.yaml"
    path.write_text("engine:\n  logging:\n    level: WARNING\n")
    return str(path)


@pytest.fixture
def snapshot_file(tmp_path, snapshot) -> str:
    path = tmp_path / "snapshot.yaml"
    path.write_text(yaml.safe_dump(snapshot))
    return str(path)


@pytest.fixture
def invoke(runner, engine_config):
    def _invoke(*args):
        return runner.invoke(cli, ["--config", engine_config, *args])
    return _invoke


def test_tasks_show_json(invoke, snapshot_file):
    result = invoke("tasks", "show", "--data", snapshot_file, "--date", "2025-06-02", "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["date"] == "2025-06-02"
    assert len(data["tasks"]) == 8


def test_tasks_show_single_property(invoke, snapshot_file):
    result = invoke("tasks", "show", "-d", snapshot_file, "--date", "2025-06-02", "-p", "p2", "--json")
    assert result.exit_code == 0, result.output
    assert [t["unit_id"] for t in json.loads(result.output)["tasks"]] == ["u5"]


def test_tasks_show_table(invoke, snapshot_file):
    result = invoke("tasks", "show", "--data", snapshot_file, "--date", "2025-06-03")
    assert result.exit_code == 0, result.output
    assert "Tasks for 2025-06-03" in result.output
    assert "5 tasks" in result.output


def test_tasks_show_bad_date(invoke, snapshot_file):
    result = invoke("tasks", "show", "--data", snapshot_file, "--date", "June 2")
    assert result.exit_code != 0
    assert "YYYY-MM-DD" in result.output


def test_tasks_show_missing_snapshot(invoke, tmp_path):
    result = invoke("tasks", "show", "--data", str(tmp_path / "none.yaml"))
    assert result.exit_code != 0
    assert "not found" in result.output


def test_rules_preview(invoke, snapshot_file):
    result = invoke("rules", "preview", "--data", snapshot_file, "--property", "p1",
                    "--start", "2025-06-02", "--days", "3")
    assert result.exit_code == 0, result.output
    assert "Pool rotation" in result.output
    assert "2025-06-04" in result.output
    assert "Main Pool" in result.output


def test_rules_preview_without_rules(invoke, snapshot_file):
    result = invoke("rules", "preview", "--data", snapshot_file, "--property", "p2")
    assert result.exit_code == 0, result.output
    assert "No active rules" in result.output


def test_rules_preview_unknown_property(invoke, snapshot_file):
    result = invoke("rules", "preview", "--data", snapshot_file, "--property", "zzz")
    assert result.exit_code != 0
    assert "Property not found" in result.output


def test_config_show(runner, tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("engine:\n  max_selection_count: 12\n  logging:\n    level: WARNING\n")
    result = runner.invoke(cli, ["--config", str(path), "config", "show"])
    assert result.exit_code == 0, result.output
    assert "max_selection_count" in result.output
    assert "12" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "schedule-engine" in result.output
