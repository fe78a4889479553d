import asyncio

from typer.testing import CliRunner

from tradeflow.cli import app
from tradeflow.contracts import WorkflowState
from tradeflow.snapshots import SQLiteSnapshotStore


def _use_sqlite(tmp_path, monkeypatch) -> str:
    db_path = tmp_path / "snapshots.db"
    config_path = tmp_path / "tradeflow.yaml"
    config_path.write_text(f"snapshots:\n  backend: sqlite\n  sqlite_path: {db_path}\n")
    monkeypatch.setenv("TRADEFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("TRADEFLOW_SNAPSHOT_BACKEND", raising=False)
    return str(db_path)


def test_workflow_list_shows_registered_workflows():
    runner = CliRunner()
    result = runner.invoke(app, ["workflow", "list"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "job_posting\tposting_type -> duration -> details -> location" in result.stdout
    assert "onboarding\taction -> user_type -> role -> signup" in result.stdout


def test_workflow_steps_and_missing():
    runner = CliRunner()
    result = runner.invoke(app, ["workflow", "steps", "job_posting"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "0. posting_type - What are you posting? [posting_type]" in result.stdout
    assert "skip: redirect /jobs/vacancy/new" in result.stdout

    missing = runner.invoke(app, ["workflow", "steps", "nope"])
    assert missing.exit_code == 1
    assert "Unknown workflow 'nope'" in missing.stdout


def test_snapshot_show_and_clear(tmp_path, monkeypatch):
    db_path = _use_sqlite(tmp_path, monkeypatch)
    store = SQLiteSnapshotStore(db_path)
    state = WorkflowState(step_index=2, fields={"active_duration": "7_days"}, history=[0, 1])
    asyncio.run(store.set("tradeflow:job_posting:s1", state.to_json()))
    store.close()

    runner = CliRunner()
    result = runner.invoke(app, ["snapshot", "show", "job_posting", "s1"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "step 2" in result.stdout
    assert "History: [0, 1]" in result.stdout
    assert '"active_duration": "7_days"' in result.stdout

    cleared = runner.invoke(app, ["snapshot", "clear", "job_posting", "s1"])
    assert cleared.exit_code == 0
    missing = runner.invoke(app, ["snapshot", "show", "job_posting", "s1"])
    assert missing.exit_code == 1
    assert "No snapshot found" in missing.stdout


def test_preview_expiration():
    runner = CliRunner()
    result = runner.invoke(
        app, ["preview", "expiration", "2_weeks", "--now", "2025-03-01T12:00:00+00:00"]
    )
    assert result.exit_code == 0
    assert "14 days -> 2025-03-15T12:00:00+00:00" in result.stdout

    capped = runner.invoke(
        app, ["preview", "expiration", "60", "--now", "2025-03-01T12:00:00+00:00"]
    )
    assert "28 days" in capped.stdout
    assert "(capped)" in capped.stdout


def test_preview_price():
    runner = CliRunner()
    result = runner.invoke(app, ["preview", "price", "7_days", "10", "--override", "7_days=5"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "7_days: £5" in result.stdout
    assert "Reason: Admin has set 7 days price to £5" in result.stdout

    free = runner.invoke(app, ["preview", "price", "3_weeks", "20", "--free"])
    assert "3_weeks: Free" in free.stdout

    bad = runner.invoke(app, ["preview", "price", "7_days", "ten"])
    assert bad.exit_code == 1


def test_snapshot_show_reports_corrupt_snapshot(tmp_path, monkeypatch):
    db_path = _use_sqlite(tmp_path, monkeypatch)
    store = SQLiteSnapshotStore(db_path)
    asyncio.run(store.set("tradeflow:job_posting:s1", '{"stepIndex": -1}'))
    store.close()

    runner = CliRunner()
    result = runner.invoke(app, ["snapshot", "show", "job_posting", "s1"])
    assert result.exit_code == 1, f"Output: {result.stdout}"
    assert "Snapshot tradeflow:job_posting:s1 is unreadable" in result.stdout
    assert not isinstance(result.exception, ValueError)
