from __future__ import annotations

import textwrap

import yaml
from typer.testing import CliRunner

from glowplan.cli import app
from glowplan.memory.store import RoadmapStore


def _write_config(tmp_path, owner: str = "owner-1", cooldown_days: str = "7"):
    data_dir = tmp_path / "data"
    db_path = data_dir / "roadmap.sqlite"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        textwrap.dedent(
            f"""
            owner:
              id: {owner}
            roadmap:
              cooldown_days: {cooldown_days}
            paths:
              config: "{config_path.as_posix()}"
              data: "{data_dir.as_posix()}"
              db_path: "{db_path.as_posix()}"
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )
    return config_path, db_path


def test_init_writes_default_config_and_database(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["init", "--config", str(config_path), "--owner", "alice"],
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.output
    assert "Wrote configuration to" in result.output
    assert "Roadmap database ready at" in result.output

    config_data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    assert config_data["owner"]["id"] == "alice"
    assert config_data["roadmap"]["cooldown_days"] == 7
    assert (tmp_path / "data" / "glowplan.sqlite").exists()


def test_init_keeps_existing_config(tmp_path) -> None:
    config_path, db_path = _write_config(tmp_path)
    before = config_path.read_text(encoding="utf-8")

    result = CliRunner().invoke(app, ["init", "--config", str(config_path)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "Using existing configuration" in result.output
    assert config_path.read_text(encoding="utf-8") == before
    assert db_path.exists()


def test_advance_status_toggle_flow(tmp_path, write_analysis) -> None:
    config_path, db_path = _write_config(tmp_path)
    analysis_path = write_analysis()
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["advance", str(analysis_path), "--config", str(config_path)],
        catch_exceptions=False,
    )
    assert result.exit_code == 0, result.output
    assert "Unlocked Week 1: Skin Texture Sprint." in result.output

    result = runner.invoke(app, ["status", "--config", str(config_path)], catch_exceptions=False)
    assert result.exit_code == 0, result.output
    assert "Week 1 • 0 of 6 tasks complete" in result.output
    assert "Overall progress: 0%" in result.output
    assert "[ ] Daily texture reset (Morning & night)" in result.output

    with RoadmapStore(db_path) as store:
        plan = store.get_plan_for_owner("owner-1")
        week = store.list_weeks(plan.id)[0]
        task = store.list_tasks(week.id)[0]

    result = runner.invoke(app, ["toggle", task.id, "--config", str(config_path)], catch_exceptions=False)
    assert result.exit_code == 0, result.output
    assert "Task 'Daily texture reset' completed." in result.output

    result = runner.invoke(
        app,
        ["advance", str(analysis_path), "--config", str(config_path)],
        catch_exceptions=False,
    )
    assert result.exit_code == 0, result.output
    assert "Complete every task to unlock Week 2 (17% done)." in result.output
    assert "Current week: 1" in result.output

    result = runner.invoke(app, ["toggle", task.id, "--config", str(config_path)], catch_exceptions=False)
    assert "Task 'Daily texture reset' reopened." in result.output


def test_status_without_plan(tmp_path) -> None:
    config_path, _ = _write_config(tmp_path)

    result = CliRunner().invoke(app, ["status", "--config", str(config_path)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "No roadmap yet." in result.output


def test_owner_option_selects_separate_roadmap(tmp_path, write_analysis) -> None:
    config_path, db_path = _write_config(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["advance", str(write_analysis()), "--owner", "bob", "--config", str(config_path)],
        catch_exceptions=False,
    )
    assert result.exit_code == 0, result.output

    with RoadmapStore(db_path) as store:
        assert store.get_plan_for_owner("bob") is not None
        assert store.get_plan_for_owner("owner-1") is None


def test_invalid_analysis_exits_with_error(tmp_path) -> None:
    config_path, db_path = _write_config(tmp_path)
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    result = CliRunner().invoke(app, ["advance", str(broken), "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Unable to read analysis" in result.output
    assert not db_path.exists()


def test_toggle_unknown_task_exits_with_error(tmp_path) -> None:
    config_path, _ = _write_config(tmp_path)

    result = CliRunner().invoke(app, ["toggle", "missing-task", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Task missing-task not found for owner-1" in result.output


def test_missing_config_is_rejected(tmp_path) -> None:
    result = CliRunner().invoke(app, ["status", "--config", str(tmp_path / "absent.yaml")])

    assert result.exit_code != 0


def test_out_of_range_cooldown_falls_back_to_default(tmp_path, write_analysis) -> None:
    config_path, _ = _write_config(tmp_path, cooldown_days="100000000000")
    runner = CliRunner()

    result = runner.invoke(app, ["status", "--config", str(config_path)], catch_exceptions=False)
    assert result.exit_code == 0, result.output
    assert "Invalid roadmap.cooldown_days 100000000000; using 7." in result.output

    result = runner.invoke(
        app,
        ["advance", str(write_analysis()), "--config", str(config_path)],
        catch_exceptions=False,
    )
    assert result.exit_code == 0, result.output
    assert "Unlocked Week 1: Skin Texture Sprint." in result.output


def test_non_numeric_cooldown_falls_back_to_default(tmp_path) -> None:
    config_path, _ = _write_config(tmp_path, cooldown_days=".nan")

    result = CliRunner().invoke(app, ["status", "--config", str(config_path)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "using 7." in result.output
