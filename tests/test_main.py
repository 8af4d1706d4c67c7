import json
import logging

import pytest

from main import SopMetricsApp, main


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def base_args(data_dir, tmp_path):
    return [
        "--data-dir",
        str(data_dir),
        "--log-dir",
        str(tmp_path / "logs"),
        "--output-dir",
        str(tmp_path / "out"),
        "--now",
        "2024-03-15T12:00:00Z",
    ]


class TestCommandLine:
    def test_writes_metrics_json(self, base_args, tmp_path):
        output = tmp_path / "metrics.json"

        code = main(base_args + ["--window", "last30days", "--output", str(output)])

        assert code == 0
        metrics = json.loads(output.read_text())
        assert metrics["window"] == "last30days"
        assert metrics["view"] == "overview"
        assert metrics["avg_completion_rate_percent"] == 50
        assert metrics["active_user_count"] == 2
        assert [s["id"] for s in metrics["recent_sops"]] == ["sop-1", "sop-2", "sop-3"]

    def test_prints_to_stdout(self, base_args, capsys):
        code = main(base_args + ["--view", "dropoff", "--window", "allTime"])

        assert code == 0
        metrics = json.loads(capsys.readouterr().out)
        assert [p["user_count"] for p in metrics["dropoff_curve"]] == [4, 1, 0]

    def test_summary(self, base_args, capsys):
        assert main(base_args + ["--summary"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["sops"]["document_count"] == 3

    def test_visualize_writes_charts(self, base_args, tmp_path):
        args = ["--view", "users", "--visualize", "--output", str(tmp_path / "m.json")]
        code = main(base_args + args)

        assert code == 0
        charts = sorted(p.name for p in (tmp_path / "out").glob("*.png"))
        assert "users_last30days_user_progress.png" in charts

    def test_my_sops_without_user_fails(self, base_args):
        assert main(base_args + ["--view", "my_sops"]) == 2

    def test_my_sops_for_user(self, base_args, capsys):
        assert main(base_args + ["--view", "my_sops", "--user", "user-1"]) == 0
        metrics = json.loads(capsys.readouterr().out)
        assert [s["id"] for s in metrics["my_sops"]] == ["sop-1"]

    def test_missing_data_directory_fails(self, tmp_path):
        code = main(["--data-dir", str(tmp_path / "nowhere"), "--log-dir", str(tmp_path / "logs")])
        assert code == 1

    def test_configuration_file_is_applied(self, base_args, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"DEFAULT_VIEW": "activity", "RECENT_ACTIVITY_LIMIT": 2}))

        app = SopMetricsApp()
        assert app.run(base_args + ["--config", str(config)]) == 0

        metrics = json.loads(capsys.readouterr().out)
        assert metrics["view"] == "activity"
        assert [a["id"] for a in metrics["recent_activity"]] == ["c3", "c1"]
        assert app.settings.OUTPUT_DIR == tmp_path / "out"
