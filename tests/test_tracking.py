import sys
from pathlib import Path

from xoplay.arena import ArenaArgs, run_arena
from xoplay.tracking import log_metrics, log_params, maybe_mlflow_run


def test_disabled_tracking_is_a_no_op():
    with maybe_mlflow_run(False, "off") as active:
        assert active is False
        log_params({"a": 1})
        log_metrics({"b": 0.5})


def test_missing_mlflow_warns_and_continues(monkeypatch, caplog, tmp_path: Path):
    monkeypatch.setitem(sys.modules, "mlflow", None)
    with maybe_mlflow_run(True, "missing", log_dir=tmp_path) as active:
        assert active is False
    assert "mlflow is not installed" in caplog.text

    summary = run_arena(ArenaArgs(games=2, seed=0, tracking=True, log_dir=tmp_path))
    assert summary.games == 2
