"""
Experiment tracking helpers for arena runs (optional MLflow backend).

MLflow is only imported when tracking is requested, so it stays an optional
extra. A missing MLflow is logged as a warning and the run carries on.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class _Tracker:
    def __init__(self) -> None:
        self.mlflow = None

    @property
    def active(self) -> bool:
        return self.mlflow is not None


_tracker = _Tracker()


@contextmanager
def maybe_mlflow_run(enabled: bool, run_name: str, log_dir: Optional[Path] = None) -> Iterator[bool]:
    """Open an MLflow run when ``enabled``; yields whether tracking is live."""
    if not enabled:
        yield False
        return
    try:
        import mlflow  # type: ignore
    except ImportError:
        logger.warning("mlflow is not installed; continuing without tracking")
        yield False
        return
    if log_dir is not None:
        mlflow.set_tracking_uri((Path(log_dir).resolve() / "mlruns").as_uri())
    with mlflow.start_run(run_name=run_name):
        _tracker.mlflow = mlflow
        try:
            yield True
        finally:
            _tracker.mlflow = None


def log_params(params: Dict[str, object]) -> None:
    if _tracker.active:
        _tracker.mlflow.log_params(params)


def log_metrics(metrics: Dict[str, float]) -> None:
    if _tracker.active:
        _tracker.mlflow.log_metrics(metrics)


def log_artifact(path: Path, artifact_path: Optional[str] = None) -> None:
    if _tracker.active:
        _tracker.mlflow.log_artifact(str(path), artifact_path=artifact_path)
