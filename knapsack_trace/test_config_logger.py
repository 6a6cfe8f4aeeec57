"""
Tests for SolverConfig sources and the SolveLogger metrics file.
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import json

import pytest

from config import DEFAULT_CONFIG, SolverConfig
from errors import ConfigError
from logger import NoOpLogger, SolveLogger, create_logger
from tracing import TraceRecorder, SKIP, TAKE


def test_defaults():
    assert DEFAULT_CONFIG.max_attachments == 16
    assert DEFAULT_CONFIG.mixed_default_count == 3
    assert DEFAULT_CONFIG.record_trace is True
    assert DEFAULT_CONFIG.enable_logging is False


def test_invalid_values_rejected():
    with pytest.raises(ConfigError):
        SolverConfig(max_attachments=-1)
    with pytest.raises(ConfigError):
        SolverConfig(mixed_default_count=0)
    with pytest.raises(ConfigError):
        DEFAULT_CONFIG.with_overrides(unknown=1)


def test_with_overrides_returns_copy():
    cfg = DEFAULT_CONFIG.with_overrides(max_attachments=4)
    assert cfg.max_attachments == 4
    assert DEFAULT_CONFIG.max_attachments == 16


def test_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max_attachments": 8, "record_trace": False}))
    cfg = SolverConfig.from_json(path)
    assert cfg.max_attachments == 8
    assert cfg.record_trace is False
    assert cfg.mixed_default_count == 3

    path.write_text(json.dumps({"bogus": 1}))
    with pytest.raises(ConfigError):
        SolverConfig.from_json(path)
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        SolverConfig.from_json(path)
    with pytest.raises(ConfigError):
        SolverConfig.from_json(tmp_path / "missing.json")


def test_from_env():
    cfg = SolverConfig.from_env({"KNAPSACK_MAX_ATTACHMENTS": "5",
                                 "KNAPSACK_ENABLE_LOGGING": "yes",
                                 "KNAPSACK_LOG_DIR": "/tmp/x",
                                 "OTHER": "ignored"})
    assert cfg.max_attachments == 5
    assert cfg.enable_logging is True
    assert cfg.log_dir == "/tmp/x"
    with pytest.raises(ConfigError):
        SolverConfig.from_env({"KNAPSACK_RECORD_TRACE": "maybe"})
    with pytest.raises(ConfigError):
        SolverConfig.from_env({"KNAPSACK_MIXED_DEFAULT_COUNT": "three"})


def test_solve_logger_metrics(tmp_path):
    logger = create_logger(instance_name="metrics_test", log_dir=str(tmp_path))
    assert isinstance(logger, SolveLogger)
    recorder = TraceRecorder()
    recorder.record(1, 0, 0, SKIP)
    recorder.record(1, 1, 4, TAKE)

    logger.start_run({"variant": "01", "n_items": 1, "capacity": 1})
    logger.log_row(1, [0, 4])
    logger.log_merge(0, 1, 4)
    logger.end_run({"max_value": 4}, recorder=recorder)

    with open(logger.metrics_file) as f:
        metrics = json.load(f)
    assert metrics["rows_filled"] == 1
    assert metrics["merges"] == 1
    assert metrics["cells_evaluated"] == 2
    assert metrics["decisions"] == {"skip": 1, "take": 1}
    assert metrics["total_runtime"] >= 0
    assert logger.get_metrics()["final_result"] == {"max_value": 4}


def test_noop_logger_surface():
    logger = NoOpLogger()
    logger.start_run({"variant": "01"})
    logger.log_row(1, [0])
    logger.log_expansion("packages", 1, 1)
    logger.log_merge(0, 1, 0)
    logger.info("ignored")
    logger.end_run({"max_value": 0})
    assert logger.get_metrics()["start_time"] is not None


def test_end_run_closes_handlers(tmp_path):
    logger = create_logger(instance_name="close_test", log_dir=str(tmp_path))
    logger.start_run({"variant": "01"})
    logger.end_run({"max_value": 0})
    assert logger.logger.handlers == []
    assert (tmp_path / f"{logger.run_id}.log").read_text()
