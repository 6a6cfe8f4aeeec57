"""Logging system for the knapsack trace solvers.

This module provides structured logging for a solve run: standard log
messages plus a metrics dictionary (rows filled, cells evaluated, decision
counts, expansions, runtime) that is saved as JSON when the run ends.
"""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class SolveLogger:
    """Logger for one DP solve run with performance metrics.

    Tracks:
    - Standard log messages (debug, info, warning, error)
    - Fill progress (rows filled, cells evaluated, decision counts)
    - Preprocessing (split items, packages) and tree merges
    - Instance characteristics and the final result
    """

    def __init__(self, log_dir: str = "logs", instance_name: str = "default"):
        """Initialize the logger.

        Args:
            log_dir: Directory for log files
            instance_name: Name of the problem instance being solved
        """
        self.instance_name = instance_name
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Create timestamp for this run
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.run_id = f"{instance_name}_{self.timestamp}"

        self.metrics = {
            "instance_name": instance_name,
            "timestamp": self.timestamp,
            "start_time": None,
            "end_time": None,
            "total_runtime": None,
            "rows_filled": 0,
            "cells_evaluated": 0,
            "node_events": 0,
            "decisions": {},
            "expansions": [],
            "merges": 0,
        }

        self._setup_file_logger()
        self._setup_metrics_logger()

        self.logger.info(f"Initialized logger for instance: {instance_name}")
        self.logger.info(f"Run ID: {self.run_id}")

    def _setup_file_logger(self):
        """Setup standard file logger for text messages."""
        log_file = self.log_dir / f"{self.run_id}.log"

        self.logger = logging.getLogger(f"knapsack_{self.run_id}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # Remove existing handlers to avoid duplicates
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_formatter = logging.Formatter('%(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        self.logger.addHandler(console_handler)

    def _setup_metrics_logger(self):
        """Setup metrics file for structured performance data."""
        self.metrics_file = self.log_dir / f"{self.run_id}_metrics.json"

    def start_run(self, problem_data: Optional[Dict[str, Any]] = None):
        """Mark the start of a solve run.

        Args:
            problem_data: Dictionary with problem characteristics
                         (variant, n_items, capacity, ...)
        """
        self.metrics["start_time"] = time.time()
        if problem_data:
            self.metrics["problem_data"] = problem_data
        self.logger.info("=" * 60)
        self.logger.info("Starting DP solve")
        if problem_data:
            self.logger.info(f"Problem: {problem_data}")
        self.logger.info("=" * 60)

    def end_run(self, final_result: Optional[Dict[str, Any]] = None, recorder=None):
        """Mark the end of a solve run and save metrics.

        Args:
            final_result: Dictionary with the final value and path length
            recorder: TraceRecorder of the run, used for cell/decision counts
        """
        self.metrics["end_time"] = time.time()
        self.metrics["total_runtime"] = self.metrics["end_time"] - self.metrics["start_time"]
        if recorder is not None:
            self.metrics["cells_evaluated"] = recorder.cells_evaluated
            self.metrics["node_events"] = recorder.node_events
            self.metrics["decisions"] = dict(recorder.decisions)
        if final_result:
            self.metrics["final_result"] = final_result

        self._save_metrics()

        self.logger.info("=" * 60)
        self.logger.info("DP solve completed")
        self.logger.info(f"Total runtime: {self.metrics['total_runtime']:.3f} seconds")
        self.logger.info(f"Rows filled: {self.metrics['rows_filled']}")
        self.logger.info(f"Cells evaluated: {self.metrics['cells_evaluated']}")
        if self.metrics["decisions"]:
            self.logger.info(f"Decisions: {self.metrics['decisions']}")
        self.logger.info("=" * 60)
        self.close()

    def close(self):
        """Close and detach the file and console handlers of this run."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def log_row(self, row: int, values):
        """Log a completed table row."""
        self.metrics["rows_filled"] += 1
        self.logger.debug(f"Row {row} filled: {list(values)}")

    def log_expansion(self, kind: str, n_items: int, n_rows: int):
        """Log a preprocessing step (binary decomposition, package enumeration).

        Args:
            kind: "split_items" or "packages"
            n_items: Catalog size before expansion
            n_rows: Pseudo-items produced
        """
        self.metrics["expansions"].append({"kind": kind, "items": n_items, "rows": n_rows})
        self.logger.info(f"Expanded {n_items} items into {n_rows} {kind}")

    def log_merge(self, node: int, child: int, value_at_capacity):
        """Log a tree merge (node -1 is the forest of all roots)."""
        self.metrics["merges"] += 1
        self.logger.debug(f"Merged child {child} into node {node}: value at capacity = {value_at_capacity}")

    def _save_metrics(self):
        """Save metrics dictionary to JSON file."""
        with open(self.metrics_file, 'w') as f:
            json.dump(self.metrics, f, indent=2, default=str)

        self.logger.info(f"Metrics saved to: {self.metrics_file}")

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics dictionary.

        Returns:
            Dictionary with all tracked metrics
        """
        return self.metrics.copy()

    def debug(self, msg: str):
        """Log debug message."""
        self.logger.debug(msg)

    def info(self, msg: str):
        """Log info message."""
        self.logger.info(msg)

    def warning(self, msg: str):
        """Log warning message."""
        self.logger.warning(msg)

    def error(self, msg: str):
        """Log error message."""
        self.logger.error(msg)


class NoOpLogger:
    """Drop-in replacement for SolveLogger when logging is disabled."""

    def __init__(self):
        self.metrics = {"start_time": None}

    def start_run(self, problem_data=None):
        self.metrics["start_time"] = time.time()

    def end_run(self, final_result=None, recorder=None):
        pass

    def close(self):
        pass

    def log_row(self, row, values):
        pass

    def log_expansion(self, kind, n_items, n_rows):
        pass

    def log_merge(self, node, child, value_at_capacity):
        pass

    def get_metrics(self):
        return self.metrics.copy()

    def debug(self, msg):
        pass

    def info(self, msg):
        pass

    def warning(self, msg):
        pass

    def error(self, msg):
        pass


def create_logger(instance_name: str = "default", log_dir: str = "logs") -> SolveLogger:
    """Factory function to create a SolveLogger.

    Args:
        instance_name: Name of the problem instance
        log_dir: Directory for log files

    Returns:
        Configured SolveLogger instance
    """
    return SolveLogger(log_dir=log_dir, instance_name=instance_name)
