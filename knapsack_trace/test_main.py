"""
Tests for the command-line entry point.
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import json

import pandas as pd
import pytest

from main import main


def run_cli(capsys, argv):
    code = main(argv)
    out = capsys.readouterr().out
    return code, json.loads(out.splitlines()[0])


def test_zero_one_document(capsys):
    code, doc = run_cli(capsys, ["01", "10", "4", "2,3", "3,4", "4,5", "5,6"])
    assert code == 0
    assert doc["code"] == 200
    assert doc["max_value"] == 13
    assert len(doc["items"]) == 4


def test_kth_and_2d_headers(capsys):
    code, doc = run_cli(capsys, ["kth", "3", "2", "3", "1,1", "1,1", "1,2"])
    assert code == 0
    assert doc["topK"] == [4, 3]
    assert doc["kth_value"] == 3

    code, doc = run_cli(capsys, ["2d", "4", "3", "2", "2,2,3", "2,2,4"])
    assert code == 0
    assert doc["capacity2"] == 3
    assert doc["max_value"] == 4


def test_insufficient_arguments(capsys):
    code, doc = run_cli(capsys, ["01", "10"])
    assert code == 1
    assert doc["code"] == 400
    assert "Insufficient" in doc["error"]


def test_malformed_and_contract_errors(capsys):
    code, doc = run_cli(capsys, ["group", "10", "1", "2,3"])
    assert code == 1 and doc["code"] == 400
    code, doc = run_cli(capsys, ["01", "-1", "1", "2,3"])
    assert code == 1 and doc["code"] == 400


def test_unknown_variant_exits():
    with pytest.raises(SystemExit):
        main(["knapsack", "10", "0"])


def test_no_trace_and_csv(capsys, tmp_path):
    csv_path = tmp_path / "trace.csv"
    code, doc = run_cli(capsys, ["complete", "5", "1", "2,3", "--csv", str(csv_path)])
    assert code == 0
    assert doc["max_value"] == 6
    assert len(pd.read_csv(csv_path)) == 6

    code, doc = run_cli(capsys, ["complete", "5", "1", "2,3", "--no-trace"])
    assert doc["steps"] == []
    assert len(doc["path"]) == 2


def test_config_file(capsys, tmp_path):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"mixed_default_count": 5}))
    code, doc = run_cli(capsys, ["mixed", "10", "1", "1,10,2", "--config", str(cfg)])
    assert code == 0
    assert doc["max_value"] == 50
