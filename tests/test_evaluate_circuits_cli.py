"""Tests for the ``tools/evaluate_circuits.py`` command line interface."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from qopt import Circuit

_SCRIPT = Path(__file__).resolve().parents[1] / "tools" / "evaluate_circuits.py"


def _load_cli():
    spec = importlib.util.spec_from_file_location("evaluate_circuits", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


def test_cli_prints_reports(tmp_path, capsys) -> None:
    cli = _load_cli()
    path = tmp_path / "pairs.json"
    Circuit(3).x(0).x(0).cx(0, 2).to_json(path)

    assert cli.main([str(path), "--device", "rigetti_aspen"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["circuit"] == "pairs"
    assert payload["before"]["gate_count"] == 3
    assert payload["after"]["gate_count"] == 1
    assert payload["after"]["target"] == "rigetti_aspen"
    assert len(payload["after"]["routing_violations"]) == 1


def test_cli_writes_optimized_circuits(tmp_path, capsys) -> None:
    cli = _load_cli()
    source = tmp_path / "in.json"
    Circuit(2).h(0).h(0).cz(0, 1).to_json(source)
    target = tmp_path / "chain.json"
    target.write_text(json.dumps({"num_qubits": 2, "edges": [[0, 1]], "name": "chain"}))
    out_dir = tmp_path / "out"

    assert cli.main([str(source), "--target", str(target), "--output-dir", str(out_dir)]) == 0

    optimized = Circuit.from_json(out_dir / "in.optimized.json")
    assert optimized.gate_count() == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["after"]["target"] == "chain"


def test_cli_rejects_unknown_device(tmp_path) -> None:
    cli = _load_cli()
    path = tmp_path / "c.json"
    Circuit(1).x(0).to_json(path)
    with pytest.raises(SystemExit):
        cli.main([str(path), "--device", "nonexistent"])
