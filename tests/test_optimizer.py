"""Tests for the peephole passes in :mod:`qopt.optimizer`."""

from __future__ import annotations

import logging
import math

import pytest

from qopt import Circuit, Gate, GateKind, Optimizer, config, optimize
from qopt.optimizer import (
    cancel_adjacent_inverses,
    gates_cancel,
    merge_rotations,
    remove_identity_rotations,
)


def kinds(circuit):
    return [g.kind for g in circuit]


def test_rotation_pair_cancels():
    theta = 0.731
    circ = Circuit(1).rz(0, theta).rz(0, -theta)
    assert optimize(circ).gate_count() == 0


def test_cx_pair_cancels():
    circ = Circuit(2).cx(0, 1).cx(0, 1)
    assert optimize(circ).gate_count() == 0


def test_bell_pair_is_untouched():
    circ = Circuit(2).h(0).cx(0, 1)
    assert optimize(circ) == circ


def test_register_sizes_preserved():
    circ = Circuit(5, 2).x(1).x(1)
    out = optimize(circ)
    assert out.num_qubits == 5
    assert out.num_clbits == 2
    assert out.gate_count() == 0


def test_input_not_mutated():
    circ = Circuit(2).h(0).h(0).cx(0, 1)
    before = list(circ.gates)
    out = Optimizer().optimize(circ)
    assert list(circ.gates) == before
    assert out is not circ
    assert kinds(out) == [GateKind.CX]


def test_cancellation_across_disjoint_gates():
    circ = Circuit(3).x(0).h(1).cz(1, 2).x(0)
    assert kinds(optimize(circ)) == [GateKind.H, GateKind.CZ]


def test_intervening_gate_blocks_cancellation():
    circ = Circuit(2).x(0).cx(0, 1).x(0)
    assert optimize(circ) == circ


def test_nested_pairs_need_two_passes():
    circ = Circuit(1).rz(0, 0.2).rz(0, 0.5).rz(0, -0.5).rz(0, -0.2)
    once = optimize(circ)
    assert [g.angle for g in once] == [0.2, -0.2]
    assert optimize(once).gate_count() == 0
    assert Optimizer().optimize_to_fixed_point(circ).gate_count() == 0


def test_adjacent_chain_cancels_in_one_pass():
    circ = Circuit(1).x(0).x(0).h(0).h(0)
    assert optimize(circ).gate_count() == 0


def test_odd_run_leaves_one_gate():
    circ = Circuit(1).h(0).h(0).h(0)
    assert kinds(optimize(circ)) == [GateKind.H]


def test_s_and_t_squares_do_not_cancel():
    circ = Circuit(1).s(0).s(0).t(0).t(0)
    assert optimize(circ) == circ


def test_phase_gate_and_adjoint_cancel():
    assert optimize(Circuit(1).s(0).sdg(0)).gate_count() == 0
    assert optimize(Circuit(1).tdg(0).t(0)).gate_count() == 0


def test_symmetric_kinds_ignore_operand_order():
    assert optimize(Circuit(2).cz(0, 1).cz(1, 0)).gate_count() == 0
    assert optimize(Circuit(2).swap(1, 0).swap(0, 1)).gate_count() == 0


def test_reversed_cx_does_not_cancel():
    circ = Circuit(2).cx(0, 1).cx(1, 0)
    assert optimize(circ) == circ


def test_rotations_of_different_kind_or_qubit_do_not_cancel():
    assert optimize(Circuit(1).rx(0, 0.4).rz(0, -0.4)).gate_count() == 2
    assert optimize(Circuit(2).rz(0, 0.4).rz(1, -0.4)).gate_count() == 2


def test_tolerance_controls_angle_matching():
    circ = Circuit(1).rz(0, 0.3).rz(0, -0.3 + 1e-6)
    assert Optimizer().optimize(circ).gate_count() == 2
    assert Optimizer(tolerance=1e-3).optimize(circ).gate_count() == 0


def test_tolerance_default_read_from_config(monkeypatch):
    monkeypatch.setattr(config.DEFAULT, "cancellation_tolerance", 1e-3)
    circ = Circuit(1).rz(0, 0.3).rz(0, -0.3 + 1e-6)
    assert Optimizer().optimize(circ).gate_count() == 0


def test_measurements_never_cancel():
    circ = Circuit(1, 1).measure(0, 0).measure(0, 0)
    assert optimize(circ) == circ


def test_gates_cancel_predicate():
    assert gates_cancel(Gate(GateKind.H, (0,)), Gate(GateKind.H, (0,)), 1e-10)
    assert not gates_cancel(Gate(GateKind.H, (0,)), Gate(GateKind.X, (0,)), 1e-10)
    assert not gates_cancel(Gate(GateKind.RX, (0,), (0.1,)), Gate(GateKind.H, (0,)), 1e-10)


def test_cancel_pass_on_raw_sequence():
    gates = [Gate(GateKind.Y, (0,)), Gate(GateKind.Y, (0,)), Gate(GateKind.Z, (0,))]
    assert cancel_adjacent_inverses(gates, 1e-10) == [Gate(GateKind.Z, (0,))]
    assert len(gates) == 3


def test_remove_identity_rotations():
    gates = [
        Gate(GateKind.I, (0,)),
        Gate(GateKind.RX, (0,), (0.0,)),
        Gate(GateKind.RY, (0,), (1e-12,)),
        Gate(GateKind.RZ, (0,), (0.5,)),
    ]
    assert remove_identity_rotations(gates, 1e-10) == [Gate(GateKind.RZ, (0,), (0.5,))]


def test_merge_rotations():
    gates = [
        Gate(GateKind.RZ, (0,), (0.1,), metadata={"origin": "first"}),
        Gate(GateKind.H, (1,)),
        Gate(GateKind.RZ, (0,), (0.2,)),
        Gate(GateKind.RZ, (0,), (0.3,)),
        Gate(GateKind.X, (0,)),
        Gate(GateKind.RZ, (0,), (0.4,)),
    ]
    merged = merge_rotations(gates, 1e-10)
    assert [g.kind for g in merged] == [GateKind.RZ, GateKind.H, GateKind.X, GateKind.RZ]
    assert merged[0].angle == pytest.approx(0.6)
    assert merged[0].metadata["origin"] == "first"
    assert merged[3].angle == 0.4


def test_merge_rotations_drops_vanishing_runs():
    gates = [
        Gate(GateKind.RX, (0,), (0.25,)),
        Gate(GateKind.RX, (0,), (0.5,)),
        Gate(GateKind.RX, (0,), (-0.75,)),
    ]
    assert merge_rotations(gates, 1e-10) == []


def test_optimization_levels():
    circ = Circuit(2).i(0).rz(1, 0.1).rz(1, 0.2).h(0).h(0)
    assert Optimizer(optimization_level=0).optimize(circ) == circ
    level1 = Optimizer(optimization_level=1).optimize(circ)
    assert kinds(level1) == [GateKind.I, GateKind.RZ, GateKind.RZ]
    level2 = Optimizer(optimization_level=2).optimize(circ)
    assert kinds(level2) == [GateKind.RZ]
    assert level2.gates[0].angle == pytest.approx(0.3)


def test_default_level_read_from_config(monkeypatch):
    monkeypatch.setattr(config.DEFAULT, "optimization_level", 0)
    circ = Circuit(1).x(0).x(0)
    assert Optimizer().optimize(circ).gate_count() == 2


def test_invalid_level_rejected():
    with pytest.raises(ValueError):
        Optimizer(optimization_level=7)


def test_custom_pass_sequence():
    optimizer = Optimizer([remove_identity_rotations])
    circ = Circuit(1).i(0).x(0).x(0)
    assert kinds(optimizer(circ)) == [GateKind.X, GateKind.X]


def test_run_records_each_pass():
    circ = Circuit(2).i(0).h(1).h(1).cx(0, 1)
    result = Optimizer(optimization_level=2).run(circ)
    assert [p.name for p in result.passes] == [
        "remove_identity_rotations",
        "cancel_adjacent_inverses",
        "merge_rotations",
    ]
    first, second, third = result.passes
    assert (first.gates_before, first.gates_after) == (4, 3)
    assert (second.gates_before, second.gates_after) == (3, 1)
    assert third.gates_removed == 0
    assert result.gates_removed == 3
    assert second.depth_after <= second.depth_before
    assert result.circuit.gate_count() == 1


def test_pass_logging_level(monkeypatch, caplog):
    circ = Circuit(1).x(0).x(0)
    with caplog.at_level(logging.INFO, logger="qopt.optimizer"):
        Optimizer().optimize(circ)
    assert not caplog.records

    monkeypatch.setattr(config.DEFAULT, "log_passes", True)
    with caplog.at_level(logging.INFO, logger="qopt.optimizer"):
        Optimizer().optimize(circ)
    assert any("cancel_adjacent_inverses" in r.getMessage() for r in caplog.records)


def test_fixed_point_respects_iteration_cap():
    circ = Circuit(1)
    for angle in (0.1, 0.2, 0.3):
        circ.rz(0, angle)
    for angle in (-0.3, -0.2, -0.1):
        circ.rz(0, angle)
    optimizer = Optimizer()
    assert optimizer.optimize_to_fixed_point(circ, max_iterations=1).gate_count() == 4
    assert optimizer.optimize_to_fixed_point(circ, max_iterations=2).gate_count() == 2
    assert optimizer.optimize_to_fixed_point(circ).gate_count() == 0


def test_sx_inverse_pair_is_not_cancelled_directly():
    circ = Circuit(1).sx(0).rx(0, -math.pi / 2)
    assert optimize(circ).gate_count() == 2
