import pytest

from qopt import Circuit, Gate, GateKind
from qopt.gates import OutOfRangeClbitError, OutOfRangeQubitError


def bell_pair():
    return Circuit(2).append(Gate(GateKind.H, (0,))).append(Gate(GateKind.CX, (0, 1)))


def test_bell_pair_counts_and_depth():
    circ = bell_pair()
    assert circ.gate_count() == 2
    assert circ.two_qubit_gate_count() == 1
    assert circ.depth == 2


def test_append_rejects_out_of_range_qubit():
    circ = Circuit(2)
    with pytest.raises(OutOfRangeQubitError) as exc:
        circ.append(Gate(GateKind.CX, (0, 2)))
    assert exc.value.qubit == 2
    assert exc.value.num_qubits == 2
    assert circ.gate_count() == 0


def test_append_rejects_negative_qubit():
    with pytest.raises(OutOfRangeQubitError):
        Circuit(3).x(-1)


def test_measure_validates_classical_register():
    circ = Circuit(2, 1)
    circ.measure(0, 0)
    with pytest.raises(OutOfRangeClbitError):
        circ.measure(1)
    assert circ.gate_count() == 1


def test_measure_all():
    circ = Circuit(3, 3).h(0).measure_all()
    assert circ.gate_counts() == {"H": 1, "MEASURE": 3}
    assert [g.clbits for g in circ.gates[1:]] == [(0,), (1,), (2,)]


def test_invalid_register_sizes():
    with pytest.raises(ValueError):
        Circuit(0)
    with pytest.raises(ValueError):
        Circuit(1, -1)


def test_builders_chain():
    circ = Circuit(3).h(0).rx(1, 0.5).cz(1, 2).swap(0, 2).t(1)
    assert [g.kind for g in circ] == [GateKind.H, GateKind.RX, GateKind.CZ, GateKind.SWAP, GateKind.T]
    assert circ.two_qubit_gate_count() == 2
    assert len(circ) == 5


def test_gates_view_is_read_only():
    circ = bell_pair()
    assert isinstance(circ.gates, tuple)
    with pytest.raises(AttributeError):
        circ.gates.append(Gate(GateKind.X, (0,)))  # type: ignore[attr-defined]


def test_initial_gates_accept_mappings():
    circ = Circuit(2, 0, [{"kind": "H", "qubits": [0]}, {"kind": "CX", "qubits": [0, 1]}])
    assert circ == bell_pair()


def test_copy_is_independent():
    circ = bell_pair()
    circ.metadata["owner"] = {"team": "compiler"}
    clone = circ.copy()
    clone.x(1)
    clone.metadata["owner"]["team"] = "changed"

    assert circ.gate_count() == 2
    assert clone.gate_count() == 3
    assert circ.metadata["owner"]["team"] == "compiler"
    circ.z(0)
    assert clone.gates[-1].kind is GateKind.X


def test_depth_never_decreases_when_appending():
    circ = Circuit(4)
    ops = [
        Gate(GateKind.H, (0,)),
        Gate(GateKind.H, (1,)),
        Gate(GateKind.CX, (0, 1)),
        Gate(GateKind.X, (3,)),
        Gate(GateKind.CZ, (2, 3)),
        Gate(GateKind.RZ, (0,), (0.1,)),
        Gate(GateKind.H, (2,)),
    ]
    previous = circ.depth
    assert previous == 0
    for gate in ops:
        circ.append(gate)
        assert circ.depth >= previous
        previous = circ.depth


def test_compose():
    left = Circuit(2, 1).h(0)
    right = Circuit(2, 2).cx(0, 1).measure(1, 1)
    composed = left.compose(right)
    assert composed.num_clbits == 2
    assert [g.kind for g in composed] == [GateKind.H, GateKind.CX, GateKind.MEASURE]
    assert left.gate_count() == 1
    with pytest.raises(ValueError):
        left.compose(Circuit(3))


def test_inverse_reverses_and_inverts():
    circ = Circuit(2).h(0).s(1).rz(0, 0.4).cx(0, 1)
    inv = circ.inverse()
    assert [g.kind for g in inv] == [GateKind.CX, GateKind.RZ, GateKind.SDG, GateKind.H]
    assert inv.gates[1].angle == -0.4
    with pytest.raises(ValueError):
        Circuit(1, 1).measure(0).inverse()


def test_gate_counts():
    circ = Circuit(2).h(0).h(1).cx(0, 1)
    assert circ.gate_counts() == {"H": 2, "CX": 1}


def test_four_disjoint_hadamards_form_one_layer():
    circ = Circuit(4).h(0).h(1).h(2).h(3)
    assert circ.depth == 1
    layers = circ.layers()
    assert len(layers) == 1
    assert layers[0].qubits == frozenset({0, 1, 2, 3})
