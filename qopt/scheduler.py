from __future__ import annotations

"""Greedy layering of circuits into parallel execution steps.

The scheduler walks the gate list once in program order.  A gate joins the
layer under construction unless one of its qubits is already busy in that
layer, in which case the layer is closed and a new one is opened with the
gate alone.  The resulting layer count is the circuit depth.

Gates are never commuted across each other, so two programs with the same
dependency structure but a different interleaving of qubit-disjoint gates may
report different depths.  :meth:`Scheduler.critical_path_length` gives the
per-qubit dependency depth for comparison.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple, TYPE_CHECKING

from .gates import Gate

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .circuit import Circuit


@dataclass(frozen=True)
class Layer:
    """Gates executed together in one time step.

    Attributes
    ----------
    index:
        Position of the layer in the schedule, starting at zero.
    gates:
        Member gates in program order.  No two share a qubit.
    qubits:
        Union of the qubits touched by ``gates``.
    """

    index: int
    gates: Tuple[Gate, ...]
    qubits: FrozenSet[int]

    def __len__(self) -> int:
        return len(self.gates)


def _gate_sequence(circuit: "Circuit | Iterable[Gate]") -> Iterable[Gate]:
    gates = getattr(circuit, "gates", None)
    if gates is not None:
        return gates
    return circuit


class Scheduler:
    """Compute the greedy layering and depth of a circuit.

    The scheduler is stateless; one instance may be shared between threads.
    Every method accepts either a :class:`~qopt.circuit.Circuit` or a plain
    iterable of :class:`~qopt.gates.Gate`.
    """

    def layers(self, circuit: "Circuit | Iterable[Gate]") -> List[Layer]:
        """Partition the gates into ordered, qubit-disjoint layers."""

        layers: List[Layer] = []
        current: List[Gate] = []
        active: Set[int] = set()

        def close() -> None:
            if current:
                layers.append(Layer(len(layers), tuple(current), frozenset(active)))

        for gate in _gate_sequence(circuit):
            if active.intersection(gate.qubits):
                close()
                current = [gate]
                active = set(gate.qubits)
            else:
                current.append(gate)
                active.update(gate.qubits)
        close()
        return layers

    def depth(self, circuit: "Circuit | Iterable[Gate]") -> int:
        """Return the number of layers; zero for an empty circuit."""

        return len(self.layers(circuit))

    def layer_indices(self, circuit: "Circuit | Iterable[Gate]") -> List[int]:
        """Return the layer index assigned to each gate in program order."""

        return [layer.index for layer in self.layers(circuit) for _ in layer.gates]

    def critical_path_length(self, circuit: "Circuit | Iterable[Gate]") -> int:
        """Return the as-soon-as-possible dependency depth.

        Each gate is placed one level after the latest gate sharing any of
        its qubits.  This is never larger than :meth:`depth`.
        """

        qubit_levels: Dict[int, int] = {}
        depth = 0
        for gate in _gate_sequence(circuit):
            level = max((qubit_levels.get(q, 0) for q in gate.qubits), default=0) + 1
            for q in gate.qubits:
                qubit_levels[q] = level
            depth = max(depth, level)
        return depth


__all__ = ["Layer", "Scheduler"]
