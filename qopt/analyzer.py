from __future__ import annotations

"""Circuit analysis utilities for qopt.

The analyzer inspects a :class:`~qopt.circuit.Circuit` and derives
several read-only metrics:

* **Gate distribution** – frequency of each gate kind in the circuit.
* **Qubit usage** – how many gates touch each qubit.
* **Interaction metrics** – connectivity of the graph induced by two-qubit
  gates.
* **Layering** – greedy layers and the dependency critical path.
"""

from dataclasses import dataclass
from collections import Counter
import math
from typing import Dict, List

import networkx as nx

from .circuit import Circuit
from .gates import GateKind
from .scheduler import Scheduler

CLIFFORD_KINDS = frozenset(
    {
        GateKind.I,
        GateKind.X,
        GateKind.Y,
        GateKind.Z,
        GateKind.H,
        GateKind.S,
        GateKind.SDG,
        GateKind.SX,
        GateKind.CX,
        GateKind.CY,
        GateKind.CZ,
        GateKind.SWAP,
    }
)


def _is_multiple_of_half_pi(angle: float) -> bool:
    ratio = angle / (math.pi / 2)
    return math.isclose(ratio, round(ratio), abs_tol=1e-9)


@dataclass
class AnalysisResult:
    """Container bundling the results of a circuit analysis.

    Attributes
    ----------
    parallel_layers:
        Gate indices of each greedy layer.
    average_qubit_utilization:
        Mean number of gates per qubit of the register.
    """

    gate_distribution: Dict[str, int]
    qubit_usage: List[int]
    active_qubits: int
    average_qubit_utilization: float
    interaction: Dict[str, float]
    clifford_counts: Dict[str, int]
    parallel_layers: List[List[int]]
    depth: int
    critical_path_length: int


class CircuitAnalyzer:
    """Perform static analysis on a :class:`~qopt.circuit.Circuit`."""

    def __init__(self, circuit: Circuit, scheduler: Scheduler | None = None):
        self.circuit = circuit
        self.scheduler = scheduler or Scheduler()

    # ------------------------------------------------------------------
    def gate_distribution(self) -> Dict[str, int]:
        """Return the frequency of each gate kind in the circuit."""

        return dict(self.circuit.gate_counts())

    def qubit_usage(self) -> List[int]:
        """Return the number of gates acting on each qubit."""

        usage = [0] * self.circuit.num_qubits
        for gate in self.circuit.gates:
            for q in gate.qubits:
                usage[q] += 1
        return usage

    # ------------------------------------------------------------------
    def interaction_graph(self) -> nx.Graph:
        """Undirected graph over all qubits with an edge per interacting pair.

        Edge attribute ``weight`` counts the two-qubit gates on that pair.
        """

        graph = nx.Graph()
        graph.add_nodes_from(range(self.circuit.num_qubits))
        for gate in self.circuit.gates:
            if not gate.is_two_qubit:
                continue
            a, b = gate.qubits
            if graph.has_edge(a, b):
                graph[a][b]["weight"] += 1
            else:
                graph.add_edge(a, b, weight=1)
        return graph

    def interaction_metrics(self) -> Dict[str, float]:
        """Compute simple connectivity metrics for the circuit.

        The routine reports the number of connected components (isolated
        qubits included), the size of the largest component, the number of
        distinct interacting pairs and the average clustering coefficient.
        """

        graph = self.interaction_graph()
        sizes = [len(c) for c in nx.connected_components(graph)]
        return {
            "two_qubit_gate_count": float(self.circuit.two_qubit_gate_count()),
            "interacting_pairs": float(graph.number_of_edges()),
            "connected_components": float(len(sizes)),
            "max_connected_size": float(max(sizes, default=0)),
            "avg_clustering_coefficient": float(nx.average_clustering(graph))
            if graph.number_of_nodes()
            else 0.0,
        }

    # ------------------------------------------------------------------
    def clifford_counts(self) -> Dict[str, int]:
        """Count Clifford versus non-Clifford gates.

        Rotations by multiples of pi/2 count as Clifford; measurements are
        left out.
        """

        counts = {"clifford": 0, "non_clifford": 0}
        for gate in self.circuit.gates:
            if gate.kind is GateKind.MEASURE:
                continue
            if gate.kind in CLIFFORD_KINDS or (
                gate.kind.is_rotation and _is_multiple_of_half_pi(gate.angle)
            ):
                counts["clifford"] += 1
            else:
                counts["non_clifford"] += 1
        return counts

    # ------------------------------------------------------------------
    def parallel_layers(self) -> List[List[int]]:
        """Return the gate indices grouped by greedy layer."""

        layers: List[List[int]] = []
        for index, layer_index in enumerate(self.scheduler.layer_indices(self.circuit)):
            if layer_index == len(layers):
                layers.append([])
            layers[layer_index].append(index)
        return layers

    def critical_path_length(self) -> int:
        """Return the circuit depth derived from dependencies."""

        return self.scheduler.critical_path_length(self.circuit)

    # ------------------------------------------------------------------
    def analyze(self) -> AnalysisResult:
        """Return all analysis information in a single structure."""

        usage = self.qubit_usage()
        layers = self.parallel_layers()
        return AnalysisResult(
            gate_distribution=self.gate_distribution(),
            qubit_usage=usage,
            active_qubits=sum(1 for u in usage if u),
            average_qubit_utilization=sum(usage) / len(usage),
            interaction=self.interaction_metrics(),
            clifford_counts=self.clifford_counts(),
            parallel_layers=layers,
            depth=len(layers),
            critical_path_length=self.critical_path_length(),
        )


__all__ = ["CircuitAnalyzer", "AnalysisResult", "CLIFFORD_KINDS"]
