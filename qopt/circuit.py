"""Circuit representation and loading utilities for qopt."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple, TYPE_CHECKING
import copy
import json
import logging
import os

from .gates import (
    CircuitError,
    Gate,
    GateKind,
    OutOfRangeClbitError,
    OutOfRangeQubitError,
    as_index,
)
from .scheduler import Layer, Scheduler


if TYPE_CHECKING:  # pragma: no cover - typing only
    from qiskit.circuit import QuantumCircuit


LOGGER = logging.getLogger(__name__)

# qiskit instruction names that carry no gate semantics for the core.
_IGNORED_QISKIT_OPS = frozenset({"barrier", "delay"})
_QISKIT_METHODS = {GateKind.I: "id"}


class Circuit:
    """Ordered gate sequence over a fixed number of qubits.

    Parameters
    ----------
    num_qubits:
        Width of the quantum register.  Must be positive.
    num_clbits:
        Width of the classical register used by measurements.
    gates:
        Optional initial gates, appended (and validated) in order.  Mappings
        are parsed with :meth:`Gate.from_dict`.
    name, metadata:
        Free-form labels copied along with the circuit.

    The gate list is only reachable through a read-only tuple; all insertion
    goes through :meth:`append`, which rejects out-of-range operands.
    """

    def __init__(
        self,
        num_qubits: int,
        num_clbits: int = 0,
        gates: Iterable[Gate | Mapping[str, Any]] = (),
        *,
        name: str = "",
        metadata: Mapping[str, Any] | None = None,
    ):
        num_qubits = as_index(num_qubits, "num_qubits")
        num_clbits = as_index(num_clbits, "num_clbits")
        if num_qubits <= 0:
            raise ValueError(f"num_qubits must be positive, got {num_qubits}")
        if num_clbits < 0:
            raise ValueError(f"num_clbits must be non-negative, got {num_clbits}")
        self._num_qubits = num_qubits
        self._num_clbits = num_clbits
        self._gates: List[Gate] = []
        self._two_qubit_count = 0
        self.name = name
        self.metadata: Dict[str, Any] = copy.deepcopy(dict(metadata or {}))
        self.extend(gates)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def append(self, gate: Gate | Mapping[str, Any]) -> "Circuit":
        """Validate ``gate`` against the registers and append it.

        Returns the circuit so that calls can be chained.

        Raises
        ------
        OutOfRangeQubitError
            If an operand lies outside ``[0, num_qubits)``.
        OutOfRangeClbitError
            If a measurement targets a bit outside ``[0, num_clbits)``.
        """

        if not isinstance(gate, Gate):
            gate = Gate.from_dict(gate)
        for q in gate.qubits:
            if q < 0 or q >= self._num_qubits:
                raise OutOfRangeQubitError(q, self._num_qubits, gate)
        for c in gate.clbits:
            if c < 0 or c >= self._num_clbits:
                raise OutOfRangeClbitError(c, self._num_clbits, gate)
        self._gates.append(gate)
        if gate.is_two_qubit:
            self._two_qubit_count += 1
        return self

    def extend(self, gates: Iterable[Gate | Mapping[str, Any]]) -> "Circuit":
        for gate in gates:
            self.append(gate)
        return self

    def add(self, kind: GateKind | str, *qubits: int, params: Tuple[float, ...] = ()) -> "Circuit":
        """Build a gate of ``kind`` on ``qubits`` and append it."""

        return self.append(Gate(kind, qubits, params))

    def i(self, qubit: int) -> "Circuit":
        return self.add(GateKind.I, qubit)

    def x(self, qubit: int) -> "Circuit":
        return self.add(GateKind.X, qubit)

    def y(self, qubit: int) -> "Circuit":
        return self.add(GateKind.Y, qubit)

    def z(self, qubit: int) -> "Circuit":
        return self.add(GateKind.Z, qubit)

    def h(self, qubit: int) -> "Circuit":
        return self.add(GateKind.H, qubit)

    def s(self, qubit: int) -> "Circuit":
        return self.add(GateKind.S, qubit)

    def sdg(self, qubit: int) -> "Circuit":
        return self.add(GateKind.SDG, qubit)

    def t(self, qubit: int) -> "Circuit":
        return self.add(GateKind.T, qubit)

    def tdg(self, qubit: int) -> "Circuit":
        return self.add(GateKind.TDG, qubit)

    def sx(self, qubit: int) -> "Circuit":
        return self.add(GateKind.SX, qubit)

    def rx(self, qubit: int, theta: float) -> "Circuit":
        return self.add(GateKind.RX, qubit, params=(theta,))

    def ry(self, qubit: int, theta: float) -> "Circuit":
        return self.add(GateKind.RY, qubit, params=(theta,))

    def rz(self, qubit: int, theta: float) -> "Circuit":
        return self.add(GateKind.RZ, qubit, params=(theta,))

    def cx(self, control: int, target: int) -> "Circuit":
        return self.add(GateKind.CX, control, target)

    def cy(self, control: int, target: int) -> "Circuit":
        return self.add(GateKind.CY, control, target)

    def cz(self, a: int, b: int) -> "Circuit":
        return self.add(GateKind.CZ, a, b)

    def swap(self, a: int, b: int) -> "Circuit":
        return self.add(GateKind.SWAP, a, b)

    def measure(self, qubit: int, clbit: int | None = None) -> "Circuit":
        """Measure ``qubit`` into ``clbit`` (defaults to the same index)."""

        target = qubit if clbit is None else clbit
        return self.append(Gate(GateKind.MEASURE, (qubit,), clbits=(target,)))

    def measure_all(self) -> "Circuit":
        """Measure every qubit into the classical bit of the same index."""

        for q in range(self._num_qubits):
            self.measure(q)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def num_qubits(self) -> int:
        return self._num_qubits

    @property
    def num_clbits(self) -> int:
        return self._num_clbits

    @property
    def gates(self) -> Tuple[Gate, ...]:
        """Gates in execution order."""

        return tuple(self._gates)

    def gate_count(self) -> int:
        return len(self._gates)

    def two_qubit_gate_count(self) -> int:
        return self._two_qubit_count

    def gate_counts(self) -> Counter[str]:
        """Return the number of gates per kind name."""

        return Counter(g.kind.name for g in self._gates)

    def layers(self) -> List[Layer]:
        """Greedy parallel layering, see :class:`~qopt.scheduler.Scheduler`."""

        return Scheduler().layers(self)

    @property
    def depth(self) -> int:
        """Number of layers produced by the greedy scheduler."""

        return Scheduler().depth(self)

    def __len__(self) -> int:
        return len(self._gates)

    def __iter__(self) -> Iterator[Gate]:
        return iter(tuple(self._gates))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Circuit):
            return NotImplemented
        return (
            self._num_qubits == other._num_qubits
            and self._num_clbits == other._num_clbits
            and self._gates == other._gates
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (
            f"Circuit{label}({self._num_qubits} qubits, {self._num_clbits} clbits, "
            f"{len(self._gates)} gates)"
        )

    # ------------------------------------------------------------------
    # Derived circuits
    # ------------------------------------------------------------------
    def copy(self) -> "Circuit":
        """Return a deep copy; mutating either circuit never affects the other."""

        return self.with_gates(g.clone() for g in self._gates)

    clone = copy

    def with_gates(self, gates: Iterable[Gate]) -> "Circuit":
        """Return a new circuit with the same registers and labels but ``gates``."""

        return Circuit(
            self._num_qubits,
            self._num_clbits,
            gates,
            name=self.name,
            metadata=self.metadata,
        )

    def compose(self, other: "Circuit") -> "Circuit":
        """Return ``self`` followed by ``other`` as a new circuit."""

        if other.num_qubits != self._num_qubits:
            raise ValueError(
                "Cannot compose circuits with different numbers of qubits: "
                f"{self._num_qubits} != {other.num_qubits}"
            )
        composed = Circuit(
            self._num_qubits,
            max(self._num_clbits, other.num_clbits),
            name=self.name,
            metadata=self.metadata,
        )
        composed.extend(g.clone() for g in self._gates)
        composed.extend(g.clone() for g in other.gates)
        return composed

    def inverse(self) -> "Circuit":
        """Return the circuit undoing ``self``.

        Raises
        ------
        ValueError
            If the circuit contains a measurement.
        """

        return self.with_gates(g.inverse() for g in reversed(self._gates))

    # ------------------------------------------------------------------
    # JSON serialisation helpers
    # ------------------------------------------------------------------
    def to_dict(self, *, include_metadata: bool = True) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the circuit."""

        data: Dict[str, Any] = {
            "num_qubits": self._num_qubits,
            "num_clbits": self._num_clbits,
            "gates": [g.to_dict(include_metadata=include_metadata) for g in self._gates],
        }
        if include_metadata:
            if self.name:
                data["name"] = self.name
            if self.metadata:
                data["metadata"] = copy.deepcopy(self.metadata)
        return data

    def to_json(
        self,
        path: str | os.PathLike[str] | None = None,
        *,
        include_metadata: bool = True,
        **json_kwargs: Any,
    ) -> str:
        """Serialise the circuit to JSON and optionally write it to ``path``."""

        text = json.dumps(self.to_dict(include_metadata=include_metadata), **json_kwargs)
        if path is not None:
            with open(os.fspath(path), "w", encoding="utf8") as fh:
                fh.write(text)
        return text

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Circuit":
        """Build a circuit from a mapping in the :meth:`to_dict` layout.

        ``num_qubits`` may be omitted, in which case it is inferred as one
        more than the largest qubit index referenced.
        """

        gates_data = data.get("gates")
        if gates_data is None:
            raise ValueError("Circuit dictionary must contain a 'gates' entry")
        gates = [g if isinstance(g, Gate) else Gate.from_dict(g) for g in gates_data]
        num_qubits = data.get("num_qubits")
        if num_qubits is None:
            num_qubits = max((q for g in gates for q in g.qubits), default=0) + 1
        num_clbits = data.get("num_clbits")
        if num_clbits is None:
            num_clbits = max((c for g in gates for c in g.clbits), default=-1) + 1
        return cls(
            num_qubits,
            num_clbits,
            gates,
            name=str(data.get("name", "")),
            metadata=data.get("metadata"),
        )

    @classmethod
    def from_json(cls, path: str | os.PathLike[str]) -> "Circuit":
        """Load a circuit from a JSON file written by :meth:`to_json`."""

        with open(os.fspath(path), "r", encoding="utf8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    # ------------------------------------------------------------------
    # Qiskit / OpenQASM interchange
    # ------------------------------------------------------------------
    @classmethod
    def from_qiskit(cls, circuit: "QuantumCircuit") -> "Circuit":
        """Build a :class:`Circuit` from a Qiskit ``QuantumCircuit``.

        Barriers and delays are dropped.  Any other instruction outside
        :class:`GateKind` raises :class:`~qopt.gates.UnknownGateKindError`.
        Unbound symbolic parameters raise :class:`~qopt.gates.CircuitError`.
        """

        result = cls(
            max(circuit.num_qubits, 1),
            circuit.num_clbits,
            name=circuit.name or "",
        )
        for ci in circuit.data:
            op = ci.operation
            if op.name in _IGNORED_QISKIT_OPS:
                LOGGER.debug("Skipping qiskit instruction %s", op.name)
                continue
            kind = GateKind.parse(op.name)
            qubits = tuple(circuit.find_bit(q).index for q in ci.qubits)
            clbits = tuple(circuit.find_bit(c).index for c in ci.clbits)
            try:
                params = tuple(float(p) for p in op.params)
            except (TypeError, ValueError) as exc:
                raise CircuitError(
                    f"{op.name} has a non-numeric parameter in {list(op.params)}"
                ) from exc
            result.append(Gate(kind, qubits, params, clbits))
        return result

    def to_qiskit(self) -> "QuantumCircuit":
        """Return an equivalent Qiskit ``QuantumCircuit``."""

        from qiskit.circuit import QuantumCircuit

        qc = QuantumCircuit(self._num_qubits, self._num_clbits, name=self.name or None)
        for gate in self._gates:
            if gate.kind is GateKind.MEASURE:
                qc.measure(gate.qubits[0], gate.clbits[0])
                continue
            method = getattr(qc, _QISKIT_METHODS.get(gate.kind, gate.kind.name.lower()))
            method(*gate.params, *gate.qubits)
        return qc

    @classmethod
    def from_qasm(cls, path_or_str: str | os.PathLike[str]) -> "Circuit":
        """Build a :class:`Circuit` from an OpenQASM 2 string or file."""

        from qiskit import qasm2

        if os.path.exists(path_or_str):
            with open(os.fspath(path_or_str), "r", encoding="utf8") as f:
                qasm = f.read()
        else:
            qasm = str(path_or_str)
        return cls.from_qiskit(qasm2.loads(qasm))

    def to_qasm(self) -> str:
        """Return the circuit as an OpenQASM 2 program."""

        from qiskit import qasm2

        return qasm2.dumps(self.to_qiskit())


__all__ = ["Circuit"]
