from __future__ import annotations

"""Read-only hardware descriptors used by the cost evaluator.

A :class:`HardwareTarget` bundles the device width, its native two-qubit
couplings (a frozen :class:`networkx.Graph`) and a calibration table mapping
gate kind names to error probabilities.  Targets are immutable once built and
can be shared freely between concurrent evaluations.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging
import math

import networkx as nx

from . import config
from .gates import GateKind, UnknownGateKindError, as_index

LOGGER = logging.getLogger(__name__)

ConnectivityPredicate = Callable[[int, int], bool]


def _kind_key(kind: GateKind | str) -> str:
    try:
        return GateKind.parse(kind).name
    except UnknownGateKindError:
        # Kinds outside the enumeration keep their upper-cased name.
        return str(kind).strip().upper()


def _grid_edges(rows: int, cols: int) -> List[Tuple[int, int]]:
    lattice = nx.grid_2d_graph(rows, cols)
    return [(r1 * cols + c1, r2 * cols + c2) for (r1, c1), (r2, c2) in lattice.edges]


def _normalise_table(
    table: Optional[Mapping[GateKind | str, float]], *, what: str, upper: float
) -> Mapping[str, float]:
    values: Dict[str, float] = {}
    for kind, value in (table or {}).items():
        value = float(value)
        if not 0.0 <= value < upper:
            raise ValueError(f"{what} for {kind!r} must lie in [0, {upper}), got {value}")
        values[_kind_key(kind)] = value
    return MappingProxyType(values)


class HardwareTarget:
    """Device descriptor: width, connectivity and per-kind error rates.

    Parameters
    ----------
    num_qubits:
        Number of physical qubits.
    edges:
        Natively coupled qubit pairs.  ``None`` means all-to-all.
    error_rates:
        Mapping from gate kind (name or :class:`GateKind`) to an error
        probability in ``[0, 1)``.
    gate_durations:
        Optional mapping from gate kind to execution time in nanoseconds.
    connectivity:
        Optional predicate overriding ``edges``.  It receives two qubit
        indices inside the device and must be symmetric.
    fallback_error_rate:
        Rate used for kinds absent from ``error_rates``.  Defaults to
        :data:`qopt.config.DEFAULT.fallback_error_rate`.
    name:
        Human readable label.

    Raises
    ------
    ValueError
        If ``num_qubits`` is not positive, an edge references a qubit outside
        the device or a rate lies outside ``[0, 1)``.
    """

    def __init__(
        self,
        num_qubits: int,
        edges: Optional[Iterable[Tuple[int, int]]] = None,
        error_rates: Optional[Mapping[GateKind | str, float]] = None,
        *,
        gate_durations: Optional[Mapping[GateKind | str, float]] = None,
        connectivity: Optional[ConnectivityPredicate] = None,
        fallback_error_rate: float | None = None,
        name: str = "",
    ):
        num_qubits = as_index(num_qubits, "num_qubits")
        if num_qubits <= 0:
            raise ValueError(f"num_qubits must be positive, got {num_qubits}")
        self._num_qubits = num_qubits
        self._name = name
        self._all_to_all = edges is None and connectivity is None
        self._connectivity = connectivity

        graph = nx.Graph()
        graph.add_nodes_from(range(self._num_qubits))
        if edges is not None:
            for a, b in edges:
                a, b = as_index(a, "edge endpoint"), as_index(b, "edge endpoint")
                if not (0 <= a < self._num_qubits and 0 <= b < self._num_qubits):
                    raise ValueError(
                        f"edge ({a}, {b}) outside device with {self._num_qubits} qubits"
                    )
                if a != b:
                    graph.add_edge(a, b)
        elif self._all_to_all:
            graph.add_edges_from(nx.complete_graph(self._num_qubits).edges)
        elif connectivity is not None:
            graph.add_edges_from(
                (a, b)
                for a in range(self._num_qubits)
                for b in range(a + 1, self._num_qubits)
                if connectivity(a, b)
            )
        self._graph = nx.freeze(graph)

        self._error_rates = _normalise_table(error_rates, what="error rate", upper=1.0)
        self._durations = (
            _normalise_table(gate_durations, what="duration", upper=math.inf)
            if gate_durations is not None
            else None
        )
        if fallback_error_rate is None:
            fallback_error_rate = config.DEFAULT.fallback_error_rate
        if not 0.0 <= fallback_error_rate < 1.0:
            raise ValueError(
                f"fallback error rate must lie in [0, 1), got {fallback_error_rate}"
            )
        self._fallback_error_rate = float(fallback_error_rate)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def num_qubits(self) -> int:
        return self._num_qubits

    @property
    def name(self) -> str:
        return self._name

    @property
    def coupling_graph(self) -> nx.Graph:
        """Frozen graph of native couplings."""

        return self._graph

    @property
    def error_rates(self) -> Mapping[str, float]:
        return self._error_rates

    @property
    def gate_durations(self) -> Optional[Mapping[str, float]]:
        return self._durations

    @property
    def fallback_error_rate(self) -> float:
        return self._fallback_error_rate

    @property
    def is_all_to_all(self) -> bool:
        return self._all_to_all

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def is_connected(self, a: int, b: int) -> bool:
        """Whether a two-qubit gate is native between ``a`` and ``b``.

        The relation is unordered.  Indices outside the device are never
        connected.
        """

        if not (0 <= a < self._num_qubits and 0 <= b < self._num_qubits) or a == b:
            return False
        if self._connectivity is not None:
            return bool(self._connectivity(a, b))
        return self._graph.has_edge(a, b)

    def distance(self, a: int, b: int) -> float:
        """Number of couplings on the shortest path from ``a`` to ``b``.

        Returns ``math.inf`` when either qubit is outside the device or the
        qubits lie in different components.
        """

        if a not in self._graph or b not in self._graph:
            return math.inf
        try:
            return float(nx.shortest_path_length(self._graph, a, b))
        except nx.NetworkXNoPath:
            return math.inf

    def error_rate(self, kind: GateKind | str) -> float:
        """Return the error probability for ``kind``.

        Kinds missing from the calibration table use the fallback rate.
        """

        return self._error_rates.get(_kind_key(kind), self._fallback_error_rate)

    def duration(self, kind: GateKind | str) -> Optional[float]:
        """Execution time in nanoseconds, or ``None`` without a duration table.

        Kinds missing from a present table take zero time.
        """

        if self._durations is None:
            return None
        return self._durations.get(_kind_key(kind), 0.0)

    def __repr__(self) -> str:
        label = f" {self._name!r}" if self._name else ""
        return (
            f"HardwareTarget{label}({self._num_qubits} qubits, "
            f"{self._graph.number_of_edges()} couplings)"
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_edges(
        cls, num_qubits: int, edges: Iterable[Tuple[int, int]], **kwargs: Any
    ) -> "HardwareTarget":
        return cls(num_qubits, list(edges), **kwargs)

    @classmethod
    def all_to_all(cls, num_qubits: int, **kwargs: Any) -> "HardwareTarget":
        return cls(num_qubits, None, **kwargs)

    @classmethod
    def linear(cls, num_qubits: int, **kwargs: Any) -> "HardwareTarget":
        """Chain topology coupling ``i`` with ``i + 1``."""

        return cls(num_qubits, nx.path_graph(num_qubits).edges, **kwargs)

    @classmethod
    def grid(cls, rows: int, cols: int, **kwargs: Any) -> "HardwareTarget":
        """Row-major 2D lattice with nearest-neighbour couplings."""

        return cls(rows * cols, _grid_edges(rows, cols), **kwargs)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HardwareTarget":
        """Build a target from a descriptor mapping.

        Recognised keys: ``num_qubits`` (required), ``edges`` (list of pairs;
        omitted or ``all_to_all: true`` means fully connected),
        ``error_rates``, ``gate_durations``, ``fallback_error_rate`` and
        ``name``.
        """

        if "num_qubits" not in data:
            raise ValueError("Hardware descriptor must contain 'num_qubits'")
        edges = data.get("edges")
        if data.get("all_to_all"):
            edges = None
        return cls(
            data["num_qubits"],
            [tuple(e) for e in edges] if edges is not None else None,
            data.get("error_rates"),
            gate_durations=data.get("gate_durations"),
            fallback_error_rate=data.get("fallback_error_rate"),
            name=str(data.get("name", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable descriptor accepted by :meth:`from_dict`."""

        data: Dict[str, Any] = {
            "name": self._name,
            "num_qubits": self._num_qubits,
            "error_rates": dict(self._error_rates),
            "fallback_error_rate": self._fallback_error_rate,
        }
        if self._all_to_all:
            data["all_to_all"] = True
        else:
            data["edges"] = sorted(tuple(sorted(e)) for e in self._graph.edges)
        if self._durations is not None:
            data["gate_durations"] = dict(self._durations)
        return data

    @classmethod
    def preset(cls, name: str) -> "HardwareTarget":
        """Return one of the mock devices listed in :data:`DEVICE_PRESETS`."""

        try:
            device = DEVICE_PRESETS[name]
        except KeyError:
            raise ValueError(
                f"Unknown device: {name!r}; choose from {sorted(DEVICE_PRESETS)}"
            ) from None
        rates = mock_error_rates(device.base_error_rate)
        kwargs = dict(
            error_rates=rates,
            gate_durations=device.gate_durations,
            fallback_error_rate=device.base_error_rate,
            name=name,
        )
        if device.topology == "all_to_all":
            target = cls.all_to_all(device.num_qubits, **kwargs)
        elif device.topology == "linear":
            target = cls.linear(device.num_qubits, **kwargs)
        else:
            # Smallest square lattice holding the device, cut to its width.
            side = math.ceil(math.sqrt(device.num_qubits))
            edges = [
                (a, b)
                for a, b in _grid_edges(side, side)
                if a < device.num_qubits and b < device.num_qubits
            ]
            target = cls(device.num_qubits, edges, **kwargs)
        LOGGER.debug("Built preset %s: %r", name, target)
        return target


@dataclass(frozen=True)
class DevicePreset:
    """Static description of a mock device."""

    provider: str
    num_qubits: int
    topology: str
    base_error_rate: float
    gate_durations: Mapping[str, float]


def mock_error_rates(base: float) -> Dict[str, float]:
    """Deterministic calibration table scaled from a base error rate."""

    return {
        "X": base,
        "Y": base,
        "Z": base * 0.1,
        "H": base * 1.2,
        "CX": base * 10,
        "CZ": base * 8,
    }


_SUPERCONDUCTING_DURATIONS: Mapping[str, float] = MappingProxyType(
    {"X": 35.0, "Y": 35.0, "Z": 0.0, "RZ": 0.0, "SX": 35.0, "CX": 400.0, "CZ": 300.0, "MEASURE": 5000.0}
)
_TRAPPED_ION_DURATIONS: Mapping[str, float] = MappingProxyType(
    {"X": 10_000.0, "Y": 10_000.0, "H": 10_000.0, "CX": 50_000.0, "MEASURE": 100_000.0}
)

# Heavy-hex and hexagonal lattices are approximated by square grids.
DEVICE_PRESETS: Mapping[str, DevicePreset] = MappingProxyType(
    {
        "ibm_washington": DevicePreset("IBM", 127, "grid", 0.001, _SUPERCONDUCTING_DURATIONS),
        "google_sycamore": DevicePreset("Google", 70, "grid", 0.002, _SUPERCONDUCTING_DURATIONS),
        "rigetti_aspen": DevicePreset("Rigetti", 32, "grid", 0.015, _SUPERCONDUCTING_DURATIONS),
        "ionq_aria": DevicePreset("IonQ", 25, "all_to_all", 0.0005, _TRAPPED_ION_DURATIONS),
    }
)


__all__ = [
    "HardwareTarget",
    "DevicePreset",
    "DEVICE_PRESETS",
    "mock_error_rates",
]
