from __future__ import annotations

"""Gate kinds, immutable gate records and construction errors.

Every :class:`Gate` is validated against the arity table of its
:class:`GateKind` when it is created.  Invalid input raises one of the
:class:`CircuitError` subclasses immediately; nothing is coerced.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
import copy
import math
import numbers


class CircuitError(ValueError):
    """Base class for invalid gate or circuit input."""


class UnknownGateKindError(CircuitError):
    """Raised when a gate kind is not part of :class:`GateKind`."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"unknown gate kind: {kind!r}")


class ArityMismatchError(CircuitError):
    """Raised when operand or parameter counts do not match the gate kind."""

    def __init__(self, kind: "GateKind", field_name: str, expected: int, actual: int):
        self.kind = kind
        self.field = field_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{kind.name} expects {expected} {field_name}, got {actual}"
        )


class OutOfRangeQubitError(CircuitError):
    """Raised when a gate references a qubit outside ``[0, num_qubits)``."""

    register = "qubit"

    def __init__(self, index: int, size: int, gate: "Gate | None" = None):
        self.index = index
        self.size = size
        self.gate = gate
        super().__init__(
            f"{self.register} index {index} out of range [0, {size})"
            + (f" in {gate}" if gate is not None else "")
        )

    @property
    def qubit(self) -> int:
        return self.index

    @property
    def num_qubits(self) -> int:
        return self.size


class OutOfRangeClbitError(OutOfRangeQubitError):
    """Raised when a measurement targets a classical bit outside the register."""

    register = "classical bit"


class GateKind(Enum):
    """Closed set of gate kinds understood by the core.

    Each member carries its name as value together with the number of
    qubits, parameters and classical bits a gate of that kind takes.
    """

    I = ("I", 1, 0, 0)
    X = ("X", 1, 0, 0)
    Y = ("Y", 1, 0, 0)
    Z = ("Z", 1, 0, 0)
    H = ("H", 1, 0, 0)
    S = ("S", 1, 0, 0)
    SDG = ("SDG", 1, 0, 0)
    T = ("T", 1, 0, 0)
    TDG = ("TDG", 1, 0, 0)
    SX = ("SX", 1, 0, 0)
    RX = ("RX", 1, 1, 0)
    RY = ("RY", 1, 1, 0)
    RZ = ("RZ", 1, 1, 0)
    CX = ("CX", 2, 0, 0)
    CY = ("CY", 2, 0, 0)
    CZ = ("CZ", 2, 0, 0)
    SWAP = ("SWAP", 2, 0, 0)
    MEASURE = ("MEASURE", 1, 0, 1)

    def __new__(cls, label: str, num_qubits: int, num_params: int, num_clbits: int):
        obj = object.__new__(cls)
        obj._value_ = label
        obj.num_qubits = num_qubits
        obj.num_params = num_params
        obj.num_clbits = num_clbits
        return obj

    @classmethod
    def parse(cls, kind: "GateKind | str") -> "GateKind":
        """Return the member named ``kind`` (case-insensitive, aliases allowed)."""

        if isinstance(kind, GateKind):
            return kind
        if not isinstance(kind, str):
            raise UnknownGateKindError(kind)
        name = kind.strip().upper()
        name = _ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise UnknownGateKindError(kind) from None

    @property
    def is_rotation(self) -> bool:
        return self in ROTATION_KINDS

    @property
    def is_two_qubit(self) -> bool:
        return self.num_qubits == 2

    @property
    def is_symmetric(self) -> bool:
        """Whether swapping the two operands leaves the gate unchanged."""

        return self in SYMMETRIC_KINDS

    @property
    def inverse_kind(self) -> Optional["GateKind"]:
        """Kind whose gate undoes this one on identical operands, if any."""

        return _INVERSE_KINDS.get(self)


_ALIASES = {"ID": "I", "CNOT": "CX", "M": "MEASURE"}

ROTATION_KINDS = frozenset({GateKind.RX, GateKind.RY, GateKind.RZ})
SYMMETRIC_KINDS = frozenset({GateKind.CZ, GateKind.SWAP})
SELF_INVERSE_KINDS = frozenset(
    {
        GateKind.I,
        GateKind.X,
        GateKind.Y,
        GateKind.Z,
        GateKind.H,
        GateKind.CX,
        GateKind.CY,
        GateKind.CZ,
        GateKind.SWAP,
    }
)

_INVERSE_KINDS: Dict[GateKind, GateKind] = {k: k for k in SELF_INVERSE_KINDS}
_INVERSE_KINDS.update(
    {
        GateKind.S: GateKind.SDG,
        GateKind.SDG: GateKind.S,
        GateKind.T: GateKind.TDG,
        GateKind.TDG: GateKind.T,
    }
)


def as_index(value: Any, what: str) -> int:
    """Return ``value`` as an ``int`` or raise :class:`CircuitError`.

    Only integral values are accepted; floats and booleans are rejected
    rather than truncated.
    """

    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise CircuitError(f"{what} must be an integer, got {value!r}")
    return int(value)


def _frozen_metadata(metadata: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(copy.deepcopy(dict(metadata or {})))


@dataclass(frozen=True, eq=False)
class Gate:
    """Immutable gate description.

    Parameters
    ----------
    kind:
        A :class:`GateKind` or its (case-insensitive) name.
    qubits:
        Qubit operands.  Length must equal ``kind.num_qubits``.
    params:
        Rotation angles in radians.  Only ``RX``/``RY``/``RZ`` take one.
    clbits:
        Classical target of a ``MEASURE``; empty for every other kind.
    metadata:
        Free-form annotations.  Stored as a read-only copy and ignored by
        equality and by the optimizer.
    """

    kind: GateKind
    qubits: Tuple[int, ...]
    params: Tuple[float, ...] = ()
    clbits: Tuple[int, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        kind = GateKind.parse(self.kind)
        qubits = tuple(as_index(q, f"{kind.name} qubit index") for q in self.qubits)
        params = tuple(float(p) for p in self.params)
        clbits = tuple(as_index(c, f"{kind.name} clbit index") for c in self.clbits)
        if len(qubits) != kind.num_qubits:
            raise ArityMismatchError(kind, "qubits", kind.num_qubits, len(qubits))
        if len(params) != kind.num_params:
            raise ArityMismatchError(kind, "params", kind.num_params, len(params))
        if len(clbits) != kind.num_clbits:
            raise ArityMismatchError(kind, "clbits", kind.num_clbits, len(clbits))
        if len(set(qubits)) != len(qubits):
            raise ArityMismatchError(kind, "distinct qubits", len(qubits), len(set(qubits)))
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "qubits", qubits)
        object.__setattr__(self, "params", params)
        object.__setattr__(self, "clbits", clbits)
        object.__setattr__(self, "metadata", _frozen_metadata(self.metadata))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gate):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.qubits == other.qubits
            and self.params == other.params
            and self.clbits == other.clbits
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.qubits, self.params, self.clbits))

    def __repr__(self) -> str:
        args = ", ".join(str(q) for q in self.qubits)
        if self.params:
            angles = ", ".join(f"{p:g}" for p in self.params)
            return f"{self.kind.name}({angles}) [{args}]"
        if self.clbits:
            return f"{self.kind.name} [{args}] -> c[{self.clbits[0]}]"
        return f"{self.kind.name} [{args}]"

    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def is_two_qubit(self) -> bool:
        return self.kind.is_two_qubit

    @property
    def is_rotation(self) -> bool:
        return self.kind.is_rotation

    @property
    def angle(self) -> float:
        """Rotation angle of ``RX``/``RY``/``RZ`` gates."""

        if not self.params:
            raise AttributeError(f"{self.kind.name} gate has no angle")
        return self.params[0]

    def operand_key(self) -> Tuple[int, ...]:
        """Operands normalised for comparison (sorted for symmetric kinds)."""

        if self.kind.is_symmetric:
            return tuple(sorted(self.qubits))
        return self.qubits

    def clone(self) -> "Gate":
        """Return a value-independent copy including a deep copy of metadata."""

        return Gate(self.kind, self.qubits, self.params, self.clbits, self.metadata)

    def __copy__(self) -> "Gate":
        return self.clone()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Gate":
        return self.clone()

    def inverse(self) -> "Gate":
        """Return the gate undoing ``self``.

        Raises
        ------
        ValueError
            For ``MEASURE``, which is not reversible.
        """

        if self.kind.is_rotation:
            return Gate(self.kind, self.qubits, (-self.params[0],), metadata=self.metadata)
        if self.kind is GateKind.SX:
            # SX^-1 = RX(-pi/2) up to global phase.
            return Gate(GateKind.RX, self.qubits, (-math.pi / 2,), metadata=self.metadata)
        inverse = self.kind.inverse_kind
        if inverse is None:
            raise ValueError(f"{self.kind.name} has no inverse")
        return Gate(inverse, self.qubits, metadata=self.metadata)

    # ------------------------------------------------------------------
    def to_dict(self, *, include_metadata: bool = True) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the gate."""

        data: Dict[str, Any] = {
            "kind": self.kind.name,
            "qubits": list(self.qubits),
        }
        if self.params:
            data["params"] = list(self.params)
        if self.clbits:
            data["clbits"] = list(self.clbits)
        if include_metadata and self.metadata:
            data["metadata"] = copy.deepcopy(dict(self.metadata))
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Gate":
        """Create a :class:`Gate` from a mapping.

        ``gate`` is accepted as a synonym for ``kind`` and a mapping of named
        parameters (``{"theta": 0.5}``) is read in insertion order.
        """

        kind = data.get("kind", data.get("gate"))
        if kind is None:
            raise UnknownGateKindError(None)
        params: Iterable[Any] = data.get("params", ())
        if isinstance(params, Mapping):
            params = list(params.values())
        return cls(
            kind=GateKind.parse(kind),
            qubits=tuple(data["qubits"]),
            params=tuple(params),
            clbits=tuple(data.get("clbits", ())),
            metadata=data.get("metadata") or {},
        )


__all__ = [
    "CircuitError",
    "UnknownGateKindError",
    "ArityMismatchError",
    "OutOfRangeQubitError",
    "OutOfRangeClbitError",
    "GateKind",
    "Gate",
    "ROTATION_KINDS",
    "SYMMETRIC_KINDS",
    "SELF_INVERSE_KINDS",
    "as_index",
]
