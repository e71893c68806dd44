from __future__ import annotations

"""Peephole rewrite passes and the :class:`Optimizer` pipeline.

A pass is a plain callable ``(gates, tolerance) -> list[Gate]``.  Passes only
ever look at gates that are adjacent on a shared qubit: they never commute a
gate past another operation on the same qubit, and they never reorder
qubit-disjoint gates.

:func:`cancel_adjacent_inverses` scans once, left to right.  After a pair
cancels, the scan continues with the gate that followed the earlier member
and never looks back at gates already emitted, so cancellations that only
become adjacent through a removal are left for the next pass.  Re-running
the optimizer (or calling :meth:`Optimizer.optimize_to_fixed_point`) removes
them.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import time

from . import config
from .circuit import Circuit
from .gates import Gate, GateKind
from .scheduler import Scheduler

LOGGER = logging.getLogger(__name__)

Pass = Callable[[Sequence[Gate], float], List[Gate]]


def _overlaps(a: Gate, b: Gate) -> bool:
    return not set(a.qubits).isdisjoint(b.qubits)


def gates_cancel(first: Gate, second: Gate, tolerance: float) -> bool:
    """Whether ``second`` directly undoes ``first`` on the same operands.

    Covers rotations of one kind whose angles sum to zero, self-inverse
    kinds applied twice (operand order ignored for symmetric kinds) and the
    ``S``/``SDG`` and ``T``/``TDG`` pairs.
    """

    if first.kind.is_rotation:
        return (
            second.kind is first.kind
            and second.qubits == first.qubits
            and abs(first.params[0] + second.params[0]) < tolerance
        )
    if first.kind.inverse_kind is not second.kind or first.kind.inverse_kind is None:
        return False
    return first.operand_key() == second.operand_key()


def cancel_adjacent_inverses(gates: Sequence[Gate], tolerance: float) -> List[Gate]:
    """Drop pairs of adjacent gates that cancel each other.

    For each gate the scan finds the first later gate sharing one of its
    qubits.  If that gate cancels it, both are removed; otherwise the gate is
    kept.  Gates in between act on other qubits and are left untouched.
    """

    pending = list(gates)
    result: List[Gate] = []
    i = 0
    while i < len(pending):
        current = pending[i]
        cancelled = False
        for j in range(i + 1, len(pending)):
            candidate = pending[j]
            if not _overlaps(current, candidate):
                continue
            if gates_cancel(current, candidate, tolerance):
                del pending[j]
                del pending[i]
                cancelled = True
            break
        if not cancelled:
            result.append(current)
            i += 1
    return result


def remove_identity_rotations(gates: Sequence[Gate], tolerance: float) -> List[Gate]:
    """Drop ``I`` gates and rotations whose angle is within ``tolerance`` of zero."""

    return [
        g
        for g in gates
        if g.kind is not GateKind.I
        and not (g.kind.is_rotation and abs(g.params[0]) < tolerance)
    ]


def merge_rotations(gates: Sequence[Gate], tolerance: float) -> List[Gate]:
    """Fuse runs of same-kind rotations on one qubit into a single rotation.

    A run continues while the next gate touching the qubit is a rotation of
    the same kind on that qubit.  The merged gate replaces the first member
    of the run and keeps its metadata.  Runs whose angles sum to zero vanish.
    """

    pending = list(gates)
    removed = [False] * len(pending)
    result: List[Gate] = []
    for i, current in enumerate(pending):
        if removed[i]:
            continue
        if not current.kind.is_rotation:
            result.append(current)
            continue
        total = current.params[0]
        for j in range(i + 1, len(pending)):
            if removed[j] or not _overlaps(current, pending[j]):
                continue
            nxt = pending[j]
            if nxt.kind is not current.kind or nxt.qubits != current.qubits:
                break
            total += nxt.params[0]
            removed[j] = True
        if abs(total) < tolerance:
            continue
        if total == current.params[0]:
            result.append(current)
        else:
            result.append(Gate(current.kind, current.qubits, (total,), metadata=current.metadata))
    return result


OPTIMIZATION_LEVELS: Dict[int, Tuple[Pass, ...]] = {
    0: (),
    1: (cancel_adjacent_inverses,),
    2: (remove_identity_rotations, cancel_adjacent_inverses, merge_rotations),
}


@dataclass
class PassRecord:
    """Effect of a single pass on the circuit."""

    name: str
    gates_before: int
    gates_after: int
    depth_before: int
    depth_after: int
    duration: float = 0.0

    @property
    def gates_removed(self) -> int:
        return self.gates_before - self.gates_after


@dataclass
class OptimizationResult:
    """Optimized circuit together with the per-pass records."""

    circuit: Circuit
    passes: List[PassRecord] = field(default_factory=list)

    @property
    def gates_removed(self) -> int:
        return sum(p.gates_removed for p in self.passes)


class Optimizer:
    """Run a sequence of peephole passes over a circuit.

    Parameters
    ----------
    passes:
        Explicit pass sequence.  Overrides ``optimization_level``.
    optimization_level:
        Selects a preset from :data:`OPTIMIZATION_LEVELS`.  Defaults to
        :data:`qopt.config.DEFAULT.optimization_level`.
    tolerance:
        Angle tolerance for cancellations and identity detection.  Defaults
        to :data:`qopt.config.DEFAULT.cancellation_tolerance`.

    The input circuit is never mutated; every call returns a new
    :class:`~qopt.circuit.Circuit` with the same register sizes.
    """

    def __init__(
        self,
        passes: Optional[Sequence[Pass]] = None,
        *,
        optimization_level: int | None = None,
        tolerance: float | None = None,
    ):
        if passes is None:
            level = (
                optimization_level
                if optimization_level is not None
                else config.DEFAULT.optimization_level
            )
            if level not in OPTIMIZATION_LEVELS:
                raise ValueError(
                    f"unsupported optimization level {level}; "
                    f"choose from {sorted(OPTIMIZATION_LEVELS)}"
                )
            passes = OPTIMIZATION_LEVELS[level]
        self.passes: Tuple[Pass, ...] = tuple(passes)
        self.tolerance = (
            tolerance if tolerance is not None else config.DEFAULT.cancellation_tolerance
        )
        self.scheduler = Scheduler()

    # ------------------------------------------------------------------
    def run(self, circuit: Circuit) -> OptimizationResult:
        """Apply every pass once and record its effect."""

        level = logging.INFO if config.DEFAULT.log_passes else logging.DEBUG
        gates: List[Gate] = list(circuit.gates)
        records: List[PassRecord] = []
        for step in self.passes:
            name = getattr(step, "__name__", type(step).__name__)
            depth_before = self.scheduler.depth(gates)
            start = time.perf_counter()
            rewritten = list(step(gates, self.tolerance))
            duration = time.perf_counter() - start
            record = PassRecord(
                name=name,
                gates_before=len(gates),
                gates_after=len(rewritten),
                depth_before=depth_before,
                depth_after=self.scheduler.depth(rewritten),
                duration=duration,
            )
            LOGGER.log(
                level,
                "Pass %s: gates %d -> %d, depth %d -> %d (%.3f ms)",
                name,
                record.gates_before,
                record.gates_after,
                record.depth_before,
                record.depth_after,
                duration * 1e3,
            )
            records.append(record)
            gates = rewritten
        return OptimizationResult(circuit.with_gates(gates), records)

    def optimize(self, circuit: Circuit) -> Circuit:
        """Return ``circuit`` after one application of every pass."""

        return self.run(circuit).circuit

    __call__ = optimize

    def optimize_to_fixed_point(
        self, circuit: Circuit, *, max_iterations: int | None = None
    ) -> Circuit:
        """Re-run :meth:`optimize` until the gate count stops shrinking.

        Stops after ``max_iterations`` rounds (default
        :data:`qopt.config.DEFAULT.max_fixed_point_iterations`).
        """

        limit = (
            max_iterations
            if max_iterations is not None
            else config.DEFAULT.max_fixed_point_iterations
        )
        current = circuit
        for iteration in range(max(limit, 1)):
            optimized = self.optimize(current)
            if optimized.gate_count() >= current.gate_count():
                LOGGER.debug("Fixed point reached after %d iteration(s)", iteration + 1)
                return optimized
            current = optimized
        return current


def optimize(circuit: Circuit, *, optimization_level: int | None = None) -> Circuit:
    """Convenience wrapper around :meth:`Optimizer.optimize`."""

    return Optimizer(optimization_level=optimization_level).optimize(circuit)


__all__ = [
    "Pass",
    "gates_cancel",
    "cancel_adjacent_inverses",
    "remove_identity_rotations",
    "merge_rotations",
    "OPTIMIZATION_LEVELS",
    "PassRecord",
    "OptimizationResult",
    "Optimizer",
    "optimize",
]
