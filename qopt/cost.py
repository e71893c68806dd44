from __future__ import annotations

"""Hardware-aware cost evaluation for circuits.

The estimated fidelity follows a simple independent-error model: every gate
succeeds with probability ``1 - error_rate(kind)`` and the circuit succeeds
when all of its gates do.  The product is accumulated in log space so that
long circuits do not underflow.  Two-qubit gates on uncoupled qubit pairs are
reported as routing violations; nothing is rerouted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import math

import numpy as np

from . import config
from .circuit import Circuit
from .scheduler import Scheduler
from .target import HardwareTarget


@dataclass(frozen=True)
class RoutingViolation:
    """A two-qubit gate whose operands are not natively coupled."""

    gate_index: int
    kind: str
    qubits: Tuple[int, ...]
    distance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gate_index": self.gate_index,
            "kind": self.kind,
            "qubits": list(self.qubits),
            "distance": self.distance if np.isfinite(self.distance) else None,
        }


@dataclass
class CostReport:
    """Structured result of :meth:`CostEvaluator.evaluate`.

    Attributes
    ----------
    gate_count, two_qubit_gate_count, depth:
        Size metrics of the evaluated circuit.
    estimated_fidelity:
        Product of ``1 - error_rate`` over all gates; ``1.0`` when empty.
    routing_violations:
        Two-qubit gates acting on uncoupled pairs, in program order.
    estimated_duration:
        Sum over layers of the slowest gate duration in nanoseconds, or
        ``None`` when the target carries no duration table.
    fits_device:
        Whether the circuit is no wider than the target.
    error_budget:
        Summed error rate per gate kind.
    target_name:
        Label of the target the report was computed against.
    """

    gate_count: int
    two_qubit_gate_count: int
    depth: int
    estimated_fidelity: float
    routing_violations: List[RoutingViolation] = field(default_factory=list)
    estimated_duration: Optional[float] = None
    fits_device: bool = True
    error_budget: Dict[str, float] = field(default_factory=dict)
    target_name: str = ""

    @property
    def num_violations(self) -> int:
        return len(self.routing_violations)

    @property
    def is_routable(self) -> bool:
        return self.fits_device and not self.routing_violations

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the report."""

        return {
            "target": self.target_name,
            "gate_count": self.gate_count,
            "two_qubit_gate_count": self.two_qubit_gate_count,
            "depth": self.depth,
            "estimated_fidelity": self.estimated_fidelity,
            "routing_violations": [v.to_dict() for v in self.routing_violations],
            "estimated_duration": self.estimated_duration,
            "fits_device": self.fits_device,
            "error_budget": dict(self.error_budget),
        }


class CostEvaluator:
    """Score circuits against a :class:`~qopt.target.HardwareTarget`.

    Parameters
    ----------
    scheduler:
        Scheduler used for depth and duration.  A fresh one by default.
    fallback_error_rate:
        Rate used for the ideal target built when :meth:`evaluate` is called
        without one.  Defaults to
        :data:`qopt.config.DEFAULT.fallback_error_rate`.

    Evaluation reads its inputs only; the same circuit and target may be
    evaluated concurrently.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        *,
        fallback_error_rate: float | None = None,
    ):
        self.scheduler = scheduler or Scheduler()
        self.fallback_error_rate = fallback_error_rate

    def default_target(self, circuit: Circuit) -> HardwareTarget:
        """All-to-all target as wide as ``circuit`` using only the fallback rate."""

        rate = (
            self.fallback_error_rate
            if self.fallback_error_rate is not None
            else config.DEFAULT.fallback_error_rate
        )
        return HardwareTarget.all_to_all(
            circuit.num_qubits, fallback_error_rate=rate, name="ideal"
        )

    # ------------------------------------------------------------------
    def fidelity(self, circuit: Circuit, target: HardwareTarget) -> float:
        """Return the estimated success probability of ``circuit`` on ``target``."""

        rates = np.fromiter(
            (target.error_rate(g.kind) for g in circuit.gates),
            dtype=float,
            count=circuit.gate_count(),
        )
        if rates.size == 0:
            return 1.0
        # fsum is exactly rounded, so adding a gate never raises the estimate.
        return math.exp(math.fsum(np.log1p(-rates)))

    def routing_violations(
        self, circuit: Circuit, target: HardwareTarget
    ) -> List[RoutingViolation]:
        """Two-qubit gates of ``circuit`` that ``target`` cannot run natively."""

        violations: List[RoutingViolation] = []
        for index, gate in enumerate(circuit.gates):
            if not gate.is_two_qubit:
                continue
            a, b = gate.qubits
            if target.is_connected(a, b):
                continue
            violations.append(
                RoutingViolation(index, gate.kind.name, gate.qubits, target.distance(a, b))
            )
        return violations

    def duration(self, circuit: Circuit, target: HardwareTarget) -> Optional[float]:
        """Sum over layers of the longest gate duration, in nanoseconds."""

        if target.gate_durations is None:
            return None
        total = 0.0
        for layer in self.scheduler.layers(circuit):
            total += max(target.duration(g.kind) or 0.0 for g in layer.gates)
        return total

    def error_budget(self, circuit: Circuit, target: HardwareTarget) -> Dict[str, float]:
        """Summed error rate per gate kind name."""

        budget: Dict[str, float] = {}
        for kind, count in circuit.gate_counts().items():
            budget[kind] = target.error_rate(kind) * count
        return budget

    def evaluate(
        self, circuit: Circuit, target: HardwareTarget | None = None
    ) -> CostReport:
        """Compute the :class:`CostReport` of ``circuit`` on ``target``."""

        if target is None:
            target = self.default_target(circuit)
        return CostReport(
            gate_count=circuit.gate_count(),
            two_qubit_gate_count=circuit.two_qubit_gate_count(),
            depth=self.scheduler.depth(circuit),
            estimated_fidelity=self.fidelity(circuit, target),
            routing_violations=self.routing_violations(circuit, target),
            estimated_duration=self.duration(circuit, target),
            fits_device=circuit.num_qubits <= target.num_qubits,
            error_budget=self.error_budget(circuit, target),
            target_name=target.name,
        )


def evaluate(circuit: Circuit, target: HardwareTarget | None = None) -> CostReport:
    """Convenience wrapper around :meth:`CostEvaluator.evaluate`."""

    return CostEvaluator().evaluate(circuit, target)


__all__ = ["RoutingViolation", "CostReport", "CostEvaluator", "evaluate"]
