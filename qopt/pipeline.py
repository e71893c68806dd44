from __future__ import annotations

"""High level orchestration of optimization and cost evaluation.

This module exposes :class:`CompilationPipeline` which ties together the
:class:`~qopt.optimizer.Optimizer`, the :class:`~qopt.scheduler.Scheduler`
and the :class:`~qopt.cost.CostEvaluator`.  It is the entry point for host
applications that hand over a circuit and a device descriptor and want the
optimized circuit plus before/after reports back.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional
import logging
import time

from . import config
from .circuit import Circuit
from .cost import CostEvaluator, CostReport
from .optimizer import OptimizationResult, Optimizer
from .scheduler import Layer, Scheduler
from .target import HardwareTarget

LOGGER = logging.getLogger(__name__)


@dataclass
class CompilationResult:
    """Container bundling the outcome of :meth:`CompilationPipeline.run`.

    Attributes
    ----------
    original:
        The circuit as supplied by the caller.  Never modified.
    optimized:
        Output of the optimizer.
    optimization:
        Per-pass records of the optimizer run.
    layers:
        Greedy layering of ``optimized``.
    report_before, report:
        Cost reports of ``original`` and ``optimized`` on the same target.
    optimization_time, evaluation_time:
        Wall-clock durations of both phases in seconds.
    """

    original: Circuit
    optimized: Circuit
    optimization: OptimizationResult
    layers: List[Layer]
    report_before: CostReport
    report: CostReport
    optimization_time: float = 0.0
    evaluation_time: float = 0.0

    @property
    def gates_removed(self) -> int:
        return self.report_before.gate_count - self.report.gate_count

    @property
    def fidelity_gain(self) -> float:
        return self.report.estimated_fidelity - self.report_before.estimated_fidelity


class CompilationPipeline:
    """Compose optimizer, scheduler and cost evaluator into one call.

    Parameters
    ----------
    optimizer:
        Optimizer to apply.  Built from ``optimization_level`` when omitted.
    evaluator:
        Cost evaluator.  Shares the pipeline's scheduler when omitted.
    optimization_level:
        Forwarded to :class:`~qopt.optimizer.Optimizer` when no optimizer is
        given.
    fixed_point:
        Re-run the optimizer until the gate count stops shrinking instead of
        applying it once.
    """

    def __init__(
        self,
        *,
        optimizer: Optimizer | None = None,
        evaluator: CostEvaluator | None = None,
        optimization_level: int | None = None,
        fixed_point: bool = False,
    ) -> None:
        self.scheduler = Scheduler()
        self.optimizer = optimizer or Optimizer(optimization_level=optimization_level)
        self.evaluator = evaluator or CostEvaluator(self.scheduler)
        self.fixed_point = fixed_point

    # ------------------------------------------------------------------
    def run(
        self, circuit: Circuit, target: HardwareTarget | None = None
    ) -> CompilationResult:
        """Optimize ``circuit`` and evaluate it before and after on ``target``."""

        if target is None:
            target = self.evaluator.default_target(circuit)

        start = time.perf_counter()
        if self.fixed_point:
            optimized = self.optimizer.optimize_to_fixed_point(circuit)
            optimization = OptimizationResult(optimized)
        else:
            optimization = self.optimizer.run(circuit)
            optimized = optimization.circuit
        optimization_time = time.perf_counter() - start

        start = time.perf_counter()
        report_before = self.evaluator.evaluate(circuit, target)
        report = self.evaluator.evaluate(optimized, target)
        layers = self.scheduler.layers(optimized)
        evaluation_time = time.perf_counter() - start

        LOGGER.info(
            "Compiled %r for %s: gates %d -> %d, depth %d -> %d, fidelity %.6f -> %.6f, "
            "%d routing violation(s)",
            circuit,
            target.name or "target",
            report_before.gate_count,
            report.gate_count,
            report_before.depth,
            report.depth,
            report_before.estimated_fidelity,
            report.estimated_fidelity,
            report.num_violations,
        )
        return CompilationResult(
            original=circuit,
            optimized=optimized,
            optimization=optimization,
            layers=layers,
            report_before=report_before,
            report=report,
            optimization_time=optimization_time,
            evaluation_time=evaluation_time,
        )

    def run_batch(
        self,
        circuits: Iterable[Circuit],
        target: HardwareTarget | None = None,
        *,
        max_workers: Optional[int] = None,
    ) -> List[CompilationResult]:
        """Compile independent circuits on a thread pool.

        Results are returned in input order.  The first exception raised by
        any circuit propagates to the caller.
        """

        circuits = list(circuits)
        workers = max_workers if max_workers is not None else config.DEFAULT.batch_workers
        LOGGER.debug("Compiling batch of %d circuit(s) with max_workers=%s", len(circuits), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda c: self.run(c, target), circuits))


def compile_circuit(
    circuit: Circuit,
    target: HardwareTarget | None = None,
    *,
    optimization_level: int | None = None,
) -> CompilationResult:
    """Convenience wrapper around :meth:`CompilationPipeline.run`."""

    return CompilationPipeline(optimization_level=optimization_level).run(circuit, target)


__all__ = ["CompilationPipeline", "CompilationResult", "compile_circuit"]
