"""Python API for qopt."""

from .gates import (
    Gate,
    GateKind,
    CircuitError,
    UnknownGateKindError,
    ArityMismatchError,
    OutOfRangeQubitError,
    OutOfRangeClbitError,
)
from .circuit import Circuit
from .scheduler import Layer, Scheduler
from .target import HardwareTarget, DevicePreset, DEVICE_PRESETS
from .optimizer import (
    Optimizer,
    OptimizationResult,
    PassRecord,
    cancel_adjacent_inverses,
    remove_identity_rotations,
    merge_rotations,
    optimize,
)
from .cost import CostEvaluator, CostReport, RoutingViolation, evaluate
from .pipeline import CompilationPipeline, CompilationResult, compile_circuit
from .analyzer import CircuitAnalyzer, AnalysisResult

__all__ = [
    "Gate",
    "GateKind",
    "CircuitError",
    "UnknownGateKindError",
    "ArityMismatchError",
    "OutOfRangeQubitError",
    "OutOfRangeClbitError",
    "Circuit",
    "Layer",
    "Scheduler",
    "HardwareTarget",
    "DevicePreset",
    "DEVICE_PRESETS",
    "Optimizer",
    "OptimizationResult",
    "PassRecord",
    "cancel_adjacent_inverses",
    "remove_identity_rotations",
    "merge_rotations",
    "optimize",
    "CostEvaluator",
    "CostReport",
    "RoutingViolation",
    "evaluate",
    "CompilationPipeline",
    "CompilationResult",
    "compile_circuit",
    "CircuitAnalyzer",
    "AnalysisResult",
]
