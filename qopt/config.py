import os
from dataclasses import dataclass


def _int_from_env(name: str, default: int | None) -> int | None:
    val = os.getenv(name)
    if val is None:
        return default
    if val.lower() == "none":
        return None
    try:
        return int(val)
    except ValueError:
        return default


def _float_from_env(name: str, default: float) -> float:
    """Return a floating-point value parsed from the environment."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _bool_from_env(name: str, default: bool) -> bool:
    """Return a boolean value parsed from the environment."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    val = val.strip().lower()
    if val in {"1", "true", "yes", "on"}:
        return True
    if val in {"0", "false", "no", "off"}:
        return False
    return default


def _positive_int_from_env(name: str, default: int) -> int:
    """Return a positive integer parsed from the environment."""

    value = _int_from_env(name, default)
    if value is None or value < 1:
        return default
    return value


def _rate_from_env(name: str, default: float) -> float:
    """Return an error probability in ``[0, 1)`` parsed from the environment."""

    value = _float_from_env(name, default)
    if not 0.0 <= value < 1.0:
        return default
    return value


@dataclass
class Config:
    """Runtime configuration defaults for qopt.

    Values may be overridden via environment variables or by supplying
    explicit arguments to :class:`~qopt.optimizer.Optimizer`,
    :class:`~qopt.cost.CostEvaluator` and
    :class:`~qopt.pipeline.CompilationPipeline`.
    """

    fallback_error_rate: float = _rate_from_env("QOPT_FALLBACK_ERROR_RATE", 0.01)
    cancellation_tolerance: float = _float_from_env(
        "QOPT_CANCELLATION_TOLERANCE", 1e-10
    )
    optimization_level: int = _int_from_env("QOPT_OPTIMIZATION_LEVEL", 1)
    max_fixed_point_iterations: int = _positive_int_from_env(
        "QOPT_MAX_FIXED_POINT_ITERATIONS", 10
    )
    batch_workers: int | None = _int_from_env("QOPT_BATCH_WORKERS", None)
    log_passes: bool = _bool_from_env("QOPT_LOG_PASSES", False)


# Global configuration instance used when modules import ``qopt.config``.
DEFAULT = Config()
