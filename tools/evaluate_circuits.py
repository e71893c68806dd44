"""Optimize circuit JSON files and print cost reports.

Each input file holds a circuit in the layout written by
:meth:`qopt.circuit.Circuit.to_json`.  The circuits are compiled against a
preset device (``--device``) or a JSON hardware descriptor (``--target``)
and one JSON object per circuit is printed to stdout.  Pass ``--verbose``
to see per-circuit progress and ``-vv`` for per-pass records.

Example::

    python tools/evaluate_circuits.py bell.json ghz.json --device rigetti_aspen
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Sequence

sys.path.append(str(Path(__file__).resolve().parents[1]))

from qopt.circuit import Circuit
from qopt.pipeline import CompilationPipeline
from qopt.target import DEVICE_PRESETS, HardwareTarget


LOGGER = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    """Initialise logging for CLI usage."""

    level = logging.WARNING
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _load_target(args: argparse.Namespace) -> HardwareTarget | None:
    if args.target is not None:
        data = json.loads(Path(args.target).read_text(encoding="utf8"))
        return HardwareTarget.from_dict(data)
    if args.device is not None:
        return HardwareTarget.preset(args.device)
    return None


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Optimize circuits and report their hardware cost",
    )
    parser.add_argument("circuits", nargs="+", type=Path, help="Circuit JSON files.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--device",
        choices=sorted(DEVICE_PRESETS),
        help="Evaluate against a preset device.",
    )
    source.add_argument(
        "--target",
        type=Path,
        help="Evaluate against a JSON hardware descriptor.",
    )
    parser.add_argument(
        "-O",
        "--optimization-level",
        type=int,
        default=None,
        help="Optimizer preset (0, 1 or 2).",
    )
    parser.add_argument(
        "--fixed-point",
        action="store_true",
        help="Repeat the optimizer until the gate count stops shrinking.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size for the batch.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write optimized circuits to this directory.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (use -vv for debug output).",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    target = _load_target(args)
    circuits = []
    for path in args.circuits:
        LOGGER.info("Loading %s", path)
        circuit = Circuit.from_json(path)
        if not circuit.name:
            circuit.name = path.stem
        circuits.append(circuit)

    pipeline = CompilationPipeline(
        optimization_level=args.optimization_level,
        fixed_point=args.fixed_point,
    )
    results = pipeline.run_batch(circuits, target, max_workers=args.workers)

    if args.output_dir is not None:
        args.output_dir.mkdir(parents=True, exist_ok=True)
    for path, result in zip(args.circuits, results):
        payload = {
            "circuit": result.original.name,
            "before": result.report_before.to_dict(),
            "after": result.report.to_dict(),
        }
        print(json.dumps(payload))
        if args.output_dir is not None:
            out = args.output_dir / f"{path.stem}.optimized.json"
            result.optimized.to_json(out, indent=2)
            LOGGER.info("Wrote %s", out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
