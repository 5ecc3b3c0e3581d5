"""Replay a recorded IMU log through the recognition pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from ..analysis.tensor import TENSOR_MODES, tensor_to_rows
from ..config import HarConfig, load_config, load_metadata
from ..core.pipeline import ActivityPipeline
from ..dataio.csv_writer import feature_rows, write_rows
from ..dataio.log_loader import merge_logs
from ..inference.backend import FallbackBackend, InferenceBackend, ScaledBackend

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay IMU logs through the activity recognizer")
    parser.add_argument("logs", nargs="+", type=Path, help="CSV or JSONL sensor logs")
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML file with recognizer overrides",
    )
    parser.add_argument(
        "--meta",
        type=Path,
        help="Model metadata JSON (feature order, classes, scaler)",
    )
    parser.add_argument(
        "--backend",
        choices=FallbackBackend.MODES,
        default="uniform",
        help="Stand-in backend used when no model is attached",
    )
    parser.add_argument("--seed", type=int, help="Seed for the random stand-in backend")
    parser.add_argument(
        "--dump-csv",
        type=Path,
        help="Write the backend inputs of every cycle (features or tensor rows) to CSV",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def _resolve(args: argparse.Namespace) -> tuple[HarConfig, InferenceBackend]:
    cfg = load_config(args.config) if args.config else HarConfig()
    backend: InferenceBackend
    if args.meta:
        meta = load_metadata(args.meta)
        cfg = meta.apply_to(cfg)
        backend = FallbackBackend(cfg.classes, mode=args.backend, seed=args.seed)
        if meta.has_scaler and cfg.input_mode in TENSOR_MODES:
            backend = ScaledBackend(backend, meta.scaler_mean, meta.scaler_scale)
    else:
        backend = FallbackBackend(cfg.classes, mode=args.backend, seed=args.seed)
    return cfg.sanitized(), backend


async def replay(
    logs: Sequence[Path],
    cfg: HarConfig,
    backend: InferenceBackend,
    dump_csv: Path | None = None,
) -> int:
    """Run every sample in ``logs`` through a fresh pipeline; returns the number of cycles."""
    samples = merge_logs(logs)

    def _print(label: str, confidence: float) -> None:
        print(f"{label:<12} {confidence:5.2f}")

    pipeline = ActivityPipeline(backend, cfg, on_prediction=_print)
    dumped: list = []
    stamp = datetime.now(timezone.utc).isoformat()
    for sample in samples:
        result = await pipeline.add_sample(sample)
        if result is None or dump_csv is None or pipeline.last_inputs is None:
            continue
        if cfg.input_mode in TENSOR_MODES:
            dumped.extend(tensor_to_rows(pipeline.last_inputs, stamp))
        else:
            features = dict(zip(cfg.feature_order, pipeline.last_inputs.tolist()))
            window_end = pipeline.last_window.end if pipeline.last_window else 0.0
            dumped.extend(feature_rows([(window_end, features)], cfg.feature_order))

    if dump_csv is not None:
        if cfg.input_mode in TENSOR_MODES:
            _, columns = TENSOR_MODES[cfg.input_mode]
            headers = ["timestamp", "sample_index", *columns]
        else:
            headers = ["window_end", *cfg.feature_order]
        write_rows(dump_csv, headers, dumped)
        logger.info("Wrote %d rows to %s", len(dumped), dump_csv)

    logger.info("Replayed %d samples, %d inference cycles (%s)", len(samples), pipeline.cycles, backend.name)
    return pipeline.cycles


def main(argv: list[str] | None = None) -> None:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg, backend = _resolve(args)
    asyncio.run(replay(args.logs, cfg, backend, args.dump_csv))


if __name__ == "__main__":
    main()
