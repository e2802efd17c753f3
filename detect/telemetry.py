from __future__ import annotations

from dataclasses import dataclass

from log_config.logger import get_logger

logger = get_logger("telemetry")


@dataclass(frozen=True)
class TimingRecord:
    detector: str
    frame_index: int
    elapsed_ms: float
    budget_ms: float


def log_timing(detector: str, frame_index: int, elapsed_ms: float, budget_ms: float) -> None:
    record = TimingRecord(
        detector=detector, frame_index=frame_index, elapsed_ms=elapsed_ms, budget_ms=budget_ms
    )
    logger.debug(
        f"detect.timing detector={record.detector} frame={record.frame_index} "
        f"elapsed_ms={record.elapsed_ms:.3f} budget_ms={record.budget_ms:.3f}"
    )
    if elapsed_ms > budget_ms:
        logger.warning(
            f"detect.timing_budget_exceeded detector={record.detector} frame={record.frame_index} "
            f"elapsed_ms={record.elapsed_ms:.3f} budget_ms={record.budget_ms:.3f}"
        )
