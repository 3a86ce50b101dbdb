"""
Ingestion status monitoring and diagnostics.

Counts what happened to every observation and renders a JSON-able status
dict for periodic publishing.
"""

from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from octomap_world.calibration import ReprojectionCalibration


@dataclass
class StreamCounts:
    received: int = 0
    inserted: int = 0
    dropped_not_ready: int = 0
    dropped_no_pose: int = 0
    dropped_engine_error: int = 0

    @property
    def dropped(self) -> int:
        return self.dropped_not_ready + self.dropped_no_pose + self.dropped_engine_error


@dataclass
class IngestionStats:
    """Per-stream counters; safe to bump from concurrent callbacks."""
    disparity: StreamCounts = field(default_factory=StreamCounts)
    pointcloud: StreamCounts = field(default_factory=StreamCounts)
    latest_fallbacks: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def bump(self, stream: str, counter: str) -> int:
        with self._lock:
            counts: StreamCounts = getattr(self, stream)
            value = getattr(counts, counter) + 1
            setattr(counts, counter, value)
            return value

    def note_latest_fallback(self) -> None:
        with self._lock:
            self.latest_fallbacks += 1


def build_status(
    stats: IngestionStats,
    calibration: "ReprojectionCalibration",
    node_start_time: float,
) -> Dict[str, Any]:
    """Status snapshot for the ingestion_status topic."""
    elapsed = time.time() - node_start_time
    status: Dict[str, Any] = {
        "timestamp": time.time(),
        "elapsed_sec": elapsed,
        "calibration_state": calibration.state.name,
        "calibration_ready": calibration.is_ready,
        "latest_tf_fallbacks": stats.latest_fallbacks,
    }
    for stream in ("disparity", "pointcloud"):
        counts: StreamCounts = getattr(stats, stream)
        entry = asdict(counts)
        entry["dropped"] = counts.dropped
        entry["insert_rate_hz"] = round(counts.inserted / max(elapsed, 1.0), 2)
        status[stream] = entry
    return status
