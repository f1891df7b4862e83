"""
Thread-safe in-memory metrics collector for the newscast worker.

Tracks request counters, per-error-class counters, end-to-end latency
samples and the most recent pipeline failures. All data is ephemeral
(resets on restart).
"""

import time
import threading
from collections import defaultdict
from typing import Dict, List

_lock = threading.Lock()
_start_time = time.time()

# ── Counters ──────────────────────────────────────────────────────────────────
_counters: Dict[str, int] = defaultdict(int)

# ── Latency samples (last 100 per endpoint) ──────────────────────────────────
_latency_samples: Dict[str, List[float]] = defaultdict(list)
MAX_SAMPLES = 100

# ── Error log (last 50 errors) ────────────────────────────────────────────────
_recent_errors: List[dict] = []
MAX_ERRORS = 50


def inc_counter(name: str, amount: int = 1):
    """Increment a counter (e.g. 'requests.generate', 'errors.DownloadError')."""
    with _lock:
        _counters[name] += amount


def record_latency(endpoint: str, duration_ms: float):
    """Record a latency sample in milliseconds."""
    with _lock:
        samples = _latency_samples[endpoint]
        samples.append(duration_ms)
        if len(samples) > MAX_SAMPLES:
            _latency_samples[endpoint] = samples[-MAX_SAMPLES:]


def record_error(endpoint: str, error_type: str, message: str, stage: str = ""):
    """Record a pipeline failure for later inspection."""
    with _lock:
        _counters[f"errors.{error_type}"] += 1
        _recent_errors.append({
            "timestamp": time.time(),
            "endpoint": endpoint,
            "error_type": error_type,
            "stage": stage,
            "message": message[:300],
        })
        if len(_recent_errors) > MAX_ERRORS:
            _recent_errors.pop(0)


def _percentile(sorted_values: List[float], pct: float) -> float:
    if not sorted_values:
        return 0.0
    idx = min(int(len(sorted_values) * pct), len(sorted_values) - 1)
    return sorted_values[idx]


def get_snapshot() -> dict:
    """Return a JSON-serializable view of every metric."""
    with _lock:
        latency = {}
        for endpoint, samples in _latency_samples.items():
            ordered = sorted(samples)
            latency[endpoint] = {
                "count": len(ordered),
                "p50_ms": round(_percentile(ordered, 0.50), 1),
                "p95_ms": round(_percentile(ordered, 0.95), 1),
                "max_ms": round(ordered[-1], 1) if ordered else 0.0,
            }
        return {
            "uptime_seconds": round(time.time() - _start_time, 1),
            "counters": dict(_counters),
            "latency": latency,
            "recent_errors": list(_recent_errors),
        }


def reset():
    """Clear everything. Used by tests."""
    with _lock:
        _counters.clear()
        _latency_samples.clear()
        _recent_errors.clear()
