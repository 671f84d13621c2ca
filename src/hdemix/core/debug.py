"""
Intermediate tensor summaries for debugging the inference pipeline.

Dumping whole arrays is useless for multi-million sample signals, so the
pipeline logs a compact summary at each stage instead. Summaries are only
computed when the logger has DEBUG enabled.
"""

import logging
from typing import Any, Dict

import numpy as np


def summarize_array(arr: np.ndarray) -> Dict[str, Any]:
    """Return shape and basic statistics of `arr`."""
    arr = np.asarray(arr)
    if arr.size == 0:
        return {"shape": tuple(arr.shape), "empty": True}

    # float64 accumulation so the summary itself does not drift
    values = arr.astype(np.float64, copy=False)
    return {
        "shape": tuple(arr.shape),
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": float(values.mean()),
        "sum": float(values.sum()),
        "abs_sum": float(np.abs(values).sum()),
    }


def format_summary(name: str, summary: Dict[str, Any]) -> str:
    if summary.get("empty"):
        return f"{name}: shape={summary['shape']} (empty)"
    return (
        f"{name}: shape={summary['shape']} min={summary['min']:.8f} "
        f"max={summary['max']:.8f} mean={summary['mean']:.8f} "
        f"sum={summary['sum']:.8f} abs_sum={summary['abs_sum']:.8f}"
    )


def debug_array(logger: logging.Logger, arr: np.ndarray, name: str) -> None:
    """Log a summary of `arr` at DEBUG level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(format_summary(name, summarize_array(arr)))
