"""
Amplitude normalization of the input mix and its exact inverse on the stems.
"""

from typing import NamedTuple

import numpy as np

from hdemix.core.exceptions import require
from hdemix.core.logger import get_logger

logger = get_logger("normalizer")


class NormalizationStats(NamedTuple):
    ref_mean: float
    ref_std: float


def compute_stats(audio: np.ndarray, reference: str = "channel") -> NormalizationStats:
    """
    Compute the scalar mean/std pair used to normalize `audio`.

    Args:
        audio: channels x samples mix.
        reference: "channel" reduces each channel to its mean and takes the
            mean and sample standard deviation of those values. "mono" uses
            the per-sample channel average as the reference signal instead.

    Returns:
        NormalizationStats: `ref_std` uses an N-1 divisor in both modes.
    """
    require(audio.ndim == 2, f"expected a channels x samples mix, got shape {audio.shape}")

    if reference == "channel":
        ref = audio.mean(axis=1, dtype=np.float64)
    elif reference == "mono":
        ref = audio.mean(axis=0, dtype=np.float64)
    else:
        raise ValueError(f"Unknown normalization reference: {reference!r}")

    ref_mean = float(ref.mean())
    # A single reference value gives 0/0 here; stereo input is checked upstream
    with np.errstate(divide="ignore", invalid="ignore"):
        ref_std = float(np.sqrt(np.square(ref - ref_mean).sum() / (ref.size - 1)))

    if not ref_std > 0:
        logger.warning(
            f"Normalization std is {ref_std} (reference={reference}); "
            "normalized audio will not be finite"
        )
    return NormalizationStats(ref_mean, ref_std)


def normalize(audio: np.ndarray, stats: NormalizationStats) -> np.ndarray:
    """Return `(audio - ref_mean) / ref_std` as float32."""
    with np.errstate(divide="ignore", invalid="ignore"):
        normalized = (audio.astype(np.float32, copy=False) - np.float32(stats.ref_mean)) / np.float32(
            stats.ref_std
        )
    return normalized.astype(np.float32, copy=False)


def denormalize(sources: np.ndarray, stats: NormalizationStats) -> np.ndarray:
    """Undo `normalize` on a sources x channels x samples tensor."""
    return (sources * np.float32(stats.ref_std) + np.float32(stats.ref_mean)).astype(
        np.float32, copy=False
    )
