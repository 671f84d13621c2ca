"""
Segmented inference with weighted overlap-add stitching.

The mix is cut into windows of `segment_samples` columns spaced `stride`
apart. Each window is separated independently and added to the output with a
triangular weight; the accumulated weights are divided out at the end.
"""

import math
from typing import Any, Callable, Optional

import numpy as np
from tqdm.auto import tqdm

from hdemix.audio.buffers import allocate_arena
from hdemix.audio.segment_runner import run_segment
from hdemix.core.debug import debug_array
from hdemix.core.exceptions import require
from hdemix.core.logger import get_logger
from hdemix.models.model_forward import ModelForward

logger = get_logger("overlap_add")


def make_weight_window(segment_samples: int, transition_power: float = 1.0) -> np.ndarray:
    """
    Triangular crossfade window of length `segment_samples`.

    Ramps 1, 2, ... up to the midpoint and back down, scaled so its maximum
    is 1, then raised element-wise to `transition_power`.
    """
    require(segment_samples > 0, f"segment_samples must be positive, got {segment_samples}")
    half = segment_samples // 2
    weight = np.concatenate(
        [
            np.arange(1, half + 1, dtype=np.float32),
            np.arange(segment_samples - half, 0, -1, dtype=np.float32),
        ]
    )
    weight /= weight.max()
    return np.power(weight, np.float32(transition_power)).astype(np.float32, copy=False)


def count_windows(length: int, stride: int) -> int:
    return math.ceil(length / stride) if length > 0 else 0


def split_inference(
    model_forward: ModelForward,
    model: Any,
    audio: np.ndarray,
    segment_samples: int,
    stride: int,
    transition_power: float = 1.0,
    num_sources: int = 4,
    progress: bool = False,
    window_callback: Optional[Callable[[int, int], None]] = None,
) -> np.ndarray:
    """
    Separate `audio` window by window and stitch the results.

    One scratch arena is allocated for the whole pass and reused by every
    window. The trailing window may be shorter than `segment_samples`; it is
    weighted by the prefix of the full-length window.

    Args:
        model_forward: Segment forward call, see `hdemix.models.model_forward`.
        model: Opaque model handle passed through to `model_forward`.
        audio: channels x samples mix.
        segment_samples: Width of every model call.
        stride: Distance between window starts, 1 <= stride.
        transition_power: Exponent applied to the weight window.
        num_sources: Sources produced by the model.
        progress: Show a tqdm progress bar.
        window_callback: Called with (windows_done, windows_total) after each window.

    Returns:
        np.ndarray: sources x channels x samples, float32.
    """
    require(stride >= 1, f"stride must be >= 1, got {stride}")
    require(audio.ndim == 2, f"expected a channels x samples mix, got shape {audio.shape}")

    num_channels, length = audio.shape
    total_windows = count_windows(length, stride)
    logger.debug(
        f"split inference: length={length} segment={segment_samples} "
        f"stride={stride} windows={total_windows}"
    )
    debug_array(logger, audio, "split input")

    buffers, workspace = allocate_arena(segment_samples, num_sources=num_sources)
    require(
        buffers.mix.shape[0] == num_channels,
        f"segment buffers hold {buffers.mix.shape[0]} channels, mix has {num_channels}",
    )

    weight = make_weight_window(segment_samples, transition_power)

    out = np.zeros((num_sources, num_channels, length), dtype=np.float32)
    sum_weight = np.zeros(length, dtype=np.float32)

    progress_bar = tqdm(total=total_windows, desc="Separating segments", leave=False) if progress else None

    done = 0
    for offset in range(0, length, stride):
        chunk_length = min(segment_samples, length - offset)
        chunk = audio[:, offset:offset + chunk_length]

        logger.debug(f"window {done + 1}/{total_windows}: offset={offset} chunk={chunk.shape}")

        chunk_out = run_segment(model_forward, model, chunk, buffers, workspace, segment_samples)
        debug_array(logger, chunk_out, f"chunk_out for offset {offset}")

        # k % chunk_length over k < chunk_length: the short trailing window
        # reuses the head of the full window rather than a shorter triangle
        chunk_weight = weight[np.arange(chunk_length) % chunk_length]

        out[..., offset:offset + chunk_length] += chunk_weight * chunk_out
        sum_weight[offset:offset + chunk_length] += chunk_weight

        done += 1
        if progress_bar is not None:
            progress_bar.update(1)
        if window_callback is not None:
            window_callback(done, total_windows)

    if progress_bar is not None:
        progress_bar.close()

    require(
        length == 0 or float(sum_weight.min()) > 0,
        "overlap-add weight sum is not strictly positive; stride exceeds segment length?",
    )

    out /= sum_weight
    debug_array(logger, out, "stitched output")
    return out
