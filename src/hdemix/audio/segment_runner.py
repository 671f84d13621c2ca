"""
Single-segment inference: pad, run the model, center trim.
"""

from typing import Any

import numpy as np

from hdemix.audio.buffers import SegmentBuffers, TransformWorkspace
from hdemix.audio.padding import center_trim, symmetric_zero_padding
from hdemix.core.debug import debug_array
from hdemix.core.exceptions import require
from hdemix.core.logger import get_logger
from hdemix.models.model_forward import ModelForward, run_model

logger = get_logger("segment")


def run_segment(
    model_forward: ModelForward,
    model: Any,
    chunk: np.ndarray,
    buffers: SegmentBuffers,
    workspace: TransformWorkspace,
    segment_samples: int,
) -> np.ndarray:
    """
    Separate one chunk of at most `segment_samples` columns.

    The chunk is zero-padded symmetrically into `buffers.mix`, the model fills
    `buffers.targets_out`, and the region that corresponds to the chunk (not
    the segment edges) is copied out.

    Returns:
        np.ndarray: sources x channels x chunk_length.
    """
    chunk_length = chunk.shape[-1]
    require(
        chunk_length <= segment_samples,
        f"chunk of {chunk_length} samples exceeds segment of {segment_samples}",
    )

    padding = symmetric_zero_padding(buffers.mix, chunk, segment_samples - chunk_length)
    logger.debug(f"segment padding: left={padding.left} right={padding.right}")

    run_model(model_forward, model, buffers, workspace)
    debug_array(logger, buffers.targets_out, "targets_out")

    return center_trim(buffers.targets_out, padding.left, chunk_length)
