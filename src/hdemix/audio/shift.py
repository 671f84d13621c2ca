"""
Time-shift equivariance around segmented inference.

The mix is padded by `max_shift` zeros on each side, a window starting at
`offset` is separated, and the output is read back starting at
`max_shift - offset` so the shift is undone exactly.
"""

import random
from typing import Any, Callable, Optional

import numpy as np

from hdemix.audio.padding import symmetric_zero_padding
from hdemix.core.debug import debug_array
from hdemix.core.exceptions import require
from hdemix.core.logger import get_logger

logger = get_logger("shift")


class FixedOffset:
    """Always returns the same offset. Keeps separation reproducible."""

    def __init__(self, offset: int):
        self.offset = int(offset)

    def __call__(self, max_shift: int) -> int:
        return self.offset

    def __repr__(self):
        return f"FixedOffset({self.offset})"


class RandomOffset:
    """Draws offsets uniformly from [0, max_shift), for multi-shift averaging."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def __call__(self, max_shift: int) -> int:
        if max_shift <= 0:
            return 0
        return self._rng.randrange(max_shift)

    def __repr__(self):
        return f"RandomOffset(seed={self.seed})"


def shift_inference(
    separate: Callable[[np.ndarray], np.ndarray],
    audio: np.ndarray,
    max_shift: int,
    offset: int,
) -> np.ndarray:
    """
    Run `separate` on a shifted copy of `audio` and undo the shift.

    Args:
        separate: Maps a channels x samples mix to sources x channels x samples.
        audio: channels x samples mix.
        max_shift: Zero padding added on each side, in samples.
        offset: Start of the separated window within the padded mix,
            0 <= offset < max_shift (0 when max_shift is 0).

    Returns:
        np.ndarray: sources x channels x samples, aligned with `audio`.
    """
    require(max_shift >= 0, f"max_shift must be >= 0, got {max_shift}")
    if max_shift == 0:
        require(offset == 0, f"offset must be 0 without shifting, got {offset}")
        return separate(audio)
    require(0 <= offset < max_shift, f"shift offset {offset} outside [0, {max_shift})")

    num_channels, length = audio.shape

    padded_mix = np.empty((num_channels, length + 2 * max_shift), dtype=np.float32)
    symmetric_zero_padding(padded_mix, audio, 2 * max_shift)
    debug_array(logger, padded_mix, "padded_mix")

    logger.debug(f"apply model with shift: max_shift={max_shift} offset={offset}")
    shifted_audio = padded_mix[:, offset:offset + length + max_shift - offset]
    debug_array(logger, shifted_audio, "shifted_audio")

    waveform_outputs = separate(shifted_audio)
    debug_array(logger, waveform_outputs, "waveform_outputs")

    start = max_shift - offset
    require(
        waveform_outputs.shape[-1] >= start + length,
        f"separated width {waveform_outputs.shape[-1]} too short to trim [{start}, {start + length})",
    )
    return waveform_outputs[..., start:start + length].copy()


def averaged_shift_inference(
    separate: Callable[[np.ndarray], np.ndarray],
    audio: np.ndarray,
    max_shift: int,
    offset_source: Callable[[int], int],
    shifts: int = 1,
) -> np.ndarray:
    """
    Average `shifts` passes of `shift_inference`, one offset per pass.

    With `shifts == 1` this is a single pass with no averaging arithmetic, so
    a fixed offset source reproduces `shift_inference` bit for bit.
    """
    require(shifts >= 1, f"shifts must be >= 1, got {shifts}")

    if shifts == 1:
        return shift_inference(separate, audio, max_shift, offset_source(max_shift))

    total: Optional[np.ndarray] = None
    for index in range(shifts):
        offset = offset_source(max_shift)
        logger.debug(f"shift pass {index + 1}/{shifts}: offset={offset}")
        result = shift_inference(separate, audio, max_shift, offset)
        if total is None:
            total = result
        else:
            total += result
    total /= np.float32(shifts)
    return total


def resolve_offset_source(offset_source: Any, default_offset: int) -> Callable[[int], int]:
    """Accept None (use the configured offset), an int, or a callable."""
    if offset_source is None:
        return FixedOffset(default_offset)
    if isinstance(offset_source, (int, np.integer)):
        return FixedOffset(int(offset_source))
    if callable(offset_source):
        return offset_source
    raise TypeError(f"offset_source must be an int or callable, got {type(offset_source).__name__}")
