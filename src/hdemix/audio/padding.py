"""
Symmetric zero padding and its inverse, center trimming.
"""

from typing import NamedTuple

import numpy as np

from hdemix.core.exceptions import require


class PaddingOffsets(NamedTuple):
    """Columns of zeros placed before (`left`) and after (`right`) the source."""

    left: int
    right: int


def split_padding(total_padding: int) -> PaddingOffsets:
    left = total_padding // 2
    return PaddingOffsets(left, total_padding - left)


def symmetric_zero_padding(
    target: np.ndarray, source: np.ndarray, total_padding: int
) -> PaddingOffsets:
    """
    Copy `source` into the middle of `target` and zero the borders.

    `target` is written in place and must be exactly `total_padding` columns
    wider than `source`. The left border gets `floor(total_padding / 2)`
    columns, the right border the remainder.

    Returns:
        PaddingOffsets: the left and right border widths.
    """
    require(total_padding >= 0, f"total_padding must be >= 0, got {total_padding}")
    require(
        target.shape[:-1] == source.shape[:-1],
        f"padding target rows {target.shape[:-1]} do not match source rows {source.shape[:-1]}",
    )
    width = source.shape[-1]
    require(
        target.shape[-1] == width + total_padding,
        f"padding target width {target.shape[-1]} != source width {width} + padding {total_padding}",
    )

    offsets = split_padding(total_padding)
    left = offsets.left

    target[..., left:left + width] = source
    target[..., :left] = 0
    target[..., width + left:] = 0

    return offsets


def center_trim(padded: np.ndarray, left: int, length: int) -> np.ndarray:
    """Return a copy of columns `[left, left + length)` of the last axis."""
    require(
        0 <= left and left + length <= padded.shape[-1],
        f"trim window [{left}, {left + length}) outside width {padded.shape[-1]}",
    )
    return padded[..., left:left + length].copy()
