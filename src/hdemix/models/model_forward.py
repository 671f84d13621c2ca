"""
Boundary between the inference core and the separation network.

The core calls exactly one operation on the network side:

    model_forward(model, buffers, workspace)

which must fill `buffers.targets_out` (sources x channels x segment_samples)
from `buffers.mix` (channels x segment_samples) in place. Source and channel
order are whatever the model produces and are passed through unchanged.

Concrete adapters live in their own modules (see `torch_forward`) so that
importing the core does not pull in a deep learning framework.
"""

from __future__ import annotations

from typing import Any, Protocol

from hdemix.audio.buffers import SegmentBuffers, TransformWorkspace
from hdemix.core.exceptions import require


class ModelForward(Protocol):
    def __call__(
        self, model: Any, buffers: SegmentBuffers, workspace: TransformWorkspace
    ) -> None:
        ...


def run_model(
    model_forward: ModelForward,
    model: Any,
    buffers: SegmentBuffers,
    workspace: TransformWorkspace,
) -> None:
    """Invoke `model_forward` and check it left a well-formed output buffer."""
    expected = buffers.targets_shape
    model_forward(model, buffers, workspace)
    require(
        buffers.targets_out.shape == expected,
        f"model forward resized targets_out to {buffers.targets_out.shape}, expected {expected}",
    )
