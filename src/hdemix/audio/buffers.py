"""
Per-call scratch arena for segment inference.

One `SegmentBuffers` / `TransformWorkspace` pair is allocated at the start of
an overlap-add pass and reused by every window of that pass. Both are mutable
and must never be shared between concurrent passes; a parallel driver gives
each worker its own pair.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np


@dataclass
class SegmentBuffers:
    """Padded input mix and raw model output for one segment."""

    segment_samples: int
    num_sources: int = 4
    num_channels: int = 2
    mix: np.ndarray = field(init=False, repr=False)
    targets_out: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.mix = np.zeros((self.num_channels, self.segment_samples), dtype=np.float32)
        self.targets_out = np.zeros(
            (self.num_sources, self.num_channels, self.segment_samples), dtype=np.float32
        )

    @property
    def targets_shape(self):
        return (self.num_sources, self.num_channels, self.segment_samples)


@dataclass
class TransformWorkspace:
    """
    Opaque scratch owned by the model-forward call.

    The inference core only sizes and passes this object around. Forward
    implementations keep whatever they need between windows in `scratch`
    (device tensors, spectrogram buffers) and allocate it lazily on first use.
    """

    segment_samples: int
    scratch: Dict[str, Any] = field(default_factory=dict, repr=False)

    def get_or_create(self, key: str, factory):
        """Return `scratch[key]`, creating it with `factory()` on first use."""
        value = self.scratch.get(key)
        if value is None:
            value = factory()
            self.scratch[key] = value
        return value


def allocate_arena(segment_samples: int, num_sources: int = 4):
    """Allocate the buffers and workspace used by one overlap-add pass."""
    return (
        SegmentBuffers(segment_samples, num_sources=num_sources),
        TransformWorkspace(segment_samples),
    )
