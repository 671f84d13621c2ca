"""Stub segment forwards shared by the pipeline tests.

None of these need a real network: each one fills `buffers.targets_out`
from `buffers.mix` with a simple, predictable rule.
"""

from __future__ import annotations

import numpy as np
import pytest

from hdemix.core.config import InferenceConfig


class ZeroForward:
    """Writes zeros regardless of the input."""

    def __init__(self):
        self.calls = 0

    def __call__(self, model, buffers, workspace):
        self.calls += 1
        buffers.targets_out[...] = 0.0


class IdentityForward:
    """Copies the padded mix into every source."""

    def __call__(self, model, buffers, workspace):
        buffers.targets_out[...] = buffers.mix[np.newaxis]


class ScaledForward:
    """Source `s` is the mix times `s + 1`."""

    def __call__(self, model, buffers, workspace):
        for s in range(buffers.targets_out.shape[0]):
            buffers.targets_out[s] = buffers.mix * (s + 1)


class RecordingForward:
    """Identity forward that records what it was handed on every call."""

    def __init__(self):
        self.mixes = []
        self.buffer_ids = []
        self.workspace_ids = []

    def __call__(self, model, buffers, workspace):
        self.mixes.append(buffers.mix.copy())
        self.buffer_ids.append((id(buffers), id(buffers.mix), id(buffers.targets_out)))
        self.workspace_ids.append(id(workspace))
        buffers.targets_out[...] = buffers.mix[np.newaxis]


class WindowIndexForward:
    """Fills every source with the 1-based index of the current window."""

    def __init__(self):
        self.calls = 0

    def __call__(self, model, buffers, workspace):
        self.calls += 1
        buffers.targets_out[...] = float(self.calls)


@pytest.fixture
def small_config():
    # 50-sample segments, stride 25, max shift 25 at 100 Hz
    return InferenceConfig(
        sample_rate=100,
        max_shift_seconds=0.25,
        segment_seconds=0.5,
        overlap=0.5,
        transition_power=1.0,
        shift_offset=7,
    )


@pytest.fixture
def stereo_mix():
    rng = np.random.default_rng(1234)
    audio = rng.uniform(-0.5, 0.5, size=(2, 173)).astype(np.float32)
    # distinct channel offsets keep the channel-mean std well away from zero
    audio[0] += 0.1
    audio[1] -= 0.2
    return audio


@pytest.fixture
def zero_forward():
    return ZeroForward()


@pytest.fixture
def identity_forward():
    return IdentityForward()


@pytest.fixture
def scaled_forward():
    return ScaledForward()


@pytest.fixture
def recording_forward():
    return RecordingForward()


@pytest.fixture
def window_index_forward():
    return WindowIndexForward()
