"""
PyTorch adapter for the segment forward call.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
import torch

from hdemix.audio.buffers import SegmentBuffers, TransformWorkspace
from hdemix.core.exceptions import require
from hdemix.core.logger import get_logger


class TorchModelForward:
    """
    Run a `torch.nn.Module` as the segment forward call.

    The module receives a `(1, channels, segment_samples)` float32 tensor and
    must return `(1, sources, channels, segment_samples)` or the same without
    the batch axis. The input tensor is allocated once per workspace on the
    target device and refilled for every window.
    """

    INPUT_KEY = "torch_input"

    def __init__(self, device: Optional[Union[str, torch.device]] = None, use_amp: bool = False):
        self.logger = get_logger("torch")
        if device is None:
            device = "cuda" if torch.cuda.is_available() else "cpu"
        self.device = torch.device(device)
        # Mixed precision only pays off on GPU
        self.use_amp = use_amp and self.device.type == "cuda"
        self.logger.info(f"TorchModelForward on {self.device} (amp={self.use_amp})")

    def _input_tensor(self, buffers: SegmentBuffers, workspace: TransformWorkspace) -> torch.Tensor:
        return workspace.get_or_create(
            self.INPUT_KEY,
            lambda: torch.empty(
                (1,) + buffers.mix.shape, dtype=torch.float32, device=self.device
            ),
        )

    def __call__(
        self, model: torch.nn.Module, buffers: SegmentBuffers, workspace: TransformWorkspace
    ) -> None:
        with torch.inference_mode():
            x = self._input_tensor(buffers, workspace)
            x[0].copy_(torch.from_numpy(buffers.mix))

            with torch.autocast(device_type=self.device.type, enabled=self.use_amp):
                out = model(x)

        if out.dim() == len(buffers.targets_shape) + 1:
            require(out.shape[0] == 1, f"expected batch size 1 from model, got {out.shape[0]}")
            out = out[0]
        require(
            tuple(out.shape) == buffers.targets_shape,
            f"model returned shape {tuple(out.shape)}, expected {buffers.targets_shape}",
        )

        np.copyto(buffers.targets_out, out.detach().float().cpu().numpy())
