"""
hdemix package root.

Inference orchestration for four-source hybrid separation models:
normalization, shift equivariance, segmentation and overlap-add stitching
around an opaque per-segment model call.

Public API policy:
- Keep this file lightweight and free of heavy imports (e.g. torch) at import time.
- The PyTorch adapter lives in `hdemix.models.torch_forward` and is imported explicitly.

Examples:
    from hdemix import InferenceConfig, SeparationEngine
    from hdemix.models.torch_forward import TorchModelForward
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

__all__ = [
    "__version__",
    "InferenceConfig",
    "SeparationEngine",
    "apply_model",
    "FixedOffset",
    "RandomOffset",
    "HDemixError",
    "PreconditionError",
    "ConfigError",
    "setup_logging",
]

try:
    __version__ = _pkg_version("hdemix")
except PackageNotFoundError:
    # Package is being used from source without installed metadata
    __version__ = "0.0.0+local"

from hdemix.audio.separation_engine import SeparationEngine, apply_model  # noqa: E402
from hdemix.audio.shift import FixedOffset, RandomOffset  # noqa: E402
from hdemix.core.config import InferenceConfig  # noqa: E402
from hdemix.core.exceptions import ConfigError, HDemixError, PreconditionError  # noqa: E402
from hdemix.core.logger import setup_logging  # noqa: E402
