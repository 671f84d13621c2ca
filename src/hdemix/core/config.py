"""
Configuration management for the inference pipeline

Values come from `DEFAULT_CONFIG`, optionally merged with a YAML or JSON file
and a dict of overrides. Files may either hold the keys at top level or nest
them under an `inference:` section, matching the layout of model YAML configs.
"""

import copy
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger("config")

# Constants of the pretrained four-source hybrid model
SUPPORTED_SAMPLE_RATE = 44100
MAX_SHIFT_SECS = 0.5
SEGMENT_LEN_SECS = 7.8
OVERLAP = 0.25
TRANSITION_POWER = 1.0
SHIFT_OFFSET = 1337
DEFAULT_SOURCES = ("drums", "bass", "other", "vocals")

NORMALIZATION_MODES = ("channel", "mono")

DEFAULT_CONFIG = {
    'sample_rate': SUPPORTED_SAMPLE_RATE,
    'max_shift_seconds': MAX_SHIFT_SECS,
    'segment_seconds': SEGMENT_LEN_SECS,
    'overlap': OVERLAP,
    'transition_power': TRANSITION_POWER,
    'shift_offset': SHIFT_OFFSET,
    'shifts': 1,
    'shift_seed': None,
    'normalization': 'channel',
    'sources': list(DEFAULT_SOURCES),
    'progress': False,
}


def _merge_dicts(base: Dict[str, Any], updates: Dict[str, Any]):
    """Recursively merge updates into base dictionary"""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge_dicts(base[key], value)
        else:
            base[key] = value


def _read_config_file(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            if suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(handle)
            elif suffix == '.json':
                data = json.load(handle)
            else:
                raise ConfigError(f"Unsupported config format: {path.suffix} ({path})")
    except OSError as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse config {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping, got {type(data).__name__}")

    # Model configs keep inference settings in their own section
    section = data.get('inference')
    if isinstance(section, dict):
        return section
    return data


@dataclass(frozen=True)
class InferenceConfig:
    """Settings consumed by the inference pipeline.

    Durations are given in seconds and converted to sample counts with
    `int()` truncation, so `segment_samples` and `max_shift_samples` match the
    pretrained four-source model exactly at 44.1 kHz.

    With `shifts > 1` and no explicit offset source, the engine draws each
    pass offset from `RandomOffset(shift_seed)`; `shift_offset` only applies
    to single-pass runs.
    """

    sample_rate: int = SUPPORTED_SAMPLE_RATE
    max_shift_seconds: float = MAX_SHIFT_SECS
    segment_seconds: float = SEGMENT_LEN_SECS
    overlap: float = OVERLAP
    transition_power: float = TRANSITION_POWER
    shift_offset: int = SHIFT_OFFSET
    shifts: int = 1
    shift_seed: Optional[int] = None
    normalization: str = 'channel'
    sources: Tuple[str, ...] = field(default=DEFAULT_SOURCES)
    progress: bool = False

    def __post_init__(self):
        # Lists from YAML/JSON become tuples so the config stays hashable
        object.__setattr__(self, 'sources', tuple(self.sources))
        self.validate()

    @property
    def segment_samples(self) -> int:
        return int(self.segment_seconds * self.sample_rate)

    @property
    def stride_samples(self) -> int:
        return int((1 - self.overlap) * self.segment_samples)

    @property
    def max_shift_samples(self) -> int:
        return int(self.max_shift_seconds * self.sample_rate)

    @property
    def num_sources(self) -> int:
        return len(self.sources)

    def validate(self):
        """Check value ranges and the derived sample geometry."""
        if int(self.sample_rate) <= 0:
            raise ConfigError(f"sample_rate must be positive, got {self.sample_rate}")
        if not 0.0 <= float(self.overlap) < 1.0:
            raise ConfigError(f"overlap must be in [0, 1), got {self.overlap}")
        if self.segment_samples <= 0:
            raise ConfigError(
                f"segment_seconds={self.segment_seconds} gives an empty segment "
                f"at {self.sample_rate} Hz"
            )
        if self.stride_samples < 1:
            raise ConfigError(
                f"overlap={self.overlap} leaves a stride of {self.stride_samples} samples "
                f"for segment_samples={self.segment_samples}"
            )
        if float(self.max_shift_seconds) < 0:
            raise ConfigError(f"max_shift_seconds must be >= 0, got {self.max_shift_seconds}")
        max_shift = self.max_shift_samples
        if max_shift > 0 and not 0 <= int(self.shift_offset) < max_shift:
            raise ConfigError(
                f"shift_offset must be in [0, {max_shift}), got {self.shift_offset}"
            )
        if max_shift == 0 and int(self.shift_offset) != 0:
            raise ConfigError("shift_offset must be 0 when max_shift_seconds is 0")
        if int(self.shifts) < 1:
            raise ConfigError(f"shifts must be >= 1, got {self.shifts}")
        if self.shift_seed is not None and not isinstance(self.shift_seed, int):
            raise ConfigError(f"shift_seed must be an integer or null, got {self.shift_seed!r}")
        if self.normalization not in NORMALIZATION_MODES:
            raise ConfigError(
                f"normalization must be one of {NORMALIZATION_MODES}, got {self.normalization!r}"
            )
        if not self.sources:
            raise ConfigError("sources must name at least one stem")

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['sources'] = list(self.sources)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InferenceConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown inference config keys: {', '.join(unknown)}")
        try:
            return cls(**data)
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigError):
                raise
            raise ConfigError(f"Invalid inference config: {exc}") from exc

    @classmethod
    def load(
        cls,
        path: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "InferenceConfig":
        """Build a config from defaults, an optional file and overrides."""
        config = copy.deepcopy(DEFAULT_CONFIG)

        if path is not None:
            path = Path(path)
            _merge_dicts(config, _read_config_file(path))
            logger.debug(f"Loaded inference config from {path}")

        if overrides:
            _merge_dicts(config, overrides)

        return cls.from_dict(config)
