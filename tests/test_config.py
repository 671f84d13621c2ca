import json

import pytest
import yaml

from hdemix.core.config import DEFAULT_CONFIG, InferenceConfig
from hdemix.core.exceptions import ConfigError


def test_defaults_match_reference_model():
    config = InferenceConfig()

    assert config.segment_samples == 343980
    assert config.stride_samples == 257985
    assert config.max_shift_samples == 22050
    assert config.shift_offset == 1337
    assert config.sources == ("drums", "bass", "other", "vocals")
    assert InferenceConfig.load() == config


def test_load_yaml_inference_section(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "model": {"channels": 48},
                "inference": {"segment_seconds": 6.0, "overlap": 0.5, "shift_offset": 100},
            }
        ),
        encoding="utf-8",
    )

    config = InferenceConfig.load(path)

    assert config.segment_samples == 264600
    assert config.stride_samples == 132300
    assert config.shift_offset == 100
    assert config.sample_rate == 44100


def test_load_flat_json_with_overrides(tmp_path):
    path = tmp_path / "inference.json"
    path.write_text(json.dumps({"transition_power": 2.0, "sources": ["vocals", "accompaniment"]}))

    config = InferenceConfig.load(path, overrides={"progress": True})

    assert config.transition_power == 2.0
    assert config.sources == ("vocals", "accompaniment")
    assert config.progress is True


def test_empty_yaml_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert InferenceConfig.load(path) == InferenceConfig()


def test_load_does_not_mutate_defaults():
    InferenceConfig.load(overrides={"sources": ["a", "b"]})
    assert DEFAULT_CONFIG["sources"] == ["drums", "bass", "other", "vocals"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"overlap": 1.0},
        {"overlap": -0.1},
        {"segment_seconds": 0.0},
        {"sample_rate": 0},
        {"shift_offset": 22050},
        {"shift_offset": -1},
        {"max_shift_seconds": 0.0},
        {"shifts": 0},
        {"normalization": "peak"},
        {"sources": []},
        {"unknown_key": 1},
        {"sample_rate": "fast"},
    ],
)
def test_invalid_settings_raise_config_error(overrides):
    with pytest.raises(ConfigError):
        InferenceConfig.load(overrides=overrides)


def test_shift_can_be_disabled():
    config = InferenceConfig(max_shift_seconds=0.0, shift_offset=0)
    assert config.max_shift_samples == 0


def test_unsupported_file_type(tmp_path):
    path = tmp_path / "inference.toml"
    path.write_text("overlap = 0.5")
    with pytest.raises(ConfigError):
        InferenceConfig.load(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        InferenceConfig.load(tmp_path / "nope.yaml")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("inference: [unclosed")
    with pytest.raises(ConfigError):
        InferenceConfig.load(path)


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        InferenceConfig.load(path)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        InferenceConfig(overlap=2.0)


def test_to_dict_round_trip():
    config = InferenceConfig(overlap=0.5, sources=("a", "b"))
    assert InferenceConfig.from_dict(config.to_dict()) == config


def test_shift_seed_from_yaml(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_text(yaml.safe_dump({"inference": {"shifts": 2, "shift_seed": 42}}))

    config = InferenceConfig.load(path)

    assert config.shifts == 2
    assert config.shift_seed == 42
    assert InferenceConfig.from_dict(config.to_dict()) == config


@pytest.mark.parametrize("seed", ["42", 1.5])
def test_shift_seed_must_be_integer(seed):
    with pytest.raises(ConfigError):
        InferenceConfig(shift_seed=seed)
