import os
from unittest.mock import patch

import pytest

from chroma_fp.core.config import (
    FingerprintConfig,
    KeyStrategy,
    SpectralEstimator,
    load_config,
    parse_estimator,
    parse_key_strategy,
)
from chroma_fp.core.errors import ConfigurationError


class TestDefaults:

    def test_defaults(self):
        config = FingerprintConfig()
        assert config.spectral_estimator is SpectralEstimator.WELCH
        assert config.key_strategy is KeyStrategy.POWER_KEY
        assert config.power_floor == 100.0
        assert config.frequency_floor == 0.0
        assert config.required_candidate_count == 4
        assert config.time_delta_threshold == 0.2
        assert config.nyquist == 5512.5
        assert config.validate() is config

    def test_immutable(self):
        config = FingerprintConfig()
        with pytest.raises(Exception):
            config.power_floor = 5.0

    def test_with_overrides_leaves_original(self):
        base = FingerprintConfig()
        tuned = base.with_overrides(power_floor=0.5)
        assert tuned.power_floor == 0.5
        assert base.power_floor == 100.0


class TestValidate:

    @pytest.mark.parametrize("changes", [
        {"spectral_estimator": "pwelch"},
        {"key_strategy": "freqbands"},
        {"required_candidate_count": 0},
        {"band_count": 0},
        {"quantization_step": 0.0},
        {"power_key_levels": 0},
        {"power_key_levels": 300},
        {"sample_rate": 0},
        {"segment_size": 0},
        {"frequency_floor": 6000.0},
    ])
    def test_rejects(self, changes):
        with pytest.raises(ConfigurationError):
            FingerprintConfig(**changes).validate()


class TestParsing:

    def test_names(self):
        assert parse_estimator("Welch") is SpectralEstimator.WELCH
        assert parse_estimator(" overlap ") is SpectralEstimator.OVERLAP
        assert parse_key_strategy("HASH_BANDED") is KeyStrategy.HASH_BANDED
        assert parse_key_strategy(KeyStrategy.HASH_TOP_N) is KeyStrategy.HASH_TOP_N

    def test_unknown_never_defaults(self):
        with pytest.raises(ConfigurationError):
            parse_estimator("bespoke")
        with pytest.raises(ConfigurationError):
            parse_key_strategy("transcribe")


class TestLoadConfig:

    def test_from_mapping(self):
        config = load_config({
            "CHROMA_FP_ESTIMATOR": "overlap",
            "CHROMA_FP_KEY_STRATEGY": "hash_top_n",
            "CHROMA_FP_POWER_FLOOR": "0.5",
            "CHROMA_FP_REQUIRED_CANDIDATES": "6",
            "CHROMA_FP_VERBOSE": "yes",
        })
        assert config.spectral_estimator is SpectralEstimator.OVERLAP
        assert config.key_strategy is KeyStrategy.HASH_TOP_N
        assert config.power_floor == 0.5
        assert config.required_candidate_count == 6
        assert config.verbose is True
        assert config.band_count == 4

    def test_empty_mapping_gives_defaults(self):
        assert load_config({}) == FingerprintConfig()

    def test_bad_number(self):
        with pytest.raises(ConfigurationError):
            load_config({"CHROMA_FP_BAND_COUNT": "four"})

    def test_bad_strategy(self):
        with pytest.raises(ConfigurationError):
            load_config({"CHROMA_FP_KEY_STRATEGY": "nope"})

    @patch("chroma_fp.core.config.load_dotenv")
    def test_process_environment(self, mock_load_dotenv):
        with patch.dict(os.environ, {"CHROMA_FP_SAMPLE_RATE": "22050"}):
            config = load_config()
        mock_load_dotenv.assert_called_once()
        assert config.sample_rate == 22050
        assert config.nyquist == 11025.0
