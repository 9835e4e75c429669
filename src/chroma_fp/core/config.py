# src/chroma_fp/core/config.py

import os
from dataclasses import dataclass, replace
from enum import Enum
from dotenv import load_dotenv

from chroma_fp.core.errors import ConfigurationError


class SpectralEstimator(Enum):
    WELCH = "welch"        # scipy.signal.welch
    OVERLAP = "overlap"    # averaged librosa STFT frames


class KeyStrategy(Enum):
    POWER_KEY = "power_key"      # chroma transcription -> 12 byte relative strength key
    HASH_TOP_N = "hash_top_n"    # strongest N peaks -> sha1
    HASH_BANDED = "hash_banded"  # strongest peak per band -> sha1


# Audio Params
SAMPLE_RATE = 11025
SEGMENT_SIZE = 256

# Selection thresholds
POWER_FLOOR = 100.0          # power at or below this is ignored for matching
FREQUENCY_FLOOR = 0.0        # lowest frequency acceptable for matching
REQUIRED_CANDIDATES = 4      # peaks needed for a top-N fingerprint
BAND_COUNT = 4
QUANTIZATION_STEP = 10.0     # Hz grid that absorbs estimator jitter
POWER_KEY_LEVELS = 8
TIME_DELTA_THRESHOLD = 0.2   # seconds, consumed by downstream hit matching only


@dataclass(frozen=True)
class FingerprintConfig:
    """
    Every tunable the pipelines read. Passed into each call instead of living
    in module globals so two tunings can run side by side in one process.
    """
    spectral_estimator: SpectralEstimator = SpectralEstimator.WELCH
    key_strategy: KeyStrategy = KeyStrategy.POWER_KEY
    power_floor: float = POWER_FLOOR
    frequency_floor: float = FREQUENCY_FLOOR
    required_candidate_count: int = REQUIRED_CANDIDATES
    band_count: int = BAND_COUNT
    quantization_step: float = QUANTIZATION_STEP
    power_key_levels: int = POWER_KEY_LEVELS
    sample_rate: int = SAMPLE_RATE
    segment_size: int = SEGMENT_SIZE
    time_delta_threshold: float = TIME_DELTA_THRESHOLD
    verbose: bool = False

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    def with_overrides(self, **changes) -> "FingerprintConfig":
        return replace(self, **changes)

    def validate(self) -> "FingerprintConfig":
        """Raises ConfigurationError on the first bad field, returns self otherwise."""
        if not isinstance(self.spectral_estimator, SpectralEstimator):
            raise ConfigurationError(f"Unrecognised spectral estimator: {self.spectral_estimator!r}")
        if not isinstance(self.key_strategy, KeyStrategy):
            raise ConfigurationError(f"Unknown key generation method: {self.key_strategy!r}")
        if self.required_candidate_count < 1:
            raise ConfigurationError(f"required_candidate_count must be >= 1, got {self.required_candidate_count}")
        if self.band_count < 1:
            raise ConfigurationError(f"band_count must be >= 1, got {self.band_count}")
        if self.quantization_step <= 0:
            raise ConfigurationError(f"quantization_step must be positive, got {self.quantization_step}")
        if not 1 <= self.power_key_levels <= 255:
            # each level has to fit in one key byte
            raise ConfigurationError(f"power_key_levels must be within 1..255, got {self.power_key_levels}")
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.segment_size < 1:
            raise ConfigurationError(f"segment_size must be >= 1, got {self.segment_size}")
        if self.frequency_floor >= self.nyquist:
            raise ConfigurationError(
                f"frequency_floor ({self.frequency_floor}) must sit below nyquist ({self.nyquist})"
            )
        return self


def parse_estimator(name) -> SpectralEstimator:
    if isinstance(name, SpectralEstimator):
        return name
    try:
        return SpectralEstimator(str(name).strip().lower())
    except ValueError:
        raise ConfigurationError(f"Unrecognised spectral estimator: {name!r}") from None


def parse_key_strategy(name) -> KeyStrategy:
    if isinstance(name, KeyStrategy):
        return name
    try:
        return KeyStrategy(str(name).strip().lower())
    except ValueError:
        raise ConfigurationError(f"Unknown key generation method: {name!r}") from None


def _env_number(env, key, default, cast):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{key}={raw!r} is not a valid {cast.__name__}") from None


def _env_flag(env, key, default=False):
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(env=None) -> FingerprintConfig:
    """
    Builds a validated config from CHROMA_FP_* variables.
    With env=None the process environment is used, after pulling in a local .env file.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    config = FingerprintConfig(
        spectral_estimator=parse_estimator(env.get("CHROMA_FP_ESTIMATOR", SpectralEstimator.WELCH.value)),
        key_strategy=parse_key_strategy(env.get("CHROMA_FP_KEY_STRATEGY", KeyStrategy.POWER_KEY.value)),
        power_floor=_env_number(env, "CHROMA_FP_POWER_FLOOR", POWER_FLOOR, float),
        frequency_floor=_env_number(env, "CHROMA_FP_FREQUENCY_FLOOR", FREQUENCY_FLOOR, float),
        required_candidate_count=_env_number(env, "CHROMA_FP_REQUIRED_CANDIDATES", REQUIRED_CANDIDATES, int),
        band_count=_env_number(env, "CHROMA_FP_BAND_COUNT", BAND_COUNT, int),
        quantization_step=_env_number(env, "CHROMA_FP_QUANTIZATION_STEP", QUANTIZATION_STEP, float),
        power_key_levels=_env_number(env, "CHROMA_FP_POWER_KEY_LEVELS", POWER_KEY_LEVELS, int),
        sample_rate=_env_number(env, "CHROMA_FP_SAMPLE_RATE", SAMPLE_RATE, int),
        segment_size=_env_number(env, "CHROMA_FP_SEGMENT_SIZE", SEGMENT_SIZE, int),
        time_delta_threshold=_env_number(env, "CHROMA_FP_TIME_DELTA_THRESHOLD", TIME_DELTA_THRESHOLD, float),
        verbose=_env_flag(env, "CHROMA_FP_VERBOSE"),
    )
    return config.validate()
