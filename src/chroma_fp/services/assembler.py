from typing import Iterable, Optional, Sequence

from loguru import logger

from chroma_fp.core.audio import PcmFrame
from chroma_fp.core.config import FingerprintConfig, KeyStrategy
from chroma_fp.core.errors import ConfigurationError
from chroma_fp.core.models import Fingerprint, SpectralSample, samples_from_spectrum
from chroma_fp.services.chroma_branch.transcriber import transcribe
from chroma_fp.services.keys import hash_key, power_key
from chroma_fp.services.peak_branch.selectors import is_admissible, select_banded, select_top
from chroma_fp.services.spectral.estimators import get_estimator


class FingerprintAssembler:
    """
    Input: one analysis frame (raw samples + timestamp)
    Output: a Fingerprint, or None when the frame doesn't carry enough signal

        PcmFrame
           ↓  spectral estimator (welch / overlap)
        (powers, freqs)
           ↓  one of three pipelines, fixed at construction
        transcribe    → power_key
        select_top    → hash_key
        select_banded → hash_key
           ↓
        Fingerprint(key, frame timestamp, candidates | transcription)

    Configuration is validated once here. A bad estimator or strategy raises
    ConfigurationError straight away instead of failing every frame later.
    Holds no per-frame state, so one instance can be shared across threads.
    """

    def __init__(self, config: Optional[FingerprintConfig] = None, estimators=None):
        self.config = (config or FingerprintConfig()).validate()
        self._estimate = get_estimator(self.config.spectral_estimator, estimators)
        self._pipeline = self._resolve_pipeline(self.config.key_strategy)

        logger.info(
            f"🎛️ Fingerprint assembler ready: estimator={self.config.spectral_estimator.value} "
            f"strategy={self.config.key_strategy.value}"
        )

    def _resolve_pipeline(self, strategy: KeyStrategy):
        pipelines = {
            KeyStrategy.POWER_KEY: self._transcription_pipeline,
            KeyStrategy.HASH_TOP_N: self._top_n_pipeline,
            KeyStrategy.HASH_BANDED: self._banded_pipeline,
        }
        try:
            return pipelines[strategy]
        except KeyError:
            raise ConfigurationError(f"Unknown key generation method: {strategy!r}") from None

    # --- ENTRY POINT 1: RAW FRAME ---
    def fingerprint(self, frame: PcmFrame) -> Optional[Fingerprint]:
        powers, freqs = self._estimate(frame.samples, self.config.sample_rate, self.config.segment_size)
        samples = samples_from_spectrum(powers, freqs)

        if self.config.verbose:
            log_spectrum_stats(samples, self.config)

        return self.fingerprint_samples(samples, frame.timestamp)

    # --- ENTRY POINT 2: ALREADY ESTIMATED SPECTRUM ---
    def fingerprint_samples(self, samples: Sequence[SpectralSample], timestamp: float) -> Optional[Fingerprint]:
        fp = self._pipeline(samples, timestamp)
        if fp is None:
            logger.debug(f"[{timestamp:7.2f}] no fingerprint: insufficient signal")
        return fp

    def fingerprint_many(self, frames: Iterable[PcmFrame]):
        """Yields (frame, fingerprint or None) pairs. Frames stay independent of each other."""
        for frame in frames:
            yield frame, self.fingerprint(frame)

    # --- PIPELINES ---
    def _transcription_pipeline(self, samples, timestamp):
        transcription = transcribe(samples, self.config)
        if transcription is None:
            return None

        return Fingerprint(
            key=power_key(transcription, self.config.power_key_levels),
            timestamp=timestamp,
            transcription=transcription,
        )

    def _top_n_pipeline(self, samples, timestamp):
        candidates = select_top(samples, self.config)
        if candidates is None:
            return None

        return Fingerprint(key=hash_key(candidates), timestamp=timestamp, candidates=candidates)

    def _banded_pipeline(self, samples, timestamp):
        candidates = select_banded(samples, self.config)
        # the selector itself has no minimum, the key does
        if len(candidates) < self.config.required_candidate_count:
            return None

        return Fingerprint(key=hash_key(candidates), timestamp=timestamp, candidates=candidates)


def log_spectrum_stats(samples: Sequence[SpectralSample], config: FingerprintConfig) -> None:
    """Debug view of how the frame's power is spread over the admissible samples."""
    admissible = [s for s in samples if is_admissible(s, config)]
    if not admissible:
        return

    top = max(admissible, key=lambda s: s.power)
    bottom = min(admissible, key=lambda s: s.power)
    avg = sum(s.power for s in samples) / len(samples)

    logger.debug(
        f"#S:{len(admissible):3d} T: [{top.frequency:7.1f}] {top.power:7.1f}\t"
        f"B: [{bottom.frequency:7.1f}] {bottom.power:7.1f}\tA: {avg:7.1f}"
    )
