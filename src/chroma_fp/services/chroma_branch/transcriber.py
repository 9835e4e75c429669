from typing import Iterable, Optional

from chroma_fp.core.config import FingerprintConfig
from chroma_fp.core.models import ChromaBin, SpectralSample, Transcription
from chroma_fp.services.chroma_branch.pitch import classify, quantize


def transcribe(samples: Iterable[SpectralSample], config: FingerprintConfig) -> Optional[Transcription]:
    """
    Folds a frame's spectrum into 12 chroma buckets, keeping the strongest admissible
    sample per pitch class.

    A bin is only replaced on strictly greater power, so between equal powers in the
    same pitch class the first one seen stays. Returns None when nothing cleared the
    power / frequency floors (silent or sub-threshold frame).
    """
    bins = Transcription.empty_bins()
    committed = 0

    for sample in samples:
        # sub-floor frequencies (DC included) never reach the log in classify
        if sample.frequency <= config.frequency_floor or sample.frequency <= 0:
            continue

        n = classify(sample.frequency)
        if sample.power > bins[n].strength and sample.power > config.power_floor:
            bins[n] = ChromaBin(
                pitch_class=n,
                frequency=quantize(sample.frequency, config.quantization_step),
                strength=sample.power,
            )
            committed += 1

    if committed == 0:
        return None

    return Transcription(tuple(bins))
