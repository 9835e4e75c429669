import math
from typing import Iterable, Optional

from chroma_fp.core.config import FingerprintConfig
from chroma_fp.core.models import Candidate, Candidates, SpectralSample
from chroma_fp.services.chroma_branch.pitch import quantize

"""
Two ways of picking a handful of salient peaks straight off the spectrum (no chroma folding):

    select_top    : the N loudest peaks anywhere in the frame
    select_banded : the loudest peak in each of band_count equal-width bands

If you just take global max peaks, one loud low register can own every slot,
so the banded variant forces spread across the spectrum.
Both finish ordered by frequency (descending) so that two near-tied peaks swapping
rank on a noisy re-recording still produce the same sequence.
"""


def is_admissible(sample: SpectralSample, config: FingerprintConfig) -> bool:
    return sample.power > config.power_floor and sample.frequency > config.frequency_floor


def _by_frequency_desc(candidates):
    return Candidates(sorted(candidates, key=lambda c: c.frequency, reverse=True))


def select_top(samples: Iterable[SpectralSample], config: FingerprintConfig,
               n: Optional[int] = None) -> Optional[Candidates]:
    n = config.required_candidate_count if n is None else n

    candidates = [
        Candidate(frequency=quantize(s.frequency, config.quantization_step), power=s.power)
        for s in samples
        if is_admissible(s, config)
    ]

    if len(candidates) < n:
        return None  # not enough signal for a stable key

    # stable sort: equal powers keep arrival order
    strongest = sorted(candidates, key=lambda c: c.power, reverse=True)[:n]
    return _by_frequency_desc(strongest)


def band_index(frequency: float, config: FingerprintConfig) -> int:
    """Which of the band_count equal slices of [frequency_floor, nyquist] a frequency sits in."""
    span = config.nyquist - config.frequency_floor
    index = math.floor(config.band_count * (frequency - config.frequency_floor) / span)
    # nyquist itself (and anything past it) lands in the top band
    return min(max(index, 0), config.band_count - 1)


def select_banded(samples: Iterable[SpectralSample], config: FingerprintConfig) -> Candidates:
    """One candidate per non-empty band. Never None; may be empty."""
    best = {}  # band -> strongest admissible sample so far

    for s in samples:
        if not is_admissible(s, config):
            continue
        band = band_index(s.frequency, config)
        current = best.get(band)
        if current is None or s.power > current.power:
            best[band] = s

    return _by_frequency_desc(
        Candidate(frequency=quantize(s.frequency, config.quantization_step), power=s.power)
        for s in best.values()
    )
