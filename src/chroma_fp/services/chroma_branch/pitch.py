import math

from chroma_fp.core.models import PitchClass, PITCH_CLASS_COUNT
from chroma_fp.core.config import QUANTIZATION_STEP

"""
Equal tempered scale, A4 = 440Hz. Every semitone is a fixed ratio 2^(1/12) from the last,
so the distance in semitones is log(f / 440) / log(2^(1/12)).
Folding that distance mod 12 throws the octave away and leaves the pitch class (chroma):
220Hz, 440Hz and 880Hz are all A.
"""

REFERENCE_FREQUENCY = 440.0
LOG_SEMITONE = math.log(2 ** (1 / 12))


def note_steps(frequency: float) -> float:
    """Signed, unrounded semitone distance from A4."""
    return math.log(frequency / REFERENCE_FREQUENCY) / LOG_SEMITONE


def classify(frequency: float) -> PitchClass:
    if frequency <= 0:
        raise ValueError(f"Cannot classify non-positive frequency {frequency}")
    # half-up rounding; python's % keeps negative step counts inside [0, 11]
    steps = math.floor(note_steps(frequency) + 0.5)
    return PitchClass(steps % PITCH_CLASS_COUNT)


def quantize(frequency: float, step: float = QUANTIZATION_STEP) -> float:
    """Snaps a frequency to the nearest multiple of step (half-up), absorbing estimator jitter."""
    return float(math.floor(frequency / step + 0.5) * step)
