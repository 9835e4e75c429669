import hashlib
from typing import Iterable

from chroma_fp.core.config import POWER_KEY_LEVELS
from chroma_fp.core.models import Candidate, Transcription


def power_key(transcription: Transcription, levels: int = POWER_KEY_LEVELS) -> bytes:
    """
    One byte per pitch class: its strength relative to the strongest class, scaled to 0..levels.
    The loudest class is always `levels`, so the key tracks the harmonic balance of the
    frame and not its absolute volume.
    """
    max_strength = max(transcription.strengths)
    assert max_strength > 0, "power_key needs a transcription with at least one populated bin"

    return bytes(int(b.strength / max_strength * levels + 0.5) for b in transcription)


def hash_key(candidates: Iterable[Candidate]) -> bytes:
    """
    SHA1 over the quantized candidate frequencies in sequence order (20 bytes).
    Very discriminative, but one peak moving a quantization step changes the whole key.
    """
    h = hashlib.sha1()
    for c in candidates:
        h.update(f"{c.frequency:e}".encode("utf-8"))
    return h.digest()
