from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

from chroma_fp.core.errors import SpectrumShapeError


class PitchClass(IntEnum):
    """
    The 12 equal tempered pitch classes, counted in semitones up from A.
    Ordinal doubles as the slot index inside a Transcription.
    """
    A = 0
    A_SHARP = 1
    B = 2
    C = 3
    C_SHARP = 4
    D = 5
    D_SHARP = 6
    E = 7
    F = 8
    F_SHARP = 9
    G = 10
    G_SHARP = 11

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "PitchClass":
        try:
            return _BY_LABEL[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unrecognised pitch class label: {label!r}") from None

    def __str__(self):
        return self.label


_LABELS = {
    PitchClass.A: "A", PitchClass.A_SHARP: "A#", PitchClass.B: "B",
    PitchClass.C: "C", PitchClass.C_SHARP: "C#", PitchClass.D: "D",
    PitchClass.D_SHARP: "D#", PitchClass.E: "E", PitchClass.F: "F",
    PitchClass.F_SHARP: "F#", PitchClass.G: "G", PitchClass.G_SHARP: "G#",
}
_BY_LABEL = {label: pc for pc, label in _LABELS.items()}

PITCH_CLASS_COUNT = len(PitchClass)


@dataclass(frozen=True)
class SpectralSample:
    """One bin of the external spectral estimate."""
    frequency: float
    power: float


@dataclass(frozen=True)
class Candidate:
    frequency: float  # quantized
    power: float

    def __str__(self):
        return f"{self.frequency:9.2f} ({self.power:.2f})"


class Candidates(tuple):
    """Ordered, immutable set of selected peaks."""

    @property
    def frequencies(self) -> Tuple[float, ...]:
        return tuple(c.frequency for c in self)

    def __str__(self):
        return "\t".join(str(c) for c in self)


@dataclass(frozen=True)
class ChromaBin:
    """Strongest admissible sample seen for one pitch class. Strength 0 means empty."""
    pitch_class: PitchClass
    frequency: float = 0.0
    strength: float = 0.0

    @property
    def populated(self) -> bool:
        return self.strength > 0


@dataclass(frozen=True)
class Transcription:
    bins: Tuple[ChromaBin, ...]

    def __post_init__(self):
        bins = tuple(self.bins)
        if len(bins) != PITCH_CLASS_COUNT:
            raise ValueError(f"A transcription holds exactly {PITCH_CLASS_COUNT} bins, got {len(bins)}")
        for i, b in enumerate(bins):
            if b.pitch_class != i:
                raise ValueError(f"Bin {i} carries pitch class {b.pitch_class!r}")
        object.__setattr__(self, "bins", bins)

    @classmethod
    def empty_bins(cls):
        return [ChromaBin(PitchClass(i)) for i in range(PITCH_CLASS_COUNT)]

    def __getitem__(self, index) -> ChromaBin:
        return self.bins[index]

    def __iter__(self):
        return iter(self.bins)

    def __len__(self):
        return len(self.bins)

    @property
    def strengths(self) -> Tuple[float, ...]:
        return tuple(b.strength for b in self.bins)

    @property
    def populated(self) -> Tuple[ChromaBin, ...]:
        return tuple(b for b in self.bins if b.populated)

    def __str__(self):
        return " ".join(f"[{PitchClass(i).label}] {b.frequency:6.1f}" for i, b in enumerate(self.bins))


@dataclass(frozen=True)
class Fingerprint:
    """
    Identifying key for one analysis frame plus where it came from.
    Exactly one of candidates / transcription is set, depending on the pipeline.
    """
    key: bytes
    timestamp: float
    candidates: Optional[Candidates] = None
    transcription: Optional[Transcription] = None

    def __post_init__(self):
        if not self.key:
            raise ValueError("Fingerprint key must be non-empty")
        if (self.candidates is None) == (self.transcription is None):
            raise ValueError("Exactly one of candidates / transcription must be set")

    @property
    def source(self) -> str:
        return "transcription" if self.transcription is not None else "candidates"


@dataclass(frozen=True)
class Mapping:
    """What a key resolves to in a reference store. Built and owned by the store, not here."""
    filename: str
    timestamp: float


def samples_from_spectrum(powers, freqs):
    """Zips the estimator's (power, frequency) arrays into SpectralSamples."""
    powers = np.asarray(powers, dtype=np.float64).ravel()
    freqs = np.asarray(freqs, dtype=np.float64).ravel()
    if powers.shape != freqs.shape:
        raise SpectrumShapeError(
            f"Power / frequency length mismatch: {powers.shape[0]} vs {freqs.shape[0]}"
        )
    return [SpectralSample(float(f), float(p)) for f, p in zip(freqs, powers)]
