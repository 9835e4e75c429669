import numpy as np
import librosa
import scipy.signal as sg

from chroma_fp.core.config import SpectralEstimator, SEGMENT_SIZE
from chroma_fp.core.errors import ConfigurationError

"""
Both estimators take one analysis frame of raw samples and return (powers, freqs):
two equal length 1-D arrays, one-sided power spectral density over [0, sr/2].

    Raw frame (time-domain)
            ↓  window each segment (Hann) + FFT
    Per-segment |X|^2
            ↓  average across overlapping segments
    One-sided PSD  →  transcriber / candidate selectors
"""


def _as_frame(samples) -> np.ndarray:
    y = np.asarray(samples, dtype=np.float64).ravel()
    if y.size == 0:
        raise ValueError("Cannot estimate the spectrum of an empty frame")
    return y


def welch_analysis(samples, sample_rate: int, segment_size: int = SEGMENT_SIZE):
    """Welch's method: 50% overlapped Hann segments, averaged periodograms."""
    y = _as_frame(samples)
    nperseg = min(segment_size, y.size)
    freqs, powers = sg.welch(y, fs=sample_rate, window="hann", nperseg=nperseg, scaling="density")
    return powers, freqs


def overlap_analysis(samples, sample_rate: int, segment_size: int = SEGMENT_SIZE):
    """
    Hand rolled overlap averaging on top of librosa's STFT.
    Half-window hop, no centre padding so every column sits fully inside the frame.
    Scaled to the same density units welch_analysis reports.
    """
    y = _as_frame(samples)
    n_fft = min(segment_size, y.size)
    hop_length = max(1, n_fft // 2)

    S = librosa.stft(y, n_fft=n_fft, hop_length=hop_length, window="hann", center=False)
    power = np.mean(np.abs(S) ** 2, axis=1)

    window = librosa.filters.get_window("hann", n_fft, fftbins=True)
    power = power / (sample_rate * np.sum(window ** 2))

    # fold the negative frequencies in; DC (and nyquist for even n_fft) have no mirror
    if n_fft % 2 == 0:
        power[1:-1] *= 2
    else:
        power[1:] *= 2

    freqs = librosa.fft_frequencies(sr=sample_rate, n_fft=n_fft)
    return power, freqs


ESTIMATORS = {
    SpectralEstimator.WELCH: welch_analysis,
    SpectralEstimator.OVERLAP: overlap_analysis,
}


def get_estimator(kind: SpectralEstimator, registry=None):
    registry = ESTIMATORS if registry is None else registry
    try:
        return registry[kind]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unrecognised spectral estimator: {kind!r}") from None
