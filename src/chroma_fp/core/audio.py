import io
from dataclasses import dataclass
from typing import Optional

import numpy as np
from pydub import AudioSegment
from loguru import logger

from chroma_fp.core.config import SAMPLE_RATE

CHANNELS = 1


@dataclass(frozen=True, eq=False)
class PcmFrame:
    """A block of raw samples and where it starts in the stream (seconds)."""
    samples: np.ndarray
    timestamp: float
    index: int = 0


def decode_audio_bytes(audio_bytes: bytes, sample_rate: int = SAMPLE_RATE,
                       format: Optional[str] = None) -> AudioSegment:
    """
    Turns an in-memory clip into a mono AudioSegment at sample_rate, ready for split_frames.
    `format` is only needed when ffmpeg can't tell the container from its header.
    Anything undecodable comes back as an empty segment, i.e. a stream with zero frames.
    """
    if not audio_bytes:
        logger.warning("⚠️ Empty audio payload, nothing to fingerprint")
        return AudioSegment.empty()

    try:
        segment = AudioSegment.from_file(io.BytesIO(audio_bytes), format=format)
    except Exception as e:
        logger.error(f"❌ Could not decode {len(audio_bytes)} bytes of audio: {e}")
        return AudioSegment.empty()

    if segment.frame_rate != sample_rate:
        segment = segment.set_frame_rate(sample_rate)
    if segment.channels != CHANNELS:
        segment = segment.set_channels(CHANNELS)
    return segment


def segment_to_samples(audio: AudioSegment) -> np.ndarray:
    """
    Pulls samples out of a segment as float64, left at integer PCM scale
    (int16 audio stays within +-32768). The default power floor is tuned for that scale.
    """
    # len() counts whole milliseconds, not samples
    if not audio.raw_data:
        return np.array([], dtype=np.float64)

    if audio.channels > 1:
        audio = audio.set_channels(CHANNELS)

    return np.array(audio.get_array_of_samples(), dtype=np.float64)


def split_frames(samples: np.ndarray, sample_rate: int, frame_size: int, hop: Optional[int] = None):
    """
    Yields PcmFrames of exactly frame_size samples, stepping by hop (defaults to frame_size).
    A trailing partial block is dropped: the estimator needs a full analysis window.
    """
    if frame_size < 1:
        raise ValueError(f"frame_size must be >= 1, got {frame_size}")
    hop = frame_size if hop is None else hop
    if hop < 1:
        raise ValueError(f"hop must be >= 1, got {hop}")

    samples = np.asarray(samples, dtype=np.float64)
    for index, start in enumerate(range(0, len(samples) - frame_size + 1, hop)):
        yield PcmFrame(
            samples=samples[start:start + frame_size],
            timestamp=start / sample_rate,
            index=index,
        )
