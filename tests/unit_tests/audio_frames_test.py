from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from pydub import AudioSegment

from chroma_fp.core.audio import PcmFrame, decode_audio_bytes, segment_to_samples, split_frames

SR = 11025


def segment_from(samples, sample_rate=SR):
    pcm = np.asarray(samples, dtype=np.int16)
    return AudioSegment(data=pcm.tobytes(), sample_width=2, frame_rate=sample_rate, channels=1)


class TestSegmentToSamples:

    def test_keeps_integer_pcm_scale(self):
        samples = segment_to_samples(segment_from([0, 1000, -32768, 32767]))
        assert samples.dtype == np.float64
        np.testing.assert_array_equal(samples, [0.0, 1000.0, -32768.0, 32767.0])

    def test_clip_shorter_than_a_millisecond(self):
        segment = segment_from([5, -5, 7, -7, 9])
        assert len(segment) == 0  # pydub reports duration in whole ms
        np.testing.assert_array_equal(segment_to_samples(segment), [5.0, -5.0, 7.0, -7.0, 9.0])

    def test_empty_segment(self):
        assert segment_to_samples(AudioSegment.empty()).size == 0

    def test_stereo_is_downmixed(self):
        stereo = np.array([100, 300, -200, -400], dtype=np.int16)
        segment = AudioSegment(data=stereo.tobytes(), sample_width=2, frame_rate=SR, channels=2)
        np.testing.assert_array_equal(segment_to_samples(segment), [200.0, -300.0])


class TestDecode:

    @patch("chroma_fp.core.audio.AudioSegment.from_file")
    def test_normalizes_rate_and_channels(self, mock_from_file):
        decoded = MagicMock(frame_rate=44100, channels=2)
        mock_from_file.return_value = decoded

        result = decode_audio_bytes(b"RIFF....", sample_rate=8000)

        decoded.set_frame_rate.assert_called_once_with(8000)
        decoded.set_frame_rate.return_value.set_channels.assert_called_once_with(1)
        assert result is decoded.set_frame_rate.return_value.set_channels.return_value

    @patch("chroma_fp.core.audio.AudioSegment.from_file")
    def test_conforming_audio_left_alone(self, mock_from_file):
        decoded = MagicMock(frame_rate=SR, channels=1)
        mock_from_file.return_value = decoded

        assert decode_audio_bytes(b"RIFF....") is decoded
        decoded.set_frame_rate.assert_not_called()
        decoded.set_channels.assert_not_called()

    @patch("chroma_fp.core.audio.AudioSegment.from_file")
    def test_format_hint_reaches_pydub(self, mock_from_file):
        mock_from_file.return_value = MagicMock(frame_rate=SR, channels=1)
        decode_audio_bytes(b"\x00\x01", format="mp3")
        assert mock_from_file.call_args.kwargs["format"] == "mp3"

    @patch("chroma_fp.core.audio.AudioSegment.from_file", side_effect=Exception("not audio"))
    def test_undecodable_bytes_give_empty_audio(self, mock_from_file):
        result = decode_audio_bytes(b"garbage")
        assert len(result) == 0

    @patch("chroma_fp.core.audio.AudioSegment.from_file")
    def test_empty_payload_skips_decoder(self, mock_from_file):
        assert len(decode_audio_bytes(b"")) == 0
        mock_from_file.assert_not_called()


class TestSplitFrames:

    def test_timestamps_in_seconds(self):
        frames = list(split_frames(np.arange(SR * 2, dtype=np.float64), SR, frame_size=SR // 2))
        assert len(frames) == 4
        assert [f.timestamp for f in frames] == [0.0, 5512 / SR, 11024 / SR, 16536 / SR]
        assert [f.index for f in frames] == [0, 1, 2, 3]
        assert all(isinstance(f, PcmFrame) and f.samples.size == SR // 2 for f in frames)

    def test_overlapping_hop(self):
        frames = list(split_frames(np.arange(10.0), 10, frame_size=4, hop=2))
        assert [f.samples[0] for f in frames] == [0.0, 2.0, 4.0, 6.0]
        assert [f.timestamp for f in frames] == [0.0, 0.2, 0.4, 0.6]

    def test_partial_tail_dropped(self):
        assert len(list(split_frames(np.zeros(7), 10, frame_size=4))) == 1
        assert list(split_frames(np.zeros(3), 10, frame_size=4)) == []

    def test_bad_sizes(self):
        with pytest.raises(ValueError):
            list(split_frames(np.zeros(8), 10, frame_size=0))
        with pytest.raises(ValueError):
            list(split_frames(np.zeros(8), 10, frame_size=4, hop=0))
